"""
Grant Message Construction

Builds authz and feegrant messages from a manual permission configuration.
Messages are produced in the chain's REST JSON form: nested protobuf Any
values are written as ``{"@type": <type url>, ...fields}``, uint64 values as
strings and timestamps as RFC 3339 strings.
"""

import calendar
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..constants import (
    ALLOW_ALL_MESSAGES_FILTER,
    ALLOWED_MSG_ALLOWANCE,
    BASIC_ALLOWANCE,
    COMBINED_LIMIT,
    CONTRACT_CALLS_LIMIT,
    CONTRACT_EXECUTION_AUTHORIZATION,
    GENERIC_AUTHORIZATION,
    MAX_CALLS_LIMIT,
    MSG_GRANT,
    MSG_GRANT_ALLOWANCE,
    SEND_AUTHORIZATION,
    STAKE_AUTHORIZATION,
    STAKE_AUTHORIZATION_TYPES,
    STAKE_FEE_ALLOWED_MESSAGES,
    STAKE_GENERIC_MESSAGES,
)
from ..schemas.bases import Coin
from ..schemas.grants import ContractGrant, GrantMessage

logger = logging.getLogger(__name__)

Expiration = Union[int, datetime]


# ==================== Expiration helpers ====================

def to_timestamp(expiration: Expiration) -> str:
    """Render unix seconds or a datetime as an RFC 3339 UTC timestamp."""
    if isinstance(expiration, datetime):
        moment = expiration if expiration.tzinfo else expiration.replace(tzinfo=timezone.utc)
    else:
        moment = datetime.fromtimestamp(int(expiration), tz=timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def expiration_in_months(months: int, now: Optional[datetime] = None) -> int:
    """Unix seconds ``months`` calendar months from now, clamping the day."""
    now = now or datetime.now(timezone.utc)
    month_index = now.month - 1 + months
    year = now.year + month_index // 12
    month = month_index % 12 + 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return int(now.replace(year=year, month=month, day=day).timestamp())


def expiration_in_days(days: int, now: Optional[datetime] = None) -> int:
    """Unix seconds ``days`` days from now."""
    now = now or datetime.now(timezone.utc)
    return int((now + timedelta(days=days)).timestamp())


# ==================== Message helpers ====================

def _coins(coins: Sequence[Union[Coin, Mapping[str, Any]]]) -> List[Dict[str, str]]:
    return [Coin.model_validate(coin).model_dump() for coin in coins]


def msg_grant(
    granter: str,
    grantee: str,
    authorization: Dict[str, Any],
    expiration: Expiration,
) -> GrantMessage:
    """Wrap an authorization into a MsgGrant."""
    return GrantMessage(
        type_url=MSG_GRANT,
        value={
            "granter": granter,
            "grantee": grantee,
            "grant": {
                "authorization": authorization,
                "expiration": to_timestamp(expiration),
            },
        },
    )


def _normalize_contract_grant(entry: Any) -> Optional[Union[str, ContractGrant]]:
    if isinstance(entry, (str, ContractGrant)):
        return entry
    if isinstance(entry, Mapping) and entry.get("address") and entry.get("amounts") is not None:
        return ContractGrant.model_validate(entry)
    return None


# ==================== Builders ====================

def generate_bank_grant(
    expiration: Expiration,
    grantee: str,
    granter: str,
    bank: Sequence[Union[Coin, Mapping[str, Any]]],
) -> GrantMessage:
    """SendAuthorization limited to ``bank`` coins."""
    return msg_grant(
        granter,
        grantee,
        {"@type": SEND_AUTHORIZATION, "spend_limit": _coins(bank)},
        expiration,
    )


def generate_contract_grant(
    expiration: Expiration,
    grantee: str,
    granter: str,
    contracts: Sequence[Any],
) -> GrantMessage:
    """
    ContractExecutionAuthorization covering every well-formed contract entry.

    Bare addresses get a call limit; entries with amounts get a combined
    call and spend limit. Improperly encoded entries are omitted.
    """
    grants = []
    for entry in contracts:
        description = _normalize_contract_grant(entry)
        if description is None:
            logger.warning("Contract was omitted because it was improperly encoded")
            continue

        if isinstance(description, str):
            grants.append({
                "contract": description,
                "limit": {"@type": MAX_CALLS_LIMIT, "remaining": str(CONTRACT_CALLS_LIMIT)},
                "filter": {"@type": ALLOW_ALL_MESSAGES_FILTER},
            })
        else:
            grants.append({
                "contract": description.address,
                "limit": {
                    "@type": COMBINED_LIMIT,
                    "calls_remaining": str(CONTRACT_CALLS_LIMIT),
                    "amounts": _coins(description.amounts),
                },
                "filter": {"@type": ALLOW_ALL_MESSAGES_FILTER},
            })

    return msg_grant(
        granter,
        grantee,
        {"@type": CONTRACT_EXECUTION_AUTHORIZATION, "grants": grants},
        expiration,
    )


def generate_stake_and_gov_grant(
    expiration: Expiration,
    grantee: str,
    granter: str,
) -> List[GrantMessage]:
    """
    Staking and governance bundle.

    Three StakeAuthorization grants (delegate, undelegate, redelegate),
    GenericAuthorization grants for reward withdrawal, unbonding
    cancellation, voting and proposal submission, and a fee allowance
    restricted to staking and governance messages.
    """
    stake_grants = [
        msg_grant(
            granter,
            grantee,
            {"@type": STAKE_AUTHORIZATION, "authorization_type": authorization_type},
            expiration,
        )
        for authorization_type in STAKE_AUTHORIZATION_TYPES
    ]

    generic_grants = [
        msg_grant(
            granter,
            grantee,
            {"@type": GENERIC_AUTHORIZATION, "msg": msg},
            expiration,
        )
        for msg in STAKE_GENERIC_MESSAGES
    ]

    fee_grant = GrantMessage(
        type_url=MSG_GRANT_ALLOWANCE,
        value={
            "granter": granter,
            "grantee": grantee,
            "allowance": {
                "@type": ALLOWED_MSG_ALLOWANCE,
                "allowance": {
                    "@type": BASIC_ALLOWANCE,
                    "spend_limit": [],
                    "expiration": to_timestamp(expiration),
                },
                "allowed_messages": list(STAKE_FEE_ALLOWED_MESSAGES),
            },
        },
    )

    return [*stake_grants, *generic_grants, fee_grant]


def build_grant_messages(
    granter: str,
    grantee: str,
    expiration: Expiration,
    contracts: Optional[Sequence[Any]] = None,
    bank: Optional[Sequence[Union[Coin, Mapping[str, Any]]]] = None,
    stake: bool = False,
) -> List[GrantMessage]:
    """
    Build every grant message a manual permission config asks for.

    One message set is emitted per non-empty category. An empty config
    yields an empty list, meaning there is nothing to authorize.

    Args:
        granter: Smart account granting the permissions.
        grantee: Session key address receiving them.
        expiration: Unix seconds or datetime the grants expire at.
        contracts: Contract grant descriptions.
        bank: Send spend limits.
        stake: Include the staking and governance bundle.
    """
    messages: List[GrantMessage] = []

    if contracts:
        messages.append(generate_contract_grant(expiration, grantee, granter, contracts))

    if bank:
        messages.append(generate_bank_grant(expiration, grantee, granter, bank))

    if stake:
        messages.extend(generate_stake_and_gov_grant(expiration, grantee, granter))

    return messages
