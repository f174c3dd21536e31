"""
Treasury Grant Generation

Turns the grant policy of a treasury contract into MsgGrant messages. The
treasury stores each authorization as an already-encoded protobuf Any, so
the messages carry it through untouched as ``{"type_url", "value"}`` with a
base64 value.
"""

import logging
from typing import Any, Dict, List, Optional

from ..clients.contract_query import ContractQueryClient
from ..constants import MSG_EXECUTE_CONTRACT
from ..engine.exceptions import TreasuryQueryError
from ..schemas.grants import GrantMessage
from ..schemas.treasury import TreasuryGrantConfig
from .construction import Expiration, expiration_in_months, msg_grant
from .strategies import TreasuryStrategy

logger = logging.getLogger(__name__)

TREASURY_GRANT_MONTHS = 3


def treasury_grant_message(
    grant_config: TreasuryGrantConfig,
    granter: str,
    grantee: str,
    expiration: Expiration,
) -> GrantMessage:
    """MsgGrant carrying the treasury's raw authorization."""
    authorization: Dict[str, Any] = {
        "type_url": grant_config.authorization.type_url,
        "value": grant_config.authorization.value,
    }
    return msg_grant(granter, grantee, authorization, expiration)


async def generate_treasury_grants(
    contract_address: str,
    query_client: ContractQueryClient,
    granter: str,
    grantee: str,
    strategy: TreasuryStrategy,
    expiration: Optional[Expiration] = None,
) -> List[GrantMessage]:
    """
    Build one MsgGrant per grant config published by a treasury contract.

    Args:
        contract_address: Treasury contract address.
        query_client: Client used by the strategy to read the contract.
        granter: Smart account granting the permissions.
        grantee: Session key receiving them.
        strategy: Treasury strategy used to fetch the policy.
        expiration: Unix seconds or datetime; three months from now if omitted.

    Raises:
        TreasuryQueryError: On missing arguments, an unreadable treasury or a
            treasury without grant configs.
    """
    if not contract_address:
        raise TreasuryQueryError("Missing contract address")
    if query_client is None:
        raise TreasuryQueryError("Missing client")
    if not granter:
        raise TreasuryQueryError("Missing granter address")
    if not grantee:
        raise TreasuryQueryError("Missing grantee address")
    if strategy is None:
        raise TreasuryQueryError("Missing treasury strategy")

    if expiration is None:
        expiration = expiration_in_months(TREASURY_GRANT_MONTHS)

    config = await strategy.fetch_treasury_config(contract_address, query_client)
    if config is None:
        raise TreasuryQueryError("Something went wrong querying the treasury contract for grants")
    if not config.grant_configs:
        raise TreasuryQueryError("No grant configs found in treasury contract")

    logger.debug("Treasury %s requests %d grants", contract_address, len(config.grant_configs))
    return [
        treasury_grant_message(grant_config, granter, grantee, expiration)
        for grant_config in config.grant_configs
    ]


def deploy_fee_grant_message(smart_account_address: str, grantee: str, treasury: str) -> GrantMessage:
    """
    MsgExecuteContract asking the treasury to grant the session key a fee
    allowance. Sent alongside treasury grants.
    """
    msg = {
        "deploy_fee_grant": {
            "authz_granter": smart_account_address,
            "authz_grantee": grantee,
        }
    }
    return GrantMessage(
        type_url=MSG_EXECUTE_CONTRACT,
        value={
            "sender": smart_account_address,
            "contract": treasury,
            "msg": msg,
            "funds": [],
        },
    )
