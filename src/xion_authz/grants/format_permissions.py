"""
Permission Formatting

Helpers that render coin amounts and message types for consent screens.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Sequence, Union

from ..schemas.bases import Coin

DENOM_DECIMALS: Dict[str, int] = {
    "xion": 6,
    "usdc": 6,
}

DENOM_DISPLAY_MAP: Dict[str, str] = {
    "xion": "XION",
    "usdc": "USDC",
}

COSMOS_AUTHZ_PERMISSIONS: Dict[str, str] = {
    "/cosmos.bank.v1beta1.MsgSend": "send tokens from your account",
    "/cosmos.staking.v1beta1.MsgDelegate": "delegate your tokens",
    "/cosmos.staking.v1beta1.MsgUndelegate": "undelegate your tokens",
    "/cosmos.staking.v1beta1.MsgBeginRedelegate": "redelegate your tokens",
    "/cosmos.distribution.v1beta1.MsgWithdrawDelegatorReward": "withdraw your staking rewards",
    "/cosmos.gov.v1beta1.MsgVote": "vote on governance proposals on your behalf",
    "/ibc.applications.transfer.v1.MsgTransfer": "transfer your tokens via IBC",
    "/cosmos.authz.v1beta1.MsgExec": "execute transactions on your behalf",
    "/cosmos.authz.v1beta1.MsgRevoke": "revoke permissions",
    "/cosmos.feegrant.v1beta1.MsgGrantAllowance": "manage fee allowances on your behalf",
    "/cosmos.feegrant.v1beta1.MsgRevokeAllowance": "revoke fee allowances on your behalf",
    "/cosmos.gov.v1beta1.MsgDeposit": "deposit tokens for governance proposals on your behalf",
    "/cosmos.gov.v1beta1.MsgSubmitProposal": "submit governance proposals on your behalf",
    "/cosmwasm.wasm.v1.MsgInstantiateContract": "instantiate smart contracts on your behalf",
    "/cosmwasm.wasm.v1.MsgInstantiateContract2": "instantiate smart contracts on your behalf",
    "/cosmwasm.wasm.v1.MsgExecuteContract": "execute smart contracts on your behalf",
    "/cosmwasm.wasm.v1.MsgMigrateContract": "migrate smart contracts on your behalf",
}

_COIN_PATTERN = re.compile(r"^(\d+)\s*([a-zA-Z][a-zA-Z0-9/]*)$")


def _display_number(value: Decimal) -> str:
    # 1.500000 -> "1.5", 2.000000 -> "2"
    return format(value.normalize(), "f")


def parse_coin_string(coin_str: str) -> List[Coin]:
    """Parse "1000000uxion" (or "1000000 uxion") into a one-element list; [] if malformed."""
    match = _COIN_PATTERN.match(coin_str.strip())
    if not match:
        return []
    return [Coin(amount=match.group(1), denom=match.group(2))]


def format_coin_array(coins: Sequence[Union[Coin, dict]]) -> str:
    return ",".join(
        f"{coin.amount}{coin.denom}" for coin in (Coin.model_validate(c) for c in coins)
    )


def format_coins(coin_str: str, usdc_denom: Optional[str] = None) -> str:
    """
    Render a comma separated coin string for humans.

    Known micro denominations ("uxion") are scaled by their decimals,
    ``usdc_denom`` (often an ibc/ denom) is shown as USDC, anything else is
    upper-cased as is. Unparseable parts are dropped.
    """
    if not coin_str:
        return ""

    formatted = []
    for single in coin_str.split(","):
        coins = parse_coin_string(single)
        if not coins:
            continue
        coin = coins[0]
        amount = Decimal(coin.amount)

        if usdc_denom and coin.denom == usdc_denom:
            value = amount.scaleb(-DENOM_DECIMALS["usdc"])
            formatted.append(f"{_display_number(value)} {DENOM_DISPLAY_MAP['usdc']}")
            continue

        base = coin.denom[1:] if coin.denom.startswith("u") else coin.denom
        if coin.denom.startswith("u") and base in DENOM_DECIMALS:
            value = amount.scaleb(-DENOM_DECIMALS[base])
            display = DENOM_DISPLAY_MAP.get(base, base.upper())
            formatted.append(f"{_display_number(value)} {display}")
            continue

        formatted.append(f"{coin.amount} {coin.denom.upper()}")

    return ", ".join(formatted)


def format_xion_amount(amount: str, denom: str) -> str:
    """'1500000', 'uxion' -> '1.5 XION'; other denoms and bad amounts are echoed."""
    if denom != "uxion":
        return f"{amount} {denom}"
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError):
        return f"{amount} {denom}"
    if not value.is_finite() or value < 0:
        return f"{amount} {denom}"
    scaled = value.scaleb(-6).quantize(Decimal("0.000001"))
    return f"{_display_number(scaled)} XION"


def describe_message_type(type_url: str) -> str:
    """Consent text for a message type, falling back to the type URL."""
    description = COSMOS_AUTHZ_PERMISSIONS.get(type_url)
    return f"Permission to {description}" if description else f"Permission to send {type_url}"
