"""Fee calculation for grant transactions."""

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

from ..constants import FEE_MULTIPLIER, GAS_ADJUSTMENT
from ..schemas.bases import Coin
from ..schemas.connection import Fee

_GAS_PRICE_PATTERN = re.compile(r"^([\d.]+)(.+)$")


def parse_gas_price(gas_price: str) -> Tuple[Decimal, str]:
    """
    Split "0.001uxion" into (Decimal("0.001"), "uxion").

    Raises:
        ValueError: If the string is not an amount followed by a denom.
    """
    match = _GAS_PRICE_PATTERN.match(gas_price)
    if not match:
        raise ValueError(f'Invalid gas price format: {gas_price}. Expected format: "0.001uxion"')
    try:
        price = Decimal(match.group(1))
    except InvalidOperation:
        raise ValueError(f'Invalid gas price format: {gas_price}. Expected format: "0.001uxion"') from None
    return price, match.group(2)


def calculate_fee(simulated_gas: int, gas_price: str, fee_granter: Optional[str] = None) -> Fee:
    """
    Fee for a simulated transaction.

    amount = ceil(gas * price * 2), gas = ceil(gas * 1.6); ``fee_granter``
    pays the fee when given.
    """
    price, denom = parse_gas_price(gas_price)
    amount = math.ceil(simulated_gas * price * FEE_MULTIPLIER)
    gas = math.ceil(Decimal(simulated_gas) * Decimal(str(GAS_ADJUSTMENT)))
    return Fee(
        amount=[Coin(denom=denom, amount=str(amount))],
        gas=str(gas),
        granter=fee_granter or None,
    )
