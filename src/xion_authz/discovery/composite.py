"""
Composite Account Strategy

Ordered fallback over several discovery strategies. Strategies are awaited
one after another in the order given; the first non-empty answer wins and
the remaining strategies are never called.
"""

import logging
from typing import List, Sequence, Tuple, Union

from .bases import AccountStrategy
from ..engine.exceptions import DiscoveryAggregateError
from ..schemas.bases import AuthenticatorType, SmartAccountWithCodeId

logger = logging.getLogger(__name__)


class CompositeAccountStrategy(AccountStrategy):
    """
    Try each strategy in priority order.

    Outcomes:
        - a strategy returns accounts   -> returned immediately
        - a strategy raises             -> logged, next strategy is tried
        - all return empty (some may have raised) -> []
        - every strategy raised         -> DiscoveryAggregateError

    The aggregate error lets callers tell "no account yet" apart from
    "discovery is broken", so account creation is never offered for the
    latter.
    """

    name = "composite"

    def __init__(self, strategies: Sequence[AccountStrategy]):
        if not strategies:
            raise ValueError("CompositeAccountStrategy requires at least one strategy")
        self.strategies = list(strategies)

    async def fetch_smart_accounts(
        self,
        credential: str,
        authenticator_type: Union[AuthenticatorType, str],
    ) -> List[SmartAccountWithCodeId]:
        errors: List[Tuple[str, Exception]] = []

        for strategy in self.strategies:
            try:
                accounts = await strategy.fetch_smart_accounts(credential, authenticator_type)
            except Exception as exc:
                logger.warning("Account strategy %s failed: %s", strategy.name, exc)
                errors.append((strategy.name, exc))
                continue

            if accounts:
                logger.debug("Account strategy %s found %d account(s)", strategy.name, len(accounts))
                return accounts
            logger.debug("Account strategy %s found no account", strategy.name)

        if len(errors) == len(self.strategies):
            raise DiscoveryAggregateError(errors)
        return []
