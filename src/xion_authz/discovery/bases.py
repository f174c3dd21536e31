"""
Abstract Base Classes for Account Discovery Strategies

Defines the interface every smart account lookup backend implements. A
strategy answers one question: which smart accounts accept this credential?

Core Classes:
    - AccountStrategy: Interface for all discovery backends
    - HttpAccountStrategy: Base for strategies that talk to an HTTP service

Strategies are composed into an ordered fallback chain by
CompositeAccountStrategy, so each one must report "nothing found" and
"backend unusable" differently:
    - return []                      -> the backend answered, no account
    - raise DiscoveryStrategyError   -> the backend could not answer
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Union

import httpx

from ..constants import DEFAULT_REQUEST_TIMEOUT
from ..schemas.bases import AuthenticatorType, SmartAccountWithCodeId


class AccountStrategy(ABC):
    """
    Abstract Base Class for smart account discovery backends.

    Key Responsibilities:
    1. fetch_smart_accounts: Look up accounts registered for a credential
    2. name: Identify the strategy in logs and aggregated errors

    Implementations never mutate shared state and must bound every network
    call with a timeout so a slow backend cannot stall the chain.

    Example Implementation:
        class MyIndexerStrategy(AccountStrategy):
            name = "my-indexer"

            async def fetch_smart_accounts(self, credential, authenticator_type):
                ...
    """

    name: str = "account-strategy"

    @abstractmethod
    async def fetch_smart_accounts(
        self,
        credential: str,
        authenticator_type: Union[AuthenticatorType, str],
    ) -> List[SmartAccountWithCodeId]:
        """
        Find smart accounts that have ``credential`` registered.

        Args:
            credential: Authenticator string (address, pubkey, "aud.sub", ...)
            authenticator_type: Type of the credential; some backends ignore it

        Returns:
            List[SmartAccountWithCodeId]: Matching accounts, empty when none exist.

        Raises:
            DiscoveryStrategyError: When the backend failed to answer.
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class HttpAccountStrategy(AccountStrategy):
    """
    Base class for strategies backed by an HTTP service.

    An httpx.AsyncClient may be injected to share connection pools or to
    mock the backend; otherwise a short-lived client is opened per lookup.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self._client = client
        self.request_timeout = request_timeout

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.request_timeout) as client:
            yield client
