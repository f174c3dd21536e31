"""
Abstract Base Classes for Orchestrator Collaborators

The orchestrator never talks to wallets, key storage or the chain directly.
Applications plug those in through the interfaces below.

Core Classes:
    - Connector: Wallet or external signer producing a credential and a signer
    - SessionKeypair: Locally held grantee key
    - SessionManager: Keypair/granter persistence and on-chain authentication
    - RedirectSessionManager: SessionManager that also supports the dashboard
      redirect flow
    - StorageStrategy: Async key/value storage
    - GrantSigningClient: Client able to simulate and broadcast as the smart account
    - SigningClientFactory: Creates grant clients and grantee signing clients
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from ..schemas.connection import (
    BroadcastResult,
    ConnectorConnectionResult,
    ConnectorMetadata,
    Fee,
    KeypairAccount,
    SignMessage,
)
from ..schemas.grants import GrantMessage


class Connector(ABC):
    """
    Abstract Base Class for credential connectors.

    A connector wraps one way of proving control over a credential: a
    browser wallet, a Cosmos wallet, a local private key or an external
    signing service. connect returns the credential, an async signer and
    metadata including the authenticator type.
    """

    metadata: ConnectorMetadata

    async def is_available(self) -> bool:
        return True

    @abstractmethod
    async def connect(self, chain_id: Optional[str] = None) -> ConnectorConnectionResult:
        """
        Connect and return the credential with its signer.

        Args:
            chain_id: Chain the connection is for (needed by Cosmos wallets)
        """
        pass

    async def disconnect(self) -> None:
        pass


class SessionKeypair(ABC):
    """Grantee key held by the application for the duration of a session."""

    @abstractmethod
    async def get_accounts(self) -> List[KeypairAccount]:
        pass


async def grantee_address_of(keypair: SessionKeypair) -> str:
    """Address of the first account of a session keypair."""
    accounts = await keypair.get_accounts()
    if not accounts:
        raise ValueError("Session keypair has no accounts")
    return accounts[0].address


class StorageStrategy(ABC):
    """Async key/value storage (browser storage, files, a database...)."""

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        pass


class MemoryStorageStrategy(StorageStrategy):
    """Process local StorageStrategy."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class SessionManager(ABC):
    """
    Abstract Base Class for session persistence.

    Stores the session keypair and the granter (smart account) address and
    verifies against the chain that the granted permissions still exist.
    """

    @abstractmethod
    async def get_local_keypair(self) -> Optional[SessionKeypair]:
        pass

    @abstractmethod
    async def generate_and_store_temp_account(self) -> SessionKeypair:
        pass

    @abstractmethod
    async def get_granter(self) -> Optional[str]:
        pass

    @abstractmethod
    async def set_granter(self, granter: str) -> None:
        pass

    @abstractmethod
    async def authenticate(self) -> None:
        """
        Verify the stored session is still authorized on-chain.

        Raises:
            Exception: When grants are missing or expired.
        """
        pass

    @abstractmethod
    async def logout(self) -> None:
        pass


class RedirectSessionManager(SessionManager):
    """SessionManager for the flow where authorization happens on a dashboard."""

    @abstractmethod
    async def redirect_to_dashboard(self) -> None:
        pass

    @abstractmethod
    async def complete_login(self) -> Optional[Dict[str, Any]]:
        """
        Finish login after the dashboard callback.

        Returns:
            ``{"keypair": SessionKeypair, "granter": str}`` when login
            completed, None when the user was sent to the dashboard instead.
        """
        pass

    @abstractmethod
    async def get_signer(self) -> Any:
        """Signing client for the restored grantee session."""
        pass


class GrantSigningClient(ABC):
    """Client signing as the smart account itself (used to create grants)."""

    @abstractmethod
    async def simulate(self, signer_address: str, messages: Sequence[GrantMessage], memo: str) -> int:
        """Return the simulated gas for ``messages``."""
        pass

    @abstractmethod
    async def sign_and_broadcast(
        self,
        signer_address: str,
        messages: Sequence[GrantMessage],
        fee: Fee,
        memo: str,
    ) -> BroadcastResult:
        pass


class SigningClientFactory(ABC):
    """Builds the chain clients used by the orchestrator."""

    @abstractmethod
    async def create_grant_client(
        self,
        rpc_url: str,
        smart_account_address: str,
        authenticator_index: int,
        authenticator_type: str,
        sign_message: SignMessage,
        gas_price: str,
    ) -> GrantSigningClient:
        """Client signing as ``smart_account_address`` via the connected credential."""
        pass

    @abstractmethod
    async def create_grantee_client(
        self,
        rpc_url: str,
        keypair: SessionKeypair,
        granter_address: str,
        grantee_address: str,
        gas_price: str,
        treasury_address: Optional[str] = None,
    ) -> Any:
        """Client signing with the session key on behalf of the granter."""
        pass
