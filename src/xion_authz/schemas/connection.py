"""
Connection Schemas

Models exchanged between connectors, the orchestrator and its callers:
what a connector returns, transaction fees, and the results of connect,
session restoration and the redirect flow.
"""

from typing import Any, Awaitable, Callable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .bases import CanonicalModel, Coin

SignMessage = Callable[[str], Awaitable[Union[str, bytes]]]


class ConnectorMetadata(CanonicalModel):
    """Static description of a connector."""
    id: str
    name: str
    type: str = Field(..., description="cosmos-wallet, ethereum-wallet or external-signer")


class ConnectionMetadata(CanonicalModel):
    """
    Details reported by a connector about the connected credential.

    ``authenticator_index`` and ``code_id`` are filled in by the orchestrator
    once the smart account is known.
    """
    authenticator_type: Optional[str] = None
    authenticator_index: Optional[int] = None
    code_id: Optional[int] = None
    ethereum_address: Optional[str] = None
    pubkey: Optional[str] = None
    wallet_name: Optional[str] = None
    connection_type: Optional[str] = None


class ConnectorConnectionResult(BaseModel):
    """
    Result of Connector.connect.

    Attributes:
        authenticator: Credential used for lookup/creation (lowercase 0x
            address for Ethereum, base64 pubkey for Cosmos wallets, ...)
        display_address: Address suitable for UIs
        sign_message: Async callable signing a message with the credential
        metadata: Connection details
    """
    authenticator: str
    display_address: Optional[str] = None
    sign_message: SignMessage
    metadata: ConnectionMetadata = Field(default_factory=ConnectionMetadata)

    model_config = ConfigDict(arbitrary_types_allowed=True)


class KeypairAccount(CanonicalModel):
    """One account of a session keypair."""
    address: str
    pubkey: Optional[str] = None
    algo: str = "secp256k1"


class Fee(CanonicalModel):
    """Transaction fee, optionally paid by a fee granter."""
    amount: List[Coin]
    gas: str
    granter: Optional[str] = None


class BroadcastResult(CanonicalModel):
    transaction_hash: str
    code: int = 0
    raw_log: Optional[str] = None


class AccountInfo(BaseModel):
    """Session once connected: keypair (grantee key) plus both addresses."""
    keypair: Any
    granter_address: str
    grantee_address: str

    model_config = ConfigDict(arbitrary_types_allowed=True)


class ConnectionResult(BaseModel):
    """Outcome of connect / connect_and_setup."""
    smart_account_address: str
    connection_info: ConnectorConnectionResult
    session_keypair: Any
    grantee_address: str
    signing_client: Optional[Any] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def account_info(self) -> AccountInfo:
        return AccountInfo(
            keypair=self.session_keypair,
            granter_address=self.smart_account_address,
            grantee_address=self.grantee_address,
        )


class SessionRestorationResult(BaseModel):
    """
    Outcome of restore_session / complete_redirect.

    ``restored=False`` with no error means there was simply no session.
    ``restored=False`` with an error means a stored session was invalid and
    has been cleared.
    """
    restored: bool
    keypair: Optional[Any] = None
    granter_address: Optional[str] = None
    grantee_address: Optional[str] = None
    signing_client: Optional[Any] = None
    error: Optional[str] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def account_info(self) -> AccountInfo:
        """
        Raises:
            ValueError: If the session was not restored.
        """
        if not self.restored:
            raise ValueError("Session was not restored")
        return AccountInfo(
            keypair=self.keypair,
            granter_address=self.granter_address,
            grantee_address=self.grantee_address,
        )


class RedirectResult(CanonicalModel):
    dashboard_url: str = ""


class StorageGrantsStatus(CanonicalModel):
    """Grants recorded in local storage for a smart account."""
    grants_exist: bool
    stored_granter: Optional[str] = None
    stored_temp_account: Optional[str] = None
