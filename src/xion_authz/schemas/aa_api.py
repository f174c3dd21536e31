"""
Account Abstraction API Schemas

Request and response bodies of the account abstraction API used to look up
JWT accounts and to create wallet-backed smart accounts.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, Field

from .bases import CanonicalModel


class PrepareRequest(CanonicalModel):
    """Body of POST /api/v1/wallet-accounts/prepare."""
    wallet_type: Literal["EthWallet", "Secp256K1"]
    address: Optional[str] = None
    pubkey: Optional[str] = None


class PrepareResponse(CanonicalModel):
    """Message the wallet must sign plus the data /create needs back."""
    message_to_sign: str
    salt: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class CreateAccountRequest(CanonicalModel):
    """Body of POST /api/v1/wallet-accounts/create."""
    wallet_type: Literal["EthWallet", "Secp256K1"]
    address: Optional[str] = None
    pubkey: Optional[str] = None
    signature: str = Field(..., description="Hex signature without 0x prefix")
    salt: str
    message: str = Field(..., description="JSON encoded prepare metadata")


class CreateAccountResponse(CanonicalModel):
    """Newly created account."""
    account_address: str
    code_id: int
    transaction_hash: Optional[str] = None


class JwtAccountAuthenticator(CanonicalModel):
    """Authenticator row as returned by the jwt-accounts endpoint."""
    id: Optional[str] = None
    type: str
    authenticator: str
    authenticator_index: int = Field(
        default=0,
        validation_alias=AliasChoices("authenticator_index", "authenticatorIndex"),
    )


class JwtAccount(CanonicalModel):
    """Smart account row as returned by the jwt-accounts endpoint."""
    id: str
    code_id: int = Field(..., validation_alias=AliasChoices("code_id", "codeId"))
    authenticators: List[JwtAccountAuthenticator] = Field(default_factory=list)
