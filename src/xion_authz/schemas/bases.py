"""
Base Schema Models for the Xion Authz Library

This module defines the fundamental models shared by discovery, grant
construction and the orchestrator.

Core Classes:
    - CanonicalModel: Pydantic base model with deterministic JSON serialization
    - AuthenticatorType: Credential kinds a smart account can register
    - Authenticator: One credential registered on a smart account
    - SmartAccount / SmartAccountWithCodeId: Discovered on-chain accounts
    - AccountExistenceResult: Outcome of an account existence check
    - Coin: Denomination and amount pair

Dependencies:
    - pydantic: For data validation and serialization
"""

import json
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CanonicalModel(BaseModel):
    """
    Pydantic base model with canonical JSON serialization.

    Keys are sorted and whitespace is stripped so that the same model always
    produces the same string, which matters for messages that end up being
    signed or embedded in contract calls.

    Example:
        class MyModel(CanonicalModel):
            name: str
            value: int

        MyModel(name="test", value=123).to_canonical_json()
        # '{"name":"test","value":123}'
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_canonical_json(self) -> str:
        """
        Convert model to a compact, key-sorted JSON string.

        Returns:
            str: JSON string with sorted keys and no extra whitespace.
        """
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        return json.dumps(
            data,
            separators=(",", ":"),
            sort_keys=True,
            ensure_ascii=False
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert model to dictionary representation.

        Returns:
            Dict[str, Any]: Dictionary with all model fields.
        """
        return self.model_dump()


class AuthenticatorType(str, Enum):
    """Credential kinds supported by smart account contracts."""
    ETH_WALLET = "EthWallet"
    SECP256K1 = "Secp256K1"
    ED25519 = "Ed25519"
    SR25519 = "Sr25519"
    JWT = "JWT"
    PASSKEY = "Passkey"
    ZKEMAIL = "ZKEmail"


class Authenticator(CanonicalModel):
    """
    One credential registered on a smart account.

    Attributes:
        id: Stable identifier, "<account address>-<index>" for indexer rows
        type: Authenticator type name as reported by the backend
        authenticator: Credential string (address, pubkey, "aud.sub", ...)
        authenticator_index: Slot of the authenticator in the account contract
    """
    id: str
    type: str
    authenticator: str
    authenticator_index: int = Field(default=0, ge=0)


class SmartAccount(CanonicalModel):
    """Smart account contract and the credentials it accepts."""
    id: str = Field(..., description="Bech32 address of the smart account")
    authenticators: List[Authenticator] = Field(default_factory=list)


class SmartAccountWithCodeId(SmartAccount):
    """Smart account enriched with the code id of its contract bytecode."""
    code_id: int = Field(..., ge=0)


class AccountExistenceResult(CanonicalModel):
    """
    Outcome of check_account_exists.

    ``error`` is only set when discovery itself failed, which is different
    from a genuine "not found" (``exists=False`` with no error).
    """
    exists: bool
    accounts: List[SmartAccountWithCodeId] = Field(default_factory=list)
    smart_account_address: Optional[str] = None
    code_id: Optional[int] = None
    authenticator_index: Optional[int] = None
    error: Optional[str] = None


class Coin(CanonicalModel):
    """Amount of a single denomination. Amount is kept as a decimal string."""
    denom: str
    amount: str


# Alias kept for readability in grant configuration
SpendLimit = Coin
