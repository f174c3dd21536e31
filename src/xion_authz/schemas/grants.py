"""
Grant Schemas

Models describing what a session key should be allowed to do (GrantConfig),
the messages produced for it (GrantMessage) and the results returned by
grant creation and fee grant validation.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, Field

from .bases import CanonicalModel, Coin
from ..engine.exceptions import FeeGrantValidationError


class ContractGrant(CanonicalModel):
    """Contract execution grant with a spend limit attached to each call."""
    address: str = Field(..., description="Bech32 address of the contract")
    amounts: List[Coin] = Field(default_factory=list)


# A contract grant is either a bare address or an address with amounts
ContractGrantDescription = Union[str, ContractGrant]


class GrantConfig(CanonicalModel):
    """
    Permissions requested for the session key.

    Attributes:
        treasury: Treasury contract whose grant policy should be used
        contracts: Contracts the session key may execute
        bank: Send spend limits
        stake: Whether to include the staking and governance bundle
        fee_granter: Account paying fees for the grant transaction
        daodao_indexer_url: Indexer used to read treasury policies quickly
    """
    treasury: Optional[str] = None
    contracts: Optional[List[ContractGrantDescription]] = None
    bank: Optional[List[Coin]] = None
    stake: bool = False
    fee_granter: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("fee_granter", "feeGranter"),
    )
    daodao_indexer_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("daodao_indexer_url", "daodaoIndexerUrl"),
    )

    def has_manual_permissions(self) -> bool:
        """Check whether any manual (non-treasury) permission is requested."""
        return bool(self.contracts) or bool(self.bank) or self.stake

    def requires_grants(self) -> bool:
        """Check whether grant creation has anything to do."""
        return bool(self.treasury) or self.has_manual_permissions()


class GrantMessage(CanonicalModel):
    """
    Transaction message in REST/amino JSON form.

    ``value`` is a JSON-serialisable mapping; nested protobuf ``Any`` values
    are written as ``{"@type": <type url>, ...fields}``.
    """
    type_url: str
    value: Dict[str, Any]


class GrantCreationResult(CanonicalModel):
    """Outcome of a grant creation attempt."""
    success: bool
    transaction_hash: Optional[str] = None
    error: Optional[str] = None


class FeeGrantValidationResult(CanonicalModel):
    """
    Outcome of validate_fee_grant.

    Attributes:
        valid: True when every requested action is covered
        error: Failure details when valid is False
    """
    valid: bool
    error: Optional[Any] = Field(default=None, exclude=True)

    def is_success(self) -> bool:
        return self.valid

    def get_error(self) -> Optional[FeeGrantValidationError]:
        return self.error
