"""
Fee Allowance Schemas

Pydantic models for the recursive fee allowance tree returned by the
feegrant REST endpoint. The union is discriminated by the "@type" key;
anything with an unrecognised or missing tag becomes UnknownAllowance so
that evaluation can fail closed on it.

Both snake_case (REST JSON) and camelCase keys are accepted.
"""

from typing import Any, List, Mapping, Optional, Union

from pydantic import (
    AliasChoices,
    BeforeValidator,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
)
from typing_extensions import Annotated

from .bases import CanonicalModel, Coin
from ..constants import (
    ALLOWED_MSG_ALLOWANCE,
    BASIC_ALLOWANCE,
    CONTRACTS_ALLOWANCE,
    MULTI_ANY_ALLOWANCE,
)

UNKNOWN_ALLOWANCE_TAG = "unknown"


class BaseAllowance(CanonicalModel):
    """Common "@type" tag carried by every allowance variant."""
    type_url: Optional[str] = Field(default=None, alias="@type")


def _parse_coins(value: Any) -> List[Any]:
    """Keep the readable coins; malformed entries are dropped."""
    if not isinstance(value, (list, tuple)):
        return []
    coins = []
    for coin in value:
        try:
            coins.append(Coin.model_validate(coin))
        except ValidationError:
            continue
    return coins


class BasicAllowance(BaseAllowance):
    """Spend limit with optional expiry. Carries no message scope."""
    spend_limit: Annotated[List[Coin], BeforeValidator(_parse_coins)] = Field(
        default_factory=list,
        validation_alias=AliasChoices("spend_limit", "spendLimit"),
    )
    expiration: Optional[str] = None



class AllowedMsgAllowance(BaseAllowance):
    """Restricts an inner allowance to a list of message type URLs."""
    allowance: Optional["Allowance"] = None
    allowed_messages: Optional[List[str]] = Field(
        default=None,
        validation_alias=AliasChoices("allowed_messages", "allowedMessages"),
    )


class ContractsAllowance(BaseAllowance):
    """Restricts an inner allowance to calls made for specific contracts."""
    allowance: Optional["Allowance"] = None
    contract_addresses: Optional[List[str]] = Field(
        default=None,
        validation_alias=AliasChoices("contract_addresses", "contractAddresses"),
    )


def _parse_children(value: Any) -> Any:
    """Parse children one by one; malformed entries become None."""
    if not isinstance(value, (list, tuple)):
        return value
    children = []
    for child in value:
        if child is None:
            children.append(None)
            continue
        try:
            children.append(allowance_adapter.validate_python(child))
        except ValidationError:
            children.append(None)
    return children


class MultiAnyAllowance(BaseAllowance):
    """Grants if any one of the child allowances grants."""
    allowances: Optional[
        Annotated[List[Optional["Allowance"]], BeforeValidator(_parse_children)]
    ] = None


class UnknownAllowance(BaseAllowance):
    """Allowance with a tag this library does not understand."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")


_KNOWN_TAGS = {
    ALLOWED_MSG_ALLOWANCE,
    BASIC_ALLOWANCE,
    CONTRACTS_ALLOWANCE,
    MULTI_ANY_ALLOWANCE,
}


def _allowance_tag(value: Any) -> str:
    if isinstance(value, Mapping):
        tag = value.get("@type", value.get("type_url"))
    else:
        tag = getattr(value, "type_url", None)
    return tag if tag in _KNOWN_TAGS else UNKNOWN_ALLOWANCE_TAG


Allowance = Annotated[
    Union[
        Annotated[AllowedMsgAllowance, Tag(ALLOWED_MSG_ALLOWANCE)],
        Annotated[ContractsAllowance, Tag(CONTRACTS_ALLOWANCE)],
        Annotated[MultiAnyAllowance, Tag(MULTI_ANY_ALLOWANCE)],
        Annotated[BasicAllowance, Tag(BASIC_ALLOWANCE)],
        Annotated[UnknownAllowance, Tag(UNKNOWN_ALLOWANCE_TAG)],
    ],
    Discriminator(_allowance_tag),
]

AllowedMsgAllowance.model_rebuild()
ContractsAllowance.model_rebuild()
MultiAnyAllowance.model_rebuild()

allowance_adapter: TypeAdapter = TypeAdapter(Allowance)


def parse_allowance(data: Any) -> Union[
    AllowedMsgAllowance, ContractsAllowance, MultiAnyAllowance, BasicAllowance, UnknownAllowance
]:
    """
    Validate a raw allowance mapping into its tagged model.

    Raises:
        pydantic.ValidationError: If the mapping does not fit its variant.
    """
    return allowance_adapter.validate_python(data)
