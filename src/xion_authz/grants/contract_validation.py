"""
Contract Address Validation

Stricter, reportable checks for contract grant configurations: bech32 format
and prefix, self-referential grants and (optionally) on-chain existence.
Unlike is_contract_grant_config_valid, every problem is collected so it can
be shown to the developer at once.
"""

import logging
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, Field

from ..authenticators.address import addresses_equal, validate_bech32_address
from ..clients.contract_query import ContractQueryClient
from ..engine.exceptions import ContractNotFoundError, ContractQueryError, InvalidContractGrantError

logger = logging.getLogger(__name__)

SELF_GRANT_MESSAGE = (
    "Contract address cannot be the same as the granter account. "
    "Granting permissions to yourself creates a self-referential grant that has no effect."
)


class AddressValidationError(BaseModel):
    index: int
    address: str
    error: str


class ContractValidationResult(BaseModel):
    valid: bool
    errors: List[AddressValidationError] = Field(default_factory=list)


def _address_of(contract: Any) -> Optional[str]:
    """Address of a grant description, None when the object form has none."""
    if isinstance(contract, str):
        return contract
    if isinstance(contract, dict):
        return contract.get("address")
    return getattr(contract, "address", None)


def is_self_referential_grant(contract_address: str, granter_address: str) -> bool:
    return addresses_equal(contract_address, granter_address)


def validate_contract_address_format(address: str, expected_prefix: str) -> Optional[str]:
    """Return an error message for a malformed address, None if it is valid."""
    if not address:
        return "Contract address cannot be empty"
    try:
        validate_bech32_address(address, expected_prefix, "contract address")
    except ValueError as exc:
        return str(exc)
    return None


async def verify_contract_exists(address: str, query_client: ContractQueryClient) -> Optional[str]:
    """Return an error message if no contract code lives at ``address``."""
    try:
        contract = await query_client.get_contract(address)
    except ContractNotFoundError:
        return f"Contract not found at {address}"
    except ContractQueryError as exc:
        return f"Failed to verify contract at {address}: {exc}"

    if not contract:
        return f"Contract not found at address {address}"
    code_id = contract.get("code_id", contract.get("codeId"))
    if code_id is not None and str(code_id) == "0":
        return f"Contract at {address} has no code deployed (codeId: 0)"
    return None


async def validate_contract_grants(
    contracts: Sequence[Any],
    granter: str,
    expected_prefix: str,
    query_client: Optional[ContractQueryClient] = None,
) -> ContractValidationResult:
    """
    Validate every contract grant description.

    Per entry, the first failing check is reported and the rest skipped:
    missing address, bech32 format/prefix, self-grant, then on-chain
    existence when a query client is given.
    """
    errors: List[AddressValidationError] = []

    for index, contract in enumerate(contracts):
        address = _address_of(contract)
        if address is None:
            errors.append(AddressValidationError(index=index, address="", error="Contract address is missing"))
            continue

        format_error = validate_contract_address_format(address, expected_prefix)
        if format_error:
            errors.append(AddressValidationError(index=index, address=address, error=format_error))
            continue

        if is_self_referential_grant(address, granter):
            errors.append(AddressValidationError(index=index, address=address, error=SELF_GRANT_MESSAGE))
            continue

        if query_client is not None:
            existence_error = await verify_contract_exists(address, query_client)
            if existence_error:
                errors.append(AddressValidationError(index=index, address=address, error=existence_error))

    if errors:
        logger.debug("Contract grant validation found %d problems", len(errors))
    return ContractValidationResult(valid=not errors, errors=errors)


def format_validation_errors(errors: Sequence[AddressValidationError]) -> str:
    """Human readable, one line per problem (contracts numbered from 1)."""
    if not errors:
        return "No errors"
    lines = [f"  • Contract {err.index + 1} ({err.address}): {err.error}" for err in errors]
    plural = "s" if len(errors) > 1 else ""
    return f"Invalid contract grant configuration ({len(errors)} error{plural}):\n" + "\n".join(lines)


async def validate_contract_grants_or_raise(
    contracts: Sequence[Any],
    granter: str,
    expected_prefix: str,
    query_client: Optional[ContractQueryClient] = None,
) -> None:
    """
    Raises:
        InvalidContractGrantError: With every problem formatted in the message.
    """
    result = await validate_contract_grants(contracts, granter, expected_prefix, query_client)
    if not result.valid:
        raise InvalidContractGrantError(format_validation_errors(result.errors))
