"""
Contract Grant Config Validation

Security gate run before any grant is built: a session key must never be
allowed to execute the granter smart account itself.
"""

import inspect
import logging
from typing import Any, Iterable, Mapping, Optional

from ..authenticators.address import addresses_equal
from ..engine.exceptions import InvalidContractGrantError

logger = logging.getLogger(__name__)

# Marker for entries of an outright wrong runtime type
_WRONG_TYPE = object()
_INVALID_SCALARS = (bool, int, float, bytes, list, tuple, set)


def _read_field(obj: Any, field: str, what: str) -> Any:
    """
    Read ``field`` from a mapping or object.

    Raises:
        InvalidContractGrantError: If the field does not exist at all.
        Exception: Whatever a property getter raises while reading it.
    """
    if isinstance(obj, Mapping):
        if field not in obj:
            raise InvalidContractGrantError(f"{what} is missing an '{field}' field")
        return obj[field]
    try:
        inspect.getattr_static(obj, field)
    except AttributeError:
        raise InvalidContractGrantError(f"{what} is missing an '{field}' field") from None
    return getattr(obj, field)


def _is_bare_object(obj: Any) -> bool:
    """True for plain objects that carry no properties at all, like ``object()``."""
    try:
        inspect.getattr_static(obj, "address")
    except AttributeError:
        return not getattr(obj, "__dict__", None)
    return False


def get_contract_address(entry: Any) -> Any:
    """
    Extract the contract address from a grant description.

    Returns the address (possibly empty or non-string) or the wrong-type
    marker for values that cannot be a description at all.

    Raises:
        InvalidContractGrantError: For None entries and objects without an
            address that carry other properties.
    """
    if isinstance(entry, str):
        return entry
    if entry is None:
        raise InvalidContractGrantError("Contract grant entry cannot be None")
    if isinstance(entry, _INVALID_SCALARS):
        return _WRONG_TYPE
    if isinstance(entry, Mapping) and not entry:
        return _WRONG_TYPE
    if not isinstance(entry, Mapping) and _is_bare_object(entry):
        return _WRONG_TYPE
    return _read_field(entry, "address", "Contract grant description")


def is_contract_grant_config_valid(contracts: Optional[Iterable[Any]], account: Any) -> bool:
    """
    Check that no contract grant targets the granter account itself.

    Returns False iff some contract address equals ``account.id`` ignoring
    case. Entries of an impossible type, empty addresses and properties that
    raise while being read also yield False (fail closed). An empty list is
    valid.

    Args:
        contracts: Contract grant descriptions (strings, mappings or objects
            with an ``address``).
        account: Mapping or object with an ``id``, the granter account.

    Raises:
        InvalidContractGrantError: When an entry is structurally malformed
            (None, or an object with properties but no ``address``) or the
            account has no ``id``.
    """
    if not contracts:
        return True

    try:
        account_id = _read_field(account, "id", "Account") if account is not None else None
    except InvalidContractGrantError:
        raise
    except Exception as exc:
        logger.debug("Reading account id failed: %s", exc)
        return False
    if account_id is None:
        raise InvalidContractGrantError("Account id is required to validate contract grants")
    if not isinstance(account_id, str):
        return False

    for entry in contracts:
        try:
            address = get_contract_address(entry)
        except InvalidContractGrantError:
            raise
        except Exception as exc:
            logger.debug("Reading contract grant address failed: %s", exc)
            return False

        if address is _WRONG_TYPE or not isinstance(address, str) or not address:
            return False
        if addresses_equal(address, account_id):
            return False

    return True
