"""
Fee Grant Validation

Evaluates on-chain fee allowances against the message types a session key
is about to send. Allowances nest (AllowedMsg -> Basic, Contracts -> ...,
MultiAny -> [...]), so evaluation recurses over the tagged tree.
"""

import logging
from typing import Any, Mapping, Optional, Sequence, Union

import httpx
from pydantic import ValidationError

from ..authenticators.address import addresses_equal
from ..constants import DEFAULT_REQUEST_TIMEOUT
from ..engine.exceptions import (
    FeeGrantErrorCode,
    FeeGrantValidationError,
    InvalidAllowanceError,
)
from ..schemas.allowances import (
    AllowedMsgAllowance,
    BaseAllowance,
    BasicAllowance,
    ContractsAllowance,
    MultiAnyAllowance,
    UnknownAllowance,
    parse_allowance,
)
from ..schemas.grants import FeeGrantValidationResult

logger = logging.getLogger(__name__)


def _coerce_allowance(allowance: Union[BaseAllowance, Mapping[str, Any], None]) -> BaseAllowance:
    if allowance is None:
        raise InvalidAllowanceError("Allowance is required")
    if isinstance(allowance, BaseAllowance):
        return allowance
    if not isinstance(allowance, Mapping):
        raise InvalidAllowanceError("Allowance must be an object")
    try:
        return parse_allowance(dict(allowance))
    except ValidationError as exc:
        raise InvalidAllowanceError(f"Allowance has malformed structure: {exc}") from exc


def _validate(actions: Sequence[str], allowance: BaseAllowance, user_address: Optional[str]) -> bool:
    if isinstance(allowance, AllowedMsgAllowance):
        if allowance.allowed_messages is None:
            raise InvalidAllowanceError("AllowedMsgAllowance missing allowed_messages property")
        if not allowance.allowed_messages:
            return False
        # Type URLs are case-sensitive
        allowed = set(allowance.allowed_messages)
        return all(action in allowed for action in actions)

    if isinstance(allowance, ContractsAllowance):
        if allowance.allowance is None:
            raise InvalidAllowanceError("ContractsAllowance missing allowance property")
        if allowance.contract_addresses is None:
            raise InvalidAllowanceError("ContractsAllowance missing contract_addresses property")
        if user_address and not any(
            addresses_equal(address, user_address) for address in allowance.contract_addresses
        ):
            return False
        return _validate(actions, allowance.allowance, user_address)

    if isinstance(allowance, MultiAnyAllowance):
        if allowance.allowances is None:
            raise InvalidAllowanceError("MultiAnyAllowance missing allowances property")
        if not allowance.allowances:
            return False

        well_formed = 0
        for child in allowance.allowances:
            if child is None:
                continue
            try:
                granted = _validate(actions, child, user_address)
            except InvalidAllowanceError as exc:
                logger.debug("Skipping malformed MultiAnyAllowance child: %s", exc)
                continue
            well_formed += 1
            if granted:
                return True

        if not well_formed:
            raise InvalidAllowanceError("MultiAnyAllowance contains no well-formed allowance")
        return False

    if isinstance(allowance, (BasicAllowance, UnknownAllowance)):
        return False

    return False


def validate_actions(
    requested_actions: Sequence[str],
    allowance: Union[BaseAllowance, Mapping[str, Any], None],
    user_address: Optional[str] = None,
) -> bool:
    """
    Check whether an allowance covers every requested message type.

    Rules per variant:
        AllowedMsgAllowance: every action must be in allowed_messages
            (exact, case-sensitive match); an empty list grants nothing.
        ContractsAllowance: if user_address is given it must be one of
            contract_addresses (case-insensitive), then the nested
            allowance decides.
        MultiAnyAllowance: any child granting is enough. Null or malformed
            children are skipped; an empty list grants nothing.
        Anything else (BasicAllowance, unknown or missing tag): False.

    Args:
        requested_actions: Message type URLs about to be sent.
        allowance: Allowance model or raw REST mapping.
        user_address: Smart account the fees are paid for.

    Returns:
        bool: True if all actions are permitted. An empty action list is
        always permitted.

    Raises:
        InvalidAllowanceError: On a missing allowance or a required field
            missing from the tree.
    """
    if not requested_actions:
        return True
    return _validate(requested_actions, _coerce_allowance(allowance), user_address)


async def validate_fee_grant(
    rest_url: str,
    fee_granter: str,
    granter: str,
    requested_actions: Sequence[str],
    user_address: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> FeeGrantValidationResult:
    """
    Fetch the fee allowance from ``fee_granter`` to ``granter`` and check it.

    Args:
        rest_url: Cosmos REST gateway base URL.
        fee_granter: Account paying the fees.
        granter: Account whose fees are paid (the smart account).
        requested_actions: Message type URLs to check.
        user_address: Optional smart account for ContractsAllowance checks.
        client: Optional shared httpx client.
        request_timeout: Request timeout in seconds.

    Returns:
        FeeGrantValidationResult: ``valid=True`` when permitted; otherwise
        the error carries INVALID_ALLOWANCE (denied) or INVALID_REQUEST
        (blank addresses).

    Raises:
        FeeGrantValidationError: INVALID_REQUEST for an empty action list,
            NETWORK_ERROR, HTTP_ERROR (with status_code) or
            MALFORMED_RESPONSE when the allowance cannot be read.
    """
    if not requested_actions:
        raise FeeGrantValidationError(
            "At least one requested action is required",
            FeeGrantErrorCode.INVALID_REQUEST,
        )

    if not fee_granter or not granter or not fee_granter.strip() or not granter.strip():
        return FeeGrantValidationResult(
            valid=False,
            error=FeeGrantValidationError(
                "Fee granter and granter addresses must be non-empty strings",
                FeeGrantErrorCode.INVALID_REQUEST,
            ),
        )

    url = f"{rest_url.rstrip('/')}/cosmos/feegrant/v1beta1/allowance/{fee_granter}/{granter}"
    try:
        if client is not None:
            response = await client.get(url, timeout=request_timeout)
        else:
            async with httpx.AsyncClient(timeout=request_timeout) as session:
                response = await session.get(url)
    except httpx.HTTPError as exc:
        raise FeeGrantValidationError(
            f"Network error while fetching fee grant: {exc}",
            FeeGrantErrorCode.NETWORK_ERROR,
        ) from exc

    if not response.is_success:
        raise FeeGrantValidationError(
            f"HTTP {response.status_code} {response.reason_phrase}: Failed to fetch fee grant allowance",
            FeeGrantErrorCode.HTTP_ERROR,
            status_code=response.status_code,
        )

    try:
        data = response.json()
    except ValueError as exc:
        raise FeeGrantValidationError(
            f"Invalid JSON response from fee grant API: {exc}",
            FeeGrantErrorCode.MALFORMED_RESPONSE,
        ) from exc

    grant = data.get("allowance") if isinstance(data, dict) else None
    allowance = grant.get("allowance") if isinstance(grant, dict) else None
    if allowance is None:
        raise FeeGrantValidationError(
            "Fee grant response missing allowance data",
            FeeGrantErrorCode.MALFORMED_RESPONSE,
        )
    if not isinstance(allowance, dict):
        raise FeeGrantValidationError(
            "Fee grant allowance has malformed structure: allowance must be an object",
            FeeGrantErrorCode.MALFORMED_RESPONSE,
        )

    try:
        granted = validate_actions(requested_actions, allowance, user_address)
    except InvalidAllowanceError as exc:
        raise FeeGrantValidationError(
            f"Invalid allowance structure: {exc}",
            FeeGrantErrorCode.MALFORMED_RESPONSE,
        ) from exc

    if granted:
        return FeeGrantValidationResult(valid=True)

    logger.info("Fee grant from %s does not cover %s", fee_granter, list(requested_actions))
    return FeeGrantValidationResult(
        valid=False,
        error=FeeGrantValidationError(
            "Requested actions are not permitted by the fee grant allowance",
            FeeGrantErrorCode.INVALID_ALLOWANCE,
        ),
    )
