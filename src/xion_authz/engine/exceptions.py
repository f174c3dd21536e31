"""
Exception and Error Definitions Module

Defines the custom exception hierarchy for smart account discovery, grant
construction/validation and the connection orchestrator. All exceptions
inherit from XionAuthzError for unified exception handling.

Exception Hierarchy:
    XionAuthzError (root)
    ├── DiscoveryError
    │   ├── DiscoveryStrategyError
    │   ├── DiscoveryAggregateError
    │   └── AccountDiscoveryError
    ├── AccountCreationError
    ├── GrantError
    │   ├── InvalidContractGrantError
    │   ├── InvalidAllowanceError
    │   ├── FeeGrantValidationError
    │   ├── TreasuryQueryError
    │   └── GrantCreationError
    ├── ContractQueryError
    │   └── ContractNotFoundError
    ├── SessionRestorationError
    ├── RedirectFlowError
    ├── ConfigurationError
    └── InvalidTransition
"""

from enum import Enum
from typing import List, Optional, Tuple


class XionAuthzError(Exception):
    """
    Root exception class for all project-specific exceptions.

    All custom exceptions should inherit from this class to enable
    unified exception handling and centralized error processing.
    """
    pass


# ==================== Discovery ====================

class DiscoveryError(XionAuthzError):
    """
    Base exception for smart account discovery failures.

    Parent class for every error raised while looking up an existing
    smart account for a credential.
    """
    pass


class DiscoveryStrategyError(DiscoveryError):
    """
    Raised by a single discovery strategy when its backend is unusable.

    This includes scenarios such as:
    - Indexer returned a non-2xx status other than 404
    - Network failure or timeout talking to the backend
    - Malformed response body
    - Malformed credential for the strategy (e.g. JWT without "aud.sub")

    The composite strategy catches these and moves on to the next strategy.
    """
    pass


class DiscoveryAggregateError(DiscoveryError):
    """
    Raised when every strategy of a composite chain failed.

    This is distinct from "no account found": the caller must not offer
    to create a new account when discovery itself is broken.

    Attributes:
        errors: (strategy name, exception) pairs in invocation order
    """

    def __init__(self, errors: List[Tuple[str, Exception]]):
        self.errors = list(errors)
        details = "; ".join(f"{name}: {error}" for name, error in self.errors)
        super().__init__(f"All account discovery strategies failed ({details})")


class AccountDiscoveryError(DiscoveryError):
    """
    Raised by the orchestrator when account lookup could not be performed.

    Wraps the discovery error recorded on AccountExistenceResult.error.
    """
    pass


# ==================== Account Creation ====================

class AccountCreationError(XionAuthzError):
    """
    Raised when a new smart account cannot be created.

    This includes scenarios such as:
    - Authenticator type without a creation path (JWT, Passkey, ...)
    - Missing account creation configuration
    - Account abstraction API rejected the prepare/create request
    """
    pass


# ==================== Grants ====================

class GrantError(XionAuthzError):
    """
    Base exception for grant construction and validation errors.
    """
    pass


class InvalidContractGrantError(GrantError):
    """
    Raised when a contract grant description is structurally invalid.

    This includes scenarios such as:
    - Object entry without an "address" field
    - None entry in the contracts list
    - Account without an "id"
    - Contract address equal to the granter account (orchestrator)
    """
    pass


class InvalidAllowanceError(GrantError):
    """
    Raised when a fee allowance tree is missing a required field.

    Examples are an AllowedMsgAllowance without allowed_messages, or a
    MultiAnyAllowance whose children are all malformed.
    """
    pass


class FeeGrantErrorCode(str, Enum):
    """Machine readable fee grant validation failure codes."""
    NETWORK_ERROR = "NETWORK_ERROR"
    HTTP_ERROR = "HTTP_ERROR"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    INVALID_ALLOWANCE = "INVALID_ALLOWANCE"
    INVALID_REQUEST = "INVALID_REQUEST"


class FeeGrantValidationError(GrantError):
    """
    Raised when an on-chain fee grant could not be fetched or decoded.

    Attributes:
        code: FeeGrantErrorCode describing the failure
        status_code: HTTP status when code is HTTP_ERROR
    """

    def __init__(
        self,
        message: str,
        code: FeeGrantErrorCode,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class TreasuryQueryError(GrantError):
    """
    Raised when a treasury contract's grant policy cannot be loaded.

    Callers fall back to manual grant construction on this error.
    """
    pass


class GrantCreationError(GrantError):
    """
    Raised when grant creation fails inside connect_and_setup.
    """
    pass


# ==================== Chain Queries ====================

class ContractQueryError(XionAuthzError):
    """
    Raised when a smart contract query fails at the transport or node level.

    Attributes:
        status_code: HTTP status of the failing REST call, if any
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ContractNotFoundError(ContractQueryError):
    """
    Raised when no contract is instantiated at the queried address.

    Discovery treats this as "no account" rather than as a failure.
    """
    pass


# ==================== Orchestrator ====================

class SessionRestorationError(XionAuthzError):
    """
    Raised when persisted session state exists but could not be re-validated.

    The orchestrator records it on the restoration result after logging out.
    """
    pass


class RedirectFlowError(XionAuthzError):
    """
    Raised when the dashboard redirect flow is misused or incomplete.

    This includes scenarios such as:
    - Session manager without redirect support
    - Dashboard login that never completed
    """
    pass


class ConfigurationError(XionAuthzError):
    """
    Raised when configuration is missing or invalid.

    This includes scenarios such as:
    - Missing required environment variables
    - Subquery indexer without a code id
    - Invalid gas price string
    """
    pass


class InvalidTransition(XionAuthzError):
    """
    Raised when the account state machine receives an illegal action.

    Attributes:
        current_state: Status of the state the action was dispatched in
        action_type: Type of the rejected action
    """

    def __init__(self, current_state: str, action_type: str):
        self.current_state = current_state
        self.action_type = action_type
        super().__init__(
            f"Invalid transition: {action_type} is not allowed from state '{current_state}'"
        )
