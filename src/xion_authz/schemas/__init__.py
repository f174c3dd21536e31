from .bases import (
    CanonicalModel,
    AuthenticatorType,
    Authenticator,
    SmartAccount,
    SmartAccountWithCodeId,
    AccountExistenceResult,
    Coin,
    SpendLimit,
)
from .allowances import (
    Allowance,
    AllowedMsgAllowance,
    BasicAllowance,
    ContractsAllowance,
    MultiAnyAllowance,
    UnknownAllowance,
    parse_allowance,
)
from .grants import (
    ContractGrant,
    ContractGrantDescription,
    GrantConfig,
    GrantMessage,
    GrantCreationResult,
    FeeGrantValidationResult,
)
from .treasury import ProtobufAny, TreasuryGrantConfig, TreasuryParams, TreasuryConfig
from .connection import (
    ConnectorMetadata,
    ConnectionMetadata,
    ConnectorConnectionResult,
    KeypairAccount,
    Fee,
    BroadcastResult,
    AccountInfo,
    ConnectionResult,
    SessionRestorationResult,
    RedirectResult,
    StorageGrantsStatus,
)

__all__ = [
    "CanonicalModel",
    "AuthenticatorType",
    "Authenticator",
    "SmartAccount",
    "SmartAccountWithCodeId",
    "AccountExistenceResult",
    "Coin",
    "SpendLimit",
    "Allowance",
    "AllowedMsgAllowance",
    "BasicAllowance",
    "ContractsAllowance",
    "MultiAnyAllowance",
    "UnknownAllowance",
    "parse_allowance",
    "ContractGrant",
    "ContractGrantDescription",
    "GrantConfig",
    "GrantMessage",
    "GrantCreationResult",
    "FeeGrantValidationResult",
    "ProtobufAny",
    "TreasuryGrantConfig",
    "TreasuryParams",
    "TreasuryConfig",
    "ConnectorMetadata",
    "ConnectionMetadata",
    "ConnectorConnectionResult",
    "KeypairAccount",
    "Fee",
    "BroadcastResult",
    "AccountInfo",
    "ConnectionResult",
    "SessionRestorationResult",
    "RedirectResult",
    "StorageGrantsStatus",
]
