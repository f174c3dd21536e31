from .construction import (
    build_grant_messages,
    generate_bank_grant,
    generate_contract_grant,
    generate_stake_and_gov_grant,
    msg_grant,
    to_timestamp,
    expiration_in_days,
    expiration_in_months,
)
from .authz import is_contract_grant_config_valid
from .feegrant import validate_actions, validate_fee_grant
from .strategies import (
    TreasuryStrategy,
    DaoDaoTreasuryStrategy,
    DirectQueryTreasuryStrategy,
    CompositeTreasuryStrategy,
    create_composite_treasury_strategy,
)
from .treasury import generate_treasury_grants, deploy_fee_grant_message
from .contract_validation import (
    AddressValidationError,
    ContractValidationResult,
    validate_contract_address_format,
    verify_contract_exists,
    validate_contract_grants,
    format_validation_errors,
    validate_contract_grants_or_raise,
)
from .format_permissions import (
    parse_coin_string,
    format_coin_array,
    format_coins,
    format_xion_amount,
    describe_message_type,
)

__all__ = [
    "build_grant_messages",
    "generate_bank_grant",
    "generate_contract_grant",
    "generate_stake_and_gov_grant",
    "msg_grant",
    "to_timestamp",
    "expiration_in_days",
    "expiration_in_months",
    "is_contract_grant_config_valid",
    "validate_actions",
    "validate_fee_grant",
    "TreasuryStrategy",
    "DaoDaoTreasuryStrategy",
    "DirectQueryTreasuryStrategy",
    "CompositeTreasuryStrategy",
    "create_composite_treasury_strategy",
    "generate_treasury_grants",
    "deploy_fee_grant_message",
    "AddressValidationError",
    "ContractValidationResult",
    "validate_contract_address_format",
    "verify_contract_exists",
    "validate_contract_grants",
    "format_validation_errors",
    "validate_contract_grants_or_raise",
    "parse_coin_string",
    "format_coin_array",
    "format_coins",
    "format_xion_amount",
    "describe_message_type",
]
