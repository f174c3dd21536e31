from .detection import (
    detect_authenticator_type,
    is_duplicate_authenticator,
    deduplicate_accounts_by_id,
    find_best_matching_authenticator,
)
from .address import (
    calculate_salt,
    calculate_smart_account_address,
    instantiate2_address,
    validate_bech32_address,
    addresses_equal,
)
from .signatures import (
    format_hex_message,
    format_eth_signature,
    format_secp256k1_signature,
)

__all__ = [
    "detect_authenticator_type",
    "is_duplicate_authenticator",
    "deduplicate_accounts_by_id",
    "find_best_matching_authenticator",
    "calculate_salt",
    "calculate_smart_account_address",
    "instantiate2_address",
    "validate_bech32_address",
    "addresses_equal",
    "format_hex_message",
    "format_eth_signature",
    "format_secp256k1_signature",
]
