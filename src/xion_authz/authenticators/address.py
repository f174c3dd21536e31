"""
Smart Account Address Derivation

Smart accounts are instantiated with CosmWasm instantiate2, so their address
is a pure function of the contract checksum, the creator (fee granter) and a
salt derived from the credential. This lets the on-chain discovery strategy
find an account without any indexer.

Dependencies:
    - bech32: For address encoding and decoding
"""

import hashlib
import struct
from typing import Union

import bech32

from ..schemas.bases import AuthenticatorType


def calculate_eth_wallet_salt(address: str) -> str:
    """
    Salt for an Ethereum wallet: sha256 of the raw 20 address bytes.

    Args:
        address: Hex address with or without "0x", any casing.

    Returns:
        str: Hex encoded salt.
    """
    address_hex = address[2:] if address.lower().startswith("0x") else address
    return hashlib.sha256(bytes.fromhex(address_hex)).hexdigest()


def calculate_secp256k1_salt(pubkey: str) -> str:
    """Salt for a public key credential: sha256 of the UTF-8 key string."""
    return hashlib.sha256(pubkey.encode("utf-8")).hexdigest()


def calculate_salt(authenticator_type: Union[AuthenticatorType, str], credential: str) -> str:
    """
    Derive the instantiate2 salt for a credential.

    EthWallet credentials are hashed as raw address bytes; every other type
    hashes the credential string itself.
    """
    if AuthenticatorType(authenticator_type) == AuthenticatorType.ETH_WALLET:
        return calculate_eth_wallet_salt(credential)
    return calculate_secp256k1_salt(credential)


def decode_bech32_address(address: str) -> bytes:
    """
    Decode a bech32 address into its canonical bytes.

    Raises:
        ValueError: If the address is not valid bech32.
    """
    prefix, data = bech32.bech32_decode(address)
    if prefix is None or data is None:
        raise ValueError(f"Invalid bech32 address: {address}")
    decoded = bech32.convertbits(data, 5, 8, False)
    if decoded is None:
        raise ValueError(f"Invalid bech32 address payload: {address}")
    return bytes(decoded)


def encode_bech32_address(prefix: str, data: bytes) -> str:
    """Encode canonical address bytes with a human readable prefix."""
    return bech32.bech32_encode(prefix, bech32.convertbits(data, 8, 5))


def validate_bech32_address(address: str, expected_prefix: str, label: str = "address") -> None:
    """
    Check an address is valid bech32 and carries the expected prefix.

    Raises:
        ValueError: With a message suitable for end users.
    """
    if not address:
        raise ValueError(f"Invalid {label}: address is empty")
    prefix, data = bech32.bech32_decode(address)
    if prefix is None or data is None:
        raise ValueError(f"Invalid {label}: {address} is not a valid bech32 address")
    if prefix != expected_prefix:
        raise ValueError(
            f"Invalid {label}: expected prefix '{expected_prefix}' but got '{prefix}'"
        )


def _length_prefixed(component: bytes) -> bytes:
    return struct.pack(">Q", len(component)) + component


def instantiate2_address(
    checksum: bytes,
    creator: str,
    salt: bytes,
    prefix: str,
    msg: bytes = b"",
) -> str:
    """
    Predict the address of a contract instantiated with instantiate2.

    Mirrors the wasmd derivation:
        key = "wasm" | 0x00 | len+checksum | len+creator | len+salt | len+msg
        address = sha256(sha256("module") | key)

    Args:
        checksum: 32 byte code checksum.
        creator: Bech32 address of the instantiating account.
        salt: 1 to 64 byte salt.
        prefix: Bech32 prefix of the resulting address.
        msg: Init message when fix_msg is used, empty otherwise.

    Raises:
        ValueError: On invalid checksum/salt length or creator address.
    """
    if len(checksum) != 32:
        raise ValueError("Checksum must be 32 bytes")
    if not 1 <= len(salt) <= 64:
        raise ValueError("Salt must be between 1 and 64 bytes")

    creator_bytes = decode_bech32_address(creator)
    key = (
        b"wasm"
        + b"\x00"
        + _length_prefixed(checksum)
        + _length_prefixed(creator_bytes)
        + _length_prefixed(salt)
        + _length_prefixed(msg)
    )
    module_hash = hashlib.sha256(b"module").digest()
    address_bytes = hashlib.sha256(module_hash + key).digest()
    return encode_bech32_address(prefix, address_bytes)


def calculate_smart_account_address(
    checksum: str,
    creator: str,
    salt: str,
    prefix: str,
) -> str:
    """
    Predict a smart account address from hex encoded checksum and salt.

    Args:
        checksum: Hex code checksum of the account contract.
        creator: Bech32 address of the account factory / fee granter.
        salt: Hex salt from calculate_salt.
        prefix: Chain address prefix, e.g. "xion".
    """
    return instantiate2_address(
        bytes.fromhex(checksum),
        creator,
        bytes.fromhex(salt),
        prefix,
    )


def addresses_equal(left: str, right: str) -> bool:
    """Compare two bech32 addresses. Bech32 is case-insensitive."""
    return left.lower() == right.lower()
