"""
Signature and message formatting for the AA API.

Wallets disagree on encodings: Ethereum wallets return 0x hex, Cosmos
wallets usually base64. The AA API expects Ethereum signatures with a 0x
prefix when relayed by external signers and secp256k1 signatures as bare hex.
"""

import base64
import binascii
from typing import Union

ETH_SIGNATURE_LENGTH = 132  # "0x" + 65 bytes
SECP256K1_SIGNATURE_LENGTH = 128  # 64 bytes


def format_hex_message(message: str) -> str:
    """Ensure a hex message carries the 0x prefix."""
    if not message:
        raise ValueError("Message cannot be empty")
    return message if message.startswith("0x") else f"0x{message}"


def format_eth_signature(signature: str) -> str:
    """Ensure an Ethereum signature carries the 0x prefix."""
    if not signature:
        raise ValueError("Signature cannot be empty")
    return signature if signature.startswith("0x") else f"0x{signature}"


def format_secp256k1_signature(signature: Union[str, bytes]) -> str:
    """
    Normalise a secp256k1 signature to bare hex.

    Strings of hex signature length (128, or 130 with 0x) are taken as hex,
    other strings as base64; bytes are hex encoded.

    Raises:
        ValueError: For empty or undecodable signatures.
    """
    if not signature:
        raise ValueError("Signature cannot be empty")
    if isinstance(signature, (bytes, bytearray)):
        return bytes(signature).hex()
    if len(signature) in (SECP256K1_SIGNATURE_LENGTH, SECP256K1_SIGNATURE_LENGTH + 2):
        return signature[2:] if signature.startswith("0x") else signature
    try:
        return base64.b64decode(signature, validate=True).hex()
    except binascii.Error as exc:
        raise ValueError("Secp256K1 signature is neither hex nor base64") from exc
