"""
Authenticator Type Detection

Infers an authenticator type from the credential string alone. Discovery
backends normally report the type explicitly; this is the fallback used
when a connector does not.
"""

import re
from typing import Iterable, List, Optional

from ..schemas.bases import Authenticator, AuthenticatorType, SmartAccountWithCodeId

_ETH_HEX_ADDRESS = re.compile(r"^[0-9a-fA-F]{40}$")


def detect_authenticator_type(credential: str) -> AuthenticatorType:
    """
    Classify a credential string. Rules are applied in order:

    - JWT: contains a dot ("aud.sub") and is not 0x-prefixed
    - EthWallet: 0x-prefixed, or exactly 40 hex characters
    - Passkey: starts with "passkey:" or contains "webauthn"
    - Secp256K1: everything else

    Secp256K1, Ed25519 and Sr25519 keys are all base64 strings of similar
    length and cannot be told apart here; Secp256K1 is returned for all
    of them.

    Args:
        credential: Address, public key, "aud.sub" pair or passkey id.

    Returns:
        AuthenticatorType: The inferred type.
    """
    if "." in credential and not credential.startswith("0x"):
        return AuthenticatorType.JWT

    if credential.startswith("0x") or _ETH_HEX_ADDRESS.match(credential):
        return AuthenticatorType.ETH_WALLET

    if credential.startswith("passkey:") or "webauthn" in credential:
        return AuthenticatorType.PASSKEY

    return AuthenticatorType.SECP256K1


def is_duplicate_authenticator(
    authenticators: Iterable[Authenticator],
    identifier: str,
    type: str,
) -> bool:
    """Check whether ``identifier`` of ``type`` is already registered."""
    return any(
        auth.authenticator == identifier and auth.type == type
        for auth in authenticators
    )


def deduplicate_accounts_by_id(
    accounts: Optional[Iterable[SmartAccountWithCodeId]],
) -> List[SmartAccountWithCodeId]:
    """Drop repeated accounts, keeping the first occurrence of each id."""
    if not accounts:
        return []
    seen = set()
    unique = []
    for account in accounts:
        if account.id in seen:
            continue
        seen.add(account.id)
        unique.append(account)
    return unique


def find_best_matching_authenticator(
    authenticators: Iterable[Authenticator],
    credential: str,
) -> Optional[Authenticator]:
    """
    Find the authenticator registered for ``credential``.

    Matching is case-insensitive since hex addresses may come back with
    different casing. When several entries match, the lowest index wins.
    """
    needle = credential.lower()
    matches = [auth for auth in authenticators if auth.authenticator.lower() == needle]
    if not matches:
        return None
    return min(matches, key=lambda auth: auth.authenticator_index)
