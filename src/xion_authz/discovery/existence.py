"""
Account Existence Check

Wraps a discovery strategy into a single result object the orchestrator can
branch on: found, not found, or discovery failed.
"""

import logging
from typing import Union

from .bases import AccountStrategy
from ..authenticators.detection import find_best_matching_authenticator
from ..schemas.bases import AccountExistenceResult, AuthenticatorType

logger = logging.getLogger(__name__)


async def check_account_exists(
    strategy: AccountStrategy,
    credential: str,
    authenticator_type: Union[AuthenticatorType, str],
) -> AccountExistenceResult:
    """
    Check whether a smart account exists for a credential.

    When several accounts are returned the first one is used; strategies
    return accounts in their backend's order and the composite never merges
    results, so the choice is deterministic for a given backend answer.

    The authenticator index is resolved by case-insensitive credential
    match and defaults to 0 when the account has no matching entry.

    Discovery failures are not raised. They are reported through
    ``error`` so callers can tell them apart from "not found".
    """
    try:
        accounts = await strategy.fetch_smart_accounts(credential, authenticator_type)
    except Exception as exc:
        logger.warning("Account discovery failed: %s", exc)
        return AccountExistenceResult(exists=False, accounts=[], error=str(exc) or type(exc).__name__)

    if not accounts:
        return AccountExistenceResult(exists=False, accounts=[])

    account = accounts[0]
    if len(accounts) > 1:
        logger.info("Found %d smart accounts, using %s", len(accounts), account.id)

    match = find_best_matching_authenticator(account.authenticators, credential)
    return AccountExistenceResult(
        exists=True,
        accounts=accounts,
        smart_account_address=account.id,
        code_id=account.code_id,
        authenticator_index=match.authenticator_index if match else 0,
    )
