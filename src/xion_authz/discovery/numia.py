"""
Numia Indexer Account Strategy

Looks smart accounts up through the Numia REST indexer. Numia returns the
code id of each account, so no extra configuration is needed.
"""

import logging
from typing import List, Optional, Union
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from .bases import HttpAccountStrategy
from ..constants import DEFAULT_REQUEST_TIMEOUT
from ..engine.exceptions import DiscoveryStrategyError
from ..schemas.bases import Authenticator, AuthenticatorType, SmartAccountWithCodeId

logger = logging.getLogger(__name__)


class NumiaAuthenticator(BaseModel):
    type: str
    authenticator: str
    authenticator_index: int


class NumiaSmartAccount(BaseModel):
    smart_account: str
    code_id: int
    authenticators: List[NumiaAuthenticator] = []


def normalize_numia_base_url(base_url: str) -> str:
    """Ensure the base URL ends with a versioned path, defaulting to /v2/."""
    if not base_url.endswith("/"):
        base_url += "/"
    if not (base_url.endswith("/v2/") or base_url.endswith("/v3/")):
        base_url += "v2/"
    return base_url


class NumiaAccountStrategy(HttpAccountStrategy):
    """
    Discovery through ``GET {base}authenticators/{credential}/smartAccounts/details``.

    A 404 means the indexer knows of no such credential and yields an empty
    list; every other failure raises DiscoveryStrategyError.
    """

    name = "numia"

    def __init__(
        self,
        base_url: str,
        auth_token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        super().__init__(client=client, request_timeout=request_timeout)
        self.base_url = normalize_numia_base_url(base_url)
        self.auth_token = auth_token

    async def fetch_smart_accounts(
        self,
        credential: str,
        authenticator_type: Union[AuthenticatorType, str],
    ) -> List[SmartAccountWithCodeId]:
        # Numia searches by credential string only; the type is not needed.
        url = f"{self.base_url}authenticators/{quote(credential, safe='')}/smartAccounts/details"
        headers = {"Accept": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"

        try:
            async with self._session() as client:
                response = await client.get(url, headers=headers, timeout=self.request_timeout)
        except httpx.HTTPError as exc:
            raise DiscoveryStrategyError(f"Numia account strategy failed: {exc}") from exc

        if response.status_code == 404:
            return []
        if not response.is_success:
            raise DiscoveryStrategyError(
                f"Numia account strategy failed: indexer request failed: "
                f"{response.status_code} {response.reason_phrase}"
            )

        try:
            rows = [NumiaSmartAccount.model_validate(row) for row in (response.json() or [])]
        except (ValueError, TypeError, ValidationError) as exc:
            raise DiscoveryStrategyError(f"Numia account strategy failed: malformed response: {exc}") from exc

        logger.debug("Numia returned %d account(s) for credential", len(rows))
        return [
            SmartAccountWithCodeId(
                id=row.smart_account,
                code_id=row.code_id,
                authenticators=[
                    Authenticator(
                        id=f"{row.smart_account}-{auth.authenticator_index}",
                        type=auth.type,
                        authenticator=auth.authenticator,
                        authenticator_index=auth.authenticator_index,
                    )
                    for auth in row.authenticators
                ],
            )
            for row in rows
        ]
