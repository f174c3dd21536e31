"""
Account Abstraction API Strategy

Looks JWT-backed smart accounts up through the AA API. Only v1 of the API,
which resolves "aud.sub" credentials, is supported.
"""

import logging
from typing import Any, List, Literal, Optional, Union
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from .bases import HttpAccountStrategy
from ..constants import DEFAULT_REQUEST_TIMEOUT
from ..engine.exceptions import DiscoveryStrategyError
from ..schemas.aa_api import JwtAccount
from ..schemas.bases import Authenticator, AuthenticatorType, SmartAccountWithCodeId

logger = logging.getLogger(__name__)


def split_jwt_credential(credential: str):
    """
    Split "aud.sub" into its parts. The audience never contains a dot but
    the subject may, so everything after the first dot is the subject.

    Raises:
        DiscoveryStrategyError: If the credential has no dot.
    """
    parts = credential.split(".")
    if len(parts) < 2:
        raise DiscoveryStrategyError(
            f'Invalid authenticator format for AA-API v1: expected "aud.sub", got "{credential}". '
            "V1 API only supports JWT authenticators."
        )
    return parts[0], ".".join(parts[1:])


def _is_account_row(row: Any) -> bool:
    return (
        isinstance(row, dict)
        and isinstance(row.get("id"), str)
        and isinstance(row.get("codeId", row.get("code_id")), int)
        and not isinstance(row.get("codeId", row.get("code_id")), bool)
        and isinstance(row.get("authenticators"), list)
    )


class AAApiAccountStrategy(HttpAccountStrategy):
    """Discovery through ``GET {base}/api/v1/jwt-accounts/{aud}/{sub}``."""

    name = "aa-api"

    def __init__(
        self,
        base_url: str,
        version: Literal["v1", "v2"] = "v1",
        client: Optional[httpx.AsyncClient] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        super().__init__(client=client, request_timeout=request_timeout)
        self.base_url = base_url.rstrip("/")
        self.version = version

    async def fetch_smart_accounts(
        self,
        credential: str,
        authenticator_type: Union[AuthenticatorType, str, None] = None,
    ) -> List[SmartAccountWithCodeId]:
        if self.version != "v1":
            raise DiscoveryStrategyError("AA-API v2 not yet implemented")
        return await self._fetch_v1(credential)

    async def _fetch_v1(self, credential: str) -> List[SmartAccountWithCodeId]:
        aud, sub = split_jwt_credential(credential)
        url = f"{self.base_url}/api/v1/jwt-accounts/{quote(aud, safe='')}/{quote(sub, safe='')}"

        try:
            async with self._session() as client:
                response = await client.get(url, timeout=self.request_timeout)
        except httpx.HTTPError as exc:
            raise DiscoveryStrategyError(f"Network error while fetching from AA-API: {exc}") from exc

        if response.status_code == 404:
            return []
        if not response.is_success:
            raise DiscoveryStrategyError(
                f"AA-API returned {response.status_code}: {response.reason_phrase}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise DiscoveryStrategyError(f"AA-API returned invalid JSON: {exc}") from exc

        rows = data if isinstance(data, list) else [data]
        accounts = []
        for row in rows:
            if not _is_account_row(row):
                logger.debug("Dropping malformed AA-API account row")
                continue
            try:
                account = JwtAccount.model_validate(row)
            except ValidationError:
                logger.debug("Dropping malformed AA-API account row %s", row.get("id"))
                continue
            accounts.append(
                SmartAccountWithCodeId(
                    id=account.id,
                    code_id=account.code_id,
                    authenticators=[
                        Authenticator(
                            id=auth.id or f"{account.id}-{auth.authenticator_index}",
                            type=auth.type,
                            authenticator=auth.authenticator,
                            authenticator_index=auth.authenticator_index,
                        )
                        for auth in account.authenticators
                    ],
                )
            )
        return accounts
