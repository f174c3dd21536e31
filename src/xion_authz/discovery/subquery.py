"""
Subquery Indexer Account Strategy

Looks smart accounts up through a Subquery GraphQL indexer. The indexer does
not store code ids, so the strategy is configured with one.
"""

import logging
from typing import List, Optional, Union

import httpx

from .bases import HttpAccountStrategy
from ..constants import DEFAULT_REQUEST_TIMEOUT
from ..engine.exceptions import DiscoveryStrategyError
from ..schemas.bases import Authenticator, AuthenticatorType, SmartAccountWithCodeId

logger = logging.getLogger(__name__)

SMART_ACCOUNTS_QUERY = """
fragment SmartAccountFragment on SmartAccountAuthenticator {
  id
  type
  authenticator
  authenticatorIndex
  version
}
query ($authenticator: String!) {
  smartAccounts(
    filter: {
      authenticators: { some: { authenticator: { equalTo: $authenticator } } }
    }
  ) {
    nodes {
      id
      authenticators {
        nodes {
          ...SmartAccountFragment
        }
      }
    }
  }
}
"""


class SubqueryAccountStrategy(HttpAccountStrategy):
    """Discovery through a GraphQL ``smartAccounts`` filter query."""

    name = "subquery"

    def __init__(
        self,
        indexer_url: str,
        code_id: int,
        client: Optional[httpx.AsyncClient] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        super().__init__(client=client, request_timeout=request_timeout)
        self.indexer_url = indexer_url
        self.code_id = code_id

    async def fetch_smart_accounts(
        self,
        credential: str,
        authenticator_type: Union[AuthenticatorType, str],
    ) -> List[SmartAccountWithCodeId]:
        body = {"query": SMART_ACCOUNTS_QUERY, "variables": {"authenticator": credential}}

        try:
            async with self._session() as client:
                response = await client.post(self.indexer_url, json=body, timeout=self.request_timeout)
        except httpx.HTTPError as exc:
            raise DiscoveryStrategyError(f"Subquery account strategy failed: {exc}") from exc

        if not response.is_success:
            raise DiscoveryStrategyError(
                f"Subquery account strategy failed: request failed: "
                f"{response.status_code} {response.reason_phrase}"
            )

        try:
            payload = response.json()
            if payload.get("errors"):
                messages = ", ".join(str(err.get("message", err)) for err in payload["errors"])
                raise DiscoveryStrategyError(f"Subquery account strategy failed: {messages}")
            nodes = payload["data"]["smartAccounts"]["nodes"]
            logger.debug("Subquery returned %d account(s) for credential", len(nodes))
            return [
                SmartAccountWithCodeId(
                    id=node["id"],
                    code_id=self.code_id,
                    authenticators=[
                        Authenticator(
                            id=auth["id"],
                            type=auth["type"],
                            authenticator=auth["authenticator"],
                            authenticator_index=auth["authenticatorIndex"],
                        )
                        for auth in node["authenticators"]["nodes"]
                    ],
                )
                for node in nodes
            ]
        except DiscoveryStrategyError:
            raise
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise DiscoveryStrategyError(
                f"Subquery account strategy failed: malformed response: {exc}"
            ) from exc
