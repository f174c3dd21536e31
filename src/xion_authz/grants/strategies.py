"""
Treasury Strategies

A treasury contract publishes the grants an application wants from its
users. Its policy can be read from the DaoDao indexer (fast, cached) or by
querying the contract directly (always available). CompositeTreasuryStrategy
tries them in order.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from ..cache import TTLCache
from ..clients.contract_query import ContractQueryClient
from ..constants import DEFAULT_REQUEST_TIMEOUT, TREASURY_CACHE_TTL
from ..engine.exceptions import TreasuryQueryError
from ..schemas.treasury import TreasuryConfig, TreasuryGrantConfig, TreasuryParams

logger = logging.getLogger(__name__)


class TreasuryStrategy(ABC):
    """
    Abstract Base Class for treasury policy loaders.

    fetch_treasury_config returns the policy, None when the treasury has no
    grant configs, and raises TreasuryQueryError when the source failed.
    """

    name: str = "treasury-strategy"

    @abstractmethod
    async def fetch_treasury_config(
        self,
        treasury_address: str,
        client: ContractQueryClient,
    ) -> Optional[TreasuryConfig]:
        """
        Load the grant policy of a treasury contract.

        Args:
            treasury_address: Bech32 address of the treasury contract
            client: Contract query client (also provides the chain id)
        """
        pass


class DaoDaoTreasuryStrategy(TreasuryStrategy):
    """
    Reads ``{indexer}/{chain_id}/contract/{address}/xion/treasury/all``.

    Successful results are cached for ten minutes per (address, chain).
    """

    name = "daodao"

    def __init__(
        self,
        indexer_url: str,
        client: Optional[httpx.AsyncClient] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        cache: Optional[TTLCache] = None,
    ):
        self.indexer_url = indexer_url.rstrip("/")
        self._client = client
        self.request_timeout = request_timeout
        self._cache = cache or TTLCache(default_ttl=TREASURY_CACHE_TTL)

    async def fetch_treasury_config(
        self,
        treasury_address: str,
        client: ContractQueryClient,
    ) -> Optional[TreasuryConfig]:
        chain_id = await client.get_chain_id()
        return await self._cache.get_or_fetch(
            f"{treasury_address}:{chain_id}",
            lambda: self._fetch_from_indexer(treasury_address, chain_id),
        )

    async def _get(self, url: str) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, timeout=self.request_timeout)
        async with httpx.AsyncClient(timeout=self.request_timeout) as session:
            return await session.get(url)

    async def _fetch_from_indexer(self, treasury_address: str, chain_id: str) -> TreasuryConfig:
        url = f"{self.indexer_url}/{chain_id}/contract/{treasury_address}/xion/treasury/all"
        try:
            response = await self._get(url)
        except httpx.HTTPError as exc:
            raise TreasuryQueryError(f"DaoDao treasury strategy failed: {exc}") from exc

        if not response.is_success:
            raise TreasuryQueryError(
                f"DaoDao treasury strategy failed: indexer returned {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise TreasuryQueryError(f"DaoDao treasury strategy failed: invalid JSON: {exc}") from exc
        return self.parse_all_response(data)

    @staticmethod
    def parse_all_response(data: Any) -> TreasuryConfig:
        """
        Validate and convert an indexer ``/all`` response.

        Raises:
            TreasuryQueryError: On structural problems.
        """
        if not isinstance(data, dict):
            raise TreasuryQueryError("Invalid indexer response: not an object")
        grant_configs = data.get("grantConfigs")
        if not isinstance(grant_configs, dict):
            raise TreasuryQueryError("Invalid indexer response: missing grantConfigs")
        raw_params = data.get("params")
        if not isinstance(raw_params, dict):
            raise TreasuryQueryError("Invalid indexer response: missing params")

        configs: List[TreasuryGrantConfig] = []
        for type_url, config in grant_configs.items():
            try:
                configs.append(TreasuryGrantConfig.model_validate(config))
            except ValidationError as exc:
                raise TreasuryQueryError(f"Invalid grant config for {type_url}: {exc}") from exc

        # The indexer may expose display_url where the contract stores metadata
        metadata = raw_params.get("metadata") or raw_params.get("display_url") or "{}"
        params = TreasuryParams.sanitized(
            redirect_url=raw_params.get("redirect_url"),
            icon_url=raw_params.get("icon_url"),
            metadata=metadata,
        )
        return TreasuryConfig(grant_configs=configs, params=params)


class DirectQueryTreasuryStrategy(TreasuryStrategy):
    """Queries the treasury contract itself, one grant config per type URL."""

    name = "direct-query"

    async def fetch_treasury_config(
        self,
        treasury_address: str,
        client: ContractQueryClient,
    ) -> Optional[TreasuryConfig]:
        try:
            type_urls = await client.query_contract_smart(
                treasury_address, {"grant_config_type_urls": {}}
            )
            if not type_urls:
                return None

            configs = []
            for type_url in type_urls:
                raw = await client.query_contract_smart(
                    treasury_address,
                    {"grant_config_by_type_url": {"msg_type_url": type_url}},
                )
                if not raw or not raw.get("description"):
                    raise TreasuryQueryError(f"Invalid grant config for type URL: {type_url}")
                configs.append(TreasuryGrantConfig.model_validate(raw))
        except Exception as exc:
            raise TreasuryQueryError(f"Direct query treasury strategy failed: {exc}") from exc

        params = await self._fetch_params(treasury_address, client)
        return TreasuryConfig(grant_configs=configs, params=params)

    async def _fetch_params(self, treasury_address: str, client: ContractQueryClient) -> TreasuryParams:
        # Params are display-only; fall back to blanks rather than failing
        try:
            raw: Dict[str, Any] = await client.query_contract_smart(treasury_address, {"params": {}})
        except Exception as exc:
            logger.info("Treasury params unavailable for %s: %s", treasury_address, exc)
            return TreasuryParams()
        if not isinstance(raw, dict):
            return TreasuryParams()
        return TreasuryParams.sanitized(
            redirect_url=raw.get("redirect_url"),
            icon_url=raw.get("icon_url"),
            metadata=raw.get("metadata"),
        )


class CompositeTreasuryStrategy(TreasuryStrategy):
    """First strategy returning a policy wins; failures are logged and skipped."""

    name = "composite"

    def __init__(self, strategies: Sequence[TreasuryStrategy]):
        if not strategies:
            raise ValueError("CompositeTreasuryStrategy requires at least one strategy")
        self.strategies = list(strategies)

    async def fetch_treasury_config(
        self,
        treasury_address: str,
        client: ContractQueryClient,
    ) -> Optional[TreasuryConfig]:
        for strategy in self.strategies:
            try:
                result = await strategy.fetch_treasury_config(treasury_address, client)
            except Exception as exc:
                logger.warning("Treasury strategy %s failed: %s", strategy.name, exc)
                continue
            if result is not None:
                logger.debug("Treasury strategy %s succeeded", strategy.name)
                return result
            logger.debug("Treasury strategy %s returned nothing", strategy.name)

        logger.warning("All %d treasury strategies failed for %s", len(self.strategies), treasury_address)
        return None


def create_composite_treasury_strategy(
    daodao_indexer_url: Optional[str] = None,
    include_direct_query: bool = True,
    http_client: Optional[httpx.AsyncClient] = None,
) -> CompositeTreasuryStrategy:
    """
    Build the treasury chain: DaoDao indexer (if configured) then direct query.

    Raises:
        ValueError: If no strategy would be enabled.
    """
    strategies: List[TreasuryStrategy] = []
    if daodao_indexer_url:
        strategies.append(DaoDaoTreasuryStrategy(daodao_indexer_url, client=http_client))
    if include_direct_query:
        strategies.append(DirectQueryTreasuryStrategy())
    if not strategies:
        raise ValueError(
            "At least one treasury strategy must be enabled. "
            "Either provide a DaoDao indexer URL or include direct query."
        )
    return CompositeTreasuryStrategy(strategies)
