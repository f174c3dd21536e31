"""
CosmWasm Contract Query Client

Smart contract queries over the Cosmos REST (LCD) gateway. The on-chain
discovery strategy, the treasury strategies and contract grant validation
only need read access, so a plain HTTP client is enough.
"""

import base64
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from ..constants import DEFAULT_REQUEST_TIMEOUT
from ..engine.exceptions import ContractNotFoundError, ContractQueryError

logger = logging.getLogger(__name__)

_NOT_FOUND_MARKERS = ("not found", "no such contract", "does not exist")


class ContractQueryClient(ABC):
    """
    Read-only access to CosmWasm contracts.

    Implementations raise ContractNotFoundError when nothing is instantiated
    at the address and ContractQueryError for any other failure.
    """

    @abstractmethod
    async def query_contract_smart(self, address: str, query: Dict[str, Any]) -> Any:
        """Run a smart query and return the decoded JSON response."""
        pass

    @abstractmethod
    async def get_contract(self, address: str) -> Dict[str, Any]:
        """Return the contract info (code_id, creator, ...) of an address."""
        pass

    @abstractmethod
    async def get_chain_id(self) -> str:
        """Return the chain id the client is connected to."""
        pass


def _is_not_found(status_code: int, message: str) -> bool:
    lowered = message.lower()
    return status_code == 404 or any(marker in lowered for marker in _NOT_FOUND_MARKERS)


class RestContractQueryClient(httpx.AsyncClient, ContractQueryClient):
    """
    ContractQueryClient backed by the REST gateway of a node.

    Usage:
        ```python
        async with RestContractQueryClient(rest_url, chain_id="xion-testnet-2") as client:
            ids = await client.query_contract_smart(address, {"authenticator_i_ds": {}})
        ```
    """

    def __init__(self, rest_url: str, chain_id: Optional[str] = None, **kwargs):
        """
        Initialize client.

        Args:
            rest_url: Base URL of the REST gateway
            chain_id: Chain id; fetched from the node info endpoint when omitted
            **kwargs: Standard httpx.AsyncClient arguments
        """
        kwargs.setdefault("timeout", DEFAULT_REQUEST_TIMEOUT)
        super().__init__(base_url=rest_url.rstrip("/"), **kwargs)
        self._chain_id = chain_id

    async def _get_json(self, path: str) -> Dict[str, Any]:
        try:
            response = await self.get(path)
        except httpx.HTTPError as exc:
            raise ContractQueryError(f"Request to {path} failed: {exc}") from exc

        if not response.is_success:
            try:
                message = str(response.json().get("message", response.text))
            except (ValueError, AttributeError):
                message = response.text
            if _is_not_found(response.status_code, message):
                raise ContractNotFoundError(message or "contract not found", response.status_code)
            raise ContractQueryError(
                f"HTTP {response.status_code} from {path}: {message}",
                response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ContractQueryError(f"Invalid JSON from {path}") from exc

    async def query_contract_smart(self, address: str, query: Dict[str, Any]) -> Any:
        encoded = base64.b64encode(
            json.dumps(query, separators=(",", ":")).encode("utf-8")
        ).decode("ascii")
        # base64 may contain "/" and "+", which must be escaped in the path
        encoded = encoded.replace("+", "%2B").replace("/", "%2F")
        logger.debug("Querying contract %s with %s", address, query)
        data = await self._get_json(f"/cosmwasm/wasm/v1/contract/{address}/smart/{encoded}")
        return data.get("data")

    async def get_contract(self, address: str) -> Dict[str, Any]:
        data = await self._get_json(f"/cosmwasm/wasm/v1/contract/{address}")
        info = data.get("contract_info")
        if not info:
            raise ContractNotFoundError(f"Contract not found at {address}")
        return info

    async def get_chain_id(self) -> str:
        if self._chain_id is None:
            data = await self._get_json("/cosmos/base/tendermint/v1beta1/node_info")
            self._chain_id = data["default_node_info"]["network"]
        return self._chain_id
