"""
Composite Account Strategy Factory

Builds the standard discovery chain from configuration:
    indexer (Numia or Subquery) -> AA API -> on-chain (RPC) -> empty
"""

from typing import List, Optional

import httpx

from .aa_api import AAApiAccountStrategy
from .bases import AccountStrategy
from .composite import CompositeAccountStrategy
from .empty import EmptyAccountStrategy
from .numia import NumiaAccountStrategy
from .rpc import RpcAccountStrategy
from .subquery import SubqueryAccountStrategy
from ..clients.contract_query import ContractQueryClient, RestContractQueryClient
from ..config import (
    AAApiStrategyConfig,
    IndexerConfig,
    RpcStrategyConfig,
    SubqueryIndexerConfig,
)
from ..constants import DEFAULT_REQUEST_TIMEOUT
from ..engine.exceptions import ConfigurationError


def create_composite_account_strategy(
    indexer: Optional[IndexerConfig] = None,
    aa_api: Optional[AAApiStrategyConfig] = None,
    rpc: Optional[RpcStrategyConfig] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    query_client: Optional[ContractQueryClient] = None,
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> CompositeAccountStrategy:
    """
    Create the discovery chain for the given backends.

    The empty strategy is always appended last so an all-empty chain still
    succeeds when other backends failed.

    Args:
        indexer: Numia or Subquery settings
        aa_api: AA API settings
        rpc: On-chain lookup settings
        http_client: Shared client for the HTTP strategies
        query_client: Contract query client for the RPC strategy; a REST
            client is created from ``rpc.rest_url`` when omitted
        request_timeout: Per request timeout in seconds

    Raises:
        ConfigurationError: If a Subquery indexer has no code id.
    """
    strategies: List[AccountStrategy] = []

    if indexer is not None:
        if isinstance(indexer, SubqueryIndexerConfig):
            if indexer.code_id is None:
                raise ConfigurationError("Subquery indexer requires a code_id")
            strategies.append(
                SubqueryAccountStrategy(
                    indexer.url, indexer.code_id, client=http_client, request_timeout=request_timeout
                )
            )
        else:
            strategies.append(
                NumiaAccountStrategy(
                    indexer.url, indexer.auth_token, client=http_client, request_timeout=request_timeout
                )
            )

    if aa_api is not None:
        strategies.append(
            AAApiAccountStrategy(
                aa_api.base_url, aa_api.version, client=http_client, request_timeout=request_timeout
            )
        )

    if rpc is not None:
        strategies.append(
            RpcAccountStrategy(
                query_client or RestContractQueryClient(rpc.rest_url, timeout=request_timeout),
                checksum=rpc.checksum,
                creator=rpc.creator,
                prefix=rpc.prefix,
                code_id=rpc.code_id,
            )
        )

    strategies.append(EmptyAccountStrategy())
    return CompositeAccountStrategy(strategies)
