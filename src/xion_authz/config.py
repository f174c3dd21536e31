"""
Configuration Management

Pydantic models for everything the discovery chain, account creation and
the orchestrator need, plus helpers that read them from XION_* environment
variables. A ``.env`` file in the working directory is loaded on import.
"""

import os
from typing import Literal, Optional, Union

import dotenv
from pydantic import BaseModel, Field, ValidationError

from .constants import DEFAULT_REQUEST_TIMEOUT
from .engine.exceptions import ConfigurationError
from .schemas.grants import GrantConfig

dotenv.load_dotenv()


class SmartAccountContractConfig(BaseModel):
    """Identity of the smart account contract new accounts are created from."""
    code_id: int = Field(..., ge=0)
    checksum: str = Field(..., description="Hex checksum of the contract code")
    address_prefix: str = Field(default="xion")


class AccountCreationConfig(BaseModel):
    """Settings needed to create smart accounts through the AA API."""
    aa_api_url: str
    smart_account_contract: SmartAccountContractConfig
    fee_granter: str = Field(..., description="Account that instantiates smart accounts")


class NumiaIndexerConfig(BaseModel):
    """Numia REST indexer."""
    type: Literal["numia"] = "numia"
    url: str
    auth_token: Optional[str] = None


class SubqueryIndexerConfig(BaseModel):
    """Subquery GraphQL indexer. ``code_id`` is filled from the contract config."""
    type: Literal["subquery"]
    url: str
    code_id: Optional[int] = None


IndexerConfig = Union[SubqueryIndexerConfig, NumiaIndexerConfig]


class AAApiStrategyConfig(BaseModel):
    """AA API lookup of JWT accounts."""
    base_url: str
    version: Literal["v1", "v2"] = "v1"


class RpcStrategyConfig(BaseModel):
    """On-chain lookup by predicted address."""
    rest_url: str
    checksum: str
    creator: str
    prefix: str = "xion"
    code_id: int


class OrchestratorConfig(BaseModel):
    """Top level settings of a ConnectionOrchestrator."""
    chain_id: str
    rpc_url: str
    rest_url: Optional[str] = None
    gas_price: str = "0.001uxion"
    grant_config: GrantConfig = Field(default_factory=GrantConfig)
    account_creation_config: Optional[AccountCreationConfig] = None
    indexer: Optional[IndexerConfig] = None
    dashboard_url: Optional[str] = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


def convert_indexer_config(
    indexer_config: Optional[IndexerConfig],
    smart_account_contract: Optional[SmartAccountContractConfig] = None,
) -> Optional[IndexerConfig]:
    """
    Complete a user supplied indexer config for strategy construction.

    Subquery cannot report code ids, so it borrows the smart account
    contract's one.

    Raises:
        ConfigurationError: If a Subquery indexer has no code id available.
    """
    if indexer_config is None:
        return None
    if isinstance(indexer_config, SubqueryIndexerConfig):
        code_id = indexer_config.code_id
        if code_id is None and smart_account_contract is not None:
            code_id = smart_account_contract.code_id
        if code_id is None:
            raise ConfigurationError(
                "Code ID is required when using Subquery indexer. "
                "Provide smart_account_contract with code_id."
            )
        return indexer_config.model_copy(update={"code_id": code_id})
    return indexer_config


# ---------------------------------------------------------------------------
# Environment helpers
# ---------------------------------------------------------------------------

def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(f"Missing required environment variable {name}")
    return value


def get_indexer_config_from_env() -> Optional[IndexerConfig]:
    """Read XION_INDEXER_URL / _TYPE / _AUTH_TOKEN; None when no URL is set."""
    url = os.getenv("XION_INDEXER_URL")
    if not url:
        return None
    if os.getenv("XION_INDEXER_TYPE", "numia").lower() == "subquery":
        code_id = os.getenv("XION_CODE_ID")
        return SubqueryIndexerConfig(
            type="subquery",
            url=url,
            code_id=int(code_id) if code_id else None,
        )
    return NumiaIndexerConfig(url=url, auth_token=os.getenv("XION_INDEXER_AUTH_TOKEN"))


def get_account_creation_config_from_env() -> Optional[AccountCreationConfig]:
    """Read account creation settings; None when XION_AA_API_URL is unset."""
    aa_api_url = os.getenv("XION_AA_API_URL")
    if not aa_api_url:
        return None
    return AccountCreationConfig(
        aa_api_url=aa_api_url,
        fee_granter=_require_env("XION_FEE_GRANTER"),
        smart_account_contract=SmartAccountContractConfig(
            code_id=int(_require_env("XION_CODE_ID")),
            checksum=_require_env("XION_CHECKSUM"),
            address_prefix=os.getenv("XION_ADDRESS_PREFIX", "xion"),
        ),
    )


def load_config_from_env() -> OrchestratorConfig:
    """
    Build an OrchestratorConfig from XION_* environment variables.

    Required: XION_CHAIN_ID, XION_RPC_URL. Everything else is optional.

    Raises:
        ConfigurationError: On missing or invalid values.
    """
    try:
        grant_config = GrantConfig(
            treasury=os.getenv("XION_TREASURY") or None,
            fee_granter=os.getenv("XION_FEE_GRANTER") or None,
            daodao_indexer_url=os.getenv("XION_DAODAO_INDEXER_URL") or None,
        )
        return OrchestratorConfig(
            chain_id=_require_env("XION_CHAIN_ID"),
            rpc_url=_require_env("XION_RPC_URL"),
            rest_url=os.getenv("XION_REST_URL") or None,
            gas_price=os.getenv("XION_GAS_PRICE", "0.001uxion"),
            grant_config=grant_config,
            account_creation_config=get_account_creation_config_from_env(),
            indexer=get_indexer_config_from_env(),
            dashboard_url=os.getenv("XION_DASHBOARD_URL") or None,
            request_timeout=float(os.getenv("XION_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)),
        )
    except (ValidationError, ValueError) as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
