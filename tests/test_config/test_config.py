"""
Test suite for configuration loading.
"""
import os

import pytest

from xion_authz.config import (
    NumiaIndexerConfig,
    SmartAccountContractConfig,
    SubqueryIndexerConfig,
    convert_indexer_config,
    load_config_from_env,
)
from xion_authz.engine.exceptions import ConfigurationError


@pytest.fixture
def clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("XION_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("XION_CHAIN_ID", "xion-testnet-2")
    monkeypatch.setenv("XION_RPC_URL", "https://rpc.example")
    return monkeypatch


class TestLoadConfigFromEnv:

    def test_minimal(self, clean_env):
        config = load_config_from_env()
        assert config.chain_id == "xion-testnet-2"
        assert config.gas_price == "0.001uxion"
        assert config.indexer is None
        assert config.account_creation_config is None
        assert not config.grant_config.requires_grants()

    def test_full(self, clean_env):
        clean_env.setenv("XION_TREASURY", "xion1treasury")
        clean_env.setenv("XION_AA_API_URL", "https://aa.example")
        clean_env.setenv("XION_FEE_GRANTER", "xion1feegranter")
        clean_env.setenv("XION_CODE_ID", "793")
        clean_env.setenv("XION_CHECKSUM", "ab" * 32)
        clean_env.setenv("XION_INDEXER_URL", "https://subquery.example")
        clean_env.setenv("XION_INDEXER_TYPE", "Subquery")
        clean_env.setenv("XION_REQUEST_TIMEOUT", "5")

        config = load_config_from_env()

        assert config.grant_config.treasury == "xion1treasury"
        assert config.grant_config.fee_granter == "xion1feegranter"
        assert config.account_creation_config.smart_account_contract.code_id == 793
        assert isinstance(config.indexer, SubqueryIndexerConfig)
        assert config.indexer.code_id == 793
        assert config.request_timeout == 5.0

    def test_missing_required(self, clean_env):
        clean_env.delenv("XION_RPC_URL")
        with pytest.raises(ConfigurationError, match="XION_RPC_URL"):
            load_config_from_env()

    def test_incomplete_creation_settings(self, clean_env):
        clean_env.setenv("XION_AA_API_URL", "https://aa.example")
        with pytest.raises(ConfigurationError, match="XION_FEE_GRANTER"):
            load_config_from_env()

    def test_invalid_number(self, clean_env):
        clean_env.setenv("XION_REQUEST_TIMEOUT", "soon")
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config_from_env()


class TestConvertIndexerConfig:

    def test_subquery_borrows_contract_code_id(self):
        converted = convert_indexer_config(
            SubqueryIndexerConfig(type="subquery", url="https://subquery.example"),
            SmartAccountContractConfig(code_id=12, checksum="ab"),
        )
        assert converted.code_id == 12

    def test_subquery_without_code_id(self):
        with pytest.raises(ConfigurationError, match="Code ID is required"):
            convert_indexer_config(SubqueryIndexerConfig(type="subquery", url="https://subquery.example"))

    def test_passthrough(self):
        numia = NumiaIndexerConfig(url="https://numia.example", auth_token="t")
        assert convert_indexer_config(numia) is numia
        assert convert_indexer_config(None) is None
