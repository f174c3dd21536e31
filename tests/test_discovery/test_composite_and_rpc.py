"""
Test suite for the composite chain, the on-chain strategy, the factory and
check_account_exists.
Tests: 1) Ordered fallback 2) Aggregate failure 3) Address prediction lookups
"""
import base64
import json
from unittest.mock import AsyncMock, Mock

import pytest

from xion_authz.config import NumiaIndexerConfig, RpcStrategyConfig, SubqueryIndexerConfig, AAApiStrategyConfig
from xion_authz.discovery.aa_api import AAApiAccountStrategy
from xion_authz.discovery.bases import AccountStrategy
from xion_authz.discovery.composite import CompositeAccountStrategy
from xion_authz.discovery.empty import EmptyAccountStrategy
from xion_authz.discovery.existence import check_account_exists
from xion_authz.discovery.factory import create_composite_account_strategy
from xion_authz.discovery.numia import NumiaAccountStrategy
from xion_authz.discovery.rpc import RpcAccountStrategy, decode_contract_authenticator
from xion_authz.discovery.subquery import SubqueryAccountStrategy
from xion_authz.engine.exceptions import (
    ConfigurationError,
    ContractQueryError,
    DiscoveryAggregateError,
    DiscoveryStrategyError,
)
from xion_authz.schemas.bases import Authenticator, AuthenticatorType, SmartAccountWithCodeId

from mocks import MOCK_CHECKSUM, MOCK_ETH_ADDRESS, MOCK_FEE_GRANTER, FakeContractQueryClient


def account(id: str, credential: str = "cred", index: int = 0) -> SmartAccountWithCodeId:
    return SmartAccountWithCodeId(
        id=id,
        code_id=1,
        authenticators=[Authenticator(id=f"{id}-{index}", type="EthWallet", authenticator=credential,
                                      authenticator_index=index)],
    )


def stub_strategy(name: str, result=None, error: Exception = None) -> Mock:
    strategy = Mock(spec=AccountStrategy)
    strategy.name = name
    strategy.fetch_smart_accounts = AsyncMock(return_value=result or [], side_effect=error)
    return strategy


# ==================== Composite ====================

class TestCompositeAccountStrategy:

    def test_requires_a_strategy(self):
        with pytest.raises(ValueError):
            CompositeAccountStrategy([])

    @pytest.mark.asyncio
    async def test_first_non_empty_wins_and_stops(self):
        first = stub_strategy("a", [])
        second = stub_strategy("b", [account("xion1b")])
        third = stub_strategy("c", [account("xion1c")])

        result = await CompositeAccountStrategy([first, second, third]).fetch_smart_accounts("cred", "EthWallet")

        assert [a.id for a in result] == ["xion1b"]
        first.fetch_smart_accounts.assert_awaited_once_with("cred", "EthWallet")
        third.fetch_smart_accounts.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_falls_through(self):
        failing = stub_strategy("numia", error=DiscoveryStrategyError("down"))
        working = stub_strategy("rpc", [account("xion1rpc")])
        result = await CompositeAccountStrategy([failing, working]).fetch_smart_accounts("cred", "EthWallet")
        assert result[0].id == "xion1rpc"

    @pytest.mark.asyncio
    async def test_some_failed_rest_empty_is_empty(self):
        strategies = [stub_strategy("a", error=RuntimeError("x")), stub_strategy("b", [])]
        assert await CompositeAccountStrategy(strategies).fetch_smart_accounts("cred", "EthWallet") == []

    @pytest.mark.asyncio
    async def test_all_failed_raises_aggregate(self):
        strategies = [
            stub_strategy("numia", error=DiscoveryStrategyError("numia down")),
            stub_strategy("rpc", error=DiscoveryStrategyError("rpc down")),
        ]
        with pytest.raises(DiscoveryAggregateError) as exc_info:
            await CompositeAccountStrategy(strategies).fetch_smart_accounts("cred", "EthWallet")

        assert [name for name, _ in exc_info.value.errors] == ["numia", "rpc"]
        assert "numia down" in str(exc_info.value)
        assert "rpc down" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_empty_strategy(self):
        assert await EmptyAccountStrategy().fetch_smart_accounts("cred", "EthWallet") == []


# ==================== RPC ====================

def encoded_authenticator(payload: dict) -> str:
    return base64.b64encode(json.dumps(payload).encode()).decode()


class TestDecodeContractAuthenticator:

    def test_base64_json(self):
        response = encoded_authenticator({"EthWallet": {"address": "0xabc"}})
        assert decode_contract_authenticator(response) == (AuthenticatorType.ETH_WALLET, "0xabc")

    def test_plain_object(self):
        response = {"JWT": {"aud_and_sub": "app.user", "sub": "user"}}
        assert decode_contract_authenticator(response) == (AuthenticatorType.JWT, "app.user")

    @pytest.mark.parametrize("response", ["%%%not-base64", {"Unknown": {"x": 1}}, 42, None])
    def test_unreadable(self, response):
        assert decode_contract_authenticator(response) is None


class TestRpcAccountStrategy:

    def make_strategy(self, query_client) -> RpcAccountStrategy:
        return RpcAccountStrategy(query_client, MOCK_CHECKSUM, MOCK_FEE_GRANTER, "xion", 793)

    @pytest.mark.asyncio
    async def test_reads_authenticators_at_predicted_address(self):
        credential = MOCK_ETH_ADDRESS.lower()
        strategy = self.make_strategy(None)
        predicted = strategy.predict_address(credential, "EthWallet")

        authenticators = {
            0: encoded_authenticator({"EthWallet": {"address": credential}}),
            1: encoded_authenticator({"Mystery": {}}),
        }
        strategy.query_client = FakeContractQueryClient(
            responses={
                "authenticator_i_ds": [0, 1],
                "authenticator_by_i_d": lambda body: authenticators[body["id"]],
            },
            contracts={predicted: {"code_id": "793"}},
        )

        accounts = await strategy.fetch_smart_accounts(credential, "EthWallet")

        assert len(accounts) == 1
        assert accounts[0].id == predicted
        assert accounts[0].code_id == 793
        assert [a.authenticator for a in accounts[0].authenticators] == [credential]
        assert accounts[0].authenticators[0].id == f"{predicted}-0"

    @pytest.mark.asyncio
    async def test_missing_contract_is_not_an_error(self):
        strategy = self.make_strategy(FakeContractQueryClient(contracts={}))
        assert await strategy.fetch_smart_accounts(MOCK_ETH_ADDRESS, "EthWallet") == []

    @pytest.mark.asyncio
    async def test_node_failure_raises(self):
        client = FakeContractQueryClient(responses={"authenticator_i_ds": ContractQueryError("node down", 500)})
        strategy = self.make_strategy(client)
        with pytest.raises(DiscoveryStrategyError, match="node down"):
            await strategy.fetch_smart_accounts(MOCK_ETH_ADDRESS, "EthWallet")

    @pytest.mark.asyncio
    async def test_bad_credential_raises(self):
        strategy = self.make_strategy(FakeContractQueryClient())
        with pytest.raises(DiscoveryStrategyError):
            await strategy.fetch_smart_accounts("0xnothex", "EthWallet")


# ==================== Factory ====================

class TestFactory:

    def test_full_chain_order(self):
        strategy = create_composite_account_strategy(
            indexer=NumiaIndexerConfig(url="https://numia.example"),
            aa_api=AAApiStrategyConfig(base_url="https://aa.example"),
            rpc=RpcStrategyConfig(rest_url="https://rest.example", checksum=MOCK_CHECKSUM,
                                  creator=MOCK_FEE_GRANTER, code_id=1),
            query_client=FakeContractQueryClient(),
        )
        types = [type(s) for s in strategy.strategies]
        assert types == [NumiaAccountStrategy, AAApiAccountStrategy, RpcAccountStrategy, EmptyAccountStrategy]

    def test_subquery_indexer(self):
        strategy = create_composite_account_strategy(
            indexer=SubqueryIndexerConfig(type="subquery", url="https://sq.example", code_id=9),
        )
        assert isinstance(strategy.strategies[0], SubqueryAccountStrategy)
        assert strategy.strategies[0].code_id == 9

    def test_subquery_without_code_id_rejected(self):
        with pytest.raises(ConfigurationError):
            create_composite_account_strategy(
                indexer=SubqueryIndexerConfig(type="subquery", url="https://sq.example"),
            )

    def test_nothing_configured_is_empty_only(self):
        strategy = create_composite_account_strategy()
        assert [type(s) for s in strategy.strategies] == [EmptyAccountStrategy]


# ==================== check_account_exists ====================

class TestCheckAccountExists:

    @pytest.mark.asyncio
    async def test_found_resolves_index(self):
        strategy = stub_strategy("a", [account("xion1first", "0xABC", index=2), account("xion1second")])
        result = await check_account_exists(strategy, "0xabc", "EthWallet")
        assert result.exists
        assert result.smart_account_address == "xion1first"
        assert result.authenticator_index == 2
        assert result.code_id == 1
        assert len(result.accounts) == 2

    @pytest.mark.asyncio
    async def test_index_defaults_to_zero(self):
        strategy = stub_strategy("a", [account("xion1first", "other", index=4)])
        result = await check_account_exists(strategy, "0xabc", "EthWallet")
        assert result.exists
        assert result.authenticator_index == 0

    @pytest.mark.asyncio
    async def test_not_found(self):
        result = await check_account_exists(stub_strategy("a", []), "0xabc", "EthWallet")
        assert not result.exists
        assert result.error is None

    @pytest.mark.asyncio
    async def test_discovery_failure_is_reported_not_raised(self):
        strategy = CompositeAccountStrategy([stub_strategy("numia", error=DiscoveryStrategyError("down"))])
        result = await check_account_exists(strategy, "0xabc", "EthWallet")
        assert not result.exists
        assert "down" in result.error
