"""
Test suite for the HTTP clients.
Tests: 1) REST contract queries and error mapping 2) AA API prepare/create exchange
"""
import base64
import json
from unittest.mock import AsyncMock

import httpx
import pytest

from xion_authz.clients import AAApiClient, RestContractQueryClient
from xion_authz.engine.exceptions import AccountCreationError, ContractNotFoundError, ContractQueryError

from mocks import MOCK_CHAIN_ID, MOCK_CONTRACT, MOCK_ETH_ADDRESS, MOCK_PUBKEY, MOCK_REST_URL, MOCK_SMART_ACCOUNT, RecordingHandler, json_response


def rest_client(handler, **kwargs) -> RestContractQueryClient:
    return RestContractQueryClient(MOCK_REST_URL, transport=httpx.MockTransport(handler), **kwargs)


# ==================== REST contract queries ====================

class TestRestContractQueryClient:

    @pytest.mark.asyncio
    async def test_smart_query_encodes_path(self):
        handler = RecordingHandler(json_response({"data": {"ok": True}}))
        query = {"a": "xy?"}

        async with rest_client(handler, chain_id=MOCK_CHAIN_ID) as client:
            result = await client.query_contract_smart(MOCK_CONTRACT, query)

        assert result == {"ok": True}
        encoded = base64.b64encode(b'{"a":"xy?"}').decode().replace("/", "%2F")
        assert "%2F" in encoded
        raw_path = handler.requests[0].url.raw_path.decode()
        assert raw_path == f"/cosmwasm/wasm/v1/contract/{MOCK_CONTRACT}/smart/{encoded}"

    @pytest.mark.asyncio
    async def test_missing_contract(self):
        handler = RecordingHandler(json_response({"code": 5, "message": f"contract {MOCK_CONTRACT}: not found"}, 500))
        async with rest_client(handler) as client:
            with pytest.raises(ContractNotFoundError):
                await client.query_contract_smart(MOCK_CONTRACT, {"params": {}})

    @pytest.mark.asyncio
    async def test_other_failures(self):
        handler = RecordingHandler(json_response({"message": "query wasm contract failed: unknown variant"}, 400))
        async with rest_client(handler) as client:
            with pytest.raises(ContractQueryError) as exc_info:
                await client.query_contract_smart(MOCK_CONTRACT, {"bogus": {}})

        assert not isinstance(exc_info.value, ContractNotFoundError)
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_get_contract(self):
        handler = RecordingHandler(json_response({"contract_info": {"code_id": "793", "creator": "xion1creator"}}))
        async with rest_client(handler) as client:
            info = await client.get_contract(MOCK_CONTRACT)
        assert info["code_id"] == "793"
        assert handler.requests[0].url.path == f"/cosmwasm/wasm/v1/contract/{MOCK_CONTRACT}"

    @pytest.mark.asyncio
    async def test_get_contract_without_info(self):
        async with rest_client(RecordingHandler(json_response({}))) as client:
            with pytest.raises(ContractNotFoundError):
                await client.get_contract(MOCK_CONTRACT)

    @pytest.mark.asyncio
    async def test_chain_id_fetched_once(self):
        handler = RecordingHandler(json_response({"default_node_info": {"network": "xion-mainnet-1"}}))
        async with rest_client(handler) as client:
            assert await client.get_chain_id() == "xion-mainnet-1"
            assert await client.get_chain_id() == "xion-mainnet-1"
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with rest_client(fail) as client:
            with pytest.raises(ContractQueryError, match="connection refused"):
                await client.get_contract(MOCK_CONTRACT)


# ==================== AA API ====================

PREPARED = {"message_to_sign": "hello", "salt": "s1", "metadata": {"action": "create_abstraction_account"}}
CREATED = {"account_address": MOCK_SMART_ACCOUNT, "code_id": 793, "transaction_hash": "ABC"}


class TestAAApiClient:

    @staticmethod
    def client(handler) -> AAApiClient:
        return AAApiClient("https://aa.example/", transport=httpx.MockTransport(handler))

    @pytest.mark.asyncio
    async def test_eth_wallet_account(self):
        requests = []

        def handle(request):
            requests.append(request)
            return json_response(PREPARED if request.url.path.endswith("/prepare") else CREATED)

        sign = AsyncMock(return_value="0x" + "ab" * 65)
        async with self.client(handle) as client:
            result = await client.create_eth_wallet_account(MOCK_ETH_ADDRESS.lower(), sign)

        assert result.account_address == MOCK_SMART_ACCOUNT
        assert result.code_id == 793
        sign.assert_awaited_once_with("0x" + b"hello".hex())

        assert [r.url.path for r in requests] == ["/api/v1/wallet-accounts/prepare", "/api/v1/wallet-accounts/create"]
        assert json.loads(requests[0].content) == {"wallet_type": "EthWallet", "address": MOCK_ETH_ADDRESS.lower()}
        created = json.loads(requests[1].content)
        assert created["signature"] == "ab" * 65
        assert created["salt"] == "s1"
        assert json.loads(created["message"]) == PREPARED["metadata"]

    @pytest.mark.asyncio
    async def test_secp256k1_account_accepts_raw_signature(self):
        requests = []

        def handle(request):
            requests.append(request)
            return json_response(PREPARED if request.url.path.endswith("/prepare") else CREATED)

        sign = AsyncMock(return_value=bytes(range(64)))
        async with self.client(handle) as client:
            await client.create_secp256k1_account(MOCK_PUBKEY, sign)

        sign.assert_awaited_once_with("hello")
        created = json.loads(requests[1].content)
        assert created["pubkey"] == MOCK_PUBKEY
        assert created["signature"] == bytes(range(64)).hex()

    @pytest.mark.asyncio
    async def test_api_error_message_surfaces(self):
        handler = RecordingHandler(json_response({"error": {"message": "address already has an account"}}, 409))
        async with self.client(handler) as client:
            with pytest.raises(AccountCreationError, match="address already has an account"):
                await client.create_eth_wallet_account(MOCK_ETH_ADDRESS.lower(), AsyncMock())

    @pytest.mark.asyncio
    async def test_error_without_body(self):
        handler = RecordingHandler(httpx.Response(503, text="unavailable"))
        async with self.client(handler) as client:
            with pytest.raises(AccountCreationError, match="failed with status 503"):
                await client.create_secp256k1_account(MOCK_PUBKEY, AsyncMock())
