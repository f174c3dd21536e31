"""
Test suite for the HTTP discovery strategies (Numia, Subquery, AA API).
All backends are faked with httpx.MockTransport.
"""
import httpx
import pytest

from xion_authz.discovery.aa_api import AAApiAccountStrategy, split_jwt_credential
from xion_authz.discovery.numia import NumiaAccountStrategy, normalize_numia_base_url
from xion_authz.discovery.subquery import SubqueryAccountStrategy
from xion_authz.engine.exceptions import DiscoveryStrategyError

from mocks import MOCK_ETH_ADDRESS, RecordingHandler, json_response, mock_http_client


NUMIA_ROW = {
    "smart_account": "xion1account",
    "code_id": 793,
    "authenticators": [
        {"type": "EthWallet", "authenticator": MOCK_ETH_ADDRESS.lower(), "authenticator_index": 1},
    ],
}


# ==================== Numia ====================

class TestNumiaBaseUrl:

    @pytest.mark.parametrize("base,expected", [
        ("https://indexer.example", "https://indexer.example/v2/"),
        ("https://indexer.example/", "https://indexer.example/v2/"),
        ("https://indexer.example/v2/", "https://indexer.example/v2/"),
        ("https://indexer.example/v3/", "https://indexer.example/v3/"),
        ("https://indexer.example/v3", "https://indexer.example/v3/"),
    ])
    def test_normalization(self, base, expected):
        assert normalize_numia_base_url(base) == expected


class TestNumiaAccountStrategy:

    @pytest.mark.asyncio
    async def test_maps_rows(self):
        handler = RecordingHandler(json_response([NUMIA_ROW]))
        strategy = NumiaAccountStrategy("https://indexer.example", auth_token="secret",
                                        client=mock_http_client(handler))

        accounts = await strategy.fetch_smart_accounts(MOCK_ETH_ADDRESS.lower(), "EthWallet")

        assert len(accounts) == 1
        assert accounts[0].id == "xion1account"
        assert accounts[0].code_id == 793
        assert accounts[0].authenticators[0].id == "xion1account-1"
        assert accounts[0].authenticators[0].authenticator_index == 1

        request = handler.requests[0]
        assert request.url.path == f"/v2/authenticators/{MOCK_ETH_ADDRESS.lower()}/smartAccounts/details"
        assert request.headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_credential_is_url_encoded(self):
        handler = RecordingHandler(json_response([]))
        strategy = NumiaAccountStrategy("https://indexer.example", client=mock_http_client(handler))
        await strategy.fetch_smart_accounts("a/b+c=", "Secp256K1")
        assert "a%2Fb%2Bc%3D" in str(handler.requests[0].url)
        assert "Authorization" not in handler.requests[0].headers

    @pytest.mark.asyncio
    async def test_404_means_no_account(self):
        strategy = NumiaAccountStrategy(
            "https://indexer.example",
            client=mock_http_client(lambda request: httpx.Response(404)),
        )
        assert await strategy.fetch_smart_accounts("cred", "EthWallet") == []

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        strategy = NumiaAccountStrategy(
            "https://indexer.example",
            client=mock_http_client(lambda request: httpx.Response(500)),
        )
        with pytest.raises(DiscoveryStrategyError, match="500"):
            await strategy.fetch_smart_accounts("cred", "EthWallet")

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        strategy = NumiaAccountStrategy("https://indexer.example", client=mock_http_client(handler))
        with pytest.raises(DiscoveryStrategyError, match="connection refused"):
            await strategy.fetch_smart_accounts("cred", "EthWallet")

    @pytest.mark.asyncio
    async def test_malformed_rows_raise(self):
        strategy = NumiaAccountStrategy(
            "https://indexer.example",
            client=mock_http_client(lambda request: json_response([{"smart_account": "x"}])),
        )
        with pytest.raises(DiscoveryStrategyError, match="malformed"):
            await strategy.fetch_smart_accounts("cred", "EthWallet")


# ==================== Subquery ====================

def subquery_payload(nodes):
    return {"data": {"smartAccounts": {"nodes": nodes}}}


class TestSubqueryAccountStrategy:

    @pytest.mark.asyncio
    async def test_maps_nodes_with_configured_code_id(self):
        node = {
            "id": "xion1account",
            "authenticators": {"nodes": [
                {"id": "xion1account-0", "type": "Secp256K1", "authenticator": "pubkey", "authenticatorIndex": 0},
            ]},
        }
        handler = RecordingHandler(json_response(subquery_payload([node])))
        strategy = SubqueryAccountStrategy("https://subquery.example/graphql", 42, client=mock_http_client(handler))

        accounts = await strategy.fetch_smart_accounts("pubkey", "Secp256K1")

        assert accounts[0].code_id == 42
        assert accounts[0].authenticators[0].type == "Secp256K1"
        assert handler.last_json["variables"] == {"authenticator": "pubkey"}
        assert handler.requests[0].method == "POST"

    @pytest.mark.asyncio
    async def test_empty_nodes(self):
        strategy = SubqueryAccountStrategy(
            "https://subquery.example/graphql", 42,
            client=mock_http_client(lambda request: json_response(subquery_payload([]))),
        )
        assert await strategy.fetch_smart_accounts("pubkey", "Secp256K1") == []

    @pytest.mark.asyncio
    async def test_graphql_errors_raise(self):
        strategy = SubqueryAccountStrategy(
            "https://subquery.example/graphql", 42,
            client=mock_http_client(lambda request: json_response({"errors": [{"message": "bad filter"}]})),
        )
        with pytest.raises(DiscoveryStrategyError, match="bad filter"):
            await strategy.fetch_smart_accounts("pubkey", "Secp256K1")

    @pytest.mark.asyncio
    async def test_malformed_body_raises(self):
        strategy = SubqueryAccountStrategy(
            "https://subquery.example/graphql", 42,
            client=mock_http_client(lambda request: json_response({"data": None})),
        )
        with pytest.raises(DiscoveryStrategyError, match="malformed"):
            await strategy.fetch_smart_accounts("pubkey", "Secp256K1")


# ==================== AA API ====================

JWT_ROW = {
    "id": "xion1jwtaccount",
    "codeId": 5,
    "authenticators": [{"type": "JWT", "authenticator": "app.user", "authenticatorIndex": 0}],
}


class TestAAApiAccountStrategy:

    def test_split_keeps_dots_in_subject(self):
        assert split_jwt_credential("aud.sub.part") == ("aud", "sub.part")

    def test_split_rejects_missing_dot(self):
        with pytest.raises(DiscoveryStrategyError, match="aud.sub"):
            split_jwt_credential("nodot")

    @pytest.mark.asyncio
    async def test_single_object_response(self):
        handler = RecordingHandler(json_response(JWT_ROW))
        strategy = AAApiAccountStrategy("https://aa.example/", client=mock_http_client(handler))

        accounts = await strategy.fetch_smart_accounts("app.user", "JWT")

        assert [a.id for a in accounts] == ["xion1jwtaccount"]
        assert accounts[0].code_id == 5
        assert accounts[0].authenticators[0].id == "xion1jwtaccount-0"
        assert handler.requests[0].url.path == "/api/v1/jwt-accounts/app/user"

    @pytest.mark.asyncio
    async def test_malformed_rows_dropped(self):
        rows = [JWT_ROW, {"id": "xion1bad", "authenticators": []}, {"codeId": 1}]
        strategy = AAApiAccountStrategy(
            "https://aa.example",
            client=mock_http_client(lambda request: json_response(rows)),
        )
        accounts = await strategy.fetch_smart_accounts("app.user")
        assert [a.id for a in accounts] == ["xion1jwtaccount"]

    @pytest.mark.asyncio
    async def test_404_means_no_account(self):
        strategy = AAApiAccountStrategy(
            "https://aa.example",
            client=mock_http_client(lambda request: httpx.Response(404)),
        )
        assert await strategy.fetch_smart_accounts("app.user") == []

    @pytest.mark.asyncio
    async def test_http_and_network_errors_are_distinct(self):
        http_error = AAApiAccountStrategy(
            "https://aa.example",
            client=mock_http_client(lambda request: httpx.Response(503)),
        )
        with pytest.raises(DiscoveryStrategyError, match="AA-API returned 503"):
            await http_error.fetch_smart_accounts("app.user")

        def refuse(request):
            raise httpx.ReadTimeout("timed out", request=request)

        network_error = AAApiAccountStrategy("https://aa.example", client=mock_http_client(refuse))
        with pytest.raises(DiscoveryStrategyError, match="Network error"):
            await network_error.fetch_smart_accounts("app.user")

    @pytest.mark.asyncio
    async def test_v2_not_implemented(self):
        strategy = AAApiAccountStrategy("https://aa.example", version="v2")
        with pytest.raises(DiscoveryStrategyError, match="v2 not yet implemented"):
            await strategy.fetch_smart_accounts("app.user")
