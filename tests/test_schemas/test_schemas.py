"""
Test suite for schema models: allowance parsing, treasury params and canonical JSON.
"""
import pytest
from pydantic import ValidationError

from xion_authz.constants import (
    ALLOWED_MSG_ALLOWANCE,
    BASIC_ALLOWANCE,
    CONTRACTS_ALLOWANCE,
    MULTI_ANY_ALLOWANCE,
)
from xion_authz.schemas.allowances import (
    AllowedMsgAllowance,
    BasicAllowance,
    ContractsAllowance,
    MultiAnyAllowance,
    UnknownAllowance,
    parse_allowance,
)
from xion_authz.schemas.grants import ContractGrant, GrantConfig
from xion_authz.schemas.treasury import TreasuryParams, is_url_safe


class TestParseAllowance:

    def test_nested_camel_case(self):
        allowance = parse_allowance({
            "@type": CONTRACTS_ALLOWANCE,
            "contractAddresses": ["xion1user"],
            "allowance": {
                "@type": ALLOWED_MSG_ALLOWANCE,
                "allowedMessages": ["/cosmos.bank.v1beta1.MsgSend"],
                "allowance": {"@type": BASIC_ALLOWANCE, "spendLimit": [{"denom": "uxion", "amount": "10"}]},
            },
        })

        assert isinstance(allowance, ContractsAllowance)
        assert allowance.contract_addresses == ["xion1user"]
        inner = allowance.allowance
        assert isinstance(inner, AllowedMsgAllowance)
        assert inner.allowed_messages == ["/cosmos.bank.v1beta1.MsgSend"]
        assert isinstance(inner.allowance, BasicAllowance)
        assert inner.allowance.spend_limit[0].amount == "10"

    def test_unknown_type_keeps_fields(self):
        allowance = parse_allowance({"@type": "/xion.v1.FutureAllowance", "limit": 3})
        assert isinstance(allowance, UnknownAllowance)
        assert allowance.type_url == "/xion.v1.FutureAllowance"
        assert allowance.model_extra == {"limit": 3}

    def test_malformed_multi_any_children_become_none(self):
        allowance = parse_allowance({
            "@type": MULTI_ANY_ALLOWANCE,
            "allowances": [
                {"@type": ALLOWED_MSG_ALLOWANCE, "allowed_messages": "not-a-list"},
                None,
                {"@type": BASIC_ALLOWANCE},
            ],
        })
        assert isinstance(allowance, MultiAnyAllowance)
        assert allowance.allowances[:2] == [None, None]
        assert isinstance(allowance.allowances[2], BasicAllowance)

    def test_basic_spend_limit_drops_malformed_coins(self):
        allowance = parse_allowance({
            "@type": BASIC_ALLOWANCE,
            "spendLimit": [{"denom": "uxion"}, {"denom": "uxion", "amount": "7"}, "junk"],
        })
        assert isinstance(allowance, BasicAllowance)
        assert [(c.denom, c.amount) for c in allowance.spend_limit] == [("uxion", "7")]
        assert BasicAllowance.model_validate({"spend_limit": "10uxion"}).spend_limit == []

    def test_malformed_top_level_raises(self):
        with pytest.raises(ValidationError):
            parse_allowance({"@type": CONTRACTS_ALLOWANCE, "contract_addresses": "xion1user"})

    def test_canonical_json_uses_type_tag(self):
        allowance = parse_allowance({"@type": BASIC_ALLOWANCE, "spend_limit": [{"denom": "uxion", "amount": "1"}]})
        assert allowance.to_canonical_json() == (
            f'{{"@type":"{BASIC_ALLOWANCE}","spend_limit":[{{"amount":"1","denom":"uxion"}}]}}'
        )


class TestTreasuryParams:

    @pytest.mark.parametrize("url, safe", [
        ("https://app.example/cb", True),
        ("http://localhost:3000", True),
        ("javascript:alert(1)", False),
        ("https://", False),
        ("", False),
        (None, False),
    ])
    def test_is_url_safe(self, url, safe):
        assert is_url_safe(url) is safe

    def test_sanitized(self):
        params = TreasuryParams.sanitized(
            redirect_url="data:text/html,hi",
            icon_url="https://icon.example/i.png",
            metadata={"not": "a string"},
        )
        assert params.redirect_url == ""
        assert params.icon_url == "https://icon.example/i.png"
        assert params.metadata == ""


class TestGrantConfig:

    def test_aliases_and_contract_forms(self):
        config = GrantConfig.model_validate({
            "contracts": ["xion1a", {"address": "xion1b", "amounts": [{"denom": "uxion", "amount": "5"}]}],
            "feeGranter": "xion1fee",
        })
        assert config.contracts[0] == "xion1a"
        assert isinstance(config.contracts[1], ContractGrant)
        assert config.fee_granter == "xion1fee"
        assert config.has_manual_permissions()

    def test_requires_grants(self):
        assert not GrantConfig().requires_grants()
        assert GrantConfig(treasury="xion1treasury").requires_grants()
        assert not GrantConfig(treasury="xion1treasury").has_manual_permissions()
        assert GrantConfig(stake=True).requires_grants()
