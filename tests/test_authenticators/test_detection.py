"""
Test suite for authenticator classification and matching helpers.
"""
import pytest

from xion_authz.authenticators.detection import (
    deduplicate_accounts_by_id,
    detect_authenticator_type,
    find_best_matching_authenticator,
    is_duplicate_authenticator,
)
from xion_authz.schemas.bases import Authenticator, AuthenticatorType, SmartAccountWithCodeId


class TestDetectAuthenticatorType:

    @pytest.mark.parametrize("credential,expected", [
        ("my-app.user-123", AuthenticatorType.JWT),
        ("aud.sub.with.dots", AuthenticatorType.JWT),
        ("0x742d35Cc6634C0532925a3b844Bc454e4438f44e", AuthenticatorType.ETH_WALLET),
        ("742d35cc6634c0532925a3b844bc454e4438f44e", AuthenticatorType.ETH_WALLET),
        ("passkey:abc", AuthenticatorType.PASSKEY),
        ("cred-webauthn-1", AuthenticatorType.PASSKEY),
        ("AoKdTAZLs9fhvLLYiRZyG5hNhSQsCzkUqmj9XsLyHxvS", AuthenticatorType.SECP256K1),
    ])
    def test_classification(self, credential, expected):
        assert detect_authenticator_type(credential) == expected

    def test_dot_in_0x_credential_is_not_jwt(self):
        assert detect_authenticator_type("0xabc.def") == AuthenticatorType.ETH_WALLET

    def test_jwt_rule_wins_over_passkey(self):
        assert detect_authenticator_type("webauthn.example") == AuthenticatorType.JWT


def _auth(credential: str, index: int, type: str = "EthWallet") -> Authenticator:
    return Authenticator(id=f"acct-{index}", type=type, authenticator=credential, authenticator_index=index)


class TestMatching:

    def test_match_is_case_insensitive(self):
        auths = [_auth("0xABCDEF", 3)]
        match = find_best_matching_authenticator(auths, "0xabcdef")
        assert match is not None and match.authenticator_index == 3

    def test_lowest_index_wins(self):
        auths = [_auth("0xabc", 5), _auth("0xABC", 2), _auth("other", 0)]
        assert find_best_matching_authenticator(auths, "0xabc").authenticator_index == 2

    def test_no_match(self):
        assert find_best_matching_authenticator([_auth("0xabc", 0)], "0xdef") is None

    def test_is_duplicate_requires_same_type(self):
        auths = [_auth("0xabc", 0, type="EthWallet")]
        assert is_duplicate_authenticator(auths, "0xabc", "EthWallet")
        assert not is_duplicate_authenticator(auths, "0xabc", "Secp256K1")

    def test_deduplicate_keeps_first(self):
        first = SmartAccountWithCodeId(id="a", code_id=1)
        accounts = [first, SmartAccountWithCodeId(id="b", code_id=1), SmartAccountWithCodeId(id="a", code_id=2)]
        result = deduplicate_accounts_by_id(accounts)
        assert [a.id for a in result] == ["a", "b"]
        assert result[0].code_id == 1
        assert deduplicate_accounts_by_id(None) == []
