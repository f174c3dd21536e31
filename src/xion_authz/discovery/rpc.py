"""
On-chain (RPC) Account Strategy

Finds a smart account without any indexer: the account address is predicted
with instantiate2 from the credential, then the account contract itself is
asked which authenticators it holds.
"""

import base64
import binascii
import json
import logging
from typing import Any, List, Optional, Tuple, Union

from .bases import AccountStrategy
from ..authenticators.address import calculate_salt, calculate_smart_account_address
from ..clients.contract_query import ContractQueryClient
from ..engine.exceptions import (
    ContractNotFoundError,
    ContractQueryError,
    DiscoveryStrategyError,
)
from ..schemas.bases import Authenticator, AuthenticatorType, SmartAccountWithCodeId

logger = logging.getLogger(__name__)

# Contract authenticator variant -> field holding the credential string
AUTHENTICATOR_FIELDS = {
    AuthenticatorType.ETH_WALLET: "address",
    AuthenticatorType.SECP256K1: "pubkey",
    AuthenticatorType.JWT: "aud_and_sub",
    AuthenticatorType.PASSKEY: "credential_id",
}


def decode_contract_authenticator(response: Any) -> Optional[Tuple[AuthenticatorType, str]]:
    """
    Decode an ``authenticator_by_i_d`` response.

    The contract returns base64 encoded JSON such as
    ``{"EthWallet": {"address": "0x..."}}``; some nodes hand back the decoded
    object directly.

    Returns:
        (type, credential) or None when the variant is unknown or unreadable.
    """
    data = response
    if isinstance(response, str):
        try:
            data = json.loads(base64.b64decode(response).decode("utf-8"))
        except (binascii.Error, UnicodeDecodeError, ValueError):
            return None
    if not isinstance(data, dict):
        return None

    for authenticator_type, field in AUTHENTICATOR_FIELDS.items():
        body = data.get(authenticator_type.value)
        if isinstance(body, dict) and isinstance(body.get(field), str):
            return authenticator_type, body[field]
    return None


class RpcAccountStrategy(AccountStrategy):
    """
    Discovery by address prediction and direct contract queries.

    A missing contract at the predicted address is the normal "no account"
    case and yields []. Only node or transport failures raise.
    """

    name = "rpc"

    def __init__(
        self,
        query_client: ContractQueryClient,
        checksum: str,
        creator: str,
        prefix: str,
        code_id: int,
    ):
        self.query_client = query_client
        self.checksum = checksum
        self.creator = creator
        self.prefix = prefix
        self.code_id = code_id

    def predict_address(self, credential: str, authenticator_type: Union[AuthenticatorType, str]) -> str:
        """Predict the smart account address for a credential."""
        salt = calculate_salt(authenticator_type, credential)
        return calculate_smart_account_address(
            checksum=self.checksum,
            creator=self.creator,
            salt=salt,
            prefix=self.prefix,
        )

    async def fetch_smart_accounts(
        self,
        credential: str,
        authenticator_type: Union[AuthenticatorType, str],
    ) -> List[SmartAccountWithCodeId]:
        try:
            address = self.predict_address(credential, authenticator_type)
        except ValueError as exc:
            raise DiscoveryStrategyError(f"RPC account strategy failed: {exc}") from exc

        try:
            authenticators = await self._query_authenticators(address)
        except ContractNotFoundError:
            logger.debug("No smart account contract at predicted address %s", address)
            return []
        except ContractQueryError as exc:
            raise DiscoveryStrategyError(f"RPC account strategy failed: {exc}") from exc

        if not authenticators:
            return []
        return [SmartAccountWithCodeId(id=address, code_id=self.code_id, authenticators=authenticators)]

    async def _query_authenticators(self, address: str) -> List[Authenticator]:
        ids = await self.query_client.query_contract_smart(address, {"authenticator_i_ds": {}})
        if not isinstance(ids, list) or not ids:
            return []

        authenticators = []
        for authenticator_id in ids:
            response = await self.query_client.query_contract_smart(
                address, {"authenticator_by_i_d": {"id": authenticator_id}}
            )
            decoded = decode_contract_authenticator(response)
            if decoded is None:
                logger.debug("Skipping unreadable authenticator %s on %s", authenticator_id, address)
                continue
            authenticator_type, credential = decoded
            authenticators.append(
                Authenticator(
                    id=f"{address}-{authenticator_id}",
                    type=authenticator_type.value,
                    authenticator=credential,
                    authenticator_index=int(authenticator_id),
                )
            )
        return authenticators
