"""
Account Abstraction API Client

httpx client for the account abstraction (AA) API. It creates new smart
accounts for wallet credentials with a two step prepare/create exchange:
the API returns a message, the wallet signs it, and the signature proves
control of the credential when the account is created.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Union

import httpx

from ..authenticators.signatures import format_secp256k1_signature
from ..constants import DEFAULT_REQUEST_TIMEOUT
from ..engine.exceptions import AccountCreationError
from ..schemas.aa_api import (
    CreateAccountRequest,
    CreateAccountResponse,
    PrepareRequest,
    PrepareResponse,
)

logger = logging.getLogger(__name__)

SignMessageFunc = Callable[[str], Awaitable[Union[str, bytes]]]


class AAApiClient(httpx.AsyncClient):
    """
    Extended httpx.AsyncClient bound to an AA API deployment.

    Usage:
        ```python
        async with AAApiClient("https://aa-api.example.com") as client:
            created = await client.create_eth_wallet_account(address, sign)
        ```
    """

    def __init__(self, aa_api_url: str, **kwargs):
        """
        Initialize client.

        Args:
            aa_api_url: Base URL of the AA API, without the /api/v1 suffix
            **kwargs: Standard httpx.AsyncClient arguments (timeout, transport, ...)
        """
        kwargs.setdefault("timeout", DEFAULT_REQUEST_TIMEOUT)
        super().__init__(base_url=aa_api_url.rstrip("/"), **kwargs)

    async def _post(self, endpoint: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self.post(f"/api/v1/wallet-accounts/{endpoint}", json=body)
        except httpx.HTTPError as exc:
            raise AccountCreationError(f"AA API /{endpoint} request failed: {exc}") from exc

        if not response.is_success:
            try:
                message = (response.json().get("error") or {}).get("message")
            except (ValueError, AttributeError):
                message = None
            raise AccountCreationError(
                message or f"AA API /{endpoint} failed with status {response.status_code}"
            )
        return response.json()

    async def prepare(self, request: PrepareRequest) -> PrepareResponse:
        """Request the message a wallet must sign to create its account."""
        data = await self._post("prepare", request.model_dump(exclude_none=True))
        return PrepareResponse.model_validate(data)

    async def create(self, request: CreateAccountRequest) -> CreateAccountResponse:
        """Create the account from a signed prepare message."""
        data = await self._post("create", request.model_dump(exclude_none=True))
        return CreateAccountResponse.model_validate(data)

    async def create_eth_wallet_account(
        self,
        address: str,
        sign_message: SignMessageFunc,
    ) -> CreateAccountResponse:
        """
        Create a smart account controlled by an Ethereum wallet.

        The wallet signs the prepare message as a 0x-prefixed hex string
        (personal_sign convention).

        Args:
            address: 0x Ethereum address.
            sign_message: Async callable that signs a hex message.
        """
        logger.info("Creating smart account for Ethereum address %s", address)
        prepared = await self.prepare(PrepareRequest(wallet_type="EthWallet", address=address))

        message_hex = "0x" + prepared.message_to_sign.encode("utf-8").hex()
        signature = await sign_message(message_hex)
        if isinstance(signature, bytes):
            signature = signature.hex()

        result = await self.create(
            CreateAccountRequest(
                wallet_type="EthWallet",
                address=address,
                signature=signature[2:] if signature.startswith("0x") else signature,
                salt=prepared.salt,
                message=json.dumps(prepared.metadata),
            )
        )
        logger.info("Created smart account %s", result.account_address)
        return result

    async def create_secp256k1_account(
        self,
        pubkey_hex: str,
        sign_message: SignMessageFunc,
    ) -> CreateAccountResponse:
        """
        Create a smart account controlled by a secp256k1 key.

        The signer receives the plain prepare message and may return raw
        signature bytes, a base64 string (Cosmos wallet convention) or hex;
        the API expects bare hex.
        """
        logger.info("Creating smart account for Secp256K1 pubkey")
        prepared = await self.prepare(PrepareRequest(wallet_type="Secp256K1", pubkey=pubkey_hex))

        signature = await sign_message(prepared.message_to_sign)
        try:
            signature_hex = format_secp256k1_signature(signature)
        except ValueError as exc:
            raise AccountCreationError(str(exc)) from exc

        result = await self.create(
            CreateAccountRequest(
                wallet_type="Secp256K1",
                pubkey=pubkey_hex,
                signature=signature_hex,
                salt=prepared.salt,
                message=json.dumps(prepared.metadata),
            )
        )
        logger.info("Created smart account %s", result.account_address)
        return result
