"""
Local Ethereum Wallet Connector

Connects an Ethereum key held in-process (scripts, backends, tests). Signing
follows personal_sign: the hex message bytes are wrapped in the EIP-191
envelope and signed with ``eth_account``; no RPC endpoint is required.

Dependencies:
    - eth_account: For key handling and EIP-191 message signing
    - web3: For address checksumming and hex conversion
"""

import logging
import os
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

from ..authenticators.signatures import format_hex_message
from ..schemas.bases import AuthenticatorType
from ..schemas.connection import ConnectionMetadata, ConnectorConnectionResult, ConnectorMetadata
from ..orchestrator.bases import Connector

logger = logging.getLogger(__name__)


class PrivateKeyEthWalletConnector(Connector):
    """
    Connector for an Ethereum private key.

    Signatures are returned as hex without the 0x prefix, which is what the
    AA API expects from browser wallets.
    """

    def __init__(
        self,
        private_key: Optional[str] = None,
        id: str = "private-key",
        name: str = "Ethereum private key",
    ):
        """
        Initialize connector.

        Args:
            private_key: Hex private key; falls back to the XION_ETH_PRIVATE_KEY
                environment variable
            id: Connector id
            name: Display name
        """
        private_key = private_key or os.getenv("XION_ETH_PRIVATE_KEY")
        if not private_key:
            raise ValueError("An Ethereum private key is required")
        self._account = Account.from_key(private_key)
        self.metadata = ConnectorMetadata(id=id, name=name, type="ethereum-wallet")
        self._connected = False

    @property
    def address(self) -> str:
        return Web3.to_checksum_address(self._account.address)

    async def sign_message(self, hex_message: str) -> str:
        """personal_sign over the bytes of ``hex_message``."""
        if not self._connected:
            raise RuntimeError("Wallet not connected")
        signable = encode_defunct(hexstr=format_hex_message(hex_message))
        signed = self._account.sign_message(signable)
        return Web3.to_hex(signed.signature)[2:]

    async def connect(self, chain_id: Optional[str] = None) -> ConnectorConnectionResult:
        self._connected = True
        address = self.address
        logger.debug("Connected local Ethereum wallet %s", address)
        return ConnectorConnectionResult(
            authenticator=address.lower(),
            display_address=address,
            sign_message=self.sign_message,
            metadata=ConnectionMetadata(
                authenticator_type=AuthenticatorType.ETH_WALLET.value,
                ethereum_address=address,
                connection_type="signer",
            ),
        )

    async def disconnect(self) -> None:
        self._connected = False
