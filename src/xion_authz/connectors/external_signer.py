"""
External Signer Connector

Wraps an external signing service (MPC wallets, custodial signers, HSMs...)
behind the Connector interface. The service supplies the credential, its
authenticator type and a signing callable; the connector normalises
messages and signatures for the types account creation supports.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from ..authenticators.signatures import (
    ETH_SIGNATURE_LENGTH,
    SECP256K1_SIGNATURE_LENGTH,
    format_eth_signature,
    format_hex_message,
    format_secp256k1_signature,
)
from ..schemas.bases import AuthenticatorType
from ..schemas.connection import (
    ConnectionMetadata,
    ConnectorConnectionResult,
    ConnectorMetadata,
    SignMessage,
)
from ..orchestrator.bases import Connector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignerConfig:
    """What an external signer provides once it is ready."""
    authenticator_type: str
    authenticator: str
    sign_message: SignMessage


class ExternalSignerConnector(Connector):
    """
    Connector for external signers.

    EthWallet: the message gets a 0x prefix and the signature must be 0x +
    65 bytes. Secp256K1: the signature is normalised to 64 bytes of bare
    hex. Other types are passed through untouched.
    """

    def __init__(
        self,
        id: str,
        name: str,
        get_signer_config: Callable[[], Awaitable[SignerConfig]],
        is_ready: Optional[Callable[[], Awaitable[bool]]] = None,
    ):
        self.metadata = ConnectorMetadata(id=id, name=name, type="external-signer")
        self._get_signer_config = get_signer_config
        self._is_ready = is_ready
        self._signer: Optional[SignerConfig] = None

    async def is_available(self) -> bool:
        if self._is_ready is not None:
            return await self._is_ready()
        return True

    async def _sign(self, message: str) -> str:
        if self._signer is None:
            raise RuntimeError("Signer not connected")
        signer = self._signer

        if signer.authenticator_type == AuthenticatorType.ETH_WALLET.value:
            signature = format_eth_signature(await signer.sign_message(format_hex_message(message)))
            if len(signature) != ETH_SIGNATURE_LENGTH:
                raise ValueError(
                    f"Invalid Ethereum signature format: expected {ETH_SIGNATURE_LENGTH} "
                    f"characters (0x + 130 hex), got {len(signature)}"
                )
            return signature

        if signer.authenticator_type == AuthenticatorType.SECP256K1.value:
            signature = format_secp256k1_signature(await signer.sign_message(message))
            if len(signature) != SECP256K1_SIGNATURE_LENGTH:
                raise ValueError(
                    f"Invalid Secp256K1 signature format: expected {SECP256K1_SIGNATURE_LENGTH} "
                    f"hex characters (64 bytes), got {len(signature)}"
                )
            return signature

        return await signer.sign_message(message)

    async def connect(self, chain_id: Optional[str] = None) -> ConnectorConnectionResult:
        """
        Raises:
            ConnectionError: Wrapping whatever the signer raised.
        """
        try:
            signer = await self._get_signer_config()
        except Exception as exc:
            raise ConnectionError(f"Failed to connect to {self.metadata.name}: {exc}") from exc
        self._signer = signer

        is_eth = signer.authenticator_type == AuthenticatorType.ETH_WALLET.value
        # Ethereum addresses are looked up lowercase
        authenticator = signer.authenticator.lower() if is_eth else signer.authenticator
        logger.debug("Connected external signer %s (%s)", self.metadata.id, signer.authenticator_type)

        return ConnectorConnectionResult(
            authenticator=authenticator,
            display_address=signer.authenticator,
            sign_message=self._sign,
            metadata=ConnectionMetadata(
                authenticator_type=signer.authenticator_type,
                ethereum_address=signer.authenticator if is_eth else None,
                connection_type="signer",
            ),
        )

    async def disconnect(self) -> None:
        self._signer = None
