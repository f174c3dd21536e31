from .external_signer import ExternalSignerConnector, SignerConfig
from .eth_wallet import PrivateKeyEthWalletConnector
from .registry import ConnectorRegistry

__all__ = [
    "ExternalSignerConnector",
    "SignerConfig",
    "PrivateKeyEthWalletConnector",
    "ConnectorRegistry",
]
