from .bases import (
    Connector,
    SessionKeypair,
    SessionManager,
    RedirectSessionManager,
    StorageStrategy,
    MemoryStorageStrategy,
    GrantSigningClient,
    SigningClientFactory,
    grantee_address_of,
)
from .fees import calculate_fee, parse_gas_price
from .flows import OrchestratorDependencies, check_storage_grants
from .orchestrator import ConnectionOrchestrator

__all__ = [
    "Connector",
    "SessionKeypair",
    "SessionManager",
    "RedirectSessionManager",
    "StorageStrategy",
    "MemoryStorageStrategy",
    "GrantSigningClient",
    "SigningClientFactory",
    "grantee_address_of",
    "calculate_fee",
    "parse_gas_price",
    "OrchestratorDependencies",
    "check_storage_grants",
    "ConnectionOrchestrator",
]
