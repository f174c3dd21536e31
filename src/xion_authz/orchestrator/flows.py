"""
Connection flows used by the ConnectionOrchestrator.

Implements the individual steps: session restoration → connect (discover or
create the smart account) → grant creation, plus the dashboard redirect flow.
Each flow is a plain async function taking an OrchestratorDependencies
container, so it can be exercised without the orchestrator.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

from ..authenticators.detection import detect_authenticator_type
from ..clients.aa_api import AAApiClient
from ..clients.contract_query import ContractQueryClient, RestContractQueryClient
from ..config import OrchestratorConfig
from ..constants import GRANTER_STORAGE_KEY, TEMP_ACCOUNT_STORAGE_KEY
from ..discovery.bases import AccountStrategy
from ..discovery.existence import check_account_exists
from ..engine.exceptions import (
    AccountCreationError,
    AccountDiscoveryError,
    ConfigurationError,
    GrantCreationError,
    InvalidContractGrantError,
    RedirectFlowError,
    SessionRestorationError,
    TreasuryQueryError,
)
from ..grants.authz import is_contract_grant_config_valid
from ..grants.construction import build_grant_messages, expiration_in_days, expiration_in_months
from ..grants.strategies import TreasuryStrategy, create_composite_treasury_strategy
from ..grants.treasury import TREASURY_GRANT_MONTHS, deploy_fee_grant_message, generate_treasury_grants
from ..schemas.bases import AuthenticatorType
from ..schemas.connection import (
    ConnectionResult,
    ConnectorConnectionResult,
    RedirectResult,
    SessionRestorationResult,
    StorageGrantsStatus,
)
from ..schemas.grants import GrantCreationResult, GrantMessage
from .bases import (
    Connector,
    RedirectSessionManager,
    SessionManager,
    SigningClientFactory,
    StorageStrategy,
    grantee_address_of,
)
from .fees import calculate_fee

logger = logging.getLogger(__name__)

GRANT_MEMO = "Create grants for abstraxion"
MANUAL_GRANT_DAYS = 365


# ==================== Dependencies Container ====================

@dataclass(frozen=True)
class OrchestratorDependencies:
    """Collaborators shared by every flow (read-only)."""
    config: OrchestratorConfig
    session_manager: SessionManager
    storage: StorageStrategy
    account_strategy: Optional[AccountStrategy] = None
    signing_client_factory: Optional[SigningClientFactory] = None
    query_client: Optional[ContractQueryClient] = None
    http_client: Optional[httpx.AsyncClient] = None
    aa_api_client: Optional[AAApiClient] = None
    # Built once by the orchestrator; holds the DaoDao cache
    treasury_strategy: Optional[TreasuryStrategy] = None

    def require_signing_client_factory(self) -> SigningClientFactory:
        if self.signing_client_factory is None:
            raise ConfigurationError("A signing client factory is required but was not provided")
        return self.signing_client_factory


# ==================== Session restoration ====================

async def restore_session(
    deps: OrchestratorDependencies,
    create_signing_client: bool = False,
) -> SessionRestorationResult:
    """
    Restore a stored session if its grants are still valid on-chain.

    No stored keypair or granter is the normal first-visit case and yields
    ``restored=False`` without an error. A stored session that fails
    authentication is cleared (logout) and reported through ``error``.
    """
    session_manager = deps.session_manager
    try:
        keypair = await session_manager.get_local_keypair()
        granter = await session_manager.get_granter()
        if keypair is None or not granter:
            return SessionRestorationResult(restored=False)

        try:
            await session_manager.authenticate()
        except Exception as exc:
            raise SessionRestorationError(
                str(exc) or "Session expired or grants no longer valid. Please reconnect."
            ) from exc
        grantee = await grantee_address_of(keypair)

        signing_client = None
        if create_signing_client:
            signing_client = await deps.require_signing_client_factory().create_grantee_client(
                deps.config.rpc_url,
                keypair,
                granter,
                grantee,
                deps.config.gas_price,
                treasury_address=deps.config.grant_config.treasury,
            )

        return SessionRestorationResult(
            restored=True,
            keypair=keypair,
            granter_address=granter,
            grantee_address=grantee,
            signing_client=signing_client,
        )
    except Exception as exc:
        logger.info("Stored session is no longer valid: %s", exc)
        await session_manager.logout()
        return SessionRestorationResult(
            restored=False,
            error=str(exc) or type(exc).__name__,
        )


# ==================== Account connection ====================

async def _create_account(
    deps: OrchestratorDependencies,
    connection: ConnectorConnectionResult,
    credential: str,
    authenticator_type: str,
):
    creation_config = deps.config.account_creation_config
    if creation_config is None:
        raise AccountCreationError("Account creation config is required but not provided")

    if authenticator_type not in (AuthenticatorType.ETH_WALLET.value, AuthenticatorType.SECP256K1.value):
        raise AccountCreationError(
            f"Account creation for {authenticator_type} authenticator type is not yet supported"
        )

    async def create(client: AAApiClient):
        if authenticator_type == AuthenticatorType.ETH_WALLET.value:
            return await client.create_eth_wallet_account(credential.lower(), connection.sign_message)
        pubkey = connection.metadata.pubkey or credential
        return await client.create_secp256k1_account(pubkey, connection.sign_message)

    if deps.aa_api_client is not None:
        return await create(deps.aa_api_client)
    async with AAApiClient(creation_config.aa_api_url, timeout=deps.config.request_timeout) as client:
        return await create(client)


async def connect_account(
    deps: OrchestratorDependencies,
    connector: Connector,
    authenticator: Optional[str] = None,
) -> ConnectionResult:
    """
    Connect a credential and resolve its smart account.

    Steps:
        1. connector.connect(chain_id)
        2. discover the smart account for the credential
        3. create one through the AA API when none exists
        4. load or generate the session keypair

    Raises:
        ConfigurationError: If no account strategy is configured.
        AccountDiscoveryError: If discovery itself failed (do not create).
        AccountCreationError: If creation is impossible or failed.
    """
    if deps.account_strategy is None:
        raise ConfigurationError("Account strategy is required for connect() but was not provided")

    connection = await connector.connect(deps.config.chain_id)
    credential = authenticator or connection.authenticator
    authenticator_type = connection.metadata.authenticator_type or detect_authenticator_type(credential).value

    existence = await check_account_exists(deps.account_strategy, credential, authenticator_type)
    if existence.error:
        raise AccountDiscoveryError(f"Account discovery failed: {existence.error}")

    if existence.exists and existence.smart_account_address:
        smart_account_address = existence.smart_account_address
        authenticator_index = existence.authenticator_index or 0
        code_id = existence.code_id
    else:
        logger.info("No smart account found for %s credential, creating one", authenticator_type)
        created = await _create_account(deps, connection, credential, authenticator_type)
        smart_account_address = created.account_address
        authenticator_index = 0
        code_id = created.code_id

    keypair = await deps.session_manager.get_local_keypair()
    if keypair is None:
        keypair = await deps.session_manager.generate_and_store_temp_account()
    grantee_address = await grantee_address_of(keypair)

    metadata = connection.metadata.model_copy(update={
        "authenticator_type": authenticator_type,
        "authenticator_index": authenticator_index,
        "code_id": code_id,
    })
    return ConnectionResult(
        smart_account_address=smart_account_address,
        connection_info=connection.model_copy(update={"metadata": metadata}),
        session_keypair=keypair,
        grantee_address=grantee_address,
    )


# ==================== Grant creation ====================

async def check_storage_grants(smart_account_address: str, storage: StorageStrategy) -> StorageGrantsStatus:
    """Grants exist when the stored granter is this account and a temp account is stored."""
    stored_granter = await storage.get_item(GRANTER_STORAGE_KEY)
    stored_temp_account = await storage.get_item(TEMP_ACCOUNT_STORAGE_KEY)
    return StorageGrantsStatus(
        grants_exist=stored_granter == smart_account_address and bool(stored_temp_account),
        stored_granter=stored_granter,
        stored_temp_account=stored_temp_account,
    )


async def _query_treasury_grants(
    deps: OrchestratorDependencies,
    treasury: str,
    granter: str,
    grantee: str,
) -> List[GrantMessage]:
    grant_config = deps.config.grant_config
    strategy = deps.treasury_strategy or create_composite_treasury_strategy(
        daodao_indexer_url=grant_config.daodao_indexer_url,
        include_direct_query=True,
        http_client=deps.http_client,
    )
    expiration = expiration_in_months(TREASURY_GRANT_MONTHS)

    if deps.query_client is not None:
        return await generate_treasury_grants(treasury, deps.query_client, granter, grantee, strategy, expiration)
    if not deps.config.rest_url:
        raise TreasuryQueryError("No contract query client or REST URL configured")
    async with RestContractQueryClient(
        deps.config.rest_url,
        chain_id=deps.config.chain_id,
        timeout=deps.config.request_timeout,
    ) as client:
        return await generate_treasury_grants(treasury, client, granter, grantee, strategy, expiration)


async def create_grants(
    deps: OrchestratorDependencies,
    smart_account_address: str,
    connection: ConnectorConnectionResult,
    grantee_address: str,
) -> GrantCreationResult:
    """
    Grant the session key the configured permissions.

    Treasury policies are tried first; if the treasury cannot be read the
    manual contracts/bank/stake configuration is used instead. The granter
    is persisted only once the grant transaction was broadcast.

    Returns:
        GrantCreationResult: Failures while simulating or broadcasting are
        reported here rather than raised.

    Raises:
        InvalidContractGrantError: If a contract grant targets the granter.
        GrantCreationError: If the connection metadata has no authenticator type.
        ConfigurationError: If no signing client factory is configured.
    """
    status = await check_storage_grants(smart_account_address, deps.storage)
    if status.grants_exist:
        logger.debug("Grants for %s already recorded in storage", smart_account_address)
        return GrantCreationResult(success=True)

    grant_config = deps.config.grant_config
    if grant_config.contracts and not is_contract_grant_config_valid(
        grant_config.contracts, {"id": smart_account_address}
    ):
        raise InvalidContractGrantError(
            "Invalid contract grant configuration: "
            "Contract address cannot be the same as the granter account"
        )

    messages: List[GrantMessage] = []
    uses_treasury = False
    if grant_config.treasury:
        try:
            messages = await _query_treasury_grants(
                deps, grant_config.treasury, smart_account_address, grantee_address
            )
            uses_treasury = True
        except Exception as exc:
            logger.warning("Failed to query treasury contract %s: %s", grant_config.treasury, exc)

    if not messages:
        messages = build_grant_messages(
            granter=smart_account_address,
            grantee=grantee_address,
            expiration=expiration_in_days(MANUAL_GRANT_DAYS),
            contracts=grant_config.contracts,
            bank=grant_config.bank,
            stake=grant_config.stake,
        )
        if not messages:
            await deps.storage.set_item(GRANTER_STORAGE_KEY, smart_account_address)
            return GrantCreationResult(success=True)

    metadata = connection.metadata
    if not metadata.authenticator_type:
        raise GrantCreationError("Authenticator type not found in connection result metadata")

    client = await deps.require_signing_client_factory().create_grant_client(
        deps.config.rpc_url,
        smart_account_address,
        metadata.authenticator_index or 0,
        metadata.authenticator_type,
        connection.sign_message,
        deps.config.gas_price,
    )

    to_sign = list(messages)
    if uses_treasury:
        to_sign.append(deploy_fee_grant_message(smart_account_address, grantee_address, grant_config.treasury))

    try:
        simulated_gas = await client.simulate(smart_account_address, to_sign, GRANT_MEMO)
    except Exception as exc:
        logger.warning("Grant transaction simulation failed: %s", exc)
        return GrantCreationResult(success=False, error=str(exc) or "Failed to simulate transaction")

    try:
        fee = calculate_fee(simulated_gas, deps.config.gas_price, grant_config.fee_granter)
    except ValueError as exc:
        return GrantCreationResult(success=False, error=str(exc))

    try:
        broadcast = await client.sign_and_broadcast(smart_account_address, to_sign, fee, GRANT_MEMO)
    except Exception as exc:
        logger.warning("Grant transaction broadcast failed: %s", exc)
        return GrantCreationResult(success=False, error=str(exc) or "Failed to sign and broadcast transaction")

    if broadcast.code:
        return GrantCreationResult(
            success=False,
            transaction_hash=broadcast.transaction_hash,
            error=broadcast.raw_log or f"Transaction failed with code {broadcast.code}",
        )

    logger.info("Grants created for %s in %s", smart_account_address, broadcast.transaction_hash)
    await deps.storage.set_item(GRANTER_STORAGE_KEY, smart_account_address)
    return GrantCreationResult(success=True, transaction_hash=broadcast.transaction_hash)


# ==================== Redirect flow ====================

def _redirect_session_manager(deps: OrchestratorDependencies) -> RedirectSessionManager:
    if not isinstance(deps.session_manager, RedirectSessionManager):
        raise RedirectFlowError("SessionManager does not support redirect flow")
    return deps.session_manager


async def initiate_redirect(deps: OrchestratorDependencies) -> RedirectResult:
    """Generate a session key and send the user to the dashboard to authorize it."""
    session_manager = _redirect_session_manager(deps)
    await session_manager.generate_and_store_temp_account()
    await session_manager.redirect_to_dashboard()
    return RedirectResult(dashboard_url=deps.config.dashboard_url or "")


async def complete_redirect(deps: OrchestratorDependencies) -> SessionRestorationResult:
    """
    Finish the redirect flow after the dashboard callback.

    Raises:
        RedirectFlowError: If the session manager cannot redirect, login did
            not complete, or no signing client is available afterwards.
    """
    session_manager = _redirect_session_manager(deps)

    login = await session_manager.complete_login()
    if not login:
        raise RedirectFlowError("Login redirected to dashboard instead of completing")

    keypair = login["keypair"]
    granter = login["granter"]
    grantee = await grantee_address_of(keypair)

    signing_client = await session_manager.get_signer()
    if signing_client is None:
        raise RedirectFlowError("Failed to get signing client after redirect")

    return SessionRestorationResult(
        restored=True,
        keypair=keypair,
        granter_address=granter,
        grantee_address=grantee,
        signing_client=signing_client,
    )
