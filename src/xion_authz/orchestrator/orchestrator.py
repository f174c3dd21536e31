"""
Connection Orchestrator

Coordinates the complete connection sequence (restore session → connect →
discover or create the smart account → create grants → ready) and owns the
account state machine that callers observe.

Architecture:
    ConnectionOrchestrator (you are here)
        ├── flows.restore_session
        ├── flows.connect_account (discovery + AA API creation)
        ├── flows.create_grants (treasury or manual grants)
        ├── flows.initiate_redirect / complete_redirect
        └── AccountStateMachine
"""

import logging
from typing import Optional

import httpx

from ..clients.aa_api import AAApiClient
from ..clients.contract_query import ContractQueryClient
from ..config import AAApiStrategyConfig, OrchestratorConfig, RpcStrategyConfig, convert_indexer_config
from ..discovery.bases import AccountStrategy
from ..discovery.factory import create_composite_account_strategy
from ..engine.exceptions import GrantCreationError, InvalidTransition
from ..grants.strategies import TreasuryStrategy, create_composite_treasury_strategy
from ..engine.state import (
    AccountStateMachine,
    AccountStatus,
    Initialize,
    SetConnected,
    SetError,
    StartConfiguringPermissions,
    StartConnect,
    StartRedirect,
)
from ..schemas.connection import (
    ConnectionResult,
    ConnectorConnectionResult,
    RedirectResult,
    SessionRestorationResult,
    StorageGrantsStatus,
)
from ..schemas.grants import GrantCreationResult
from . import flows
from .bases import Connector, SessionKeypair, SessionManager, SigningClientFactory, StorageStrategy

logger = logging.getLogger(__name__)


class ConnectionOrchestrator:
    """
    Entry point for applications.

    All collaborators are injected; the orchestrator only sequences them.
    State transitions happen exclusively here.

    Usage:
        ```python
        orchestrator = ConnectionOrchestrator(
            config,
            session_manager=session_manager,
            storage=MemoryStorageStrategy(),
            account_strategy=create_composite_account_strategy(indexer=config.indexer),
            signing_client_factory=factory,
        )
        result = await orchestrator.connect_and_setup(connector)
        ```
    """

    def __init__(
        self,
        config: OrchestratorConfig,
        session_manager: SessionManager,
        storage: StorageStrategy,
        account_strategy: Optional[AccountStrategy] = None,
        signing_client_factory: Optional[SigningClientFactory] = None,
        query_client: Optional[ContractQueryClient] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        aa_api_client: Optional[AAApiClient] = None,
        state_machine: Optional[AccountStateMachine] = None,
        treasury_strategy: Optional[TreasuryStrategy] = None,
    ):
        self.config = config
        if treasury_strategy is None and config.grant_config.treasury:
            treasury_strategy = create_composite_treasury_strategy(
                daodao_indexer_url=config.grant_config.daodao_indexer_url,
                http_client=http_client,
            )
        self.deps = flows.OrchestratorDependencies(
            config=config,
            session_manager=session_manager,
            storage=storage,
            account_strategy=account_strategy,
            signing_client_factory=signing_client_factory,
            query_client=query_client,
            http_client=http_client,
            aa_api_client=aa_api_client,
            treasury_strategy=treasury_strategy,
        )
        self.state_machine = state_machine or AccountStateMachine()

    @classmethod
    def from_config(
        cls,
        config: OrchestratorConfig,
        session_manager: SessionManager,
        storage: StorageStrategy,
        signing_client_factory: Optional[SigningClientFactory] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "ConnectionOrchestrator":
        """
        Build an orchestrator with the standard discovery chain.

        The indexer comes from ``config.indexer``; the AA API and on-chain
        lookups are derived from the account creation settings.
        """
        creation = config.account_creation_config
        indexer = convert_indexer_config(
            config.indexer,
            creation.smart_account_contract if creation else None,
        )
        aa_api = AAApiStrategyConfig(base_url=creation.aa_api_url) if creation else None
        rpc = None
        if creation and config.rest_url:
            contract = creation.smart_account_contract
            rpc = RpcStrategyConfig(
                rest_url=config.rest_url,
                checksum=contract.checksum,
                creator=creation.fee_granter,
                prefix=contract.address_prefix,
                code_id=contract.code_id,
            )
        account_strategy = create_composite_account_strategy(
            indexer=indexer,
            aa_api=aa_api,
            rpc=rpc,
            http_client=http_client,
            request_timeout=config.request_timeout,
        )
        return cls(
            config,
            session_manager=session_manager,
            storage=storage,
            account_strategy=account_strategy,
            signing_client_factory=signing_client_factory,
            http_client=http_client,
        )

    @property
    def state(self):
        return self.state_machine.state

    # ==================== Operations ====================

    async def restore_session(self, create_signing_client: bool = False) -> SessionRestorationResult:
        """Restore a stored session; see flows.restore_session."""
        return await flows.restore_session(self.deps, create_signing_client)

    async def check_storage_grants(self, smart_account_address: str) -> StorageGrantsStatus:
        return await flows.check_storage_grants(smart_account_address, self.deps.storage)

    async def connect(self, connector: Connector, authenticator: Optional[str] = None) -> ConnectionResult:
        """Connect and discover or create the smart account; no grants are created."""
        return await flows.connect_account(self.deps, connector, authenticator)

    async def create_grants(
        self,
        smart_account_address: str,
        connection: ConnectorConnectionResult,
        grantee_address: str,
    ) -> GrantCreationResult:
        """Create the configured grants from the smart account to the session key."""
        return await flows.create_grants(self.deps, smart_account_address, connection, grantee_address)

    async def connect_and_setup(self, connector: Connector, authenticator: Optional[str] = None) -> ConnectionResult:
        """
        Full flow: connect → discover/create → grants (if configured) → signing client.

        The state machine moves connecting → configuring-permissions (only
        when grants are needed) → connected, or to error on failure.

        Raises:
            InvalidTransition: If a connection cannot start from the current state.
            GrantCreationError: If grant creation reported a failure.
        """
        self.state_machine.dispatch(StartConnect(connector_id=getattr(connector.metadata, "id", None)))
        try:
            result = await self.connect(connector, authenticator)

            if self.config.grant_config.requires_grants():
                self.state_machine.dispatch(
                    StartConfiguringPermissions(smart_account_address=result.smart_account_address)
                )
                grant_result = await self.create_grants(
                    result.smart_account_address,
                    result.connection_info,
                    result.grantee_address,
                )
                if not grant_result.success:
                    raise GrantCreationError(f"Failed to create grants: {grant_result.error}")
            else:
                await self.deps.session_manager.set_granter(result.smart_account_address)

            signing_client = await self._create_signing_client(
                result.session_keypair,
                result.smart_account_address,
                result.grantee_address,
            )
            result = result.model_copy(update={"signing_client": signing_client})
            self.state_machine.dispatch(SetConnected(account=result.account_info(), signing_client=signing_client))
            return result
        except Exception as exc:
            self._fail(exc)
            raise

    async def initiate_redirect(self) -> RedirectResult:
        """
        Start the dashboard redirect flow.

        Raises:
            InvalidTransition: If a redirect cannot start from the current state;
                nothing is generated or redirected in that case.
            RedirectFlowError: If the session manager cannot redirect.
        """
        if self.state_machine.status == AccountStatus.IDLE:
            self.state_machine.dispatch(Initialize())
        if not self.state_machine.can(StartRedirect.type):
            raise InvalidTransition(self.state_machine.status.value, StartRedirect.type)
        try:
            result = await flows.initiate_redirect(self.deps)
        except Exception as exc:
            self._fail(exc)
            raise
        self.state_machine.dispatch(StartRedirect(dashboard_url=result.dashboard_url))
        return result

    async def complete_redirect(self) -> SessionRestorationResult:
        """
        Finish the redirect flow after the dashboard callback.

        When the machine is still redirecting it is moved to connected;
        a fresh orchestrator (e.g. after a page reload) keeps its state.

        Raises:
            RedirectFlowError: If login did not complete.
        """
        try:
            result = await flows.complete_redirect(self.deps)
        except Exception as exc:
            self._fail(exc)
            raise

        if self.state_machine.status == AccountStatus.REDIRECTING:
            self.state_machine.dispatch(StartConfiguringPermissions(smart_account_address=result.granter_address))
            self.state_machine.dispatch(
                SetConnected(account=result.account_info(), signing_client=result.signing_client)
            )
        return result

    # ==================== Helpers ====================

    async def _create_signing_client(
        self,
        keypair: SessionKeypair,
        granter_address: str,
        grantee_address: str,
    ):
        return await self.deps.require_signing_client_factory().create_grantee_client(
            self.config.rpc_url,
            keypair,
            granter_address,
            grantee_address,
            self.config.gas_price,
            treasury_address=self.config.grant_config.treasury,
        )

    def _fail(self, exc: Exception) -> None:
        if self.state_machine.can(SetError.type):
            self.state_machine.dispatch(SetError(error=str(exc) or type(exc).__name__))
