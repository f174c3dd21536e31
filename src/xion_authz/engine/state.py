"""
Account state machine with typed actions and a guarded single entry point.

Lifecycle:
    idle -> initializing -> redirecting | connecting
         -> configuring-permissions -> connected

SET_ERROR is accepted from every non-terminal state and RESET from every
state. Actions carry their own data; AccountStateMachine.dispatch is the only
way to move between states and rejects anything is_valid_transition refuses.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict

from .exceptions import InvalidTransition

logger = logging.getLogger(__name__)


class AccountStatus(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    REDIRECTING = "redirecting"
    CONNECTING = "connecting"
    CONFIGURING_PERMISSIONS = "configuring-permissions"
    CONNECTED = "connected"
    ERROR = "error"


class AccountState(BaseModel):
    """
    Snapshot of the account lifecycle.

    Only the fields belonging to ``status`` are set; every transition builds
    a fresh snapshot, so account data never leaks into idle or error states.
    """
    status: AccountStatus = AccountStatus.IDLE
    dashboard_url: Optional[str] = None
    connector_id: Optional[str] = None
    smart_account_address: Optional[str] = None
    account: Optional[Any] = None
    signing_client: Optional[Any] = None
    error: Optional[str] = None

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


# ==================== Actions ====================

class BaseAction(ABC):
    """Base class for all state machine actions."""

    type: ClassVar[str]

    @abstractmethod
    def __repr__(self) -> str:
        pass


class Initialize(BaseModel, BaseAction):
    type: ClassVar[str] = "INITIALIZE"

    def __repr__(self) -> str:
        return "Initialize()"


class StartRedirect(BaseModel, BaseAction):
    type: ClassVar[str] = "START_REDIRECT"
    dashboard_url: str

    def __repr__(self) -> str:
        return f"StartRedirect(dashboard_url={self.dashboard_url})"


class StartConnect(BaseModel, BaseAction):
    type: ClassVar[str] = "START_CONNECT"
    connector_id: Optional[str] = None

    def __repr__(self) -> str:
        return f"StartConnect(connector_id={self.connector_id})"


class StartConfiguringPermissions(BaseModel, BaseAction):
    type: ClassVar[str] = "START_CONFIGURING_PERMISSIONS"
    smart_account_address: str

    def __repr__(self) -> str:
        return f"StartConfiguringPermissions(smart_account_address={self.smart_account_address})"


class SetConnected(BaseModel, BaseAction):
    type: ClassVar[str] = "SET_CONNECTED"
    account: Any
    signing_client: Optional[Any] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __repr__(self) -> str:
        return "SetConnected(account=***)"


class SetError(BaseModel, BaseAction):
    type: ClassVar[str] = "SET_ERROR"
    error: str

    def __repr__(self) -> str:
        return f"SetError(error={self.error})"


class Reset(BaseModel, BaseAction):
    type: ClassVar[str] = "RESET"

    def __repr__(self) -> str:
        return "Reset()"


# ==================== Transitions ====================

_NON_TERMINAL = frozenset(
    status for status in AccountStatus
    if status not in (AccountStatus.CONNECTED, AccountStatus.ERROR)
)

_ALLOWED_FROM: Dict[str, FrozenSet[AccountStatus]] = {
    Initialize.type: frozenset({AccountStatus.IDLE}),
    StartRedirect.type: frozenset({AccountStatus.INITIALIZING}),
    StartConnect.type: frozenset({AccountStatus.IDLE, AccountStatus.INITIALIZING}),
    StartConfiguringPermissions.type: frozenset({AccountStatus.CONNECTING, AccountStatus.REDIRECTING}),
    SetConnected.type: frozenset({AccountStatus.CONFIGURING_PERMISSIONS, AccountStatus.CONNECTING}),
    SetError.type: _NON_TERMINAL,
    Reset.type: frozenset(AccountStatus),
}


def is_valid_transition(state: AccountState, action_type: str) -> bool:
    """Check whether ``action_type`` may be applied in ``state``."""
    allowed = _ALLOWED_FROM.get(action_type)
    return allowed is not None and state.status in allowed


def reduce(state: AccountState, action: BaseAction) -> AccountState:
    """
    Pure transition function. Does not check legality; use dispatch.

    Unknown actions leave the state unchanged.
    """
    if isinstance(action, Initialize):
        return AccountState(status=AccountStatus.INITIALIZING)
    if isinstance(action, StartRedirect):
        return AccountState(status=AccountStatus.REDIRECTING, dashboard_url=action.dashboard_url)
    if isinstance(action, StartConnect):
        return AccountState(status=AccountStatus.CONNECTING, connector_id=action.connector_id)
    if isinstance(action, StartConfiguringPermissions):
        return AccountState(
            status=AccountStatus.CONFIGURING_PERMISSIONS,
            smart_account_address=action.smart_account_address,
        )
    if isinstance(action, SetConnected):
        return AccountState(
            status=AccountStatus.CONNECTED,
            account=action.account,
            signing_client=action.signing_client,
        )
    if isinstance(action, SetError):
        return AccountState(status=AccountStatus.ERROR, error=action.error)
    if isinstance(action, Reset):
        return AccountState()
    return state


StateListener = Callable[[AccountState, AccountState, BaseAction], None]


class AccountStateMachine:
    """Holds the current AccountState and notifies listeners of transitions."""

    def __init__(self, initial: Optional[AccountState] = None) -> None:
        self._state = initial or AccountState()
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> AccountState:
        return self._state

    @property
    def status(self) -> AccountStatus:
        return self._state.status

    def can(self, action_type: str) -> bool:
        return is_valid_transition(self._state, action_type)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register ``listener(previous, current, action)``.

        Returns:
            A callable removing the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: BaseAction) -> AccountState:
        """
        Apply ``action`` to the current state.

        Raises:
            InvalidTransition: If the action is not legal from the current state.
        """
        if not is_valid_transition(self._state, action.type):
            raise InvalidTransition(self._state.status.value, action.type)

        previous = self._state
        self._state = reduce(previous, action)
        logger.debug("Account state %s -> %s via %r", previous.status.value, self._state.status.value, action)

        for listener in list(self._listeners):
            listener(previous, self._state, action)
        return self._state
