"""
Test suite for the account state machine.
Tests: 1) Legal lifecycle paths 2) Rejected transitions 3) Listener notification
"""
import pytest

from xion_authz.engine.exceptions import InvalidTransition
from xion_authz.engine.state import (
    AccountState,
    AccountStateMachine,
    AccountStatus,
    Initialize,
    Reset,
    SetConnected,
    SetError,
    StartConfiguringPermissions,
    StartConnect,
    StartRedirect,
    is_valid_transition,
    reduce,
)


ACCOUNT = {"granter": "xion1granter"}


def machine_in(status: AccountStatus) -> AccountStateMachine:
    return AccountStateMachine(AccountState(status=status))


class TestLifecycle:

    def test_full_connect_path(self):
        machine = AccountStateMachine()
        assert machine.status == AccountStatus.IDLE

        machine.dispatch(Initialize())
        machine.dispatch(StartConnect(connector_id="keplr"))
        assert machine.state.connector_id == "keplr"

        machine.dispatch(StartConfiguringPermissions(smart_account_address="xion1account"))
        assert machine.status == AccountStatus.CONFIGURING_PERMISSIONS
        assert machine.state.smart_account_address == "xion1account"

        machine.dispatch(SetConnected(account=ACCOUNT, signing_client="client"))
        assert machine.status == AccountStatus.CONNECTED
        assert machine.state.account == ACCOUNT
        assert machine.state.signing_client == "client"

    def test_connect_directly_from_idle_without_permissions(self):
        machine = AccountStateMachine()
        machine.dispatch(StartConnect())
        machine.dispatch(SetConnected(account=ACCOUNT))
        assert machine.status == AccountStatus.CONNECTED

    def test_redirect_path(self):
        machine = AccountStateMachine()
        machine.dispatch(Initialize())
        machine.dispatch(StartRedirect(dashboard_url="https://dashboard.example"))
        assert machine.status == AccountStatus.REDIRECTING
        assert machine.state.dashboard_url == "https://dashboard.example"

        machine.dispatch(StartConfiguringPermissions(smart_account_address="xion1account"))
        machine.dispatch(SetConnected(account=ACCOUNT))
        assert machine.status == AccountStatus.CONNECTED

    def test_reset_clears_account_data(self):
        machine = machine_in(AccountStatus.CONNECTING)
        machine.dispatch(SetConnected(account=ACCOUNT, signing_client="client"))
        state = machine.dispatch(Reset())
        assert state == AccountState()
        assert state.account is None
        assert state.signing_client is None

    def test_error_state_carries_message_only(self):
        machine = AccountStateMachine()
        machine.dispatch(StartConnect(connector_id="metamask"))
        state = machine.dispatch(SetError(error="boom"))
        assert state.status == AccountStatus.ERROR
        assert state.error == "boom"
        assert state.connector_id is None


class TestGuards:

    @pytest.mark.parametrize("status", [AccountStatus.CONNECTED, AccountStatus.ERROR])
    def test_set_error_rejected_from_terminal_states(self, status):
        machine = machine_in(status)
        with pytest.raises(InvalidTransition) as exc_info:
            machine.dispatch(SetError(error="late"))
        assert exc_info.value.current_state == status.value
        assert exc_info.value.action_type == SetError.type

    @pytest.mark.parametrize("status", [s for s in AccountStatus if s not in (AccountStatus.CONNECTED, AccountStatus.ERROR)])
    def test_set_error_accepted_from_non_terminal_states(self, status):
        assert machine_in(status).dispatch(SetError(error="x")).status == AccountStatus.ERROR

    @pytest.mark.parametrize("status", list(AccountStatus))
    def test_reset_accepted_from_every_state(self, status):
        assert machine_in(status).dispatch(Reset()).status == AccountStatus.IDLE

    def test_set_connected_rejected_from_idle(self):
        machine = AccountStateMachine()
        with pytest.raises(InvalidTransition):
            machine.dispatch(SetConnected(account=ACCOUNT))
        assert machine.status == AccountStatus.IDLE

    def test_initialize_only_from_idle(self):
        assert not is_valid_transition(AccountState(status=AccountStatus.CONNECTING), Initialize.type)
        with pytest.raises(InvalidTransition):
            machine_in(AccountStatus.CONNECTED).dispatch(Initialize())

    def test_start_redirect_requires_initializing(self):
        with pytest.raises(InvalidTransition):
            AccountStateMachine().dispatch(StartRedirect(dashboard_url=""))

    def test_unknown_action_type_is_invalid(self):
        assert not is_valid_transition(AccountState(), "UNKNOWN")

    def test_can_reflects_guard(self):
        machine = AccountStateMachine()
        assert machine.can(StartConnect.type)
        assert not machine.can(SetConnected.type)


class TestReduce:

    def test_reduce_is_pure(self):
        state = AccountState()
        new_state = reduce(state, StartConnect(connector_id="keplr"))
        assert state.status == AccountStatus.IDLE
        assert new_state.status == AccountStatus.CONNECTING

    def test_state_is_immutable(self):
        state = AccountState()
        with pytest.raises(Exception):
            state.status = AccountStatus.CONNECTED


class TestListeners:

    def test_listener_receives_previous_current_and_action(self):
        machine = AccountStateMachine()
        seen = []
        machine.subscribe(lambda prev, cur, action: seen.append((prev.status, cur.status, action.type)))

        machine.dispatch(Initialize())
        machine.dispatch(StartConnect())

        assert seen == [
            (AccountStatus.IDLE, AccountStatus.INITIALIZING, Initialize.type),
            (AccountStatus.INITIALIZING, AccountStatus.CONNECTING, StartConnect.type),
        ]

    def test_unsubscribe_stops_notifications(self):
        machine = AccountStateMachine()
        seen = []
        unsubscribe = machine.subscribe(lambda prev, cur, action: seen.append(cur.status))
        machine.dispatch(Initialize())
        unsubscribe()
        machine.dispatch(StartConnect())
        assert seen == [AccountStatus.INITIALIZING]

    def test_rejected_transition_does_not_notify(self):
        machine = AccountStateMachine()
        seen = []
        machine.subscribe(lambda prev, cur, action: seen.append(action))
        with pytest.raises(InvalidTransition):
            machine.dispatch(SetConnected(account=ACCOUNT))
        assert seen == []
