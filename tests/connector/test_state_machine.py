"""Tests for the connection state machine."""

import threading

import pytest

from mpd_minion.connector.errors import InvalidTransitionError
from mpd_minion.connector.state import ConnectionState, ConnectionStateMachine


@pytest.fixture
def machine() -> ConnectionStateMachine:
    return ConnectionStateMachine()


class TestTransitions:
    """Tests for allowed and refused transitions."""

    def test_starts_disconnected(self, machine):
        assert machine.state is ConnectionState.DISCONNECTED
        assert not machine.is_stopped

    def test_connect_lose_reconnect_cycle(self, machine):
        for target in (
            ConnectionState.CONNECTING,
            ConnectionState.CONNECTED,
            ConnectionState.RECONNECTING,
            ConnectionState.CONNECTING,
            ConnectionState.RECONNECTING,
            ConnectionState.CONNECTING,
            ConnectionState.CONNECTED,
        ):
            assert machine.transition(target) is True
            assert machine.state is target

    def test_disconnected_cannot_jump_to_connected(self, machine):
        with pytest.raises(InvalidTransitionError) as exc_info:
            machine.transition(ConnectionState.CONNECTED)

        assert exc_info.value.current is ConnectionState.DISCONNECTED
        assert exc_info.value.target is ConnectionState.CONNECTED
        assert machine.state is ConnectionState.DISCONNECTED

    def test_connected_cannot_go_back_to_connecting(self, machine):
        machine.transition(ConnectionState.CONNECTING)
        machine.transition(ConnectionState.CONNECTED)

        with pytest.raises(InvalidTransitionError):
            machine.transition(ConnectionState.CONNECTING)

    @pytest.mark.parametrize(
        "path",
        [
            [],
            [ConnectionState.CONNECTING],
            [ConnectionState.CONNECTING, ConnectionState.CONNECTED],
            [ConnectionState.CONNECTING, ConnectionState.RECONNECTING],
        ],
    )
    def test_any_state_can_stop(self, machine, path):
        for target in path:
            machine.transition(target)

        assert machine.transition(ConnectionState.STOPPED) is True
        assert machine.is_stopped

    def test_stopped_is_terminal(self, machine):
        machine.transition(ConnectionState.STOPPED)

        assert machine.transition(ConnectionState.CONNECTING) is False
        assert machine.transition(ConnectionState.STOPPED) is False
        assert machine.state is ConnectionState.STOPPED


class TestWaitFor:
    """Tests for blocking on a state."""

    def test_returns_immediately_when_already_in_state(self, machine):
        assert machine.wait_for([ConnectionState.DISCONNECTED], timeout=0.01)

    def test_times_out(self, machine):
        assert machine.wait_for([ConnectionState.CONNECTED], timeout=0.05) is False

    def test_wakes_on_transition_from_other_thread(self, machine):
        def advance():
            machine.transition(ConnectionState.CONNECTING)
            machine.transition(ConnectionState.CONNECTED)

        timer = threading.Timer(0.05, advance)
        timer.start()
        try:
            assert machine.wait_for([ConnectionState.CONNECTED], timeout=2.0)
        finally:
            timer.join()
