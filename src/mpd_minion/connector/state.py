"""
Connection state machine.

Disconnected -> Connecting -> Connected -> (Reconnecting -> Connecting) | Stopped
"""

import threading
import time
from enum import Enum
from typing import Iterable, Optional

from loguru import logger

from mpd_minion.connector.errors import InvalidTransitionError


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    STOPPED = "stopped"


ALLOWED_TRANSITIONS: dict[ConnectionState, frozenset[ConnectionState]] = {
    ConnectionState.DISCONNECTED: frozenset({ConnectionState.CONNECTING}),
    ConnectionState.CONNECTING: frozenset(
        {ConnectionState.CONNECTED, ConnectionState.RECONNECTING}
    ),
    ConnectionState.CONNECTED: frozenset({ConnectionState.RECONNECTING}),
    ConnectionState.RECONNECTING: frozenset({ConnectionState.CONNECTING}),
    ConnectionState.STOPPED: frozenset(),
}


class ConnectionStateMachine:
    """Holds the single active ConnectionState.

    All transitions go through transition(), which serializes them. Any state
    may move to STOPPED; STOPPED itself is terminal.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._state = ConnectionState.DISCONNECTED

    @property
    def state(self) -> ConnectionState:
        with self._cond:
            return self._state

    @property
    def is_stopped(self) -> bool:
        return self.state is ConnectionState.STOPPED

    def transition(self, target: ConnectionState) -> bool:
        """Move to the target state.

        Returns:
            True if the state changed, False if the machine is already stopped
            (a late transition racing with stop() is simply refused)

        Raises:
            InvalidTransitionError: If the transition is not allowed
        """
        with self._cond:
            current = self._state
            if current is ConnectionState.STOPPED:
                return False
            if target is not ConnectionState.STOPPED and (
                target not in ALLOWED_TRANSITIONS[current]
            ):
                raise InvalidTransitionError(current, target)
            self._state = target
            self._cond.notify_all()

        logger.debug(f"Connection state: {current.value} -> {target.value}")
        return True

    def wait_for(
        self, states: Iterable[ConnectionState], timeout: Optional[float] = None
    ) -> bool:
        """Block until one of the given states is active.

        Returns:
            True if a wanted state was reached, False on timeout
        """
        wanted = frozenset(states)
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while self._state not in wanted:
                if deadline is None:
                    self._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._cond.wait(remaining)
            return True
