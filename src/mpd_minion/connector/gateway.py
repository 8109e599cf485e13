"""
Command gateway: serialized access to the single MPD session.

The idle listener keeps the session parked in a blocking ``idle`` wait most of
the time, so running a command means taking the transport away from it first.
Ownership is tracked by a small state machine guarded by one condition
variable:

    IDLING         listener owns the transport (idle wait or status refresh)
    INTERRUPTING   a caller asked the listener to give the transport up
    EXECUTING      a caller owns the transport
    RESUMING_IDLE  nobody is using the transport; the listener may reclaim it

Caller:   RESUMING_IDLE -> EXECUTING, or IDLING -> INTERRUPTING (+ noidle) and
          wait for the listener to acknowledge with EXECUTING.
Listener: RESUMING_IDLE -> IDLING, INTERRUPTING -> EXECUTING (acknowledge),
          IDLING -> RESUMING_IDLE once its I/O is done.
Release:  EXECUTING -> RESUMING_IDLE.

Only the owner performs I/O, so idle-wait bytes and command bytes can never
interleave on the wire. The one exception is ``noidle`` itself, which is only
written while the listener is parked in the idle read.
"""

import threading
import time
from enum import Enum
from typing import Callable, Optional, TypeVar

import mpd
from loguru import logger

from mpd_minion.connector.errors import (
    TRANSPORT_ERRORS,
    ConnectionLostError,
    GatewayReentryError,
)
from mpd_minion.connector.session import Session

T = TypeVar("T")

# Seconds between noidle retries while an interrupt is unacknowledged
INTERRUPT_RETRY = 0.05


class Phase(Enum):
    IDLING = "idling"
    INTERRUPTING = "interrupting"
    EXECUTING = "executing"
    RESUMING_IDLE = "resuming_idle"


class CommandGateway:
    """Owns the live Session and hands it out one user at a time."""

    def __init__(self, on_lost: Callable[[], None], interrupt_timeout: Optional[float] = None):
        """
        Args:
            on_lost: Called (outside any lock) the first time a transport
                failure is detected on the attached session
            interrupt_timeout: Seconds a caller waits for the listener to
                leave the idle wait before the session is given up; None
                waits forever
        """
        self._on_lost = on_lost
        self._interrupt_timeout = interrupt_timeout
        self._cond = threading.Condition()
        self._command_lock = threading.Lock()
        self._session: Optional[Session] = None
        self._phase = Phase.RESUMING_IDLE
        self._closing = False
        self._listener_io = False
        self._caller_holds = False
        self._owner: Optional[threading.Thread] = None

    # Lifecycle

    def attach(self, session: Session) -> None:
        """Make a freshly opened session available."""
        with self._cond:
            self._session = session
            self._phase = Phase.RESUMING_IDLE
            self._closing = False
            self._listener_io = False
            self._caller_holds = False
            self._cond.notify_all()

    def detach(self, timeout: float) -> None:
        """Withdraw the session and close it.

        Interrupts the idle listener and waits up to ``timeout`` for it to
        leave the transport; after that the socket is shut down underneath
        it. A command still executing is not waited for; its caller closes
        the session on release.
        """
        with self._cond:
            session = self._session
            if session is None:
                return
            self._closing = True
            self._cond.notify_all()

            deadline = time.monotonic() + timeout
            while self._listener_io:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                session.interrupt()
                self._cond.wait(min(remaining, INTERRUPT_RETRY))

            if self._listener_io:
                logger.warning("Idle listener did not release the session in time")
                session.abort()
                self._cond.wait(INTERRUPT_RETRY)
            elif self._caller_holds:
                return
            self._close_locked()

    @property
    def is_attached(self) -> bool:
        with self._cond:
            return self._session is not None and not self._closing

    @property
    def phase(self) -> Phase:
        with self._cond:
            return self._phase

    # Caller side

    def with_session(self, fn: Callable[[mpd.MPDClient], T]) -> tuple[bool, Optional[T]]:
        """Run ``fn`` with exclusive access to the session.

        Args:
            fn: Receives the MPDClient. May issue several commands or a
                command list; keep it short, the idle listener is blocked
                until it returns.

        Returns:
            (attempted, result): (False, None) without calling ``fn`` when not
            connected, otherwise (True, whatever ``fn`` returned)

        Raises:
            ConnectionLostError: If the transport failed while ``fn`` ran, or
                the idle wait could not be interrupted in time
            GatewayReentryError: If called from inside ``fn``
            Any other exception raised by ``fn`` (e.g. mpd.CommandError)
        """
        if self._owner is threading.current_thread():
            raise GatewayReentryError("with_session() called from inside a session function")

        with self._command_lock:
            session = self._acquire()
            if session is None:
                return False, None

            self._owner = threading.current_thread()
            try:
                result = fn(session.client)
            except TRANSPORT_ERRORS as e:
                self._release(session, lost=True)
                raise ConnectionLostError(f"Connection to {session.address} lost: {e}") from e
            except BaseException:
                self._release(session)
                raise
            self._release(session)
            return True, result

    def _acquire(self) -> Optional[Session]:
        deadline: Optional[float] = None
        with self._cond:
            while True:
                session = self._session
                if session is None or self._closing:
                    return None
                if self._phase is Phase.EXECUTING:
                    # Acknowledged by the listener (we hold the command lock)
                    self._caller_holds = True
                    return session
                if self._phase is Phase.RESUMING_IDLE:
                    self._phase = Phase.EXECUTING
                    self._caller_holds = True
                    return session

                if self._phase is Phase.IDLING:
                    self._phase = Phase.INTERRUPTING
                    if self._interrupt_timeout is not None:
                        deadline = time.monotonic() + self._interrupt_timeout
                elif deadline is not None and time.monotonic() >= deadline:
                    self._closing = True
                    self._cond.notify_all()
                    break
                # Repeated until acknowledged: a noidle that reaches the
                # server before the idle command is ignored
                session.interrupt()
                self._cond.wait(INTERRUPT_RETRY)

        logger.warning(f"Idle wait on {session.address} did not end; giving up the session")
        session.abort()
        self._on_lost()
        raise ConnectionLostError(f"Connection to {session.address} lost: idle wait did not end")

    def _release(self, session: Session, lost: bool = False) -> None:
        report_lost = False
        with self._cond:
            self._owner = None
            self._caller_holds = False
            if self._session is session:
                if lost and not self._closing:
                    self._closing = True
                    report_lost = True
                if self._closing:
                    self._close_locked()
                else:
                    self._phase = Phase.RESUMING_IDLE
            self._cond.notify_all()

        if report_lost:
            self._on_lost()

    # Listener side

    def claim_for_idle(self) -> Optional[Session]:
        """Block until the listener may own the transport.

        Acknowledges pending interrupts along the way.

        Returns:
            The session, or None once it is withdrawn (listener must exit)
        """
        with self._cond:
            while True:
                if self._session is None or self._closing:
                    return None
                if self._phase is Phase.INTERRUPTING:
                    self._phase = Phase.EXECUTING
                    self._cond.notify_all()
                elif self._phase is Phase.RESUMING_IDLE:
                    self._phase = Phase.IDLING
                    self._listener_io = True
                    return self._session
                self._cond.wait()

    def finish_idle(self, session: Session, lost: bool = False) -> None:
        """Return the transport after an idle wait (and status refresh)."""
        report_lost = False
        with self._cond:
            if self._session is session:
                self._listener_io = False
                if lost and not self._closing:
                    self._closing = True
                    report_lost = True
                if self._phase is Phase.IDLING:
                    self._phase = Phase.RESUMING_IDLE
            self._cond.notify_all()

        if report_lost:
            self._on_lost()

    def _close_locked(self) -> None:
        session = self._session
        self._session = None
        self._phase = Phase.RESUMING_IDLE
        self._listener_io = False
        self._caller_holds = False
        self._cond.notify_all()
        if session is not None:
            session.close()
