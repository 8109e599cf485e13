"""
Connector: the composition root that keeps one MPD session alive.

Owns the connection state machine, the command gateway, the idle listener,
the heartbeat ticker, the status cache and the hook dispatcher. The
presentation layer talks to it through start()/stop(), status(),
with_session() and playlists(), and listens through ConnectorHooks.
"""

import threading
from functools import partial
from typing import Callable, Mapping, Optional, TypeVar

import mpd
from loguru import logger

from mpd_minion.connector.errors import (
    ConnectionLostError,
    ConnectorError,
    ConnectorStoppedError,
    NotConnectedError,
)
from mpd_minion.connector.gateway import CommandGateway
from mpd_minion.connector.heartbeat import HeartbeatTicker
from mpd_minion.connector.hooks import (
    ConnectorEvent,
    ConnectorHooks,
    EventKind,
    HookDispatcher,
    ImmediateScheduler,
    Scheduler,
)
from mpd_minion.connector.idle import IdleListener
from mpd_minion.connector.session import Session
from mpd_minion.connector.state import ConnectionState, ConnectionStateMachine
from mpd_minion.connector.status import StatusCache, Subsystem
from mpd_minion.core.config import ConnectionConfig

T = TypeVar("T")


class Connector:
    """Keeps a session to one MPD server and reconnects when it drops.

    Example:
        connector = Connector(ConnectionConfig(host="music.lan"), hooks=MyHooks())
        connector.start()
        ...
        attempted, _ = connector.with_session(lambda client: client.next())
        ...
        connector.stop()
    """

    def __init__(
        self,
        config: ConnectionConfig,
        hooks: Optional[ConnectorHooks] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        """
        Args:
            config: Connection settings (read once, never re-read)
            hooks: Notification receiver; defaults to a no-op receiver
            scheduler: Where hooks run; defaults to the dispatcher thread

        Raises:
            ValueError: If the configuration is invalid
        """
        config.validate()
        self._config = config
        self._machine = ConnectionStateMachine()
        self._status = StatusCache()
        self._gateway = CommandGateway(
            on_lost=self._on_connection_lost, interrupt_timeout=config.timeout
        )
        self._dispatcher = HookDispatcher(
            hooks or ConnectorHooks(),
            scheduler or ImmediateScheduler(),
            is_current=self._is_current_period,
        )

        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._lost_event = threading.Event()
        self._period = 0
        self._listener: Optional[IdleListener] = None
        self._ticker: Optional[HeartbeatTicker] = None
        self._supervisor: Optional[threading.Thread] = None

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    @property
    def state(self) -> ConnectionState:
        return self._machine.state

    @property
    def period(self) -> int:
        """Number of the current (or last) Connected period, 0 before the first."""
        return self._period

    # Lifecycle

    def start(self) -> None:
        """Begin connecting in the background. No-op if already running.

        Raises:
            ConnectorStoppedError: If the connector was stopped; build a new one
        """
        with self._lock:
            if self._machine.is_stopped:
                raise ConnectorStoppedError("Connector was stopped; create a new instance")
            if self._supervisor is not None:
                return
            self._dispatcher.start()
            self._supervisor = threading.Thread(
                target=self._supervise, daemon=True, name="mpd-connector"
            )
            self._supervisor.start()

        logger.info(f"Connector started for {self._config.address}")

    def stop(self) -> None:
        """Shut down: cancel loops and retries, close the session.

        Returns after a brief wait for the background threads. Does not wait
        for a command another thread is executing, but no new command starts.
        Safe to call from a hook.
        """
        if not self._machine.transition(ConnectionState.STOPPED):
            return

        logger.info("Stopping connector")
        self._stop_event.set()
        self._lost_event.set()
        self._dispatcher.stop(timeout=self._config.heartbeat_interval)
        self._teardown_period()

        supervisor = self._supervisor
        if supervisor is not None and supervisor is not threading.current_thread():
            supervisor.join(self._config.heartbeat_interval)

    def is_connected(self) -> bool:
        return self._machine.state is ConnectionState.CONNECTED and self._gateway.is_attached

    def wait_until_connected(self, timeout: Optional[float] = None) -> bool:
        """Block until connected (True) or stopped / timed out (False)."""
        self._machine.wait_for(
            (ConnectionState.CONNECTED, ConnectionState.STOPPED), timeout
        )
        return self.is_connected()

    # Command surface

    def status(self) -> Mapping[str, str]:
        """Last known server status; empty when never or no longer connected."""
        return self._status.snapshot()

    def with_session(self, fn: Callable[[mpd.MPDClient], T]) -> tuple[bool, Optional[T]]:
        """Run ``fn`` with exclusive use of the session.

        Returns:
            (attempted, result); (False, None) and ``fn`` not called when not
            connected

        Raises:
            ConnectionLostError: If the transport failed (reconnect is scheduled)
            mpd.CommandError: If the server rejected a command
        """
        return self._gateway.with_session(fn)

    def playlists(self, strict: bool = False) -> list[str]:
        """Names of the stored playlists, in server order.

        Args:
            strict: Raise instead of returning an empty list when not
                connected or when the query fails

        Raises:
            NotConnectedError: strict only
            ConnectorError, mpd.MPDError: strict only
        """
        try:
            attempted, names = self._gateway.with_session(
                lambda client: [entry["playlist"] for entry in client.listplaylists()]
            )
        except (ConnectorError, mpd.MPDError) as e:
            if strict:
                raise
            logger.warning(f"Failed to list playlists: {e}")
            return []

        if not attempted:
            if strict:
                raise NotConnectedError()
            return []
        return names

    # Supervisor

    def _supervise(self) -> None:
        interval = self._config.reconnect_interval
        try:
            while not self._stop_event.is_set():
                if not self._machine.transition(ConnectionState.CONNECTING):
                    break

                session = self._open_session()
                if session is None:
                    if not self._machine.transition(ConnectionState.RECONNECTING):
                        break
                    self._stop_event.wait(interval)
                    continue

                self._run_period(session)
                if self._stop_event.is_set():
                    break
                self._stop_event.wait(interval)
        except Exception:
            logger.exception("Connector supervisor crashed")
        finally:
            logger.debug("Connector supervisor exited")

    def _open_session(self) -> Optional[Session]:
        """Handshake and fetch the initial status. None on failure."""
        session = None
        try:
            session = Session.open(self._config)
            status = session.fetch_status()
        except mpd.CommandError as e:
            logger.warning(f"MPD at {self._config.address} refused the connection: {e}")
        except (mpd.MPDError, OSError) as e:
            logger.debug(f"Connection attempt to {self._config.address} failed: {e}")
        else:
            self._status.replace(status)
            return session

        if session is not None:
            session.close()
        return None

    def _run_period(self, session: Session) -> None:
        """Run one Connected period until the session is lost or stopped."""
        interval = self._config.heartbeat_interval
        with self._lock:
            if self._stop_event.is_set():
                session.close()
                return
            self._period += 1
            period = self._period
            self._lost_event.clear()
            self._gateway.attach(session)
            if not self._machine.transition(ConnectionState.CONNECTED):
                self._gateway.detach(timeout=interval)
                return

            logger.info(f"Connected to MPD at {self._config.address} (period {period})")
            self._dispatcher.post(ConnectorEvent(EventKind.CONNECTED, period))
            self._listener = IdleListener(
                self._gateway,
                on_status=partial(self._replace_status, period),
                on_change=partial(self._post_change, period),
                name=f"mpd-idle-{period}",
            )
            self._ticker = HeartbeatTicker(
                interval, partial(self._heartbeat, period), name=f"mpd-heartbeat-{period}"
            )
            self._listener.start()
            self._ticker.start()

        self._lost_event.wait()
        if self._stop_event.is_set():
            return

        logger.info(f"Connection to MPD at {self._config.address} lost; reconnecting")
        if self._machine.transition(ConnectionState.RECONNECTING):
            self._teardown_period()

    def _teardown_period(self) -> None:
        """Stop the period's loops, close the session, clear the status.

        Idempotent; used both by the supervisor and by stop().
        """
        interval = self._config.heartbeat_interval
        with self._lock:
            listener, ticker = self._listener, self._ticker
            self._listener = None
            self._ticker = None

        if ticker is not None:
            ticker.stop()
        if listener is not None:
            listener.stop()
        self._gateway.detach(timeout=interval)
        if listener is not None:
            listener.join(interval)
        if ticker is not None:
            ticker.join(interval)
        with self._lock:
            self._status.clear()

    # Background callbacks

    def _is_current_period(self, period: int) -> bool:
        return self._machine.state is ConnectionState.CONNECTED and self._period == period

    def _replace_status(self, period: int, status: Mapping[str, str]) -> bool:
        """Publish a status response unless its period has ended."""
        with self._lock:
            if not self._is_current_period(period):
                return False
            self._status.replace(status)
            return True

    def _on_connection_lost(self) -> None:
        self._lost_event.set()

    def _post_change(self, period: int, subsystem: Subsystem) -> None:
        logger.debug(f"Subsystem changed: {subsystem}")
        self._dispatcher.post(ConnectorEvent(EventKind.SUBSYSTEM_CHANGED, period, subsystem))

    def _heartbeat(self, period: int) -> None:
        try:
            attempted, status = self._gateway.with_session(lambda client: client.status())
        except ConnectionLostError as e:
            logger.debug(f"Heartbeat status refresh failed: {e}")
            return
        except mpd.MPDError as e:
            logger.warning(f"Heartbeat status refresh failed: {e}")
            return

        if not attempted or not self._replace_status(period, status):
            return
        self._dispatcher.post(ConnectorEvent(EventKind.HEARTBEAT, period))
