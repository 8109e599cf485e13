"""
Idle listener: turns MPD's blocking ``idle`` command into change notifications.
"""

import threading
from typing import Callable, Mapping, Optional

from loguru import logger

from mpd_minion.connector.errors import TRANSPORT_ERRORS
from mpd_minion.connector.gateway import CommandGateway
from mpd_minion.connector.status import IDLE_SUBSYSTEMS, Subsystem, parse_subsystems


class IdleListener:
    """Background loop for one Connected period.

    Each iteration claims the transport from the gateway, waits for changes,
    refreshes the status snapshot if anything changed (while still owning the
    transport), gives the transport back and reports each changed subsystem.
    A wake without changes (gateway interrupt) is absorbed silently.
    """

    def __init__(
        self,
        gateway: CommandGateway,
        on_status: Callable[[Mapping[str, str]], None],
        on_change: Callable[[Subsystem], None],
        name: str = "mpd-idle",
    ):
        """
        Args:
            gateway: Gateway that owns the session
            on_status: Receives each refreshed status response
            on_change: Called once per changed subsystem, after the refresh
            name: Thread name
        """
        self._gateway = gateway
        self._on_status = on_status
        self._on_change = on_change
        self._name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, daemon=True, name=self._name)
        self._thread.start()

    def stop(self) -> None:
        """Prevent any further notifications. The loop itself ends once the
        gateway withdraws the session."""
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the loop to exit. Returns True if it has."""
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout)
        return not thread.is_alive()

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        logger.debug(f"{self._name} started")
        try:
            while not self._stop_event.is_set():
                session = self._gateway.claim_for_idle()
                if session is None:
                    break

                lost = False
                changes: list[Subsystem] = []
                try:
                    changes = parse_subsystems(session.idle(IDLE_SUBSYSTEMS))
                    if changes:
                        self._on_status(session.fetch_status())
                except TRANSPORT_ERRORS as e:
                    if not self._stop_event.is_set():
                        logger.info(f"Connection lost while idling: {e}")
                    lost = True
                except Exception:
                    # The session's state is unknown; force a reconnect
                    logger.exception("Unexpected error while idling")
                    lost = True
                finally:
                    self._gateway.finish_idle(session, lost=lost)

                if lost:
                    break

                for subsystem in changes:
                    if self._stop_event.is_set():
                        break
                    self._on_change(subsystem)
        except Exception:
            logger.exception(f"{self._name} crashed")
        finally:
            logger.debug(f"{self._name} exited")
