"""
Notification hooks and their dispatch.

Background threads never call hooks directly. They post typed events to a
single dispatcher thread, which hands each event to a Scheduler. A GUI passes
a scheduler that marshals callbacks onto its main loop; the default runs them
right on the dispatcher thread. Either way, hooks of one connector are never
invoked concurrently or re-entrantly.
"""

import queue
import threading
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable, Optional, Protocol

from loguru import logger

from mpd_minion.connector.status import Subsystem


class ConnectorHooks:
    """Receiver of connector notifications. Override what you need."""

    def on_connected(self) -> None:
        """A new Connected period began; refresh everything."""

    def on_heartbeat(self) -> None:
        """Periodic tick; status (elapsed time) has just been refreshed."""

    def on_subsystem_changed(self, subsystem: Subsystem) -> None:
        """A server subsystem changed; status has already been refreshed."""


class Scheduler(Protocol):
    """Runs callbacks on the presentation layer's thread."""

    def call_soon(self, callback: Callable[[], None]) -> None: ...


class ImmediateScheduler:
    """Runs callbacks inline, on the dispatcher thread."""

    def call_soon(self, callback: Callable[[], None]) -> None:
        callback()


class EventKind(Enum):
    CONNECTED = "connected"
    HEARTBEAT = "heartbeat"
    SUBSYSTEM_CHANGED = "subsystem_changed"


@dataclass(frozen=True)
class ConnectorEvent:
    kind: EventKind
    period: int  # Connected period the event belongs to
    subsystem: Optional[Subsystem] = None


class HookDispatcher:
    """Single consumer of connector events, delivering them in FIFO order.

    Events are dropped once the dispatcher is stopped, and when their
    Connected period is no longer current (checked both when dequeued and
    right before the hook runs).
    """

    def __init__(
        self,
        hooks: ConnectorHooks,
        scheduler: Scheduler,
        is_current: Callable[[int], bool],
        name: str = "mpd-hooks",
    ):
        self._hooks = hooks
        self._scheduler = scheduler
        self._is_current = is_current
        self._name = name
        self._queue: "queue.Queue[Optional[ConnectorEvent]]" = queue.Queue()
        self._deliver_lock = threading.Lock()
        self._active = True
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, daemon=True, name=self._name)
        self._thread.start()

    def post(self, event: ConnectorEvent) -> None:
        if self._active:
            self._queue.put(event)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Drop all pending and future events and end the dispatcher thread."""
        self._active = False
        self._queue.put(None)
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _should_deliver(self, event: ConnectorEvent) -> bool:
        return self._active and self._is_current(event.period)

    def _run(self) -> None:
        while True:
            event = self._queue.get()
            if event is None:
                break
            if not self._should_deliver(event):
                logger.debug(f"Dropping stale {event.kind.value} event (period {event.period})")
                continue
            try:
                self._scheduler.call_soon(partial(self._deliver, event))
            except Exception:
                logger.exception(f"Scheduler rejected {event.kind.value} event")

    def _deliver(self, event: ConnectorEvent) -> None:
        with self._deliver_lock:
            if not self._should_deliver(event):
                return
            try:
                if event.kind is EventKind.CONNECTED:
                    self._hooks.on_connected()
                elif event.kind is EventKind.HEARTBEAT:
                    self._hooks.on_heartbeat()
                else:
                    self._hooks.on_subsystem_changed(event.subsystem)
            except Exception:
                logger.exception(f"Hook for {event.kind.value} event failed")
