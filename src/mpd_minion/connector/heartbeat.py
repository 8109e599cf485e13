"""Heartbeat ticker: periodic wake-ups independent of server pushes."""

import threading
from typing import Callable, Optional

from loguru import logger


class HeartbeatTicker:
    """Calls ``tick`` every ``interval`` seconds until stopped.

    MPD never pushes the playback position, so the tick is what keeps
    ``elapsed`` fresh while the idle listener is blocked.
    """

    def __init__(self, interval: float, tick: Callable[[], None], name: str = "mpd-heartbeat"):
        self._interval = interval
        self._tick = tick
        self._name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, daemon=True, name=self._name)
        self._thread.start()

    def stop(self) -> None:
        """Stop ticking once the current tick, if any, completes."""
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for an in-progress tick to finish. Returns True if the thread has exited."""
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout)
        return not thread.is_alive()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                self._tick()
            except Exception:
                logger.exception(f"{self._name} tick failed")
