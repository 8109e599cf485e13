"""
A single live MPD session built on python-mpd2.

The idle wait is the client's own blocking ``idle()`` call. Another thread
ends it early by writing ``noidle`` straight onto the session socket; the
server answers with an empty idle response, which the parked ``idle()`` call
reads and returns. MPD ignores a ``noidle`` that arrives outside an idle
wait, so an interrupt that races with a real change is harmless.
"""

import os
import socket
from typing import Any, Sequence

import mpd
from loguru import logger

from mpd_minion.core.config import ConnectionConfig

NOIDLE = b"noidle\n"


def _disconnect_quietly(client: mpd.MPDClient) -> None:
    try:
        client.disconnect()
    except (mpd.ConnectionError, OSError) as e:
        logger.debug(f"Ignoring error while disconnecting: {e}")


class Session:
    """An established, authenticated connection to the server."""

    def __init__(self, client: mpd.MPDClient, address: str):
        self._client = client
        self.address = address
        self._closed = False
        self._idling = False

    @classmethod
    def open(cls, config: ConnectionConfig) -> "Session":
        """Connect and authenticate.

        Raises:
            mpd.ConnectionError, OSError: If the server cannot be reached
            mpd.CommandError: If the password is rejected
        """
        client = mpd.MPDClient()
        client.timeout = config.timeout
        # Idle waits block until a change or a noidle
        client.idletimeout = None
        client.connect(config.host, config.port)
        try:
            if config.password:
                client.password(config.password)
        except Exception:
            _disconnect_quietly(client)
            raise

        logger.debug(f"Connected to MPD {client.mpd_version} at {config.address}")
        return cls(client, config.address)

    @property
    def client(self) -> mpd.MPDClient:
        return self._client

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def idling(self) -> bool:
        """True while a thread is parked in idle()."""
        return self._idling

    def fetch_status(self) -> dict[str, Any]:
        return self._client.status()

    def idle(self, subsystems: Sequence[str]) -> list[str]:
        """Wait for subsystem changes or an interrupt.

        Returns:
            Changed subsystem names; empty when interrupted without changes
        """
        self._idling = True
        try:
            return self._client.idle(*subsystems)
        finally:
            self._idling = False

    def interrupt(self) -> bool:
        """Send ``noidle`` if a thread is parked in idle().

        Returns:
            True if the request was written
        """
        if self._closed or not self._idling:
            return False
        try:
            os.write(self._client.fileno(), NOIDLE)
        except (mpd.ConnectionError, OSError) as e:
            logger.debug(f"Could not interrupt idle wait: {e}")
            return False
        return True

    def abort(self) -> None:
        """Shut the socket down so a blocked read fails at once."""
        if self._closed:
            return
        try:
            with socket.socket(fileno=os.dup(self._client.fileno())) as sock:
                sock.shutdown(socket.SHUT_RDWR)
        except (mpd.ConnectionError, OSError) as e:
            logger.debug(f"Ignoring error while aborting session: {e}")

    def close(self) -> None:
        """Disconnect from the server. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        _disconnect_quietly(self._client)
        logger.debug(f"Session to {self.address} closed")
