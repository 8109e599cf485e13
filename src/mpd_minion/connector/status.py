"""
Server status cache and the subsystem tags reported by idle.

The status snapshot is a flat ``str -> str`` mapping exactly as MPD reports
it. Keys missing from the snapshot mean the feature is inactive, e.g. no
``updating_db`` key means no database update is running.
"""

import threading
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from loguru import logger

from mpd_minion.utils.parsers import atoi_def, parse_float_def


class Subsystem(str, Enum):
    """Server subsystems the idle listener subscribes to."""

    DATABASE = "database"  # Library contents changed
    UPDATE = "update"  # Database update started or finished
    STORED_PLAYLIST = "stored_playlist"
    PLAYLIST = "playlist"  # The play queue
    PLAYER = "player"
    OPTIONS = "options"  # random, repeat, consume, single...

    def __str__(self) -> str:
        return self.value


IDLE_SUBSYSTEMS = tuple(s.value for s in Subsystem)

# Status attributes consumed by this package; anything else MPD sends is kept
# in the snapshot but nothing reads it.
STATE = "state"
SONG = "song"
SONG_ID = "songid"
ELAPSED = "elapsed"
DURATION = "duration"
RANDOM = "random"
REPEAT = "repeat"
CONSUME = "consume"
SINGLE = "single"
VOLUME = "volume"
PLAYLIST_LENGTH = "playlistlength"
UPDATING_DB = "updating_db"
ERROR = "error"

STATUS_KEYS = frozenset(
    {
        STATE,
        SONG,
        SONG_ID,
        ELAPSED,
        DURATION,
        RANDOM,
        REPEAT,
        CONSUME,
        SINGLE,
        VOLUME,
        PLAYLIST_LENGTH,
        UPDATING_DB,
        ERROR,
    }
)

EMPTY_STATUS: Mapping[str, str] = MappingProxyType({})


def parse_subsystems(tags: Iterable[str]) -> list[Subsystem]:
    """Convert raw idle tags to Subsystems, dropping duplicates and unknowns.

    Order follows the server's response.
    """
    result: list[Subsystem] = []
    for tag in tags:
        try:
            subsystem = Subsystem(tag)
        except ValueError:
            logger.debug(f"Ignoring unknown idle subsystem: {tag!r}")
            continue
        if subsystem not in result:
            result.append(subsystem)
    return result


class StatusCache:
    """Last known server status, swapped wholesale on every refresh.

    Written by the connector's background threads, read from anywhere.
    Readers always get a complete read-only snapshot, possibly slightly stale.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot: Mapping[str, str] = EMPTY_STATUS

    def snapshot(self) -> Mapping[str, str]:
        """Return the current snapshot (never None)."""
        with self._lock:
            return self._snapshot

    def replace(self, status: Mapping[str, Any]) -> Mapping[str, str]:
        """Publish a new snapshot built from a raw status response."""
        snapshot = MappingProxyType({str(k): str(v) for k, v in status.items()})
        with self._lock:
            self._snapshot = snapshot
        return snapshot

    def clear(self) -> None:
        """Collapse to the empty snapshot (connection lost or stopped)."""
        with self._lock:
            self._snapshot = EMPTY_STATUS


# Snapshot accessors


def playback_state(status: Mapping[str, str]) -> str:
    """Return 'play', 'pause' or 'stop' ('stop' when unknown)."""
    return status.get(STATE, "stop")


def song_index(status: Mapping[str, str]) -> int:
    """Queue position of the current song, -1 when there is none."""
    return atoi_def(status.get(SONG), -1)


def elapsed_seconds(status: Mapping[str, str]) -> float:
    return parse_float_def(status.get(ELAPSED), 0.0)


def duration_seconds(status: Mapping[str, str]) -> Optional[float]:
    """Duration of the current song, None when the server does not know it."""
    if DURATION not in status:
        return None
    return parse_float_def(status[DURATION], 0.0)


def option_enabled(status: Mapping[str, str], key: str) -> bool:
    """Whether a boolean option such as random or repeat is on."""
    return status.get(key, "0") == "1"


def is_updating_db(status: Mapping[str, str]) -> bool:
    return UPDATING_DB in status
