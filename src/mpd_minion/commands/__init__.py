"""Collaborator commands - (success, message) wrappers around command batches."""

from .library import LibraryEntry, library_update, list_library
from .playback import (
    next_track,
    play_pause,
    previous_track,
    seek,
    stop_playback,
    toggle_consume,
    toggle_random,
    toggle_repeat,
)
from .playlists import playlist_delete, playlist_rename
from .queue import (
    QUEUE_SORT_MODES,
    queue_clear,
    queue_delete,
    queue_playlist,
    queue_save,
    queue_shuffle,
    queue_sort,
    queue_sort_by_mode,
    queue_uris,
)

__all__ = [
    # Library
    "LibraryEntry",
    "library_update",
    "list_library",
    # Playback
    "next_track",
    "play_pause",
    "previous_track",
    "seek",
    "stop_playback",
    "toggle_consume",
    "toggle_random",
    "toggle_repeat",
    # Playlists
    "playlist_delete",
    "playlist_rename",
    # Queue
    "QUEUE_SORT_MODES",
    "queue_clear",
    "queue_delete",
    "queue_playlist",
    "queue_save",
    "queue_shuffle",
    "queue_sort",
    "queue_sort_by_mode",
    "queue_uris",
]
