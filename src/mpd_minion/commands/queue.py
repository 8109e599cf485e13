"""
Play queue commands.

Handles: add, load playlist, clear, delete, shuffle, sort, save to playlist
"""

from typing import Any, Iterable, Optional

import mpd

from mpd_minion.commands.executor import command_list, execute
from mpd_minion.connector import Connector
from mpd_minion.utils import atoi_def, first_value, parse_float_def

# Sort mode name -> (song attribute, numeric comparison)
QUEUE_SORT_MODES: dict[str, tuple[str, bool]] = {
    "artist": ("artist", False),
    "album": ("album", False),
    "title": ("title", False),
    "track": ("track", True),
    "duration": ("duration", True),
    "file": ("file", False),
    "date": ("date", True),
    "genre": ("genre", False),
}


def queue_uris(connector: Connector, uris: list[str], replace: bool = False) -> tuple[bool, str]:
    """Append URIs to the queue, or replace the queue with them."""
    commands = [("clear", ())] if replace else []
    commands += [("add", (uri,)) for uri in uris]

    return execute(
        connector,
        lambda client: command_list(client, commands),
        "Failed to add track(s) to the queue",
        f"{'Replaced queue with' if replace else 'Queued'} {len(uris)} track(s)",
    )


def queue_playlist(connector: Connector, name: str, replace: bool = False) -> tuple[bool, str]:
    """Append a stored playlist to the queue, or replace the queue with it."""
    commands = [("clear", ())] if replace else []
    commands.append(("load", (name,)))

    return execute(
        connector,
        lambda client: command_list(client, commands),
        "Failed to add playlist to the queue",
        f"{'Replaced queue with' if replace else 'Queued'} playlist '{name}'",
    )


def queue_clear(connector: Connector) -> tuple[bool, str]:
    return execute(
        connector, lambda client: client.clear(), "Failed to clear the queue", "Queue cleared"
    )


def queue_delete(connector: Connector, indices: Iterable[int]) -> tuple[bool, str]:
    """Remove songs at the given queue positions.

    Positions are deleted highest first so earlier deletions don't shift the
    ones still pending.
    """
    positions = sorted(set(indices), reverse=True)
    if not positions:
        return False, "No tracks selected"

    return execute(
        connector,
        lambda client: command_list(client, [("delete", (pos,)) for pos in positions]),
        "Failed to delete tracks from the queue",
        f"Removed {len(positions)} track(s) from the queue",
    )


def queue_shuffle(connector: Connector) -> tuple[bool, str]:
    return execute(
        connector, lambda client: client.shuffle(), "Failed to shuffle the queue", "Queue shuffled"
    )


def _sort_key(attr: str, numeric: bool):
    def key(song: dict[str, Any]) -> Any:
        value = first_value(song.get(attr))
        if numeric:
            # "3/12" style track numbers sort by the leading number
            return parse_float_def(str(value).split("/")[0], 0.0)
        return "" if value is None else str(value)

    return key


def queue_sort(
    connector: Connector, attr: str, numeric: bool = False, descending: bool = False
) -> tuple[bool, str]:
    """
    Reorder the queue by a song attribute.

    The sort is stable, so songs with equal values keep their relative order
    (also when descending).

    Args:
        connector: Connector owning the session
        attr: Song attribute as reported by playlistinfo, e.g. "artist"
        numeric: Compare values as numbers instead of strings
        descending: Reverse the order
    """

    def run(client: mpd.MPDClient) -> None:
        songs = sorted(client.playlistinfo(), key=_sort_key(attr, numeric), reverse=descending)
        moves: list[tuple[str, tuple]] = []
        for index, song in enumerate(songs):
            song_id = atoi_def(song.get("id"), -1)
            if song_id < 0:
                raise ValueError(f"invalid song id {song.get('id')!r} for {song.get('file')}")
            moves.append(("moveid", (song_id, index)))
        command_list(client, moves)

    try:
        return execute(connector, run, "Failed to sort the queue", f"Queue sorted by {attr}")
    except ValueError as e:
        return False, f"Failed to sort the queue: {e}"


def queue_sort_by_mode(
    connector: Connector, mode: str, descending: bool = False
) -> tuple[bool, str]:
    """Sort using one of the QUEUE_SORT_MODES names."""
    if mode not in QUEUE_SORT_MODES:
        return False, f"Unknown sort mode '{mode}'. Available: {', '.join(QUEUE_SORT_MODES)}"

    attr, numeric = QUEUE_SORT_MODES[mode]
    return queue_sort(connector, attr, numeric=numeric, descending=descending)


def queue_save(
    connector: Connector,
    name: str,
    replace: bool = False,
    selected: Optional[list[int]] = None,
    is_new: bool = True,
) -> tuple[bool, str]:
    """
    Save the queue (or a selection of it) into a stored playlist.

    Args:
        connector: Connector owning the session
        name: Playlist name
        replace: Overwrite the playlist instead of appending to it
        selected: Queue positions to save; None or empty saves the whole queue
        is_new: The playlist does not exist yet (nothing to remove first)
    """
    if not name:
        return False, "Playlist name is required"

    def run(client: mpd.MPDClient) -> None:
        songs = client.playlistinfo()
        commands: list[tuple[str, tuple]] = []
        if replace and not is_new:
            commands.append(("rm", (name,)))

        if selected:
            for idx in selected:
                if not 0 <= idx < len(songs):
                    raise IndexError(f"queue position {idx} out of range")
                commands.append(("playlistadd", (name, songs[idx]["file"])))
        elif replace:
            commands.append(("save", (name,)))
        else:
            commands += [("playlistadd", (name, song["file"])) for song in songs]

        command_list(client, commands)

    try:
        return execute(
            connector, run, "Failed to create a playlist", f"Saved queue to playlist '{name}'"
        )
    except IndexError as e:
        return False, f"Failed to create a playlist: {e}"
