"""
Stored playlist commands.

Handles: rename, delete
"""

from mpd_minion.commands.executor import execute
from mpd_minion.connector import Connector


def playlist_rename(connector: Connector, old_name: str, new_name: str) -> tuple[bool, str]:
    if not new_name or new_name == old_name:
        return False, "New playlist name must differ from the current one"

    return execute(
        connector,
        lambda client: client.rename(old_name, new_name),
        "Failed to rename the playlist",
        f"Renamed playlist '{old_name}' to '{new_name}'",
    )


def playlist_delete(connector: Connector, name: str) -> tuple[bool, str]:
    return execute(
        connector,
        lambda client: client.rm(name),
        "Failed to delete the playlist",
        f"Deleted playlist '{name}'",
    )
