"""
Library commands.

Handles: database update, directory listing
"""

from typing import NamedTuple

import mpd

from mpd_minion.commands.executor import call
from mpd_minion.connector import Connector


class LibraryEntry(NamedTuple):
    """A directory or song file in the music library."""

    uri: str
    is_dir: bool

    @property
    def name(self) -> str:
        """Last path component, for display."""
        return self.uri.rsplit("/", 1)[-1]


def library_update(connector: Connector, path: str = "") -> tuple[bool, str]:
    """Start a database rescan of ``path`` (the whole library when empty)."""

    def run(client: mpd.MPDClient):
        return client.update(path) if path else client.update()

    ok, result = call(connector, run, "Failed to update the library")
    if not ok:
        return False, result
    return True, f"Library update started (job {result})"


def list_library(connector: Connector, path: str = "") -> tuple[bool, list[LibraryEntry] | str]:
    """
    List one library directory.

    Returns:
        (True, entries) with directories first, then files, each in server
        order; (False, error message) on failure. Stored playlists found in
        the directory are skipped.
    """
    ok, result = call(
        connector,
        lambda client: client.lsinfo(path) if path else client.lsinfo(),
        "Failed to list the library",
    )
    if not ok:
        return False, result

    dirs, files = [], []
    for item in result:
        if "directory" in item:
            dirs.append(LibraryEntry(item["directory"], True))
        elif "file" in item:
            files.append(LibraryEntry(item["file"], False))
    return True, dirs + files
