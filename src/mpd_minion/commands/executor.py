"""
Run collaborator commands through the connector and turn the outcome into
(success, message) tuples for the presentation layer.
"""

from typing import Any, Callable

import mpd
from loguru import logger

from mpd_minion.connector import Connector, ConnectorError

NOT_CONNECTED = "Not connected to MPD"


def call(
    connector: Connector, fn: Callable[[mpd.MPDClient], Any], failure: str
) -> tuple[bool, Any]:
    """
    Run ``fn`` in a command batch.

    Args:
        connector: Connector owning the session
        fn: Receives the MPDClient; its return value is passed through
        failure: Message prefix used when the batch fails

    Returns:
        (True, result of fn) on success, (False, error message) otherwise
    """
    try:
        attempted, result = connector.with_session(fn)
    except (ConnectorError, mpd.MPDError) as e:
        logger.warning(f"{failure}: {e}")
        return False, f"{failure}: {e}"

    if not attempted:
        return False, NOT_CONNECTED
    return True, result


def execute(
    connector: Connector,
    fn: Callable[[mpd.MPDClient], Any],
    failure: str,
    success: str,
) -> tuple[bool, str]:
    """Like call(), but reports ``success`` instead of the batch result."""
    ok, result = call(connector, fn, failure)
    if not ok:
        return False, result
    return True, success


def command_list(client: mpd.MPDClient, commands: list[tuple[str, tuple]]) -> list:
    """
    Send several commands as one ``command_list_ok_begin`` batch.

    Args:
        client: Client handed out by the connector
        commands: (command name, arguments) pairs, e.g. ("add", ("a.flac",))

    Returns:
        Per-command results; empty if ``commands`` is empty
    """
    if not commands:
        return []

    client.command_list_ok_begin()
    for name, args in commands:
        getattr(client, name)(*args)
    return client.command_list_end()
