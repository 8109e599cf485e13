"""
Playback commands.

Handles: play/pause, next, previous, stop, random, repeat, consume, seek
"""

import mpd

from mpd_minion.commands.executor import call, execute
from mpd_minion.connector import Connector
from mpd_minion.connector import status as mpd_status
from mpd_minion.utils import format_time


def play_pause(connector: Connector) -> tuple[bool, str]:
    """Pause when playing, resume when paused, start playback when stopped."""

    def run(client: mpd.MPDClient) -> str:
        state = mpd_status.playback_state(connector.status())
        if state == "play":
            client.pause(1)
            return "Paused"
        if state == "pause":
            client.pause(0)
            return "Resumed"
        client.play()
        return "Playing"

    return call(connector, run, "Failed to toggle playback")


def next_track(connector: Connector) -> tuple[bool, str]:
    return execute(
        connector, lambda client: client.next(), "Failed to skip to the next track", "Next track"
    )


def previous_track(connector: Connector) -> tuple[bool, str]:
    return execute(
        connector,
        lambda client: client.previous(),
        "Failed to go back to the previous track",
        "Previous track",
    )


def stop_playback(connector: Connector) -> tuple[bool, str]:
    return execute(connector, lambda client: client.stop(), "Failed to stop playback", "Stopped")


def _toggle_option(connector: Connector, key: str) -> tuple[bool, str]:
    # Flip what the server last reported, not what the caller believes
    enable = not mpd_status.option_enabled(connector.status(), key)

    def run(client: mpd.MPDClient) -> None:
        getattr(client, key)(1 if enable else 0)

    return execute(
        connector,
        run,
        f"Failed to toggle {key} mode",
        f"{key.capitalize()} {'on' if enable else 'off'}",
    )


def toggle_random(connector: Connector) -> tuple[bool, str]:
    return _toggle_option(connector, mpd_status.RANDOM)


def toggle_repeat(connector: Connector) -> tuple[bool, str]:
    return _toggle_option(connector, mpd_status.REPEAT)


def toggle_consume(connector: Connector) -> tuple[bool, str]:
    return _toggle_option(connector, mpd_status.CONSUME)


def seek(connector: Connector, position: float) -> tuple[bool, str]:
    """Seek within the current song to an absolute position in seconds."""
    if position < 0:
        return False, f"Invalid position: {position}"

    return execute(
        connector,
        lambda client: client.seekcur(position),
        "Failed to seek",
        f"Seeked to {format_time(position)}",
    )
