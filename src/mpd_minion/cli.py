"""
MPD Minion CLI - Entry point

Connects to MPD, runs a single command and disconnects. ``watch`` stays
connected and prints change notifications until interrupted.
"""

import argparse
import sys
import threading
from dataclasses import replace
from typing import Callable, Optional

from mpd_minion import commands
from mpd_minion.connector import Connector, ConnectorHooks, Subsystem
from mpd_minion.connector import status as mpd_status
from mpd_minion.core import (
    ensure_directories,
    get_log_file_path,
    load_config,
    print_error,
    safe_print,
)
from mpd_minion.core.config import ConnectionConfig
from mpd_minion.core.output import log, setup_loguru
from mpd_minion.utils import format_time


class ConsoleHooks(ConnectorHooks):
    """Prints connector notifications for ``watch``."""

    def __init__(self, connector_ref: Callable[[], Optional[Connector]]):
        self._connector_ref = connector_ref

    def on_connected(self) -> None:
        log("Connected to MPD")
        self._print_status()

    def on_subsystem_changed(self, subsystem: Subsystem) -> None:
        log(f"Changed: {subsystem}")
        if subsystem in (Subsystem.PLAYER, Subsystem.OPTIONS):
            self._print_status()

    def _print_status(self) -> None:
        connector = self._connector_ref()
        if connector is not None:
            safe_print(format_status(connector.status()))


def format_status(status) -> str:
    """One-line summary of a status snapshot."""
    if not status:
        return "(not connected)"

    state = mpd_status.playback_state(status)
    line = state
    index = mpd_status.song_index(status)
    if index >= 0:
        line += f" #{index + 1}/{status.get(mpd_status.PLAYLIST_LENGTH, '?')}"
        elapsed = format_time(mpd_status.elapsed_seconds(status))
        duration = mpd_status.duration_seconds(status)
        if duration is not None:
            line += f" {elapsed}/{format_time(duration)}"
        else:
            line += f" {elapsed}"

    options = [
        key
        for key in (mpd_status.RANDOM, mpd_status.REPEAT, mpd_status.CONSUME)
        if mpd_status.option_enabled(status, key)
    ]
    if options:
        line += f" [{', '.join(options)}]"
    if mpd_status.is_updating_db(status):
        line += " (updating database)"
    if mpd_status.ERROR in status:
        line += f" error: {status[mpd_status.ERROR]}"
    return line


def run_status(connector: Connector, args: argparse.Namespace) -> tuple[bool, str]:
    return True, format_status(connector.status())


def run_playlists(connector: Connector, args: argparse.Namespace) -> tuple[bool, str]:
    names = connector.playlists()
    if not names:
        return True, "(no playlists)"
    return True, "\n".join(names)


def run_watch(connector: Connector, args: argparse.Namespace) -> tuple[bool, str]:
    safe_print("Watching for changes (Ctrl+C to stop)...")
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        pass
    return True, "Stopped watching"


COMMANDS: dict[str, Callable[[Connector, argparse.Namespace], tuple[bool, str]]] = {
    "status": run_status,
    "watch": run_watch,
    "playlists": run_playlists,
    "play-pause": lambda c, a: commands.play_pause(c),
    "next": lambda c, a: commands.next_track(c),
    "previous": lambda c, a: commands.previous_track(c),
    "stop": lambda c, a: commands.stop_playback(c),
    "random": lambda c, a: commands.toggle_random(c),
    "repeat": lambda c, a: commands.toggle_repeat(c),
    "consume": lambda c, a: commands.toggle_consume(c),
    "update": lambda c, a: commands.library_update(c),
    "clear": lambda c, a: commands.queue_clear(c),
    "shuffle": lambda c, a: commands.queue_shuffle(c),
    "load": lambda c, a: commands.queue_playlist(c, a.name, replace=a.replace),
    "sort": lambda c, a: commands.queue_sort_by_mode(c, a.attr, descending=a.desc),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mpd-minion",
        description="MPD Minion - Music Player Daemon client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--host", help="MPD host or socket path (overrides config)")
    parser.add_argument("--port", type=int, help="MPD port (overrides config)")

    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")
    subparsers.required = True

    subparsers.add_parser("status", help="Show player status")
    subparsers.add_parser("watch", help="Print change notifications until interrupted")
    subparsers.add_parser("playlists", help="List stored playlists")

    subparsers.add_parser("play-pause", help="Pause, resume or start playback")
    subparsers.add_parser("next", help="Skip to the next track")
    subparsers.add_parser("previous", help="Go back to the previous track")
    subparsers.add_parser("stop", help="Stop playback")
    subparsers.add_parser("random", help="Toggle random mode")
    subparsers.add_parser("repeat", help="Toggle repeat mode")
    subparsers.add_parser("consume", help="Toggle consume mode")

    subparsers.add_parser("update", help="Rescan the music library")
    subparsers.add_parser("clear", help="Clear the queue")
    subparsers.add_parser("shuffle", help="Shuffle the queue")

    load_parser = subparsers.add_parser("load", help="Add a stored playlist to the queue")
    load_parser.add_argument("name", help="Playlist name")
    load_parser.add_argument(
        "--replace", action="store_true", help="Replace the queue instead of appending"
    )

    sort_parser = subparsers.add_parser("sort", help="Sort the queue")
    sort_parser.add_argument("attr", choices=sorted(commands.QUEUE_SORT_MODES), help="Sort by")
    sort_parser.add_argument("--desc", action="store_true", help="Sort in descending order")

    return parser


def _connection_config(args: argparse.Namespace, config: ConnectionConfig) -> ConnectionConfig:
    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    return replace(config, **overrides)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the mpd-minion command."""
    args = build_parser().parse_args(argv)

    ensure_directories()
    config = load_config()
    setup_loguru(
        get_log_file_path(config),
        level=config.logging.level,
        console_output=config.logging.console_output,
    )

    try:
        connection = _connection_config(args, config.connection)
        connection.validate()
    except ValueError as e:
        print_error(str(e))
        return 2

    connector: Optional[Connector] = None
    hooks = ConsoleHooks(lambda: connector) if args.subcommand == "watch" else None
    connector = Connector(connection, hooks=hooks)
    connector.start()
    try:
        if not connector.wait_until_connected(timeout=connection.timeout):
            print_error(f"Could not connect to MPD at {connection.address}")
            return 1

        success, message = COMMANDS[args.subcommand](connector, args)
    finally:
        connector.stop()

    if success:
        print(message)
        return 0
    print(message, file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
