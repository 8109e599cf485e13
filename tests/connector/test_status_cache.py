"""Tests for status snapshots and subsystem parsing."""

import threading
from types import MappingProxyType

import pytest

from mpd_minion.connector import status as mpd_status
from mpd_minion.connector.status import (
    EMPTY_STATUS,
    IDLE_SUBSYSTEMS,
    StatusCache,
    Subsystem,
    parse_subsystems,
)


class TestParseSubsystems:
    """Tests for parse_subsystems."""

    def test_keeps_server_order(self):
        assert parse_subsystems(["player", "playlist"]) == [
            Subsystem.PLAYER,
            Subsystem.PLAYLIST,
        ]

    def test_drops_duplicates(self):
        assert parse_subsystems(["player", "player", "options"]) == [
            Subsystem.PLAYER,
            Subsystem.OPTIONS,
        ]

    def test_drops_unknown_tags(self):
        assert parse_subsystems(["mixer", "partition", "update"]) == [Subsystem.UPDATE]

    def test_empty_response(self):
        assert parse_subsystems([]) == []

    def test_subscribes_to_every_subsystem(self):
        assert set(IDLE_SUBSYSTEMS) == {s.value for s in Subsystem}

    def test_subsystem_is_its_tag(self):
        assert str(Subsystem.STORED_PLAYLIST) == "stored_playlist"
        assert Subsystem.PLAYLIST == "playlist"


class TestStatusCache:
    """Tests for StatusCache."""

    def test_empty_before_first_refresh(self):
        cache = StatusCache()

        assert cache.snapshot() == {}
        assert cache.snapshot() is EMPTY_STATUS

    def test_replace_publishes_string_snapshot(self):
        cache = StatusCache()

        cache.replace({"state": "play", "song": 3, "elapsed": "12.5"})

        snapshot = cache.snapshot()
        assert snapshot == {"state": "play", "song": "3", "elapsed": "12.5"}
        assert isinstance(snapshot, MappingProxyType)

    def test_snapshot_is_read_only(self):
        cache = StatusCache()
        cache.replace({"state": "play"})

        with pytest.raises(TypeError):
            cache.snapshot()["state"] = "stop"

    def test_replace_swaps_wholesale(self):
        cache = StatusCache()
        cache.replace({"state": "play", "updating_db": "1"})
        old = cache.snapshot()

        cache.replace({"state": "pause"})

        assert "updating_db" not in cache.snapshot()
        assert old == {"state": "play", "updating_db": "1"}

    def test_clear_collapses_to_empty(self):
        cache = StatusCache()
        cache.replace({"state": "play"})

        cache.clear()

        assert cache.snapshot() == {}

    def test_readers_never_see_partial_snapshot(self):
        cache = StatusCache()
        first = {f"k{i}": "a" for i in range(50)}
        second = {f"k{i}": "b" for i in range(50)}
        stop = threading.Event()
        torn = []

        def writer():
            while not stop.is_set():
                cache.replace(first)
                cache.replace(second)

        thread = threading.Thread(target=writer)
        thread.start()
        try:
            for _ in range(2000):
                values = set(cache.snapshot().values())
                if len(values) > 1:
                    torn.append(values)
        finally:
            stop.set()
            thread.join()

        assert torn == []


class TestAccessors:
    """Tests for snapshot accessors."""

    def test_defaults_on_empty_snapshot(self):
        assert mpd_status.playback_state(EMPTY_STATUS) == "stop"
        assert mpd_status.song_index(EMPTY_STATUS) == -1
        assert mpd_status.elapsed_seconds(EMPTY_STATUS) == 0.0
        assert mpd_status.duration_seconds(EMPTY_STATUS) is None
        assert mpd_status.option_enabled(EMPTY_STATUS, mpd_status.RANDOM) is False
        assert mpd_status.is_updating_db(EMPTY_STATUS) is False

    def test_values_from_snapshot(self):
        status = {
            "state": "pause",
            "song": "4",
            "elapsed": "61.2",
            "duration": "200.5",
            "repeat": "1",
            "updating_db": "7",
        }

        assert mpd_status.playback_state(status) == "pause"
        assert mpd_status.song_index(status) == 4
        assert mpd_status.elapsed_seconds(status) == pytest.approx(61.2)
        assert mpd_status.duration_seconds(status) == pytest.approx(200.5)
        assert mpd_status.option_enabled(status, mpd_status.REPEAT) is True
        assert mpd_status.is_updating_db(status) is True

    def test_malformed_values_fall_back(self):
        status = {"song": "", "elapsed": "n/a"}

        assert mpd_status.song_index(status) == -1
        assert mpd_status.elapsed_seconds(status) == 0.0
