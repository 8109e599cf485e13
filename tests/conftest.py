"""Shared fixtures: a fake MPD server and connectors pointed at it."""

import pytest

from fake_mpd import FakeMPDServer
from recording_hooks import RecordingHooks
from mpd_minion.connector import Connector
from mpd_minion.core.config import ConnectionConfig


@pytest.fixture
def fake_server():
    """Running fake MPD server, stopped after the test."""
    server = FakeMPDServer().start()
    yield server
    server.stop()


@pytest.fixture
def connection_config(fake_server) -> ConnectionConfig:
    """Fast intervals so reconnects and heartbeats happen within a test."""
    return ConnectionConfig(
        host="127.0.0.1",
        port=fake_server.port,
        timeout=2.0,
        reconnect_interval=0.05,
        heartbeat_interval=0.05,
    )


@pytest.fixture
def make_connector():
    """Factory for connectors; every connector created is stopped afterwards."""
    created: list[Connector] = []

    def factory(config: ConnectionConfig, hooks=None, scheduler=None) -> Connector:
        connector = Connector(config, hooks=hooks, scheduler=scheduler)
        created.append(connector)
        return connector

    yield factory

    for connector in created:
        connector.stop()


@pytest.fixture
def recording_hooks() -> RecordingHooks:
    return RecordingHooks()
