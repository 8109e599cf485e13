"""Tests for hook dispatch."""

import threading

import pytest

from fake_mpd import wait_until
from recording_hooks import RecordingHooks
from mpd_minion.connector.hooks import (
    ConnectorEvent,
    ConnectorHooks,
    EventKind,
    HookDispatcher,
    ImmediateScheduler,
)
from mpd_minion.connector.status import Subsystem


class DeferredScheduler:
    """Collects callbacks; the test decides when they run."""

    def __init__(self):
        self.callbacks = []

    def call_soon(self, callback):
        self.callbacks.append(callback)

    def run_all(self):
        callbacks, self.callbacks = self.callbacks, []
        for callback in callbacks:
            callback()


@pytest.fixture
def current_period():
    return {"value": 1}


@pytest.fixture
def dispatcher_factory(current_period):
    created = []

    def factory(hooks, scheduler=None):
        dispatcher = HookDispatcher(
            hooks,
            scheduler or ImmediateScheduler(),
            is_current=lambda period: period == current_period["value"],
        )
        dispatcher.start()
        created.append(dispatcher)
        return dispatcher

    yield factory

    for dispatcher in created:
        dispatcher.stop(timeout=1.0)


class TestDefaultHooks:
    def test_base_hooks_are_noops(self):
        hooks = ConnectorHooks()

        hooks.on_connected()
        hooks.on_heartbeat()
        hooks.on_subsystem_changed(Subsystem.PLAYER)


class TestHookDispatcher:
    """Tests for HookDispatcher."""

    def test_delivers_in_order(self, dispatcher_factory):
        hooks = RecordingHooks()
        dispatcher = dispatcher_factory(hooks)

        dispatcher.post(ConnectorEvent(EventKind.CONNECTED, 1))
        dispatcher.post(ConnectorEvent(EventKind.SUBSYSTEM_CHANGED, 1, Subsystem.PLAYLIST))
        dispatcher.post(ConnectorEvent(EventKind.HEARTBEAT, 1))

        assert wait_until(lambda: len(hooks.events) == 3)
        assert hooks.events == [
            ("connected", None),
            ("changed", Subsystem.PLAYLIST),
            ("heartbeat", None),
        ]

    def test_runs_on_dispatcher_thread(self, dispatcher_factory):
        threads = []

        class ThreadHooks(ConnectorHooks):
            def on_heartbeat(self):
                threads.append(threading.current_thread().name)

        dispatcher = dispatcher_factory(ThreadHooks())
        dispatcher.post(ConnectorEvent(EventKind.HEARTBEAT, 1))

        assert wait_until(lambda: threads == ["mpd-hooks"])

    def test_drops_events_from_old_period(self, dispatcher_factory, current_period):
        hooks = RecordingHooks()
        dispatcher = dispatcher_factory(hooks)
        current_period["value"] = 2

        dispatcher.post(ConnectorEvent(EventKind.HEARTBEAT, 1))
        dispatcher.post(ConnectorEvent(EventKind.CONNECTED, 2))

        assert wait_until(lambda: len(hooks.events) == 1)
        assert hooks.events == [("connected", None)]

    def test_rechecks_period_when_callback_runs(self, dispatcher_factory, current_period):
        hooks = RecordingHooks()
        scheduler = DeferredScheduler()
        dispatcher = dispatcher_factory(hooks, scheduler)

        dispatcher.post(ConnectorEvent(EventKind.HEARTBEAT, 1))
        assert wait_until(lambda: len(scheduler.callbacks) == 1)

        current_period["value"] = 2
        scheduler.run_all()

        assert hooks.events == []

    def test_nothing_delivered_after_stop(self, dispatcher_factory):
        hooks = RecordingHooks()
        scheduler = DeferredScheduler()
        dispatcher = dispatcher_factory(hooks, scheduler)

        dispatcher.post(ConnectorEvent(EventKind.HEARTBEAT, 1))
        assert wait_until(lambda: len(scheduler.callbacks) == 1)

        dispatcher.stop(timeout=1.0)
        dispatcher.post(ConnectorEvent(EventKind.CONNECTED, 1))
        scheduler.run_all()

        assert hooks.events == []

    def test_failing_hook_does_not_stop_delivery(self, dispatcher_factory):
        delivered = []

        class FlakyHooks(ConnectorHooks):
            def on_connected(self):
                raise RuntimeError("boom")

            def on_heartbeat(self):
                delivered.append("heartbeat")

        dispatcher = dispatcher_factory(FlakyHooks())
        dispatcher.post(ConnectorEvent(EventKind.CONNECTED, 1))
        dispatcher.post(ConnectorEvent(EventKind.HEARTBEAT, 1))

        assert wait_until(lambda: delivered == ["heartbeat"])
