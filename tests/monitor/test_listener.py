"""Tests for DeviceListener lifecycle, polling and event handling."""

import logging
import threading
import time

import pytest

from castwatch.monitor.base import DeviceIOError
from castwatch.monitor.listener import DeviceListener
from castwatch.monitor.timer import PollTimer
from castwatch.monitor.types import (
    ConnectionEvent,
    EventType,
    GenericMetadata,
    ListenerState,
    MediaItem,
    MediaStatusSnapshot,
    PollingState,
    SpontaneousEvent,
    StatusSnapshot,
)


@pytest.fixture
def listener(device, timer_factory):
    return DeviceListener(device, poll_interval=1.0, timer_factory=timer_factory)


@pytest.fixture
def active(listener):
    listener.initialize()
    return listener


def listener_messages(caplog) -> list[str]:
    return [r.getMessage() for r in caplog.records if r.name == "castwatch.monitor.listener"]


class TestInitialize:
    """Tests for DeviceListener.initialize."""

    def test_starts_in_uninitialized(self, listener):
        """Test a fresh listener is idle."""
        assert listener.state == ListenerState.UNINITIALIZED
        assert listener.polling_state == PollingState.STOPPED
        assert not listener.is_subscribed

    def test_subscribes_and_starts_polling(self, listener, device, timer_factory):
        """Test initialize subscribes to both channels and starts the timer."""
        listener.initialize()

        assert listener.state == ListenerState.ACTIVE
        assert listener.polling_state == PollingState.RUNNING
        assert device.listeners == [listener]
        assert device.connection_listeners == [listener]
        assert len(timer_factory.timers) == 1
        assert timer_factory.last.started
        assert timer_factory.last.interval == 1.0
        assert timer_factory.last.name == "poll-192.168.1.10:8009"

    def test_initial_status_failure_skips_polling(self, listener, device, timer_factory):
        """Test polling is not started when the first status fetch fails."""
        device.fail_status()

        listener.initialize()

        assert listener.state == ListenerState.ACTIVE
        assert listener.polling_state == PollingState.STOPPED
        assert timer_factory.timers == []
        assert listener.is_subscribed

    def test_second_initialize_ignored(self, active, device, timer_factory, caplog):
        """Test initialize is only honoured once."""
        with caplog.at_level(logging.WARNING):
            active.initialize()

        assert len(timer_factory.timers) == 1
        assert len(device.listeners) == 1
        assert "ignored" in caplog.text

    def test_initialize_after_destroy_ignored(self, listener, device, timer_factory):
        """Test a destroyed listener cannot be revived."""
        listener.destroy()
        listener.initialize()

        assert listener.state == ListenerState.DESTROYED
        assert timer_factory.timers == []
        assert device.listeners == []


class TestPolling:
    """Tests for poll ticks."""

    def test_living_room_tick(self, active, device, timer_factory, caplog):
        """Test a tick with no running app reports status only."""
        with caplog.at_level(logging.INFO):
            timer_factory.last.fire()

        assert device.status_calls == 2
        assert device.media_status_calls == 0
        assert "Living Room: status app=- volume=0.5" in listener_messages(caplog)

    def test_media_fetched_when_app_running(self, active, device, timer_factory, caplog):
        """Test a running app triggers a media status fetch."""
        device.status = StatusSnapshot(app_name="Spotify", volume=0.3)
        device.media_status = MediaStatusSnapshot(
            volume=0.3,
            current_time=42.7,
            media=MediaItem(duration=180.2, metadata=GenericMetadata(title="Podcast")),
        )

        with caplog.at_level(logging.INFO):
            timer_factory.last.fire()

        messages = listener_messages(caplog)
        assert device.media_status_calls == 1
        assert "Living Room: status app=Spotify volume=0.3" in messages
        assert any(
            m.startswith("Living Room: media volume=0.3 current_time=42 duration=180 ") and "title=Podcast" in m
            for m in messages
        )

    def test_idle_screen_skips_media(self, active, device, timer_factory):
        """Test the idle screen does not count as a running app."""
        device.status = StatusSnapshot(app_name="Backdrop", volume=1.0, is_idle_screen=True)

        timer_factory.last.fire()

        assert device.media_status_calls == 0

    def test_no_media_session(self, active, device, timer_factory, caplog):
        """Test an app without a media session reports status only."""
        device.status = StatusSnapshot(app_name="Netflix", volume=0.2)
        device.media_status = None

        with caplog.at_level(logging.INFO):
            timer_factory.last.fire()

        assert device.media_status_calls == 1
        assert not any(": media " in m for m in listener_messages(caplog))

    def test_status_failure_keeps_timer(self, active, device, timer_factory, caplog):
        """Test a failed fetch only aborts the current tick."""
        device.fail_status("timed out")

        with caplog.at_level(logging.ERROR):
            timer_factory.last.fire()

        assert "status fetch failed: timed out" in caplog.text
        assert active.polling_state == PollingState.RUNNING
        assert not timer_factory.last.stopped

        device.status_error = None
        timer_factory.last.fire()
        assert device.status_calls == 3

    def test_media_failure_keeps_timer(self, active, device, timer_factory, caplog):
        """Test a failed media fetch is logged and polling continues."""
        device.status = StatusSnapshot(app_name="Spotify", volume=0.3)
        device.media_status_error = DeviceIOError("reset")

        with caplog.at_level(logging.ERROR):
            timer_factory.last.fire()

        assert "media status fetch failed: reset" in caplog.text
        assert active.polling_state == PollingState.RUNNING

    def test_tick_before_initialize_is_noop(self, listener, device):
        """Test ticks outside the active state do nothing."""
        listener.poll_tick()
        assert device.status_calls == 0


class TestDestroy:
    """Tests for DeviceListener.destroy."""

    def test_stops_timer_and_unsubscribes(self, active, device, timer_factory):
        """Test destroy releases the timer and both subscriptions."""
        active.destroy()

        assert active.state == ListenerState.DESTROYED
        assert active.polling_state == PollingState.STOPPED
        assert timer_factory.last.stopped
        assert device.listeners == []
        assert device.connection_listeners == []
        assert not active.is_subscribed

    def test_idempotent(self, active, device, timer_factory):
        """Test a second destroy has no further effect."""
        active.destroy()
        active.destroy()

        assert timer_factory.last.stop_calls == 1
        assert device.listeners == []

    def test_destroy_uninitialized(self, listener, device):
        """Test destroying a never-initialized listener is safe."""
        listener.destroy()
        assert listener.state == ListenerState.DESTROYED
        assert device.listeners == []

    def test_in_flight_tick_after_destroy(self, active, device, timer_factory, caplog):
        """Test a tick arriving after removal reports nothing."""
        timer = timer_factory.last
        active.destroy()

        with caplog.at_level(logging.INFO):
            timer.fire()

        assert device.status_calls == 1
        assert not any(": status " in m for m in listener_messages(caplog))

    def test_events_after_destroy_ignored(self, active, device, caplog):
        """Test pushes delivered after destroy are dropped."""
        active.destroy()

        with caplog.at_level(logging.INFO):
            active.spontaneous_event_received(
                SpontaneousEvent(EventType.RECEIVER_STATUS, StatusSnapshot(volume=0.1))
            )
            active.connection_event_received(ConnectionEvent(connected=True))

        assert not any(": status " in m for m in listener_messages(caplog))


class TestConnectionEvents:
    """Tests for connection-gated polling."""

    def test_disconnect_stops_polling(self, active, device, timer_factory):
        """Test losing the connection stops the timer."""
        device.set_connected(False)

        assert active.polling_state == PollingState.STOPPED
        assert timer_factory.last.stopped
        assert active.state == ListenerState.ACTIVE

    def test_no_ticks_after_disconnect(self, active, device, timer_factory):
        """Test a late tick after disconnect does not fetch."""
        timer = timer_factory.last
        device.set_connected(False)

        timer.fire()
        active.poll_tick()

        assert device.status_calls == 1

    def test_reconnect_keeps_polling_suspended(self, active, device, timer_factory, caplog):
        """Test reconnect does not restart polling by default."""
        device.set_connected(False)

        with caplog.at_level(logging.INFO):
            device.set_connected(True)

        assert active.polling_state == PollingState.STOPPED
        assert len(timer_factory.timers) == 1
        assert "polling stays suspended" in caplog.text

    def test_reconnect_restarts_polling_when_enabled(self, device, timer_factory):
        """Test reconnect restarts polling when the policy is enabled."""
        listener = DeviceListener(device, restart_polling_on_reconnect=True, timer_factory=timer_factory)
        listener.initialize()
        device.set_connected(False)

        device.set_connected(True)

        assert listener.polling_state == PollingState.RUNNING
        assert len(timer_factory.timers) == 2
        assert timer_factory.last.started

    def test_connected_while_polling_keeps_timer(self, device, timer_factory):
        """Test a redundant connected event does not create a second timer."""
        listener = DeviceListener(device, restart_polling_on_reconnect=True, timer_factory=timer_factory)
        listener.initialize()

        device.set_connected(True)

        assert len(timer_factory.timers) == 1

    def test_disconnect_when_not_polling(self, listener, device, timer_factory):
        """Test a disconnect with no timer is harmless."""
        device.fail_status()
        listener.initialize()

        device.set_connected(False)

        assert listener.polling_state == PollingState.STOPPED
        assert timer_factory.timers == []

    def test_first_connect_is_not_a_reconnect(self, listener, device, timer_factory, caplog):
        """Test a connect with no prior disconnect leaves polling alone and logs nothing."""
        device.fail_status()
        listener.initialize()

        with caplog.at_level(logging.INFO):
            device.set_connected(True)

        assert "stays suspended" not in caplog.text
        assert timer_factory.timers == []

    def test_connect_during_initialize(self, listener, device, timer_factory, caplog):
        """Test connection events racing the first fetch do not affect polling."""
        fetch = device.get_status

        def connecting_get_status():
            device.set_connected(True)
            return fetch()

        device.get_status = connecting_get_status

        with caplog.at_level(logging.INFO):
            listener.initialize()

        assert "stays suspended" not in caplog.text
        assert listener.polling_state == PollingState.RUNNING
        assert len(timer_factory.timers) == 1

    def test_restart_policy_needs_prior_polling(self, device, timer_factory):
        """Test the restart policy only resumes polling stopped by a disconnect."""
        listener = DeviceListener(device, restart_polling_on_reconnect=True, timer_factory=timer_factory)
        device.fail_status()
        listener.initialize()

        device.set_connected(False)
        device.set_connected(True)

        assert timer_factory.timers == []


class TestSpontaneousEvents:
    """Tests for push event handling."""

    def test_status_push_reported(self, active, device, caplog):
        """Test a pushed status is formatted like a polled one."""
        with caplog.at_level(logging.INFO):
            device.push(SpontaneousEvent(EventType.RECEIVER_STATUS, StatusSnapshot(app_name="YouTube", volume=0.7)))

        assert "Living Room: status app=YouTube volume=0.7" in listener_messages(caplog)

    def test_media_push_reported(self, active, device, caplog):
        """Test a pushed media status is reported."""
        with caplog.at_level(logging.INFO):
            device.push(SpontaneousEvent(EventType.MEDIA_STATUS, MediaStatusSnapshot(volume=0.4, current_time=3.2)))

        assert "Living Room: media volume=0.4 current_time=3 duration=- media=-" in listener_messages(caplog)

    def test_unhandled_payload_logged(self, active, device, timer_factory, caplog):
        """Test other payloads are logged and leave the listener unchanged."""
        with caplog.at_level(logging.INFO):
            device.push(SpontaneousEvent(EventType.LAUNCH_ERROR, {"reason": "NOT_FOUND"}))

        assert any(
            m.startswith("Living Room: not handling launch_error event") and "NOT_FOUND" in m
            for m in listener_messages(caplog)
        )
        assert active.state == ListenerState.ACTIVE
        assert active.polling_state == PollingState.RUNNING
        assert len(timer_factory.timers) == 1

    def test_event_before_initialize_ignored(self, listener, caplog):
        """Test events before initialize are dropped."""
        with caplog.at_level(logging.INFO):
            listener.spontaneous_event_received(SpontaneousEvent(EventType.UNKNOWN, "x"))

        assert listener_messages(caplog) == []


class TestPollTimerInterplay:
    """Tests with a real PollTimer thread."""

    @pytest.mark.parametrize(
        "interrupt",
        [
            pytest.param(lambda listener, device: listener.destroy(), id="destroy"),
            pytest.param(lambda listener, device: device.set_connected(False), id="disconnect"),
        ],
    )
    def test_interrupt_while_tick_blocked(self, device, caplog, interrupt):
        """Test a tick blocked in a fetch reports nothing once polling has stopped."""
        entered = threading.Event()
        release = threading.Event()
        calls = []
        timers = []

        def blocking_get_status():
            calls.append(threading.current_thread().name)
            if len(calls) > 1:
                entered.set()
                release.wait(5.0)
            return device.status

        def factory(interval, callback, name):
            timer = PollTimer(interval, callback, name)
            timers.append(timer)
            return timer

        device.get_status = blocking_get_status
        listener = DeviceListener(device, poll_interval=0.01, timer_factory=factory)
        listener.initialize()
        assert entered.wait(5.0)

        with caplog.at_level(logging.INFO):
            interrupt(listener, device)
            release.set()
            timers[0].join(5.0)

        assert not timers[0]._thread.is_alive()
        assert listener.polling_state == PollingState.STOPPED
        assert not any(": status " in m for m in listener_messages(caplog))
        assert "tick failed" not in caplog.text

        time.sleep(0.05)
        assert len(calls) == 2
