"""Shared fixtures: fake device, fake discovery source and a manual timer."""

from typing import Callable, Optional

import pytest

from castwatch.monitor.base import (
    ConnectionEventListener,
    DeviceHandle,
    DeviceIOError,
    DiscoveryObserver,
    DiscoverySource,
    SpontaneousEventListener,
)
from castwatch.monitor.types import (
    ConnectionEvent,
    MediaStatusSnapshot,
    SpontaneousEvent,
    StatusSnapshot,
)


class FakeDevice(DeviceHandle):
    """In-memory device handle with scripted status responses."""

    def __init__(
        self,
        address: str = "192.168.1.10:8009",
        name: str = "Living Room",
        status: Optional[StatusSnapshot] = None,
        media_status: Optional[MediaStatusSnapshot] = None,
    ):
        self._address = address
        self._name = name
        self.status = status if status is not None else StatusSnapshot(volume=0.5)
        self.media_status = media_status
        self.status_error: Optional[Exception] = None
        self.media_status_error: Optional[Exception] = None
        self.status_calls = 0
        self.media_status_calls = 0
        self.listeners: list[SpontaneousEventListener] = []
        self.connection_listeners: list[ConnectionEventListener] = []

    @property
    def address(self) -> str:
        return self._address

    @property
    def name(self) -> str:
        return self._name

    def register_listener(self, listener: SpontaneousEventListener) -> None:
        self.listeners.append(listener)

    def unregister_listener(self, listener: SpontaneousEventListener) -> None:
        self.listeners.remove(listener)

    def register_connection_listener(self, listener: ConnectionEventListener) -> None:
        self.connection_listeners.append(listener)

    def unregister_connection_listener(self, listener: ConnectionEventListener) -> None:
        self.connection_listeners.remove(listener)

    def get_status(self) -> StatusSnapshot:
        self.status_calls += 1
        if self.status_error is not None:
            raise self.status_error
        return self.status

    def get_media_status(self) -> Optional[MediaStatusSnapshot]:
        self.media_status_calls += 1
        if self.media_status_error is not None:
            raise self.media_status_error
        return self.media_status

    def push(self, event: SpontaneousEvent) -> None:
        for listener in list(self.listeners):
            listener.spontaneous_event_received(event)

    def set_connected(self, connected: bool) -> None:
        event = ConnectionEvent(connected=connected, detail="CONNECTED" if connected else "LOST")
        for listener in list(self.connection_listeners):
            listener.connection_event_received(event)

    def fail_status(self, message: str = "socket closed") -> None:
        self.status_error = DeviceIOError(message)


class ManualTimer:
    """Timer that only ticks when fire() is called."""

    def __init__(self, interval: float, callback: Callable[[], None], name: str):
        self.interval = interval
        self.callback = callback
        self.name = name
        self.started = False
        self.stop_calls = 0

    @property
    def stopped(self) -> bool:
        return self.stop_calls > 0

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stop_calls += 1

    def fire(self) -> None:
        self.callback()


class ManualTimerFactory:
    """Records every timer a listener creates."""

    def __init__(self) -> None:
        self.timers: list[ManualTimer] = []

    def __call__(self, interval: float, callback: Callable[[], None], name: str) -> ManualTimer:
        timer = ManualTimer(interval, callback, name)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> ManualTimer:
        return self.timers[-1]


class FakeDiscovery(DiscoverySource):
    """Discovery source that fires callbacks synchronously."""

    def __init__(self) -> None:
        self.observers: list[DiscoveryObserver] = []
        self.started = False
        self.stopped = False

    def register_listener(self, observer: DiscoveryObserver) -> None:
        self.observers.append(observer)

    def start_discovery(self) -> None:
        self.started = True

    def stop_discovery(self) -> None:
        self.stopped = True

    def discover(self, handle: DeviceHandle) -> None:
        for observer in self.observers:
            observer.on_device_discovered(handle)

    def remove(self, handle: DeviceHandle) -> None:
        for observer in self.observers:
            observer.on_device_removed(handle)


@pytest.fixture
def device() -> FakeDevice:
    """Device named "Living Room" reporting no app at volume 0.5."""
    return FakeDevice()


@pytest.fixture
def make_device() -> Callable[..., FakeDevice]:
    """Factory for additional fake devices."""
    return FakeDevice


@pytest.fixture
def timer_factory() -> ManualTimerFactory:
    return ManualTimerFactory()


@pytest.fixture
def discovery() -> FakeDiscovery:
    return FakeDiscovery()
