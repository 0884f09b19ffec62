"""
Cast device discovery.

mDNS discovery of cast devices through ``pychromecast.discovery.CastBrowser``.
Browser callbacks arrive on the zeroconf thread; they are forwarded to
observers through a single worker thread, in order, so observers may block
(e.g. on an initial status fetch) without stalling discovery.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional
from uuid import UUID

import pychromecast
import zeroconf
from pychromecast.error import PyChromecastError

from castwatch.monitor.base import DiscoveryObserver, DiscoverySource
from castwatch.monitor.types import DeviceInfo

from .convert import cast_info_to_device_info
from .device import DEFAULT_CONNECT_TIMEOUT_SECONDS, ChromecastDevice

logger = logging.getLogger(__name__)

DEFAULT_SCAN_TIMEOUT_SECONDS = 3.0

# CastInfo -> ChromecastDevice
DeviceFactory = Callable[[Any], ChromecastDevice]


class ChromecastDiscovery(DiscoverySource):
    """
    DiscoverySource backed by pychromecast.

    Usage:
        discovery = ChromecastDiscovery(known_hosts=["192.168.1.20"])
        discovery.register_listener(observer)
        discovery.start_discovery()
        ...
        discovery.stop_discovery()
    """

    def __init__(
        self,
        known_hosts: Optional[list[str]] = None,
        friendly_names: Optional[list[str]] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
        zconf: Optional[zeroconf.Zeroconf] = None,
        device_factory: Optional[DeviceFactory] = None,
    ):
        """
        Initialize discovery.

        Args:
            known_hosts: Hosts queried directly in addition to mDNS
            friendly_names: Only report devices with these names (all if empty)
            connect_timeout: Seconds a device waits for its first status
            zconf: Shared Zeroconf instance (created on start if None)
            device_factory: Overrides ChromecastDevice construction
        """
        self._known_hosts = list(known_hosts or [])
        self._friendly_names = set(friendly_names or [])
        self._connect_timeout = connect_timeout
        self._zconf = zconf
        self._owns_zconf = zconf is None
        self._device_factory = device_factory or self._create_device

        self._browser: Optional[pychromecast.discovery.CastBrowser] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._observers: list[DiscoveryObserver] = []
        self._devices: dict[UUID, ChromecastDevice] = {}
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._executor is not None

    def register_listener(self, observer: DiscoveryObserver) -> None:
        with self._lock:
            if observer not in self._observers:
                self._observers.append(observer)

    def start_discovery(self) -> None:
        """Start the cast browser."""
        if self._executor is not None:
            return

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="castwatch-discovery")
        if self._zconf is None:
            self._zconf = zeroconf.Zeroconf()

        self._browser = pychromecast.discovery.CastBrowser(
            self, self._zconf, self._known_hosts or None
        )
        self._browser.start_discovery()
        logger.info(
            "Cast discovery started"
            + (f" (known hosts: {', '.join(self._known_hosts)})" if self._known_hosts else "")
        )

    def stop_discovery(self) -> None:
        """Stop the browser, drain pending notifications and disconnect devices."""
        executor = self._executor
        if executor is None:
            return
        self._executor = None

        if self._browser:
            self._browser.stop_discovery()
            self._browser = None

        executor.shutdown(wait=True)

        with self._lock:
            devices = list(self._devices.values())
            self._devices.clear()
        for device in devices:
            device.disconnect()

        if self._owns_zconf and self._zconf is not None:
            self._zconf.close()
            self._zconf = None

        logger.info("Cast discovery stopped")

    # =========================================================================
    # pychromecast AbstractCastListener callbacks (zeroconf thread)
    # =========================================================================

    def add_cast(self, uuid: UUID, service: str) -> None:
        browser = self._browser
        if browser is None:
            return
        cast_info = browser.services.get(uuid)
        if cast_info is None:
            return

        if self._friendly_names and cast_info.friendly_name not in self._friendly_names:
            logger.debug(f"Ignoring cast device {cast_info.friendly_name} (not in name filter)")
            return

        self._submit(self._add_device, uuid, cast_info)

    def remove_cast(self, uuid: UUID, service: str, cast_info: Any) -> None:
        self._submit(self._remove_device, uuid)

    def update_cast(self, uuid: UUID, service: str) -> None:
        logger.debug(f"Cast device {uuid} updated via {service}")

    # =========================================================================
    # Worker thread
    # =========================================================================

    def _submit(self, fn: Callable[..., None], *args: Any) -> None:
        executor = self._executor
        if executor is None:
            return
        try:
            future = executor.submit(fn, *args)
        except RuntimeError:
            # Executor shut down between the check and submit
            return
        future.add_done_callback(self._log_failure)

    def _log_failure(self, future: "Future[None]") -> None:
        error = future.exception()
        if error is not None:
            logger.error(f"Discovery notification failed: {error}", exc_info=error)

    def _add_device(self, uuid: UUID, cast_info: Any) -> None:
        with self._lock:
            if uuid in self._devices:
                return

        try:
            device = self._device_factory(cast_info)
        except PyChromecastError as e:
            logger.error(f"Cannot create cast device {cast_info.friendly_name}: {e}")
            return

        device.connect()
        with self._lock:
            self._devices[uuid] = device
            observers = list(self._observers)

        for observer in observers:
            observer.on_device_discovered(device)

    def _remove_device(self, uuid: UUID) -> None:
        with self._lock:
            device = self._devices.pop(uuid, None)
            observers = list(self._observers)

        if device is None:
            return

        for observer in observers:
            observer.on_device_removed(device)
        device.disconnect()

    def _create_device(self, cast_info: Any) -> ChromecastDevice:
        cast = pychromecast.get_chromecast_from_cast_info(cast_info, self._zconf)
        return ChromecastDevice(cast, connect_timeout=self._connect_timeout)


def scan(
    timeout: float = DEFAULT_SCAN_TIMEOUT_SECONDS,
    known_hosts: Optional[list[str]] = None,
) -> list[DeviceInfo]:
    """
    Browse for cast devices for ``timeout`` seconds.

    Args:
        timeout: Scan duration in seconds
        known_hosts: Hosts queried directly in addition to mDNS

    Returns:
        Devices found, sorted by name
    """
    zconf = zeroconf.Zeroconf()
    browser = pychromecast.discovery.CastBrowser(
        pychromecast.discovery.SimpleCastListener(), zconf, known_hosts or None
    )
    browser.start_discovery()
    try:
        time.sleep(timeout)
        cast_infos = list(browser.services.values())
    finally:
        browser.stop_discovery()
        zconf.close()

    devices = [cast_info_to_device_info(info) for info in cast_infos]
    logger.debug(f"Scan found {len(devices)} cast device(s)")
    return sorted(devices, key=lambda d: d.name.lower())
