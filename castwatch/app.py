"""
CastWatch Application.

Main orchestrator that wires discovery to the coordinator and manages
lifecycle.
"""

import asyncio
import logging
import signal
from typing import Optional

from castwatch.cast import ChromecastDiscovery
from castwatch.config import Config
from castwatch.monitor import DiscoveryCoordinator, DiscoverySource

logger = logging.getLogger(__name__)


class CastWatch:
    """
    Main CastWatch application.

    Orchestrates:
    - Device discovery (ChromecastDiscovery)
    - Per-device monitoring (DiscoveryCoordinator, DeviceListener)

    Usage:
        config = load_config(...)
        app = CastWatch(config)
        await app.run()
    """

    def __init__(self, config: Config, discovery: Optional[DiscoverySource] = None):
        """
        Initialize CastWatch.

        Args:
            config: Validated configuration
            discovery: Discovery source (pychromecast-backed if None)
        """
        self._config = config
        self._discovery = discovery
        self._coordinator: Optional[DiscoveryCoordinator] = None
        self._is_running = False
        self._shutdown_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        """Check if the application is running."""
        return self._is_running

    @property
    def coordinator(self) -> Optional[DiscoveryCoordinator]:
        return self._coordinator

    def start(self) -> None:
        """Create the discovery source and coordinator and start discovery."""
        if self._is_running:
            return

        logger.info("Starting CastWatch...")

        if self._discovery is None:
            self._discovery = ChromecastDiscovery(
                known_hosts=self._config.discovery.known_hosts,
                friendly_names=self._config.discovery.friendly_names,
                connect_timeout=self._config.monitor.connect_timeout,
            )

        self._coordinator = DiscoveryCoordinator(
            self._discovery,
            poll_interval=self._config.monitor.poll_interval,
            restart_polling_on_reconnect=self._config.monitor.restart_polling_on_reconnect,
        )
        self._coordinator.start()
        self._is_running = True

        if self._config.monitor.restart_polling_on_reconnect:
            logger.info("Polling restarts when a device reconnects")
        else:
            logger.info("Polling stays suspended after a device disconnects")

    def stop(self) -> None:
        """Stop discovery and release every device listener."""
        if not self._is_running:
            return

        logger.info("Stopping CastWatch...")
        self._is_running = False

        if self._coordinator:
            try:
                self._coordinator.stop()
            except Exception as e:
                logger.warning(f"Error stopping coordinator: {e}")

        logger.info("CastWatch stopped")

    def request_shutdown(self) -> None:
        """Ask run() to return."""
        self._shutdown_event.set()

    async def run(self) -> None:
        """
        Run CastWatch until interrupted.

        Sets up signal handlers for graceful shutdown on SIGINT/SIGTERM.
        """
        loop = asyncio.get_running_loop()

        def handle_signal() -> None:
            logger.info("Shutdown signal received")
            self._shutdown_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, handle_signal)

        try:
            # Discovery and polling run on their own threads
            await loop.run_in_executor(None, self.start)
            await self._shutdown_event.wait()
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
            await loop.run_in_executor(None, self.stop)
