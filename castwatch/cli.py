"""
CastWatch CLI entry point.

Provides command-line interface for running CastWatch.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from castwatch import __version__
from castwatch.config import Config, ConfigError, load_config
from castwatch.app import CastWatch

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_NETWORK_ERROR = 3


def setup_logging(level: str = "info") -> None:
    """Configure logging to stdout."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,
    )


def _positive_float(value: str) -> float:
    """Parse a strictly positive number of seconds."""
    try:
        v = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number: {value}")
    if v <= 0:
        raise argparse.ArgumentTypeError(f"Must be greater than 0: {value}")
    return v


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="castwatch",
        description="Monitor cast devices on the local network and log their status",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  castwatch
  castwatch --discover --timeout 10 --json
  castwatch --config config.yaml
  castwatch --poll-interval 5 --name "Living Room" --known-host 192.168.1.20

Environment Variables:
  CASTWATCH_POLL_INTERVAL, CASTWATCH_RESTART_POLLING_ON_RECONNECT,
  CASTWATCH_CONNECT_TIMEOUT, CASTWATCH_KNOWN_HOSTS, CASTWATCH_FRIENDLY_NAMES,
  CASTWATCH_LOG_LEVEL
""",
    )

    # General
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    # Discovery mode
    parser.add_argument(
        "--discover",
        action="store_true",
        help="Scan network for cast devices and exit",
    )
    parser.add_argument(
        "--timeout",
        "-t",
        type=_positive_float,
        default=3.0,
        metavar="SECONDS",
        help="Discovery timeout in seconds (used with --discover)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output as JSON (used with --discover)",
    )

    # Configuration
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("./config.yaml"),
        metavar="PATH",
        help="Path to config file (default: ./config.yaml)",
    )

    # Monitoring
    monitor_group = parser.add_argument_group("Monitoring")
    monitor_group.add_argument(
        "--poll-interval",
        type=_positive_float,
        metavar="SECONDS",
        help="Seconds between status polls (default: 1.0)",
    )
    monitor_group.add_argument(
        "--restart-polling-on-reconnect",
        action="store_true",
        help="Resume polling when a disconnected device reconnects",
    )
    monitor_group.add_argument(
        "--connect-timeout",
        type=_positive_float,
        metavar="SECONDS",
        help="Seconds to wait for a device's first status (default: 10.0)",
    )

    # Discovery
    discovery_group = parser.add_argument_group("Discovery")
    discovery_group.add_argument(
        "--known-host",
        action="append",
        dest="known_hosts",
        metavar="HOST",
        help="Query this host directly (repeatable)",
    )
    discovery_group.add_argument(
        "--name",
        action="append",
        dest="friendly_names",
        metavar="TEXT",
        help="Only monitor devices with this name (repeatable)",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        metavar="LEVEL",
        help="Log level: debug, info, warning, error",
    )

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)


def _set_nested(d: dict, path: tuple, value: Any) -> None:
    """Set a nested dictionary value."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def args_to_dict(args: argparse.Namespace) -> dict:
    """Convert argparse namespace to nested config dict."""
    result: dict = {}

    # Map CLI args to config paths
    mappings = {
        "poll_interval": ("monitor", "poll_interval"),
        "restart_polling_on_reconnect": ("monitor", "restart_polling_on_reconnect"),
        "connect_timeout": ("monitor", "connect_timeout"),
        "known_hosts": ("discovery", "known_hosts"),
        "friendly_names": ("discovery", "friendly_names"),
        "log_level": ("logging", "level"),
    }

    for arg_name, path in mappings.items():
        value = getattr(args, arg_name, None)
        # Skip None values and False for store_true flags (only set if explicitly True)
        if value is None:
            continue
        if arg_name == "restart_polling_on_reconnect" and not value:
            continue
        _set_nested(result, path, value)

    return result


def log_config(config: Config) -> None:
    """Log configuration summary."""
    logger.info(f"Poll interval: {config.monitor.poll_interval}s")
    logger.info(f"Connect timeout: {config.monitor.connect_timeout}s")
    if config.discovery.known_hosts:
        logger.info(f"Known hosts: {', '.join(config.discovery.known_hosts)}")
    if config.discovery.friendly_names:
        logger.info(f"Device filter: {', '.join(config.discovery.friendly_names)}")


async def run_discovery(
    timeout: float,
    json_output: bool,
    known_hosts: Optional[list[str]] = None,
) -> int:
    """
    Run a one-shot cast device scan.

    Args:
        timeout: Discovery timeout in seconds
        json_output: Output as JSON if True
        known_hosts: Hosts queried directly in addition to mDNS

    Returns:
        Exit code
    """
    from castwatch.cast import scan

    if not json_output:
        print(f"Scanning for cast devices ({timeout}s timeout)...")

    loop = asyncio.get_running_loop()
    devices = await loop.run_in_executor(None, scan, timeout, known_hosts)

    if json_output:
        output = {
            "devices": [d.to_dict() for d in devices],
            "count": len(devices),
        }
        print(json.dumps(output, indent=2))
        return EXIT_SUCCESS

    if not devices:
        print("\nNo cast devices found.")
        print("\nTroubleshooting tips:")
        print("  - Ensure your device is powered on and on the same network")
        print("  - Try increasing timeout with --timeout 10")
        print("  - Check that multicast (mDNS) traffic is not blocked")
        return EXIT_SUCCESS

    print(f"\nFound {len(devices)} cast device(s):\n")

    for d in devices:
        print(f"  {d.name}")
        print(f"    Address: {d.address}")
        if d.model_name:
            print(f"    Model: {d.model_name}")
        if d.manufacturer:
            print(f"    Manufacturer: {d.manufacturer}")
        if d.cast_type:
            print(f"    Type: {d.cast_type}")
        if d.uuid:
            print(f"    UUID: {d.uuid}")
        print()

    return EXIT_SUCCESS


def run_monitor(args: argparse.Namespace) -> int:
    """
    Run the monitoring agent.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    # Setup basic logging first (will be reconfigured after config load)
    setup_logging("info")

    logger.info(f"CastWatch v{__version__}")

    try:
        cli_config = args_to_dict(args)
        config = load_config(args.config, cli_config)

        # Reconfigure logging with loaded level
        setup_logging(config.logging.level)

        log_config(config)

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    try:
        app = CastWatch(config)
        asyncio.run(app.run())
        return EXIT_SUCCESS

    except (ConnectionError, OSError) as e:
        logger.error(f"Network error: {e}")
        return EXIT_NETWORK_ERROR

    except KeyboardInterrupt:
        logger.info("Interrupted")
        return EXIT_SUCCESS


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code: 0=success, 1=config error, 3=network error
    """
    args = parse_args(argv)

    if args.discover:
        setup_logging(args.log_level or "warning")
        try:
            return asyncio.run(run_discovery(args.timeout, args.json_output, args.known_hosts))
        except OSError as e:
            logger.error(f"Network error: {e}")
            return EXIT_NETWORK_ERROR

    return run_monitor(args)


if __name__ == "__main__":
    sys.exit(main())
