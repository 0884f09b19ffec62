"""
CastWatch Configuration System.

Priority order (highest to lowest):
1. Command-line arguments
2. Environment variables
3. Configuration file (YAML)
4. Default values
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)


# Valid log levels
VALID_LOG_LEVELS = {"debug", "info", "warning", "error"}

# Environment variable mappings
ENV_MAPPINGS = {
    # Monitor
    "CASTWATCH_POLL_INTERVAL": ("monitor", "poll_interval"),
    "CASTWATCH_RESTART_POLLING_ON_RECONNECT": ("monitor", "restart_polling_on_reconnect"),
    "CASTWATCH_CONNECT_TIMEOUT": ("monitor", "connect_timeout"),
    # Discovery
    "CASTWATCH_KNOWN_HOSTS": ("discovery", "known_hosts"),
    "CASTWATCH_FRIENDLY_NAMES": ("discovery", "friendly_names"),
    # Logging
    "CASTWATCH_LOG_LEVEL": ("logging", "level"),
}

FLOAT_ENV_VARS = ("CASTWATCH_POLL_INTERVAL", "CASTWATCH_CONNECT_TIMEOUT")
LIST_ENV_VARS = ("CASTWATCH_KNOWN_HOSTS", "CASTWATCH_FRIENDLY_NAMES")
BOOL_ENV_VARS = ("CASTWATCH_RESTART_POLLING_ON_RECONNECT",)


class ConfigError(Exception):
    """Configuration error."""

    pass


@dataclass
class MonitorConfig:
    """Per-device monitoring configuration."""

    poll_interval: float = 1.0  # Seconds between poll ticks
    restart_polling_on_reconnect: bool = False
    connect_timeout: float = 10.0  # Seconds to wait for a device's first status


@dataclass
class DiscoveryConfig:
    """Device discovery configuration."""

    known_hosts: list[str] = field(default_factory=list)  # Queried without mDNS
    friendly_names: list[str] = field(default_factory=list)  # Empty = all devices


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class Config:
    """Complete CastWatch configuration."""

    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Config) -> None:
    """
    Validate configuration.

    Raises:
        ConfigError: If configuration is invalid
    """
    errors = []

    # Monitor
    if not _is_number(config.monitor.poll_interval) or config.monitor.poll_interval <= 0:
        errors.append(f"Invalid poll_interval: {config.monitor.poll_interval} (must be > 0)")
    if not _is_number(config.monitor.connect_timeout) or config.monitor.connect_timeout <= 0:
        errors.append(f"Invalid connect_timeout: {config.monitor.connect_timeout} (must be > 0)")
    if not isinstance(config.monitor.restart_polling_on_reconnect, bool):
        errors.append(
            f"Invalid restart_polling_on_reconnect: "
            f"{config.monitor.restart_polling_on_reconnect} (must be true or false)"
        )

    # Discovery
    for name in ("known_hosts", "friendly_names"):
        value = getattr(config.discovery, name)
        if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
            errors.append(f"Invalid {name}: {value} (must be a list of names)")

    # Logging
    if str(config.logging.level).lower() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid log level: {config.logging.level}. "
            f"Valid values: {sorted(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigError("Configuration validation failed:\n  - " + "\n  - ".join(errors))


def load_yaml_config(path: Path) -> dict:
    """
    Load configuration from YAML file.

    Args:
        path: Path to YAML file

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    if not path.exists():
        logger.debug(f"Config file not found: {path}")
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML config: {e}")
    except IOError as e:
        raise ConfigError(f"Error reading config file: {e}")

    if not data:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")
    return data


def _set_nested(d: dict, path: tuple, value: Any) -> None:
    """Set a nested dictionary value using a path tuple."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def load_env_config() -> dict:
    """
    Load configuration from environment variables.

    Returns:
        Configuration dictionary with values from environment
    """
    result: dict = {}

    for env_var, path in ENV_MAPPINGS.items():
        value: Any = os.environ.get(env_var)
        if value is None:
            continue

        if env_var in FLOAT_ENV_VARS:
            try:
                value = float(value)
            except ValueError:
                logger.warning(f"Invalid number for {env_var}: {value}")
                continue
        elif env_var in LIST_ENV_VARS:
            value = _split_list(value)
        elif env_var in BOOL_ENV_VARS:
            value = value.lower() in ("true", "1", "yes", "on")

        _set_nested(result, path, value)

    return result


def _deep_merge(base: dict, override: dict) -> None:
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def merge_configs(*configs: dict) -> dict:
    """
    Deep merge multiple configuration dictionaries.
    Later configs override earlier ones.
    """
    result: dict = {}
    for config in configs:
        _deep_merge(result, config)
    return result


def dict_to_config(d: dict) -> Config:
    """Convert a dictionary to Config dataclass."""
    config = Config()

    # Monitor
    if "monitor" in d:
        m = d["monitor"] or {}
        config.monitor.poll_interval = m.get("poll_interval", config.monitor.poll_interval)
        config.monitor.restart_polling_on_reconnect = m.get(
            "restart_polling_on_reconnect", config.monitor.restart_polling_on_reconnect
        )
        config.monitor.connect_timeout = m.get("connect_timeout", config.monitor.connect_timeout)

    # Discovery
    if "discovery" in d:
        disc = d["discovery"] or {}
        # YAML allows a bare string for a single entry
        for name in ("known_hosts", "friendly_names"):
            value = disc.get(name, getattr(config.discovery, name))
            if isinstance(value, str):
                value = [value]
            setattr(config.discovery, name, value if value is not None else [])

    # Logging
    if "logging" in d:
        config.logging.level = (d["logging"] or {}).get("level", config.logging.level)

    return config


def load_config(
    config_path: Optional[Path] = None,
    cli_args: Optional[dict] = None,
) -> Config:
    """
    Load configuration from all sources.

    Priority (highest to lowest):
    1. CLI arguments
    2. Environment variables
    3. Config file
    4. Defaults

    Args:
        config_path: Path to YAML config file
        cli_args: Dictionary of CLI arguments

    Returns:
        Merged Config object

    Raises:
        ConfigError: If configuration is invalid
    """
    configs = []

    # 1. Load from file (lowest priority of explicit configs)
    if config_path:
        file_config = load_yaml_config(config_path)
        if file_config:
            configs.append(file_config)
            logger.debug(f"Loaded config from {config_path}")

    # 2. Load from environment
    env_config = load_env_config()
    if env_config:
        configs.append(env_config)
        logger.debug("Loaded config from environment variables")

    # 3. Load from CLI (highest priority)
    if cli_args:
        configs.append(cli_args)
        logger.debug("Loaded config from CLI arguments")

    merged = merge_configs(*configs) if configs else {}

    # Convert to Config object (fills in defaults)
    config = dict_to_config(merged)

    validate_config(config)

    return config
