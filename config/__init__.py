"""
Configuration loading for the exporter.

Settings come from a flat key/value listing (the process environment,
optionally preloaded from a .env file). Watch targets may additionally be
listed in a YAML file of `name: address` pairs.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

from core.constants import (
    DEFAULT_ADDRESS_PREFIX,
    DEFAULT_CONCURRENCY,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_METRIC_PREFIX,
    DEFAULT_SLEEP_SECONDS,
    ENV_ADDRESS_PREFIX,
    ENV_ADDRESSES_FILE,
    ENV_CONCURRENCY,
    ENV_FETCH_TIMEOUT_SECONDS,
    ENV_LOG_JSON,
    ENV_LOG_LEVEL,
    ENV_METRIC_PREFIX,
    ENV_PORT,
    ENV_RPC_URL,
    ENV_SLEEP_SECONDS,
    ErrorCode,
)
from core.exceptions import ConfigError


@dataclass(frozen=True)
class ExporterConfig:
    """Startup configuration."""
    rpc_url: str
    port: int
    metric_prefix: str = DEFAULT_METRIC_PREFIX
    sleep_seconds: int = DEFAULT_SLEEP_SECONDS
    address_prefix: str = DEFAULT_ADDRESS_PREFIX
    concurrency: int = DEFAULT_CONCURRENCY
    fetch_timeout_seconds: int = DEFAULT_FETCH_TIMEOUT_SECONDS
    addresses_file: Optional[str] = None
    log_level: str = DEFAULT_LOG_LEVEL
    json_logs: bool = True


def positive_int(value: Optional[str], default: int) -> int:
    """
    Parse a strictly positive integer, falling back to default.

    Non-numeric, zero and negative values all yield the default.
    """
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def parse_port(value: Optional[str]) -> int:
    """
    Parse the HTTP listen port.

    Raises:
        ConfigError: If the port is absent, non-numeric or out of range
    """
    if value is None or not value.strip():
        raise ConfigError(
            f"Missing required env {ENV_PORT}",
            ErrorCode.CONFIG_MISSING_PORT,
        )
    try:
        port = int(value.strip())
    except ValueError:
        raise ConfigError(
            f"Invalid {ENV_PORT}: {value!r}",
            ErrorCode.CONFIG_INVALID_PORT,
            {"value": value},
        )
    if not 0 < port < 65536:
        raise ConfigError(
            f"{ENV_PORT} out of range: {port}",
            ErrorCode.CONFIG_INVALID_PORT,
            {"value": value},
        )
    return port


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    env_file: Optional[str] = None,
) -> ExporterConfig:
    """
    Build the exporter configuration from a key/value listing.

    Args:
        environ: Listing to read (defaults to os.environ)
        env_file: Optional .env file loaded into os.environ first

    Returns:
        ExporterConfig

    Raises:
        ConfigError: If RPC or PORT is missing, or PORT is invalid
    """
    if environ is None:
        load_dotenv(env_file)
        environ = os.environ

    rpc_url = (environ.get(ENV_RPC_URL) or "").strip()
    if not rpc_url:
        raise ConfigError(
            f"Missing required env {ENV_RPC_URL}",
            ErrorCode.CONFIG_MISSING_RPC,
        )

    port = parse_port(environ.get(ENV_PORT))

    return ExporterConfig(
        rpc_url=rpc_url,
        port=port,
        metric_prefix=environ.get(ENV_METRIC_PREFIX, DEFAULT_METRIC_PREFIX),
        sleep_seconds=positive_int(environ.get(ENV_SLEEP_SECONDS), DEFAULT_SLEEP_SECONDS),
        address_prefix=environ.get(ENV_ADDRESS_PREFIX) or DEFAULT_ADDRESS_PREFIX,
        concurrency=positive_int(environ.get(ENV_CONCURRENCY), DEFAULT_CONCURRENCY),
        fetch_timeout_seconds=positive_int(
            environ.get(ENV_FETCH_TIMEOUT_SECONDS), DEFAULT_FETCH_TIMEOUT_SECONDS
        ),
        addresses_file=environ.get(ENV_ADDRESSES_FILE) or None,
        log_level=(environ.get(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper(),
        json_logs=parse_bool(environ.get(ENV_LOG_JSON), True),
    )


def load_yaml(filepath: str) -> Dict[str, Any]:
    """
    Load a YAML mapping.

    Args:
        filepath: Path to the YAML file

    Returns:
        Parsed YAML as dict

    Raises:
        ConfigError: If the file is missing, unparseable or not a mapping
    """
    path = Path(filepath)
    if not path.exists():
        raise ConfigError(
            f"Config file not found: {path}",
            ErrorCode.CONFIG_FILE_ERROR,
            {"path": str(path)},
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML in {path}: {e}",
            ErrorCode.CONFIG_FILE_ERROR,
            {"path": str(path)},
        )

    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a mapping in {path}",
            ErrorCode.CONFIG_FILE_ERROR,
            {"path": str(path)},
        )
    return data


def address_listing(
    config: ExporterConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Collect the key/value listing that watch targets are loaded from.

    Environment entries come first, in their listing order; entries of the
    addresses file follow, keyed with the address prefix so the registry
    treats both sources alike.
    """
    if environ is None:
        environ = os.environ

    listing = dict(environ)
    if config.addresses_file:
        for name, address in load_yaml(config.addresses_file).items():
            # Unquoted 0x... values load as YAML integers
            if isinstance(address, int) and not isinstance(address, bool):
                address = f"0x{address:040x}"
            listing[f"{config.address_prefix}{name}"] = str(address)
    return listing
