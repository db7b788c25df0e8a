"""
core - Core utilities and models for the exporter.

This package contains:
- models.py: Data models (WatchTarget, Observation, SweepStats)
- constants.py: Error codes, defaults and metric names
- exceptions.py: Typed exceptions with error codes
- units.py: Exact wei -> ether conversion (no float)
- validators.py: Chain address validation
- logging.py: Structured JSON logging
"""

from core.constants import ErrorCode
from core.exceptions import (
    ConfigError,
    ConnectError,
    ExporterError,
    FetchError,
    InfraError,
)
from core.logging import get_logger, set_global_context, setup_logging
from core.models import Observation, SweepStats, WatchTarget
from core.units import format_ether, wei_to_ether
from core.validators import is_valid_address, normalize_address

__all__ = [
    # Constants
    "ErrorCode",
    # Exceptions
    "ConfigError",
    "ConnectError",
    "ExporterError",
    "FetchError",
    "InfraError",
    # Models
    "Observation",
    "SweepStats",
    "WatchTarget",
    # Units
    "format_ether",
    "wei_to_ether",
    # Validators
    "is_valid_address",
    "normalize_address",
    # Logging
    "get_logger",
    "set_global_context",
    "setup_logging",
]
