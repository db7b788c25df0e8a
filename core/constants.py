"""
core/constants.py - Enums, defaults, and constants.

Contains:
- ErrorCode: Canonical error codes carried by every ExporterError
- Environment variable names and their defaults
- Sweep defaults (concurrency ceiling, per-task deadline)
- Metric names of the exposition text
"""

from enum import Enum
from typing import Final, Tuple


# =============================================================================
# ENVIRONMENT
# =============================================================================

ENV_RPC_URL: Final = "RPC"
ENV_PORT: Final = "PORT"
ENV_METRIC_PREFIX: Final = "PREFIX"
ENV_SLEEP_SECONDS: Final = "SLEEP_SECONDS"
ENV_ADDRESS_PREFIX: Final = "ADDRESS_PREFIX"
ENV_CONCURRENCY: Final = "CONCURRENCY"
ENV_FETCH_TIMEOUT_SECONDS: Final = "FETCH_TIMEOUT_SECONDS"
ENV_ADDRESSES_FILE: Final = "ADDRESSES_FILE"
ENV_LOG_LEVEL: Final = "LOG_LEVEL"
ENV_LOG_JSON: Final = "LOG_JSON"

DEFAULT_ADDRESS_PREFIX: Final = "ethaddr_"
DEFAULT_METRIC_PREFIX: Final = ""
DEFAULT_LOG_LEVEL: Final = "INFO"
DEFAULT_LISTEN_HOST: Final = "0.0.0.0"
METRICS_ROUTE: Final = "/metrics"


# =============================================================================
# SWEEP
# =============================================================================

DEFAULT_SLEEP_SECONDS: Final = 15
DEFAULT_CONCURRENCY: Final = 8
DEFAULT_FETCH_TIMEOUT_SECONDS: Final = 5

# Native value is 10^18 smallest units per ether
WEI_DECIMALS: Final = 18

# Block reference for the pending (mempool) view
PENDING_BLOCK: Final = "pending"
LATEST_BLOCK: Final = "latest"


# =============================================================================
# METRICS
# =============================================================================

METRIC_BALANCE: Final = "eth_balance"
METRIC_BALANCE_PENDING: Final = "eth_balance_pending"
METRIC_NONCE: Final = "eth_nonce"
METRIC_NONCE_PENDING: Final = "eth_nonce_pending"
METRIC_IS_CONTRACT: Final = "eth_is_contract"
METRIC_CODE_SIZE: Final = "eth_code_size_bytes"
METRIC_LAST_UPDATED: Final = "eth_last_updated_unixtime"
METRIC_CONTRACTS_TOTAL: Final = "eth_contract_addresses_total"
METRIC_EOAS_TOTAL: Final = "eth_eoa_addresses_total"
METRIC_LOAD_SECONDS: Final = "eth_load_seconds"
METRIC_LOADED_ADDRESSES: Final = "eth_loaded_addresses"
METRIC_TOTAL_ADDRESSES: Final = "eth_total_addresses"

# Order of the per-address block
PER_ADDRESS_METRICS: Tuple[str, ...] = (
    METRIC_BALANCE,
    METRIC_BALANCE_PENDING,
    METRIC_NONCE,
    METRIC_NONCE_PENDING,
    METRIC_IS_CONTRACT,
    METRIC_CODE_SIZE,
    METRIC_LAST_UPDATED,
)


class ErrorCode(str, Enum):
    """
    Error codes for ExporterError.

    CONFIG_* codes are fatal at startup; INFRA_CONNECT_ERROR is fatal at
    startup; the remaining INFRA_* codes are recoverable per fetch.
    """
    # Configuration
    CONFIG_MISSING_RPC = "CONFIG_MISSING_RPC"
    CONFIG_MISSING_PORT = "CONFIG_MISSING_PORT"
    CONFIG_INVALID_PORT = "CONFIG_INVALID_PORT"
    CONFIG_NO_ADDRESSES = "CONFIG_NO_ADDRESSES"
    CONFIG_FILE_ERROR = "CONFIG_FILE_ERROR"

    # Chain endpoint
    INFRA_CONNECT_ERROR = "INFRA_CONNECT_ERROR"
    INFRA_RPC_ERROR = "INFRA_RPC_ERROR"
    INFRA_TIMEOUT = "INFRA_TIMEOUT"
    INFRA_BAD_RESPONSE = "INFRA_BAD_RESPONSE"

    UNKNOWN = "UNKNOWN"
