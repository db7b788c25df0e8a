"""
Typed exceptions for the exporter.

Startup errors (config, connect) are fatal; fetch errors are absorbed by
the sweep that raised them.
"""

from typing import Optional

from core.constants import ErrorCode


class ExporterError(Exception):
    """Base exception for the exporter."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self):
        return f"[{self.code.value}] {self.message}"


class ConfigError(ExporterError):
    """Invalid or missing startup configuration."""
    pass


class InfraError(ExporterError):
    """Infrastructure-related errors (RPC, timeouts)."""
    pass


class ConnectError(InfraError):
    """Initial dial of the chain endpoint failed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.INFRA_CONNECT_ERROR, details)


class FetchError(InfraError):
    """
    A single chain read failed.

    Defaults to INFRA_RPC_ERROR; timeouts use INFRA_TIMEOUT and
    undecodable results INFRA_BAD_RESPONSE.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INFRA_RPC_ERROR,
        details: Optional[dict] = None,
    ):
        super().__init__(message, code, details)
