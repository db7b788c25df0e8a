"""
chains/providers.py - JSON-RPC access to the chain endpoint.

Provides account state reads with:
- Caller-supplied deadlines (fail fast on expiry)
- Connection pooling
- Latency tracking

Every failure of a read surfaces as FetchError; a failed initial dial
surfaces as ConnectError.
"""

import asyncio
import os
import time
from dataclasses import dataclass
from typing import Any, Optional, Union
from urllib.parse import urlparse

import httpx

from core.constants import LATEST_BLOCK, PENDING_BLOCK, ErrorCode
from core.exceptions import ConnectError, FetchError
from core.logging import get_logger

logger = get_logger(__name__)

BlockRef = Union[int, str, None]


@dataclass
class RPCStats:
    """Statistics for an RPC endpoint."""
    url: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    timed_out_requests: int = 0
    total_latency_ms: int = 0
    last_error: str | None = None
    last_success_ts: int | None = None

    @property
    def avg_latency_ms(self) -> int:
        if self.successful_requests == 0:
            return 0
        return self.total_latency_ms // self.successful_requests

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests


@dataclass
class RPCResponse:
    """Response from an RPC call."""
    result: Any
    latency_ms: int


def encode_block(block: BlockRef) -> str:
    """
    Encode a block reference as a JSON-RPC block tag.

    None means latest confirmed state, PENDING_BLOCK the pending view and
    an int a specific block number.
    """
    if block is None:
        return LATEST_BLOCK
    if isinstance(block, int):
        return hex(block)
    return block


def parse_quantity(value: Any, method: str) -> int:
    """Decode a hex QUANTITY result."""
    if not isinstance(value, str) or not value.startswith("0x"):
        raise FetchError(
            f"Malformed quantity from {method}: {value!r}",
            ErrorCode.INFRA_BAD_RESPONSE,
            {"method": method},
        )
    try:
        return int(value, 16)
    except ValueError:
        raise FetchError(
            f"Malformed quantity from {method}: {value!r}",
            ErrorCode.INFRA_BAD_RESPONSE,
            {"method": method},
        )


def parse_data(value: Any, method: str) -> bytes:
    """Decode a hex DATA result."""
    if not isinstance(value, str) or not value.startswith("0x"):
        raise FetchError(
            f"Malformed data from {method}",
            ErrorCode.INFRA_BAD_RESPONSE,
            {"method": method},
        )
    try:
        return bytes.fromhex(value[2:])
    except ValueError:
        raise FetchError(
            f"Malformed data from {method}",
            ErrorCode.INFRA_BAD_RESPONSE,
            {"method": method},
        )


class RPCProvider:
    """
    JSON-RPC client for one chain endpoint.

    Exposes the account state reads the sweep needs. Stats are tracked for
    monitoring.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout_seconds: float = 10,
        max_connections: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        # Resolve ${VAR} placeholders such as API keys
        self.rpc_url = os.path.expandvars(rpc_url)
        self.timeout_seconds = timeout_seconds
        self.max_connections = max_connections
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._request_id = 0
        self.stats = RPCStats(url=self.rpc_url)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                limits=httpx.Limits(max_connections=self.max_connections),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _next_request_id(self) -> int:
        self._request_id += 1
        return self._request_id

    def _record_failure(self, error: str, timed_out: bool = False) -> None:
        self.stats.failed_requests += 1
        if timed_out:
            self.stats.timed_out_requests += 1
        self.stats.last_error = error

    async def call(
        self,
        method: str,
        params: list | None = None,
        timeout: float | None = None,
    ) -> RPCResponse:
        """
        Make an RPC call.

        Args:
            method: RPC method name
            params: Method parameters
            timeout: Seconds until the call is abandoned (None = client default)

        Returns:
            RPCResponse with result and metadata

        Raises:
            FetchError: On transport failure, timeout, RPC error or bad payload
        """
        details = {"url": self.rpc_url, "method": method}
        self.stats.total_requests += 1

        if timeout is not None and timeout <= 0:
            self._record_failure("Deadline exceeded before call", timed_out=True)
            raise FetchError(
                f"Deadline exceeded before {method}",
                ErrorCode.INFRA_TIMEOUT,
                details,
            )

        client = await self._get_client()
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": self._next_request_id(),
        }

        start_ms = int(time.time() * 1000)

        try:
            resp = await asyncio.wait_for(
                client.post(self.rpc_url, json=payload),
                timeout,
            )
            resp.raise_for_status()
            body = resp.json()
        except (asyncio.TimeoutError, httpx.TimeoutException):
            latency_ms = int(time.time() * 1000) - start_ms
            self._record_failure(f"Timeout after {latency_ms}ms", timed_out=True)
            logger.debug(f"RPC timeout for {method}: {latency_ms}ms")
            raise FetchError(
                f"RPC timeout after {latency_ms}ms: {method}",
                ErrorCode.INFRA_TIMEOUT,
                details,
            )
        except httpx.HTTPError as e:
            self._record_failure(str(e))
            logger.debug(f"RPC failed for {method}: {e}")
            raise FetchError(f"RPC transport error: {e}", ErrorCode.INFRA_RPC_ERROR, details)
        except ValueError as e:
            self._record_failure(f"Invalid JSON: {e}")
            raise FetchError(
                f"Invalid JSON from RPC: {e}",
                ErrorCode.INFRA_BAD_RESPONSE,
                details,
            )

        latency_ms = int(time.time() * 1000) - start_ms

        if not isinstance(body, dict):
            self._record_failure("Response is not a JSON object")
            raise FetchError(
                "RPC response is not a JSON object",
                ErrorCode.INFRA_BAD_RESPONSE,
                details,
            )

        if "error" in body:
            error = body["error"]
            error_msg = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            self._record_failure(error_msg)
            logger.debug(f"RPC error for {method}: {error_msg}")
            raise FetchError(f"RPC error: {error_msg}", ErrorCode.INFRA_RPC_ERROR, details)

        self.stats.successful_requests += 1
        self.stats.total_latency_ms += latency_ms
        self.stats.last_success_ts = int(time.time() * 1000)

        return RPCResponse(
            result=body.get("result"),
            latency_ms=latency_ms,
        )

    async def connect(self) -> int:
        """
        Dial the endpoint once and return its chain ID.

        Raises:
            ConnectError: If the URL is unusable or the endpoint does not answer
        """
        parsed = urlparse(self.rpc_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConnectError(
                f"Unsupported RPC endpoint URL: {self.rpc_url}",
                {"url": self.rpc_url},
            )

        try:
            return await self.get_chain_id()
        except FetchError as e:
            raise ConnectError(
                f"Failed to connect to RPC endpoint: {e.message}",
                {"url": self.rpc_url, "cause": e.code.value},
            )

    async def get_chain_id(self, timeout: float | None = None) -> int:
        """Get chain ID from RPC."""
        response = await self.call("eth_chainId", timeout=timeout)
        return parse_quantity(response.result, "eth_chainId")

    # -------------------------------------------------------------------------
    # Account state
    # -------------------------------------------------------------------------

    async def balance_at(
        self,
        address: str,
        block: BlockRef = None,
        timeout: float | None = None,
    ) -> int:
        """Balance in wei at the given block (None = latest)."""
        response = await self.call(
            "eth_getBalance", [address, encode_block(block)], timeout=timeout
        )
        return parse_quantity(response.result, "eth_getBalance")

    async def pending_balance_at(self, address: str, timeout: float | None = None) -> int:
        """Balance in wei including pending transactions."""
        return await self.balance_at(address, PENDING_BLOCK, timeout=timeout)

    async def nonce_at(
        self,
        address: str,
        block: BlockRef = None,
        timeout: float | None = None,
    ) -> int:
        """Transaction count at the given block (None = latest)."""
        response = await self.call(
            "eth_getTransactionCount", [address, encode_block(block)], timeout=timeout
        )
        return parse_quantity(response.result, "eth_getTransactionCount")

    async def pending_nonce_at(self, address: str, timeout: float | None = None) -> int:
        """Transaction count including pending transactions."""
        return await self.nonce_at(address, PENDING_BLOCK, timeout=timeout)

    async def code_at(
        self,
        address: str,
        block: BlockRef = None,
        timeout: float | None = None,
    ) -> bytes:
        """Contract code at the given block (empty for EOAs)."""
        response = await self.call(
            "eth_getCode", [address, encode_block(block)], timeout=timeout
        )
        return parse_data(response.result, "eth_getCode")

    def get_stats_summary(self) -> dict:
        """Get statistics summary for the endpoint."""
        s = self.stats
        return {
            "url": s.url,
            "total_requests": s.total_requests,
            "success_rate": round(s.success_rate, 3),
            "timed_out_requests": s.timed_out_requests,
            "avg_latency_ms": s.avg_latency_ms,
            "last_error": s.last_error,
        }
