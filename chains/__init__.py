"""
chains/ - Blockchain interaction layer.

Modules:
- providers: JSON-RPC client for account state reads
"""

from chains.providers import (
    BlockRef,
    RPCProvider,
    RPCResponse,
    RPCStats,
    encode_block,
)

__all__ = [
    "BlockRef",
    "RPCProvider",
    "RPCResponse",
    "RPCStats",
    "encode_block",
]
