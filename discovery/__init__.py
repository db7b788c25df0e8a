"""
discovery/ - Watch target discovery.

Modules:
- registry: AddressRegistry loaded from a key/value listing
"""

from discovery.registry import AddressRegistry

__all__ = ["AddressRegistry"]
