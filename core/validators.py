"""
core/validators.py - Chain address validation.

Accepted forms:
- 0x-prefixed hex with 39 or 40 digits (39 digits is a 20-byte address
  written without its leading zero nibble, left-padded back)
- bare hex with exactly 40 digits

Mixed case is accepted; no EIP-55 checksum enforcement.
"""

import re
from typing import Optional

ADDRESS_HEX_DIGITS = 40

_PREFIXED_RE = re.compile(r"^0[xX]([0-9a-fA-F]{39,40})$")
_BARE_RE = re.compile(r"^([0-9a-fA-F]{40})$")


def normalize_address(value: object) -> Optional[str]:
    """
    Normalize a chain address to 0x + 40 lowercase hex digits.

    Args:
        value: Candidate address text

    Returns:
        Normalized address, or None if value is not a valid address
    """
    if not isinstance(value, str):
        return None

    match = _PREFIXED_RE.match(value) or _BARE_RE.match(value)
    if match is None:
        return None

    return "0x" + match.group(1).lower().rjust(ADDRESS_HEX_DIGITS, "0")


def is_valid_address(value: object) -> bool:
    """Check if value is a syntactically valid chain address."""
    return normalize_address(value) is not None
