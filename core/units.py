"""
core/units.py - Exact conversion of native smallest units.

No float money: wei balances are scaled with Decimal so magnitudes beyond
the float mantissa keep every digit.
"""

from decimal import Decimal, localcontext
from typing import Union

from core.constants import WEI_DECIMALS

# uint256 has 78 decimal digits
_PRECISION = 100


def wei_to_ether(wei: Union[int, str, Decimal], decimals: int = WEI_DECIMALS) -> Decimal:
    """
    Scale a smallest-unit amount by 10^-decimals.

    Args:
        wei: Amount in smallest units
        decimals: Scale exponent (18 for ether)

    Returns:
        Exact Decimal amount
    """
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(wei).scaleb(-decimals).normalize()


def format_ether(wei: Union[int, str, Decimal], decimals: int = WEI_DECIMALS) -> str:
    """
    Format a smallest-unit amount as a plain decimal string.

    Trailing zeros are dropped and exponent notation is never used.

    Example:
        >>> format_ether(10**18)
        '1'
        >>> format_ether(5 * 10**17)
        '0.5'
        >>> format_ether(1)
        '0.000000000000000001'
    """
    value = wei_to_ether(wei, decimals)
    if value == 0:
        return "0"
    return format(value, "f")
