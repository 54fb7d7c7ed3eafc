"""
Numeric wire formatting.

The exchange re-hashes prices and sizes from their string form, so the
string produced here is part of the signed payload. Any drift changes
the hash and the order is rejected server-side as a bad signature.
"""
import math
from decimal import Decimal, getcontext
from typing import Union

from hl_l1.errors import InvalidNumber

getcontext().prec = 40  # plenty of headroom

# The exchange keeps prices/sizes as 8-decimal fixed point in a signed int64.
WIRE_DECIMALS = 8
MAX_WIRE_ABS = (2 ** 63 - 1) / 10 ** WIRE_DECIMALS
ROUNDING_TOLERANCE = 1e-12


def check_finite(x: Union[float, int]) -> float:
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        raise InvalidNumber(f"expected a number, got {type(x).__name__}", {"value": repr(x)})
    x = float(x)
    if not math.isfinite(x):
        raise InvalidNumber(f"non-finite value: {x}", {"value": repr(x)})
    if abs(x) >= MAX_WIRE_ABS:
        raise InvalidNumber(f"value out of range: {x}", {"value": repr(x)})
    return x


def float_to_wire(x: Union[float, int]) -> str:
    """
    Render a price/size as the exact decimal string the exchange verifies.

    Trailing zeros are trimmed, exponent notation is never used and at
    least one digit is kept before the point. Values that cannot be
    expressed with 8 decimals without rounding are rejected.
    """
    x = check_finite(x)
    rounded = f"{x:.{WIRE_DECIMALS}f}"
    if abs(float(rounded) - x) >= ROUNDING_TOLERANCE:
        raise InvalidNumber(f"float_to_wire causes rounding: {x}", {"value": repr(x)})
    s = format(Decimal(rounded).normalize(), "f")
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    if s in ("-0", ""):
        s = "0"
    return s


def float_to_int(x: Union[float, int], power: int) -> int:
    """Scale to a fixed-point integer with `power` decimals; rejects lossy input."""
    x = check_finite(x)
    with_decimals = x * 10 ** power
    if abs(round(with_decimals) - with_decimals) >= 1e-3:
        raise InvalidNumber(f"float_to_int causes rounding: {x}", {"value": repr(x), "power": power})
    return round(with_decimals)


def float_to_usd_int(x: Union[float, int]) -> int:
    return float_to_int(x, 6)
