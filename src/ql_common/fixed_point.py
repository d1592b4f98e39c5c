"""Checked fixed-point arithmetic for curve values and units.

All prices, amounts, and balances are unsigned ints scaled by 10**18.
No float. Results outside [0, 2**256 - 1] raise ArithmeticOverflowError,
they never wrap.
"""

from decimal import Decimal, InvalidOperation, localcontext

from src.ql_common.errors import ArithmeticOverflowError, InvalidParameterError

SCALE = 10**18
BPS_DENOMINATOR = 10_000
UINT256_MAX = 2**256 - 1


def checked(value: int, op: str = "value") -> int:
    """Return value if it fits in uint256, else raise."""
    if value < 0 or value > UINT256_MAX:
        raise ArithmeticOverflowError(op)
    return value


def add(a: int, b: int) -> int:
    return checked(a + b, "add")


def sub(a: int, b: int) -> int:
    return checked(a - b, "sub")


def mul(a: int, b: int) -> int:
    return checked(a * b, "mul")


def div(a: int, b: int) -> int:
    if b == 0:
        raise ArithmeticOverflowError("division by zero")
    return checked(a // b, "div")


def bps_of(amount: int, bps: int) -> int:
    """Floor basis-point share: amount * bps // 10000."""
    return div(mul(amount, bps), BPS_DENOMINATOR)


def to_fixed(amount: str | int | Decimal) -> int:
    """Parse a decimal amount into 18-decimal fixed point: '0.0001' -> 10**14."""
    with localcontext() as ctx:
        ctx.prec = 100
        try:
            scaled = Decimal(str(amount)) * SCALE
        except InvalidOperation:
            raise InvalidParameterError(f"not a decimal amount: {amount!r}") from None
    if not scaled.is_finite():
        raise InvalidParameterError(f"not a decimal amount: {amount!r}")
    if scaled != scaled.to_integral_value():
        raise InvalidParameterError(f"more than 18 decimals: {amount!r}")
    return checked(int(scaled), "to_fixed")


def to_display(value: int) -> str:
    """Render fixed point as a plain decimal string: 10**14 -> '0.0001'."""
    whole, frac = divmod(value, SCALE)
    if frac == 0:
        return str(whole)
    return f"{whole}.{frac:018d}".rstrip("0")
