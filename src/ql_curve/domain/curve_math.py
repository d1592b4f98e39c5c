"""Linear bonding curve math. Pure functions, no state.

With base price b, slope s and cumulative units sold n (all scaled by 10**18):

    price(n)     = b + s*n / SCALE
    totalCost(n) = b*n / SCALE + s*n^2 / (2 * SCALE^2)

Purchases invert totalCost with the quadratic formula on the scaled
discriminant b^2 + 2*s*C, where C is the total cost after the purchase:

    N = (isqrt(b^2 + 2*s*C) - b) * SCALE / s

Sales are exact: totalCost(n) - totalCost(n - units).
Every intermediate goes through the checked fixed_point helpers.
"""

from src.ql_common.errors import InvalidParameterError, NotEnoughUnitsSoldError
from src.ql_common.fixed_point import SCALE, add, checked, div, mul, sub


def isqrt(x: int) -> int:
    """Integer square root by Babylonian iteration, stops once y no longer decreases."""
    checked(x, "isqrt")
    if x == 0:
        return 0
    z = (x + 1) // 2
    y = x
    while z < y:
        y = z
        z = (x // z + z) // 2
    return y


def price_at(base_price: int, slope: int, units_sold: int) -> int:
    """Marginal price after units_sold units have left the curve."""
    return add(base_price, div(mul(slope, units_sold), SCALE))


def total_cost(base_price: int, slope: int, units_sold: int) -> int:
    """Integral of price from 0 to units_sold."""
    linear = div(mul(base_price, units_sold), SCALE)
    quadratic = div(mul(mul(slope, units_sold), units_sold), mul(2 * SCALE, SCALE))
    return add(linear, quadratic)


def purchase_return(base_price: int, slope: int, units_sold: int, spend: int) -> int:
    """Units obtained for spending `spend` (already net of fees) at units_sold.

    Returns 0 when spend is too small to move the curve by one base unit.
    """
    if spend == 0:
        return 0
    if slope == 0:
        if base_price == 0:
            raise InvalidParameterError("curve with zero base price and zero slope")
        return div(mul(spend, SCALE), base_price)

    cost_after = add(total_cost(base_price, slope, units_sold), spend)
    discriminant = add(mul(base_price, base_price), mul(mul(2, slope), cost_after))
    root = isqrt(discriminant)
    if root <= base_price:
        return 0
    units_after = div(mul(sub(root, base_price), SCALE), slope)
    if units_after <= units_sold:
        return 0
    return units_after - units_sold


def sale_return(base_price: int, slope: int, units_sold: int, units: int) -> int:
    """Value refunded (before fees) for returning `units` to the curve."""
    if units > units_sold:
        raise NotEnoughUnitsSoldError()
    return sub(
        total_cost(base_price, slope, units_sold),
        total_cost(base_price, slope, units_sold - units),
    )
