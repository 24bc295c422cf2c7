"""
Display rounding shared by the calculators.
"""

from decimal import ROUND_HALF_UP, Decimal, getcontext

getcontext().prec = 28

CENT = Decimal("0.01")


def round2(value: Decimal) -> Decimal:
    """Round half away from zero to 2 decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
