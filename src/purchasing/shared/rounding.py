"""Currency rounding helpers.

Amounts are whole forints. Cash settlements are rounded to the nearest
multiple of 5; every other rounding in the purchasing domain is half away
from zero.
"""

from decimal import ROUND_HALF_UP, Decimal


def round_half_away(value) -> int:
    """Round a number to the nearest integer, ties away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cash_round(amount: int) -> int:
    """Round an amount to the nearest multiple of 5.

    The magnitude is rounded and the sign reapplied, so
    ``cash_round(-x) == -cash_round(x)``. Last digits 1-2 and 6-7 round down,
    3-4 and 8-9 round up.

    >>> cash_round(2286)
    2285
    >>> cash_round(-1238)
    -1240
    """
    magnitude = abs(amount)
    last_digit = magnitude % 10

    if last_digit in (1, 2):
        magnitude -= last_digit
    elif last_digit in (3, 4):
        magnitude += 5 - last_digit
    elif last_digit in (6, 7):
        magnitude -= last_digit - 5
    elif last_digit in (8, 9):
        magnitude += 10 - last_digit

    return -magnitude if amount < 0 else magnitude
