"""Decimal rounding helpers for reported scores."""

from decimal import ROUND_HALF_UP, Decimal


def round_half_away_from_zero(value: float, ndigits: int = 2) -> float:
    """Round ``value`` to ``ndigits`` decimals, ties away from zero.

    The builtin ``round`` uses banker's rounding and works on the binary
    float, so ``round(2.675, 2) == 2.67``. Going through the shortest
    decimal representation gives ``2.68``.
    """
    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))
