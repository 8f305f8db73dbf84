# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Numeric helpers for statistics.

Python's built-in round() uses banker's rounding (``round(62.5) == 62``).
Dashboard percentages and averages round half away from zero instead, so
``62.5`` becomes ``63`` and ``74.25`` at one decimal becomes ``74.3``.
"""

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, digits: int = 0) -> float:
    """Round a number half away from zero.

    Args:
        value: Number to round.
        digits: Number of decimal places to keep.

    Returns:
        Rounded value as float.
    """
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percentage(numerator: int, denominator: int) -> int:
    """Integer percentage of numerator over denominator.

    Returns 0 when the denominator is 0, so an empty data set never
    produces an error or a null.

    Args:
        numerator: Count of matching rows.
        denominator: Count of all rows.

    Returns:
        Percentage in [0, 100] when numerator <= denominator.
    """
    if denominator <= 0:
        return 0
    return int(round_half_up(100 * numerator / denominator))
