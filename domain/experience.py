"""
Experience curve arithmetic.

Maps between a cumulative experience point total and the host game's
native (level, progress) pair. The curve has three quadratic regimes split
at levels 16 and 31; the coefficients are the game's own and must not be
altered.

All arithmetic runs in a private decimal context so that repeated
conversions do not drift.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Context, Decimal
from typing import Tuple, Union

from .errors import InvalidAmountError

LOW_MAX = 16
MID_MAX = 31

_CONTEXT = Context(prec=34, rounding=ROUND_HALF_UP)
_ONE = Decimal(1)

Progress = Union[Decimal, float, int, str]


def _to_decimal(value: Progress) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # The host stores progress as a float; go through repr so 0.1 stays 0.1.
        return Decimal(repr(value))
    return Decimal(value)


def points_to_reach_level(level: int) -> int:
    """
    Total points needed to go from level 0 to `level`.

    - level <= 16:       level^2 + 6*level
    - 16 < level <= 31:  2.5*level^2 - 40.5*level + 360
    - level > 31:        4.5*level^2 - 162.5*level + 2220
    """

    c = _CONTEXT
    x = Decimal(level)
    if level <= LOW_MAX:
        total = c.add(c.multiply(x, x), c.multiply(Decimal(6), x))
    elif level <= MID_MAX:
        total = c.add(
            c.subtract(
                c.multiply(Decimal("2.5"), c.multiply(x, x)),
                c.multiply(Decimal("40.5"), x),
            ),
            Decimal(360),
        )
    else:
        total = c.add(
            c.subtract(
                c.multiply(Decimal("4.5"), c.multiply(x, x)),
                c.multiply(Decimal("162.5"), x),
            ),
            Decimal(2220),
        )
    return int(total.quantize(_ONE, rounding=ROUND_HALF_UP))


def points_to_next_level(level: int) -> int:
    """Cost in points of the single level-up that starts at `level`."""

    if level < LOW_MAX:
        return 2 * level + 7
    if level < MID_MAX:
        return 5 * level - 38
    return 9 * level - 158


def _curve_position(total: int) -> Decimal:
    # Analytic inverse of each regime, written in quadratic-formula form so
    # that totals sitting exactly on a level boundary invert to an exact
    # integer.
    c = _CONTEXT
    t = Decimal(total)
    if total <= points_to_reach_level(LOW_MAX):
        # sqrt(t + 9) - 3
        return c.subtract(c.sqrt(c.add(t, Decimal(9))), Decimal(3))
    if total <= points_to_reach_level(MID_MAX):
        # (40.5 + sqrt(10t - 1959.75)) / 5
        root = c.sqrt(c.subtract(c.multiply(Decimal(10), t), Decimal("1959.75")))
        return c.divide(c.add(Decimal("40.5"), root), Decimal(5))
    # (162.5 + sqrt(18t - 13553.75)) / 9
    root = c.sqrt(c.subtract(c.multiply(Decimal(18), t), Decimal("13553.75")))
    return c.divide(c.add(Decimal("162.5"), root), Decimal(9))


def level_progress_from_total(total: int) -> Tuple[int, Decimal]:
    """
    Split a cumulative point total into (level, progress).

    `progress` is the fractional position inside the level, in [0, 1).

    Raises:
        InvalidAmountError: if `total` is negative.
    """

    if total < 0:
        raise InvalidAmountError(f"Experience total cannot be negative: {total}")

    position = _curve_position(int(total))
    level = position.to_integral_value(rounding=ROUND_FLOOR)
    progress = _CONTEXT.subtract(position, level)
    return int(level), progress


def total_from_level_progress(level: int, progress: Progress) -> int:
    """Inverse of `level_progress_from_total`, rounded to whole points."""

    if level < 0:
        raise InvalidAmountError(f"Level cannot be negative: {level}")

    in_level = _CONTEXT.multiply(Decimal(points_to_next_level(level)), _to_decimal(progress))
    return points_to_reach_level(level) + int(in_level.quantize(_ONE, rounding=ROUND_HALF_UP))
