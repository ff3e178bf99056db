from __future__ import annotations

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Union

from .errors import InvalidAmountError

Amount = Union[Decimal, int, str]


def parse_amount(value: Union[Amount, float]) -> Decimal:
    """
    Coerce a user- or API-supplied amount into a finite Decimal.

    Floats go through `repr` so that 0.1 is read as 0.1 rather than its
    binary approximation.
    """

    if isinstance(value, bool):
        raise InvalidAmountError(f"Not an amount: {value!r}")
    try:
        amount = Decimal(repr(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidAmountError(f"Not an amount: {value!r}") from exc
    if not amount.is_finite():
        raise InvalidAmountError(f"Not an amount: {value!r}")
    return amount


class ScaleMethod(Enum):
    """
    How a raw point balance is shown to, and typed by, a player.

    POINTS shows the raw count as a whole number. LEVELS divides the raw
    count by one hundred and truncates to two decimal places.
    """

    POINTS = (0, ROUND_HALF_UP, "point", "points")
    LEVELS = (2, ROUND_DOWN, "level", "levels")

    def __init__(self, scale: int, rounding: str, unit_name: str, unit_name_plural: str) -> None:
        self.scale = scale
        self.rounding = rounding
        self.unit_name = unit_name
        self.unit_name_plural = unit_name_plural

    @classmethod
    def default(cls) -> "ScaleMethod":
        return cls.POINTS

    @classmethod
    def parse(cls, name: str) -> "ScaleMethod":
        """Look a method up by name, ignoring case."""

        try:
            return cls[name.strip().upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown economy method: {name!r}") from exc

    @property
    def _quantum(self) -> Decimal:
        return Decimal(1).scaleb(-self.scale)

    def quantize(self, amount: Amount) -> Decimal:
        """Fix `amount` to this method's decimal places and rounding."""

        return parse_amount(amount).quantize(self._quantum, rounding=self.rounding)

    def to_display(self, raw: int) -> Decimal:
        return (Decimal(raw).scaleb(-self.scale)).quantize(self._quantum, rounding=self.rounding)

    def to_raw(self, amount: Amount) -> int:
        """
        Convert a display amount to whole raw points.

        Raises:
            InvalidAmountError: if `amount` is negative or not a number.
        """

        value = parse_amount(amount)
        if value < 0:
            raise InvalidAmountError(f"Amount cannot be negative: {value}")
        return int(value.scaleb(self.scale).quantize(Decimal(1), rounding=self.rounding))

    def currency_name(self, amount: Amount) -> str:
        return self.unit_name if parse_amount(amount) == 1 else self.unit_name_plural

    def format(self, amount: Amount, with_unit_name: bool = False) -> str:
        """Render `amount` with thousands separators, e.g. ``1,234.50 levels``."""

        value = self.quantize(amount)
        text = f"{value:,.{self.scale}f}"
        if with_unit_name:
            text = f"{text} {self.currency_name(value)}"
        return text
