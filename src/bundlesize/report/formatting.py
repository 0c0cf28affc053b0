"""Number formatting for reports: compact byte sizes and signed percentages."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Tuple

BYTE_UNITS: Tuple[str, ...] = ("B", "KB", "MB", "GB", "TB", "PB")


def _round_significant(value: Decimal, digits: int) -> Decimal:
    if value == 0:
        return Decimal(0)
    quantum = Decimal(1).scaleb(value.adjusted() - digits + 1)
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def _sign(value: Decimal, explicit: bool) -> str:
    if value < 0:
        return "-"
    if explicit and value > 0:
        return "+"
    return ""


def _localize(text: str, decimal_separator: str, group_separator: str) -> str:
    return text.replace(",", "\0").replace(".", decimal_separator).replace("\0", group_separator)


@dataclass(frozen=True, slots=True)
class ByteSizeFormatter:
    """Formats byte counts in compact decimal units, e.g. ``+3.5KB``."""

    significant_digits: int = 3
    explicit_sign: bool = True
    decimal_separator: str = "."
    group_separator: str = ","

    def compact(self, value: int) -> Tuple[Decimal, str]:
        magnitude = Decimal(abs(value))
        unit = 0
        rounded = _round_significant(magnitude, self.significant_digits)
        while rounded >= 1000 and unit < len(BYTE_UNITS) - 1:
            magnitude /= 1000
            unit += 1
            rounded = _round_significant(magnitude, self.significant_digits)
        return rounded, BYTE_UNITS[unit]

    def format(self, value: int) -> str:
        rounded, unit = self.compact(value)
        sign = _sign(Decimal(value), self.explicit_sign)
        number = format(rounded.normalize(), ",f")
        return f"{sign}{_localize(number, self.decimal_separator, self.group_separator)}{unit}"


@dataclass(frozen=True, slots=True)
class PercentFormatter:
    """Formats ratios as percentages with fixed fraction digits, e.g. ``+2.67%``."""

    fraction_digits: int = 2
    explicit_sign: bool = True
    decimal_separator: str = "."
    group_separator: str = ","

    def format(self, ratio: float) -> str:
        quantum = Decimal(1).scaleb(-self.fraction_digits)
        percent = (Decimal(repr(float(ratio))) * 100).quantize(quantum, rounding=ROUND_HALF_UP)
        sign = _sign(percent, self.explicit_sign)
        number = format(abs(percent), f",.{self.fraction_digits}f")
        return f"{sign}{_localize(number, self.decimal_separator, self.group_separator)}%"


DEFAULT_BYTE_FORMATTER = ByteSizeFormatter()
DEFAULT_PERCENT_FORMATTER = PercentFormatter()
