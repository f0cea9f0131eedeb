from __future__ import annotations
from enum import Enum


class NetlexError(Exception):
    """Base class for every error raised by netlex."""


class ValidationError(NetlexError, ValueError):
    """Malformed or inconsistent input (unknown vertex, duplicate id, bad threshold...)."""


class MissingAttributeError(NetlexError, KeyError):
    """A requested weight/attribute is absent on an edge or a table."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable
        return str(self.args[0]) if self.args else ""


class DimensionMismatchError(NetlexError, ValueError):
    """Matrix or sequence operands with incompatible shapes."""


class DivideByZeroPolicy(Enum):
    """What a ratio returns when its denominator is zero. Not an exception."""
    NAN = "nan"
    NONE = "none"

    def value_for_zero(self):
        return float("nan") if self is DivideByZeroPolicy.NAN else None


def safe_ratio(numerator: float, denominator: float, on_zero: DivideByZeroPolicy = DivideByZeroPolicy.NAN):
    if denominator == 0:
        return on_zero.value_for_zero()
    return numerator / denominator
