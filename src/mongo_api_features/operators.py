"""Filter operators accepted in ``field[op]`` query keys."""

from __future__ import annotations

from enum import Enum


class FilterOperator(str, Enum):
    """Operators accepted in ``field[op]`` query keys."""

    # Comparison
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"

    # Membership
    IN = "in"
    NIN = "nin"

    # Pattern matching
    REGEX = "regex"
    OPTIONS = "options"

    @property
    def mongo(self) -> str:
        """Native MongoDB token, e.g. ``gte`` -> ``$gte``."""
        return f"${self.value}"

    @classmethod
    def values(cls) -> list[str]:
        return [op.value for op in cls]


SET_OPERATORS = frozenset({FilterOperator.IN, FilterOperator.NIN})

# Operands passed through verbatim, never coerced to numbers or booleans.
PATTERN_OPERATORS = frozenset({FilterOperator.REGEX, FilterOperator.OPTIONS})

# Operators whose operands are parsed as datetimes on date fields.
DATE_RANGE_OPERATORS = frozenset({FilterOperator.GTE, FilterOperator.LTE})
