"""
Translator configuration.

``ApiFeaturesConfig`` holds every default the translator falls back to when
a request omits a parameter. Instances are immutable; derive variants with
``with_overrides``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True)
class ApiFeaturesConfig:
    """
    Immutable container for translator defaults.

    Attributes:
        search_fields: Fields matched by ``search`` when the caller passes none.
        default_sort: Ordering used when ``sort`` is absent, in the
            comma-separated ``-field`` form.
        version_field: Internal revision field hidden when ``fields`` is absent.
        default_limit: Page size used when ``limit`` is absent or invalid.
        max_limit: Optional upper bound for the requested page size.
        date_fields: Fields whose ``gte``/``lte`` operands are parsed as dates:
            ISO-8601 datetimes, plus the ``YYYY`` and ``YYYY-MM`` shorthands.
        coerce_values: Convert ``true``/``false``/``null`` and numeric strings
            that round-trip exactly (``"007"`` and ``"1e3"`` stay text)
            into Python values before querying.
    """

    search_fields: tuple[str, ...] = ("name", "email", "title")
    default_sort: str = "-createdAt"
    version_field: str = "__v"
    default_limit: int = 100
    max_limit: int | None = None
    date_fields: tuple[str, ...] = ("date",)
    coerce_values: bool = True

    def __post_init__(self) -> None:
        if self.default_limit < 1:
            raise ValueError("default_limit must be a positive integer")
        if self.max_limit is not None and self.max_limit < 1:
            raise ValueError("max_limit must be a positive integer or None")

    def with_overrides(self, **changes: Any) -> ApiFeaturesConfig:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


DEFAULT_CONFIG = ApiFeaturesConfig()
