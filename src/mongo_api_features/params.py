"""QueryParams: request parameters split into control keys and filter predicates."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .exceptions import FilterParseError, OperatorNotFoundError
from .operators import FilterOperator

RESERVED_KEYS = frozenset({"page", "sort", "limit", "fields", "search", "populate"})

# field or field[op]; nested brackets are rejected
_KEY_PATTERN = re.compile(r"^(?P<field>[^\[\]]+)(?:\[(?P<op>[^\[\]]*)\])?$")


@dataclass(frozen=True)
class Predicate:
    """One comparison on one field. ``operator`` is None for plain equality."""

    field: str
    operator: FilterOperator | None
    value: Any
    key: str = ""


@dataclass(frozen=True)
class QueryParams:
    """Validated view of a request's query parameters."""

    page: str | None = None
    sort: str | None = None
    limit: str | None = None
    fields: str | None = None
    search: str | None = None
    populate: str | None = None
    predicates: tuple[Predicate, ...] = ()

    @classmethod
    def from_mapping(
        cls, params: Mapping[str, Any] | QueryParams | None
    ) -> QueryParams:
        """Parse a raw mapping.

        Accepts flat bracket keys (``{"price[gte]": "10"}``) as well as the
        nested shape produced by bracket-aware parsers
        (``{"price": {"gte": "10"}}``). Raises ``FilterParseError`` on the
        first malformed key; nothing is returned partially parsed.
        """
        if isinstance(params, QueryParams):
            return params
        if params is None:
            return cls()
        control: dict[str, str | None] = {}
        predicates: list[Predicate] = []
        for key, value in params.items():
            if key in RESERVED_KEYS:
                control[key] = _control_value(value)
                continue
            predicates.extend(_parse_filter_entry(key, value))
        return cls(predicates=tuple(predicates), **control)

    @property
    def has_page(self) -> bool:
        return bool(self.page)

    def filter_fields(self) -> list[str]:
        """Distinct filtered fields, in first-seen order."""
        return list(dict.fromkeys(p.field for p in self.predicates))


def split_list(raw: str | None) -> list[str]:
    """Split a comma-separated parameter, dropping blanks."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def _control_value(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


def _parse_filter_entry(key: str, value: Any) -> list[Predicate]:
    match = _KEY_PATTERN.match(key)
    if match is None:
        raise FilterParseError(key, f"Malformed filter key: {key!r}")
    field_name = match.group("field").strip()
    _validate_field(key, field_name)
    op_token = match.group("op")

    if op_token is not None:
        if isinstance(value, Mapping):
            raise FilterParseError(
                key, f"Operator key {key!r} cannot carry a nested object"
            )
        return [Predicate(field_name, _parse_operator(key, op_token), value, key)]

    if isinstance(value, Mapping):
        out: list[Predicate] = []
        for token, operand in value.items():
            sub_key = f"{field_name}[{token}]"
            if isinstance(operand, Mapping):
                raise FilterParseError(
                    sub_key, f"Nested filter objects are not supported: {sub_key!r}"
                )
            out.append(
                Predicate(
                    field_name, _parse_operator(sub_key, str(token)), operand, sub_key
                )
            )
        return out

    return [Predicate(field_name, None, value, key)]


def _validate_field(key: str, field_name: str) -> None:
    if not field_name:
        raise FilterParseError(key, "Filter key has an empty field name")
    if field_name.startswith("$"):
        raise FilterParseError(
            key, f"Field name {field_name!r} collides with operator syntax"
        )


def _parse_operator(key: str, token: str) -> FilterOperator:
    token = token.strip().lower()
    if not token:
        raise FilterParseError(key, f"Empty operator in {key!r}")
    try:
        return FilterOperator(token)
    except ValueError:
        raise OperatorNotFoundError(key, token, FilterOperator.values()) from None
