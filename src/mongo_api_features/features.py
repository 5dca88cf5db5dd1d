"""
ApiFeatures: translate request parameters into a MongoDB query.

Each step exists twice: as a pure ``apply_*`` function from ``QuerySpec`` to
``QuerySpec``, and as a chainable ``ApiFeatures`` method that rebinds
``ApiFeatures.query``. ``filter`` and ``search`` AND their constraints
together; the remaining steps set independent options where the last call
wins, except ``populate`` which accumulates.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

from .config import DEFAULT_CONFIG, ApiFeaturesConfig
from .exceptions import ApiFeaturesError, FilterParseError
from .operators import (
    DATE_RANGE_OPERATORS,
    PATTERN_OPERATORS,
    SET_OPERATORS,
)
from .pagination import PaginationInfo, get_pagination
from .params import Predicate, QueryParams, split_list

if TYPE_CHECKING:
    from .query import MongoQuery, QuerySpec

logger = logging.getLogger("mongo_api_features.features")

_NUMBER = re.compile(r"^-?\d+(?:\.\d+)?$")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_PARTIAL_DATE = re.compile(r"^(\d{4})(?:-(\d{2}))?$")


# ── Filter ───────────────────────────────────────────────────────────


def build_filter(
    params: QueryParams, config: ApiFeaturesConfig = DEFAULT_CONFIG
) -> dict[str, Any]:
    """Build the MongoDB filter document for the non-reserved parameters."""
    plain: dict[str, Any] = {}
    conditions: dict[str, dict[str, Any]] = {}
    for predicate in params.predicates:
        if predicate.operator is None:
            plain[predicate.field] = _plain_operand(predicate, config)
        else:
            ops = conditions.setdefault(predicate.field, {})
            ops[predicate.operator.mongo] = _operand(predicate, config)

    document: dict[str, Any] = {}
    for field in params.filter_fields():
        if field not in conditions:
            value = plain[field]
            document[field] = {"$in": value} if isinstance(value, list) else value
            continue
        ops = dict(conditions[field])
        if field in plain:
            value = plain[field]
            ops.setdefault("$in" if isinstance(value, list) else "$eq", value)
        document[field] = ops
    return document


def apply_filter(
    spec: QuerySpec, params: QueryParams, config: ApiFeaturesConfig = DEFAULT_CONFIG
) -> QuerySpec:
    return spec.with_filter(build_filter(params, config))


def _plain_operand(predicate: Predicate, config: ApiFeaturesConfig) -> Any:
    value = predicate.value
    if isinstance(value, (list, tuple)):
        return [_coerce(v, config) for v in value]
    return _coerce(value, config)


def _operand(predicate: Predicate, config: ApiFeaturesConfig) -> Any:
    op = predicate.operator
    value = predicate.value
    if op in PATTERN_OPERATORS:
        return value if isinstance(value, str) else str(value)
    if predicate.field in config.date_fields and op in DATE_RANGE_OPERATORS:
        return _parse_date(predicate.key, value)
    if op in SET_OPERATORS:
        items = split_list(value) if isinstance(value, str) else value
        if not isinstance(items, (list, tuple)):
            items = [items]
        return [_coerce(v, config) for v in items]
    if isinstance(value, (list, tuple)):
        raise FilterParseError(
            predicate.key, f"Operator {op.value!r} expects a single value"
        )
    return _coerce(value, config)


def _coerce(value: Any, config: ApiFeaturesConfig) -> Any:
    """Parse a query-string scalar into bool, None, int, float or str."""
    if not config.coerce_values or not isinstance(value, str):
        return value
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered == "null":
        return None
    if _NUMBER.match(value):
        number: int | float = float(value) if "." in value else int(value)
        # only when the string round-trips: "007", "1.50" and "-0" stay text
        if str(number) == value:
            return number
    return value


def _parse_date(key: str, value: Any) -> datetime:
    """Parse an ISO-8601 date, also accepting the ``YYYY`` and ``YYYY-MM`` forms."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise FilterParseError(key, f"Invalid date: {value!r}")
    text = value.strip()
    try:
        partial = _PARTIAL_DATE.match(text)
        if partial:
            return datetime(int(partial.group(1)), int(partial.group(2) or 1), 1)
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise FilterParseError(key, f"Invalid date {value!r}: {e}") from e


# ── Search ───────────────────────────────────────────────────────────


def build_search(term: str | None, fields: str | Iterable[str]) -> dict[str, Any]:
    """Case-insensitive substring match across ``fields`` (OR). Empty when no-op."""
    names = _names(fields)
    if not term or not names:
        return {}
    pattern = re.escape(term)
    return {"$or": [{f: {"$regex": pattern, "$options": "i"}} for f in names]}


def _names(value: str | Iterable[str]) -> list[str]:
    # a bare string is one name, not a sequence of characters
    return [value] if isinstance(value, str) else list(value)


def apply_search(
    spec: QuerySpec,
    params: QueryParams,
    fields: str | Iterable[str] | None = None,
    config: ApiFeaturesConfig = DEFAULT_CONFIG,
) -> QuerySpec:
    chosen = config.search_fields if fields is None else fields
    return spec.with_filter(build_search(params.search, chosen))


# ── Sort / projection ────────────────────────────────────────────────


def parse_sort(raw: str | None) -> list[tuple[str, int]]:
    """``"-price,name"`` -> ``[("price", -1), ("name", 1)]``."""
    out: list[tuple[str, int]] = []
    for token in split_list(raw):
        if token.startswith("-"):
            name, direction = token[1:].strip(), -1
        else:
            name, direction = token, 1
        if name:
            out.append((name, direction))
    return out


def apply_sort(
    spec: QuerySpec, params: QueryParams, config: ApiFeaturesConfig = DEFAULT_CONFIG
) -> QuerySpec:
    raw = params.sort if params.sort else config.default_sort
    return spec.with_sort(parse_sort(raw))


def parse_projection(raw: str | None) -> dict[str, int]:
    """``"name,-email"`` -> ``{"name": 1, "email": 0}``."""
    projection: dict[str, int] = {}
    for token in split_list(raw):
        if token.startswith("-"):
            name = token[1:].strip()
            if name:
                projection[name] = 0
        else:
            projection[token] = 1
    return projection


def apply_projection(
    spec: QuerySpec, params: QueryParams, config: ApiFeaturesConfig = DEFAULT_CONFIG
) -> QuerySpec:
    if params.fields:
        return spec.with_projection(parse_projection(params.fields))
    return spec.with_projection({config.version_field: 0})


# ── Pagination ───────────────────────────────────────────────────────


def parse_positive_int(raw: Any) -> int | None:
    """Leading integer of ``raw`` if positive, else None (never raises)."""
    if raw is None:
        return None
    match = _LEADING_INT.match(str(raw))
    if match is None:
        return None
    value = int(match.group(1))
    return value if value > 0 else None


def resolve_page(
    params: QueryParams, config: ApiFeaturesConfig = DEFAULT_CONFIG
) -> tuple[int, int]:
    """Return ``(page, limit)`` with defaults and the optional limit cap applied."""
    page = parse_positive_int(params.page) or 1
    limit = parse_positive_int(params.limit) or config.default_limit
    if config.max_limit is not None:
        limit = min(limit, config.max_limit)
    return page, limit


def apply_pagination(
    spec: QuerySpec, params: QueryParams, config: ApiFeaturesConfig = DEFAULT_CONFIG
) -> QuerySpec:
    page, limit = resolve_page(params, config)
    return spec.with_pagination((page - 1) * limit, limit)


# ── Population ───────────────────────────────────────────────────────


def population_paths(
    params: QueryParams, defaults: str | Iterable[str] = ()
) -> list[str]:
    """The ``populate`` parameter replaces ``defaults``; it is never merged."""
    if params.populate:
        return split_list(params.populate)
    return _names(defaults)


def apply_population(
    spec: QuerySpec, params: QueryParams, defaults: str | Iterable[str] = ()
) -> QuerySpec:
    for path in population_paths(params, defaults):
        spec = spec.with_populate(path)
    return spec


# ── Translator ───────────────────────────────────────────────────────


class ApiFeatures:
    """Chainable translator from request parameters to a ``MongoQuery``.

    Usage::

        features = await ApiFeatures(MongoQuery(db.products), request_params).filter()
        features.search(["name"]).sort().limit_fields().paginate().populate()
        docs = await features.query
    """

    def __init__(
        self,
        query: MongoQuery,
        params: Mapping[str, Any] | QueryParams | None,
        *,
        config: ApiFeaturesConfig | None = None,
    ) -> None:
        self.query = query
        self.params = QueryParams.from_mapping(params)
        self.config = config or DEFAULT_CONFIG
        self.total: int | None = None
        self.page: int | None = None
        self.limit: int | None = None

    async def filter(self) -> ApiFeatures:
        """AND the parameter filter onto the query.

        When ``page`` is present, the number of documents matching this filter
        (search excluded) is counted and stored on ``total``.
        """
        document = build_filter(self.params, self.config)
        logger.debug("Applying filter %s", document)
        self.query = self.query.where(document)
        if self.params.has_page:
            self.total = await self.query.count(document)
        return self

    def search(self, fields: str | Iterable[str] | None = None) -> ApiFeatures:
        chosen = self.config.search_fields if fields is None else fields
        self.query = self.query.where(build_search(self.params.search, chosen))
        return self

    def sort(self) -> ApiFeatures:
        self.query = self.query.with_spec(
            apply_sort(self.query.spec, self.params, self.config)
        )
        return self

    def limit_fields(self) -> ApiFeatures:
        self.query = self.query.with_spec(
            apply_projection(self.query.spec, self.params, self.config)
        )
        return self

    def paginate(self) -> ApiFeatures:
        self.page, self.limit = resolve_page(self.params, self.config)
        self.query = self.query.slice((self.page - 1) * self.limit, self.limit)
        return self

    def populate(self, defaults: str | Iterable[str] = ()) -> ApiFeatures:
        self.query = self.query.with_spec(
            apply_population(self.query.spec, self.params, defaults)
        )
        return self

    async def count(self) -> int:
        """Count documents matching every constraint applied so far."""
        self.total = await self.query.count()
        return self.total

    async def execute(self) -> list[dict[str, Any]]:
        return await self.query.execute()

    def pagination(self) -> PaginationInfo:
        """Pagination metadata for the current request."""
        if self.total is None:
            raise ApiFeaturesError(
                "Total is unknown: pass a 'page' parameter to filter() or call count()"
            )
        if self.page is None or self.limit is None:
            page, limit = resolve_page(self.params, self.config)
        else:
            page, limit = self.page, self.limit
        return get_pagination(self.total, limit, page)

