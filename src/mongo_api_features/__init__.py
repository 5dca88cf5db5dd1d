"""mongo-api-features: query-string filtering, search, sort, projection,
pagination and population for MongoDB queries over Motor.
"""

from __future__ import annotations

from .config import DEFAULT_CONFIG, ApiFeaturesConfig
from .exceptions import (
    ApiFeaturesError,
    FilterParseError,
    InvalidPaginationError,
    OperatorNotFoundError,
    PopulateError,
    ValidationError,
)
from .features import (
    ApiFeatures,
    apply_filter,
    apply_pagination,
    apply_population,
    apply_projection,
    apply_search,
    apply_sort,
    build_filter,
    build_search,
)
from .operators import FilterOperator
from .pagination import PaginationInfo, get_pagination
from .params import RESERVED_KEYS, Predicate, QueryParams
from .query import MongoQuery, QuerySpec, Relation

__all__ = [
    # Translator
    "ApiFeatures",
    "apply_filter",
    "apply_pagination",
    "apply_population",
    "apply_projection",
    "apply_search",
    "apply_sort",
    "build_filter",
    "build_search",
    # Query
    "MongoQuery",
    "QuerySpec",
    "Relation",
    # Parameters
    "FilterOperator",
    "Predicate",
    "QueryParams",
    "RESERVED_KEYS",
    # Pagination
    "PaginationInfo",
    "get_pagination",
    # Configuration
    "ApiFeaturesConfig",
    "DEFAULT_CONFIG",
    # Exceptions
    "ApiFeaturesError",
    "ValidationError",
    "FilterParseError",
    "OperatorNotFoundError",
    "InvalidPaginationError",
    "PopulateError",
]
