"""Pagination metadata for API responses."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import InvalidPaginationError


class PaginationInfo(BaseModel):
    """Page metadata; ``model_dump(by_alias=True)`` gives camelCase keys."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total: int
    pages: int
    current_page: int = Field(alias="currentPage")
    limit: int
    has_next: bool = Field(alias="hasNext")
    has_previous: bool = Field(alias="hasPrevious")
    next_page: int | None = Field(default=None, alias="nextPage")
    previous_page: int | None = Field(default=None, alias="previousPage")


def get_pagination(total: int, limit: int, page: int) -> PaginationInfo:
    """Describe page ``page`` of ``total`` results split into pages of ``limit``.

    Pages past the end are accepted and simply report no next page.
    Raises ``InvalidPaginationError`` for a non-positive ``limit`` or ``page``
    and for a negative ``total``.
    """
    errors: dict[str, list[str]] = {}
    if total < 0:
        errors["total"] = ["must be a non-negative integer"]
    if limit <= 0:
        errors["limit"] = ["must be a positive integer"]
    if page <= 0:
        errors["page"] = ["must be a positive integer"]
    if errors:
        raise InvalidPaginationError(errors)

    pages = math.ceil(total / limit)
    has_next = page < pages
    has_previous = page > 1

    return PaginationInfo(
        total=total,
        pages=pages,
        current_page=page,
        limit=limit,
        has_next=has_next,
        has_previous=has_previous,
        next_page=page + 1 if has_next else None,
        previous_page=page - 1 if has_previous else None,
    )
