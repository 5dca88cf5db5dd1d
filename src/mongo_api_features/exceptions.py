"""
Exception hierarchy for query-string translation.

All exceptions inherit from ``ApiFeaturesError`` and provide ``to_dict()``
for API-friendly error responses. Driver errors are never wrapped.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class ApiFeaturesError(Exception):
    """Root exception for the package."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class ValidationError(ApiFeaturesError):
    """Raised when request parameters cannot be translated.

    Carries structured errors: ``{field: [messages]}``.
    """

    def __init__(self, errors: dict[str, list[str]] | str | None = None) -> None:
        if isinstance(errors, str):
            self.errors: dict[str, list[str]] = {"__root__": [errors]}
        elif errors is None:
            self.errors = {}
        else:
            self.errors = errors
        super().__init__(str(self.errors))

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "VALIDATION_ERROR",
            "errors": self.errors,
        }


class FilterParseError(ValidationError):
    """Raised when a filter key, operator or value is malformed."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__({key: [message]})


class OperatorNotFoundError(FilterParseError):
    """
    Unknown operator in a ``field[op]`` key.

    Provides fuzzy-matched suggestions for likely intended operators.
    """

    def __init__(self, key: str, operator: str, valid_operators: list[str]) -> None:
        self.operator = operator
        self.valid_operators = valid_operators
        self.suggestions = get_close_matches(operator, valid_operators, n=3, cutoff=0.6)

        message = f"Unknown operator: '{operator}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        message += f" Valid operators: {', '.join(sorted(valid_operators))}"
        super().__init__(key, message)


class InvalidPaginationError(ValidationError):
    """Raised when pagination metadata is requested with impossible inputs."""


class PopulateError(ApiFeaturesError):
    """Raised when a population path has no registered relation."""

    def __init__(self, path: str, known: list[str]) -> None:
        self.path = path
        self.known = known
        super().__init__(
            f"Cannot populate path {path!r}: no relation registered "
            f"(known: {', '.join(sorted(known)) or 'none'})"
        )
