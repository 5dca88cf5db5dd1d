"""Tests for the exception hierarchy and its API-facing dictionaries."""

from __future__ import annotations

import pytest

from mongo_api_features import MongoQuery
from mongo_api_features.exceptions import (
    ApiFeaturesError,
    FilterParseError,
    InvalidPaginationError,
    OperatorNotFoundError,
    PopulateError,
    ValidationError,
)
from mongo_api_features.params import QueryParams


def test_base_error_to_dict() -> None:
    assert ApiFeaturesError("boom").to_dict() == {
        "error": "ApiFeaturesError",
        "message": "boom",
    }


def test_validation_error_forms() -> None:
    assert ValidationError().errors == {}
    assert ValidationError("bad").errors == {"__root__": ["bad"]}
    assert ValidationError({"limit": ["too big"]}).to_dict() == {
        "error": "VALIDATION_ERROR",
        "errors": {"limit": ["too big"]},
    }


def test_filter_parse_error_to_dict() -> None:
    with pytest.raises(FilterParseError) as exc_info:
        QueryParams.from_mapping({"price[]": "1"})

    body = exc_info.value.to_dict()
    assert body["error"] == "VALIDATION_ERROR"
    assert list(body["errors"]) == ["price[]"]
    assert exc_info.value.key == "price[]"


def test_unknown_operator_to_dict_carries_suggestion() -> None:
    with pytest.raises(OperatorNotFoundError) as exc_info:
        QueryParams.from_mapping({"age[gtee]": "3"})

    (message,) = exc_info.value.to_dict()["errors"]["age[gtee]"]
    assert "Did you mean: gte" in message
    assert isinstance(exc_info.value, ValidationError)


async def test_populate_error_to_dict(users) -> None:
    with pytest.raises(PopulateError) as exc_info:
        await MongoQuery(users, relations={"team": "teams"}).populate("boss")

    body = exc_info.value.to_dict()
    assert body["error"] == "PopulateError"
    assert "'boss'" in body["message"]
    assert "known: team" in body["message"]


def test_pagination_error_is_validation_error() -> None:
    err = InvalidPaginationError({"limit": ["must be positive"]})
    assert isinstance(err, ValidationError)
    assert err.to_dict()["errors"] == {"limit": ["must be positive"]}
