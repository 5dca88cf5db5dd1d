"""Shared fixtures: in-memory Motor collections seeded with sample documents."""

from __future__ import annotations

from datetime import datetime

import pytest
from mongomock_motor import AsyncMongoMockClient

from mongo_api_features import MongoQuery, Relation


@pytest.fixture
def mock_client():
    """Create a mock MongoDB client."""
    return AsyncMongoMockClient(default_database_name="test_db")


@pytest.fixture
def database(mock_client):
    return mock_client.get_database("test_db")


@pytest.fixture
async def users(database):
    """Two-user collection: Alice and Bob."""
    coll = database.get_collection("users")
    await coll.insert_many(
        [
            {
                "_id": "u1",
                "name": "Alice",
                "email": "alice@example.com",
                "age": 30,
                "createdAt": datetime(2024, 1, 1),
                "__v": 0,
            },
            {
                "_id": "u2",
                "name": "Bob",
                "email": "bob@example.com",
                "age": 25,
                "createdAt": datetime(2024, 2, 1),
                "__v": 0,
            },
        ]
    )
    return coll


@pytest.fixture
async def categories(database):
    coll = database.get_collection("categories")
    await coll.insert_many(
        [
            {"_id": "c1", "name": "Books"},
            {"_id": "c2", "name": "Games"},
        ]
    )
    return coll


@pytest.fixture
async def reviews(database):
    coll = database.get_collection("reviews")
    await coll.insert_many(
        [
            {"_id": "r1", "rating": 5, "body": "Great"},
            {"_id": "r2", "rating": 3, "body": "Fine"},
        ]
    )
    return coll


@pytest.fixture
async def products(database, categories, reviews):
    """Four products referencing categories and reviews."""
    coll = database.get_collection("products")
    await coll.insert_many(
        [
            {
                "_id": "p1",
                "name": "Python Cookbook",
                "title": "Recipes",
                "price": 30,
                "category": "c1",
                "reviews": ["r1", "r2"],
                "date": datetime(2024, 1, 10),
                "createdAt": datetime(2024, 1, 10),
                "__v": 0,
            },
            {
                "_id": "p2",
                "name": "Chess Set",
                "title": "Wooden",
                "price": 55,
                "category": "c2",
                "reviews": [],
                "date": datetime(2024, 3, 5),
                "createdAt": datetime(2024, 3, 5),
                "__v": 0,
            },
            {
                "_id": "p3",
                "name": "Go Board",
                "title": "Kaya wood",
                "price": 80,
                "category": "c2",
                "reviews": ["r2"],
                "date": datetime(2024, 6, 20),
                "createdAt": datetime(2024, 6, 20),
                "__v": 0,
            },
            {
                "_id": "p4",
                "name": "Mystery Novel",
                "title": "Paperback",
                "price": 12,
                "category": "c1",
                "reviews": [],
                "date": datetime(2024, 9, 1),
                "createdAt": datetime(2024, 9, 1),
                "__v": 0,
            },
        ]
    )
    return coll


@pytest.fixture
def product_query(products, categories, reviews):
    """Query handle over products with category and reviews relations."""
    return MongoQuery(
        products,
        relations={
            "category": Relation(categories),
            "reviews": Relation(reviews),
        },
    )
