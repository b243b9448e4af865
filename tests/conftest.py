"""Shared pytest fixtures and configuration for all tests."""

import os
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

# Entry-point modules skip building the real app when imported under test
os.environ.setdefault("ENVIRONMENT", "test")


class FakeCursor:
    """Minimal stand-in for a motor cursor."""

    def __init__(self, documents: list[dict[str, Any]]) -> None:
        self.documents = documents

    async def to_list(self, length: int | None) -> list[dict[str, Any]]:
        docs = [dict(doc) for doc in self.documents]
        return docs if length is None else docs[:length]


class FakeCollection:
    """In-memory collection supporting the operations the repository uses."""

    def __init__(self, documents: list[dict[str, Any]] | None = None) -> None:
        self.documents: list[dict[str, Any]] = [dict(doc) for doc in documents or []]

    @staticmethod
    def _matches(document: dict[str, Any], query: dict[str, Any]) -> bool:
        return all(document.get(key) == value for key, value in query.items())

    def find(self, query: dict[str, Any]) -> FakeCursor:
        return FakeCursor([doc for doc in self.documents if self._matches(doc, query)])

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        for doc in self.documents:
            if self._matches(doc, query):
                return dict(doc)
        return None

    async def insert_one(self, document: dict[str, Any]) -> SimpleNamespace:
        document.setdefault("_id", ObjectId())
        self.documents.append(dict(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def update_one(self, query: dict[str, Any], update: dict[str, Any]) -> SimpleNamespace:
        for doc in self.documents:
            if self._matches(doc, query):
                changes = update.get("$set", {})
                modified = any(doc.get(key) != value for key, value in changes.items())
                doc.update(changes)
                return SimpleNamespace(matched_count=1, modified_count=int(modified))
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def delete_one(self, query: dict[str, Any]) -> SimpleNamespace:
        for index, doc in enumerate(self.documents):
            if self._matches(doc, query):
                del self.documents[index]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


def make_fake_client(collections: dict[str, Any]) -> MagicMock:
    """Build a mock MongoDB client whose database exposes the given collections."""
    client = MagicMock()
    client.admin.command = AsyncMock(return_value={"ok": 1})

    database = MagicMock()
    database.list_collection_names = AsyncMock(return_value=list(collections))
    database.__getitem__.side_effect = lambda name: collections[name]
    client.__getitem__.return_value = database
    return client


@pytest.fixture
def mock_menu_items() -> list[dict[str, Any]]:
    """Fixture providing sample stored menu items."""
    return [
        {
            "_id": ObjectId("65a1b2c3d4e5f6a7b8c9d0e1"),
            "title": "Cheeseburger",
            "category": "Burgers",
            "price": "12.99",
            "image": "cheeseburger.jpg",
            "description": "Classic beef cheeseburger",
        },
        {
            "_id": ObjectId("65a1b2c3d4e5f6a7b8c9d0e2"),
            "title": "Caesar Salad",
            "price": 9.5,
            "image": "https://cdn.example.com/salad.jpg",
            "desc": "Fresh romaine with caesar dressing",
            "badge": "New",
        },
    ]


@pytest.fixture
def fake_collection(mock_menu_items: list[dict[str, Any]]) -> FakeCollection:
    """Fixture providing an in-memory collection seeded with sample items."""
    return FakeCollection(mock_menu_items)


@pytest.fixture
def fake_client_factory(fake_collection: FakeCollection) -> MagicMock:
    """Fixture providing a client factory whose database holds `menudata`."""
    return MagicMock(return_value=make_fake_client({"menudata": fake_collection}))


@pytest.fixture
def collection_factory() -> type[FakeCollection]:
    """Fixture exposing the in-memory collection class for custom seeding."""
    return FakeCollection


@pytest.fixture
def client_builder() -> Any:
    """Fixture exposing the mock client builder for custom collection layouts."""
    return make_fake_client
