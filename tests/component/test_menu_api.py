"""Component tests exercising the menu API end to end against an in-memory database.

The real connection manager, repository, service and FastAPI app are wired
together; only the MongoDB client is replaced.
"""

from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from restaurant_menu_service.config import ServiceConfig
from src.main import create_application


@pytest.fixture
def menu_collection(collection_factory: Any) -> Any:
    """Fixture providing an empty menu collection."""
    return collection_factory()


@pytest.fixture
def client(menu_collection: Any, client_builder: Any) -> TestClient:
    """Fixture providing the full application backed by the in-memory collection."""
    config = ServiceConfig(mongodb_uri="mongodb://localhost:27017", connect_backoff_seconds=0)
    factory = MagicMock(return_value=client_builder({"menu": menu_collection}))

    with pytest.MonkeyPatch.context() as mp:
        mp.setattr(
            "restaurant_menu_service.repositories.connection_manager.AsyncIOMotorClient", factory
        )
        app = create_application(config)

    with TestClient(app) as test_client:
        yield test_client


@pytest.mark.component
class TestMenuLifecycle:
    """Create, read, update and delete through the HTTP API."""

    def test_created_item_is_listed(self, client: TestClient) -> None:
        """Test that a created item appears in the menu with its assigned id."""
        created = client.post(
            "/api/menu",
            json={"title": "Pho", "category": "Soups", "price": "11.00", "image": "pho.jpg", "desc": "Beef"},
        ).json()

        menu = client.get("/api/menu").json()

        assert len(menu) == 1
        item = menu[0]
        assert item["_id"] == created["_id"]
        assert item["title"] == "Pho"
        assert item["price"] == 11
        assert item["description"] == item["desc"] == "Beef"
        assert item["image"] == "http://testserver/images/pho.jpg"

    def test_update_is_idempotent(self, client: TestClient) -> None:
        """Test that repeating an update succeeds and leaves the same state."""
        item_id = client.post(
            "/api/menu", json={"title": "Pho", "category": "Soups", "price": 11}
        ).json()["_id"]

        first = client.put(f"/api/menu/{item_id}", json={"price": 12, "badge": "Chef's pick"})
        second = client.put(f"/api/menu/{item_id}", json={"price": 12, "badge": "Chef's pick"})

        assert first.status_code == 200
        assert second.status_code == 200
        assert first.json() == second.json()
        assert client.get("/api/menu").json()[0]["price"] == 12

    def test_deleted_item_disappears(self, client: TestClient, menu_collection: Any) -> None:
        """Test that a deleted item is no longer served."""
        keep = client.post("/api/menu", json={"title": "Tea", "category": "Drinks", "price": 2}).json()
        drop = client.post("/api/menu", json={"title": "Pho", "category": "Soups", "price": 11}).json()

        response = client.delete(f"/api/menu?id={drop['_id']}")
        again = client.delete(f"/api/menu?id={drop['_id']}")

        assert response.json() == {"ok": True}
        assert again.status_code == 404
        assert [item["_id"] for item in client.get("/api/menu").json()] == [keep["_id"]]
        assert len(menu_collection.documents) == 1

    def test_empty_collection_reports_no_items(self, client: TestClient) -> None:
        """Test 404 when the resolved collection holds nothing."""
        response = client.get("/api/menu")

        assert response.status_code == 404
        assert response.json()["collection"] == "menu"

    def test_startup_connects_and_debug_reports_state(self, client: TestClient) -> None:
        """Test that the connection is warmed on startup."""
        info = client.get("/debug/mongo").json()["info"]

        assert info["connected"] is True
        assert info["collection"] == "menu"
        assert info["collections"] == ["menu"]
