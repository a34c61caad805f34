# tests/test_api.py
"""Tests for the REST API."""

import hashlib

import pytest
from httpx import AsyncClient, ASGITransport

from modelshelf.api.dependencies import get_config, get_refresher, get_store
from modelshelf.api.main import create_app
from modelshelf.config import Config
from modelshelf.errors import CatalogError


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def app_config(library, tmp_path):
    config = Config()
    config.library.path = str(library)
    config.data.dir = str(tmp_path / "data")
    return config


def build_client_app(config, store, refresher):
    app = create_app(config)

    async def override_get_config():
        return config

    async def override_get_store():
        return store

    async def override_get_refresher():
        return refresher

    app.dependency_overrides[get_config] = override_get_config
    app.dependency_overrides[get_store] = override_get_store
    app.dependency_overrides[get_refresher] = override_get_refresher
    return app


@pytest.fixture
async def client(app_config, store, refresher):
    """Create test client with a real store and a fake renderer."""
    app = build_client_app(app_config, store, refresher)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def populated(client, make_pack):
    """Library with two packs, refreshed through the API."""
    make_pack("widget", files={"part.stl": b"widget mesh", "notes.txt": b"n"}, readme="Small widget")
    make_pack("tools/gear", title="Big Gear", files={"gear.stl": b"gear mesh"})
    response = await client.post("/api/refresh")
    assert response.status_code == 200
    return response.json()


# =============================================================================
# Health
# =============================================================================


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# =============================================================================
# Refresh
# =============================================================================


async def test_refresh_returns_report(populated):
    assert populated["packs_discovered"] == 2
    assert populated["models_created"] == 2
    assert populated["files_added"] == 3
    assert populated["renders"] == 2
    assert populated["errors"] == []


async def test_refresh_catalog_failure_is_503(app_config, store):
    class BrokenRefresher:
        async def refresh(self):
            raise CatalogError("database is locked")

    app = build_client_app(app_config, store, BrokenRefresher())
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/api/refresh")

    assert response.status_code == 503
    assert "refresh aborted" in response.json()["detail"]


# =============================================================================
# Models
# =============================================================================


async def test_list_models(client, populated):
    response = await client.get("/api/models/list")

    assert response.status_code == 200
    data = response.json()
    assert data["total_items"] == 2
    assert [m["title"] for m in data["items"]] == ["Big Gear", "Widget"]
    assert data["page"] == 0


async def test_list_models_search_and_paging(client, populated):
    response = await client.get("/api/models/list", params={"q": "small", "page_size": 1})

    data = response.json()
    assert [m["slug"] for m in data["items"]] == ["widget"]
    assert data["num_pages"] == 1


async def test_list_models_rejects_negative_page(client):
    response = await client.get("/api/models/list", params={"page": -1})

    assert response.status_code == 422


async def test_get_model_with_files(client, populated):
    response = await client.get("/api/models/widget")

    assert response.status_code == 200
    data = response.json()
    assert data["folder_path"] == "widget"
    assert data["description"] == "Small widget"
    files = {f["file_path"]: f for f in data["files"]}
    digest = hashlib.sha256(b"widget mesh").hexdigest()
    assert files["part.stl"]["preview_image"] == f"{digest}.png"
    assert files["part.stl"]["kind"] == "mesh"
    assert files["notes.txt"]["preview_image"] is None
    assert files["notes.txt"]["kind"] == "unknown"


async def test_get_unknown_model_is_404(client):
    response = await client.get("/api/models/nope")

    assert response.status_code == 404
    assert "nope" in response.json()["detail"]


async def test_favourite_round_trip(client, populated):
    response = await client.put("/api/models/big-gear/favourite", json={"favourite": True})
    assert response.status_code == 200
    assert response.json()["favourite"] is True

    await client.post("/api/refresh")

    listing = await client.get("/api/models/list", params={"favourite": "true"})
    assert [m["slug"] for m in listing.json()["items"]] == ["big-gear"]


async def test_favourite_unknown_model(client):
    response = await client.put("/api/models/nope/favourite", json={"favourite": True})

    assert response.status_code == 404


# =============================================================================
# Collections
# =============================================================================


async def model_id(client, slug):
    response = await client.get(f"/api/models/{slug}")
    return response.json()["id"]


async def test_collection_lifecycle(client, populated):
    widget_id = await model_id(client, "widget")
    gear_id = await model_id(client, "big-gear")

    created = await client.post("/api/collections", json={"name": "  Desk toys "})
    assert created.status_code == 200
    shelf = created.json()
    assert shelf["name"] == "Desk toys"
    assert shelf["model_count"] == 0

    for mid in (widget_id, gear_id):
        response = await client.post(
            "/api/collection/add_model", json={"model_id": mid, "collection_id": shelf["id"]}
        )
        assert response.status_code == 200
        assert response.json()["success"] is True

    again = await client.post(
        "/api/collection/add_model", json={"model_id": gear_id, "collection_id": shelf["id"]}
    )
    assert again.json()["message"] == "Model already in collection"

    listing = await client.get("/api/collections")
    assert [(c["name"], c["model_count"]) for c in listing.json()] == [("Desk toys", 2)]

    detail = await client.get(f"/api/collection/{shelf['id']}")
    assert detail.status_code == 200
    assert [m["slug"] for m in detail.json()["models"]] == ["big-gear", "widget"]

    renamed = await client.post(f"/api/collection/{shelf['id']}", json={"name": "Shelf"})
    assert renamed.json()["name"] == "Shelf"
    assert renamed.json()["model_count"] == 2

    removed = await client.post(f"/api/collection/{shelf['id']}/remove_model/{gear_id}")
    assert removed.status_code == 200

    deleted = await client.post(f"/api/collection/{shelf['id']}/delete")
    assert deleted.status_code == 200
    assert (await client.get("/api/collections")).json() == []
    assert (await client.get("/api/models/widget")).status_code == 200


async def test_model_collections(client, populated):
    widget_id = await model_id(client, "widget")
    for name in ("Shelf", "Bench"):
        created = await client.post("/api/collections", json={"name": name})
        await client.post(
            "/api/collection/add_model",
            json={"model_id": widget_id, "collection_id": created.json()["id"]},
        )

    response = await client.get(f"/api/model/{widget_id}/collections")

    assert response.status_code == 200
    assert [c["name"] for c in response.json()] == ["Bench", "Shelf"]
    assert all(c["model_count"] == 1 for c in response.json())


async def test_collection_membership_survives_refresh(client, populated):
    widget_id = await model_id(client, "widget")
    created = await client.post("/api/collections", json={"name": "Shelf"})
    await client.post(
        "/api/collection/add_model",
        json={"model_id": widget_id, "collection_id": created.json()["id"]},
    )

    await client.post("/api/refresh")

    detail = await client.get(f"/api/collection/{created.json()['id']}")
    assert [m["slug"] for m in detail.json()["models"]] == ["widget"]


async def test_blank_collection_name_is_rejected(client):
    response = await client.post("/api/collections", json={"name": "   "})

    assert response.status_code == 422


async def test_unknown_collection_and_model_are_404(client, populated):
    widget_id = await model_id(client, "widget")

    assert (await client.get("/api/collection/999")).status_code == 404
    assert (await client.post("/api/collection/999", json={"name": "x"})).status_code == 404
    assert (await client.post("/api/collection/999/delete")).status_code == 404
    assert (await client.get("/api/model/999/collections")).status_code == 404

    missing_collection = await client.post(
        "/api/collection/add_model", json={"model_id": widget_id, "collection_id": 999}
    )
    assert missing_collection.status_code == 404

    created = await client.post("/api/collections", json={"name": "Shelf"})
    missing_model = await client.post(
        "/api/collection/add_model", json={"model_id": 999, "collection_id": created.json()["id"]}
    )
    assert missing_model.status_code == 404

    not_member = await client.post(f"/api/collection/{created.json()['id']}/remove_model/{widget_id}")
    assert not_member.status_code == 404


# =============================================================================
# Error handlers
# =============================================================================


async def test_store_failure_maps_to_503(app_config, store, refresher, monkeypatch):
    def broken_query(*args, **kwargs):
        raise CatalogError("disk I/O error")

    monkeypatch.setattr(store, "query_models", broken_query)
    app = build_client_app(app_config, store, refresher)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/models/list")

    assert response.status_code == 503
    assert response.json() == {"error": "Catalog unavailable"}


async def test_unexpected_error_has_error_id(app_config, store, refresher, monkeypatch):
    def broken_lookup(slug):
        raise RuntimeError("boom")

    monkeypatch.setattr(store, "get_model_by_slug", broken_lookup)
    app = build_client_app(app_config, store, refresher)
    transport = ASGITransport(app=app, raise_app_exceptions=False)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/models/widget")

    assert response.status_code == 500
    assert response.json()["error"] == "Internal Server Error"
    assert len(response.json()["error_id"]) == 8
