import pytest
from fastapi.testclient import TestClient

from app.api_service import app
from app.deps import get_catalog_sync, get_directory, get_price_source, get_watch_service
from app.routers import health
from catalog.catalog_source import CatalogEntry
from catalog.sync_job import CatalogSyncJob
from config.settings import settings
from market.price_source import PriceQuote
from models.schema import MAX_PRICE
from security.operator_auth import require_operator_auth
from watches.errors import TransientFetchFailure
from watches.service import WatchService


class FakePriceSource:
    def __init__(self, quote=None, error=None):
        self.quote = quote
        self.error = error

    def fetch_quote(self, item_id):
        if self.error:
            raise self.error
        return self.quote


class FakeCatalogSource:
    def __init__(self):
        self.calls = 0

    def fetch_all_items(self):
        self.calls += 1
        return [CatalogEntry(id="X", name="Bitcoin", short_name="BTC")]


@pytest.fixture
def prices():
    return FakePriceSource(PriceQuote(item_id="X", name="Bitcoin", avg_price=4800))


@pytest.fixture
def catalog_source():
    return FakeCatalogSource()


@pytest.fixture
def client(service, populated, prices, catalog_source):
    app.dependency_overrides[get_watch_service] = lambda: service
    app.dependency_overrides[get_directory] = lambda: populated
    app.dependency_overrides[get_price_source] = lambda: prices
    app.dependency_overrides[get_catalog_sync] = lambda: CatalogSyncJob(populated, catalog_source)
    yield TestClient(app)
    app.dependency_overrides.clear()


def _watch(client, item="bitcoin", max_price=5000, user="u1", **kw):
    body = {"scope_id": "g1", "channel_id": "c1", "user_id": user, "item": item, "max_price": max_price, **kw}
    return client.post("/api/watches", json=body)


def test_create_then_update(client):
    r = _watch(client)
    assert r.status_code == 200
    assert r.json()["status"] == "created"
    assert r.json()["message"].startswith("✅ Watching **Bitcoin**")
    assert "X-Request-Id" in r.headers

    r = _watch(client, max_price=4000, once=True)
    assert r.json()["status"] == "updated"
    assert r.json()["watch"]["once"] is True
    assert r.json()["message"].startswith("♻️ Updated")


def test_unknown_item_maps_to_user_reply(client):
    r = _watch(client, item="definitely not an item")
    assert r.status_code == 404
    body = r.json()
    assert body["ok"] is False
    assert body["error"] == "item_not_found"
    assert "Couldn't match" in body["message"]


def test_limit_maps_to_403(client):
    for item in ["bitcoin", "graphics card", "ledx"]:
        assert _watch(client, item=item).status_code == 200
    r = _watch(client, item="ammo 5 45")
    assert r.status_code == 403
    assert r.json()["error"] == "watch_limit_reached"


def test_bad_threshold_is_rejected(client):
    assert _watch(client, max_price=0).status_code == 422


def test_list_remove_clear(client):
    _watch(client, item="ammo 5.45")
    _watch(client, item="ammo 7.62")
    _watch(client, item="bitcoin")

    listed = client.get("/api/watches", params={"scope_id": "g1", "user_id": "u1"}).json()
    assert [w["item_name"] for w in listed["items"]] == ["Bitcoin", "Ammo 7.62", "Ammo 5.45"]
    assert listed["message"].startswith("📌")

    r = client.post("/api/watches/remove", json={"scope_id": "g1", "user_id": "u1", "item": "ammo"})
    assert r.json()["deleted"] == 2

    r = client.delete("/api/watches", params={"scope_id": "g1", "user_id": "u1"})
    assert r.json()["deleted"] == 1
    assert client.get("/api/watches", params={"scope_id": "g1", "user_id": "u1"}).json()["items"] == []


def test_suggest_and_resolve(client):
    r = client.get("/api/items/suggest", params={"q": "bit"})
    assert r.json()["choices"][0] == {"name": "Bitcoin (BTC)", "value": "Bitcoin"}

    r = client.get("/api/items/resolve", params={"q": "bitcoin"})
    assert r.json()["item"]["id"] == "X"
    assert r.json()["suggestions"][0]["value"] == "Bitcoin"


def test_suggest_limit_is_capped(client):
    assert client.get("/api/items/suggest", params={"q": "a", "limit": 26}).status_code == 422


def test_price_check(client):
    r = client.get("/api/items/price", params={"q": "bitcoin"})
    assert r.json()["price"] == 4800
    assert r.json()["message"] == "💰 **Bitcoin** is currently **4,800 ₽**"


def test_price_check_when_market_is_down(client, prices):
    prices.error = TransientFetchFailure("down")
    r = client.get("/api/items/price", params={"q": "bitcoin"})
    assert r.status_code == 200
    assert r.json()["ok"] is False
    assert r.json()["error"] == "price_unavailable"


class EmptyDirectory:
    def is_populated(self):
        return False


def test_empty_directory_maps_to_409(watch_repo, policy):
    service = WatchService(watch_repo, EmptyDirectory(), policy)
    app.dependency_overrides[get_watch_service] = lambda: service
    try:
        r = TestClient(app).post(
            "/api/watches",
            json={"scope_id": "g1", "channel_id": "c1", "user_id": "u1", "item": "bitcoin", "max_price": 5},
        )
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 409
    assert r.json()["error"] == "directory_empty"


def test_catalog_sync_is_admin_only(client, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_USER_IDS", "42")
    app.dependency_overrides[require_operator_auth] = lambda: {"sub": "relay"}
    r = client.post("/api/catalog/sync", json={"user_id": "7"})
    assert r.status_code == 403
    assert r.json()["error"] == "admin_only"

    r = client.post("/api/catalog/sync", json={"user_id": "42", "replace": True})
    assert r.status_code == 200
    assert r.json()["items"] == 1


def test_help(client):
    assert "/watch" in client.get("/api/help").json()["message"]


def test_admin_routes_need_a_bearer_token(client):
    r = client.get("/admin/whoami")
    assert r.status_code == 401
    assert r.json()["detail"] == "missing_bearer_token"


def test_catalog_sync_needs_operator_token_even_for_admin_id(client, catalog_source, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_USER_IDS", "42")
    r = client.post("/api/catalog/sync", json={"user_id": "42", "replace": True})
    assert r.status_code == 401
    assert catalog_source.calls == 0


def test_threshold_at_column_limit(client):
    assert _watch(client, max_price=MAX_PRICE).status_code == 200
    r = _watch(client, max_price=MAX_PRICE + 1)
    assert r.status_code == 422
    assert _watch(client, max_price=2**64).status_code == 422


def test_health_reports_catalog_state(engine, populated, monkeypatch):
    monkeypatch.setattr(health, "get_engine", lambda: engine)
    body = TestClient(app).get("/health").json()
    assert body["db_ok"] is True
    assert body["catalog_items"] == 6
    assert body["catalog_rows"] == 6
    assert body["catalog_last_sync_ms"] == 1_000
