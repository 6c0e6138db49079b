"""
API tests through FastAPI's TestClient against a temporary SQLite store.
"""

import importlib

import pytest
from fastapi.testclient import TestClient

from navstation.main import create_app
from tests.conftest import AUTH_PASSWORD, AUTH_USER


def _create_group(client, name, **extra):
    response = client.post("/api/groups", json={"name": name, **extra})
    assert response.status_code == 200, response.text
    return response.json()


def _create_site(client, group_id, name, **extra):
    body = {"group_id": group_id, "name": name, "url": f"https://{name.lower()}.example", **extra}
    response = client.post("/api/sites", json=body)
    assert response.status_code == 200, response.text
    return response.json()


class TestSystem:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_ready(self, client):
        assert client.get("/ready").json() == {"status": "ready"}

    def test_security_headers(self, client):
        response = client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_import_builds_no_app(self, tmp_path, monkeypatch):
        import navstation.main

        monkeypatch.chdir(tmp_path)
        importlib.reload(navstation.main)
        assert not hasattr(navstation.main, "app")
        assert list(tmp_path.iterdir()) == []

    def test_entry_point_serves_factory(self, monkeypatch):
        import navstation.__main__ as entry

        calls = []
        monkeypatch.setattr(entry.uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))
        entry.main()
        target, kwargs = calls[0]
        assert target == "navstation.main:create_app"
        assert kwargs["factory"] is True

    def test_init_keeps_data(self, client):
        group = _create_group(client, "Kept")
        assert client.get("/api/init").json()["success"] is True
        assert client.get(f"/api/groups/{group['id']}").json()["name"] == "Kept"


class TestGroups:
    def test_create_appends_and_lists_in_order(self, client):
        a = _create_group(client, "A")
        b = _create_group(client, "B")
        assert (a["order_num"], b["order_num"]) == (0, 1)
        assert [g["name"] for g in client.get("/api/groups").json()] == ["A", "B"]

    def test_create_with_explicit_order(self, client):
        _create_group(client, "Late", order_num=5)
        _create_group(client, "Early", order_num=1)
        assert [g["name"] for g in client.get("/api/groups").json()] == ["Early", "Late"]

    def test_ignores_client_supplied_id(self, client):
        group = _create_group(client, "A", id=777)
        assert group["id"] != 777

    @pytest.mark.parametrize("body", [{"name": ""}, {"name": "   "}, {}])
    def test_create_rejects_blank_name(self, client, body):
        assert client.post("/api/groups", json=body).status_code == 422
        assert client.get("/api/groups").json() == []

    def test_get_missing_returns_null(self, client):
        response = client.get("/api/groups/999")
        assert response.status_code == 200
        assert response.json() is None

    def test_update(self, client):
        group = _create_group(client, "Old")
        updated = client.put(f"/api/groups/{group['id']}", json={"name": "New"}).json()
        assert updated["name"] == "New"
        assert updated["id"] == group["id"]
        assert updated["order_num"] == group["order_num"]

    def test_update_missing_returns_null(self, client):
        assert client.put("/api/groups/999", json={"name": "X"}).json() is None

    def test_update_rejects_blank_name(self, client):
        group = _create_group(client, "Keep")
        assert client.put(f"/api/groups/{group['id']}", json={"name": ""}).status_code == 422
        assert client.get(f"/api/groups/{group['id']}").json()["name"] == "Keep"

    def test_delete_cascades(self, client):
        group = _create_group(client, "A")
        site = _create_site(client, group["id"], "Site")
        assert client.delete(f"/api/groups/{group['id']}").json() == {"success": True}
        assert client.get(f"/api/sites/{site['id']}").json() is None
        assert client.get("/api/sites", params={"groupId": group["id"]}).json() == []

    def test_delete_missing(self, client):
        assert client.delete("/api/groups/999").json() == {"success": False}

    def test_groups_with_sites(self, client):
        a = _create_group(client, "A")
        b = _create_group(client, "B")
        _create_site(client, b["id"], "Two")
        _create_site(client, a["id"], "One")
        body = client.get("/api/groups-with-sites").json()
        assert [g["name"] for g in body] == ["A", "B"]
        assert [s["name"] for s in body[0]["sites"]] == ["One"]
        assert [s["name"] for s in body[1]["sites"]] == ["Two"]


class TestSites:
    def test_create_defaults(self, client):
        group = _create_group(client, "A")
        site = _create_site(client, group["id"], "Site")
        assert site["icon"] == "" and site["description"] == "" and site["notes"] == ""
        assert site["order_num"] == 0

    def test_create_in_missing_group(self, client):
        body = {"group_id": 999, "name": "X", "url": "https://x.example"}
        response = client.post("/api/sites", json=body)
        assert response.status_code == 400
        assert client.get("/api/sites").json() == []

    @pytest.mark.parametrize("field", ["name", "url"])
    def test_create_rejects_blank_required_field(self, client, field):
        group = _create_group(client, "A")
        body = {"group_id": group["id"], "name": "X", "url": "https://x.example", field: " "}
        assert client.post("/api/sites", json=body).status_code == 422

    def test_filter_by_group(self, client):
        a = _create_group(client, "A")
        b = _create_group(client, "B")
        _create_site(client, a["id"], "One")
        _create_site(client, b["id"], "Two")
        names = [s["name"] for s in client.get("/api/sites", params={"groupId": b["id"]}).json()]
        assert names == ["Two"]
        assert len(client.get("/api/sites").json()) == 2

    def test_update_fields(self, client):
        group = _create_group(client, "A")
        site = _create_site(client, group["id"], "Site")
        updated = client.put(f"/api/sites/{site['id']}", json={"notes": "pinned", "icon": "x.png"}).json()
        assert updated["notes"] == "pinned"
        assert updated["icon"] == "x.png"
        assert updated["name"] == "Site"

    def test_move_between_groups(self, client):
        a = _create_group(client, "A")
        b = _create_group(client, "B")
        _create_site(client, b["id"], "Existing")
        site = _create_site(client, a["id"], "Moving")
        moved = client.put(f"/api/sites/{site['id']}", json={"group_id": b["id"]}).json()
        assert moved["group_id"] == b["id"]
        assert moved["order_num"] == 1

    def test_update_and_delete_missing(self, client):
        assert client.put("/api/sites/999", json={"name": "X"}).json() is None
        assert client.delete("/api/sites/999").json() == {"success": False}


class TestOrders:
    def test_group_orders(self, client):
        a = _create_group(client, "A")
        b = _create_group(client, "B")
        body = [{"id": b["id"], "order_num": 0}, {"id": a["id"], "order_num": 1}]
        assert client.put("/api/group-orders", json=body).json() == {"success": True}
        assert [g["name"] for g in client.get("/api/groups").json()] == ["B", "A"]

    def test_group_orders_unknown_id(self, client):
        a = _create_group(client, "A")
        b = _create_group(client, "B")
        body = [{"id": b["id"], "order_num": 0}, {"id": a["id"], "order_num": 1}, {"id": 999, "order_num": 2}]
        assert client.put("/api/group-orders", json=body).json() == {"success": False}
        assert [g["name"] for g in client.get("/api/groups").json()] == ["A", "B"]

    def test_empty_batch(self, client):
        assert client.put("/api/group-orders", json=[]).json() == {"success": True}
        assert client.put("/api/site-orders", json=[]).json() == {"success": True}

    def test_site_orders(self, client):
        group = _create_group(client, "A")
        one = _create_site(client, group["id"], "One")
        two = _create_site(client, group["id"], "Two")
        body = [{"id": two["id"], "order_num": 0}, {"id": one["id"], "order_num": 1}]
        response = client.put("/api/site-orders", json=body, params={"groupId": group["id"]})
        assert response.json() == {"success": True}
        names = [s["name"] for s in client.get("/api/sites", params={"groupId": group["id"]}).json()]
        assert names == ["Two", "One"]

    def test_site_orders_spanning_groups(self, client):
        a = _create_group(client, "A")
        b = _create_group(client, "B")
        one = _create_site(client, a["id"], "One")
        two = _create_site(client, b["id"], "Two")
        body = [{"id": two["id"], "order_num": 0}, {"id": one["id"], "order_num": 1}]
        assert client.put("/api/site-orders", json=body).json() == {"success": False}
        assert client.get(f"/api/sites/{one['id']}").json()["order_num"] == 0
        assert client.get(f"/api/sites/{two['id']}").json()["order_num"] == 0

    def test_malformed_body(self, client):
        assert client.put("/api/group-orders", json=[{"id": 1}]).status_code == 422


class TestConfigs:
    def test_upsert_get_delete(self, client):
        assert client.get("/api/configs").json() == {}
        assert client.put("/api/configs/site.title", json={"value": "Home"}).json() == {"success": True}
        assert client.put("/api/configs/site.title", json={"value": "Start"}).json() == {"success": True}
        assert client.get("/api/configs").json() == {"site.title": "Start"}
        assert client.get("/api/configs/site.title").json()["value"] == "Start"
        assert client.delete("/api/configs/site.title").json() == {"success": True}
        assert client.get("/api/configs/site.title").json() is None
        assert client.delete("/api/configs/site.title").json() == {"success": False}


class TestAuthGate:
    def test_status(self, client, gated_client):
        assert client.get("/api/auth/status").json() == {"auth_enabled": False}
        assert gated_client.get("/api/auth/status").json() == {"auth_enabled": True}

    def test_disabled_gate_login_always_succeeds(self, client):
        body = client.post("/api/login", json={"username": "x", "password": "y"}).json()
        assert body["success"] is True
        assert body["token"]

    def test_disabled_gate_needs_no_token(self, client):
        assert client.get("/api/groups").status_code == 200

    @pytest.mark.parametrize("method,path", [
        ("get", "/api/groups"),
        ("get", "/api/groups/1"),
        ("post", "/api/groups"),
        ("delete", "/api/groups/1"),
        ("get", "/api/sites"),
        ("put", "/api/group-orders"),
        ("put", "/api/site-orders"),
        ("get", "/api/configs"),
        ("get", "/api/init"),
    ])
    def test_gated_routes_require_token(self, gated_client, method, path):
        response = getattr(gated_client, method)(path)
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_rejected_before_store_access(self, gated_client, store):
        response = gated_client.post("/api/groups", json={"name": "Sneaky"})
        assert response.status_code == 401
        assert store.list_groups() == []

    def test_wrong_credentials(self, gated_client):
        response = gated_client.post("/api/login", json={"username": AUTH_USER, "password": "nope"})
        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert "token" not in body

    def test_login_then_access(self, gated_client, auth_headers):
        response = gated_client.post("/api/groups", json={"name": "A"}, headers=auth_headers)
        assert response.status_code == 200
        assert gated_client.get("/api/groups", headers=auth_headers).json()[0]["name"] == "A"

    @pytest.mark.parametrize("header", [
        "Bearer not-a-token",
        "Basic YWRtaW46czNjcmV0",
        "Bearer",
    ])
    def test_bad_authorization_header(self, gated_client, header):
        response = gated_client.get("/api/groups", headers={"Authorization": header})
        assert response.status_code == 401

    def test_token_from_other_secret(self, gated_client, make_settings, store):
        other = TestClient(create_app(
            make_settings(auth_enabled=True, auth_username=AUTH_USER, auth_password=AUTH_PASSWORD,
                          auth_secret="a-different-secret"),
            store=store,
        ))
        token = other.post("/api/login", json={"username": AUTH_USER, "password": AUTH_PASSWORD}).json()["token"]
        response = gated_client.get("/api/groups", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestLoginRateLimit:
    """Rate limits come from the settings handed to create_app."""

    def _logins(self, client, count):
        body = {"username": "x", "password": "y"}
        return [client.post("/api/login", json=body).status_code for _ in range(count)]

    def test_disabled_by_settings_even_if_env_enables_it(self, store, make_settings, monkeypatch):
        monkeypatch.setenv("RATE_LIMIT_ENABLED", "true")
        monkeypatch.setenv("LOGIN_RATE_LIMIT", "1/minute")
        client = TestClient(create_app(make_settings(rate_limit_enabled=False), store=store))
        assert self._logins(client, 12) == [200] * 12

    def test_enabled_uses_configured_limit(self, store, make_settings):
        settings = make_settings(rate_limit_enabled=True, login_rate_limit="3/minute")
        client = TestClient(create_app(settings, store=store))
        assert self._logins(client, 5) == [200, 200, 200, 429, 429]

    def test_new_app_starts_with_fresh_counters(self, store, make_settings):
        settings = make_settings(rate_limit_enabled=True, login_rate_limit="2/minute")
        first = TestClient(create_app(settings, store=store))
        assert self._logins(first, 3) == [200, 200, 429]
        second = TestClient(create_app(settings, store=store))
        assert self._logins(second, 2) == [200, 200]
