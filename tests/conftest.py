import pytest
from fastapi.testclient import TestClient

from navstation.config import Settings
from navstation.database.sqlite_store import SQLiteStore
from navstation.main import create_app

AUTH_USER = "admin"
AUTH_PASSWORD = "s3cret-pass"
AUTH_SECRET = "test-signing-secret"


@pytest.fixture
def store(tmp_path):
    """Fresh SQLite store with the schema created."""
    s = SQLiteStore(str(tmp_path / "navstation.db"))
    s.init_schema()
    return s


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides) -> Settings:
        values = {
            "storage_backend": "sqlite",
            "sqlite_path": str(tmp_path / "navstation.db"),
            "seed_demo_data": False,
            "auth_enabled": False,
            "rate_limit_enabled": False,
            "auth_secret": AUTH_SECRET,
        }
        values.update(overrides)
        return Settings(**values)
    return _make


@pytest.fixture
def client(store, make_settings):
    """API client with the auth gate disabled."""
    app = create_app(make_settings(auth_enabled=False), store=store)
    return TestClient(app)


@pytest.fixture
def gated_client(store, make_settings):
    """API client with the auth gate enabled for AUTH_USER / AUTH_PASSWORD."""
    settings = make_settings(auth_enabled=True, auth_username=AUTH_USER, auth_password=AUTH_PASSWORD)
    app = create_app(settings, store=store)
    return TestClient(app)


@pytest.fixture
def auth_headers(gated_client):
    response = gated_client.post("/api/login", json={"username": AUTH_USER, "password": AUTH_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
