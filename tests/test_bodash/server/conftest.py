"""
Fixtures for server tests.
"""

import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel

from bodash.db.connection import get_engine, _engine_cache
from bodash.server.app import create_app
from bodash.server.config import ServerConfig
from bodash.server.deps import get_api_client


@pytest.fixture
def temp_dir():
    """Create temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_config(temp_dir: Path) -> ServerConfig:
    """Create test configuration."""
    db_path = temp_dir / "test.db"
    return ServerConfig(
        database_url=f"sqlite:///{db_path}",
        optimizer_api_url="http://optimizer.test/api/v1",
        debug=True,
    )


@pytest.fixture
def app(test_config: ServerConfig, fake_api):
    """Create FastAPI app with test config, talking to the fake API."""
    # Clear engine cache to ensure fresh database
    _engine_cache.clear()
    app = create_app(test_config)

    def api_client_override():
        with fake_api.client() as client:
            yield client

    app.dependency_overrides[get_api_client] = api_client_override
    return app


@pytest.fixture
def client(app, test_config: ServerConfig) -> TestClient:
    """Create test client signed in as alice, with tables created."""
    engine = get_engine(test_config.database_url)
    SQLModel.metadata.create_all(engine)

    with TestClient(app, headers={"X-User-Id": "alice"}) as client:
        yield client

    engine.dispose()
    _engine_cache.clear()


@pytest.fixture
def optimization(client: TestClient, single_target_request) -> dict:
    """Single-target optimization created through the API."""
    response = client.post("/optimizations", json=single_target_request)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def multi_optimization(client: TestClient, multi_target_request) -> dict:
    """Desirability optimization created through the API."""
    response = client.post("/optimizations", json=multi_target_request)
    assert response.status_code == 201
    return response.json()

