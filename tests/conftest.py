import datetime as dt

import pytest

from budget_tracker.config import AppConfig, fixed_clock
from budget_tracker.webapp import create_app

TODAY = dt.datetime(2024, 1, 15, 9, 30)


@pytest.fixture
def app(tmp_path):
    config = AppConfig(secret_key="test", database=str(tmp_path / "test.db"))
    app = create_app(config, clock=fixed_clock(TODAY))
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_client(client):
    resp = client.post("/api/auth/signup", json={"email": "test@example.com", "password": "password123", "name": "Test User"})
    assert resp.status_code == 201
    return client
