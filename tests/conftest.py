"""
Shared fixtures: an isolated SQLite database and FastAPI test clients.

DATABASE_URL has to be set before clinic_crm is imported, so it happens at
module import time here.
"""

import os
import tempfile

_db_fd, _db_path = tempfile.mkstemp(suffix=".db")
os.environ["DATABASE_URL"] = f"sqlite:///{_db_path}"
os.environ["DISPLAY_TIMEZONE"] = ""

import pytest
from fastapi.testclient import TestClient

from clinic_crm.database import engine, reset_db
from clinic_crm.main import app

PASSWORD = "secret123"


@pytest.fixture
def api():
    """Fresh tables for every test."""
    reset_db()
    with TestClient(app) as c:
        yield c


@pytest.fixture
def new_http(api):
    """Extra TestClients so each logged-in session keeps its own headers."""
    def _make():
        return TestClient(app)
    return _make


@pytest.fixture
def register(api):
    def _register(email, role, name=None):
        res = api.post("/register", json={
            "name": name or email.split("@")[0].title(),
            "email": email,
            "password": PASSWORD,
            "role": role,
        })
        assert res.status_code == 201, res.text
        return res.json()
    return _register


@pytest.fixture
def auth(api):
    """Authorization header for a registered user."""
    def _auth(email):
        res = api.post("/login", json={"email": email, "password": PASSWORD})
        assert res.status_code == 200, res.text
        return {"Authorization": res.json()["authorization"]}
    return _auth


def pytest_sessionfinish(session, exitstatus):
    engine.dispose()
    os.close(_db_fd)
    if os.path.exists(_db_path):
        os.unlink(_db_path)
