# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import pytest
from datetime import datetime, timezone
from fastapi.testclient import TestClient
from unittest.mock import Mock
from typing import Generator

from main import create_app
from dependencies.auth import CurrentUser, get_current_user
from core.errors import NotFound
from models.request import HelpRequest, RequestCreate
from services import request_store
from services import workflow


NOW = datetime(2024, 5, 15, 10, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def app():
    """Create a test FastAPI application instance."""
    app = create_app()
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(app):
    """login(user) makes every following request authenticate as `user`."""
    def _login(user: CurrentUser):
        app.dependency_overrides[get_current_user] = lambda: user
        return user
    return _login


# -----------------------------------------------------
# Users
# -----------------------------------------------------
@pytest.fixture
def pin_user():
    return CurrentUser(
        id="pin-1",
        email="alice@example.com",
        user_type="pin",
        name="Alice",
        phone="555-0100",
        address="221B Baker St",
    )


@pytest.fixture
def other_pin_user():
    return CurrentUser(id="pin-2", email="bob@example.com", user_type="pin", name="Bob")


@pytest.fixture
def csr_user():
    return CurrentUser(
        id="csr-1",
        email="vera@corp.example.com",
        user_type="csr",
        name="Vera",
        organization="Acme Corp",
    )


@pytest.fixture
def csr_user_2():
    return CurrentUser(id="csr-2", email="walt@corp.example.com", user_type="csr", name="Walt")


@pytest.fixture
def admin_user():
    return CurrentUser(id="admin-1", email="root@example.com", user_type="system_admin", name="Root")


@pytest.fixture
def manager_user():
    return CurrentUser(id="pm-1", email="pm@example.com", user_type="platform_manager", name="Pat")


# -----------------------------------------------------
# Requests
# -----------------------------------------------------
@pytest.fixture
def grocery_payload():
    return RequestCreate(
        title="Need groceries",
        description="Please help me carry groceries up three flights",
        category="shopping",
        location="221B Baker St",
    )


@pytest.fixture
def pending_request(grocery_payload, pin_user):
    return workflow.create_request(grocery_payload, pin_user, now=NOW, request_id="req-1")


@pytest.fixture
def request_db(monkeypatch):
    """
    In-memory stand-in for the Supabase `requests` table.
    Rows are stored the way the real table stores them (to_record()).
    """
    rows = {}

    def list_requests(filters=None):
        return [HelpRequest.from_record(r) for r in rows.values()]

    def get_request(request_id):
        if request_id not in rows:
            raise NotFound("Request not found")
        return HelpRequest.from_record(rows[request_id])

    def insert_request(request):
        rows[request.id] = request.to_record()
        return HelpRequest.from_record(rows[request.id])

    def save_request(request):
        if request.id not in rows:
            raise NotFound("Request not found")
        rows[request.id] = request.to_record()
        return HelpRequest.from_record(rows[request.id])

    def delete_request(request_id):
        if rows.pop(request_id, None) is None:
            raise NotFound("Request not found")

    monkeypatch.setattr(request_store, "list_requests", list_requests)
    monkeypatch.setattr(request_store, "get_request", get_request)
    monkeypatch.setattr(request_store, "insert_request", insert_request)
    monkeypatch.setattr(request_store, "save_request", save_request)
    monkeypatch.setattr(request_store, "delete_request", delete_request)
    return rows


# -----------------------------------------------------
# Supabase
# -----------------------------------------------------
@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client whose query builder chains onto itself."""
    mock_client = Mock()
    mock_query = Mock()
    for method in ("select", "insert", "update", "delete", "eq", "order", "limit"):
        getattr(mock_query, method).return_value = mock_query
    mock_query.execute.return_value = Mock(data=[])
    mock_client.table.return_value = mock_query
    return mock_client


# -----------------------------------------------------
# Clock
# -----------------------------------------------------
class FakeClock:
    """Millisecond clock the tests move by hand."""

    def __init__(self, start: float = 0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float):
        self.now += ms


@pytest.fixture
def fake_clock():
    return FakeClock()
