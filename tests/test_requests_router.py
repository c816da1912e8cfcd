# tests/test_requests_router.py

"""
Endpoint tests for /requests. The Supabase table is replaced by the
in-memory `request_db` fixture and authentication by `login`.
"""

import pytest

from services import workflow

from tests.conftest import NOW


def seed(rows, request):
    rows[request.id] = request.to_record()
    return request


@pytest.fixture
def stored(request_db, pending_request):
    return seed(request_db, pending_request)


@pytest.fixture
def vera_profile(monkeypatch):
    profile = {"id": "csr-1", "name": "Vera", "email": "vera@corp.example.com",
               "phone": "555-0199", "user_type": "csr"}
    monkeypatch.setattr("routers.requests.safe_select", lambda *args, **kwargs: profile)
    return profile


# -----------------------------------------------------
# Create
# -----------------------------------------------------
def test_pin_creates_request(client, login, request_db, pin_user):
    login(pin_user)

    response = client.post("/requests", json={
        "title": "Need groceries",
        "description": "Please help me carry groceries up three flights",
        "category": "shopping",
        "location": "221B Baker St",
    })

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "pending"
    assert data["view_count"] == 0
    assert data["shortlist_count"] == 0
    assert data["requester_name"] == "Alice"
    assert data["id"] in request_db


def test_create_reports_validation_messages(client, login, request_db, pin_user):
    login(pin_user)

    response = client.post("/requests", json={"title": "Hi", "description": "short"})

    assert response.status_code == 400
    assert "Title must be 5-200 characters" in response.json()["detail"]
    assert request_db == {}


def test_csr_cannot_create(client, login, request_db, csr_user, grocery_payload):
    login(csr_user)
    response = client.post("/requests", json=grocery_payload.model_dump(mode="json"))
    assert response.status_code == 403


def test_upload_records_attachment_metadata(client, login, request_db, pin_user):
    login(pin_user)

    response = client.post(
        "/requests/upload",
        data={
            "title": "Need groceries",
            "description": "Please help me carry groceries up three flights",
            "category": "shopping",
            "location": "221B Baker St",
        },
        files=[("attachments", ("list.txt", b"milk, eggs", "text/plain"))],
    )

    assert response.status_code == 200
    attachment = response.json()["data"]["attachments"][0]
    assert attachment["name"] == "list.txt"
    assert attachment["size"] == 10


# -----------------------------------------------------
# Read
# -----------------------------------------------------
@pytest.fixture
def mixed_rows(request_db, pending_request, grocery_payload, other_pin_user, pin_user, admin_user):
    seed(request_db, pending_request)
    theirs = workflow.create_request(
        grocery_payload.model_copy(update={"title": "Ride to clinic", "location": "Sha Tin"}),
        other_pin_user, now=NOW, request_id="req-2",
    )
    seed(request_db, theirs)
    cancelled = workflow.cancel_request(
        workflow.create_request(grocery_payload, other_pin_user, now=NOW, request_id="req-3"),
        admin_user, "Duplicate", now=NOW,
    )
    seed(request_db, cancelled)
    return request_db


def ids(response):
    return sorted(r["id"] for r in response.json()["data"])


def test_pin_sees_own_requests(client, login, mixed_rows, pin_user):
    login(pin_user)
    assert ids(client.get("/requests")) == ["req-1"]


def test_csr_sees_open_requests(client, login, mixed_rows, csr_user):
    login(csr_user)
    assert ids(client.get("/requests")) == ["req-1", "req-2"]


def test_admin_sees_everything(client, login, mixed_rows, manager_user):
    login(manager_user)
    assert ids(client.get("/requests")) == ["req-1", "req-2", "req-3"]
    assert ids(client.get("/requests", params={"status": "cancelled"})) == ["req-3"]


def test_search_matches_location(client, login, mixed_rows, csr_user):
    login(csr_user)
    assert ids(client.get("/requests/search", params={"q": "sha tin"})) == ["req-2"]


def test_csr_view_is_counted(client, login, stored, request_db, csr_user, pin_user):
    login(csr_user)
    assert client.get("/requests/req-1").json()["data"]["view_count"] == 1

    login(pin_user)
    client.get("/requests/req-1")
    assert request_db["req-1"]["view_count"] == 1


def test_other_pin_cannot_view(client, login, stored, other_pin_user):
    login(other_pin_user)
    assert client.get("/requests/req-1").status_code == 403


def test_missing_request_is_404(client, login, request_db, pin_user):
    login(pin_user)
    response = client.get("/requests/nope")
    assert response.status_code == 404
    assert response.json()["error"] == "Request not found"


# -----------------------------------------------------
# Matching workflow
# -----------------------------------------------------
def test_apply_twice_conflicts(client, login, stored, csr_user):
    login(csr_user)

    first = client.post("/requests/req-1/apply", json={"message": "Happy to help"})
    second = client.post("/requests/req-1/apply", json={"message": "Again"})

    assert first.status_code == 200
    assert first.json()["data"]["interested_volunteers"][0]["volunteer_id"] == "csr-1"
    assert second.status_code == 409


def test_withdraw_and_decline(client, login, stored, request_db, csr_user):
    login(csr_user)
    client.post("/requests/req-1/apply", json={})

    assert client.delete("/requests/req-1/apply").json()["data"]["interested_volunteers"] == []

    declined = client.post("/requests/req-1/reject", json={"reason": "Too far"})
    assert declined.json()["data"]["rejected_volunteers"][0]["volunteer_id"] == "csr-1"
    assert client.post("/requests/req-1/apply", json={}).status_code == 400


def test_pin_cannot_apply(client, login, stored, pin_user):
    login(pin_user)
    assert client.post("/requests/req-1/apply", json={}).status_code == 403


def test_assign_complete_flow(client, login, stored, vera_profile, pin_user, csr_user):
    login(csr_user)
    client.post("/requests/req-1/apply", json={"message": "Happy to help"})

    login(pin_user)
    matched = client.post("/requests/req-1/assign/csr-1")
    assert matched.status_code == 200
    data = matched.json()["data"]
    assert data["status"] == "matched"
    assert data["assigned_volunteers"][0]["phone"] == "555-0199"
    assert data["interested_volunteers"] == []

    done = client.post("/requests/req-1/complete", json={"rating": 5, "feedback": "Thanks!"})
    assert done.status_code == 200
    assert done.json()["data"]["status"] == "completed"
    assert done.json()["data"]["assigned_volunteers"][0]["rating"] == 5

    again = client.post("/requests/req-1/complete", json={"rating": 1})
    assert again.status_code == 409


def test_only_owner_assigns(client, login, stored, vera_profile, other_pin_user, csr_user):
    login(csr_user)
    client.post("/requests/req-1/apply", json={})

    login(other_pin_user)
    assert client.post("/requests/req-1/assign/csr-1").status_code == 403


def test_assign_rejects_non_csr_profile(client, login, stored, monkeypatch, pin_user):
    monkeypatch.setattr(
        "routers.requests.safe_select",
        lambda *args, **kwargs: {"id": "pin-2", "user_type": "pin"},
    )
    login(pin_user)
    assert client.post("/requests/req-1/assign/pin-2").status_code == 400


def test_complete_requires_rating(client, login, stored, vera_profile, pin_user, csr_user):
    login(csr_user)
    client.post("/requests/req-1/apply", json={})
    login(pin_user)
    client.post("/requests/req-1/assign/csr-1")

    response = client.post("/requests/req-1/complete", json={})
    assert response.status_code == 400
    assert response.json()["detail"] == "Rating is required"


def test_cancel(client, login, stored, pin_user):
    login(pin_user)

    assert client.post("/requests/req-1/cancel", json={"reason": ""}).status_code == 400

    response = client.post("/requests/req-1/cancel", json={"reason": "Sorted it myself"})
    assert response.json()["data"]["status"] == "cancelled"
    assert response.json()["data"]["cancelled_by"] == "pin-1"

    assert client.post("/requests/req-1/cancel", json={"reason": "Again"}).status_code == 400


def test_edit_own_request(client, login, stored, pin_user, other_pin_user):
    login(other_pin_user)
    assert client.put("/requests/req-1", json={"title": "Not mine at all"}).status_code == 403

    login(pin_user)
    response = client.put("/requests/req-1", json={"urgency": "high"})
    assert response.json()["data"]["urgency"] == "high"


def test_edit_with_null_fields_is_a_validation_error(client, login, stored, pin_user):
    login(pin_user)

    response = client.put("/requests/req-1", json={"volunteers_needed": None})
    assert response.status_code == 400
    assert "volunteers_needed cannot be null" in response.json()["detail"]

    assert client.put("/requests/req-1", json={"title": None}).status_code == 400


# -----------------------------------------------------
# Moderation, shortlist counter, delete
# -----------------------------------------------------
def test_admin_toggles_freeze(client, login, stored, admin_user, csr_user):
    login(admin_user)
    frozen = client.post("/requests/req-1/freeze").json()["data"]
    assert frozen["status"] == "frozen"
    assert frozen["original_status"] == "pending"

    login(csr_user)
    assert client.post("/requests/req-1/apply", json={}).status_code == 400

    login(admin_user)
    assert client.post("/requests/req-1/freeze").json()["data"]["status"] == "pending"


def test_pin_cannot_freeze(client, login, stored, pin_user):
    login(pin_user)
    response = client.post("/requests/req-1/freeze")
    assert response.status_code == 403
    assert "requests:moderate" in response.json()["detail"]


def test_shortlist_counter(client, login, stored, csr_user):
    login(csr_user)
    assert client.post("/requests/req-1/shortlist").json()["data"]["shortlist_count"] == 1
    assert client.delete("/requests/req-1/shortlist").json()["data"]["shortlist_count"] == 0
    assert client.delete("/requests/req-1/shortlist").json()["data"]["shortlist_count"] == 0


def test_delete(client, login, stored, request_db, pin_user, other_pin_user):
    login(other_pin_user)
    assert client.delete("/requests/req-1").status_code == 403

    login(pin_user)
    assert client.delete("/requests/req-1").status_code == 200
    assert request_db == {}
