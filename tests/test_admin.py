# tests/test_admin.py

"""
Tests for /admin: user management, reports and statistics.
"""

import pytest
from unittest.mock import Mock

from services import workflow

from tests.conftest import NOW


@pytest.fixture
def users_table(monkeypatch):
    """Rows of the `users` table behind routers.admin's Supabase helpers."""
    rows = [
        {"id": "admin-1", "name": "Root", "email": "root@example.com", "user_type": "system_admin",
         "status": "active", "created_at": "2024-01-01T00:00:00Z"},
        {"id": "pin-1", "name": "Alice", "email": "alice@example.com", "user_type": "pin",
         "status": "active", "created_at": "2024-05-15T08:00:00Z"},
        {"id": "csr-1", "name": "Vera", "email": "vera@corp.example.com", "user_type": "csr",
         "status": "suspended", "created_at": "2024-05-14T08:00:00Z"},
    ]

    def select(table, filters=None, *, single=False, order_by=None, desc=True):
        found = [r for r in rows if all(r.get(k) == v for k, v in (filters or {}).items())]
        if single:
            return found[0] if found else None
        return found

    def update(table, filters, data, *, clean=True):
        for row in rows:
            if all(row.get(k) == v for k, v in filters.items()):
                row.update(data)
                return row
        return None

    insert = Mock(side_effect=lambda table, data, **kwargs: data)

    monkeypatch.setattr("routers.admin.safe_select", select)
    monkeypatch.setattr("routers.admin.safe_update", update)
    monkeypatch.setattr("routers.admin.safe_insert", insert)
    # empty categories table → built-in list
    monkeypatch.setattr("routers.categories.safe_select", lambda *args, **kwargs: [])
    return rows


def status_of(rows, user_id):
    return next(r["status"] for r in rows if r["id"] == user_id)


# -----------------------------------------------------
# Permissions
# -----------------------------------------------------
@pytest.mark.parametrize("path", ["/admin/users", "/admin/reports", "/admin/statistics", "/admin/requests"])
def test_non_admins_are_refused(client, login, users_table, request_db, pin_user, path):
    login(pin_user)
    assert client.get(path).status_code == 403


def test_platform_manager_cannot_manage_users(client, login, users_table, manager_user):
    login(manager_user)
    assert client.get("/admin/users").status_code == 403
    assert client.patch("/admin/users/pin-1/status", json={"status": "suspended"}).status_code == 403


def test_platform_manager_reads_reports(client, login, users_table, request_db, manager_user):
    login(manager_user)
    assert client.get("/admin/reports").status_code == 200


# -----------------------------------------------------
# Users
# -----------------------------------------------------
def test_list_users_with_filters(client, login, users_table, admin_user):
    login(admin_user)

    assert len(client.get("/admin/users").json()["data"]) == 3
    csr = client.get("/admin/users", params={"user_type": "csr"}).json()["data"]
    assert [u["id"] for u in csr] == ["csr-1"]
    assert client.get("/admin/users", params={"user_type": "wizard"}).status_code == 400


def test_create_user(client, login, users_table, admin_user):
    login(admin_user)

    response = client.post("/admin/users", json={
        "name": "Walt", "email": "walt@corp.example.com", "user_type": "csr",
    })

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "active"
    assert data["user_type"] == "csr"
    assert data["id"]


def test_create_duplicate_email(client, login, users_table, admin_user):
    login(admin_user)
    response = client.post("/admin/users", json={
        "name": "Alice again", "email": "alice@example.com", "user_type": "pin",
    })
    assert response.status_code == 409


def test_suspend_and_reactivate(client, login, users_table, admin_user):
    login(admin_user)

    client.patch("/admin/users/pin-1/status", json={"status": "suspended", "reason": "Spam"})
    assert status_of(users_table, "pin-1") == "suspended"

    client.patch("/admin/users/pin-1/status", json={"status": "active"})
    assert status_of(users_table, "pin-1") == "active"


def test_cannot_change_own_status(client, login, users_table, admin_user):
    login(admin_user)
    response = client.patch("/admin/users/admin-1/status", json={"status": "suspended"})
    assert response.status_code == 400


def test_update_unknown_user(client, login, users_table, admin_user):
    login(admin_user)
    assert client.put("/admin/users/ghost", json={"name": "Casper"}).status_code == 404
    assert client.put("/admin/users/pin-1", json={}).status_code == 400


def test_delete_is_soft(client, login, users_table, admin_user):
    login(admin_user)

    assert client.delete("/admin/users/pin-1").status_code == 200
    assert status_of(users_table, "pin-1") == "deleted"
    assert client.delete("/admin/users/admin-1").status_code == 400


def test_batch_action(client, login, users_table, admin_user):
    login(admin_user)

    response = client.post("/admin/users/batch", json={
        "action": "activate", "user_ids": ["csr-1", "admin-1", "ghost"],
    })

    data = response.json()["data"]
    assert data["action"] == "activate"
    assert data["updated"] == ["csr-1"]
    assert [f["user_id"] for f in data["failed"]] == ["admin-1", "ghost"]
    assert status_of(users_table, "csr-1") == "active"


# -----------------------------------------------------
# Requests, reports, statistics
# -----------------------------------------------------
@pytest.fixture
def report_rows(request_db, grocery_payload, pin_user, csr_user, csr_user_2):
    matched = workflow.create_request(grocery_payload, pin_user, now=NOW, request_id="req-1")
    matched = workflow.apply_for_request(matched, csr_user, now=NOW)
    matched = workflow.assign_volunteer(matched, pin_user, csr_user, now=NOW)
    request_db[matched.id] = workflow.adjust_shortlist_count(matched, 2).to_record()

    pending = workflow.create_request(grocery_payload, pin_user, now=NOW, request_id="req-2")
    request_db[pending.id] = workflow.adjust_shortlist_count(pending, 1).to_record()
    return request_db


def test_all_requests(client, login, users_table, report_rows, manager_user):
    login(manager_user)
    data = client.get("/admin/requests").json()["data"]
    assert sorted(r["id"] for r in data) == ["req-1", "req-2"]


def test_daily_report_json(client, login, users_table, report_rows, admin_user):
    login(admin_user)

    response = client.get("/admin/reports", params={"type": "daily", "date": "2024-05-15"})

    assert response.status_code == 200
    report = response.json()["data"]
    assert report["report_type"] == "daily"
    assert report["date"] == "2024-05-15"
    assert report["total_matches"] == 1
    assert report["new_users"] == 1
    assert report["active_requests"] == 2
    assert report["details"]["category_breakdown"]["shopping"]["count"] == 2
    assert report["system_info"]["total_users"] == 3


def test_report_csv_download(client, login, users_table, report_rows, admin_user):
    login(admin_user)

    response = client.get("/admin/reports", params={"type": "daily", "date": "2024-05-15", "format": "csv"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="system_report_daily_2024-05-15.csv"' in response.headers["content-disposition"]
    assert response.text.splitlines()[0] == "metric,value,growth"


def test_report_text_download(client, login, users_table, report_rows, admin_user):
    login(admin_user)
    response = client.get("/admin/reports", params={"type": "monthly", "date": "2024-05-15", "format": "text"})
    assert "Monthly Report" in response.text
    assert "Vera" in response.text


def test_report_rejects_unknown_format(client, login, users_table, report_rows, admin_user):
    login(admin_user)
    assert client.get("/admin/reports", params={"format": "pdf"}).status_code == 422


def test_statistics(client, login, users_table, report_rows, admin_user):
    login(admin_user)

    stats = client.get("/admin/statistics").json()["data"]

    assert stats["total_users"] == 3
    assert stats["active_users"] == 2
    assert stats["total_requests"] == 2
    assert stats["active_requests"] == 2
    assert stats["matched_requests"] == 1
    assert stats["total_shortlists"] == 3


def test_dashboard_disabled(client, login, admin_user):
    login(admin_user)
    assert client.get("/admin/dashboard").status_code == 503


def test_dashboard_snapshot(app, client, login, manager_user):
    app.state.dashboard = Mock(snapshot={"today_matches": 2})
    login(manager_user)

    assert client.get("/admin/dashboard").json()["data"] == {"today_matches": 2}
