# routers/admin.py

from typing import Optional
from datetime import date, datetime, timezone
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse

from dependencies.auth import get_current_user, CurrentUser
from core.permission_helpers import requires_permission
from core.supabase_helpers import safe_select, safe_insert, safe_update
from core.logging_config import logger
from models.enums import BatchAction, UserStatus, UserType
from models.user import BatchUserAction, UserCreate, UserStatusUpdate, UserUpdate
from services import request_store
from services.data_service import build_statistics
from services.normalizers import normalize_request, normalize_users
from services.report_export import report_filename, report_to_csv, format_report_text
from services.report_generator import generate_report
from routers.categories import load_categories


router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
)


BATCH_STATUS = {
    BatchAction.suspend: UserStatus.suspended,
    BatchAction.activate: UserStatus.active,
    BatchAction.delete: UserStatus.deleted,
}


# -----------------------------------------------------
# Helpers
# -----------------------------------------------------
def _get_user_row(user_id: str) -> dict:
    row = safe_select("users", {"id": user_id}, single=True)
    if not row:
        raise HTTPException(404, "User not found")
    return row


def _guard_self(user_id: str, current_user: CurrentUser, action: str):
    if user_id == current_user.id:
        raise HTTPException(400, f"You cannot {action} your own account.")


def _all_requests() -> list:
    return [normalize_request(r.to_record()) for r in request_store.list_requests()]


def _all_users() -> list:
    return normalize_users(safe_select("users", order_by="created_at"))


# -----------------------------------------------------
# 1️⃣ LIST USERS
# -----------------------------------------------------
@router.get(
    "/users",
    summary="Admin: List users",
    dependencies=[Depends(requires_permission("users:read"))],
)
def list_users(
    user_type: Optional[str] = None,
    status: Optional[str] = None,
):
    if user_type and user_type not in UserType.list():
        raise HTTPException(400, f"Invalid user_type filter: {user_type}")

    filters = {}
    if user_type:
        filters["user_type"] = user_type
    if status:
        filters["status"] = status

    rows = safe_select("users", filters, order_by="created_at")
    return {"success": True, "data": rows}


# -----------------------------------------------------
# 2️⃣ CREATE USER PROFILE
# -----------------------------------------------------
@router.post(
    "/users",
    summary="Admin: Create user profile",
    dependencies=[Depends(requires_permission("users:write"))],
)
def create_user(payload: UserCreate):
    if safe_select("users", {"email": payload.email}, single=True):
        raise HTTPException(409, f"A user with email {payload.email} already exists")

    row = {
        **payload.model_dump(mode="json"),
        "id": str(uuid.uuid4()),
        "status": UserStatus.active.value,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    created = safe_insert("users", row)
    logger.info(f"Created {payload.user_type} profile for {payload.email}")
    return {"success": True, "data": created}


# -----------------------------------------------------
# 3️⃣ UPDATE USER
# -----------------------------------------------------
@router.put(
    "/users/{user_id}",
    summary="Admin: Update user",
    dependencies=[Depends(requires_permission("users:write"))],
)
def update_user(
    user_id: str,
    payload: UserUpdate,
    current_user: CurrentUser = Depends(get_current_user),
):
    updates = payload.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(400, "No fields provided to update.")

    if "user_type" in updates or "status" in updates:
        _guard_self(user_id, current_user, "change the type or status of")

    _get_user_row(user_id)
    updated = safe_update("users", {"id": user_id}, updates)
    logger.info(f"Updated user {user_id}: {sorted(updates)}")
    return {"success": True, "data": updated}


# -----------------------------------------------------
# 4️⃣ CHANGE STATUS
# -----------------------------------------------------
@router.patch(
    "/users/{user_id}/status",
    summary="Admin: Suspend / activate user",
    dependencies=[Depends(requires_permission("users:write"))],
)
def update_user_status(
    user_id: str,
    payload: UserStatusUpdate,
    current_user: CurrentUser = Depends(get_current_user),
):
    _guard_self(user_id, current_user, "change the status of")
    _get_user_row(user_id)

    updated = safe_update("users", {"id": user_id}, {"status": payload.status.value})
    logger.info(
        f"User {user_id} set to {payload.status} by {current_user.id}"
        + (f" ({payload.reason})" if payload.reason else "")
    )
    return {"success": True, "data": updated}


# -----------------------------------------------------
# 5️⃣ DELETE USER (soft: status → deleted)
# -----------------------------------------------------
@router.delete(
    "/users/{user_id}",
    summary="Admin: Delete user",
    dependencies=[Depends(requires_permission("users:write"))],
)
def delete_user(
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
):
    _guard_self(user_id, current_user, "delete")
    _get_user_row(user_id)

    safe_update("users", {"id": user_id}, {"status": UserStatus.deleted.value})
    return {"success": True, "data": {"user_id": user_id}}


# -----------------------------------------------------
# 6️⃣ BATCH ACTION
# -----------------------------------------------------
@router.post(
    "/users/batch",
    summary="Admin: Suspend / activate / delete several users",
    dependencies=[Depends(requires_permission("users:write"))],
)
def batch_update_users(
    payload: BatchUserAction,
    current_user: CurrentUser = Depends(get_current_user),
):
    new_status = BATCH_STATUS[payload.action]
    updated, failed = [], []

    for user_id in payload.user_ids:
        if user_id == current_user.id:
            failed.append({"user_id": user_id, "error": "Cannot modify your own account"})
            continue
        row = safe_update("users", {"id": user_id}, {"status": new_status.value})
        if row:
            updated.append(user_id)
        else:
            failed.append({"user_id": user_id, "error": "User not found"})

    logger.info(f"Batch {payload.action}: {len(updated)} updated, {len(failed)} failed")
    return {
        "success": True,
        "data": {"action": payload.action.value, "updated": updated, "failed": failed},
    }


# -----------------------------------------------------
# 7️⃣ ALL REQUESTS
# -----------------------------------------------------
@router.get(
    "/requests",
    summary="Admin: List every request",
    dependencies=[Depends(requires_permission("requests:moderate"))],
)
def list_all_requests():
    return {
        "success": True,
        "data": [r.to_record() for r in request_store.list_requests()],
    }


# -----------------------------------------------------
# 8️⃣ REPORTS
# -----------------------------------------------------
@router.get(
    "/reports",
    summary="Admin: Daily / weekly / monthly report",
    dependencies=[Depends(requires_permission("reports:read"))],
)
def get_report(
    report_type: str = Query("weekly", alias="type"),
    target_date: Optional[date] = Query(None, alias="date"),
    format: str = Query("json", pattern="^(json|text|csv)$"),
):
    requests = _all_requests()
    users = _all_users()
    now = datetime.now(timezone.utc)

    report = generate_report(report_type, target_date or now, requests, users, load_categories())
    report["generated_at"] = now.isoformat()
    report["system_info"] = {
        "total_users": len(users),
        "total_requests": len(requests),
        "system_health": "good",
    }

    if format == "json":
        return {"success": True, "data": report}

    body = format_report_text(report) if format == "text" else report_to_csv(report)
    extension = "txt" if format == "text" else "csv"
    return PlainTextResponse(
        body,
        media_type="text/csv" if format == "csv" else "text/plain",
        headers={"Content-Disposition": f'attachment; filename="{report_filename(report, extension)}"'},
    )


# -----------------------------------------------------
# 9️⃣ STATISTICS
# -----------------------------------------------------
@router.get(
    "/statistics",
    summary="Admin: System-wide counters",
    dependencies=[Depends(requires_permission("reports:read"))],
)
def get_statistics():
    requests = _all_requests()
    stats = build_statistics(requests, _all_users(), [])
    # Shortlists live on the clients; the per-request counters are the server's view
    stats["total_shortlists"] = sum(r["shortlist_count"] for r in requests)
    return {"success": True, "data": stats}


# -----------------------------------------------------
# 🔟 DASHBOARD SNAPSHOT
# Refreshed in the background when ENABLE_SCHEDULER is on.
# -----------------------------------------------------
@router.get(
    "/dashboard",
    summary="Admin: Latest dashboard snapshot",
    dependencies=[Depends(requires_permission("reports:read"))],
)
def get_dashboard(request: Request):
    poller = request.app.state.dashboard
    if poller is None:
        raise HTTPException(503, "Dashboard polling is disabled")
    return {"success": True, "data": poller.snapshot}
