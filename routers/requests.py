# routers/requests.py

from typing import List, Optional
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from pydantic import ValidationError

from dependencies.auth import get_current_user, CurrentUser
from core.config import settings
from core.logging_config import logger
from core.permission_helpers import is_admin, requires_permission
from core.supabase_helpers import safe_select
from models.enums import ACTIVE_STATUSES, UserType
from models.request import (
    ApplyPayload,
    Attachment,
    CancelPayload,
    CompletePayload,
    HelpRequest,
    RejectPayload,
    RequestCreate,
    RequestUpdate,
)
from models.user import VolunteerRef
from services import request_store, workflow
from services.filters import RequestFilters, filter_requests


router = APIRouter(
    prefix="/requests",
    tags=["Requests"],
)


def _policy() -> workflow.FulfillmentPolicy:
    return workflow.resolve_policy(settings.FULFILLMENT_POLICY)


def _ok(request: HelpRequest) -> dict:
    return {"success": True, "data": request.to_record()}


# -----------------------------------------------------
# Visibility
#   pin            → own requests
#   csr            → open requests + the ones they are assigned to
#   admins         → everything
# -----------------------------------------------------
def visible_to(request: HelpRequest, user: CurrentUser) -> bool:
    if is_admin(user):
        return True
    if user.user_type == UserType.pin:
        return request.requester_id == user.id
    return request.status in ACTIVE_STATUSES or request.assignment_for(user.id) is not None


def _list_for(user: CurrentUser, filters: RequestFilters) -> List[dict]:
    requests = [r for r in request_store.list_requests() if visible_to(r, user)]
    return filter_requests([r.to_record() for r in requests], filters)


# -----------------------------------------------------
# GET /requests
# -----------------------------------------------------
@router.get("", summary="List requests visible to the caller")
def list_requests(
    category: Optional[str] = Query(None),
    urgency: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Matches title, description or location"),
    requester_id: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
):
    filters = RequestFilters(
        search_text=search or "",
        category=category or "all",
        urgency=urgency or "all",
        status=status or "all",
    )
    data = _list_for(current_user, filters)
    if requester_id:
        data = [r for r in data if r["requester_id"] == requester_id]
    return {"success": True, "data": data}


# -----------------------------------------------------
# GET /requests/search
# -----------------------------------------------------
@router.get("/search", summary="Search requests")
def search_requests(
    q: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    urgency: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
):
    filters = RequestFilters(
        search_text=q or "",
        category=category or "all",
        urgency=urgency or "all",
        status=status or "all",
    )
    return {"success": True, "data": _list_for(current_user, filters)}


# -----------------------------------------------------
# POST /requests
# -----------------------------------------------------
@router.post("", summary="Create a help request")
def create_request(
    payload: RequestCreate,
    current_user: CurrentUser = Depends(requires_permission("requests:create")),
):
    request = workflow.create_request(payload, current_user)
    stored = request_store.insert_request(request)
    logger.info(f"User {current_user.id} created request {stored.id}")
    return _ok(stored)


# -----------------------------------------------------
# POST /requests/upload  (multipart, with attachments)
# Only file metadata is recorded; storage is handled elsewhere.
# -----------------------------------------------------
@router.post("/upload", summary="Create a help request with attachments")
async def create_request_with_files(
    title: str = Form(...),
    description: str = Form(...),
    category: str = Form(""),
    urgency: str = Form("medium"),
    location: str = Form(""),
    expected_date: Optional[str] = Form(None),
    expected_time: str = Form(""),
    volunteers_needed: int = Form(1),
    contact_method: str = Form("both"),
    additional_notes: Optional[str] = Form(None),
    attachments: Optional[List[UploadFile]] = File(None),
    current_user: CurrentUser = Depends(requires_permission("requests:create")),
):
    now = datetime.now(timezone.utc)
    files = []
    for upload in attachments or []:
        content = await upload.read()
        files.append(Attachment(
            name=upload.filename or "attachment",
            mimetype=upload.content_type,
            size=len(content),
            uploaded_at=now,
        ))

    try:
        payload = RequestCreate(
            title=title,
            description=description,
            category=category,
            urgency=urgency,
            location=location,
            expected_date=expected_date or None,
            expected_time=expected_time,
            volunteers_needed=volunteers_needed,
            contact_method=contact_method,
            additional_notes=additional_notes,
            attachments=files,
        )
    except ValidationError as e:
        raise HTTPException(400, ", ".join(err["msg"] for err in e.errors()))

    request = workflow.create_request(payload, current_user, now=now)
    stored = request_store.insert_request(request)
    logger.info(f"User {current_user.id} created request {stored.id} with {len(files)} attachment(s)")
    return _ok(stored)


# -----------------------------------------------------
# GET /requests/{id}
# CSR reads count as views.
# -----------------------------------------------------
@router.get("/{request_id}", summary="Get one request")
def get_request(
    request_id: str,
    current_user: CurrentUser = Depends(get_current_user),
):
    request = request_store.get_request(request_id)
    if not visible_to(request, current_user):
        raise HTTPException(403, "Not allowed to view this request")

    if current_user.user_type == UserType.csr:
        request = request_store.save_request(workflow.record_view(request))

    return _ok(request)


# -----------------------------------------------------
# PUT /requests/{id}
# -----------------------------------------------------
@router.put("/{request_id}", summary="Edit a request")
def update_request(
    request_id: str,
    payload: RequestUpdate,
    current_user: CurrentUser = Depends(get_current_user),
):
    request = request_store.get_request(request_id)
    updated = workflow.update_request(request, current_user, payload)
    return _ok(request_store.save_request(updated))


# -----------------------------------------------------
# DELETE /requests/{id}
# -----------------------------------------------------
@router.delete("/{request_id}", summary="Delete a request")
def delete_request(
    request_id: str,
    current_user: CurrentUser = Depends(get_current_user),
):
    request = request_store.get_request(request_id)
    workflow.ensure_can_delete(request, current_user)
    request_store.delete_request(request_id)
    logger.info(f"User {current_user.id} deleted request {request_id}")
    return {"success": True, "data": {"id": request_id}}


# -----------------------------------------------------
# Volunteer actions
# -----------------------------------------------------
@router.post("/{request_id}/apply", summary="Apply to help")
def apply_for_request(
    request_id: str,
    payload: ApplyPayload,
    current_user: CurrentUser = Depends(requires_permission("requests:apply")),
):
    request = request_store.get_request(request_id)
    updated = workflow.apply_for_request(request, current_user, payload.message, policy=_policy())
    return _ok(request_store.save_request(updated))


@router.delete("/{request_id}/apply", summary="Withdraw an application")
def cancel_application(
    request_id: str,
    current_user: CurrentUser = Depends(requires_permission("requests:apply")),
):
    request = request_store.get_request(request_id)
    updated = workflow.cancel_application(request, current_user.id)
    return _ok(request_store.save_request(updated))


@router.post("/{request_id}/reject", summary="Decline a request")
def reject_request(
    request_id: str,
    payload: RejectPayload,
    current_user: CurrentUser = Depends(requires_permission("requests:apply")),
):
    request = request_store.get_request(request_id)
    updated = workflow.reject_request(request, current_user.id, payload.reason)
    return _ok(request_store.save_request(updated))


@router.post("/{request_id}/shortlist", summary="Count a shortlist save")
def shortlist_request(
    request_id: str,
    current_user: CurrentUser = Depends(requires_permission("shortlists:write")),
):
    request = request_store.get_request(request_id)
    return _ok(request_store.save_request(workflow.adjust_shortlist_count(request, 1)))


@router.delete("/{request_id}/shortlist", summary="Count a shortlist removal")
def unshortlist_request(
    request_id: str,
    current_user: CurrentUser = Depends(requires_permission("shortlists:write")),
):
    request = request_store.get_request(request_id)
    return _ok(request_store.save_request(workflow.adjust_shortlist_count(request, -1)))


# -----------------------------------------------------
# Requester actions
# -----------------------------------------------------
def _volunteer_ref(request: HelpRequest, volunteer_id: str) -> VolunteerRef:
    """Profile details for an applicant, falling back to the application entry."""
    profile = safe_select("users", {"id": volunteer_id}, single=True)
    if profile:
        if profile.get("user_type") != UserType.csr.value:
            raise HTTPException(400, "Only CSR volunteers can be assigned")
        return VolunteerRef(
            id=volunteer_id,
            name=profile.get("name"),
            email=profile.get("email"),
            phone=profile.get("phone"),
        )

    applicant = next((v for v in request.interested_volunteers if v.volunteer_id == volunteer_id), None)
    return VolunteerRef(id=volunteer_id, name=applicant.name if applicant else None)


@router.post("/{request_id}/assign/{volunteer_id}", summary="Select a volunteer")
def assign_volunteer(
    request_id: str,
    volunteer_id: str,
    current_user: CurrentUser = Depends(get_current_user),
):
    request = request_store.get_request(request_id)
    volunteer = _volunteer_ref(request, volunteer_id)
    updated = workflow.assign_volunteer(request, current_user, volunteer, policy=_policy())
    stored = request_store.save_request(updated)
    logger.info(f"Request {request_id} matched with volunteer {volunteer_id}")
    return _ok(stored)


@router.post("/{request_id}/complete", summary="Complete and rate")
def complete_request(
    request_id: str,
    payload: CompletePayload,
    current_user: CurrentUser = Depends(get_current_user),
):
    request = request_store.get_request(request_id)
    updated = workflow.complete_request(
        request,
        current_user,
        payload.volunteer_id,
        payload.rating,
        payload.feedback,
    )
    return _ok(request_store.save_request(updated))


@router.post("/{request_id}/cancel", summary="Cancel a pending request")
def cancel_request(
    request_id: str,
    payload: CancelPayload,
    current_user: CurrentUser = Depends(get_current_user),
):
    request = request_store.get_request(request_id)
    updated = workflow.cancel_request(request, current_user, payload.reason)
    return _ok(request_store.save_request(updated))


# -----------------------------------------------------
# Admin moderation
# -----------------------------------------------------
@router.post("/{request_id}/freeze", summary="Freeze or unfreeze a request")
def toggle_freeze(
    request_id: str,
    current_user: CurrentUser = Depends(requires_permission("requests:moderate")),
):
    request = request_store.get_request(request_id)
    updated = workflow.toggle_freeze(request, current_user)
    logger.info(f"Request {request_id} is now {updated.status} (by {current_user.id})")
    return _ok(request_store.save_request(updated))
