# services/workflow.py

"""
Request lifecycle state machine.

    pending ──assign──▶ matched ──complete──▶ completed
       │                   │
       ├──cancel──▶ cancelled
       └──freeze──▶ frozen ◀──freeze── (matched, paused)
                     └──unfreeze──▶ previous status

Every operation is a pure function: it takes a HelpRequest, checks its
guards, and returns an updated copy. The input is never mutated. Rejected
operations raise a WorkflowError subclass from core.errors so routers can
translate them into HTTP responses and the data access layer can surface
them verbatim.
"""

from typing import Iterable, List, Optional
from datetime import date, datetime, timezone
import uuid

from core.permission_helpers import is_admin
from core.errors import (
    DuplicateAction,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    RequestValidationError,
)
from models.enums import BaseStrEnum, LifecycleStatus
from models.request import (
    ActiveState,
    AssignedVolunteer,
    FrozenState,
    HelpRequest,
    InterestedVolunteer,
    RejectedVolunteer,
    RequestCreate,
    RequestUpdate,
)


TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 200
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 1000
LOCATION_MAX_LENGTH = 500
NOTES_MAX_LENGTH = 500
FEEDBACK_MAX_LENGTH = 500
CANCEL_REASON_MAX_LENGTH = 200

# Fields a requester may still change once the request left `pending`
LOCKED_EDITABLE_FIELDS = {"additional_notes"}
# Fields an edit may clear by sending null
CLEARABLE_FIELDS = {"expected_date", "additional_notes"}


class FulfillmentPolicy(BaseStrEnum):
    """
    How requests with volunteers_needed > 1 are filled.

    single_match: the first assignment moves the request to matched and
        closes it to further applications.
    fill_slots: the first assignment still moves it to matched, but a
        matched request keeps accepting applications and assignments until
        every slot is taken.
    """

    single_match = "single_match"
    fill_slots = "fill_slots"


def resolve_policy(value) -> FulfillmentPolicy:
    try:
        return FulfillmentPolicy(value)
    except ValueError:
        return FulfillmentPolicy.single_match


def accepts_volunteers(request: HelpRequest, policy: FulfillmentPolicy) -> bool:
    """Is the request open for new applications and assignments?"""
    if request.is_frozen:
        return False
    if request.effective_status == LifecycleStatus.pending:
        return True
    return (
        policy == FulfillmentPolicy.fill_slots
        and request.effective_status == LifecycleStatus.matched
        and request.available_slots > 0
    )


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================
# Actor helpers
# ============================================================
def is_owner(request: HelpRequest, actor) -> bool:
    return request.requester_id == getattr(actor, "id", None)


def _require_owner(request: HelpRequest, actor, action: str):
    if not is_owner(request, actor):
        raise PermissionDenied(f"Only the requester can {action}")


def _require_owner_or_admin(request: HelpRequest, actor, action: str):
    if not (is_owner(request, actor) or is_admin(actor)):
        raise PermissionDenied(f"Only the requester or an admin can {action}")


def _require_not_frozen(request: HelpRequest):
    if request.is_frozen:
        raise InvalidTransition("Request is frozen")


def _with_status(request: HelpRequest, status: LifecycleStatus, now: datetime, **changes) -> HelpRequest:
    return request.model_copy(
        update={"state": ActiveState(status=status), "updated_at": now, **changes},
        deep=True,
    )


# ============================================================
# Creation & editing
# ============================================================
def validate_new_request(payload: RequestCreate, today: date) -> List[str]:
    """Return every validation message for a new request (empty if valid)."""
    errors = []

    title = (payload.title or "").strip()
    description = (payload.description or "").strip()
    location = (payload.location or "").strip()

    if not TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
        errors.append(f"Title must be {TITLE_MIN_LENGTH}-{TITLE_MAX_LENGTH} characters")
    if not DESCRIPTION_MIN_LENGTH <= len(description) <= DESCRIPTION_MAX_LENGTH:
        errors.append(
            f"Description must be {DESCRIPTION_MIN_LENGTH}-{DESCRIPTION_MAX_LENGTH} characters"
        )
    if not (payload.category or "").strip():
        errors.append("Category is required")
    if not location:
        errors.append("Location is required")
    elif len(location) > LOCATION_MAX_LENGTH:
        errors.append(f"Location cannot exceed {LOCATION_MAX_LENGTH} characters")
    if payload.expected_date is not None and payload.expected_date < today:
        errors.append("Expected date cannot be in the past")
    if payload.additional_notes and len(payload.additional_notes) > NOTES_MAX_LENGTH:
        errors.append(f"Additional notes cannot exceed {NOTES_MAX_LENGTH} characters")

    return errors


def create_request(
    payload: RequestCreate,
    requester,
    now: Optional[datetime] = None,
    request_id: Optional[str] = None,
) -> HelpRequest:
    """Build a new pending request owned by `requester`."""
    now = now or utcnow()

    errors = validate_new_request(payload, now.date())
    if errors:
        raise RequestValidationError(errors)

    return HelpRequest(
        id=request_id or str(uuid.uuid4()),
        title=payload.title.strip(),
        description=payload.description.strip(),
        category=payload.category.strip(),
        urgency=payload.urgency,
        location=payload.location.strip(),
        expected_date=payload.expected_date,
        expected_time=payload.expected_time,
        volunteers_needed=payload.volunteers_needed,
        contact_method=payload.contact_method,
        additional_notes=payload.additional_notes,
        attachments=payload.attachments,
        requester_id=requester.id,
        requester_name=getattr(requester, "name", None),
        requester_email=getattr(requester, "email", None),
        requester_phone=getattr(requester, "phone", None),
        requester_address=getattr(requester, "address", None),
        state=ActiveState(status=LifecycleStatus.pending),
        view_count=0,
        shortlist_count=0,
        created_at=now,
        updated_at=now,
    )


def ensure_can_edit(request: HelpRequest, actor, fields: Iterable[str]):
    _require_owner_or_admin(request, actor, "edit this request")

    if request.effective_status != LifecycleStatus.pending or request.is_frozen:
        disallowed = set(fields) - LOCKED_EDITABLE_FIELDS
        if disallowed:
            raise InvalidTransition(
                "Request is no longer pending; only additional notes can be changed"
            )


def update_request(
    request: HelpRequest,
    actor,
    update: RequestUpdate,
    now: Optional[datetime] = None,
) -> HelpRequest:
    now = now or utcnow()
    changes = update.model_dump(exclude_unset=True)

    ensure_can_edit(request, actor, changes.keys())

    cleared = sorted(k for k, v in changes.items() if v is None and k not in CLEARABLE_FIELDS)
    if cleared:
        raise RequestValidationError([f"{field} cannot be null" for field in cleared])

    merged = RequestCreate(
        title=changes.get("title", request.title),
        description=changes.get("description", request.description),
        category=changes.get("category", request.category),
        location=changes.get("location", request.location),
        expected_date=changes.get("expected_date", request.expected_date),
        additional_notes=changes.get("additional_notes", request.additional_notes),
    )
    errors = validate_new_request(merged, now.date())
    # An untouched expected_date may legitimately have passed since creation
    if "expected_date" not in changes:
        errors = [e for e in errors if not e.startswith("Expected date")]
    if errors:
        raise RequestValidationError(errors)

    for key in ("title", "description", "location"):
        if key in changes and changes[key] is not None:
            changes[key] = changes[key].strip()

    if "volunteers_needed" in changes and changes["volunteers_needed"] < len(request.assigned_volunteers):
        raise InvalidTransition("volunteers_needed cannot be below the number already assigned")

    return request.model_copy(update={**changes, "updated_at": now}, deep=True)


def ensure_can_delete(request: HelpRequest, actor):
    _require_owner_or_admin(request, actor, "delete this request")


# ============================================================
# Volunteer side: apply / cancel / reject
# ============================================================
def apply_for_request(
    request: HelpRequest,
    volunteer,
    message: str = "",
    now: Optional[datetime] = None,
    policy: FulfillmentPolicy = FulfillmentPolicy.single_match,
) -> HelpRequest:
    now = now or utcnow()
    volunteer_id = volunteer.id

    _require_not_frozen(request)
    if not accepts_volunteers(request, policy):
        raise InvalidTransition("Only pending requests accept applications")
    if request.is_rejected_by(volunteer_id):
        raise InvalidTransition("You have declined this request and cannot apply")
    if request.has_applied(volunteer_id) or request.assignment_for(volunteer_id):
        raise DuplicateAction("You have already applied for this request")

    interested = request.interested_volunteers + [
        InterestedVolunteer(
            volunteer_id=volunteer_id,
            name=getattr(volunteer, "name", None),
            message=message or "",
            applied_at=now,
        )
    ]
    return request.model_copy(
        update={"interested_volunteers": interested, "updated_at": now},
        deep=True,
    )


def cancel_application(
    request: HelpRequest,
    volunteer_id: str,
    now: Optional[datetime] = None,
) -> HelpRequest:
    now = now or utcnow()
    interested = [v for v in request.interested_volunteers if v.volunteer_id != volunteer_id]
    return request.model_copy(
        update={"interested_volunteers": interested, "updated_at": now},
        deep=True,
    )


def reject_request(
    request: HelpRequest,
    volunteer_id: str,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> HelpRequest:
    """A CSR volunteer turns a request away. Repeating it is a no-op."""
    now = now or utcnow()

    if request.assignment_for(volunteer_id):
        raise InvalidTransition("Assigned volunteers cannot decline the request")
    if request.is_rejected_by(volunteer_id):
        return request.model_copy(deep=True)

    interested = [v for v in request.interested_volunteers if v.volunteer_id != volunteer_id]
    rejected = request.rejected_volunteers + [
        RejectedVolunteer(volunteer_id=volunteer_id, rejected_at=now, reason=reason)
    ]
    return request.model_copy(
        update={
            "interested_volunteers": interested,
            "rejected_volunteers": rejected,
            "updated_at": now,
        },
        deep=True,
    )


def candidate_volunteers(request: HelpRequest) -> List[InterestedVolunteer]:
    """Applicants the requester may still pick from."""
    return [
        v for v in request.interested_volunteers
        if not request.is_rejected_by(v.volunteer_id)
        and request.assignment_for(v.volunteer_id) is None
    ]


# ============================================================
# Requester side: assign / complete / cancel
# ============================================================
def assign_volunteer(
    request: HelpRequest,
    actor,
    volunteer,
    now: Optional[datetime] = None,
    policy: FulfillmentPolicy = FulfillmentPolicy.single_match,
) -> HelpRequest:
    now = now or utcnow()
    volunteer_id = volunteer.id

    _require_owner(request, actor, "assign volunteers")
    _require_not_frozen(request)
    if request.available_slots <= 0:
        raise InvalidTransition("All volunteer slots are already filled")
    if not accepts_volunteers(request, policy):
        raise InvalidTransition("Only pending requests can be matched")
    if not any(v.volunteer_id == volunteer_id for v in candidate_volunteers(request)):
        raise InvalidTransition("Volunteer has not applied for this request")

    interested = [v for v in request.interested_volunteers if v.volunteer_id != volunteer_id]
    assigned = request.assigned_volunteers + [
        AssignedVolunteer(
            volunteer_id=volunteer_id,
            name=getattr(volunteer, "name", None),
            email=getattr(volunteer, "email", None),
            phone=getattr(volunteer, "phone", None),
            assigned_at=now,
        )
    ]

    return _with_status(
        request,
        LifecycleStatus.matched,
        now,
        interested_volunteers=interested,
        assigned_volunteers=assigned,
        matched_at=request.matched_at or now,
    )


def complete_request(
    request: HelpRequest,
    actor,
    volunteer_id: Optional[str],
    rating: Optional[int],
    feedback: Optional[str] = None,
    now: Optional[datetime] = None,
) -> HelpRequest:
    """
    Rate one assigned volunteer and mark the request completed.
    Each assigned volunteer can be rated exactly once.
    """
    now = now or utcnow()

    _require_owner(request, actor, "complete this request")
    _require_not_frozen(request)
    if request.effective_status not in (LifecycleStatus.matched, LifecycleStatus.completed):
        raise InvalidTransition("Only matched requests can be completed")

    errors = []
    if rating is None:
        errors.append("Rating is required")
    elif not 1 <= rating <= 5:
        errors.append("Rating must be between 1 and 5")
    if feedback and len(feedback) > FEEDBACK_MAX_LENGTH:
        errors.append(f"Feedback cannot exceed {FEEDBACK_MAX_LENGTH} characters")
    if volunteer_id is None:
        if len(request.assigned_volunteers) == 1:
            volunteer_id = request.assigned_volunteers[0].volunteer_id
        else:
            errors.append("volunteer_id is required when several volunteers are assigned")
    if errors:
        raise RequestValidationError(errors)

    assignment = request.assignment_for(volunteer_id)
    if assignment is None:
        raise NotFound("Volunteer is not assigned to this request")
    if assignment.rating is not None:
        raise DuplicateAction("This volunteer has already been rated")

    assigned = [
        v.model_copy(update={"completed_at": now, "rating": rating, "feedback": feedback})
        if v.volunteer_id == volunteer_id else v
        for v in request.assigned_volunteers
    ]
    return _with_status(request, LifecycleStatus.completed, now, assigned_volunteers=assigned)


def cancel_request(
    request: HelpRequest,
    actor,
    reason: str,
    now: Optional[datetime] = None,
) -> HelpRequest:
    now = now or utcnow()
    reason = (reason or "").strip()

    _require_owner_or_admin(request, actor, "cancel this request")
    _require_not_frozen(request)
    if request.effective_status != LifecycleStatus.pending:
        raise InvalidTransition("Only pending requests can be cancelled")
    if not reason:
        raise RequestValidationError(["Cancellation reason is required"])
    if len(reason) > CANCEL_REASON_MAX_LENGTH:
        raise RequestValidationError(
            [f"Cancellation reason cannot exceed {CANCEL_REASON_MAX_LENGTH} characters"]
        )

    return _with_status(
        request,
        LifecycleStatus.cancelled,
        now,
        cancellation_reason=reason,
        cancelled_by=actor.id,
        cancelled_at=now,
    )


# ============================================================
# Admin: freeze / unfreeze
# ============================================================
def freeze_request(request: HelpRequest, actor, now: Optional[datetime] = None) -> HelpRequest:
    now = now or utcnow()

    if not is_admin(actor):
        raise PermissionDenied("Only admins can freeze requests")
    if request.is_frozen:
        raise InvalidTransition("Request is already frozen")
    if request.effective_status not in (LifecycleStatus.pending, LifecycleStatus.matched):
        raise InvalidTransition("Only pending or matched requests can be frozen")

    return request.model_copy(
        update={
            "state": FrozenState(previous=request.effective_status, frozen_at=now),
            "updated_at": now,
        },
        deep=True,
    )


def unfreeze_request(request: HelpRequest, actor, now: Optional[datetime] = None) -> HelpRequest:
    now = now or utcnow()

    if not is_admin(actor):
        raise PermissionDenied("Only admins can unfreeze requests")
    if not isinstance(request.state, FrozenState):
        raise InvalidTransition("Request is not frozen")

    return _with_status(request, request.state.previous, now)


def toggle_freeze(request: HelpRequest, actor, now: Optional[datetime] = None) -> HelpRequest:
    if request.is_frozen:
        return unfreeze_request(request, actor, now)
    return freeze_request(request, actor, now)


# ============================================================
# Counters
# ============================================================
def record_view(request: HelpRequest) -> HelpRequest:
    return request.model_copy(update={"view_count": request.view_count + 1})


def adjust_shortlist_count(request: HelpRequest, delta: int) -> HelpRequest:
    return request.model_copy(
        update={"shortlist_count": max(request.shortlist_count + delta, 0)}
    )


# ============================================================
# Invariants
# ============================================================
def check_invariants(request: HelpRequest) -> List[str]:
    """Return a description of every broken invariant (empty when healthy)."""
    problems = []

    if request.assigned_volunteers and request.effective_status not in (
        LifecycleStatus.matched,
        LifecycleStatus.completed,
    ):
        problems.append("assigned volunteers on a request that is not matched or completed")

    rejected_ids = {v.volunteer_id for v in request.rejected_volunteers}
    if any(v.volunteer_id in rejected_ids for v in request.interested_volunteers):
        problems.append("a rejected volunteer is still listed as interested")

    applied_ids = [v.volunteer_id for v in request.interested_volunteers]
    if len(applied_ids) != len(set(applied_ids)):
        problems.append("duplicate interested volunteer entries")

    if any(v.rating is not None for v in request.assigned_volunteers) and (
        request.effective_status != LifecycleStatus.completed
    ):
        problems.append("rating recorded on a request that is not completed")

    return problems
