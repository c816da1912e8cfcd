# models/request.py

from typing import Annotated, List, Literal, Optional, Union
from datetime import date, datetime
from pydantic import BaseModel, Field

from models.enums import (
    ContactMethod,
    LifecycleStatus,
    RequestStatus,
    TimeSlot,
    Urgency,
)


# ============================================================
# Nested records
# ============================================================
class Attachment(BaseModel):
    """File metadata only; the bytes live wherever the upload went."""
    name: str
    url: Optional[str] = None
    mimetype: Optional[str] = None
    size: Optional[int] = None
    uploaded_at: Optional[datetime] = None


class InterestedVolunteer(BaseModel):
    volunteer_id: str
    name: Optional[str] = None
    message: str = ""
    applied_at: datetime


class RejectedVolunteer(BaseModel):
    volunteer_id: str
    rejected_at: datetime
    reason: Optional[str] = None


class AssignedVolunteer(BaseModel):
    volunteer_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    assigned_at: datetime
    completed_at: Optional[datetime] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    feedback: Optional[str] = None


# ============================================================
# Status state
# ============================================================
class ActiveState(BaseModel):
    kind: Literal["active"] = "active"
    status: LifecycleStatus = LifecycleStatus.pending


class FrozenState(BaseModel):
    """A paused request. `previous` is restored on unfreeze."""
    kind: Literal["frozen"] = "frozen"
    previous: LifecycleStatus
    frozen_at: datetime


RequestState = Annotated[Union[ActiveState, FrozenState], Field(discriminator="kind")]


# ============================================================
# Request entity
# ============================================================
class HelpRequest(BaseModel):
    id: str
    title: str
    description: str
    category: str
    urgency: Urgency = Urgency.medium
    location: str
    expected_date: Optional[date] = None
    expected_time: TimeSlot = TimeSlot.any
    volunteers_needed: int = Field(1, ge=1, le=10)
    contact_method: ContactMethod = ContactMethod.both
    additional_notes: Optional[str] = None
    attachments: List[Attachment] = Field(default_factory=list)

    # Snapshot of the creating user
    requester_id: str
    requester_name: Optional[str] = None
    requester_email: Optional[str] = None
    requester_phone: Optional[str] = None
    requester_address: Optional[str] = None

    state: RequestState = Field(default_factory=ActiveState)

    interested_volunteers: List[InterestedVolunteer] = Field(default_factory=list)
    rejected_volunteers: List[RejectedVolunteer] = Field(default_factory=list)
    assigned_volunteers: List[AssignedVolunteer] = Field(default_factory=list)

    view_count: int = 0
    shortlist_count: int = 0

    created_at: datetime
    updated_at: Optional[datetime] = None
    matched_at: Optional[datetime] = None

    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None

    # --------------------------------------------------------
    # Derived status views
    # --------------------------------------------------------
    @property
    def is_frozen(self) -> bool:
        return isinstance(self.state, FrozenState)

    @property
    def status(self) -> str:
        if isinstance(self.state, FrozenState):
            return RequestStatus.frozen.value
        return self.state.status.value

    @property
    def effective_status(self) -> LifecycleStatus:
        """Lifecycle status, looking through a freeze."""
        if isinstance(self.state, FrozenState):
            return self.state.previous
        return self.state.status

    @property
    def original_status(self) -> Optional[str]:
        if isinstance(self.state, FrozenState):
            return self.state.previous.value
        return None

    @property
    def frozen_at(self) -> Optional[datetime]:
        if isinstance(self.state, FrozenState):
            return self.state.frozen_at
        return None

    @property
    def available_slots(self) -> int:
        return max(self.volunteers_needed - len(self.assigned_volunteers), 0)

    # --------------------------------------------------------
    # Volunteer lookups
    # --------------------------------------------------------
    def has_applied(self, volunteer_id: str) -> bool:
        return any(v.volunteer_id == volunteer_id for v in self.interested_volunteers)

    def is_rejected_by(self, volunteer_id: str) -> bool:
        return any(v.volunteer_id == volunteer_id for v in self.rejected_volunteers)

    def assignment_for(self, volunteer_id: str) -> Optional[AssignedVolunteer]:
        return next(
            (v for v in self.assigned_volunteers if v.volunteer_id == volunteer_id),
            None,
        )

    # --------------------------------------------------------
    # Flat row <-> entity
    # --------------------------------------------------------
    def to_record(self) -> dict:
        """Flat JSON-safe row used for storage and API responses."""
        row = self.model_dump(mode="json", exclude={"state"})
        row["status"] = self.status
        row["original_status"] = self.original_status
        row["frozen_at"] = self.frozen_at.isoformat() if self.frozen_at else None
        return row

    @classmethod
    def from_record(cls, row: dict) -> "HelpRequest":
        data = dict(row)
        status = data.pop("status", None) or RequestStatus.pending.value
        original_status = data.pop("original_status", None)
        frozen_at = data.pop("frozen_at", None)
        data.pop("state", None)

        if status == RequestStatus.frozen.value:
            data["state"] = FrozenState(
                previous=original_status or LifecycleStatus.pending,
                frozen_at=frozen_at or data.get("updated_at") or data["created_at"],
            )
        else:
            data["state"] = ActiveState(status=status)

        return cls.model_validate(data)


# ============================================================
# Payloads
# ============================================================
class RequestCreate(BaseModel):
    """
    Body for POST /requests. Length and date rules are checked by
    services.workflow so the same messages apply to API and client callers.
    """
    title: str
    description: str
    category: str = ""
    urgency: Urgency = Urgency.medium
    location: str = ""
    expected_date: Optional[date] = None
    expected_time: TimeSlot = TimeSlot.any
    volunteers_needed: int = Field(1, ge=1, le=10)
    contact_method: ContactMethod = ContactMethod.both
    additional_notes: Optional[str] = None
    attachments: List[Attachment] = Field(default_factory=list)


class RequestUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    urgency: Optional[Urgency] = None
    location: Optional[str] = None
    expected_date: Optional[date] = None
    expected_time: Optional[TimeSlot] = None
    volunteers_needed: Optional[int] = Field(None, ge=1, le=10)
    contact_method: Optional[ContactMethod] = None
    additional_notes: Optional[str] = None


class ApplyPayload(BaseModel):
    message: str = Field("", max_length=300)


class RejectPayload(BaseModel):
    reason: Optional[str] = Field(None, max_length=200)


class CompletePayload(BaseModel):
    volunteer_id: Optional[str] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None


class CancelPayload(BaseModel):
    reason: str = ""
