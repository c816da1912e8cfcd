# models/user.py

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

from models.enums import BatchAction, UserStatus, UserType


# ===============================================================
# USER PROFILE (row in the `users` table)
# ===============================================================
class User(BaseModel):
    id: str
    name: str
    email: str
    user_type: UserType
    phone: Optional[str] = None
    address: Optional[str] = None

    # CSR only
    organization: Optional[str] = None
    skills: List[str] = Field(default_factory=list)

    status: UserStatus = UserStatus.active
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class UserCreate(BaseModel):
    """Used when a system admin creates a profile."""
    name: str = Field(..., min_length=1)
    email: EmailStr
    user_type: UserType
    phone: Optional[str] = None
    address: Optional[str] = None
    organization: Optional[str] = None
    skills: List[str] = Field(default_factory=list)


class UserUpdate(BaseModel):
    """Partial update (system admin only)."""
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    user_type: Optional[UserType] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    organization: Optional[str] = None
    skills: Optional[List[str]] = None
    status: Optional[UserStatus] = None


class UserStatusUpdate(BaseModel):
    status: UserStatus
    reason: Optional[str] = None


class BatchUserAction(BaseModel):
    action: BatchAction
    user_ids: List[str] = Field(..., min_length=1)


class VolunteerRef(BaseModel):
    """The bits of a CSR profile copied onto an assignment."""
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
