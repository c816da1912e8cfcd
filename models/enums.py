from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# USER TYPE
# -----------------------------------------------------
class UserType(BaseStrEnum):
    """Account role."""

    pin = "pin"                              # Person-In-Need (requester)
    csr = "csr"                              # CSR volunteer
    system_admin = "system_admin"
    platform_manager = "platform_manager"


ADMIN_USER_TYPES = (UserType.system_admin.value, UserType.platform_manager.value)


# -----------------------------------------------------
# USER STATUS
# -----------------------------------------------------
class UserStatus(BaseStrEnum):
    active = "active"
    suspended = "suspended"
    deleted = "deleted"


# -----------------------------------------------------
# REQUEST URGENCY
# -----------------------------------------------------
class Urgency(BaseStrEnum):
    """Indicates priority of a help request."""

    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


# -----------------------------------------------------
# REQUEST STATUS
# -----------------------------------------------------
class LifecycleStatus(BaseStrEnum):
    """Statuses a request can hold on its own (everything except frozen)."""

    pending = "pending"
    matched = "matched"
    completed = "completed"
    cancelled = "cancelled"


class RequestStatus(BaseStrEnum):
    """Flat status as exposed on the wire."""

    pending = "pending"
    matched = "matched"
    completed = "completed"
    cancelled = "cancelled"
    frozen = "frozen"


ACTIVE_STATUSES = (RequestStatus.pending.value, RequestStatus.matched.value)


# -----------------------------------------------------
# CONTACT METHOD
# -----------------------------------------------------
class ContactMethod(BaseStrEnum):
    phone = "phone"
    email = "email"
    both = "both"


# -----------------------------------------------------
# EXPECTED TIME SLOT
# -----------------------------------------------------
class TimeSlot(BaseStrEnum):
    any = ""
    morning = "morning"
    afternoon = "afternoon"
    evening = "evening"


# -----------------------------------------------------
# CATEGORY STATUS
# -----------------------------------------------------
class CategoryStatus(BaseStrEnum):
    active = "active"
    inactive = "inactive"


# -----------------------------------------------------
# REPORT TYPE
# -----------------------------------------------------
class ReportType(BaseStrEnum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


# -----------------------------------------------------
# ADMIN BATCH ACTION
# -----------------------------------------------------
class BatchAction(BaseStrEnum):
    suspend = "suspend"
    activate = "activate"
    delete = "delete"
