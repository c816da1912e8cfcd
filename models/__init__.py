# -------------------------
# Request Models
# -------------------------
from .request import (
    Attachment,
    InterestedVolunteer,
    RejectedVolunteer,
    AssignedVolunteer,
    ActiveState,
    FrozenState,
    HelpRequest,
    RequestCreate,
    RequestUpdate,
)

# -------------------------
# Category Models
# -------------------------
from .category import (
    LocalizedText,
    Category,
    CategoryCreate,
    CategoryUpdate,
    default_categories,
)

# -------------------------
# User Models
# -------------------------
from .user import (
    User,
    UserCreate,
    UserUpdate,
    UserStatusUpdate,
    BatchUserAction,
    VolunteerRef,
)

# -------------------------
# Shortlist Models
# -------------------------
from .shortlist import ShortlistEntry

# -------------------------
# Enums
# -------------------------
from .enums import (
    UserType,
    UserStatus,
    Urgency,
    LifecycleStatus,
    RequestStatus,
    ContactMethod,
    TimeSlot,
    CategoryStatus,
    ReportType,
    BatchAction,
)

__all__ = [
    # requests
    "Attachment",
    "InterestedVolunteer",
    "RejectedVolunteer",
    "AssignedVolunteer",
    "ActiveState",
    "FrozenState",
    "HelpRequest",
    "RequestCreate",
    "RequestUpdate",

    # categories
    "LocalizedText",
    "Category",
    "CategoryCreate",
    "CategoryUpdate",
    "default_categories",

    # users
    "User",
    "UserCreate",
    "UserUpdate",
    "UserStatusUpdate",
    "BatchUserAction",
    "VolunteerRef",

    # shortlists
    "ShortlistEntry",

    # enums
    "UserType",
    "UserStatus",
    "Urgency",
    "LifecycleStatus",
    "RequestStatus",
    "ContactMethod",
    "TimeSlot",
    "CategoryStatus",
    "ReportType",
    "BatchAction",
]
