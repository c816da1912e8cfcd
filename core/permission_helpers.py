# core/permission_helpers.py

from fastapi import Depends, HTTPException

from dependencies.auth import get_current_user, CurrentUser
from core.permissions import ROLE_PERMISSIONS
from models.enums import ADMIN_USER_TYPES


# -----------------------------------------------------
# Effective permissions for a user type
# -----------------------------------------------------
def get_effective_permissions(user: CurrentUser) -> set:
    return set(ROLE_PERMISSIONS.get(str(user.user_type), []))


def has_permission(user: CurrentUser, permission: str) -> bool:
    return permission in get_effective_permissions(user)


# -----------------------------------------------------
# FastAPI dependency wrapper
# -----------------------------------------------------
def requires_permission(permission: str):
    """
    Usage:
        @router.post("/", dependencies=[Depends(requires_permission("categories:write"))])
    """

    def dependency(current_user: CurrentUser = Depends(get_current_user)):
        if not has_permission(current_user, permission):
            raise HTTPException(
                status_code=403,
                detail=f"Insufficient permissions: '{permission}' required"
            )
        return current_user

    return dependency


def is_admin(user) -> bool:
    """System admin or platform manager. Accepts any object with a user_type."""
    return str(getattr(user, "user_type", "")) in ADMIN_USER_TYPES
