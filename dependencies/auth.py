from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from supabase import Client

from core.logging_config import logger
from core.supabase_client import get_supabase_client
from models.enums import UserStatus, UserType


bearer_scheme = HTTPBearer()


# ============================================================
# Current User Model
# ============================================================
class CurrentUser(BaseModel):
    id: str
    email: str
    user_type: UserType

    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    organization: Optional[str] = None
    status: UserStatus = UserStatus.active


# ============================================================
# AUTH DECODING (Supabase: validates JWT, profile from `users`)
# ============================================================
def _load_profile(client: Client, user_id: str) -> dict:
    try:
        res = client.table("users").select("*").eq("id", user_id).limit(1).execute()
        return res.data[0] if res.data else {}
    except Exception as e:
        logger.warning(f"Could not load profile for {user_id}: {e}")
        return {}


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> CurrentUser:

    token = credentials.credentials

    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired authentication token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    client: Client = get_supabase_client()
    if not client:
        raise HTTPException(500, "Supabase client not configured")

    # ---------------------------------------------------------
    # Validate JWT via Supabase GoTrue
    # ---------------------------------------------------------
    try:
        auth_resp = client.auth.get_user(token)
    except Exception:
        raise unauthorized
    if not auth_resp or not auth_resp.user or not auth_resp.user.email:
        raise unauthorized

    auth_user = auth_resp.user
    metadata = auth_user.user_metadata or {}

    # ---------------------------------------------------------
    # Profile row wins over auth metadata
    # ---------------------------------------------------------
    profile = _load_profile(client, auth_user.id)

    def field(name: str):
        return profile.get(name) or metadata.get(name)

    user_type = field("user_type")
    if user_type not in UserType.list():
        user_type = UserType.pin.value

    user_status = profile.get("status") or UserStatus.active.value
    if user_status != UserStatus.active.value:
        raise HTTPException(status_code=403, detail=f"Account is {user_status}")

    return CurrentUser(
        id=auth_user.id,
        email=auth_user.email,
        user_type=user_type,
        name=field("name"),
        phone=field("phone"),
        address=field("address"),
        organization=field("organization"),
        status=user_status,
    )
