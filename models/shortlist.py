# models/shortlist.py

from datetime import datetime
from pydantic import BaseModel, Field


class ShortlistEntry(BaseModel):
    """A CSR user's saved-for-later request, kept client-side only."""
    id: str
    user_id: str
    request_id: str
    request: dict = Field(default_factory=dict)   # snapshot at save time
    shortlisted_at: datetime
