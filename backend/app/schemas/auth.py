"""
Authentication Pydantic schemas.

Identity comes from an externally issued JWT; this service only reports who
the caller is.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from backend.app.models.enums import UserRole


class UserResponse(BaseModel):
    """
    Schema for user information response.

    Used by GET /auth/me endpoint.
    """
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: str
    role: UserRole
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
