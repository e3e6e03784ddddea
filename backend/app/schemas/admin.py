"""
Admin API Schema Definitions.

Pydantic schemas for admin endpoints.
"""

from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from backend.app.models.enums import UserRole


class UserListItem(BaseModel):
    """Schema for user in list response, with the wallet balance."""
    id: int
    email: str
    display_name: str
    role: UserRole
    is_active: bool
    wallet_balance: Decimal
    created_at: datetime


class UserListResponse(BaseModel):
    """Schema for list users response."""
    users: List[UserListItem]
    total: int


class AuditLogResponse(BaseModel):
    """Schema for audit log entry."""
    id: int
    actor_id: Optional[int]
    action: str
    target_user_id: Optional[int]
    meta_data: Optional[dict]
    timestamp: datetime

    class Config:
        from_attributes = True


class AuditTrailResponse(BaseModel):
    """Schema for audit trail list."""
    logs: List[AuditLogResponse]
    total: int


class ReconciliationEntryResponse(BaseModel):
    ledger: str
    owner: str
    stored_balance: Decimal
    recomputed_balance: Decimal
    drift: Decimal
    is_consistent: bool


class ReconciliationReport(BaseModel):
    consistent: bool
    entries: List[ReconciliationEntryResponse]
