"""
Admin API Endpoints.

Household overview, audit trail and ledger reconciliation (admin-only).
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.guards import require_admin
from backend.app.db.session import get_db
from backend.app.domain.ledger.reconciliation import reconcile_ledgers
from backend.app.models.user import User
from backend.app.models.wallet import WalletBalance
from backend.app.schemas.admin import (
    AuditLogResponse, AuditTrailResponse, ReconciliationEntryResponse, ReconciliationReport,
    UserListItem, UserListResponse,
)
from backend.app.services.audit import get_audit_trail

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("/users", response_model=UserListResponse)
async def list_users(db: AsyncSession = Depends(get_db)):
    """
    List household members with their wallet balances.

    A member who never touched the wallet is reported at zero.
    """
    query = (
        select(User, WalletBalance.current_balance)
        .outerjoin(WalletBalance, WalletBalance.user_id == User.id)
        .order_by(User.created_at, User.id)
    )
    rows = (await db.execute(query)).all()

    users = [
        UserListItem(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            role=user.role,
            is_active=user.is_active,
            wallet_balance=balance if balance is not None else Decimal("0.00"),
            created_at=user.created_at,
        )
        for user, balance in rows
    ]
    return UserListResponse(users=users, total=len(users))


@router.get("/audit-logs", response_model=AuditTrailResponse)
async def get_audit_logs(
    target_user_id: Optional[int] = Query(None, description="Filter by target user"),
    action: Optional[str] = Query(None, description="Filter by action type"),
    limit: int = Query(100, ge=1, le=500, description="Max results"),
    db: AsyncSession = Depends(get_db)
):
    """Audit trail, most recent first."""
    logs = await get_audit_trail(db, target_user_id=target_user_id, action=action, limit=limit)
    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    )


@router.get("/ledger/reconcile", response_model=ReconciliationReport)
async def reconcile(db: AsyncSession = Depends(get_db)):
    """
    Compare each stored balance with the sum of its transaction log.

    Read-only; any drift is also logged at ERROR level.
    """
    entries = await reconcile_ledgers(db)
    return ReconciliationReport(
        consistent=all(entry.is_consistent for entry in entries),
        entries=[
            ReconciliationEntryResponse(
                ledger=entry.ledger,
                owner=entry.owner,
                stored_balance=entry.stored_balance,
                recomputed_balance=entry.recomputed_balance,
                drift=entry.drift,
                is_consistent=entry.is_consistent,
            )
            for entry in entries
        ],
    )
