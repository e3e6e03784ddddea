"""
Audit logging service for ledger mutations and admin actions.

log_event() only adds and flushes: the row commits or rolls back together
with the mutation it describes.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from backend.app.models.audit_log import AuditLog


class AuditAction:
    """Standardized audit action constants."""

    # Wallet ledger
    WALLET_DEPOSIT = "WALLET_DEPOSIT"
    WALLET_WITHDRAWAL = "WALLET_WITHDRAWAL"
    WALLET_REVERSAL = "WALLET_REVERSAL"

    # Reserve ledger
    RESERVE_DEPOSIT = "RESERVE_DEPOSIT"
    RESERVE_TRANSFER_FROM_WALLET = "RESERVE_TRANSFER_FROM_WALLET"
    RESERVE_TRANSFER_TO_WALLET = "RESERVE_TRANSFER_TO_WALLET"

    # Expenses
    EXPENSE_CREATED = "EXPENSE_CREATED"
    EXPENSE_UPDATED = "EXPENSE_UPDATED"
    EXPENSE_DELETED = "EXPENSE_DELETED"

    # Categories
    CATEGORY_CREATED = "CATEGORY_CREATED"
    CATEGORY_RENAMED = "CATEGORY_RENAMED"
    CATEGORY_UPDATED = "CATEGORY_UPDATED"
    CATEGORY_DELETED = "CATEGORY_DELETED"


def _jsonable(metadata: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    # Decimals and dates are stored as strings in the JSON column
    if metadata is None:
        return None
    return {
        key: value if value is None or isinstance(value, (int, float, bool, str)) else str(value)
        for key, value in metadata.items()
    }


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    target_user_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Record an audit event in the current transaction.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action
        target_user_id: ID of user whose wallet/record is affected
        metadata: Additional context as JSON

    Returns:
        Flushed (not yet committed) AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        action=action,
        target_user_id=target_user_id,
        meta_data=_jsonable(metadata),
    )

    db.add(audit_log)
    await db.flush()

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    target_user_id: Optional[int] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering.

    Returns:
        List of AuditLog instances, most recent first
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if target_user_id:
        query = query.where(AuditLog.target_user_id == target_user_id)

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())
