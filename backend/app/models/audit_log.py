"""
Audit Log Database Model.

Tracks ledger mutations and admin actions for household accountability.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from backend.app.db.session import Base
from backend.app.models.user import utcnow


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - WALLET_DEPOSIT / WALLET_WITHDRAWAL / WALLET_REVERSAL
    - RESERVE_DEPOSIT / RESERVE_TRANSFER_FROM_WALLET / RESERVE_TRANSFER_TO_WALLET
    - EXPENSE_CREATED / EXPENSE_UPDATED / EXPENSE_DELETED
    - CATEGORY_CREATED / CATEGORY_RENAMED / CATEGORY_DELETED

    Rows are written inside the same transaction as the mutation they describe.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_id = Column(Integer, index=True, nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # Whose wallet/record was affected
    target_user_id = Column(Integer, index=True, nullable=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_id}, target={self.target_user_id})>"
