"""
Reserve ledger models.

The reserve is the household's single shared cash fund, managed by admins.
"""

from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, Enum, ForeignKey
from backend.app.db.session import Base
from backend.app.models.ledger_enums import TransactionType
from backend.app.models.user import utcnow

RESERVE_ID = "reserve"


class ReserveBalance(Base):
    """Singleton row (id = "reserve")."""
    __tablename__ = "reserve_balance"

    id = Column(String(20), primary_key=True, default=RESERVE_ID)
    current_balance = Column(Numeric(10, 2), default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<ReserveBalance(balance={self.current_balance})>"


class ReserveTransaction(Base):
    """Immutable reserve entry. NO updates or deletions allowed."""
    __tablename__ = "reserve_transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    type = Column(Enum(TransactionType), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(Text, nullable=False)
    performed_by_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Cross-ledger link for wallet <-> reserve transfers
    related_wallet_transaction_id = Column(
        Integer, ForeignKey("wallet_transactions.id", ondelete="SET NULL"), nullable=True
    )

    balance_after = Column(Numeric(10, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    @property
    def signed_amount(self):
        return self.amount if self.type == TransactionType.DEPOSIT else -self.amount

    def __repr__(self):
        return f"<ReserveTransaction(id={self.id}, type='{self.type.value}', amount={self.amount})>"
