"""
Wallet ledger models.

A wallet is the cash a household member holds outside formal expense
records. The transaction log is append-only; the balance row is its
materialized projection.
"""

from sqlalchemy import Column, Integer, Text, Numeric, Date, DateTime, Enum, ForeignKey
from backend.app.db.session import Base
from backend.app.models.ledger_enums import TransactionType
from backend.app.models.user import utcnow


class WalletBalance(Base):
    """
    One row per user. current_balance may go negative (cash expenses are
    never blocked) and always equals the signed sum of the user's
    wallet transactions.
    """
    __tablename__ = "wallet_balances"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    current_balance = Column(Numeric(10, 2), default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<WalletBalance(user_id={self.user_id}, balance={self.current_balance})>"


class WalletTransaction(Base):
    """
    Immutable wallet entry. NO updates or deletions allowed.

    balance_after is the snapshot taken at write time; it is never
    recomputed retroactively.
    """
    __tablename__ = "wallet_transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(Enum(TransactionType), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)  # always positive
    description = Column(Text, nullable=False)

    # Back-reference only; the expense does not own its ledger entries
    related_expense_id = Column(Integer, ForeignKey("expenses.id", ondelete="SET NULL"), nullable=True, index=True)

    balance_after = Column(Numeric(10, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)  # business date
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    @property
    def signed_amount(self):
        return self.amount if self.type == TransactionType.DEPOSIT else -self.amount

    def __repr__(self):
        return f"<WalletTransaction(id={self.id}, type='{self.type.value}', amount={self.amount})>"
