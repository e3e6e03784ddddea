"""
Expense database model.
"""

from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, Enum, ForeignKey, Index
from backend.app.db.session import Base
from backend.app.models.expense_enums import PaymentMethod
from backend.app.models.user import utcnow


class Expense(Base):
    """
    Expense model.

    When payment_method is CASH, the net effect of the wallet transactions
    linked through related_expense_id is a withdrawal of exactly `amount`
    from the owner's wallet. Other payment methods have no ledger effect.
    """
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(Numeric(10, 2), nullable=False)
    category = Column(String(50), nullable=False, index=True)  # lowercased category name
    description = Column(Text, nullable=False)
    date = Column(Date, nullable=False, index=True)
    payment_method = Column(Enum(PaymentMethod), default=PaymentMethod.UPI, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_expenses_user_date", "user_id", "date"),
    )

    @property
    def is_cash(self) -> bool:
        return self.payment_method == PaymentMethod.CASH

    def __repr__(self):
        return f"<Expense(id={self.id}, amount={self.amount}, method='{self.payment_method.value}')>"
