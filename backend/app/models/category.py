"""
Category database model.
"""

from sqlalchemy import Column, Integer, String, DateTime
from backend.app.db.session import Base
from backend.app.models.user import utcnow


class Category(Base):
    """
    Expense category, managed by admins.

    Expenses reference categories by lowercased name, not by id, so a rename
    must reassign the matching expenses in the same transaction.
    """
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False)
    icon = Column(String(50), default="tag", nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}')>"
