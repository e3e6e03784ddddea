"""
Expense API Schema Definitions.
"""

from pydantic import BaseModel, Field
from datetime import date as date_type, datetime
from decimal import Decimal
from typing import Optional, List
from backend.app.models.expense_enums import PaymentMethod


class ExpenseCreate(BaseModel):
    """
    Schema for POST /expenses.

    A CASH expense withdraws its amount from the owner's wallet.
    """
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    category: str = Field(..., min_length=1, max_length=50, description="Existing category name")
    description: str = Field(..., min_length=1)
    date: date_type
    payment_method: PaymentMethod = PaymentMethod.UPI
    selected_user_id: Optional[int] = Field(None, description="Record on behalf of another member (admin only)")


class ExpenseUpdate(BaseModel):
    """Schema for PATCH /expenses/{id}. Omitted fields stay unchanged."""
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, min_length=1)
    date: Optional[date_type] = None
    payment_method: Optional[PaymentMethod] = None


class ExpenseOwner(BaseModel):
    id: int
    email: str
    display_name: str

    class Config:
        from_attributes = True


class ExpenseResponse(BaseModel):
    id: int
    user_id: int
    amount: Decimal
    category: str
    description: str
    date: date_type
    payment_method: PaymentMethod
    created_at: datetime
    updated_at: datetime
    user: Optional[ExpenseOwner] = None

    class Config:
        from_attributes = True


class ExpenseListResponse(BaseModel):
    expenses: List[ExpenseResponse]
    total: int
