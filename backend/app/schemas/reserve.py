"""
Reserve API Schema Definitions (admin only).
"""

from pydantic import BaseModel, Field
from datetime import date as date_type, datetime
from decimal import Decimal
from typing import Optional, List
from backend.app.models.ledger_enums import ReserveDepositSource, TransactionType


class ReserveDepositRequest(BaseModel):
    """
    Schema for POST /reserve/deposit.

    "Added from Wallet" debits selected_user_id's wallet (the admin's own
    when omitted) and fails if that wallet cannot cover the amount.
    """
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    description: Optional[str] = Field(None, max_length=500, description="Optional note, required for Others")
    date: date_type
    source: ReserveDepositSource
    selected_user_id: Optional[int] = None


class ReserveTransactionResponse(BaseModel):
    id: int
    type: TransactionType
    amount: Decimal
    description: str
    performed_by_user_id: int
    related_wallet_transaction_id: Optional[int] = None
    balance_after: Decimal
    date: date_type
    created_at: datetime

    class Config:
        from_attributes = True


class ReserveTransactionListResponse(BaseModel):
    transactions: List[ReserveTransactionResponse]
    total: int


class ReserveBalanceResponse(BaseModel):
    current_balance: Decimal
    updated_at: datetime

    class Config:
        from_attributes = True


class ReserveOperationResponse(BaseModel):
    transaction: ReserveTransactionResponse
    new_balance: Decimal
    wallet_transaction_id: Optional[int] = None
    wallet_balance: Optional[Decimal] = None
