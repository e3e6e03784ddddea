"""
Wallet API Schema Definitions.

Amounts are Decimals with two places; they serialize as strings.
"""

from pydantic import BaseModel, Field
from datetime import date as date_type, datetime
from decimal import Decimal
from typing import Optional, List
from backend.app.models.ledger_enums import TransactionType, WalletDepositSource


class WalletDepositRequest(BaseModel):
    """
    Schema for POST /wallet/deposit.

    Without a source the description is required. With a source it is an
    optional note (required for "Others").
    """
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, description="Amount to add")
    description: Optional[str] = Field(None, max_length=500, description="Description or note")
    date: date_type = Field(..., description="Business date of the deposit")
    source: Optional[WalletDepositSource] = Field(None, description="Where the money came from")
    selected_user_id: Optional[int] = Field(None, description="Target wallet owner (admin only)")


class WalletWithdrawRequest(BaseModel):
    """Schema for POST /wallet/withdraw. The balance may go negative."""
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    description: str = Field(..., min_length=1, max_length=500)
    date: date_type


class WalletTransactionResponse(BaseModel):
    id: int
    user_id: int
    type: TransactionType
    amount: Decimal
    description: str
    related_expense_id: Optional[int] = None
    balance_after: Decimal
    date: date_type
    created_at: datetime

    class Config:
        from_attributes = True


class WalletTransactionListResponse(BaseModel):
    transactions: List[WalletTransactionResponse]
    total: int


class WalletBalanceResponse(BaseModel):
    user_id: int
    current_balance: Decimal
    is_negative: bool
    updated_at: datetime

    @classmethod
    def from_balance(cls, balance) -> "WalletBalanceResponse":
        return cls(
            user_id=balance.user_id,
            current_balance=balance.current_balance,
            is_negative=balance.current_balance < 0,
            updated_at=balance.updated_at,
        )


class WalletOperationResponse(BaseModel):
    """Result of a wallet deposit or withdrawal."""
    transaction: WalletTransactionResponse
    new_balance: Decimal
    reserve_transaction_id: Optional[int] = None
    reserve_balance: Optional[Decimal] = None
