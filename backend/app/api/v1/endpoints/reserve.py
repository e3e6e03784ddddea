"""
Reserve API Endpoints (admin only).
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.guards import get_actor, require_admin
from backend.app.db.session import get_db
from backend.app.domain.actor import Actor
from backend.app.domain.ledger.reserve_ledger import ReserveLedger
from backend.app.domain.ledger.transfers import TransferService
from backend.app.models.ledger_enums import TransactionType
from backend.app.schemas.reserve import (
    ReserveBalanceResponse, ReserveDepositRequest, ReserveOperationResponse,
    ReserveTransactionListResponse, ReserveTransactionResponse,
)

router = APIRouter(prefix="/reserve", tags=["Reserve"], dependencies=[Depends(require_admin)])


@router.get("/balance", response_model=ReserveBalanceResponse)
async def get_reserve_balance(db: AsyncSession = Depends(get_db)):
    balance = await ReserveLedger(db).get_balance()
    return ReserveBalanceResponse.model_validate(balance)


@router.get("/transactions", response_model=ReserveTransactionListResponse)
async def list_reserve_transactions(
    transaction_type: Optional[TransactionType] = Query(None, alias="type"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: AsyncSession = Depends(get_db)
):
    """Reserve history, newest first."""
    transactions = await ReserveLedger(db).list_transactions(transaction_type, start_date, end_date, limit)
    return ReserveTransactionListResponse(
        transactions=[ReserveTransactionResponse.model_validate(t) for t in transactions],
        total=len(transactions),
    )


@router.post("/deposit", response_model=ReserveOperationResponse, status_code=status.HTTP_201_CREATED)
async def deposit_to_reserve(
    request: ReserveDepositRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Add money to the reserve.

    Source "Added from Wallet" debits a member's wallet and returns 409 when
    that wallet holds less than the amount.
    """
    result = await TransferService(db).add_to_reserve(
        actor,
        amount=request.amount,
        on_date=request.date,
        source=request.source,
        note=request.description,
        selected_user_id=request.selected_user_id,
    )
    return ReserveOperationResponse(
        transaction=ReserveTransactionResponse.model_validate(result.reserve_transaction),
        new_balance=result.reserve_balance,
        wallet_transaction_id=result.wallet_transaction.id if result.wallet_transaction else None,
        wallet_balance=result.wallet_balance,
    )
