"""
Wallet API Endpoints.

Members read and move money in their own wallet; admins may act on any
member's wallet through user_id / selected_user_id.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import InsufficientPermissionsError, ResourceNotFoundError
from backend.app.core.guards import get_actor
from backend.app.core.locks import wallet_key
from backend.app.db.session import get_db
from backend.app.domain.actor import Actor
from backend.app.domain.ledger.transfers import TransferService
from backend.app.domain.ledger.unit_of_work import ledger_transaction
from backend.app.domain.ledger.wallet_ledger import WalletLedger
from backend.app.models.ledger_enums import TransactionType
from backend.app.models.user import User
from backend.app.schemas.wallet import (
    WalletBalanceResponse, WalletDepositRequest, WalletOperationResponse,
    WalletTransactionListResponse, WalletTransactionResponse, WalletWithdrawRequest,
)
from backend.app.services.audit import AuditAction, log_event

router = APIRouter(prefix="/wallet", tags=["Wallet"])


async def resolve_wallet_owner(db: AsyncSession, actor: Actor, user_id: Optional[int]) -> int:
    """Members may only name themselves; admins may name any existing user."""
    target_id = user_id or actor.user_id
    if not actor.can_access_user(target_id):
        raise InsufficientPermissionsError("You can only access your own wallet")
    if target_id != actor.user_id and await db.get(User, target_id) is None:
        raise ResourceNotFoundError("User", target_id)
    return target_id


@router.get("/balance", response_model=WalletBalanceResponse)
async def get_wallet_balance(
    user_id: Optional[int] = Query(None, description="Wallet owner (admin only)"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """Current balance; a wallet seen for the first time starts at zero."""
    target_id = await resolve_wallet_owner(db, actor, user_id)
    balance = await WalletLedger(db).get_balance(target_id)
    return WalletBalanceResponse.from_balance(balance)


@router.get("/transactions", response_model=WalletTransactionListResponse)
async def list_wallet_transactions(
    user_id: Optional[int] = Query(None, description="Wallet owner (admin only)"),
    transaction_type: Optional[TransactionType] = Query(None, alias="type"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """Wallet history, newest first."""
    target_id = await resolve_wallet_owner(db, actor, user_id)
    transactions = await WalletLedger(db).list_transactions(
        target_id, transaction_type, start_date, end_date, limit
    )
    return WalletTransactionListResponse(
        transactions=[WalletTransactionResponse.model_validate(t) for t in transactions],
        total=len(transactions),
    )


@router.post("/deposit", response_model=WalletOperationResponse, status_code=status.HTTP_201_CREATED)
async def deposit_to_wallet(
    request: WalletDepositRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Add money to a wallet.

    Source "Added from Reserve" (admin only) moves the money out of the
    reserve and fails with 409 if the reserve cannot cover it.
    """
    result = await TransferService(db).add_to_wallet(
        actor,
        amount=request.amount,
        on_date=request.date,
        source=request.source,
        note=request.description,
        selected_user_id=request.selected_user_id,
    )
    return WalletOperationResponse(
        transaction=WalletTransactionResponse.model_validate(result.wallet_transaction),
        new_balance=result.wallet_balance,
        reserve_transaction_id=result.reserve_transaction.id if result.reserve_transaction else None,
        reserve_balance=result.reserve_balance,
    )


@router.post("/withdraw", response_model=WalletOperationResponse, status_code=status.HTTP_201_CREATED)
async def withdraw_from_wallet(
    request: WalletWithdrawRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """Take money out of your own wallet. The balance is allowed to go negative."""
    async with ledger_transaction(db, wallet_key(actor.user_id)):
        transaction = await WalletLedger(db).withdraw(
            actor.user_id, request.amount, request.description, request.date
        )
        await log_event(
            db, AuditAction.WALLET_WITHDRAWAL, actor_id=actor.user_id, target_user_id=actor.user_id,
            metadata={"amount": request.amount, "transaction_id": transaction.id},
        )
    return WalletOperationResponse(
        transaction=WalletTransactionResponse.model_validate(transaction),
        new_balance=transaction.balance_after,
    )
