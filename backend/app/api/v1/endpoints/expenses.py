"""
Expense API Endpoints.

Every write goes through the ExpenseLedgerBinder so a CASH expense and
its wallet entries change together.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import InsufficientPermissionsError, ResourceNotFoundError
from backend.app.core.guards import get_actor
from backend.app.db.session import get_db
from backend.app.domain.actor import Actor
from backend.app.domain.ledger.binder import ExpenseLedgerBinder
from backend.app.models.expense import Expense
from backend.app.models.user import User
from backend.app.schemas.expense import (
    ExpenseCreate, ExpenseListResponse, ExpenseOwner, ExpenseResponse, ExpenseUpdate,
)
from backend.app.services.categories import CategoryService

router = APIRouter(prefix="/expenses", tags=["Expenses"])


async def get_expense_or_404(db: AsyncSession, expense_id: int, actor: Actor) -> Expense:
    expense = await db.get(Expense, expense_id)
    if expense is None:
        raise ResourceNotFoundError("Expense", expense_id)
    if not actor.can_access_user(expense.user_id):
        raise InsufficientPermissionsError("You can only modify your own expenses")
    return expense


@router.get("", response_model=ExpenseListResponse)
async def list_expenses(
    category: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user_id: Optional[int] = Query(None, description="Filter by member (admin only)"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    List expenses, newest first.

    Admins see the whole household with each expense's owner attached;
    members see only their own.
    """
    query = select(Expense, User).join(User, Expense.user_id == User.id)
    if not actor.is_admin:
        if user_id is not None and user_id != actor.user_id:
            raise InsufficientPermissionsError("You can only view your own expenses")
        query = query.where(Expense.user_id == actor.user_id)
    elif user_id is not None:
        query = query.where(Expense.user_id == user_id)

    if category:
        query = query.where(Expense.category == category.lower())
    if start_date:
        query = query.where(Expense.date >= start_date)
    if end_date:
        query = query.where(Expense.date <= end_date)

    query = query.order_by(desc(Expense.date), desc(Expense.created_at), desc(Expense.id))
    rows = (await db.execute(query)).all()

    expenses = []
    for expense, owner in rows:
        item = ExpenseResponse.model_validate(expense)
        if actor.is_admin:
            item.user = ExpenseOwner.model_validate(owner)
        expenses.append(item)
    return ExpenseListResponse(expenses=expenses, total=len(expenses))


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    request: ExpenseCreate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """Record an expense. CASH expenses withdraw the amount from the owner's wallet."""
    owner_id = request.selected_user_id or actor.user_id
    if not actor.can_access_user(owner_id):
        raise InsufficientPermissionsError("Only admins can record expenses for another member")
    if owner_id != actor.user_id and await db.get(User, owner_id) is None:
        raise ResourceNotFoundError("User", owner_id)

    category = await CategoryService.resolve_expense_category(db, request.category)
    expense = await ExpenseLedgerBinder(db).create_expense(
        actor,
        user_id=owner_id,
        amount=request.amount,
        category=category,
        description=request.description,
        on_date=request.date,
        payment_method=request.payment_method,
    )
    return ExpenseResponse.model_validate(expense)


@router.patch("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: int,
    request: ExpenseUpdate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Update an expense.

    Switching to or from CASH, or changing a CASH amount, adjusts the
    wallet with linked entries; earlier entries are never edited.
    """
    expense = await get_expense_or_404(db, expense_id, actor)
    changes = request.model_dump(exclude_unset=True)
    if changes.get("category"):
        changes["category"] = await CategoryService.resolve_expense_category(db, changes["category"])

    expense = await ExpenseLedgerBinder(db).update_expense(actor, expense, changes)
    return ExpenseResponse.model_validate(expense)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: int,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """Delete an expense, first reversing its wallet effect if it was paid in cash."""
    expense = await get_expense_or_404(db, expense_id, actor)
    await ExpenseLedgerBinder(db).delete_expense(actor, expense)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
