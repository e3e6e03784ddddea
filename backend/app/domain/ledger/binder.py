"""
Expense-Ledger Binder.

Keeps a CASH expense and its wallet in step. Every expense create, update
and delete runs in one ledger unit with the wallet entries it implies, so a
failure on either side leaves both untouched.

The transition table lives in plan_transition(), a pure function of the
old and new expense state.
"""

import enum
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ResourceNotFoundError, ValidationFailedError
from backend.app.core.locks import wallet_key
from backend.app.domain.actor import Actor
from backend.app.domain.ledger.store import storage_errors
from backend.app.domain.ledger.unit_of_work import ledger_transaction
from backend.app.domain.ledger.values import clean_text, parse_business_date, require_positive, to_money, today
from backend.app.domain.ledger.wallet_ledger import WalletLedger
from backend.app.models.expense import Expense
from backend.app.models.expense_enums import PaymentMethod
from backend.app.services.audit import AuditAction, log_event

logger = logging.getLogger("household_ledger.ledger.binder")

UPDATABLE_FIELDS = ("amount", "category", "description", "date", "payment_method")


@dataclass(frozen=True)
class ExpenseState:
    payment_method: PaymentMethod
    amount: Decimal

    @classmethod
    def of(cls, expense: Expense) -> "ExpenseState":
        return cls(payment_method=PaymentMethod(expense.payment_method), amount=to_money(expense.amount))

    @property
    def is_cash(self) -> bool:
        return self.payment_method == PaymentMethod.CASH


class LedgerActionKind(str, enum.Enum):
    NONE = "none"
    WITHDRAW = "withdraw"
    DEPOSIT = "deposit"
    REVERSE = "reverse"


@dataclass(frozen=True)
class LedgerAction:
    kind: LedgerActionKind
    amount: Optional[Decimal] = None
    adjustment: bool = False  # CASH -> CASH amount change
    use_expense_date: bool = False


NO_ACTION = LedgerAction(LedgerActionKind.NONE)


def plan_transition(old: Optional[ExpenseState], new: Optional[ExpenseState]) -> LedgerAction:
    """
    Wallet action implied by an expense moving from old to new.

    old is None on create, new is None on delete.
    """
    if old is None and new is None:
        return NO_ACTION

    if old is None:
        if new.is_cash:
            return LedgerAction(LedgerActionKind.WITHDRAW, new.amount, use_expense_date=True)
        return NO_ACTION

    if new is None:
        return LedgerAction(LedgerActionKind.REVERSE) if old.is_cash else NO_ACTION

    if old.is_cash and not new.is_cash:
        return LedgerAction(LedgerActionKind.REVERSE)
    if not old.is_cash and new.is_cash:
        return LedgerAction(LedgerActionKind.WITHDRAW, new.amount)
    if old.is_cash and new.is_cash:
        delta = new.amount - old.amount
        if delta > 0:
            return LedgerAction(LedgerActionKind.WITHDRAW, delta, adjustment=True)
        if delta < 0:
            return LedgerAction(LedgerActionKind.DEPOSIT, -delta, adjustment=True)
    return NO_ACTION


class ExpenseLedgerBinder:

    def __init__(self, db: AsyncSession, wallet: Optional[WalletLedger] = None):
        self.db = db
        self.wallet = wallet or WalletLedger(db)

    async def create_expense(
        self,
        actor: Actor,
        user_id: int,
        amount,
        category: str,
        description: str,
        on_date,
        payment_method: PaymentMethod = PaymentMethod.UPI,
    ) -> Expense:
        """Insert the expense and, for CASH, the linked wallet withdrawal."""
        amount = require_positive(amount)
        on_date = parse_business_date(on_date)
        description = clean_text(description)
        if not description:
            raise ValidationFailedError("Description is required", field="description")

        async with ledger_transaction(self.db, wallet_key(user_id)):
            expense = Expense(
                user_id=user_id,
                amount=amount,
                category=category.lower(),
                description=description,
                date=on_date,
                payment_method=PaymentMethod(payment_method),
            )
            with storage_errors("create_expense"):
                self.db.add(expense)
                await self.db.flush()

            await self._apply(plan_transition(None, ExpenseState.of(expense)), expense)
            await log_event(
                self.db, AuditAction.EXPENSE_CREATED, actor_id=actor.user_id, target_user_id=user_id,
                metadata={"expense_id": expense.id, "amount": amount, "payment_method": expense.payment_method.value},
            )

        logger.info("Created expense %s for user %s (%s %s)", expense.id, user_id, expense.payment_method.value, amount)
        return expense

    async def update_expense(self, actor: Actor, expense: Expense, changes: Dict[str, Any]) -> Expense:
        """Apply a partial update and the wallet entries the transition implies."""
        changes = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS and value is not None}
        if "amount" in changes:
            changes["amount"] = require_positive(changes["amount"])
        if "date" in changes:
            changes["date"] = parse_business_date(changes["date"])
        if "description" in changes:
            changes["description"] = clean_text(changes["description"])
            if not changes["description"]:
                raise ValidationFailedError("Description is required", field="description")
        if "category" in changes:
            changes["category"] = changes["category"].lower()
        if "payment_method" in changes:
            changes["payment_method"] = PaymentMethod(changes["payment_method"])

        async with ledger_transaction(self.db, wallet_key(expense.user_id)):
            # Snapshot the committed state under the lock
            expense = await self._lock_expense(expense.id)
            old = ExpenseState.of(expense)

            for key, value in changes.items():
                setattr(expense, key, value)
            with storage_errors("update_expense"):
                await self.db.flush()

            action = plan_transition(old, ExpenseState.of(expense))
            await self._apply(action, expense)
            await log_event(
                self.db, AuditAction.EXPENSE_UPDATED, actor_id=actor.user_id, target_user_id=expense.user_id,
                metadata={"expense_id": expense.id, "fields": ",".join(sorted(changes)), "ledger_action": action.kind.value},
            )

        logger.info("Updated expense %s (ledger action: %s)", expense.id, action.kind.value)
        return expense

    async def delete_expense(self, actor: Actor, expense: Expense) -> None:
        """Reverse any cash effect, then remove the expense row."""
        expense_id = expense.id
        async with ledger_transaction(self.db, wallet_key(expense.user_id)):
            expense = await self._lock_expense(expense_id)

            await self._apply(plan_transition(ExpenseState.of(expense), None), expense)
            await log_event(
                self.db, AuditAction.EXPENSE_DELETED, actor_id=actor.user_id, target_user_id=expense.user_id,
                metadata={"expense_id": expense_id, "amount": expense.amount},
            )
            with storage_errors("delete_expense"):
                await self.db.delete(expense)
                await self.db.flush()

        logger.info("Deleted expense %s", expense_id)

    async def _lock_expense(self, expense_id: int) -> Expense:
        """Re-read the expense row under the wallet lock; it may have been deleted meanwhile."""
        stmt = (
            select(Expense)
            .where(Expense.id == expense_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        with storage_errors("lock_expense"):
            expense = (await self.db.execute(stmt)).scalar_one_or_none()
        if expense is None:
            raise ResourceNotFoundError("Expense", expense_id)
        return expense

    async def _apply(self, action: LedgerAction, expense: Expense):
        if action.kind == LedgerActionKind.NONE:
            return None
        if action.kind == LedgerActionKind.REVERSE:
            return await self.wallet.reverse_by_expense(expense.id)

        on_date = expense.date if action.use_expense_date else today()
        if action.adjustment:
            description = f"Adjustment: {expense.description}"
        else:
            description = f"Cash expense: {expense.description}"

        if action.kind == LedgerActionKind.WITHDRAW:
            return await self.wallet.withdraw(
                expense.user_id, action.amount, description, on_date, related_expense_id=expense.id
            )
        return await self.wallet.deposit(
            expense.user_id, action.amount, description, on_date, related_expense_id=expense.id
        )
