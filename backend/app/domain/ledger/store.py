"""
Ledger Store: persistence for balances and append-only transaction logs.

Two ledgers share one interface. The wallet store keys balances by
user_id, the reserve store by the singleton id "reserve". Every database
failure surfaces as StorageError; nothing is retried here.

Balance reads always bypass the session's identity map so a writer holding
the owner's lock sees the latest committed value, not a cached one.
"""

import logging
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import case, desc, func, select, true, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import StorageError
from backend.app.domain.ledger.values import to_money
from backend.app.models.ledger_enums import TransactionType
from backend.app.models.reserve import RESERVE_ID, ReserveBalance, ReserveTransaction
from backend.app.models.user import utcnow
from backend.app.models.wallet import WalletBalance, WalletTransaction

logger = logging.getLogger("household_ledger.ledger.store")


@contextmanager
def storage_errors(operation: str):
    """Translate SQLAlchemy failures into StorageError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Ledger storage failure during %s: %s", operation, exc)
        raise StorageError(details={"operation": operation}) from exc


class LedgerStore:
    """
    Base store. Subclasses bind the balance/transaction models and say how
    an owner key maps onto them.
    """

    balance_model: Any = None
    transaction_model: Any = None

    def __init__(self, db: AsyncSession):
        self.db = db

    def _balance_clause(self, owner_key):
        raise NotImplementedError

    def _owner_clause(self, owner_key):
        raise NotImplementedError

    def _new_balance(self, owner_key):
        raise NotImplementedError

    async def read_balance(self, owner_key, for_update: bool = False):
        """Return the balance row or None. for_update takes a row lock where supported."""
        stmt = (
            select(self.balance_model)
            .where(self._balance_clause(owner_key))
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        with storage_errors("read_balance"):
            result = await self.db.execute(stmt)
            return result.scalar_one_or_none()

    async def ensure_balance(self, owner_key):
        """
        Lock and return the balance row, creating it at zero on first use.

        Call only while holding the owner's ledger lock.
        """
        balance = await self.read_balance(owner_key, for_update=True)
        if balance is None:
            balance = self._new_balance(owner_key)
            with storage_errors("create_balance"):
                self.db.add(balance)
                await self.db.flush()
            logger.info("Initialized %s balance for %s", self.balance_model.__tablename__, owner_key)
        return balance

    async def write_balance(self, owner_key, new_balance: Decimal) -> None:
        stmt = (
            update(self.balance_model)
            .where(self._balance_clause(owner_key))
            .values(current_balance=new_balance, updated_at=utcnow())
        )
        with storage_errors("write_balance"):
            result = await self.db.execute(stmt)
        if result.rowcount == 0:
            raise StorageError(
                message="Balance row missing during write",
                details={"owner": str(owner_key)},
            )

    async def append_transaction(self, record):
        """Persist an immutable ledger entry. The caller builds the record."""
        with storage_errors("append_transaction"):
            self.db.add(record)
            await self.db.flush()
        return record

    async def list_transactions(
        self,
        owner_key,
        transaction_type: Optional[TransactionType] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> List[Any]:
        """Transactions newest first, optionally filtered by type and date range (inclusive)."""
        model = self.transaction_model
        stmt = select(model).where(self._owner_clause(owner_key))
        if transaction_type is not None:
            stmt = stmt.where(model.type == transaction_type)
        if start_date is not None:
            stmt = stmt.where(model.date >= start_date)
        if end_date is not None:
            stmt = stmt.where(model.date <= end_date)
        stmt = stmt.order_by(desc(model.created_at), desc(model.id))
        if limit:
            stmt = stmt.limit(limit)
        with storage_errors("list_transactions"):
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

    async def recompute_balance(self, owner_key) -> Decimal:
        """Signed sum of the owner's transaction log."""
        model = self.transaction_model
        signed = case((model.type == TransactionType.DEPOSIT, model.amount), else_=-model.amount)
        stmt = select(func.coalesce(func.sum(signed), 0)).where(self._owner_clause(owner_key))
        with storage_errors("recompute_balance"):
            result = await self.db.execute(stmt)
            return to_money(result.scalar_one())


class WalletStore(LedgerStore):
    balance_model = WalletBalance
    transaction_model = WalletTransaction

    def _balance_clause(self, owner_key):
        return WalletBalance.user_id == owner_key

    def _owner_clause(self, owner_key):
        return WalletTransaction.user_id == owner_key

    def _new_balance(self, owner_key):
        return WalletBalance(user_id=owner_key, current_balance=Decimal("0.00"))

    async def find_transactions_by_related_expense(self, expense_id: int) -> List[WalletTransaction]:
        """Every wallet entry linked to the expense, oldest first."""
        stmt = (
            select(WalletTransaction)
            .where(WalletTransaction.related_expense_id == expense_id)
            .order_by(WalletTransaction.created_at, WalletTransaction.id)
        )
        with storage_errors("find_transactions_by_related_expense"):
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

    async def list_balances(self) -> List[WalletBalance]:
        stmt = select(WalletBalance).order_by(WalletBalance.user_id).execution_options(populate_existing=True)
        with storage_errors("list_balances"):
            result = await self.db.execute(stmt)
            return list(result.scalars().all())


class ReserveStore(LedgerStore):
    balance_model = ReserveBalance
    transaction_model = ReserveTransaction

    def _balance_clause(self, owner_key):
        return ReserveBalance.id == RESERVE_ID

    def _owner_clause(self, owner_key):
        # The reserve has a single owner, so every entry belongs to it
        return true()

    def _new_balance(self, owner_key):
        return ReserveBalance(id=RESERVE_ID, current_balance=Decimal("0.00"))
