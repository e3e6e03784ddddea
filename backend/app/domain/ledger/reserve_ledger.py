"""
Reserve Ledger (Domain Logic).

The household's single shared fund. Authorization is enforced by the
callers (transfers and admin endpoints); this class only keeps the books.
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.locks import RESERVE_KEY
from backend.app.domain.ledger.store import ReserveStore
from backend.app.domain.ledger.unit_of_work import ledger_transaction
from backend.app.domain.ledger.values import clean_text, parse_business_date, require_positive, to_money
from backend.app.models.ledger_enums import TransactionType
from backend.app.models.reserve import RESERVE_ID, ReserveBalance, ReserveTransaction

logger = logging.getLogger("household_ledger.ledger.reserve")


class ReserveLedger:

    def __init__(self, db: AsyncSession, store: Optional[ReserveStore] = None):
        self.db = db
        self.store = store or ReserveStore(db)

    async def get_balance(self) -> ReserveBalance:
        balance = await self.store.read_balance(RESERVE_ID)
        if balance is None:
            async with ledger_transaction(self.db, RESERVE_KEY):
                balance = await self.store.ensure_balance(RESERVE_ID)
        return balance

    async def deposit(
        self,
        amount,
        description: str,
        performed_by_user_id: int,
        on_date,
        related_wallet_transaction_id: Optional[int] = None,
    ) -> ReserveTransaction:
        return await self._post(
            TransactionType.DEPOSIT, amount, description, performed_by_user_id, on_date,
            related_wallet_transaction_id,
        )

    async def withdraw(
        self,
        amount,
        description: str,
        performed_by_user_id: int,
        on_date,
        related_wallet_transaction_id: Optional[int] = None,
    ) -> ReserveTransaction:
        """No floor here; transfers check the balance before calling."""
        return await self._post(
            TransactionType.WITHDRAWAL, amount, description, performed_by_user_id, on_date,
            related_wallet_transaction_id,
        )

    async def list_transactions(
        self,
        transaction_type: Optional[TransactionType] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> List[ReserveTransaction]:
        return await self.store.list_transactions(RESERVE_ID, transaction_type, start_date, end_date, limit)

    async def _post(self, transaction_type, amount, description, performed_by_user_id, on_date, related_id):
        amount = require_positive(amount)
        on_date = parse_business_date(on_date)

        async with ledger_transaction(self.db, RESERVE_KEY):
            balance = await self.store.ensure_balance(RESERVE_ID)
            signed = amount if transaction_type == TransactionType.DEPOSIT else -amount
            new_balance = to_money(balance.current_balance) + signed

            transaction = ReserveTransaction(
                type=transaction_type,
                amount=amount,
                description=clean_text(description),
                performed_by_user_id=performed_by_user_id,
                related_wallet_transaction_id=related_id,
                balance_after=new_balance,
                date=on_date,
            )
            await self.store.append_transaction(transaction)
            await self.store.write_balance(RESERVE_ID, new_balance)

        logger.info(
            "Reserve %s by user %s: %s (balance %s)",
            transaction_type.value, performed_by_user_id, amount, new_balance,
        )
        return transaction
