"""
Wallet Ledger (Domain Logic).

Per-user cash balance with an append-only transaction log. Withdrawals are
never blocked by the balance: a cash expense may push a wallet negative,
which is logged as a warning.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.locks import wallet_key
from backend.app.domain.ledger.store import WalletStore
from backend.app.domain.ledger.unit_of_work import ledger_transaction
from backend.app.domain.ledger.values import clean_text, parse_business_date, require_positive, to_money, today
from backend.app.models.ledger_enums import TransactionType
from backend.app.models.wallet import WalletBalance, WalletTransaction

logger = logging.getLogger("household_ledger.ledger.wallet")

REVERSAL_PREFIX = "Reversed: "


class WalletLedger:

    def __init__(self, db: AsyncSession, store: Optional[WalletStore] = None):
        self.db = db
        self.store = store or WalletStore(db)

    async def get_balance(self, user_id: int) -> WalletBalance:
        """Return the user's balance row, creating it at zero on first access."""
        balance = await self.store.read_balance(user_id)
        if balance is None:
            async with ledger_transaction(self.db, wallet_key(user_id)):
                balance = await self.store.ensure_balance(user_id)
        return balance

    async def deposit(
        self,
        user_id: int,
        amount,
        description: str,
        on_date,
        related_expense_id: Optional[int] = None,
    ) -> WalletTransaction:
        return await self._post(user_id, TransactionType.DEPOSIT, amount, description, on_date, related_expense_id)

    async def withdraw(
        self,
        user_id: int,
        amount,
        description: str,
        on_date,
        related_expense_id: Optional[int] = None,
    ) -> WalletTransaction:
        """Withdraw without a balance floor. The result may be negative."""
        return await self._post(user_id, TransactionType.WITHDRAWAL, amount, description, on_date, related_expense_id)

    async def reverse_by_expense(self, expense_id: int) -> Optional[WalletTransaction]:
        """
        Cancel the net wallet effect of an expense.

        Appends one compensating entry equal to the signed sum of every
        entry linked to the expense, so adjustments are included and a
        second reversal finds a zero net and does nothing. Returns None
        when there is nothing to reverse.
        """
        linked = await self.store.find_transactions_by_related_expense(expense_id)
        if not linked:
            logger.info("No wallet entries linked to expense %s; nothing to reverse", expense_id)
            return None

        user_id = linked[0].user_id
        async with ledger_transaction(self.db, wallet_key(user_id)):
            # Re-read under the lock; another writer may have appended meanwhile
            linked = await self.store.find_transactions_by_related_expense(expense_id)
            net = sum((to_money(entry.signed_amount) for entry in linked), Decimal("0.00"))
            if net == 0:
                logger.info("Expense %s wallet effect already cancelled", expense_id)
                return None

            transaction_type = TransactionType.DEPOSIT if net < 0 else TransactionType.WITHDRAWAL
            transaction = await self._append(
                user_id,
                transaction_type,
                abs(net),
                f"{REVERSAL_PREFIX}{linked[0].description}",
                today(),
                expense_id,
            )
        logger.info("Reversed expense %s for user %s: %s %s", expense_id, user_id, transaction_type.value, abs(net))
        return transaction

    async def list_transactions(
        self,
        user_id: int,
        transaction_type: Optional[TransactionType] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> List[WalletTransaction]:
        return await self.store.list_transactions(user_id, transaction_type, start_date, end_date, limit)

    async def _post(self, user_id, transaction_type, amount, description, on_date, related_expense_id):
        # Validate before taking locks or touching storage
        amount = require_positive(amount)
        on_date = parse_business_date(on_date)

        async with ledger_transaction(self.db, wallet_key(user_id)):
            transaction = await self._append(
                user_id, transaction_type, amount, clean_text(description), on_date, related_expense_id
            )
        logger.info(
            "Wallet %s for user %s: %s (balance %s)",
            transaction_type.value, user_id, amount, transaction.balance_after,
        )
        return transaction

    async def _append(self, user_id, transaction_type, amount, description, on_date, related_expense_id):
        """Write one entry and its balance update. Caller holds the wallet lock."""
        balance = await self.store.ensure_balance(user_id)
        signed = amount if transaction_type == TransactionType.DEPOSIT else -amount
        new_balance = to_money(balance.current_balance) + signed

        transaction = WalletTransaction(
            user_id=user_id,
            type=transaction_type,
            amount=amount,
            description=description,
            related_expense_id=related_expense_id,
            balance_after=new_balance,
            date=on_date,
        )
        await self.store.append_transaction(transaction)
        await self.store.write_balance(user_id, new_balance)

        if new_balance < 0 and transaction_type == TransactionType.WITHDRAWAL:
            logger.warning("Wallet of user %s is negative: %s", user_id, new_balance)
        return transaction
