"""
Ledger reconciliation.

Compares every stored balance with the signed sum of its transaction log.
Read-only: drift is reported, never repaired automatically.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.domain.ledger.store import ReserveStore, WalletStore
from backend.app.domain.ledger.values import to_money
from backend.app.models.reserve import RESERVE_ID

logger = logging.getLogger("household_ledger.ledger.reconcile")


@dataclass
class ReconciliationEntry:
    ledger: str
    owner: str
    stored_balance: Decimal
    recomputed_balance: Decimal

    @property
    def drift(self) -> Decimal:
        return self.stored_balance - self.recomputed_balance

    @property
    def is_consistent(self) -> bool:
        return self.drift == 0


async def reconcile_ledgers(db: AsyncSession) -> List[ReconciliationEntry]:
    wallet_store = WalletStore(db)
    reserve_store = ReserveStore(db)
    entries = []

    for balance in await wallet_store.list_balances():
        entries.append(ReconciliationEntry(
            ledger="wallet",
            owner=str(balance.user_id),
            stored_balance=to_money(balance.current_balance),
            recomputed_balance=await wallet_store.recompute_balance(balance.user_id),
        ))

    reserve = await reserve_store.read_balance(RESERVE_ID)
    if reserve is not None:
        entries.append(ReconciliationEntry(
            ledger="reserve",
            owner=RESERVE_ID,
            stored_balance=to_money(reserve.current_balance),
            recomputed_balance=await reserve_store.recompute_balance(RESERVE_ID),
        ))

    for entry in entries:
        if not entry.is_consistent:
            logger.error(
                "Ledger drift on %s %s: stored %s, log sums to %s",
                entry.ledger, entry.owner, entry.stored_balance, entry.recomputed_balance,
            )
    return entries
