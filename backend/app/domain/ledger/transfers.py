"""
Cross-ledger money movement with a source.

Reserve deposits and wallet deposits carry a source that decides whether a
second ledger is touched:

- "Added from Wallet" (reserve deposit) debits a member's wallet
- "Added from Reserve" (wallet deposit) debits the reserve

Both are hard-floor transfers: the debited side must hold at least the
amount, and both legs commit or roll back together.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    InsufficientFundsError,
    InsufficientPermissionsError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from backend.app.core.locks import RESERVE_KEY, wallet_key
from backend.app.domain.actor import Actor
from backend.app.domain.ledger.reserve_ledger import ReserveLedger
from backend.app.domain.ledger.store import storage_errors
from backend.app.domain.ledger.unit_of_work import ledger_transaction
from backend.app.domain.ledger.values import clean_text, parse_business_date, require_positive, to_money
from backend.app.domain.ledger.wallet_ledger import WalletLedger
from backend.app.models.ledger_enums import ReserveDepositSource, WalletDepositSource
from backend.app.models.reserve import RESERVE_ID, ReserveTransaction
from backend.app.models.user import User
from backend.app.models.wallet import WalletTransaction
from backend.app.services.audit import AuditAction, log_event

logger = logging.getLogger("household_ledger.ledger.transfers")

Source = Union[ReserveDepositSource, WalletDepositSource]


def compose_description(source: Source, note: Optional[str]) -> str:
    """
    Build the stored description from a deposit source and an optional note.

    >>> compose_description(WalletDepositSource.ATM_WITHDRAWAL, None)
    'ATM Withdrawal'
    >>> compose_description(WalletDepositSource.OTHERS, "gift")
    'Others: gift'
    >>> compose_description(ReserveDepositSource.ADDED_FROM_WALLET, "rent")
    'Added from Wallet - rent'
    """
    note = clean_text(note)
    if not note:
        return source.value
    if source.value == "Others":
        return f"Others: {note}"
    return f"{source.value} - {note}"


def _require_note_for_others(source: Source, note: Optional[str]) -> None:
    if source.value == "Others" and not clean_text(note):
        raise ValidationFailedError("A description is required when the source is Others", field="description")


def _coerce_source(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationFailedError(f"Unknown source '{value}'. Expected one of: {allowed}", field="source")


@dataclass
class TransferResult:
    wallet_transaction: Optional[WalletTransaction] = None
    reserve_transaction: Optional[ReserveTransaction] = None

    @property
    def wallet_balance(self) -> Optional[Decimal]:
        return self.wallet_transaction.balance_after if self.wallet_transaction else None

    @property
    def reserve_balance(self) -> Optional[Decimal]:
        return self.reserve_transaction.balance_after if self.reserve_transaction else None


class TransferService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.wallet = WalletLedger(db)
        self.reserve = ReserveLedger(db)

    async def add_to_reserve(
        self,
        actor: Actor,
        amount,
        on_date,
        source,
        note: Optional[str] = None,
        selected_user_id: Optional[int] = None,
    ) -> TransferResult:
        """
        Deposit into the reserve (admin only).

        With "Added from Wallet" the money leaves the wallet of
        selected_user_id (the admin's own when omitted); the wallet must
        cover the amount.
        """
        if not actor.is_admin:
            raise InsufficientPermissionsError("Only admins can add money to the reserve")
        amount = require_positive(amount)
        on_date = parse_business_date(on_date)
        source = _coerce_source(ReserveDepositSource, source)
        _require_note_for_others(source, note)
        description = compose_description(source, note)

        if source != ReserveDepositSource.ADDED_FROM_WALLET:
            async with ledger_transaction(self.db, RESERVE_KEY):
                reserve_txn = await self.reserve.deposit(amount, description, actor.user_id, on_date)
                await log_event(
                    self.db, AuditAction.RESERVE_DEPOSIT, actor_id=actor.user_id,
                    metadata={"amount": amount, "source": source.value, "transaction_id": reserve_txn.id},
                )
            return TransferResult(reserve_transaction=reserve_txn)

        source_user = await self._get_user(selected_user_id or actor.user_id)
        async with ledger_transaction(self.db, wallet_key(source_user.id), RESERVE_KEY):
            wallet_balance = await self.wallet.store.ensure_balance(source_user.id)
            available = to_money(wallet_balance.current_balance)
            if available < amount:
                logger.warning(
                    "Rejected wallet->reserve transfer of %s: wallet of user %s holds %s",
                    amount, source_user.id, available,
                )
                raise InsufficientFundsError("wallet", required=amount, available=available)

            wallet_note = clean_text(note)
            wallet_txn = await self.wallet.withdraw(
                source_user.id,
                amount,
                f"Transferred to Reserve - {wallet_note}" if wallet_note else "Transferred to Reserve",
                on_date,
            )
            reserve_txn = await self.reserve.deposit(
                amount, description, actor.user_id, on_date, related_wallet_transaction_id=wallet_txn.id
            )
            await log_event(
                self.db, AuditAction.RESERVE_TRANSFER_FROM_WALLET, actor_id=actor.user_id,
                target_user_id=source_user.id,
                metadata={
                    "amount": amount,
                    "wallet_transaction_id": wallet_txn.id,
                    "reserve_transaction_id": reserve_txn.id,
                },
            )
        logger.info("Moved %s from wallet of user %s to the reserve", amount, source_user.id)
        return TransferResult(wallet_transaction=wallet_txn, reserve_transaction=reserve_txn)

    async def add_to_wallet(
        self,
        actor: Actor,
        amount,
        on_date,
        source=None,
        note: Optional[str] = None,
        selected_user_id: Optional[int] = None,
    ) -> TransferResult:
        """
        Deposit into a wallet.

        Members deposit into their own wallet only. Without a source the
        note is the description and is required. "Added from Reserve" is
        admin-only and requires the reserve to cover the amount.
        """
        target_id = selected_user_id or actor.user_id
        if not actor.can_access_user(target_id):
            raise InsufficientPermissionsError("Only admins can add money to another member's wallet")
        amount = require_positive(amount)
        on_date = parse_business_date(on_date)

        if source is None:
            description = clean_text(note)
            if not description:
                raise ValidationFailedError("Description is required", field="description")
        else:
            source = _coerce_source(WalletDepositSource, source)
            _require_note_for_others(source, note)
            description = compose_description(source, note)

        target = await self._get_user(target_id)

        if source != WalletDepositSource.ADDED_FROM_RESERVE:
            async with ledger_transaction(self.db, wallet_key(target.id)):
                wallet_txn = await self.wallet.deposit(target.id, amount, description, on_date)
                await log_event(
                    self.db, AuditAction.WALLET_DEPOSIT, actor_id=actor.user_id, target_user_id=target.id,
                    metadata={
                        "amount": amount,
                        "source": source.value if source else None,
                        "transaction_id": wallet_txn.id,
                    },
                )
            return TransferResult(wallet_transaction=wallet_txn)

        if not actor.is_admin:
            raise InsufficientPermissionsError("Only admins can move money out of the reserve")

        async with ledger_transaction(self.db, wallet_key(target.id), RESERVE_KEY):
            reserve_balance = await self.reserve.store.ensure_balance(RESERVE_ID)
            available = to_money(reserve_balance.current_balance)
            if available < amount:
                logger.warning("Rejected reserve->wallet transfer of %s: reserve holds %s", amount, available)
                raise InsufficientFundsError("reserve", required=amount, available=available)

            wallet_txn = await self.wallet.deposit(target.id, amount, description, on_date)
            reserve_txn = await self.reserve.withdraw(
                amount,
                f"Transferred to wallet of {target.display_name}",
                actor.user_id,
                on_date,
                related_wallet_transaction_id=wallet_txn.id,
            )
            await log_event(
                self.db, AuditAction.RESERVE_TRANSFER_TO_WALLET, actor_id=actor.user_id,
                target_user_id=target.id,
                metadata={
                    "amount": amount,
                    "wallet_transaction_id": wallet_txn.id,
                    "reserve_transaction_id": reserve_txn.id,
                },
            )
        logger.info("Moved %s from the reserve to wallet of user %s", amount, target.id)
        return TransferResult(wallet_transaction=wallet_txn, reserve_transaction=reserve_txn)

    async def _get_user(self, user_id: int) -> User:
        with storage_errors("get_user"):
            user = await self.db.get(User, user_id)
        if user is None:
            raise ResourceNotFoundError("User", user_id)
        return user
