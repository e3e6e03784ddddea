"""
Wallet Ledger Tests.

Deposits, soft-floor withdrawals, lazy balance creation and history.
"""

import logging
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from backend.app.core.exceptions import ValidationFailedError
from backend.app.domain.ledger.wallet_ledger import WalletLedger
from backend.app.models.ledger_enums import TransactionType
from backend.app.models.wallet import WalletBalance, WalletTransaction


@pytest.mark.asyncio
async def test_balance_starts_at_zero(db_session, member_user):
    """A wallet that was never used reads as zero and is created on first access."""
    balance = await WalletLedger(db_session).get_balance(member_user.id)

    assert balance.current_balance == Decimal("0")
    assert balance.user_id == member_user.id


@pytest.mark.asyncio
async def test_deposit_then_withdraw(db_session, member_user):
    """balance_after snapshots follow the running balance."""
    ledger = WalletLedger(db_session)

    deposit = await ledger.deposit(member_user.id, Decimal("100"), "Salary cash", date(2024, 3, 1))
    withdrawal = await ledger.withdraw(member_user.id, Decimal("40.50"), "Vegetables", date(2024, 3, 2))

    assert deposit.type == TransactionType.DEPOSIT
    assert deposit.balance_after == Decimal("100.00")
    assert withdrawal.type == TransactionType.WITHDRAWAL
    assert withdrawal.amount == Decimal("40.50")
    assert withdrawal.balance_after == Decimal("59.50")

    balance = await ledger.get_balance(member_user.id)
    assert balance.current_balance == Decimal("59.50")


@pytest.mark.asyncio
async def test_withdraw_may_go_negative(db_session, member_user, caplog):
    """Plain withdrawals have no floor; a negative balance is only warned about."""
    ledger = WalletLedger(db_session)
    await ledger.deposit(member_user.id, 20, "Pocket money", date(2024, 3, 1))

    with caplog.at_level(logging.WARNING, logger="household_ledger"):
        transaction = await ledger.withdraw(member_user.id, 50, "Taxi", date(2024, 3, 2))

    assert transaction.balance_after == Decimal("-30.00")
    assert (await ledger.get_balance(member_user.id)).current_balance == Decimal("-30.00")
    assert any("negative" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -5, Decimal("-0.01")])
async def test_non_positive_amount_rejected_before_io(db_session, member_user, amount):
    """Invalid amounts never create a balance row or a transaction."""
    ledger = WalletLedger(db_session)

    with pytest.raises(ValidationFailedError):
        await ledger.deposit(member_user.id, amount, "Bad", date(2024, 3, 1))
    with pytest.raises(ValidationFailedError):
        await ledger.withdraw(member_user.id, amount, "Bad", date(2024, 3, 1))

    balances = (await db_session.execute(select(func.count(WalletBalance.id)))).scalar()
    transactions = (await db_session.execute(select(func.count(WalletTransaction.id)))).scalar()
    assert balances == 0
    assert transactions == 0


@pytest.mark.asyncio
async def test_malformed_date_rejected(db_session, member_user):
    with pytest.raises(ValidationFailedError) as exc_info:
        await WalletLedger(db_session).deposit(member_user.id, 10, "Gift", "03/01/2024")

    assert exc_info.value.error_code == "ERR_VALIDATION_002"
    assert "date" in exc_info.value.details["fields"]


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["2024-01-05garbage", "2024-01-05T99:99"])
async def test_date_with_trailing_junk_rejected(db_session, member_user, raw):
    with pytest.raises(ValidationFailedError):
        await WalletLedger(db_session).deposit(member_user.id, 10, "Gift", raw)

    assert await WalletLedger(db_session).list_transactions(member_user.id) == []


@pytest.mark.asyncio
async def test_iso_datetime_string_accepted(db_session, member_user):
    transaction = await WalletLedger(db_session).deposit(member_user.id, 10, "Gift", "2024-03-01T08:30:00")

    assert transaction.date == date(2024, 3, 1)


@pytest.mark.asyncio
async def test_iso_date_string_accepted(db_session, member_user):
    transaction = await WalletLedger(db_session).deposit(member_user.id, 10, "Gift", "2024-03-01")

    assert transaction.date == date(2024, 3, 1)


@pytest.mark.asyncio
async def test_list_transactions_newest_first_with_filters(db_session, member_user):
    ledger = WalletLedger(db_session)
    await ledger.deposit(member_user.id, 100, "Opening", date(2024, 1, 5))
    await ledger.withdraw(member_user.id, 10, "Milk", date(2024, 2, 10))
    await ledger.withdraw(member_user.id, 20, "Bread", date(2024, 3, 15))

    history = await ledger.list_transactions(member_user.id)
    assert [t.description for t in history] == ["Bread", "Milk", "Opening"]

    withdrawals = await ledger.list_transactions(member_user.id, transaction_type=TransactionType.WITHDRAWAL)
    assert {t.description for t in withdrawals} == {"Bread", "Milk"}

    february = await ledger.list_transactions(
        member_user.id, start_date=date(2024, 2, 1), end_date=date(2024, 2, 29)
    )
    assert [t.description for t in february] == ["Milk"]


@pytest.mark.asyncio
async def test_wallets_are_isolated(db_session, member_user, other_member):
    ledger = WalletLedger(db_session)
    await ledger.deposit(member_user.id, 70, "Cash", date(2024, 3, 1))

    assert (await ledger.get_balance(other_member.id)).current_balance == Decimal("0")
    assert await ledger.list_transactions(other_member.id) == []


@pytest.mark.asyncio
async def test_stored_balance_matches_log(db_session, member_user):
    """The balance row always equals the signed sum of the log."""
    ledger = WalletLedger(db_session)
    await ledger.deposit(member_user.id, Decimal("12.34"), "A", date(2024, 3, 1))
    await ledger.withdraw(member_user.id, Decimal("50.00"), "B", date(2024, 3, 2))
    await ledger.deposit(member_user.id, Decimal("7.66"), "C", date(2024, 3, 3))

    recomputed = await ledger.store.recompute_balance(member_user.id)
    stored = (await ledger.get_balance(member_user.id)).current_balance
    assert recomputed == stored == Decimal("-30.00")


@pytest.mark.asyncio
async def test_reverse_without_linked_entries_is_noop(db_session, member_user):
    assert await WalletLedger(db_session).reverse_by_expense(12345) is None
