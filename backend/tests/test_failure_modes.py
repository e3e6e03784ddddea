"""
Failure Injection Tests.

A storage failure in any leg of a ledger operation must leave every
balance, transaction and expense exactly as it was.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from backend.app.core.exceptions import StorageError
from backend.app.domain.ledger.binder import ExpenseLedgerBinder
from backend.app.domain.ledger.reserve_ledger import ReserveLedger
from backend.app.domain.ledger.store import ReserveStore, WalletStore
from backend.app.domain.ledger.transfers import TransferService
from backend.app.domain.ledger.wallet_ledger import WalletLedger
from backend.app.models.expense import Expense
from backend.app.models.expense_enums import PaymentMethod
from backend.app.models.ledger_enums import ReserveDepositSource

TODAY = date(2024, 3, 1)


@pytest.mark.asyncio
async def test_sqlalchemy_errors_surface_as_storage_error(db_session, member_user, mocker):
    mocker.patch.object(
        db_session, "execute",
        side_effect=OperationalError("SELECT", {}, Exception("database is locked")),
    )

    with pytest.raises(StorageError) as exc_info:
        await WalletLedger(db_session).get_balance(member_user.id)

    assert exc_info.value.error_code == "ERR_STORAGE_001"
    assert isinstance(exc_info.value.__cause__, OperationalError)


@pytest.mark.asyncio
async def test_ledger_failure_rolls_back_expense(db_session, session_factory, member_user, member_actor, mocker):
    """If the wallet write fails, the CASH expense is not saved either."""
    mocker.patch.object(WalletStore, "write_balance", side_effect=StorageError())

    with pytest.raises(StorageError):
        await ExpenseLedgerBinder(db_session).create_expense(
            member_actor, member_user.id, 25, "dining", "Lunch", TODAY, PaymentMethod.CASH
        )

    async with session_factory() as session:
        assert (await session.execute(select(func.count(Expense.id)))).scalar() == 0
        assert await WalletLedger(session).list_transactions(member_user.id) == []


@pytest.mark.asyncio
async def test_failed_update_keeps_previous_state(db_session, session_factory, member_user, member_actor, mocker):
    binder = ExpenseLedgerBinder(db_session)
    expense = await binder.create_expense(
        member_actor, member_user.id, 50, "dining", "Dinner", TODAY, PaymentMethod.CASH
    )
    expense_id = expense.id

    mocker.patch.object(WalletStore, "append_transaction", side_effect=StorageError())
    with pytest.raises(StorageError):
        await binder.update_expense(member_actor, expense, {"amount": 80})

    async with session_factory() as session:
        stored = await session.get(Expense, expense_id)
        assert stored.amount == Decimal("50.00")
        assert (await WalletLedger(session).get_balance(member_user.id)).current_balance == Decimal("-50.00")


@pytest.mark.asyncio
async def test_failed_reserve_leg_rolls_back_wallet_leg(db_session, session_factory, admin_actor, member_user, mocker):
    await WalletLedger(db_session).deposit(member_user.id, 100, "Cash", TODAY)
    mocker.patch.object(ReserveStore, "append_transaction", side_effect=StorageError())

    with pytest.raises(StorageError):
        await TransferService(db_session).add_to_reserve(
            admin_actor, 60, TODAY, ReserveDepositSource.ADDED_FROM_WALLET, selected_user_id=member_user.id
        )

    async with session_factory() as session:
        wallet = WalletLedger(session)
        assert (await wallet.get_balance(member_user.id)).current_balance == Decimal("100.00")
        assert len(await wallet.list_transactions(member_user.id)) == 1
        assert await ReserveLedger(session).list_transactions() == []


@pytest.mark.asyncio
async def test_storage_error_maps_to_503(client, member_headers, mocker):
    mocker.patch.object(WalletStore, "read_balance", side_effect=StorageError())

    response = await client.get("/v1/wallet/balance", headers=member_headers)

    assert response.status_code == 503
    assert response.json()["error_code"] == "ERR_STORAGE_001"
