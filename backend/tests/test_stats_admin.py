"""
Stats, household overview and reconciliation tests.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import update

from backend.app.domain.ledger.binder import ExpenseLedgerBinder
from backend.app.domain.ledger.reconciliation import reconcile_ledgers
from backend.app.domain.ledger.wallet_ledger import WalletLedger
from backend.app.models.expense_enums import PaymentMethod
from backend.app.models.wallet import WalletBalance
from backend.app.services.stats import StatsService, completed_months, month_bounds

TODAY = date(2024, 6, 15)


def test_month_bounds():
    bounds = month_bounds(TODAY)
    assert bounds["first_this_month"] == date(2024, 6, 1)
    assert bounds["first_last_month"] == date(2024, 5, 1)
    assert bounds["last_day_last_month"] == date(2024, 5, 31)
    assert bounds["first_window_month"] == date(2023, 6, 1)


def test_month_bounds_in_january():
    bounds = month_bounds(date(2024, 1, 10))
    assert bounds["first_last_month"] == date(2023, 12, 1)
    assert bounds["last_day_last_month"] == date(2023, 12, 31)


def test_completed_months_is_capped():
    assert completed_months(date(2024, 6, 2), TODAY) == 0
    assert completed_months(date(2024, 3, 20), TODAY) == 3
    assert completed_months(date(2020, 1, 1), TODAY) == 12


async def _spend(db, actor, user_id, amount, on_date):
    await ExpenseLedgerBinder(db).create_expense(
        actor, user_id, amount, "groceries", "Shopping", on_date, PaymentMethod.CARD
    )


@pytest.mark.asyncio
async def test_member_stats(db_session, member_user, member_actor, other_member):
    await _spend(db_session, member_actor, member_user.id, 100, date(2024, 3, 10))
    await _spend(db_session, member_actor, member_user.id, 50, date(2024, 5, 5))
    await _spend(db_session, member_actor, member_user.id, 30, date(2024, 6, 2))
    await _spend(db_session, member_actor, other_member.id, 999, date(2024, 6, 3))

    stats = await StatsService.get_spending_stats(db_session, user_id=member_user.id, today=TODAY)

    assert stats.total == Decimal("180.00")
    assert stats.this_month == Decimal("30.00")
    assert stats.last_month == Decimal("50.00")
    # March..May: 3 completed months holding 150
    assert stats.average_monthly == Decimal("50.00")


@pytest.mark.asyncio
async def test_stats_without_expenses(db_session, member_user):
    stats = await StatsService.get_spending_stats(db_session, user_id=member_user.id, today=TODAY)

    assert stats.total == Decimal("0")
    assert stats.average_monthly == Decimal("0")


@pytest.mark.asyncio
async def test_household_stats_by_user(db_session, admin_actor, member_user, other_member):
    await _spend(db_session, admin_actor, member_user.id, 40, date(2024, 6, 1))
    await _spend(db_session, admin_actor, other_member.id, 60, date(2024, 6, 1))

    stats = await StatsService.get_household_stats(db_session, today=TODAY)

    assert stats.total == Decimal("100.00")
    assert [(row.user_id, row.total) for row in stats.by_user] == [
        (other_member.id, Decimal("60.00")),
        (member_user.id, Decimal("40.00")),
    ]


@pytest.mark.asyncio
async def test_stats_endpoint_shapes(client, admin_headers, member_headers):
    member = (await client.get("/v1/stats", headers=member_headers)).json()
    admin = (await client.get("/v1/stats", headers=admin_headers)).json()

    assert "by_user" not in member
    assert set(member) >= {"total", "this_month", "last_month", "average_monthly"}
    assert admin["by_user"] == []


@pytest.mark.asyncio
async def test_admin_users_include_wallet_balances(client, admin_headers, member_user, member_headers):
    await client.post(
        "/v1/wallet/deposit",
        json={"amount": 75, "description": "Cash", "date": "2024-03-01"},
        headers=member_headers,
    )

    data = (await client.get("/v1/admin/users", headers=admin_headers)).json()

    balances = {user["id"]: Decimal(user["wallet_balance"]) for user in data["users"]}
    assert balances[member_user.id] == Decimal("75")
    assert data["total"] == 2


@pytest.mark.asyncio
async def test_reconciliation_reports_drift(db_session, client, admin_headers, member_user):
    await WalletLedger(db_session).deposit(member_user.id, 20, "Cash", date(2024, 3, 1))

    report = (await client.get("/v1/admin/ledger/reconcile", headers=admin_headers)).json()
    assert report["consistent"] is True

    # Corrupt the projection behind the ledger's back
    await db_session.execute(
        update(WalletBalance).where(WalletBalance.user_id == member_user.id).values(current_balance=Decimal("5"))
    )
    await db_session.commit()

    entries = await reconcile_ledgers(db_session)
    drifted = [entry for entry in entries if not entry.is_consistent]
    assert len(drifted) == 1
    assert drifted[0].drift == Decimal("-15.00")

    report = (await client.get("/v1/admin/ledger/reconcile", headers=admin_headers)).json()
    assert report["consistent"] is False
