"""
Stats Service.

Spending aggregates for the dashboard. READ-ONLY.

The monthly average covers completed months only (the current month is
excluded) and looks back at most 12 months, starting no earlier than the
first recorded expense.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.domain.ledger.values import to_money
from backend.app.models.expense import Expense
from backend.app.models.user import User
from backend.app.schemas.stats import HouseholdStats, SpendingStats, UserTotal

AVERAGE_WINDOW_MONTHS = 12


def month_bounds(today: date) -> dict:
    first_this_month = today.replace(day=1)
    last_day_last_month = first_this_month - timedelta(days=1)
    return {
        "first_this_month": first_this_month,
        "first_last_month": last_day_last_month.replace(day=1),
        "last_day_last_month": last_day_last_month,
        "first_window_month": date(today.year - 1, today.month, 1),
    }


def completed_months(earliest: date, today: date) -> int:
    months = (today.year - earliest.year) * 12 + (today.month - earliest.month)
    return max(0, min(months, AVERAGE_WINDOW_MONTHS))


class StatsService:

    @staticmethod
    async def _sum(db: AsyncSession, *conditions) -> Decimal:
        query = select(func.coalesce(func.sum(Expense.amount), 0))
        if conditions:
            query = query.where(*conditions)
        return to_money((await db.execute(query)).scalar() or 0)

    @staticmethod
    async def get_spending_stats(
        db: AsyncSession,
        user_id: Optional[int] = None,
        today: Optional[date] = None,
    ) -> SpendingStats:
        """Totals for one user, or for the whole household when user_id is None."""
        today = today or date.today()
        bounds = month_bounds(today)
        scope = [Expense.user_id == user_id] if user_id is not None else []

        total = await StatsService._sum(db, *scope)
        this_month = await StatsService._sum(db, *scope, Expense.date >= bounds["first_this_month"])
        last_month = await StatsService._sum(
            db, *scope,
            Expense.date >= bounds["first_last_month"],
            Expense.date <= bounds["last_day_last_month"],
        )

        earliest_query = select(func.min(Expense.date))
        if scope:
            earliest_query = earliest_query.where(*scope)
        earliest = (await db.execute(earliest_query)).scalar()

        average_monthly = Decimal("0.00")
        if earliest is not None:
            months = completed_months(earliest, today)
            if months > 0:
                window_start = max(earliest, bounds["first_window_month"])
                window_total = await StatsService._sum(
                    db, *scope,
                    Expense.date >= window_start,
                    Expense.date <= bounds["last_day_last_month"],
                )
                average_monthly = to_money(window_total / months)

        return SpendingStats(
            total=total,
            this_month=this_month,
            last_month=last_month,
            average_monthly=average_monthly,
        )

    @staticmethod
    async def get_household_stats(db: AsyncSession, today: Optional[date] = None) -> HouseholdStats:
        """Household totals plus the all-time total per member."""
        stats = await StatsService.get_spending_stats(db, today=today)

        query = (
            select(User, func.coalesce(func.sum(Expense.amount), 0).label("total"))
            .join(Expense, Expense.user_id == User.id)
            .group_by(User.id)
            .order_by(desc("total"))
        )
        rows = (await db.execute(query)).all()
        by_user: List[UserTotal] = [
            UserTotal(
                user_id=user.id,
                email=user.email,
                display_name=user.display_name,
                total=to_money(total),
            )
            for user, total in rows
        ]
        return HouseholdStats(**stats.model_dump(), by_user=by_user)
