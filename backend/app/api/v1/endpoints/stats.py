"""
Stats API Endpoints.
"""

from typing import Union

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.guards import get_actor
from backend.app.db.session import get_db
from backend.app.domain.actor import Actor
from backend.app.schemas.stats import HouseholdStats, SpendingStats
from backend.app.services.stats import StatsService

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("", response_model=Union[HouseholdStats, SpendingStats])
async def get_stats(
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Spending totals.

    Admins get household totals with a per-member breakdown; members get
    their own totals.
    """
    if actor.is_admin:
        return await StatsService.get_household_stats(db)
    return await StatsService.get_spending_stats(db, user_id=actor.user_id)
