"""
Stats API Schema Definitions.
"""

from pydantic import BaseModel
from decimal import Decimal
from typing import List


class SpendingStats(BaseModel):
    """Spending totals. average_monthly covers up to 12 completed months."""
    total: Decimal
    this_month: Decimal
    last_month: Decimal
    average_monthly: Decimal


class UserTotal(BaseModel):
    user_id: int
    email: str
    display_name: str
    total: Decimal


class HouseholdStats(SpendingStats):
    """Admin view: household totals plus the breakdown per member."""
    by_user: List[UserTotal]
