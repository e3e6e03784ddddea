"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import (
    auth, admin, wallet, reserve, expenses, categories, stats
)

router = APIRouter()

# Identity
router.include_router(auth.router)

# Ledgers
router.include_router(wallet.router)
router.include_router(reserve.router)

# Expenses and categories
router.include_router(expenses.router)
router.include_router(categories.router)
router.include_router(categories.admin_router)

# Reporting
router.include_router(stats.router)

# Admin
router.include_router(admin.router)
