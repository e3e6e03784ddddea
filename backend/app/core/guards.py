"""
Security guards for role-based and ownership-based access control.

Provides dependencies for protecting endpoints.
"""

from fastapi import Depends, HTTPException, status
from backend.app.models.enums import UserRole
from backend.app.core.dependencies import get_current_user
from backend.app.domain.actor import Actor


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """
    Dependency for admin-only endpoints.

    Usage:
        @router.get("/reserve/balance")
        async def reserve_balance(admin: dict = Depends(require_admin)):
            ...

    Returns:
        User payload if admin, raises 403 otherwise
    """
    if current_user.get("role") != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )

    return current_user


def get_actor(current_user: dict = Depends(get_current_user)) -> Actor:
    """Dependency converting the authenticated payload into a domain Actor."""
    try:
        return Actor.from_claims(current_user)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid role in token"
        )

