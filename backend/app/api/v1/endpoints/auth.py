"""
Authentication API endpoints.

Tokens are issued by the household's identity provider; this service only
verifies them and reports the caller.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.auth import UserResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Return the authenticated user's profile, role included.

    The client uses the role to decide whether to show reserve and admin views.
    """
    user = await db.get(User, current_user["user_id"])
    if user is None:
        raise ResourceNotFoundError("User", current_user["user_id"])
    return UserResponse.model_validate(user)
