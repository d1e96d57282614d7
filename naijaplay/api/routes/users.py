"""User profile, reward, achievement and match history route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from naijaplay.api.routes import http_error, server_error
from naijaplay.api.auth_dependencies import require_user
from naijaplay.database.db import get_db_session
from naijaplay.services import (
    user_service,
    reward_service,
    achievement_service,
    match_service,
)
from naijaplay.models.schemas import (
    UserResponse,
    UserUpdate,
    UserSearchResult,
    DailyRewardResponse,
    AchievementResponse,
    MatchHistoryResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/user/profile", response_model=UserResponse)
async def get_profile(user: dict = Depends(require_user)):
    """Get the current user's profile."""
    return user


@router.patch("/api/user/profile", response_model=UserResponse)
async def update_profile(
    payload: UserUpdate,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Update username, bio or avatar."""
    try:
        return await user_service.update_user(
            session,
            user["id"],
            username=payload.username,
            bio=payload.bio,
            avatar=payload.avatar,
        )
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error updating profile")


@router.get("/api/user/search", response_model=List[UserSearchResult])
async def search_users(
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Find players by username."""
    try:
        return await user_service.search_users(session, q, limit=limit)
    except Exception as e:
        raise server_error(e, "Error searching users")


@router.post("/api/user/daily-reward", response_model=DailyRewardResponse)
async def claim_daily_reward(
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Claim today's login reward."""
    try:
        return await reward_service.check_daily_reward(session, user["id"])
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error claiming daily reward")


@router.get("/api/user/achievements", response_model=List[AchievementResponse])
async def get_achievements(
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """All achievements with the current user's unlock state."""
    try:
        return await achievement_service.get_achievements(session, user["id"])
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error fetching achievements")


@router.get("/api/user/matches", response_model=List[MatchHistoryResponse])
async def get_match_history(
    limit: int = Query(20, ge=1, le=100),
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """The current user's recent matches."""
    try:
        return await match_service.get_match_history(session, user["id"], limit=limit)
    except Exception as e:
        raise server_error(e, "Error fetching match history")
