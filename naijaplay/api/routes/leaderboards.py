"""Leaderboard route handlers."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from naijaplay.api.routes import server_error
from naijaplay.database.db import get_db_session
from naijaplay.services import leaderboard_service
from naijaplay.models.schemas import (
    UserLeaderboardEntry,
    VillageLeaderboardEntry,
    EconomySummaryResponse,
    RegionStanding,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/leaderboards/users/global", response_model=List[UserLeaderboardEntry])
async def global_user_leaderboard(
    limit: int = Query(50, ge=1, le=100),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await leaderboard_service.get_global_user_leaderboard(session, limit=limit)
    except Exception as e:
        raise server_error(e, "Failed to load global rankings")


@router.get("/api/leaderboards/users/regional/{region}", response_model=List[UserLeaderboardEntry])
async def regional_user_leaderboard(
    region: str,
    limit: int = Query(50, ge=1, le=100),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await leaderboard_service.get_regional_user_leaderboard(session, region, limit=limit)
    except Exception as e:
        raise server_error(e, "Failed to load regional rankings")


@router.get("/api/leaderboards/villages/global", response_model=List[VillageLeaderboardEntry])
async def global_village_leaderboard(
    limit: int = Query(20, ge=1, le=100),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await leaderboard_service.get_village_leaderboard(session, limit=limit)
    except Exception as e:
        raise server_error(e, "Failed to load global village rankings")


@router.get(
    "/api/leaderboards/villages/regional/{region}", response_model=List[VillageLeaderboardEntry]
)
async def regional_village_leaderboard(
    region: str,
    limit: int = Query(20, ge=1, le=100),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await leaderboard_service.get_regional_village_leaderboard(
            session, region, limit=limit
        )
    except Exception as e:
        raise server_error(e, "Failed to load regional village rankings")


@router.get("/api/leaderboards/economy", response_model=EconomySummaryResponse)
async def economy_summary(
    region: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_db_session),
):
    """Coin and XP aggregates across players."""
    try:
        return await leaderboard_service.get_economy_summary(session, region=region)
    except Exception as e:
        raise server_error(e, "Failed to load economy summary")


@router.get("/api/leaderboards/regions", response_model=List[RegionStanding])
async def region_standings(session: AsyncSession = Depends(get_db_session)):
    """Regions ranked by the total XP of their villages."""
    try:
        return await leaderboard_service.get_region_standings(session)
    except Exception as e:
        raise server_error(e, "Failed to load region standings")
