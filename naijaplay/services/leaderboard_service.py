"""
Leaderboards and economy aggregates.
"""

from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from naijaplay.database.models import User, Village
from naijaplay.utils.constants import USER_LEADERBOARD_SIZE, VILLAGE_LEADERBOARD_SIZE
import logging

logger = logging.getLogger(__name__)


def _user_leaderboard_query(limit: int):
    return (
        select(
            User.id,
            User.username,
            User.avatar,
            User.title,
            User.level,
            User.xp,
            Village.id.label("village_id"),
            Village.name.label("village_name"),
            Village.region.label("village_region"),
        )
        .outerjoin(Village, Village.id == User.village_id)
        .order_by(User.xp.desc(), User.id)
        .limit(limit)
    )


def _user_row_to_dict(rank: int, row) -> Dict:
    village = None
    if row.village_id is not None:
        village = {"id": row.village_id, "name": row.village_name, "region": row.village_region}
    return {
        "rank": rank,
        "id": row.id,
        "username": row.username,
        "avatar": row.avatar,
        "title": row.title,
        "level": row.level,
        "xp": row.xp,
        "village": village,
    }


async def get_global_user_leaderboard(
    session: AsyncSession, limit: int = USER_LEADERBOARD_SIZE
) -> List[Dict]:
    """Top users by XP."""
    result = await session.execute(_user_leaderboard_query(limit))
    return [_user_row_to_dict(rank, row) for rank, row in enumerate(result.all(), start=1)]


async def get_regional_user_leaderboard(
    session: AsyncSession, region: str, limit: int = USER_LEADERBOARD_SIZE
) -> List[Dict]:
    """Top users by XP among members of villages in a region."""
    query = _user_leaderboard_query(limit).where(Village.region == region.strip().upper())
    result = await session.execute(query)
    return [_user_row_to_dict(rank, row) for rank, row in enumerate(result.all(), start=1)]


def _village_leaderboard_query(limit: int):
    member_count = func.count(User.id).label("member_count")
    return (
        select(Village, member_count)
        .outerjoin(User, User.village_id == Village.id)
        .group_by(Village.id)
        .order_by(Village.total_xp.desc(), Village.id)
        .limit(limit)
    )


def _village_row_to_dict(rank: int, village: Village, member_count: int) -> Dict:
    return {
        "rank": rank,
        "id": village.id,
        "name": village.name,
        "region": village.region,
        "icon": village.icon,
        "total_xp": village.total_xp,
        "member_count": member_count,
    }


async def get_village_leaderboard(
    session: AsyncSession, limit: int = VILLAGE_LEADERBOARD_SIZE
) -> List[Dict]:
    """Top villages by total XP, with member counts."""
    result = await session.execute(_village_leaderboard_query(limit))
    return [
        _village_row_to_dict(rank, village, count)
        for rank, (village, count) in enumerate(result.all(), start=1)
    ]


async def get_regional_village_leaderboard(
    session: AsyncSession, region: str, limit: int = VILLAGE_LEADERBOARD_SIZE
) -> List[Dict]:
    """Top villages of one region by total XP."""
    query = _village_leaderboard_query(limit).where(Village.region == region.strip().upper())
    result = await session.execute(query)
    return [
        _village_row_to_dict(rank, village, count)
        for rank, (village, count) in enumerate(result.all(), start=1)
    ]


async def get_economy_summary(session: AsyncSession, region: Optional[str] = None) -> Dict:
    """
    Aggregate coins and XP across users (optionally one region's villages).

    Returns:
        Dict with user_count and coins/xp each as {total, average, min, max}
    """
    query = select(
        func.count(User.id).label("user_count"),
        func.coalesce(func.sum(User.coins), 0).label("coins_total"),
        func.avg(User.coins).label("coins_avg"),
        func.min(User.coins).label("coins_min"),
        func.max(User.coins).label("coins_max"),
        func.coalesce(func.sum(User.xp), 0).label("xp_total"),
        func.avg(User.xp).label("xp_avg"),
        func.min(User.xp).label("xp_min"),
        func.max(User.xp).label("xp_max"),
    )
    if region:
        query = query.join(Village, Village.id == User.village_id).where(
            Village.region == region.strip().upper()
        )
    row = (await session.execute(query)).one()

    def _avg(value) -> float:
        return round(float(value), 2) if value is not None else 0.0

    return {
        "region": region.strip().upper() if region else None,
        "user_count": row.user_count,
        "coins": {
            "total": int(row.coins_total),
            "average": _avg(row.coins_avg),
            "min": row.coins_min or 0,
            "max": row.coins_max or 0,
        },
        "xp": {
            "total": int(row.xp_total),
            "average": _avg(row.xp_avg),
            "min": row.xp_min or 0,
            "max": row.xp_max or 0,
        },
    }


async def get_region_standings(session: AsyncSession) -> List[Dict]:
    """Regions ranked by the summed XP of their villages."""
    total_xp = func.coalesce(func.sum(Village.total_xp), 0).label("total_xp")
    result = await session.execute(
        select(Village.region, func.count(Village.id).label("village_count"), total_xp)
        .group_by(Village.region)
        .order_by(total_xp.desc(), Village.region)
    )
    return [
        {
            "rank": rank,
            "region": row.region,
            "village_count": row.village_count,
            "total_xp": int(row.total_xp),
        }
        for rank, row in enumerate(result.all(), start=1)
    ]
