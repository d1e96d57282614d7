"""
Village service: team/faction management.
"""

from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, delete, func
from naijaplay.database.models import Village, User
from naijaplay.utils.exceptions import NotFoundError, UniqueViolationError, translate_integrity_error
from naijaplay.utils.sanitizer import sanitize_input
from naijaplay.utils.datetime_utils import isoformat_or_none
import logging

logger = logging.getLogger(__name__)


def _normalize_region(region: str) -> str:
    region = (region or "").strip().upper()
    if not region:
        raise ValueError("Region is required")
    return region


async def create_village(
    session: AsyncSession, name: str, region: str, icon: str = "🏘️"
) -> Dict:
    """
    Create a village.

    Raises:
        ValueError: If name or region is empty
        UniqueViolationError: If a village with this name exists
    """
    name = sanitize_input(name or "")
    if not name:
        raise ValueError("Village name is required")
    region = _normalize_region(region)

    existing = await session.execute(select(Village.id).where(Village.name == name))
    if existing.scalar_one_or_none():
        raise UniqueViolationError(f"Village '{name}' already exists")

    village = Village(name=name, region=region, icon=icon, total_xp=0)
    session.add(village)
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        raise translate_integrity_error(e, f"Village '{name}' already exists") from e
    await session.refresh(village)
    logger.info(f"Created village {village.id} ({name}, {region})")
    return _village_to_dict(village, member_count=0)


async def get_village(session: AsyncSession, village_id: int) -> Dict:
    """
    Get a village with its member count.

    Raises:
        NotFoundError: If the village does not exist
    """
    village = await session.get(Village, village_id)
    if not village:
        raise NotFoundError("Village not found")
    count_result = await session.execute(
        select(func.count(User.id)).where(User.village_id == village_id)
    )
    return _village_to_dict(village, member_count=count_result.scalar_one())


async def list_villages(session: AsyncSession, region: Optional[str] = None) -> List[Dict]:
    """List villages (optionally for one region) with member counts, by name."""
    member_count = func.count(User.id).label("member_count")
    query = (
        select(Village, member_count)
        .outerjoin(User, User.village_id == Village.id)
        .group_by(Village.id)
        .order_by(Village.name)
    )
    if region:
        query = query.where(Village.region == _normalize_region(region))

    result = await session.execute(query)
    return [_village_to_dict(village, member_count=count) for village, count in result.all()]


async def update_village(
    session: AsyncSession,
    village_id: int,
    name: Optional[str] = None,
    region: Optional[str] = None,
    icon: Optional[str] = None,
) -> Dict:
    """Update village fields."""
    village = await session.get(Village, village_id)
    if not village:
        raise NotFoundError("Village not found")

    if name is not None:
        name = sanitize_input(name)
        if not name:
            raise ValueError("Village name is required")
        clash = await session.execute(
            select(Village.id).where(Village.name == name, Village.id != village_id)
        )
        if clash.scalar_one_or_none():
            raise UniqueViolationError(f"Village '{name}' already exists")
        village.name = name
    if region is not None:
        village.region = _normalize_region(region)
    if icon is not None:
        village.icon = icon

    await session.flush()
    return await get_village(session, village_id)


async def delete_village(session: AsyncSession, village_id: int) -> None:
    """
    Delete a village; its members are left without a village (ON DELETE SET NULL).

    Raises:
        NotFoundError: If the village does not exist
    """
    result = await session.execute(delete(Village).where(Village.id == village_id))
    if result.rowcount == 0:
        raise NotFoundError("Village not found")
    await session.flush()
    logger.info(f"Deleted village {village_id}")


def _village_to_dict(village: Village, member_count: int = 0) -> Dict:
    return {
        "id": village.id,
        "name": village.name,
        "region": village.region,
        "icon": village.icon,
        "total_xp": village.total_xp,
        "member_count": member_count,
        "created_at": isoformat_or_none(village.created_at),
    }
