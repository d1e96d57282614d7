"""
Achievement service.

Unlocked achievements live in users.achievements as a JSON object keyed by
achievement id; each value is an AchievementRecord.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from naijaplay.database.models import Match, User, match_players
from naijaplay.services import friend_service, user_service
from naijaplay.utils.datetime_utils import utcnow
import logging

logger = logging.getLogger(__name__)


class AchievementRecord(BaseModel):
    """Stored unlock state of one achievement."""

    unlocked: bool = True
    date: datetime


@dataclass(frozen=True)
class UserStats:
    """Counters the achievement checks look at."""

    matches: int
    wins: int
    coins: int
    friends: int


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    reward_coins: int
    reward_xp: int
    check: Callable[[UserStats], bool]

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "reward_coins": self.reward_coins,
            "reward_xp": self.reward_xp,
        }


ACHIEVEMENTS: List[Achievement] = [
    Achievement(
        "FIRST_BATTLE",
        "STREET BEGINNER",
        "Participate in your first match.",
        50,
        100,
        lambda stats: stats.matches >= 1,
    ),
    Achievement(
        "LOCAL_CHAMPION",
        "STREET KING",
        "Win 10 matches.",
        500,
        1000,
        lambda stats: stats.wins >= 10,
    ),
    Achievement(
        "LOADED_GEE",
        "MONEY BAGS",
        "Hold 5000+ coins.",
        200,
        500,
        lambda stats: stats.coins >= 5000,
    ),
    Achievement(
        "SQUAD_GOALS",
        "SOCIAL VIBE",
        "Have 1+ friends.",
        100,
        200,
        lambda stats: stats.friends >= 1,
    ),
]

ACHIEVEMENTS_BY_ID: Dict[str, Achievement] = {a.id: a for a in ACHIEVEMENTS}


def parse_achievements(raw: Dict) -> Dict[str, AchievementRecord]:
    """
    Parse the stored JSON into records.

    Unknown ids and malformed entries are dropped with a warning rather than
    failing the whole profile.
    """
    records = {}
    for achievement_id, value in (raw or {}).items():
        if achievement_id not in ACHIEVEMENTS_BY_ID:
            logger.warning(f"Ignoring unknown achievement id {achievement_id!r}")
            continue
        try:
            records[achievement_id] = AchievementRecord.model_validate(value)
        except ValueError as e:
            logger.warning(f"Ignoring malformed achievement {achievement_id!r}: {e}")
    return records


async def get_user_stats(session: AsyncSession, user_id: int) -> UserStats:
    user = await user_service.get_user_or_raise(session, user_id)
    matches = await session.execute(
        select(func.count()).select_from(match_players).where(match_players.c.user_id == user_id)
    )
    wins = await session.execute(select(func.count(Match.id)).where(Match.winner_id == user_id))
    return UserStats(
        matches=matches.scalar_one(),
        wins=wins.scalar_one(),
        coins=user.coins,
        friends=await friend_service.count_friends(session, user_id),
    )


async def get_achievements(session: AsyncSession, user_id: int) -> List[Dict]:
    """
    Every achievement with the user's unlock state.

    Returns:
        List of achievement dicts with unlocked and unlocked_at
    """
    user = await user_service.get_user_or_raise(session, user_id)
    records = parse_achievements(user.achievements)
    items = []
    for achievement in ACHIEVEMENTS:
        record = records.get(achievement.id)
        item = achievement.to_dict()
        item["unlocked"] = bool(record and record.unlocked)
        item["unlocked_at"] = record.date.isoformat() if record else None
        items.append(item)
    return items


async def update_achievements(session: AsyncSession, user_id: int) -> List[Dict]:
    """
    Unlock every achievement the user now qualifies for and pay its rewards.

    Returns:
        The newly unlocked achievements (empty if none)

    Raises:
        NotFoundError: If the user does not exist
    """
    user = await user_service.get_user_or_raise(session, user_id)
    await session.refresh(user)
    records = parse_achievements(user.achievements)
    stats = await get_user_stats(session, user_id)

    new_unlocks = []
    for achievement in ACHIEVEMENTS:
        if achievement.id in records or not achievement.check(stats):
            continue
        records[achievement.id] = AchievementRecord(unlocked=True, date=utcnow())
        new_unlocks.append(achievement)

    if not new_unlocks:
        return []

    # Reassign so the JSON column is flagged dirty
    user.achievements = {key: record.model_dump(mode="json") for key, record in records.items()}
    await session.flush()

    for achievement in new_unlocks:
        await user_service.add_coins(session, user_id, achievement.reward_coins)
        await user_service.add_xp(session, user_id, achievement.reward_xp)
        logger.info(f"User {user_id} unlocked achievement {achievement.id}")

    return [a.to_dict() for a in new_unlocks]
