"""
Quest service: daily quest generation, progress tracking, reward claims.
"""

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, or_, func
from naijaplay.database.models import Quest, QuestType, User
from naijaplay.services import user_service
from naijaplay.utils.constants import DAILY_QUEST_COUNT
from naijaplay.utils.datetime_utils import (
    utcnow,
    start_of_utc_day,
    end_of_utc_day,
    isoformat_or_none,
)
from naijaplay.utils.exceptions import ConflictError, NotFoundError, PermissionDeniedError
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestTemplate:
    """Blueprint for a generated quest."""

    title: str
    description: str
    target: int
    reward_xp: int
    reward_coins: int


QUEST_TEMPLATES: List[QuestTemplate] = [
    QuestTemplate("Win 3 Matches", "Show dem say you be boss.", 3, 100, 50),
    QuestTemplate("Play 5 Games", "Keep the hustle going.", 5, 50, 100),
    QuestTemplate("Earn 500 Coins", "Secure the bag!", 500, 50, 100),
    QuestTemplate("Spend 200 Coins", "Money must circulate.", 200, 25, 25),
    QuestTemplate("Win a Game", "Just one win for the road.", 1, 30, 20),
]

# Progress actions and the title keywords of the quests they advance
QUEST_ACTIONS: Dict[str, List[str]] = {
    "WIN": ["Win"],
    "PLAY": ["Play", "Game"],
    "EARN_COINS": ["Earn"],
    "SPEND_COINS": ["Spend"],
}


def quest_matches_action(title: str, action: str) -> bool:
    """True if a quest with this title is advanced by the given action."""
    keywords = QUEST_ACTIONS.get(action)
    if keywords is None:
        raise ValueError(f"Unknown quest action: {action}")
    return any(keyword in title for keyword in keywords)


def _active_filter(now: datetime):
    return or_(Quest.expires_at.is_(None), Quest.expires_at > now)


async def create_quest(
    session: AsyncSession,
    user_id: int,
    title: str,
    description: str,
    target: int,
    reward_xp: int = 0,
    reward_coins: int = 0,
    quest_type: str = QuestType.DAILY.value,
    expires_at: Optional[datetime] = None,
) -> Dict:
    """
    Assign a quest to a user.

    Raises:
        ValueError: If target or rewards are not positive/non-negative
    """
    if target < 1:
        raise ValueError("Quest target must be at least 1")
    if reward_xp < 0 or reward_coins < 0:
        raise ValueError("Quest rewards cannot be negative")

    quest = Quest(
        user_id=user_id,
        title=title,
        description=description,
        type=QuestType(quest_type).value,
        target=target,
        reward_xp=reward_xp,
        reward_coins=reward_coins,
        progress=0,
        completed=False,
        claimed=False,
        expires_at=expires_at,
    )
    session.add(quest)
    await session.flush()
    await session.refresh(quest)
    return _quest_to_dict(quest)


async def get_active_quests(
    session: AsyncSession, user_id: int, now: Optional[datetime] = None
) -> List[Dict]:
    """Unexpired, unclaimed quests for a user, oldest first."""
    now = now or utcnow()
    result = await session.execute(
        select(Quest)
        .where(Quest.user_id == user_id, Quest.claimed.is_(False), _active_filter(now))
        .order_by(Quest.created_at, Quest.id)
    )
    return [_quest_to_dict(q) for q in result.scalars().all()]


async def refresh_daily_quests(
    session: AsyncSession,
    user_id: int,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> List[Dict]:
    """
    Give the user today's daily quests if they have none yet.

    Picks DAILY_QUEST_COUNT distinct templates; they expire at the next UTC
    midnight.

    Args:
        session: Database session
        user_id: User to refresh
        rng: Optional random source (tests pass a seeded one)
        now: Optional current time

    Returns:
        The user's active quests
    """
    now = now or utcnow()
    today = start_of_utc_day(now)

    # Write-lock the user row so concurrent refreshes run one after the other
    await session.execute(
        update(User).where(User.id == user_id).values(updated_at=func.now())
        .execution_options(synchronize_session=False)
    )

    existing = await session.execute(
        select(Quest.id)
        .where(
            Quest.user_id == user_id,
            Quest.type == QuestType.DAILY.value,
            Quest.created_at >= today,
        )
        .limit(1)
    )
    if existing.scalar_one_or_none() is None:
        rng = rng or random.Random()
        expires_at = end_of_utc_day(now)
        for template in rng.sample(QUEST_TEMPLATES, DAILY_QUEST_COUNT):
            await create_quest(
                session,
                user_id=user_id,
                title=template.title,
                description=template.description,
                target=template.target,
                reward_xp=template.reward_xp,
                reward_coins=template.reward_coins,
                quest_type=QuestType.DAILY.value,
                expires_at=expires_at,
            )
        logger.info(f"Generated {DAILY_QUEST_COUNT} daily quests for user {user_id}")

    return await get_active_quests(session, user_id, now=now)


async def update_quest_progress(
    session: AsyncSession,
    user_id: int,
    action: str,
    amount: int = 1,
    now: Optional[datetime] = None,
) -> int:
    """
    Advance the user's open quests that match an action.

    Progress and completion are written in one UPDATE per quest
    (progress = progress + amount), so concurrent events never lose counts.

    Args:
        session: Database session
        user_id: User whose quests advance
        action: WIN, PLAY, EARN_COINS or SPEND_COINS
        amount: Increment (default 1)

    Returns:
        Number of quests advanced
    """
    if amount <= 0:
        return 0
    now = now or utcnow()

    result = await session.execute(
        select(Quest.id, Quest.title).where(
            Quest.user_id == user_id,
            Quest.completed.is_(False),
            _active_filter(now),
        )
    )
    quest_ids = [row.id for row in result.all() if quest_matches_action(row.title, action)]
    if not quest_ids:
        return 0

    new_progress = Quest.progress + amount
    await session.execute(
        update(Quest)
        .where(Quest.id.in_(quest_ids), Quest.completed.is_(False))
        .values(progress=new_progress, completed=new_progress >= Quest.target)
        .execution_options(synchronize_session=False)
    )
    await session.flush()
    # Loaded Quest objects are now stale
    for quest_id in quest_ids:
        quest = await session.get(Quest, quest_id)
        if quest is not None:
            await session.refresh(quest)
    return len(quest_ids)


async def claim_quest_reward(session: AsyncSession, user_id: int, quest_id: int) -> Dict:
    """
    Claim the rewards of a completed quest exactly once.

    The claimed flag is flipped with a conditional UPDATE, so a double claim
    (even concurrent) grants rewards only once.

    Returns:
        Dict with quest, reward_xp, reward_coins and the updated user

    Raises:
        NotFoundError: If the quest does not exist
        PermissionDeniedError: If the quest belongs to someone else
        ConflictError: If the quest is not completed or already claimed
    """
    quest = await session.get(Quest, quest_id)
    if not quest:
        raise NotFoundError("Quest not found")
    if quest.user_id != user_id:
        raise PermissionDeniedError("Not your quest")

    result = await session.execute(
        update(Quest)
        .where(Quest.id == quest_id, Quest.completed.is_(True), Quest.claimed.is_(False))
        .values(claimed=True)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise ConflictError("Quest not eligible for claim.")
    await session.refresh(quest)

    await user_service.add_coins(session, user_id, quest.reward_coins)
    user = await user_service.add_xp(session, user_id, quest.reward_xp)
    logger.info(
        f"User {user_id} claimed quest {quest_id}: "
        f"+{quest.reward_coins} coins, +{quest.reward_xp} xp"
    )
    return {
        "quest": _quest_to_dict(quest),
        "reward_xp": quest.reward_xp,
        "reward_coins": quest.reward_coins,
        "user": user,
    }


def _quest_to_dict(quest: Quest) -> Dict:
    return {
        "id": quest.id,
        "user_id": quest.user_id,
        "title": quest.title,
        "description": quest.description,
        "type": quest.type,
        "target": quest.target,
        "progress": quest.progress,
        "completed": quest.completed,
        "claimed": quest.claimed,
        "reward_xp": quest.reward_xp,
        "reward_coins": quest.reward_coins,
        "expires_at": isoformat_or_none(quest.expires_at),
        "created_at": isoformat_or_none(quest.created_at),
    }
