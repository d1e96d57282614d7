"""
Daily login reward service.
"""

from datetime import datetime
from typing import Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import update, or_
from naijaplay.database.models import User
from naijaplay.services import user_service
from naijaplay.utils.constants import (
    STREAK_RESET_HOURS,
    DAILY_REWARD_COINS_PER_DAY,
    DAILY_REWARD_MAX_COINS,
    DAILY_REWARD_XP_PER_DAY,
)
from naijaplay.utils.datetime_utils import utcnow, ensure_utc, start_of_utc_day
import logging

logger = logging.getLogger(__name__)


def next_streak(last_login: Optional[datetime], current_streak: int, now: datetime) -> int:
    """Streak after logging in at `now`; resets to 1 after STREAK_RESET_HOURS."""
    if last_login is None:
        return 1
    hours_since = (now - ensure_utc(last_login)).total_seconds() / 3600
    if hours_since > STREAK_RESET_HOURS:
        return 1
    return (current_streak or 1) + 1


def reward_for_streak(streak: int) -> Dict[str, int]:
    """Coins and XP granted for a given streak day."""
    return {
        "coins": min(streak * DAILY_REWARD_COINS_PER_DAY, DAILY_REWARD_MAX_COINS),
        "xp": DAILY_REWARD_XP_PER_DAY * streak,
    }


async def check_daily_reward(
    session: AsyncSession, user_id: int, now: Optional[datetime] = None
) -> Dict:
    """
    Grant the daily login reward if the user has not had one today (UTC).

    The claim is an UPDATE conditioned on last_login_at being before today,
    so two simultaneous calls grant at most one reward.

    Args:
        session: Database session
        user_id: User logging in
        now: Optional current time

    Returns:
        Dict with claimed, and when claimed: reward_coins, reward_xp,
        new_streak; always a message

    Raises:
        NotFoundError: If the user does not exist
    """
    now = ensure_utc(now) if now else utcnow()
    today = start_of_utc_day(now)

    user = await user_service.get_user_or_raise(session, user_id)
    await session.refresh(user)
    last_login = ensure_utc(user.last_login_at)

    if last_login is not None and last_login >= today:
        return {"claimed": False, "message": "Already claimed today, oga! Come back tomorrow. ✋"}

    streak = next_streak(last_login, user.login_streak, now)
    reward = reward_for_streak(streak)

    result = await session.execute(
        update(User)
        .where(
            User.id == user_id,
            or_(User.last_login_at.is_(None), User.last_login_at < today),
        )
        .values(
            coins=User.coins + reward["coins"],
            login_streak=streak,
            last_login_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        return {"claimed": False, "message": "Already claimed today, oga! Come back tomorrow. ✋"}

    await user_service.add_xp(session, user_id, reward["xp"])
    logger.info(
        f"User {user_id} daily reward day {streak}: +{reward['coins']} coins, +{reward['xp']} xp"
    )
    return {
        "claimed": True,
        "reward_coins": reward["coins"],
        "reward_xp": reward["xp"],
        "new_streak": streak,
        "message": (
            f"Oshey! Day {streak} login. You get {reward['coins']} coins "
            f"and {reward['xp']} XP! 🥖🔥"
        ),
    }
