"""
Unit tests for quest service.

Tests daily quest generation, action matching, progress tracking and
reward claims.
"""

import random
from datetime import timedelta

import pytest

from naijaplay.database.models import Quest
from naijaplay.services import quest_service, user_service
from naijaplay.utils.datetime_utils import utcnow
from naijaplay.utils.exceptions import ConflictError, NotFoundError, PermissionDeniedError


async def _quest(db_session, user_id, title, target, **kwargs):
    return await quest_service.create_quest(
        db_session,
        user_id=user_id,
        title=title,
        description="test quest",
        target=target,
        **kwargs,
    )


# ──────────────────────────────────────────────────────────────
# Action matching
# ──────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "title, action, expected",
    [
        ("Win 3 Matches", "WIN", True),
        ("Win a Game", "WIN", True),
        ("Win a Game", "PLAY", True),
        ("Play 5 Games", "PLAY", True),
        ("Play 5 Games", "WIN", False),
        ("Earn 500 Coins", "EARN_COINS", True),
        ("Spend 200 Coins", "SPEND_COINS", True),
        ("Spend 200 Coins", "EARN_COINS", False),
    ],
)
def test_quest_matches_action(title, action, expected):
    assert quest_service.quest_matches_action(title, action) is expected


def test_unknown_action_rejected():
    with pytest.raises(ValueError, match="Unknown quest action"):
        quest_service.quest_matches_action("Win 3 Matches", "DANCE")


# ──────────────────────────────────────────────────────────────
# Creation / daily refresh
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_quest_validation(db_session, make_user):
    ada = await make_user("ada")
    with pytest.raises(ValueError, match="target"):
        await _quest(db_session, ada.id, "Win 3 Matches", 0)
    with pytest.raises(ValueError, match="negative"):
        await _quest(db_session, ada.id, "Win 3 Matches", 3, reward_coins=-1)
    with pytest.raises(ValueError):
        await _quest(db_session, ada.id, "Win 3 Matches", 3, quest_type="MONTHLY")


@pytest.mark.asyncio
async def test_refresh_daily_quests_generates_three_distinct(db_session, make_user):
    ada = await make_user("ada")

    quests = await quest_service.refresh_daily_quests(db_session, ada.id, rng=random.Random(7))
    assert len(quests) == 3
    assert len({q["title"] for q in quests}) == 3
    template_titles = {t.title for t in quest_service.QUEST_TEMPLATES}
    for quest in quests:
        assert quest["title"] in template_titles
        assert quest["type"] == "DAILY"
        assert quest["progress"] == 0
        assert quest["expires_at"] is not None

    # Second call the same day does not add more
    again = await quest_service.refresh_daily_quests(db_session, ada.id, rng=random.Random(99))
    assert [q["id"] for q in again] == [q["id"] for q in quests]


@pytest.mark.asyncio
async def test_refresh_uses_rng(db_session, make_user):
    ada = await make_user("ada")
    bayo = await make_user("bayo")

    first = await quest_service.refresh_daily_quests(db_session, ada.id, rng=random.Random(3))
    second = await quest_service.refresh_daily_quests(db_session, bayo.id, rng=random.Random(3))
    assert [q["title"] for q in first] == [q["title"] for q in second]


@pytest.mark.asyncio
async def test_expired_quests_are_not_active(db_session, make_user):
    ada = await make_user("ada")
    past = utcnow() - timedelta(hours=1)
    await _quest(db_session, ada.id, "Win 3 Matches", 3, expires_at=past)
    live = await _quest(db_session, ada.id, "Play 5 Games", 5)

    active = await quest_service.get_active_quests(db_session, ada.id)
    assert [q["id"] for q in active] == [live["id"]]

    # Expired quests do not advance either
    assert await quest_service.update_quest_progress(db_session, ada.id, "WIN") == 0


# ──────────────────────────────────────────────────────────────
# Progress
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_update_progress_completes_at_target(db_session, make_user):
    ada = await make_user("ada")
    win3 = await _quest(db_session, ada.id, "Win 3 Matches", 3)
    play5 = await _quest(db_session, ada.id, "Play 5 Games", 5)

    assert await quest_service.update_quest_progress(db_session, ada.id, "WIN") == 1
    assert await quest_service.update_quest_progress(db_session, ada.id, "WIN", amount=2) == 1

    quest = await db_session.get(Quest, win3["id"])
    assert quest.progress == 3
    assert quest.completed is True

    # Completed quests stop advancing
    assert await quest_service.update_quest_progress(db_session, ada.id, "WIN") == 0
    await db_session.refresh(quest)
    assert quest.progress == 3

    untouched = await db_session.get(Quest, play5["id"])
    assert untouched.progress == 0


@pytest.mark.asyncio
async def test_progress_overshoot_and_coin_amounts(db_session, make_user):
    ada = await make_user("ada")
    earn = await _quest(db_session, ada.id, "Earn 500 Coins", 500)

    await quest_service.update_quest_progress(db_session, ada.id, "EARN_COINS", amount=950)
    quest = await db_session.get(Quest, earn["id"])
    assert quest.progress == 950
    assert quest.completed is True


@pytest.mark.asyncio
async def test_progress_ignores_non_positive_amount(db_session, make_user):
    ada = await make_user("ada")
    await _quest(db_session, ada.id, "Win 3 Matches", 3)
    assert await quest_service.update_quest_progress(db_session, ada.id, "WIN", amount=0) == 0


# ──────────────────────────────────────────────────────────────
# Claims
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_claim_reward_once(db_session, make_user):
    ada = await make_user("ada", coins=100)
    quest = await _quest(db_session, ada.id, "Win a Game", 1, reward_xp=30, reward_coins=20)
    await quest_service.update_quest_progress(db_session, ada.id, "WIN")

    result = await quest_service.claim_quest_reward(db_session, ada.id, quest["id"])
    assert result["reward_coins"] == 20
    assert result["reward_xp"] == 30
    assert result["quest"]["claimed"] is True
    assert result["user"]["coins"] == 120
    assert result["user"]["xp"] == 30

    with pytest.raises(ConflictError, match="not eligible"):
        await quest_service.claim_quest_reward(db_session, ada.id, quest["id"])
    assert await user_service.get_balance(db_session, ada.id) == 120

    # Claimed quests leave the active list
    assert await quest_service.get_active_quests(db_session, ada.id) == []


@pytest.mark.asyncio
async def test_claim_incomplete_quest_rejected(db_session, make_user):
    ada = await make_user("ada")
    quest = await _quest(db_session, ada.id, "Win 3 Matches", 3, reward_coins=50)
    with pytest.raises(ConflictError):
        await quest_service.claim_quest_reward(db_session, ada.id, quest["id"])


@pytest.mark.asyncio
async def test_claim_other_users_quest_rejected(db_session, make_user):
    ada = await make_user("ada")
    bayo = await make_user("bayo")
    quest = await _quest(db_session, ada.id, "Win a Game", 1)
    await quest_service.update_quest_progress(db_session, ada.id, "WIN")

    with pytest.raises(PermissionDeniedError, match="Not your quest"):
        await quest_service.claim_quest_reward(db_session, bayo.id, quest["id"])
    with pytest.raises(NotFoundError):
        await quest_service.claim_quest_reward(db_session, ada.id, 999999)
