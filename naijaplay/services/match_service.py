"""
Match service: stakes, payouts and match history.
"""

from typing import Dict, List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, insert, func
from naijaplay.database.models import GameType, Match, User, match_players
from naijaplay.services import achievement_service, quest_service, user_service
from naijaplay.utils.constants import (
    HOUSE_TAX_PERCENT,
    RANKED_WIN_BONUS_XP,
    MATCH_HISTORY_PAGE_SIZE,
)
from naijaplay.utils.datetime_utils import isoformat_or_none
from naijaplay.utils.exceptions import InsufficientFundsError, NaijaPlayError, NotFoundError
import logging

logger = logging.getLogger(__name__)


def compute_payout(stake: int, player_count: int) -> Dict[str, int]:
    """Pot, house tax (floored) and winner payout for a staked match."""
    pot = stake * player_count
    tax = pot * HOUSE_TAX_PERCENT // 100
    return {"pot": pot, "tax": tax, "payout": pot - tax}


def _unique_ids(player_ids: Sequence[int]) -> List[int]:
    return sorted(set(player_ids))


async def process_match_start(session: AsyncSession, player_ids: Sequence[int], stake: int) -> None:
    """
    Take the stake from every player, or from nobody.

    Player rows are locked (FOR UPDATE on PostgreSQL) in id order and every
    balance is checked before any debit.

    Raises:
        NotFoundError: If a player does not exist
        InsufficientFundsError: If any player cannot cover the stake
    """
    if stake <= 0:
        return
    ids = _unique_ids(player_ids)
    if not ids:
        return

    result = await session.execute(
        select(User.id, User.username, User.coins)
        .where(User.id.in_(ids))
        .order_by(User.id)
        .with_for_update()
    )
    rows = result.all()
    if len(rows) != len(ids):
        missing = set(ids) - {row.id for row in rows}
        raise NotFoundError(f"Players not found: {sorted(missing)}")

    broke = [row.username for row in rows if row.coins < stake]
    if broke:
        raise InsufficientFundsError(
            "Insufficient coins!", {"players": broke, "required": stake}
        )

    update_result = await session.execute(
        update(User)
        .where(User.id.in_(ids), User.coins >= stake)
        .values(coins=User.coins - stake)
        .execution_options(synchronize_session=False)
    )
    if update_result.rowcount != len(ids):
        # A balance moved under us; the caller's transaction is rolled back
        raise InsufficientFundsError("Insufficient coins!", {"required": stake})

    for player_id in ids:
        player = await session.get(User, player_id)
        if player is not None:
            await session.refresh(player)
    logger.info(f"Match starting: deducted {stake} coins from {len(ids)} players")


async def process_match_payout(
    session: AsyncSession, winner_id: int, loser_ids: Sequence[int], stake: int
) -> int:
    """
    Pay the pot minus house tax to the winner, plus ranked bonus XP.

    Returns:
        Coins paid to the winner (0 when there was no stake)
    """
    if stake <= 0:
        return 0
    losers = [pid for pid in _unique_ids(loser_ids) if pid != winner_id]
    amounts = compute_payout(stake, len(losers) + 1)

    await user_service.add_coins(session, winner_id, amounts["payout"])
    await user_service.add_xp(session, winner_id, RANKED_WIN_BONUS_XP)
    logger.info(
        f"Match ended: winner {winner_id} gets {amounts['payout']} coins "
        f"(pot {amounts['pot']}, tax {amounts['tax']})"
    )
    return amounts["payout"]


async def save_match_history(
    session: AsyncSession,
    game_type: str,
    player_ids: Sequence[int],
    winner_id: Optional[int] = None,
    stake: int = 0,
    score: int = 0,
    duration: int = 0,
    is_ranked: bool = False,
) -> Dict:
    """
    Record a match and its players.

    Raises:
        ValueError: If the game type is unknown, there are no players, or the
            winner did not play
    """
    game_type = GameType(game_type).value
    ids = _unique_ids(player_ids)
    if not ids:
        raise ValueError("A match needs at least one player")
    if winner_id is not None and winner_id not in ids:
        raise ValueError("Winner must be one of the players")

    match = Match(
        game_type=game_type,
        winner_id=winner_id,
        stake=stake,
        score=score,
        duration=duration,
        is_ranked=is_ranked,
    )
    session.add(match)
    await session.flush()
    await session.execute(
        insert(match_players), [{"match_id": match.id, "user_id": pid} for pid in ids]
    )
    await session.flush()
    await session.refresh(match)
    return _match_to_dict(match, ids)


async def complete_match(
    session: AsyncSession,
    game_type: str,
    player_ids: Sequence[int],
    winner_id: Optional[int] = None,
    stake: int = 0,
    score: int = 0,
    duration: int = 0,
    is_ranked: bool = False,
) -> Dict:
    """
    End-of-game bookkeeping: payout, history, quest progress, achievements.

    Returns:
        Dict with match, payout and unlocks (player id -> new achievements)
    """
    ids = _unique_ids(player_ids)
    payout = 0
    if winner_id is not None and stake > 0:
        payout = await process_match_payout(
            session, winner_id, [pid for pid in ids if pid != winner_id], stake
        )

    match = await save_match_history(
        session,
        game_type,
        ids,
        winner_id=winner_id,
        stake=stake,
        score=score,
        duration=duration,
        is_ranked=is_ranked,
    )

    unlocks = {}
    for player_id in ids:
        await quest_service.update_quest_progress(session, player_id, "PLAY")
        if player_id == winner_id:
            await quest_service.update_quest_progress(session, player_id, "WIN")
            if payout:
                await quest_service.update_quest_progress(
                    session, player_id, "EARN_COINS", payout
                )
        try:
            unlocked = await achievement_service.update_achievements(session, player_id)
        except NaijaPlayError as e:
            logger.warning(f"Achievement update failed for user {player_id}: {e}")
            continue
        if unlocked:
            unlocks[player_id] = unlocked

    return {"match": match, "payout": payout, "unlocks": unlocks}


async def get_match_history(
    session: AsyncSession, user_id: int, limit: int = MATCH_HISTORY_PAGE_SIZE
) -> List[Dict]:
    """Matches the user played, newest first."""
    result = await session.execute(
        select(Match)
        .join(match_players, match_players.c.match_id == Match.id)
        .where(match_players.c.user_id == user_id)
        .order_by(Match.created_at.desc(), Match.id.desc())
        .limit(limit)
    )
    matches = result.scalars().all()
    if not matches:
        return []

    player_result = await session.execute(
        select(match_players.c.match_id, match_players.c.user_id).where(
            match_players.c.match_id.in_([m.id for m in matches])
        )
    )
    players_by_match: Dict[int, List[int]] = {}
    for row in player_result.all():
        players_by_match.setdefault(row.match_id, []).append(row.user_id)

    return [_match_to_dict(m, sorted(players_by_match.get(m.id, []))) for m in matches]


async def count_matches(session: AsyncSession, user_id: int) -> int:
    result = await session.execute(
        select(func.count()).select_from(match_players).where(match_players.c.user_id == user_id)
    )
    return result.scalar_one()


async def count_wins(session: AsyncSession, user_id: int) -> int:
    result = await session.execute(select(func.count(Match.id)).where(Match.winner_id == user_id))
    return result.scalar_one()


def _match_to_dict(match: Match, player_ids: List[int]) -> Dict:
    return {
        "id": match.id,
        "game_type": match.game_type,
        "winner_id": match.winner_id,
        "stake": match.stake,
        "is_ranked": match.is_ranked,
        "score": match.score,
        "duration": match.duration,
        "player_ids": player_ids,
        "created_at": isoformat_or_none(match.created_at),
    }
