"""
Friend service for managing friend requests and friendships.

A friendship is a single directed row (user_id -> friend_id). While PENDING
it is a request from user_id to friend_id; once ACCEPTED it is read in
both directions.
"""

from typing import List, Dict, Set, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_, or_, case
from sqlalchemy.exc import IntegrityError
from naijaplay.database.models import Friendship, FriendshipStatus, User
from naijaplay.utils.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    translate_integrity_error,
)
from naijaplay.utils.datetime_utils import isoformat_or_none
import logging

logger = logging.getLogger(__name__)


def _between(user_id: int, other_user_id: int):
    """WHERE clause matching a friendship row between two users in either direction."""
    return or_(
        and_(Friendship.user_id == user_id, Friendship.friend_id == other_user_id),
        and_(Friendship.user_id == other_user_id, Friendship.friend_id == user_id),
    )


async def get_friend_ids(session: AsyncSession, user_id: int) -> Set[int]:
    """
    Get the set of all accepted friend user_ids for a given user.

    Args:
        session: Database session
        user_id: User to look up friends for

    Returns:
        Set of friend user IDs
    """
    result = await session.execute(
        select(
            case(
                (Friendship.user_id == user_id, Friendship.friend_id),
                else_=Friendship.user_id,
            )
        ).where(
            and_(
                Friendship.status == FriendshipStatus.ACCEPTED.value,
                or_(Friendship.user_id == user_id, Friendship.friend_id == user_id),
            )
        )
    )
    return set(result.scalars().all())


async def get_friendship_between(
    session: AsyncSession, user_id: int, other_user_id: int
) -> Optional[Friendship]:
    """Get the friendship row (any status, either direction) between two users."""
    result = await session.execute(select(Friendship).where(_between(user_id, other_user_id)))
    return result.scalars().first()


async def are_friends(session: AsyncSession, user_id: int, other_user_id: int) -> bool:
    """
    Check if two users are (accepted) friends.

    Args:
        session: Database session
        user_id: First user ID
        other_user_id: Second user ID

    Returns:
        True if the users are friends
    """
    result = await session.execute(
        select(Friendship.id).where(
            and_(
                Friendship.status == FriendshipStatus.ACCEPTED.value,
                _between(user_id, other_user_id),
            )
        )
    )
    return result.scalars().first() is not None


async def send_friend_request(
    session: AsyncSession, user_id: int, target_username: str
) -> Dict:
    """
    Send a friend request from one user to another, by username.

    Args:
        session: Database session
        user_id: User sending the request
        target_username: Username of the user receiving the request

    Returns:
        Dict with friend request data

    Raises:
        NotFoundError: If no user has target_username
        ValueError: If the target is the sender
        ConflictError: If already friends or a request exists in either direction
    """
    result = await session.execute(select(User.id).where(User.username == target_username))
    target_id = result.scalar_one_or_none()
    if target_id is None:
        raise NotFoundError("User not found")
    if target_id == user_id:
        raise ValueError("You cannot add yourself")

    existing = await get_friendship_between(session, user_id, target_id)
    if existing:
        if existing.status == FriendshipStatus.ACCEPTED.value:
            raise ConflictError("Already friends")
        if existing.user_id == user_id:
            raise ConflictError("Friend request already sent")
        raise ConflictError("They already sent you a request. Check your inbox!")

    friendship = Friendship(
        user_id=user_id,
        friend_id=target_id,
        status=FriendshipStatus.PENDING.value,
    )
    session.add(friendship)
    try:
        await session.flush()
    except IntegrityError as e:
        # A concurrent request for the same pair got there first
        await session.rollback()
        raise translate_integrity_error(e, "Friend request already exists") from e
    await session.refresh(friendship)

    logger.info(f"User {user_id} sent friend request {friendship.id} to {target_id}")
    return await _format_friendship(session, friendship)


async def _get_request_for_addressee(
    session: AsyncSession, request_id: int, user_id: int
) -> Friendship:
    """Load a pending request and check that user_id is its addressee."""
    friendship = await session.get(Friendship, request_id)
    if not friendship:
        raise NotFoundError("Request not found")
    if friendship.friend_id != user_id:
        raise PermissionDeniedError("Not authorized to respond to this request")
    if friendship.status != FriendshipStatus.PENDING.value:
        raise ConflictError("Friend request is no longer pending")
    return friendship


async def accept_friend_request(session: AsyncSession, user_id: int, request_id: int) -> Dict:
    """
    Accept a pending friend request addressed to user_id.

    Returns:
        Dict with updated friendship data

    Raises:
        NotFoundError, PermissionDeniedError, ConflictError
    """
    friendship = await _get_request_for_addressee(session, request_id, user_id)
    friendship.status = FriendshipStatus.ACCEPTED.value
    await session.flush()
    await session.refresh(friendship)
    logger.info(f"User {user_id} accepted friend request {request_id}")
    return await _format_friendship(session, friendship)


async def decline_friend_request(session: AsyncSession, user_id: int, request_id: int) -> None:
    """
    Decline a pending friend request by deleting it.

    Deleting the row lets the sender re-send later without hitting the
    unique constraint on (user_id, friend_id).
    """
    friendship = await _get_request_for_addressee(session, request_id, user_id)
    await session.delete(friendship)
    await session.flush()


async def respond_to_request(
    session: AsyncSession, user_id: int, request_id: int, accept: bool
) -> Optional[Dict]:
    """
    Accept or reject a friend request.

    Returns:
        The accepted friendship dict, or None when rejected
    """
    if accept:
        return await accept_friend_request(session, user_id, request_id)
    await decline_friend_request(session, user_id, request_id)
    return None


async def cancel_friend_request(session: AsyncSession, user_id: int, request_id: int) -> None:
    """
    Cancel an outgoing friend request (delete it).

    Raises:
        NotFoundError: If request not found
        PermissionDeniedError: If user_id did not send it
        ConflictError: If it was already accepted
    """
    friendship = await session.get(Friendship, request_id)
    if not friendship:
        raise NotFoundError("Request not found")
    if friendship.user_id != user_id:
        raise PermissionDeniedError("Not authorized to cancel this request")
    if friendship.status != FriendshipStatus.PENDING.value:
        raise ConflictError("Friend request is no longer pending")

    await session.delete(friendship)
    await session.flush()


async def remove_friend(session: AsyncSession, user_id: int, friend_user_id: int) -> None:
    """
    Remove an accepted friendship between two users.

    Raises:
        NotFoundError: If not currently friends
    """
    result = await session.execute(
        select(Friendship).where(
            and_(
                Friendship.status == FriendshipStatus.ACCEPTED.value,
                _between(user_id, friend_user_id),
            )
        )
    )
    friendship = result.scalars().first()
    if not friendship:
        raise NotFoundError("Not friends with this user")

    await session.delete(friendship)
    await session.flush()
    logger.info(f"User {user_id} removed friend {friend_user_id}")


async def get_friends(
    session: AsyncSession, user_id: int, limit: int = 50, offset: int = 0
) -> Dict:
    """
    Get paginated list of friends for a user, newest friendships first.

    Args:
        session: Database session
        user_id: User to get friends for
        limit: Max results
        offset: Pagination offset

    Returns:
        Dict with items (list of friend dicts) and total_count
    """
    friend_id_col = case(
        (Friendship.user_id == user_id, Friendship.friend_id),
        else_=Friendship.user_id,
    ).label("friend_user_id")

    base_query = select(Friendship.id, friend_id_col).where(
        and_(
            Friendship.status == FriendshipStatus.ACCEPTED.value,
            or_(Friendship.user_id == user_id, Friendship.friend_id == user_id),
        )
    )

    count_result = await session.execute(select(func.count()).select_from(base_query.subquery()))
    total_count = count_result.scalar_one() or 0

    paginated = (
        base_query.order_by(Friendship.created_at.desc(), Friendship.id.desc())
        .limit(limit)
        .offset(offset)
    )
    result = await session.execute(paginated)
    friend_rows = result.all()

    if not friend_rows:
        return {"items": [], "total_count": total_count}

    friend_ids = [row.friend_user_id for row in friend_rows]
    friendship_ids = {row.friend_user_id: row.id for row in friend_rows}

    user_result = await session.execute(
        select(User.id, User.username, User.avatar, User.title, User.level, User.status).where(
            User.id.in_(friend_ids)
        )
    )
    user_map = {row.id: row for row in user_result.all()}

    items = []
    for fid in friend_ids:
        u = user_map.get(fid)
        if not u:
            continue
        items.append(
            {
                "id": friendship_ids[fid],
                "user_id": fid,
                "username": u.username,
                "avatar": u.avatar,
                "title": u.title,
                "level": u.level,
                "status": getattr(u.status, "value", u.status),
            }
        )

    return {"items": items, "total_count": total_count}


async def get_pending_requests(
    session: AsyncSession, user_id: int, direction: str = "incoming"
) -> List[Dict]:
    """
    Get pending friend requests for a user.

    Args:
        session: Database session
        user_id: User to get requests for
        direction: "incoming", "outgoing", or "both"

    Returns:
        List of friend request dicts
    """
    query = select(Friendship).where(Friendship.status == FriendshipStatus.PENDING.value)

    if direction == "incoming":
        query = query.where(Friendship.friend_id == user_id)
    elif direction == "outgoing":
        query = query.where(Friendship.user_id == user_id)
    else:
        query = query.where(or_(Friendship.user_id == user_id, Friendship.friend_id == user_id))

    query = query.order_by(Friendship.created_at.desc(), Friendship.id.desc())
    result = await session.execute(query)
    return await _format_friendships_batch(session, result.scalars().all())


async def get_mutual_friends(
    session: AsyncSession, user_id: int, other_user_id: int
) -> List[Dict]:
    """
    Get the list of mutual friends between two users.

    Returns:
        List of dicts with mutual friend info
    """
    mutual_ids = await get_friend_ids(session, user_id) & await get_friend_ids(
        session, other_user_id
    )
    if not mutual_ids:
        return []

    result = await session.execute(
        select(User.id, User.username, User.avatar)
        .where(User.id.in_(list(mutual_ids)))
        .order_by(User.username)
    )
    return [
        {"user_id": row.id, "username": row.username, "avatar": row.avatar}
        for row in result.all()
    ]


async def count_friends(session: AsyncSession, user_id: int) -> int:
    """Number of accepted friendships (either direction)."""
    result = await session.execute(
        select(func.count(Friendship.id)).where(
            and_(
                Friendship.status == FriendshipStatus.ACCEPTED.value,
                or_(Friendship.user_id == user_id, Friendship.friend_id == user_id),
            )
        )
    )
    return result.scalar_one()


async def _format_friendships_batch(
    session: AsyncSession, friendships: List[Friendship]
) -> List[Dict]:
    """
    Batch-format Friendship ORM objects into response dicts with usernames.

    Fetches all referenced user info in a single query instead of per-row.
    """
    if not friendships:
        return []

    user_ids = set()
    for f in friendships:
        user_ids.add(f.user_id)
        user_ids.add(f.friend_id)

    result = await session.execute(
        select(User.id, User.username, User.avatar).where(User.id.in_(list(user_ids)))
    )
    user_map = {row.id: row for row in result.all()}

    formatted = []
    for f in friendships:
        sender = user_map.get(f.user_id)
        receiver = user_map.get(f.friend_id)
        formatted.append({
            "id": f.id,
            "user_id": f.user_id,
            "username": sender.username if sender else "Unknown",
            "avatar": sender.avatar if sender else None,
            "friend_id": f.friend_id,
            "friend_username": receiver.username if receiver else "Unknown",
            "friend_avatar": receiver.avatar if receiver else None,
            "status": f.status,
            "created_at": isoformat_or_none(f.created_at),
        })
    return formatted


async def _format_friendship(session: AsyncSession, friendship: Friendship) -> Dict:
    """Format a single Friendship via the batch formatter."""
    results = await _format_friendships_batch(session, [friendship])
    return results[0]
