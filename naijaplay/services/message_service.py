"""
Direct message service. Only friends can message each other.
"""

from typing import Dict, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, and_, or_
from naijaplay.database.models import DirectMessage, User
from naijaplay.services import friend_service
from naijaplay.utils.constants import MESSAGE_MAX_LENGTH, CONVERSATION_PAGE_SIZE
from naijaplay.utils.datetime_utils import isoformat_or_none
from naijaplay.utils.exceptions import NotFoundError, PermissionDeniedError
from naijaplay.utils.sanitizer import sanitize_input
import logging

logger = logging.getLogger(__name__)


async def send_message(
    session: AsyncSession, sender_id: int, receiver_id: int, text: str
) -> Dict:
    """
    Send a direct message to a friend.

    Args:
        session: Database session
        sender_id: Sending user
        receiver_id: Receiving user
        text: Message body (markup is stripped)

    Returns:
        Message dict

    Raises:
        ValueError: If the text is empty or too long
        NotFoundError: If the receiver does not exist
        PermissionDeniedError: If the users are not friends
    """
    text = sanitize_input(text or "")
    if not text:
        raise ValueError("Message cannot be empty")
    if len(text) > MESSAGE_MAX_LENGTH:
        raise ValueError(f"Message must be at most {MESSAGE_MAX_LENGTH} characters")

    receiver = await session.get(User, receiver_id)
    if not receiver:
        raise NotFoundError("User not found")

    if not await friend_service.are_friends(session, sender_id, receiver_id):
        raise PermissionDeniedError("You must be friends to DM")

    message = DirectMessage(sender_id=sender_id, receiver_id=receiver_id, text=text, read=False)
    session.add(message)
    await session.flush()
    await session.refresh(message)
    return _message_to_dict(message)


async def get_conversation(
    session: AsyncSession,
    user_id: int,
    friend_id: int,
    limit: int = CONVERSATION_PAGE_SIZE,
) -> List[Dict]:
    """
    Get the latest messages between two users, oldest first.

    Args:
        session: Database session
        user_id: Current user
        friend_id: Other participant
        limit: Max messages (the most recent ones are kept)

    Returns:
        List of message dicts in chronological order
    """
    result = await session.execute(
        select(DirectMessage)
        .where(
            or_(
                and_(DirectMessage.sender_id == user_id, DirectMessage.receiver_id == friend_id),
                and_(DirectMessage.sender_id == friend_id, DirectMessage.receiver_id == user_id),
            )
        )
        .order_by(DirectMessage.created_at.desc(), DirectMessage.id.desc())
        .limit(limit)
    )
    messages = list(result.scalars().all())
    messages.reverse()
    return [_message_to_dict(m) for m in messages]


async def mark_conversation_read(session: AsyncSession, user_id: int, friend_id: int) -> int:
    """
    Mark every unread message from friend_id to user_id as read.

    Returns:
        Number of messages updated
    """
    result = await session.execute(
        update(DirectMessage)
        .where(
            DirectMessage.sender_id == friend_id,
            DirectMessage.receiver_id == user_id,
            DirectMessage.read.is_(False),
        )
        .values(read=True)
    )
    await session.flush()
    return result.rowcount


async def get_unread_count(session: AsyncSession, user_id: int) -> int:
    """Number of unread messages received by user_id."""
    result = await session.execute(
        select(func.count(DirectMessage.id)).where(
            DirectMessage.receiver_id == user_id,
            DirectMessage.read.is_(False),
        )
    )
    return result.scalar_one()


def _message_to_dict(message: DirectMessage) -> Dict:
    return {
        "id": message.id,
        "sender_id": message.sender_id,
        "receiver_id": message.receiver_id,
        "text": message.text,
        "read": message.read,
        "created_at": isoformat_or_none(message.created_at),
    }
