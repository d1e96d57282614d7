"""Friend system and direct message route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from naijaplay.api.routes import limiter, http_error, server_error
from naijaplay.api.auth_dependencies import require_user
from naijaplay.database.db import get_db_session
from naijaplay.services import achievement_service, friend_service, message_service
from naijaplay.models.schemas import (
    FriendRequestCreate,
    FriendRequestRespond,
    FriendRequestResponse,
    FriendListResponse,
    MessageCreate,
    MessageResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/social/request", response_model=FriendRequestResponse)
@limiter.limit("20/minute")
async def send_friend_request(
    request: Request,
    payload: FriendRequestCreate,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Send a friend request by username."""
    try:
        return await friend_service.send_friend_request(session, user["id"], payload.username)
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error sending friend request")


@router.post("/api/social/request/{request_id}/respond")
async def respond_to_friend_request(
    request_id: int,
    payload: FriendRequestRespond,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Accept or reject a pending friend request."""
    try:
        friendship = await friend_service.respond_to_request(
            session, user["id"], request_id, payload.accept
        )
        if friendship is None:
            return {"status": "ok", "message": "Friend request rejected", "friendship": None}

        # Both sides may now qualify for the friends achievement
        for user_id in (friendship["user_id"], friendship["friend_id"]):
            await achievement_service.update_achievements(session, user_id)
        return {"status": "ok", "message": "Una don be paddy now!", "friendship": friendship}
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error responding to friend request")


@router.delete("/api/social/request/{request_id}")
async def cancel_friend_request(
    request_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Cancel an outgoing friend request."""
    try:
        await friend_service.cancel_friend_request(session, user["id"], request_id)
        return {"status": "ok", "message": "Friend request cancelled"}
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error cancelling friend request")


@router.get("/api/social/friends", response_model=FriendListResponse)
async def get_friends(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get current user's friends list (paginated)."""
    try:
        offset = (page - 1) * page_size
        return await friend_service.get_friends(session, user["id"], limit=page_size, offset=offset)
    except Exception as e:
        raise server_error(e, "Error fetching friends")


@router.delete("/api/social/friends/{friend_id}")
async def remove_friend(
    friend_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Remove a friend (unfriend)."""
    try:
        await friend_service.remove_friend(session, user["id"], friend_id)
        return {"status": "ok", "message": "Friend removed"}
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error removing friend")


@router.get("/api/social/requests", response_model=List[FriendRequestResponse])
async def get_friend_requests(
    direction: str = Query("incoming", pattern="^(incoming|outgoing|both)$"),
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get pending friend requests."""
    try:
        return await friend_service.get_pending_requests(session, user["id"], direction=direction)
    except Exception as e:
        raise server_error(e, "Error fetching friend requests")


@router.get("/api/social/friends/{other_user_id}/mutual")
async def get_mutual_friends(
    other_user_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get mutual friends between the current user and another user."""
    try:
        return await friend_service.get_mutual_friends(session, user["id"], other_user_id)
    except Exception as e:
        raise server_error(e, "Error fetching mutual friends")


@router.post("/api/social/messages", response_model=MessageResponse)
@limiter.limit("60/minute")
async def send_message(
    request: Request,
    payload: MessageCreate,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Send a direct message to a friend."""
    try:
        return await message_service.send_message(
            session, user["id"], payload.receiver_id, payload.text
        )
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error sending message")


@router.get("/api/social/messages/{friend_id}", response_model=List[MessageResponse])
async def get_conversation(
    friend_id: int,
    limit: int = Query(50, ge=1, le=200),
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Conversation with a friend, oldest first; marks their messages read."""
    try:
        messages = await message_service.get_conversation(session, user["id"], friend_id, limit=limit)
        await message_service.mark_conversation_read(session, user["id"], friend_id)
        return messages
    except Exception as e:
        raise server_error(e, "Error fetching messages")
