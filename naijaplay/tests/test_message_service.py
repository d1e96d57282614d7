"""
Unit tests for direct messages between friends.
"""

import pytest
import pytest_asyncio

from naijaplay.services import friend_service, message_service
from naijaplay.utils.exceptions import NotFoundError, PermissionDeniedError


@pytest_asyncio.fixture
async def friends(db_session, make_user):
    """Ada and Bayo are friends; Chidi is a stranger."""
    ada = await make_user("ada")
    bayo = await make_user("bayo")
    chidi = await make_user("chidi")
    req = await friend_service.send_friend_request(db_session, ada.id, "bayo")
    await friend_service.accept_friend_request(db_session, bayo.id, req["id"])
    return {"ada": ada.id, "bayo": bayo.id, "chidi": chidi.id}


@pytest.mark.asyncio
async def test_send_message_between_friends(db_session, friends):
    message = await message_service.send_message(
        db_session, friends["ada"], friends["bayo"], "How far?"
    )
    assert message["sender_id"] == friends["ada"]
    assert message["receiver_id"] == friends["bayo"]
    assert message["text"] == "How far?"
    assert message["read"] is False


@pytest.mark.asyncio
async def test_strangers_cannot_message(db_session, friends):
    with pytest.raises(PermissionDeniedError, match="must be friends"):
        await message_service.send_message(db_session, friends["ada"], friends["chidi"], "Hi")


@pytest.mark.asyncio
async def test_message_validation(db_session, friends):
    with pytest.raises(ValueError, match="empty"):
        await message_service.send_message(db_session, friends["ada"], friends["bayo"], "   ")
    with pytest.raises(ValueError, match="at most"):
        await message_service.send_message(
            db_session, friends["ada"], friends["bayo"], "x" * 501
        )
    with pytest.raises(NotFoundError):
        await message_service.send_message(db_session, friends["ada"], 999999, "Hi")


@pytest.mark.asyncio
async def test_message_markup_stripped(db_session, friends):
    message = await message_service.send_message(
        db_session, friends["ada"], friends["bayo"], "<script>steal()</script><i>Oya</i> play"
    )
    assert message["text"] == "Oya play"


@pytest.mark.asyncio
async def test_conversation_order_and_limit(db_session, friends):
    for i in range(5):
        sender, receiver = (
            (friends["ada"], friends["bayo"]) if i % 2 == 0 else (friends["bayo"], friends["ada"])
        )
        await message_service.send_message(db_session, sender, receiver, f"msg {i}")

    conversation = await message_service.get_conversation(
        db_session, friends["ada"], friends["bayo"]
    )
    assert [m["text"] for m in conversation] == [f"msg {i}" for i in range(5)]

    # Same thread from the other side
    mirrored = await message_service.get_conversation(db_session, friends["bayo"], friends["ada"])
    assert [m["id"] for m in mirrored] == [m["id"] for m in conversation]

    latest = await message_service.get_conversation(
        db_session, friends["ada"], friends["bayo"], limit=2
    )
    assert [m["text"] for m in latest] == ["msg 3", "msg 4"]


@pytest.mark.asyncio
async def test_mark_read_only_incoming(db_session, friends):
    await message_service.send_message(db_session, friends["ada"], friends["bayo"], "one")
    await message_service.send_message(db_session, friends["ada"], friends["bayo"], "two")
    await message_service.send_message(db_session, friends["bayo"], friends["ada"], "reply")

    assert await message_service.get_unread_count(db_session, friends["bayo"]) == 2
    assert await message_service.get_unread_count(db_session, friends["ada"]) == 1

    updated = await message_service.mark_conversation_read(
        db_session, friends["bayo"], friends["ada"]
    )
    assert updated == 2
    assert await message_service.get_unread_count(db_session, friends["bayo"]) == 0
    assert await message_service.get_unread_count(db_session, friends["ada"]) == 1
