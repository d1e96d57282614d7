"""
Unit tests for the market: catalog, purchases and inventory.
"""

import pytest
from sqlalchemy import select, func

from naijaplay.database.models import InventoryItem, Quest
from naijaplay.services import quest_service, shop_service, user_service
from naijaplay.utils.exceptions import ConflictError, InsufficientFundsError, NotFoundError


async def _item(db_session, name="Agbada", price=100, category="OUTFIT", rarity="COMMON"):
    return await shop_service.create_item(
        db_session, name=name, category=category, price=price, icon="👘", rarity=rarity
    )


@pytest.mark.asyncio
async def test_create_item(db_session):
    item = await _item(db_session, name="Lagos Nights", price=1200, category="THEME", rarity="EPIC")
    assert item["id"] > 0
    assert item["category"] == "THEME"
    assert item["rarity"] == "EPIC"
    assert item["price"] == 1200
    assert (await shop_service.get_item(db_session, item["id"]))["name"] == "Lagos Nights"


@pytest.mark.asyncio
async def test_create_item_validation(db_session):
    with pytest.raises(ValueError, match="negative"):
        await _item(db_session, price=-5)
    with pytest.raises(ValueError):
        await _item(db_session, category="HAT")
    with pytest.raises(ValueError):
        await _item(db_session, rarity="MYTHIC")
    with pytest.raises(ValueError, match="name is required"):
        await _item(db_session, name="  ")


@pytest.mark.asyncio
async def test_list_items_by_price_and_category(db_session):
    await _item(db_session, name="Gold Chain", price=500, category="SKIN")
    await _item(db_session, name="Agbada", price=100, category="OUTFIT")
    await _item(db_session, name="Shakara", price=50, category="EMOTE")

    assert [i["name"] for i in await shop_service.list_items(db_session)] == [
        "Shakara",
        "Agbada",
        "Gold Chain",
    ]
    assert [i["name"] for i in await shop_service.list_items(db_session, "outfit")] == ["Agbada"]


@pytest.mark.asyncio
async def test_buy_item(db_session, make_user):
    ada = await make_user("ada", coins=300)
    item = await _item(db_session, price=100)

    result = await shop_service.buy_item(db_session, ada.id, item["id"])
    assert result["balance"] == 200
    assert result["item"]["id"] == item["id"]
    assert result["inventory_item"]["item"]["name"] == "Agbada"
    assert await shop_service.owns_item(db_session, ada.id, item["id"])

    inventory = await shop_service.get_inventory(db_session, ada.id)
    assert [entry["item_id"] for entry in inventory] == [item["id"]]


@pytest.mark.asyncio
async def test_cannot_buy_twice(db_session, make_user):
    ada = await make_user("ada", coins=300)
    item = await _item(db_session, price=100)
    await shop_service.buy_item(db_session, ada.id, item["id"])

    with pytest.raises(ConflictError, match="already own"):
        await shop_service.buy_item(db_session, ada.id, item["id"])
    assert await user_service.get_balance(db_session, ada.id) == 200


@pytest.mark.asyncio
async def test_insufficient_funds_leaves_no_inventory(db_session, make_user):
    ada = await make_user("ada", coins=99)
    item = await _item(db_session, price=100)

    with pytest.raises(InsufficientFundsError):
        await shop_service.buy_item(db_session, ada.id, item["id"])

    count = await db_session.execute(select(func.count(InventoryItem.id)))
    assert count.scalar_one() == 0
    assert await user_service.get_balance(db_session, ada.id) == 99


@pytest.mark.asyncio
async def test_buy_missing_item(db_session, make_user):
    ada = await make_user("ada")
    with pytest.raises(NotFoundError):
        await shop_service.buy_item(db_session, ada.id, 999999)


@pytest.mark.asyncio
async def test_purchase_advances_spend_quest(db_session, make_user):
    ada = await make_user("ada", coins=1000)
    quest = await quest_service.create_quest(
        db_session, ada.id, "Spend 200 Coins", "Money must circulate.", 200
    )
    item = await _item(db_session, price=250)

    await shop_service.buy_item(db_session, ada.id, item["id"])

    row = await db_session.get(Quest, quest["id"])
    assert row.progress == 250
    assert row.completed is True


@pytest.mark.asyncio
async def test_free_item_does_not_touch_quests(db_session, make_user):
    ada = await make_user("ada", coins=0)
    quest = await quest_service.create_quest(
        db_session, ada.id, "Spend 200 Coins", "Money must circulate.", 200
    )
    item = await _item(db_session, name="Welcome Emote", price=0, category="EMOTE")

    result = await shop_service.buy_item(db_session, ada.id, item["id"])
    assert result["balance"] == 0
    row = await db_session.get(Quest, quest["id"])
    assert row.progress == 0


@pytest.mark.asyncio
async def test_delete_missing_item(db_session):
    with pytest.raises(NotFoundError):
        await shop_service.delete_item(db_session, 999999)
