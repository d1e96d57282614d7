"""
Shop service: item catalog, purchases and inventory.
"""

from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, delete
from naijaplay.database.models import InventoryItem, ShopItem, ShopCategory, Rarity
from naijaplay.services import quest_service, user_service
from naijaplay.utils.datetime_utils import isoformat_or_none
from naijaplay.utils.exceptions import ConflictError, NotFoundError, translate_integrity_error
from naijaplay.utils.sanitizer import sanitize_input
import logging

logger = logging.getLogger(__name__)


async def create_item(
    session: AsyncSession,
    name: str,
    category: str,
    price: int,
    icon: str,
    rarity: str = Rarity.COMMON.value,
    value: Optional[str] = None,
) -> Dict:
    """
    Add an item to the catalog.

    Raises:
        ValueError: If the name is empty, the price negative, or the
            category/rarity unknown
    """
    name = sanitize_input(name or "")
    if not name:
        raise ValueError("Item name is required")
    if price < 0:
        raise ValueError("Price cannot be negative")

    item = ShopItem(
        name=name,
        category=ShopCategory(category),
        price=price,
        icon=icon,
        rarity=Rarity(rarity),
        value=value,
    )
    session.add(item)
    await session.flush()
    await session.refresh(item)
    return _item_to_dict(item)


async def get_item(session: AsyncSession, item_id: int) -> Dict:
    """
    Get a catalog item.

    Raises:
        NotFoundError: If the item does not exist
    """
    item = await session.get(ShopItem, item_id)
    if not item:
        raise NotFoundError("Item not found")
    return _item_to_dict(item)


async def list_items(session: AsyncSession, category: Optional[str] = None) -> List[Dict]:
    """Catalog items, cheapest first, optionally filtered by category."""
    query = select(ShopItem).order_by(ShopItem.price, ShopItem.id)
    if category:
        query = query.where(ShopItem.category == ShopCategory(category.upper()))
    result = await session.execute(query)
    return [_item_to_dict(item) for item in result.scalars().all()]


async def delete_item(session: AsyncSession, item_id: int) -> None:
    """
    Remove an item from the catalog; owners lose it (ON DELETE CASCADE).

    Raises:
        NotFoundError: If the item does not exist
    """
    result = await session.execute(delete(ShopItem).where(ShopItem.id == item_id))
    if result.rowcount == 0:
        raise NotFoundError("Item not found")
    await session.flush()


async def owns_item(session: AsyncSession, user_id: int, item_id: int) -> bool:
    result = await session.execute(
        select(InventoryItem.id).where(
            InventoryItem.user_id == user_id, InventoryItem.item_id == item_id
        )
    )
    return result.scalar_one_or_none() is not None


async def buy_item(session: AsyncSession, user_id: int, item_id: int) -> Dict:
    """
    Buy an item: debit the price and add it to the user's inventory.

    Both writes happen in the caller's transaction, so a failure after the
    debit rolls the debit back too.

    Args:
        session: Database session
        user_id: Buyer
        item_id: Catalog item

    Returns:
        Dict with item, balance and the inventory entry

    Raises:
        NotFoundError: If the item or user does not exist
        ConflictError: If the user already owns the item
        InsufficientFundsError: If the user cannot afford it
    """
    item = await session.get(ShopItem, item_id)
    if not item:
        raise NotFoundError("Item not found")
    if await owns_item(session, user_id, item_id):
        raise ConflictError("You already own this item")

    balance = await user_service.deduct_coins(session, user_id, item.price)

    entry = InventoryItem(user_id=user_id, item_id=item_id)
    session.add(entry)
    try:
        await session.flush()
    except IntegrityError as e:
        # Concurrent purchase of the same item; undo the debit with the insert
        await session.rollback()
        raise translate_integrity_error(e, "You already own this item") from e
    await session.refresh(entry)

    if item.price > 0:
        await quest_service.update_quest_progress(session, user_id, "SPEND_COINS", item.price)

    logger.info(f"User {user_id} bought item {item_id} for {item.price} coins")
    return {
        "item": _item_to_dict(item),
        "balance": balance,
        "inventory_item": _inventory_to_dict(entry, item),
    }


async def get_inventory(session: AsyncSession, user_id: int) -> List[Dict]:
    """Items owned by a user, most recently acquired first."""
    result = await session.execute(
        select(InventoryItem, ShopItem)
        .join(ShopItem, ShopItem.id == InventoryItem.item_id)
        .where(InventoryItem.user_id == user_id)
        .order_by(InventoryItem.acquired_at.desc(), InventoryItem.id.desc())
    )
    return [_inventory_to_dict(entry, item) for entry, item in result.all()]


def _item_to_dict(item: ShopItem) -> Dict:
    return {
        "id": item.id,
        "name": item.name,
        "category": getattr(item.category, "value", item.category),
        "price": item.price,
        "icon": item.icon,
        "rarity": getattr(item.rarity, "value", item.rarity),
        "value": item.value,
    }


def _inventory_to_dict(entry: InventoryItem, item: ShopItem) -> Dict:
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "item_id": entry.item_id,
        "acquired_at": isoformat_or_none(entry.acquired_at),
        "item": _item_to_dict(item),
    }
