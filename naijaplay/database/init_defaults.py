#!/usr/bin/env python3
"""
Initialize default database values.
This runs on startup to seed the shop catalog and the starter villages.
"""

import asyncio
import logging
from sqlalchemy import select
from naijaplay.database import db
from naijaplay.database.models import ShopItem, Village, ShopCategory, Rarity

logger = logging.getLogger(__name__)

DEFAULT_SHOP_ITEMS = [
    {"name": "Agbada Drip", "category": ShopCategory.OUTFIT, "price": 500, "icon": "👘", "rarity": Rarity.RARE},
    {"name": "Danfo Driver", "category": ShopCategory.SKIN, "price": 300, "icon": "🚐", "rarity": Rarity.COMMON},
    {"name": "Eko Oni Baje", "category": ShopCategory.SKIN, "price": 1500, "icon": "🌆", "rarity": Rarity.EPIC},
    {"name": "Area Father", "category": ShopCategory.SKIN, "price": 5000, "icon": "👑", "rarity": Rarity.LEGENDARY},
    {"name": "Shoki Dance", "category": ShopCategory.EMOTE, "price": 200, "icon": "🕺", "rarity": Rarity.COMMON},
    {"name": "Wahala Face", "category": ShopCategory.EMOTE, "price": 250, "icon": "😤", "rarity": Rarity.COMMON},
    {"name": "Green White Green", "category": ShopCategory.THEME, "price": 800, "icon": "🇳🇬", "rarity": Rarity.RARE, "value": "naija"},
    {"name": "Lagos Nights", "category": ShopCategory.THEME, "price": 1200, "icon": "🌃", "rarity": Rarity.EPIC, "value": "lagos-nights"},
]

DEFAULT_VILLAGES = [
    {"name": "Eko Warriors", "region": "LAGOS", "icon": "🏙️"},
    {"name": "Capital Kings", "region": "ABUJA", "icon": "🏛️"},
    {"name": "Garden City Crew", "region": "RIVERS", "icon": "🌴"},
    {"name": "Pacesetters", "region": "OYO", "icon": "🥁"},
    {"name": "Sahel Lions", "region": "KANO", "icon": "🦁"},
]


async def seed_shop_items(session) -> int:
    """Insert catalog items whose name is not present yet. Returns count added."""
    result = await session.execute(select(ShopItem.name))
    existing = set(result.scalars().all())
    added = 0
    for item in DEFAULT_SHOP_ITEMS:
        if item["name"] in existing:
            continue
        session.add(ShopItem(**item))
        added += 1
    return added


async def seed_villages(session) -> int:
    """Insert starter villages whose name is not present yet. Returns count added."""
    result = await session.execute(select(Village.name))
    existing = set(result.scalars().all())
    added = 0
    for village in DEFAULT_VILLAGES:
        if village["name"] in existing:
            continue
        session.add(Village(total_xp=0, **village))
        added += 1
    return added


async def init_defaults(session_factory=None):
    """Initialize default database values. Safe to run repeatedly."""
    logger.info("Initializing default database values...")
    session_factory = session_factory or db.AsyncSessionLocal

    async with session_factory() as session:
        items_added = await seed_shop_items(session)
        villages_added = await seed_villages(session)
        await session.commit()

    logger.info(f"✓ Default values initialized ({items_added} items, {villages_added} villages added)")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_defaults())
