"""Market (shop and inventory) route handlers."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from naijaplay.api.routes import limiter, http_error, server_error
from naijaplay.api.auth_dependencies import require_user, require_admin
from naijaplay.database.db import get_db_session
from naijaplay.services import shop_service
from naijaplay.models.schemas import (
    ShopItemCreate,
    ShopItemResponse,
    BuyItemRequest,
    BuyItemResponse,
    InventoryItemResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/market/items", response_model=List[ShopItemResponse])
async def list_items(
    category: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_db_session),
):
    """Browse the catalog."""
    try:
        return await shop_service.list_items(session, category=category)
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error fetching market items")


@router.post("/api/market/buy", response_model=BuyItemResponse)
@limiter.limit("30/minute")
async def buy_item(
    request: Request,
    payload: BuyItemRequest,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Buy a catalog item with coins."""
    try:
        return await shop_service.buy_item(session, user["id"], payload.item_id)
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error buying item")


@router.get("/api/market/inventory", response_model=List[InventoryItemResponse])
async def get_inventory(
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Items the current user owns."""
    try:
        return await shop_service.get_inventory(session, user["id"])
    except Exception as e:
        raise server_error(e, "Error fetching inventory")


@router.post("/api/market/items", response_model=ShopItemResponse, status_code=201)
async def create_item(
    payload: ShopItemCreate,
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Add a catalog item (admin only)."""
    try:
        return await shop_service.create_item(
            session,
            name=payload.name,
            category=payload.category,
            price=payload.price,
            icon=payload.icon,
            rarity=payload.rarity,
            value=payload.value,
        )
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error creating item")


@router.delete("/api/market/items/{item_id}")
async def delete_item(
    item_id: int,
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Remove a catalog item (admin only); owners lose it."""
    try:
        await shop_service.delete_item(session, item_id)
        return {"status": "ok", "message": "Item removed"}
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error removing item")
