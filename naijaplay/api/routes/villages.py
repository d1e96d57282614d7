"""Village route handlers."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from naijaplay.api.routes import http_error, server_error
from naijaplay.api.auth_dependencies import require_user
from naijaplay.database.db import get_db_session
from naijaplay.services import user_service, village_service
from naijaplay.models.schemas import VillageCreate, VillageResponse, UserResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/villages", response_model=List[VillageResponse])
async def list_villages(
    region: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_db_session),
):
    """List villages, optionally for one region."""
    try:
        return await village_service.list_villages(session, region=region)
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error fetching villages")


@router.post("/api/villages", response_model=VillageResponse, status_code=201)
async def create_village(
    payload: VillageCreate,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Found a new village."""
    try:
        village = await village_service.create_village(
            session, payload.name, payload.region, icon=payload.icon
        )
        logger.info(f"User {user['id']} founded village {village['id']}")
        return village
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error creating village")


@router.post("/api/villages/leave", response_model=UserResponse)
async def leave_village(
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Leave the current village."""
    try:
        return await user_service.leave_village(session, user["id"])
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error leaving village")


@router.post("/api/villages/{village_id}/join", response_model=UserResponse)
async def join_village(
    village_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Join (or switch to) a village."""
    try:
        return await user_service.join_village(session, user["id"], village_id)
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error joining village")
