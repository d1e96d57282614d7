"""Quest route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from naijaplay.api.routes import http_error, server_error
from naijaplay.api.auth_dependencies import require_user
from naijaplay.database.db import get_db_session
from naijaplay.services import quest_service
from naijaplay.models.schemas import QuestResponse, QuestClaimResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/quests", response_model=List[QuestResponse])
async def get_quests(
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Today's quests; generated on the first call of the day."""
    try:
        return await quest_service.refresh_daily_quests(session, user["id"])
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error fetching quests")


@router.post("/api/quests/{quest_id}/claim", response_model=QuestClaimResponse)
async def claim_quest(
    quest_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Claim the rewards of a completed quest."""
    try:
        return await quest_service.claim_quest_reward(session, user["id"], quest_id)
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error claiming quest")
