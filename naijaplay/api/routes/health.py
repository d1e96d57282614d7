"""Health check route handlers."""

import logging
import os

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from naijaplay.database.db import get_db_session
from naijaplay.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/health")
async def health_check():
    """
    Liveness check; does not touch the database.

    Returns:
        dict: Service status
    """
    return {
        "status": "ok",
        "timestamp": utcnow().isoformat(),
        "environment": os.getenv("ENV", "development"),
    }


@router.get("/api/db-health")
async def db_health_check(session: AsyncSession = Depends(get_db_session)):
    """Readiness check: runs SELECT 1 against the database."""
    try:
        await session.execute(text("SELECT 1"))
        return {"status": "ready", "checks": {"database": True}, "timestamp": utcnow().isoformat()}
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "not ready",
                "checks": {"database": False},
                "timestamp": utcnow().isoformat(),
            },
        )
