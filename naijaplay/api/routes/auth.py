"""Authentication route handlers."""

import logging
from typing import Dict, Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from naijaplay.api.routes import limiter, http_error, server_error
from naijaplay.database.db import get_db_session
from naijaplay.services import auth_service, user_service
from naijaplay.models.schemas import (
    RegisterRequest,
    LoginRequest,
    RecoverRequest,
    ResetPasswordRequest,
    AuthResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _auth_response(user: Dict[str, Any]) -> Dict[str, Any]:
    token = auth_service.create_access_token(data={"user_id": user["id"]})
    return {"user": user, "token": token}


@router.post("/api/auth/register", response_model=AuthResponse, status_code=201)
@limiter.limit("5/minute")
async def register(
    request: Request, payload: RegisterRequest, session: AsyncSession = Depends(get_db_session)
):
    """Create an account and log it in."""
    try:
        user = await user_service.create_user(
            session,
            username=payload.username,
            email=payload.email,
            password=payload.password,
            avatar=payload.avatar,
        )
        logger.info(f"New player registered: {user['username']}")
        return _auth_response(user)
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error during registration")


@router.post("/api/auth/login", response_model=AuthResponse)
@limiter.limit("10/minute")
async def login(
    request: Request, payload: LoginRequest, session: AsyncSession = Depends(get_db_session)
):
    """Login with username and password."""
    try:
        user = await user_service.authenticate_user(session, payload.username, payload.password)
        return _auth_response(user)
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error during login")


@router.post("/api/auth/recover")
@limiter.limit("3/minute")
async def recover(
    request: Request, payload: RecoverRequest, session: AsyncSession = Depends(get_db_session)
):
    """
    Start password recovery.

    The response is the same whether or not the email is registered.
    """
    try:
        token = await user_service.create_recovery_token(session, payload.email)
        if token:
            # Delivery (email) is handled outside this service
            logger.info("Recovery token issued")
        return {"status": "ok", "message": "If that email exists, a recovery link has been sent."}
    except Exception as e:
        raise server_error(e, "Error starting recovery")


@router.post("/api/auth/reset-password")
@limiter.limit("5/minute")
async def reset_password(
    request: Request, payload: ResetPasswordRequest, session: AsyncSession = Depends(get_db_session)
):
    """Set a new password with a recovery token."""
    try:
        await user_service.reset_password(session, payload.token, payload.new_password)
        return {"status": "ok", "message": "Password reset. Oya, login!"}
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "Error resetting password")
