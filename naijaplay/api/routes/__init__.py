"""
API routes - combined router from all domain modules.

Shared infrastructure (limiter, error mapping) lives here; every sub-router
imports what it needs from this package.
"""

import logging
import os

from fastapi import APIRouter, HTTPException
from slowapi import Limiter
from slowapi.util import get_remote_address

from naijaplay.utils.exceptions import translate_database_error

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Shared rate limiter
# ---------------------------------------------------------------------------
IS_TEST_ENV = os.getenv("ENV", "").lower() == "test"
if IS_TEST_ENV:
    limiter = Limiter(key_func=get_remote_address)

    def no_op_limit(*args, **kwargs):
        """No-op decorator for test mode - doesn't apply any rate limiting."""
        def decorator(func):
            return func
        return decorator

    limiter.limit = lambda *args, **kwargs: no_op_limit()
else:
    limiter = Limiter(key_func=get_remote_address)

# ---------------------------------------------------------------------------
# Shared error mapping
# ---------------------------------------------------------------------------


def http_error(e: ValueError) -> HTTPException:
    """HTTPException for a validation or domain error, using its status code."""
    return HTTPException(status_code=getattr(e, "status_code", 400), detail=str(e))


def server_error(e: Exception, detail: str) -> HTTPException:
    """HTTPException for an unexpected error; database outages become 503."""
    translated = translate_database_error(e)
    if translated is not None:
        return http_error(translated)
    logger.error(f"{detail}: {e}", exc_info=True)
    return HTTPException(status_code=500, detail=detail)


# ---------------------------------------------------------------------------
# Import sub-routers and combine
# ---------------------------------------------------------------------------
from naijaplay.api.routes.auth import router as auth_router  # noqa: E402
from naijaplay.api.routes.users import router as users_router  # noqa: E402
from naijaplay.api.routes.villages import router as villages_router  # noqa: E402
from naijaplay.api.routes.market import router as market_router  # noqa: E402
from naijaplay.api.routes.quests import router as quests_router  # noqa: E402
from naijaplay.api.routes.social import router as social_router  # noqa: E402
from naijaplay.api.routes.leaderboards import router as leaderboards_router  # noqa: E402
from naijaplay.api.routes.health import router as health_router  # noqa: E402

router = APIRouter()
router.include_router(auth_router)
router.include_router(users_router)
router.include_router(villages_router)
router.include_router(market_router)
router.include_router(quests_router)
router.include_router(social_router)
router.include_router(leaderboards_router)
router.include_router(health_router)
