"""
Naija Play API Server

FastAPI server for accounts, villages, the market, quests, social features
and leaderboards.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os
import uvicorn
from slowapi import _rate_limit_exceeded_handler  # type: ignore
from slowapi.errors import RateLimitExceeded  # type: ignore

from naijaplay.api.routes import router, limiter as routes_limiter
from naijaplay.database import db
from naijaplay.database.init_defaults import init_defaults
from naijaplay.utils.env_validator import validate_env
from naijaplay.utils.exceptions import NaijaPlayError

# Set up logging
# Allow log level to be configured via environment variable (default: INFO)
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
numeric_level = getattr(logging, log_level, logging.INFO)
logging.basicConfig(
    level=numeric_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup and shutdown events."""
    # Startup
    logger.info("Starting up Naija Play API...")
    validate_env()

    # Initialize database (create tables if they don't exist)
    # Alembic owns schema changes; this covers fresh dev databases
    try:
        await db.init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    # Seed catalog and starter villages
    try:
        await init_defaults()
    except Exception as e:
        logger.error(f"Failed to initialize defaults: {e}", exc_info=True)

    yield  # App is running

    # Shutdown
    logger.info("Shutting down Naija Play API...")
    await db.engine.dispose()


app = FastAPI(
    title="Naija Play API",
    description="Backend for the Naija Play street games platform",
    version="1.0.0",
    lifespan=lifespan,
)

# Setup rate limiter
app.state.limiter = routes_limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(NaijaPlayError)
async def naijaplay_error_handler(request: Request, exc: NaijaPlayError):
    """Domain errors that escape a route become {"detail": ...} with their status."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Add CORS middleware, origins configured via ALLOWED_ORIGINS env var
allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router)


@app.get("/")
async def root():
    """API root endpoint - frontend is served separately."""
    return {"name": "Naija Play API", "docs": "/docs", "health": "/api/health"}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
