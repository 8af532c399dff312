"""FastAPI application entry point.

Configures CORS, logging, the scheduler lifespan and router registration.
"""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.logging import setup_logging
from app.routers import (
    api_keys,
    auth,
    directory,
    discord,
    health,
    matching,
    profiles,
    public,
    teams,
)
from app.scheduler.jobs import shutdown_scheduler, start_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    setup_logging()
    logger.info("application_starting")
    start_scheduler()
    yield
    shutdown_scheduler()
    logger.info("application_stopping")


app = FastAPI(
    title="Hackathon Matching API",
    description="Participant directory, AI teammate matching and Discord team spaces for hackathons",
    version="0.1.0",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# CORS Configuration
# ---------------------------------------------------------------------------
_raw_origins = settings.ALLOWED_ORIGINS.strip()
if _raw_origins == "*":
    _allowed_origins: list[str] = ["*"]
else:
    _allowed_origins = [o.strip() for o in _raw_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Router Registration
# ---------------------------------------------------------------------------
app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(profiles.router, prefix="/api/profiles", tags=["Profiles"])
app.include_router(matching.router, prefix="/api/matching", tags=["Matching"])
app.include_router(api_keys.router, prefix="/api/keys", tags=["API Keys"])
app.include_router(public.router, prefix="/api/public", tags=["Public"])
app.include_router(directory.router, prefix="/api/directory", tags=["Directory"])
app.include_router(discord.router, prefix="/api/discord", tags=["Discord"])
app.include_router(teams.router, prefix="/api/teams", tags=["Teams"])
