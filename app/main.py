"""FastAPI application entrypoint. No business logic; only wiring, middleware and bootstrap."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import register_exception_handlers
from app.api.v1 import router as v1_router
from app.core.config import API_VERSION, settings
from app.core.database import SessionLocal
from app.core.logging import configure_logging
from app.services.bootstrap import bootstrap

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Seed permissions -> roles -> users once at process start (no-op when already seeded)."""
    if settings.SEED_ON_STARTUP:
        db = SessionLocal()
        try:
            bootstrap(db, settings)
        finally:
            db.close()
    logger.info("Gatekeeper API started", extra={"environment": settings.APP_ENV})
    yield


app = FastAPI(
    title="Gatekeeper API",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Gatekeeper API"}
