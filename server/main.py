"""Stencil: FastAPI application entry point."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from server.auth.middleware import AuthMiddleware
from server.auth.sessions import cleanup_expired_sessions
from server.config import settings
from server.db.database import close_db, get_db, init_db
from server.services.github_app_service import reset_github_app

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

VERSION = "0.1.0"


async def _session_cleanup_loop():
    """Background task: clean up expired sessions every hour."""
    while True:
        await asyncio.sleep(3600)
        try:
            db = await get_db()
            deleted = await cleanup_expired_sessions(db)
            if deleted:
                logger.info("Session cleanup: removed %d expired sessions", deleted)
        except Exception:
            logger.exception("Session cleanup failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting Stencil server...")
    await init_db()
    cleanup_task = asyncio.create_task(_session_cleanup_loop())

    if not settings.github_app_configured:
        logger.warning("GitHub App credentials missing; repository creation is disabled")
    logger.info("Stencil server ready")
    yield

    cleanup_task.cancel()
    reset_github_app()
    await close_db()
    logger.info("Stencil server stopped")


app = FastAPI(
    title="Stencil",
    description="Create GitHub repositories from organization templates",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(AuthMiddleware)

from server.auth.github_oauth import router as auth_router
from server.api.admin import router as admin_router
from server.api.github_app import router as github_app_router

app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(github_app_router)


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "service": "stencil",
        "version": VERSION,
        "github_app": settings.github_app_configured,
    }


@app.get("/")
async def root():
    return {"service": "stencil", "docs": "/docs"}
