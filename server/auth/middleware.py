"""Session authentication middleware for FastAPI."""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from server.auth.sessions import SESSION_COOKIE, verify_session
from server.db.database import get_db

logger = logging.getLogger(__name__)

# Paths that don't require authentication
PUBLIC_PATHS = {
    "/api/v1/auth/github/login",
    "/api/v1/auth/github/callback",
    "/health",
    "/",
}

PROTECTED_PREFIXES = ("/api/v1/admin", "/api/v1/github/app")


class AuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        request.state.user = None

        if path in PUBLIC_PATHS or path.startswith("/docs") or path.startswith("/openapi"):
            return await call_next(request)

        try:
            db = await get_db()
        except RuntimeError:
            return await call_next(request)

        session_id = request.cookies.get(SESSION_COOKIE)
        if session_id:
            user = await verify_session(db, session_id)
            if user:
                request.state.user = user
                return await call_next(request)

        if path.startswith(PROTECTED_PREFIXES):
            logger.debug("Rejected unauthenticated request to %s", path)
            return JSONResponse(
                status_code=401,
                content={"detail": {"error": {"code": "UNAUTHORIZED", "message": "Authentication required. Please sign in with GitHub."}}},
            )

        return await call_next(request)
