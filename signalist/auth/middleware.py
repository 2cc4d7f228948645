from __future__ import annotations

import os

from fastapi import HTTPException, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from signalist.auth.deps import auth_exempt_path, user_id_from_payload
from signalist.auth.jwt import decode_token
from signalist.models.user import User


class AuthMiddleware(BaseHTTPMiddleware):
    """Rejects unauthenticated /api requests before they reach a route."""

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        auth_enabled = os.getenv("SIGNALIST_AUTH_MIDDLEWARE_ENABLED", "1") == "1"
        if not auth_enabled or not path.startswith("/api") or auth_exempt_path(path):
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.lower().startswith("bearer "):
            return JSONResponse({"detail": "Missing bearer token"}, status_code=401)
        token = auth_header.split(" ", 1)[1].strip()
        try:
            payload = decode_token(token)
            user_id = user_id_from_payload(payload)
        except ValueError:
            return JSONResponse({"detail": "Invalid token"}, status_code=401)
        except HTTPException as exc:
            return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)

        db = request.app.state.db_session_factory()
        try:
            user = db.query(User).filter(User.id == user_id).first()
            if not user:
                return JSONResponse({"detail": "User not found"}, status_code=401)
            db.expunge(user)
            request.state.current_user = user
        finally:
            db.close()

        return await call_next(request)
