from __future__ import annotations

from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from signalist.api.deps import get_db
from signalist.auth.jwt import decode_token
from signalist.models.user import User

security = HTTPBearer(auto_error=False)

_EXEMPT_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}


def user_id_from_payload(payload: dict) -> str:
    if str(payload.get("type") or "") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
    user_id = str(payload.get("sub") or "").strip()
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject")
    return user_id


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    existing = getattr(request.state, "current_user", None)
    if existing is not None:
        return existing

    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    try:
        payload = decode_token(credentials.credentials)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    user_id = user_id_from_payload(payload)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    request.state.current_user = user
    return user


def auth_exempt_path(path: str) -> bool:
    if path in _EXEMPT_PATHS:
        return True
    return path.startswith("/api/auth/") and path not in {"/api/auth/me", "/api/auth/logout"}


def require_role(required_role: str) -> Callable:
    def _dep(current_user: User = Depends(get_current_user)) -> User:
        role = current_user.role.value if hasattr(current_user.role, "value") else str(current_user.role)
        if role != required_role:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return current_user

    return _dep
