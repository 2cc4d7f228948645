from __future__ import annotations

import re
import secrets
from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from passlib.context import CryptContext
from pydantic import BaseModel
from sqlalchemy.orm import Session

from signalist.api.deps import get_app_settings, get_db, get_mailer
from signalist.auth.deps import get_current_user
from signalist.auth.jwt import create_access_token, create_refresh_token, decode_token, refresh_expiry_utc
from signalist.config.settings import AppSettings
from signalist.models.user import RefreshToken, User, UserRole
from signalist.notifications.mailer import Mailer
from signalist.workflows.welcome import send_welcome

router = APIRouter(prefix="/api/auth", tags=["auth"])
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class RegisterRequest(BaseModel):
    email: str
    password: str
    name: str
    country: str = ""
    investment_goals: str = ""
    risk_tolerance: str = ""
    preferred_industry: str = ""


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    country: str = ""
    investment_goals: str = ""
    risk_tolerance: str = ""
    preferred_industry: str = ""
    role: str = UserRole.MEMBER.value
    created_at: datetime
    last_login: datetime | None = None


class TokenPairResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _validate_email(email: str) -> None:
    if not _EMAIL_RE.match(email):
        raise HTTPException(status_code=400, detail="Invalid email format")


def _validate_password(password: str) -> None:
    if len(password) < 8:
        raise HTTPException(status_code=400, detail="Password must be at least 8 characters")
    # bcrypt only supports up to 72 bytes of input.
    if len(password.encode("utf-8")) > 72:
        raise HTTPException(status_code=400, detail="Password must be at most 72 bytes")


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        country=user.country or "",
        investment_goals=user.investment_goals or "",
        risk_tolerance=user.risk_tolerance or "",
        preferred_industry=user.preferred_industry or "",
        role=user.role.value if hasattr(user.role, "value") else str(user.role or UserRole.MEMBER.value),
        created_at=user.created_at,
        last_login=user.last_login,
    )


def _build_token_pair(db: Session, user: User) -> TokenPairResponse:
    jti = secrets.token_hex(16)
    access = create_access_token(subject=user.id, email=user.email)
    refresh = create_refresh_token(subject=user.id, email=user.email, jti=jti)

    db.add(RefreshToken(user_id=user.id, jti=jti, expires_at=refresh_expiry_utc(), revoked_at=None))
    db.commit()
    return TokenPairResponse(access_token=access, refresh_token=refresh)


@router.post("/register", response_model=UserResponse, status_code=201)
def register(
    payload: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    settings: AppSettings = Depends(get_app_settings),
) -> UserResponse:
    email = _normalize_email(payload.email)
    _validate_email(email)
    _validate_password(payload.password)
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name is required")

    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        email=email,
        name=name,
        hashed_password=pwd_context.hash(payload.password),
        country=payload.country.strip(),
        investment_goals=payload.investment_goals.strip(),
        risk_tolerance=payload.risk_tolerance.strip(),
        preferred_industry=payload.preferred_industry.strip(),
        role=UserRole.ADMIN if email in settings.admin_emails else UserRole.MEMBER,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    background_tasks.add_task(send_welcome, mailer, user.email, user.name)
    return _user_response(user)


@router.post("/login", response_model=TokenPairResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenPairResponse:
    email = _normalize_email(payload.email)
    user = db.query(User).filter(User.email == email).first()
    if not user or not pwd_context.verify(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    user.last_login = _utcnow()
    db.commit()

    return _build_token_pair(db, user)


@router.post("/refresh", response_model=TokenPairResponse)
def refresh(payload: RefreshRequest, db: Session = Depends(get_db)) -> TokenPairResponse:
    try:
        decoded = decode_token(payload.refresh_token)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail="Invalid refresh token") from exc

    if str(decoded.get("type") or "") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid refresh token type")

    user_id = str(decoded.get("sub") or "").strip()
    jti = str(decoded.get("jti") or "").strip()
    if not user_id or not jti:
        raise HTTPException(status_code=401, detail="Malformed refresh token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    row = db.query(RefreshToken).filter(RefreshToken.jti == jti, RefreshToken.user_id == user_id).first()
    if not row:
        raise HTTPException(status_code=401, detail="Refresh token not recognized")
    if row.revoked_at is not None:
        raise HTTPException(status_code=401, detail="Refresh token already used")
    if row.expires_at < _utcnow():
        raise HTTPException(status_code=401, detail="Refresh token expired")

    row.revoked_at = _utcnow()
    db.commit()

    return _build_token_pair(db, user)


@router.post("/logout", status_code=204)
def logout(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> None:
    db.query(RefreshToken).filter(RefreshToken.user_id == current_user.id, RefreshToken.revoked_at.is_(None)).update(
        {RefreshToken.revoked_at: _utcnow()},
        synchronize_session=False,
    )
    db.commit()
    return None


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return _user_response(current_user)
