from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from signalist.core.models import ActionResult
from signalist.db.models import WatchlistItem
from signalist.models.user import User

logger = logging.getLogger(__name__)


def _clean(symbol: str | None) -> str:
    return str(symbol or "").strip().upper()


def add_to_watchlist(db: Session, user_id: str, symbol: str, company: str) -> ActionResult:
    sym = _clean(symbol)
    name = str(company or "").strip()
    if not user_id or not sym or not name:
        return ActionResult(success=False, message="Missing required fields")

    try:
        existing = (
            db.query(WatchlistItem)
            .filter(WatchlistItem.user_id == user_id, WatchlistItem.symbol == sym)
            .first()
        )
        if existing:
            return ActionResult(success=False, message="Stock already in watchlist")

        db.add(WatchlistItem(user_id=user_id, symbol=sym, company=name))
        db.commit()
    except IntegrityError:
        db.rollback()
        return ActionResult(success=False, message="Stock already in watchlist")
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("event=watchlist_add_failed user_id=%s symbol=%s error=%s", user_id, sym, exc)
        return ActionResult(success=False, message="Failed to add to watchlist")

    return ActionResult(success=True, message="Added to watchlist")


def remove_from_watchlist(db: Session, user_id: str, symbol: str) -> ActionResult:
    sym = _clean(symbol)
    if not user_id or not sym:
        return ActionResult(success=False, message="Missing required fields")

    try:
        deleted = (
            db.query(WatchlistItem)
            .filter(WatchlistItem.user_id == user_id, WatchlistItem.symbol == sym)
            .delete(synchronize_session=False)
        )
        if not deleted:
            db.rollback()
            return ActionResult(success=False, message="Stock not found in watchlist")
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("event=watchlist_remove_failed user_id=%s symbol=%s error=%s", user_id, sym, exc)
        return ActionResult(success=False, message="Failed to remove from watchlist")

    return ActionResult(success=True, message="Removed from watchlist")


def get_watchlist(db: Session, user_id: str) -> list[WatchlistItem]:
    """Entries for one user, most recently added first."""
    return (
        db.query(WatchlistItem)
        .filter(WatchlistItem.user_id == user_id)
        .order_by(WatchlistItem.added_at.desc())
        .all()
    )


def get_watchlist_symbols_by_email(db: Session, email: str) -> list[str]:
    normalized = str(email or "").strip().lower()
    if not normalized:
        return []
    try:
        user = db.query(User).filter(User.email == normalized).first()
        if not user:
            return []
        rows = db.query(WatchlistItem.symbol).filter(WatchlistItem.user_id == user.id).all()
    except SQLAlchemyError as exc:
        logger.error("event=watchlist_lookup_failed email=%s error=%s", normalized, exc)
        return []
    return [str(row[0]) for row in rows]
