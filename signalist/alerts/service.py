from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from signalist.core.models import ActionResult
from signalist.db.models import AlertORM
from signalist.models.user import User

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class AlertGroup:
    """All alerted symbols of one user, ready for the hourly email."""

    user_id: str
    email: str
    name: str
    symbols: list[str] = field(default_factory=list)


def add_alert(db: Session, user_id: str, symbol: str, company: str) -> ActionResult:
    sym = str(symbol or "").strip().upper()
    name = str(company or "").strip()
    if not user_id or not sym or not name:
        return ActionResult(success=False, message="Missing required fields")

    try:
        existing = db.query(AlertORM).filter(AlertORM.user_id == user_id, AlertORM.symbol == sym).first()
        if existing:
            return ActionResult(success=False, message="Alert already exists for this stock")
        db.add(AlertORM(user_id=user_id, symbol=sym, company=name))
        db.commit()
    except IntegrityError:
        db.rollback()
        return ActionResult(success=False, message="Alert already exists for this stock")
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("event=alert_add_failed user_id=%s symbol=%s error=%s", user_id, sym, exc)
        return ActionResult(success=False, message="Failed to enable alert")

    return ActionResult(success=True, message="Hourly alert enabled")


def remove_alert(db: Session, user_id: str, symbol: str) -> ActionResult:
    sym = str(symbol or "").strip().upper()
    if not user_id or not sym:
        return ActionResult(success=False, message="Missing required fields")

    try:
        deleted = (
            db.query(AlertORM)
            .filter(AlertORM.user_id == user_id, AlertORM.symbol == sym)
            .delete(synchronize_session=False)
        )
        if not deleted:
            db.rollback()
            return ActionResult(success=False, message="Alert not found")
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("event=alert_remove_failed user_id=%s symbol=%s error=%s", user_id, sym, exc)
        return ActionResult(success=False, message="Failed to remove alert")

    return ActionResult(success=True, message="Alert removed")


def get_alert_symbols(db: Session, user_id: str) -> list[str]:
    if not user_id:
        return []
    rows = db.query(AlertORM.symbol).filter(AlertORM.user_id == user_id).all()
    return [str(row[0]) for row in rows]


def get_alert_groups(db: Session) -> list[AlertGroup]:
    by_user: dict[str, list[str]] = defaultdict(list)
    for alert in db.query(AlertORM).order_by(AlertORM.created_at.asc()).all():
        by_user[alert.user_id].append(alert.symbol)
    if not by_user:
        return []

    users = db.query(User).filter(User.id.in_(list(by_user.keys()))).all()
    known = {u.id: u for u in users}

    groups: list[AlertGroup] = []
    for user_id, symbols in by_user.items():
        user = known.get(user_id)
        if user is None or not user.email:
            logger.warning("event=alert_group_skipped user_id=%s reason=user_missing", user_id)
            continue
        groups.append(AlertGroup(user_id=user.id, email=user.email, name=user.name or "", symbols=symbols))
    return groups


def mark_alerts_sent(db: Session, user_id: str, symbols: Iterable[str], now: datetime | None = None) -> int:
    """Stamp ``last_sent_at`` on exactly the given alerts of one user. Returns the row count."""
    cleaned = sorted({str(s or "").strip().upper() for s in symbols} - {""})
    if not user_id or not cleaned:
        return 0
    stamp = now or _utcnow()
    try:
        updated = (
            db.query(AlertORM)
            .filter(AlertORM.user_id == user_id, AlertORM.symbol.in_(cleaned))
            .update({AlertORM.last_sent_at: stamp}, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return int(updated or 0)
