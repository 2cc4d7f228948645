from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from signalist.alerts.service import add_alert, get_alert_symbols, remove_alert
from signalist.api.deps import get_db
from signalist.auth.deps import get_current_user
from signalist.core.models import ActionResult
from signalist.models.user import User

router = APIRouter(prefix="/api/alerts", tags=["alerts"])


class AlertCreateRequest(BaseModel):
    symbol: str
    company: str


class AlertSymbolsResponse(BaseModel):
    symbols: list[str]


@router.get("", response_model=AlertSymbolsResponse)
def list_alerts(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> AlertSymbolsResponse:
    return AlertSymbolsResponse(symbols=get_alert_symbols(db, current_user.id))


@router.post("", response_model=ActionResult)
def create_alert(
    payload: AlertCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ActionResult:
    return add_alert(db, current_user.id, payload.symbol, payload.company)


@router.delete("/{symbol}", response_model=ActionResult)
def delete_alert(
    symbol: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ActionResult:
    return remove_alert(db, current_user.id, symbol)
