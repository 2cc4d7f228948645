from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from signalist.alerts.service import get_alert_symbols
from signalist.api.deps import get_db, get_market_data
from signalist.auth.deps import get_current_user
from signalist.core.finnhub_client import MarketDataConfigError
from signalist.core.models import ActionResult, WatchlistEntry, WatchlistResponse
from signalist.models.user import User
from signalist.services.market_data import MarketDataAggregator
from signalist.watchlist.service import add_to_watchlist, get_watchlist, remove_from_watchlist

router = APIRouter(prefix="/api/watchlist", tags=["watchlist"])


class WatchlistAddRequest(BaseModel):
    symbol: str
    company: str


class WatchlistPageResponse(WatchlistResponse):
    entries: list[WatchlistEntry] = Field(default_factory=list)


@router.get("", response_model=WatchlistPageResponse)
async def read_watchlist(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    market_data: MarketDataAggregator = Depends(get_market_data),
) -> WatchlistPageResponse:
    rows = get_watchlist(db, current_user.id)
    entries = [WatchlistEntry(symbol=row.symbol, company=row.company) for row in rows]
    try:
        items = await market_data.get_watchlist_data([e.symbol for e in entries])
    except MarketDataConfigError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return WatchlistPageResponse(
        entries=entries,
        items=items,
        alert_symbols=get_alert_symbols(db, current_user.id),
    )


@router.post("", response_model=ActionResult)
def create_watchlist_entry(
    payload: WatchlistAddRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ActionResult:
    return add_to_watchlist(db, current_user.id, payload.symbol, payload.company)


@router.delete("/{symbol}", response_model=ActionResult)
def delete_watchlist_entry(
    symbol: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ActionResult:
    return remove_from_watchlist(db, current_user.id, symbol)
