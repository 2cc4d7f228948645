from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from signalist.api.deps import get_db, get_market_data, get_stock_search
from signalist.auth.deps import get_current_user
from signalist.core.finnhub_client import MarketDataConfigError
from signalist.core.models import SearchResult, StockSnapshot
from signalist.models.user import User
from signalist.services.market_data import MarketDataAggregator
from signalist.services.news_selector import clean_symbols
from signalist.services.stock_search import StockSearchService
from signalist.watchlist.service import get_watchlist

router = APIRouter(prefix="/api/stocks", tags=["stocks"])


@router.get("/search", response_model=list[SearchResult])
async def search_stocks(
    q: str = Query(default=""),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    search: StockSearchService = Depends(get_stock_search),
) -> list[SearchResult]:
    results = await search.search(q)
    watched = {row.symbol for row in get_watchlist(db, current_user.id)}
    for item in results:
        item.is_in_watchlist = item.symbol in watched
    return results


@router.get("/snapshots", response_model=list[StockSnapshot])
async def stock_snapshots(
    symbols: str = Query(default=""),
    current_user: User = Depends(get_current_user),
    market_data: MarketDataAggregator = Depends(get_market_data),
) -> list[StockSnapshot]:
    cleaned = list(dict.fromkeys(clean_symbols(symbols.split(","))))
    try:
        return await market_data.get_stock_snapshots(cleaned)
    except MarketDataConfigError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
