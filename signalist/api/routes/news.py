from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from signalist.api.deps import get_news_selector
from signalist.auth.deps import get_current_user
from signalist.core.finnhub_client import MarketDataConfigError
from signalist.core.models import NewsResponse
from signalist.models.user import User
from signalist.services.news_selector import NewsFetchError, NewsSelector

router = APIRouter(prefix="/api/news", tags=["news"])


@router.get("", response_model=NewsResponse)
async def read_news(
    symbols: str = Query(default="", description="Comma separated tickers; empty for general market news"),
    current_user: User = Depends(get_current_user),
    selector: NewsSelector = Depends(get_news_selector),
) -> NewsResponse:
    requested = [s for s in symbols.split(",") if s.strip()]
    try:
        articles = await selector.get_news(requested)
    except MarketDataConfigError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except NewsFetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return NewsResponse(articles=articles)
