from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from signalist.core.finnhub_client import FinnhubClient, FinnhubRequestError, MarketDataConfigError
from signalist.core.models import SearchResult

logger = logging.getLogger(__name__)

POPULAR_STOCK_SYMBOLS = [
    "AAPL",
    "MSFT",
    "GOOGL",
    "AMZN",
    "TSLA",
    "META",
    "NVDA",
    "NFLX",
    "ORCL",
    "CRM",
    "ADBE",
    "INTC",
    "AMD",
    "PYPL",
    "UBER",
]

POPULAR_LIMIT = 10
MAX_RESULTS = 15
PROFILE_DELAY_SECONDS = 0.1


class StockSearchService:
    def __init__(
        self,
        client: FinnhubClient,
        popular_symbols: Optional[list[str]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.client = client
        self.popular_symbols = popular_symbols or POPULAR_STOCK_SYMBOLS
        self._sleep = sleep

    async def search(self, query: Optional[str] = None) -> list[SearchResult]:
        trimmed = (query or "").strip()
        try:
            if not trimmed:
                results = await self._popular()
            else:
                results = await self._lookup(trimmed)
        except MarketDataConfigError as exc:
            logger.error("Error in stock search: %s", exc)
            return []
        except FinnhubRequestError as exc:
            logger.error("Error in stock search for %r: %s", trimmed, exc)
            return []
        return results[:MAX_RESULTS]

    async def _popular(self) -> list[SearchResult]:
        self.client.require_api_key()
        results: list[SearchResult] = []
        # Sequential with a short pause to stay under the upstream rate limit.
        for sym in self.popular_symbols[:POPULAR_LIMIT]:
            try:
                profile = await self.client.get_company_profile(sym)
            except FinnhubRequestError as exc:
                if exc.status_code != 429:
                    logger.warning("Error fetching profile for %s: %s", sym, exc)
                profile = {}
            await self._sleep(PROFILE_DELAY_SECONDS)
            name = str(profile.get("name") or profile.get("ticker") or "")
            if not name:
                continue
            results.append(
                SearchResult(
                    symbol=sym.upper(),
                    name=name,
                    exchange=str(profile.get("exchange") or "US"),
                    type="Common Stock",
                )
            )
        return results

    async def _lookup(self, query: str) -> list[SearchResult]:
        rows = await self.client.search_symbols(query)
        results: list[SearchResult] = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            symbol = str(row.get("symbol") or "").upper()
            if not symbol:
                continue
            results.append(
                SearchResult(
                    symbol=symbol,
                    name=str(row.get("description") or symbol),
                    exchange=str(row.get("displaySymbol") or "US"),
                    type=str(row.get("type") or "Stock"),
                )
            )
        return results
