from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Mapping, Optional, Sequence

from signalist.core.finnhub_client import FinnhubClient, FinnhubRequestError
from signalist.core.formatting import format_article, is_valid_article
from signalist.core.models import NewsArticle

logger = logging.getLogger(__name__)

MAX_ARTICLES = 6
GENERAL_SCAN_CAP = 20
NEWS_LOOKBACK_DAYS = 5


class NewsFetchError(RuntimeError):
    """Raised when the general market news fallback cannot be fetched."""


def clean_symbols(symbols: Optional[Iterable[Any]]) -> list[str]:
    cleaned = [str(s or "").strip().upper() for s in (symbols or [])]
    return [s for s in cleaned if s]


def round_robin(
    per_symbol: Mapping[str, Sequence[Mapping[str, Any]]],
    symbols: Sequence[str],
    limit: int = MAX_ARTICLES,
) -> list[tuple[str, Mapping[str, Any]]]:
    """Pick one article per symbol per round until ``limit`` picks or every list is drained."""
    queues = {sym: list(per_symbol.get(sym) or []) for sym in symbols}
    picks: list[tuple[str, Mapping[str, Any]]] = []
    for _ in range(limit):
        for sym in symbols:
            queue = queues[sym]
            if not queue:
                continue
            article = queue.pop(0)
            if not is_valid_article(article):
                continue
            picks.append((sym, article))
            if len(picks) >= limit:
                return picks
        if not any(queues.values()):
            break
    return picks


def dedupe_general(articles: Iterable[Any], cap: int = GENERAL_SCAN_CAP) -> list[Mapping[str, Any]]:
    seen: set[str] = set()
    unique: list[Mapping[str, Any]] = []
    for art in articles:
        if not is_valid_article(art):
            continue
        key = f"{art.get('id')}-{art.get('url')}-{art.get('headline')}"
        if key in seen:
            continue
        seen.add(key)
        unique.append(art)
        if len(unique) >= cap:
            break
    return unique


class NewsSelector:
    def __init__(
        self,
        client: FinnhubClient,
        max_articles: int = MAX_ARTICLES,
        lookback_days: int = NEWS_LOOKBACK_DAYS,
    ):
        self.client = client
        self.max_articles = max_articles
        self.lookback_days = lookback_days

    async def get_news(self, symbols: Optional[Sequence[str]] = None) -> list[NewsArticle]:
        self.client.require_api_key()
        cleaned = list(dict.fromkeys(clean_symbols(symbols)))

        if cleaned:
            collected = await self._company_news(cleaned)
            if collected:
                return collected
            logger.info("event=news_symbol_path_empty symbols=%s", ",".join(cleaned))

        return await self._general_news()

    async def _company_news(self, symbols: list[str]) -> list[NewsArticle]:
        lists = await asyncio.gather(*(self._fetch_symbol(sym) for sym in symbols))
        per_symbol = dict(zip(symbols, lists))
        picks = round_robin(per_symbol, symbols, self.max_articles)
        collected = [format_article(article, True, sym) for sym, article in picks]
        collected.sort(key=lambda a: a.datetime or 0, reverse=True)
        return collected[: self.max_articles]

    async def _fetch_symbol(self, symbol: str) -> list[Mapping[str, Any]]:
        try:
            articles = await self.client.get_company_news(symbol, days=self.lookback_days)
        except FinnhubRequestError as exc:
            logger.error("Error fetching company news for %s: %s", symbol, exc)
            return []
        return [a for a in articles if is_valid_article(a)]

    async def _general_news(self) -> list[NewsArticle]:
        try:
            general = await self.client.get_market_news(category="general")
        except FinnhubRequestError as exc:
            logger.error("General news fetch failed: %s", exc)
            raise NewsFetchError("Failed to fetch news") from exc
        unique = dedupe_general(general)
        return [format_article(a, False) for a in unique[: self.max_articles]]
