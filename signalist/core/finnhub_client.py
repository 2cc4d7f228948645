from __future__ import annotations

import logging
import os
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import httpx

from signalist.core.retry import RetryPolicy
from signalist.shared.cache import ResponseCache

logger = logging.getLogger(__name__)


class MarketDataConfigError(RuntimeError):
    """Raised when the market-data API key is not configured."""


class FinnhubRequestError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def date_range(days: int, today: Optional[date] = None) -> Dict[str, str]:
    end = today or date.today()
    return {"from": (end - timedelta(days=days)).isoformat(), "to": end.isoformat()}


class FinnhubClient:
    BASE_URL = "https://finnhub.io/api/v1"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 12.0,
        retry_policy: Optional[RetryPolicy] = None,
        cache: Optional[ResponseCache] = None,
        quote_ttl: int = 300,
        profile_ttl: int = 7200,
        news_ttl: int = 300,
        search_ttl: int = 1800,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else os.getenv("FINNHUB_API_KEY", "")
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy(retry_on=(FinnhubRequestError,))
        self.cache = cache or ResponseCache()
        self.quote_ttl = quote_ttl
        self.profile_ttl = profile_ttl
        self.news_ttl = news_ttl
        self.search_ttl = search_ttl
        self._transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def initialize(self):
        if self.client:
            return

        self.client = httpx.AsyncClient(
            timeout=self.timeout,
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            trust_env=False,
            follow_redirects=True,
            transport=self._transport,
        )

    async def close(self):
        if self.client:
            await self.client.aclose()
            self.client = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def require_api_key(self) -> None:
        if not self.api_key:
            raise MarketDataConfigError("FINNHUB API key is not configured")

    async def _request(self, endpoint: str, params: Dict[str, Any]) -> Any:
        if not self.client:
            await self.initialize()
        url = f"{self.BASE_URL}{endpoint}"
        try:
            response = await self.client.get(url, params={**params, "token": self.api_key})
        except httpx.HTTPError as exc:
            raise FinnhubRequestError(f"Finnhub request error on {endpoint}: {exc}") from exc
        if response.status_code >= 400:
            text = response.text[:200] if response.text else ""
            raise FinnhubRequestError(f"Fetch failed {response.status_code}: {text}", status_code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise FinnhubRequestError(f"Invalid JSON from {endpoint}") from exc

    async def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None, ttl: int = 0) -> Any:
        self.require_api_key()
        p = dict(params or {})
        key = self.cache.build_key(endpoint, p)
        if ttl > 0:
            cached = await self.cache.get(key)
            if cached is not None:
                return cached

        data = await self.retry_policy.run(lambda: self._request(endpoint, p), label=endpoint)
        if ttl > 0 and data is not None:
            await self.cache.set(key, data, ttl=ttl)
        return data

    async def get_quote(self, symbol: str) -> Dict[str, Any]:
        data = await self._get("/quote", {"symbol": symbol.strip().upper()}, ttl=self.quote_ttl)
        return data if isinstance(data, dict) else {}

    async def get_company_profile(self, symbol: str) -> Dict[str, Any]:
        data = await self._get("/stock/profile2", {"symbol": symbol.strip().upper()}, ttl=self.profile_ttl)
        return data if isinstance(data, dict) else {}

    async def get_basic_financials(self, symbol: str) -> Dict[str, Any]:
        data = await self._get(
            "/stock/metric",
            {"symbol": symbol.strip().upper(), "metric": "all"},
            ttl=self.profile_ttl,
        )
        return data if isinstance(data, dict) else {}

    async def search_symbols(self, query: str) -> List[Dict[str, Any]]:
        data = await self._get("/search", {"q": query.strip()}, ttl=self.search_ttl)
        if not isinstance(data, dict):
            return []
        result = data.get("result")
        return result if isinstance(result, list) else []

    async def get_company_news(self, symbol: str, days: int = 5) -> List[Dict[str, Any]]:
        window = date_range(days)
        data = await self._get(
            "/company-news",
            {
                "symbol": symbol.strip().upper(),
                "from": window["from"],
                "to": window["to"],
            },
            ttl=self.news_ttl,
        )
        if not isinstance(data, list):
            return []
        return data

    async def get_market_news(self, category: str = "general") -> List[Dict[str, Any]]:
        data = await self._get("/news", {"category": category}, ttl=self.news_ttl)
        if not isinstance(data, list):
            return []
        return data
