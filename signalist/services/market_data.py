from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Sequence

from signalist.core.finnhub_client import FinnhubClient, FinnhubRequestError
from signalist.core.formatting import (
    format_change,
    format_market_cap,
    format_pe_ratio,
    format_price,
    safe_float,
)
from signalist.core.models import FormattedStockRecord, StockSnapshot

logger = logging.getLogger(__name__)

WATCHLIST_BATCH_SIZE = 5
SNAPSHOT_BATCH_SIZE = 8
BATCH_DELAY_SECONDS = 0.1


def _batches(symbols: Sequence[str], size: int) -> list[list[str]]:
    return [list(symbols[i : i + size]) for i in range(0, len(symbols), size)]


class MarketDataAggregator:
    """Batched quote/profile/financials fetch formatted into display records."""

    def __init__(
        self,
        client: FinnhubClient,
        batch_size: int = WATCHLIST_BATCH_SIZE,
        snapshot_batch_size: int = SNAPSHOT_BATCH_SIZE,
        batch_delay: float = BATCH_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.client = client
        self.batch_size = max(1, batch_size)
        self.snapshot_batch_size = max(1, snapshot_batch_size)
        self.batch_delay = batch_delay
        self._sleep = sleep

    async def get_watchlist_data(self, symbols: Sequence[str]) -> list[FormattedStockRecord]:
        if not symbols:
            return []
        self.client.require_api_key()

        records: list[FormattedStockRecord] = []
        batches = _batches(symbols, self.batch_size)
        for index, batch in enumerate(batches):
            results = await asyncio.gather(*(self._build_record(symbol) for symbol in batch))
            records.extend(results)
            if index < len(batches) - 1:
                await self._sleep(self.batch_delay)
        return records

    async def _build_record(self, symbol: str) -> FormattedStockRecord:
        try:
            quote, profile, financials = await asyncio.gather(
                self._with_default(self.client.get_quote(symbol), {"c": 0, "dp": 0}),
                self._with_default(
                    self.client.get_company_profile(symbol),
                    {"name": symbol, "marketCapitalization": 0},
                ),
                self._with_default(self.client.get_basic_financials(symbol), {"metric": {}}),
            )
            current_price = safe_float(quote.get("c"))
            change_percent = safe_float(quote.get("dp"))
            return FormattedStockRecord(
                symbol=symbol,
                company=str(profile.get("name") or symbol),
                current_price=current_price,
                change_percent=change_percent,
                price_formatted=format_price(current_price),
                change_formatted=format_change(change_percent),
                market_cap=format_market_cap(profile.get("marketCapitalization")),
                pe_ratio=format_pe_ratio(financials.get("metric")),
            )
        except Exception as exc:
            logger.error("Error building market data for %s: %s", symbol, exc)
            return FormattedStockRecord.placeholder(symbol)

    @staticmethod
    async def _with_default(call: Awaitable[dict[str, Any]], default: dict[str, Any]) -> dict[str, Any]:
        try:
            data = await call
        except FinnhubRequestError as exc:
            logger.warning("Market data fetch failed, using defaults: %s", exc)
            return default
        return data if isinstance(data, dict) and data else default

    async def get_stock_snapshots(self, symbols: Sequence[str]) -> list[StockSnapshot]:
        if not symbols:
            return []
        self.client.require_api_key()

        snapshots: list[StockSnapshot] = []
        batches = _batches(symbols, self.snapshot_batch_size)
        for index, batch in enumerate(batches):
            results = await asyncio.gather(*(self._snapshot(symbol) for symbol in batch))
            snapshots.extend(item for item in results if item is not None)
            if index < len(batches) - 1:
                await self._sleep(self.batch_delay)
        return snapshots

    async def _snapshot(self, symbol: str) -> StockSnapshot | None:
        try:
            quote = await self.client.get_quote(symbol)
        except Exception as exc:
            logger.warning("Error fetching quote for %s: %s", symbol, exc)
            return None
        return StockSnapshot(
            symbol=symbol,
            price=safe_float(quote.get("c")),
            change_percent=safe_float(quote.get("dp")),
            high=safe_float(quote.get("h")),
            low=safe_float(quote.get("l")),
            open=safe_float(quote.get("o")),
            previous_close=safe_float(quote.get("pc")),
        )
