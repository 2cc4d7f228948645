from __future__ import annotations

from pydantic import BaseModel, Field


class FormattedStockRecord(BaseModel):
    symbol: str
    company: str
    current_price: float = 0.0
    change_percent: float = 0.0
    price_formatted: str = "N/A"
    change_formatted: str = "N/A"
    market_cap: str = "N/A"
    pe_ratio: str = "N/A"

    @classmethod
    def placeholder(cls, symbol: str) -> "FormattedStockRecord":
        return cls(symbol=symbol, company=symbol)


class StockSnapshot(BaseModel):
    symbol: str
    price: float = 0.0
    change_percent: float = 0.0
    high: float = 0.0
    low: float = 0.0
    open: float = 0.0
    previous_close: float = 0.0


class NewsArticle(BaseModel):
    id: int | str
    headline: str
    summary: str
    source: str
    url: str
    image: str = ""
    datetime: int
    category: str = "general"
    related: str = ""


class SearchResult(BaseModel):
    symbol: str
    name: str
    exchange: str = "US"
    type: str = "Stock"
    is_in_watchlist: bool = False


class ActionResult(BaseModel):
    success: bool
    message: str


class WatchlistEntry(BaseModel):
    symbol: str
    company: str


class WatchlistResponse(BaseModel):
    items: list[FormattedStockRecord] = Field(default_factory=list)
    alert_symbols: list[str] = Field(default_factory=list)


class NewsResponse(BaseModel):
    articles: list[NewsArticle] = Field(default_factory=list)


class WorkflowResult(BaseModel):
    success: bool
    message: str
    sent: int = 0
    failed: int = 0
    unmarked: int = 0
