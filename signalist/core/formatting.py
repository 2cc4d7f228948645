"""Display formatting for quotes, fundamentals and news articles."""
from __future__ import annotations

import time
from typing import Any, Mapping, Optional

from signalist.core.models import NewsArticle

NOT_AVAILABLE = "N/A"

# Finnhub reports market capitalization in millions of USD.
TRILLION_THRESHOLD_MILLIONS = 1000.0
BILLION_THRESHOLD_MILLIONS = 1.0

PE_METRIC_KEYS = ("peBasicExclExtraTTM", "peNormalizedAnnual")

COMPANY_SUMMARY_LIMIT = 200
GENERAL_SUMMARY_LIMIT = 150


def safe_float(value: Any) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError):
        return 0.0
    if out != out:
        return 0.0
    return out


def format_market_cap(market_cap_millions: Any) -> str:
    # Both display tiers share the same /1000 scale: 2500 -> $2.50T, 500 -> $0.50B.
    value = safe_float(market_cap_millions)
    if value >= TRILLION_THRESHOLD_MILLIONS:
        return f"${value / 1000:.2f}T"
    if value >= BILLION_THRESHOLD_MILLIONS:
        return f"${value / 1000:.2f}B"
    return NOT_AVAILABLE


def format_price(price: Any) -> str:
    value = safe_float(price)
    if not value:
        return NOT_AVAILABLE
    return f"${value:.2f}"


def format_currency(value: Any) -> str:
    return f"${safe_float(value):,.2f}"


def format_change(change_percent: Any) -> str:
    value = safe_float(change_percent)
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.2f}%"


def resolve_pe_ratio(metrics: Optional[Mapping[str, Any]]) -> float:
    if not isinstance(metrics, Mapping):
        return 0.0
    for key in PE_METRIC_KEYS:
        value = safe_float(metrics.get(key))
        if value:
            return value
    return 0.0


def format_pe_ratio(metrics: Optional[Mapping[str, Any]]) -> str:
    pe = resolve_pe_ratio(metrics)
    return f"{pe:.1f}" if pe else NOT_AVAILABLE


def is_valid_article(article: Any) -> bool:
    if not isinstance(article, Mapping):
        return False
    return all(str(article.get(field) or "").strip() for field in ("headline", "summary", "url"))


def _truncate(text: str, limit: int) -> str:
    return f"{text[:limit]}..."


def format_article(
    article: Mapping[str, Any],
    is_company_news: bool,
    symbol: Optional[str] = None,
    now: Optional[int] = None,
) -> NewsArticle:
    limit = COMPANY_SUMMARY_LIMIT if is_company_news else GENERAL_SUMMARY_LIMIT
    published = int(safe_float(article.get("datetime"))) or int(now if now is not None else time.time())
    raw_id = article.get("id")
    return NewsArticle(
        id=raw_id if isinstance(raw_id, (int, str)) and raw_id != "" else f"{article.get('url')}",
        headline=str(article.get("headline") or "").strip(),
        summary=_truncate(str(article.get("summary") or "").strip(), limit),
        source=str(article.get("source") or "").strip() or ("Company News" if is_company_news else "Market News"),
        url=str(article.get("url") or "").strip(),
        image=str(article.get("image") or ""),
        datetime=published,
        category="company" if is_company_news else (str(article.get("category") or "") or "general"),
        related=(symbol or "") if is_company_news else str(article.get("related") or ""),
    )
