from __future__ import annotations

import pytest

from signalist.core.finnhub_client import MarketDataConfigError
from signalist.services.news_selector import NewsFetchError, NewsSelector, dedupe_general, round_robin


def _article(n: int, ts: int, **extra) -> dict:
    base = {
        "id": n,
        "headline": f"headline {n}",
        "summary": f"summary {n}",
        "url": f"https://news.example.com/{n}",
        "datetime": ts,
        "source": "Wire",
    }
    base.update(extra)
    return base


def test_round_robin_alternates_symbols() -> None:
    per_symbol = {
        "AAA": [_article(1, 10), _article(2, 20), _article(3, 30), _article(4, 40)],
        "BBB": [_article(5, 50), _article(6, 60), _article(7, 70), _article(8, 80)],
    }
    picks = round_robin(per_symbol, ["AAA", "BBB"], limit=6)
    assert [sym for sym, _ in picks] == ["AAA", "BBB", "AAA", "BBB", "AAA", "BBB"]
    assert [a["id"] for _, a in picks] == [1, 5, 2, 6, 3, 7]


def test_round_robin_drains_short_lists() -> None:
    per_symbol = {"AAA": [_article(1, 10)], "BBB": [_article(2, 20), _article(3, 30)]}
    picks = round_robin(per_symbol, ["AAA", "BBB"], limit=6)
    assert [a["id"] for _, a in picks] == [1, 2, 3]


def test_dedupe_general_by_id_url_headline() -> None:
    dup = _article(1, 10)
    items = [dup, dict(dup), _article(2, 20), {"headline": "", "summary": "s", "url": "u"}]
    unique = dedupe_general(items)
    assert [a["id"] for a in unique] == [1, 2]


def test_dedupe_general_stops_at_cap() -> None:
    items = [_article(i, i) for i in range(40)]
    assert len(dedupe_general(items, cap=20)) == 20


@pytest.mark.asyncio
async def test_symbol_news_sorted_newest_first_and_capped(fake_finnhub) -> None:
    fake_finnhub.company_news["AAA"] = [_article(i, 100 + i) for i in range(5)]
    fake_finnhub.company_news["BBB"] = [_article(10 + i, 200 + i) for i in range(5)]

    articles = await NewsSelector(fake_finnhub).get_news(["aaa", " bbb ", ""])

    assert len(articles) == 6
    stamps = [a.datetime for a in articles]
    assert stamps == sorted(stamps, reverse=True)
    assert {a.related for a in articles} == {"AAA", "BBB"}
    assert all(a.category == "company" for a in articles)


@pytest.mark.asyncio
async def test_failed_symbol_does_not_block_others(fake_finnhub) -> None:
    fake_finnhub.failing.add(("company_news", "AAA"))
    fake_finnhub.company_news["BBB"] = [_article(1, 10), _article(2, 20)]

    articles = await NewsSelector(fake_finnhub).get_news(["AAA", "BBB"])

    assert [a.id for a in articles] == [2, 1]


@pytest.mark.asyncio
async def test_falls_back_to_general_news_when_nothing_collected(fake_finnhub) -> None:
    fake_finnhub.company_news["AAA"] = [{"headline": "no summary", "url": "u"}]
    fake_finnhub.market_news = [_article(i, i, category="top news") for i in range(10)]

    articles = await NewsSelector(fake_finnhub).get_news(["AAA"])

    assert len(articles) == 6
    assert articles[0].category == "top news"
    assert ("market_news", "general") in fake_finnhub.calls


@pytest.mark.asyncio
async def test_general_news_without_symbols(fake_finnhub) -> None:
    fake_finnhub.market_news = [_article(1, 1)]
    articles = await NewsSelector(fake_finnhub).get_news()
    assert [a.id for a in articles] == [1]
    assert not any(call[0] == "company_news" for call in fake_finnhub.calls)


@pytest.mark.asyncio
async def test_failed_fallback_raises_news_fetch_error(fake_finnhub) -> None:
    fake_finnhub.failing.add(("market_news", "general"))
    with pytest.raises(NewsFetchError):
        await NewsSelector(fake_finnhub).get_news([])


@pytest.mark.asyncio
async def test_missing_key_raises_config_error(fake_finnhub) -> None:
    fake_finnhub.api_key = ""
    with pytest.raises(MarketDataConfigError):
        await NewsSelector(fake_finnhub).get_news(["AAPL"])


@pytest.mark.asyncio
async def test_repeated_symbols_are_fetched_once(fake_finnhub) -> None:
    fake_finnhub.company_news["AAA"] = [_article(1, 10), _article(2, 20)]

    articles = await NewsSelector(fake_finnhub).get_news(["AAA", "aaa", " AAA "])

    assert fake_finnhub.calls.count(("company_news", "AAA")) == 1
    assert [a.id for a in articles] == [2, 1]
