from __future__ import annotations

from fastapi.testclient import TestClient

from signalist.config.settings import AppSettings
from signalist.main import create_app


def _client(session_factory, fake_finnhub, fake_mailer, admin_emails=()) -> tuple[TestClient, dict[str, str]]:
    app = create_app(
        settings=AppSettings(scheduler_enabled=False, admin_emails=list(admin_emails)),
        session_factory=session_factory,
        finnhub_client=fake_finnhub,
        mailer=fake_mailer,
    )
    client = TestClient(app)
    client.post(
        "/api/auth/register",
        json={"email": "ana@example.com", "password": "password123", "name": "Ana"},
    )
    tokens = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "password123"}).json()
    return client, {"Authorization": f"Bearer {tokens['access_token']}"}


def test_watchlist_flow(session_factory, fake_finnhub, fake_mailer) -> None:
    client, headers = _client(session_factory, fake_finnhub, fake_mailer)
    fake_finnhub.quotes["AAPL"] = {"c": 190.0, "dp": 1.0}
    fake_finnhub.profiles["AAPL"] = {"name": "Apple Inc", "marketCapitalization": 2500}

    added = client.post("/api/watchlist", json={"symbol": "aapl", "company": "Apple Inc"}, headers=headers)
    assert added.json() == {"success": True, "message": "Added to watchlist"}
    dup = client.post("/api/watchlist", json={"symbol": "AAPL", "company": "Apple Inc"}, headers=headers)
    assert dup.json() == {"success": False, "message": "Stock already in watchlist"}
    client.post("/api/alerts", json={"symbol": "AAPL", "company": "Apple Inc"}, headers=headers)

    page = client.get("/api/watchlist", headers=headers)
    assert page.status_code == 200
    body = page.json()
    assert body["entries"] == [{"symbol": "AAPL", "company": "Apple Inc"}]
    assert body["items"][0]["market_cap"] == "$2.50T"
    assert body["alert_symbols"] == ["AAPL"]

    removed = client.delete("/api/watchlist/aapl", headers=headers)
    assert removed.json()["message"] == "Removed from watchlist"
    missing = client.delete("/api/watchlist/aapl", headers=headers)
    assert missing.json()["message"] == "Stock not found in watchlist"


def test_watchlist_market_data_requires_key(session_factory, fake_finnhub, fake_mailer) -> None:
    client, headers = _client(session_factory, fake_finnhub, fake_mailer)
    client.post("/api/watchlist", json={"symbol": "AAPL", "company": "Apple Inc"}, headers=headers)
    fake_finnhub.api_key = ""

    resp = client.get("/api/watchlist", headers=headers)
    assert resp.status_code == 503


def test_alert_routes(session_factory, fake_finnhub, fake_mailer) -> None:
    client, headers = _client(session_factory, fake_finnhub, fake_mailer)

    first = client.post("/api/alerts", json={"symbol": "MSFT", "company": "Microsoft"}, headers=headers)
    assert first.json()["message"] == "Hourly alert enabled"
    again = client.post("/api/alerts", json={"symbol": "msft", "company": "Microsoft"}, headers=headers)
    assert again.json()["message"] == "Alert already exists for this stock"
    assert client.get("/api/alerts", headers=headers).json() == {"symbols": ["MSFT"]}
    assert client.delete("/api/alerts/MSFT", headers=headers).json()["message"] == "Alert removed"


def test_search_marks_watchlist_symbols(session_factory, fake_finnhub, fake_mailer) -> None:
    client, headers = _client(session_factory, fake_finnhub, fake_mailer)
    client.post("/api/watchlist", json={"symbol": "AAPL", "company": "Apple Inc"}, headers=headers)
    fake_finnhub.search_results = [
        {"symbol": "AAPL", "description": "Apple Inc", "displaySymbol": "AAPL", "type": "Common Stock"},
        {"symbol": "APLE", "description": "Apple Hospitality", "displaySymbol": "APLE", "type": "REIT"},
    ]

    resp = client.get("/api/stocks/search", params={"q": "apple"}, headers=headers)

    assert resp.status_code == 200
    flags = {r["symbol"]: r["is_in_watchlist"] for r in resp.json()}
    assert flags == {"AAPL": True, "APLE": False}


def test_snapshots_route(session_factory, fake_finnhub, fake_mailer) -> None:
    client, headers = _client(session_factory, fake_finnhub, fake_mailer)
    fake_finnhub.quotes["AAPL"] = {"c": 190.0, "dp": 1.0, "h": 191, "l": 188, "o": 189, "pc": 188.1}
    fake_finnhub.failing.add(("quote", "DOWN"))

    resp = client.get("/api/stocks/snapshots", params={"symbols": "aapl,DOWN,aapl"}, headers=headers)

    assert resp.status_code == 200
    assert [s["symbol"] for s in resp.json()] == ["AAPL"]


def test_news_route_error_mapping(session_factory, fake_finnhub, fake_mailer) -> None:
    client, headers = _client(session_factory, fake_finnhub, fake_mailer)
    fake_finnhub.company_news["AAPL"] = [
        {"id": 1, "headline": "h", "summary": "s", "url": "https://n.example/1", "datetime": 10}
    ]

    ok = client.get("/api/news", params={"symbols": "AAPL"}, headers=headers)
    assert ok.status_code == 200
    assert ok.json()["articles"][0]["related"] == "AAPL"

    fake_finnhub.failing.add(("market_news", "general"))
    assert client.get("/api/news", headers=headers).status_code == 502

    fake_finnhub.api_key = ""
    assert client.get("/api/news", headers=headers).status_code == 503


def test_workflow_trigger_routes(session_factory, fake_finnhub, fake_mailer) -> None:
    client, headers = _client(session_factory, fake_finnhub, fake_mailer, admin_emails=["ana@example.com"])
    assert client.get("/api/auth/me", headers=headers).json()["role"] == "admin"

    hourly = client.post("/api/workflows/hourly-alerts", headers=headers)
    assert hourly.status_code == 200
    assert hourly.json()["message"] == "No alerts found"

    client.post("/api/alerts", json={"symbol": "AAPL", "company": "Apple Inc"}, headers=headers)
    fake_finnhub.quotes["AAPL"] = {"c": 190.0, "dp": 1.0}
    ran = client.post("/api/workflows/hourly-alerts", headers=headers).json()
    assert ran["success"] is True
    assert ran["sent"] == 1
    assert fake_mailer.sent[-1]["kind"] == "alert"

    fake_finnhub.market_news = [
        {"id": 9, "headline": "h", "summary": "s", "url": "https://n.example/9", "datetime": 10}
    ]
    digest = client.post("/api/workflows/daily-news", headers=headers).json()
    assert digest["sent"] == 1
    assert fake_mailer.sent[-1]["kind"] == "news"


def test_workflow_trigger_routes_require_admin(session_factory, fake_finnhub, fake_mailer) -> None:
    client, headers = _client(session_factory, fake_finnhub, fake_mailer)
    assert client.get("/api/auth/me", headers=headers).json()["role"] == "member"
    client.post("/api/alerts", json={"symbol": "AAPL", "company": "Apple Inc"}, headers=headers)
    fake_finnhub.quotes["AAPL"] = {"c": 190.0, "dp": 1.0}
    fake_finnhub.market_news = [
        {"id": 9, "headline": "h", "summary": "s", "url": "https://n.example/9", "datetime": 10}
    ]
    before = len(fake_mailer.sent)

    hourly = client.post("/api/workflows/hourly-alerts", headers=headers)
    daily = client.post("/api/workflows/daily-news", headers=headers)

    assert hourly.status_code == 403
    assert daily.status_code == 403
    assert hourly.json()["detail"] == "Insufficient role"
    assert len(fake_mailer.sent) == before
    assert client.post("/api/workflows/daily-news").status_code == 401
