from __future__ import annotations

import smtplib
import sys
from pathlib import Path

import pytest

# Ensure `import signalist...` works even when pytest is launched from `signalist/`.
REPO_ROOT = Path(__file__).resolve().parents[2]
repo_root_str = str(REPO_ROOT)
if repo_root_str not in sys.path:
    sys.path.insert(0, repo_root_str)

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from signalist.core.finnhub_client import FinnhubRequestError, MarketDataConfigError  # noqa: E402
from signalist.db.database import init_db  # noqa: E402


class FakeFinnhubClient:
    """In-memory stand-in for FinnhubClient keyed by symbol."""

    def __init__(self, api_key: str = "test-key") -> None:
        self.api_key = api_key
        self.quotes: dict[str, dict] = {}
        self.profiles: dict[str, dict] = {}
        self.financials: dict[str, dict] = {}
        self.company_news: dict[str, list[dict]] = {}
        self.market_news: list[dict] = []
        self.search_results: list[dict] = []
        self.failing: set[tuple[str, str]] = set()
        self.calls: list[tuple[str, str]] = []
        self.initialized = False
        self.closed = False

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def require_api_key(self) -> None:
        if not self.api_key:
            raise MarketDataConfigError("FINNHUB API key is not configured")

    async def initialize(self) -> None:
        self.initialized = True

    async def close(self) -> None:
        self.closed = True

    def _check(self, method: str, key: str) -> None:
        self.calls.append((method, key))
        self.require_api_key()
        if (method, key) in self.failing or (method, "*") in self.failing:
            raise FinnhubRequestError(f"{method} failed for {key}", status_code=500)

    async def get_quote(self, symbol: str) -> dict:
        self._check("quote", symbol)
        return dict(self.quotes.get(symbol, {}))

    async def get_company_profile(self, symbol: str) -> dict:
        self._check("profile", symbol)
        return dict(self.profiles.get(symbol, {}))

    async def get_basic_financials(self, symbol: str) -> dict:
        self._check("financials", symbol)
        return dict(self.financials.get(symbol, {}))

    async def get_company_news(self, symbol: str, days: int = 5) -> list[dict]:
        self._check("company_news", symbol)
        return list(self.company_news.get(symbol, []))

    async def get_market_news(self, category: str = "general") -> list[dict]:
        self._check("market_news", category)
        return list(self.market_news)

    async def search_symbols(self, query: str) -> list[dict]:
        self._check("search", query)
        return list(self.search_results)


class FakeMailer:
    def __init__(self) -> None:
        self.configured = True
        self.sent: list[dict] = []
        self.fail_for: set[str] = set()

    def _record(self, kind: str, email: str, **payload) -> None:
        if email in self.fail_for:
            raise smtplib.SMTPException(f"rejected {email}")
        self.sent.append({"kind": kind, "email": email, **payload})

    def send_welcome_email(self, email: str, name: str, intro: str | None = None) -> None:
        self._record("welcome", email, name=name)

    def send_news_summary_email(self, email: str, date: str, articles) -> None:
        self._record("news", email, date=date, articles=list(articles))

    def send_alert_summary_email(self, email: str, name: str, snapshots, date: str) -> None:
        self._record("alert", email, name=name, snapshots=list(snapshots), date=date)


@pytest.fixture
def session_factory() -> sessionmaker:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_finnhub() -> FakeFinnhubClient:
    return FakeFinnhubClient()


@pytest.fixture
def fake_mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def make_user(session_factory):
    from signalist.models.user import User

    def _make(email: str, name: str = "Test User") -> str:
        session = session_factory()
        try:
            user = User(email=email, name=name, hashed_password="not-a-real-hash")
            session.add(user)
            session.commit()
            return user.id
        finally:
            session.close()

    return _make
