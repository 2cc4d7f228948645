from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from signalist.api import register_api_routers
from signalist.auth.middleware import AuthMiddleware
from signalist.config.settings import AppSettings, get_settings
from signalist.core.finnhub_client import FinnhubClient
from signalist.db.database import create_db_engine, create_session_factory, init_db
from signalist.notifications.mailer import Mailer
from signalist.services.market_data import MarketDataAggregator
from signalist.services.news_selector import NewsSelector
from signalist.services.stock_search import StockSearchService
from signalist.shared.cache import ResponseCache
from signalist.workflows.alert_delivery import AlertDeliveryWorkflow
from signalist.workflows.news_digest import NewsDigestWorkflow
from signalist.workflows.scheduler import WorkflowScheduler

logger = logging.getLogger(__name__)


def _build_finnhub_client(settings: AppSettings) -> FinnhubClient:
    return FinnhubClient(
        api_key=settings.finnhub_api_key,
        timeout=settings.finnhub_timeout_seconds,
        cache=ResponseCache(),
        quote_ttl=settings.quote_cache_ttl_seconds,
        profile_ttl=settings.profile_cache_ttl_seconds,
        news_ttl=settings.news_cache_ttl_seconds,
        search_ttl=settings.search_cache_ttl_seconds,
    )


def create_app(
    settings: Optional[AppSettings] = None,
    session_factory: Optional[Callable[[], Session]] = None,
    finnhub_client: Optional[FinnhubClient] = None,
    mailer: Optional[Mailer] = None,
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, version=settings.app_version)

    engine = None
    if session_factory is None:
        engine = create_db_engine(settings.database_url)
        session_factory = create_session_factory(engine)

    client = finnhub_client or _build_finnhub_client(settings)
    mailer = mailer or Mailer.from_settings(settings)
    market_data = MarketDataAggregator(client)
    news_selector = NewsSelector(client)
    alert_workflow = AlertDeliveryWorkflow(session_factory, market_data, mailer)
    news_workflow = NewsDigestWorkflow(session_factory, news_selector, mailer)
    scheduler = WorkflowScheduler(
        alert_workflow.run,
        news_workflow.run,
        hourly_cron=settings.hourly_alerts_cron,
        daily_cron=settings.daily_news_cron,
    )

    app.state.settings = settings
    app.state.db_session_factory = session_factory
    app.state.finnhub_client = client
    app.state.mailer = mailer
    app.state.market_data = market_data
    app.state.news_selector = news_selector
    app.state.stock_search = StockSearchService(client)
    app.state.alert_workflow = alert_workflow
    app.state.news_workflow = news_workflow
    app.state.scheduler = scheduler

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(AuthMiddleware)
    register_api_routers(app)

    @app.on_event("startup")
    async def on_startup() -> None:
        if engine is not None:
            init_db(engine)
        await client.initialize()
        if not client.configured:
            logger.warning("event=finnhub_key_missing market data routes will return 503")
        if settings.scheduler_enabled:
            scheduler.start()

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        scheduler.stop()
        await client.close()

    @app.get("/health", tags=["health"])
    def health() -> dict[str, object]:
        return {
            "status": "ok",
            "market_data_configured": client.configured,
            "mail_configured": mailer.configured,
            "scheduler": scheduler.status_snapshot() if scheduler.running else "disabled",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    uvicorn.run("signalist.main:app", host="0.0.0.0", port=8000)
