from __future__ import annotations

from typing import Generator

from fastapi import Request

from signalist.config.settings import AppSettings
from signalist.core.finnhub_client import FinnhubClient
from signalist.notifications.mailer import Mailer
from signalist.services.market_data import MarketDataAggregator
from signalist.services.news_selector import NewsSelector
from signalist.services.stock_search import StockSearchService
from signalist.workflows.alert_delivery import AlertDeliveryWorkflow
from signalist.workflows.news_digest import NewsDigestWorkflow


def get_db(request: Request) -> Generator:
    db = request.app.state.db_session_factory()
    try:
        yield db
    finally:
        db.close()


def get_finnhub_client(request: Request) -> FinnhubClient:
    return request.app.state.finnhub_client


def get_market_data(request: Request) -> MarketDataAggregator:
    return request.app.state.market_data


def get_news_selector(request: Request) -> NewsSelector:
    return request.app.state.news_selector


def get_stock_search(request: Request) -> StockSearchService:
    return request.app.state.stock_search


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_alert_workflow(request: Request) -> AlertDeliveryWorkflow:
    return request.app.state.alert_workflow


def get_news_workflow(request: Request) -> NewsDigestWorkflow:
    return request.app.state.news_workflow


def get_app_settings(request: Request) -> AppSettings:
    return request.app.state.settings
