from __future__ import annotations

from fastapi import FastAPI


def register_api_routers(app: FastAPI) -> None:
    from signalist.api.routes.alerts import router as alerts_router
    from signalist.api.routes.auth import router as auth_router
    from signalist.api.routes.news import router as news_router
    from signalist.api.routes.stocks import router as stocks_router
    from signalist.api.routes.watchlist import router as watchlist_router
    from signalist.api.routes.workflows import router as workflows_router

    app.include_router(auth_router)
    app.include_router(watchlist_router)
    app.include_router(alerts_router)
    app.include_router(stocks_router)
    app.include_router(news_router)
    app.include_router(workflows_router)
