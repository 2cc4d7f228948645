from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


def _default_cors_origins() -> list[str]:
    return [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]


class AppSettings(BaseModel):
    app_name: str = "Signalist API"
    app_version: str = "0.1.0"
    cors_origins: list[str] = Field(default_factory=_default_cors_origins)
    database_url: str = "sqlite:///./signalist.db"

    finnhub_api_key: str = ""
    finnhub_timeout_seconds: float = 12.0
    quote_cache_ttl_seconds: int = 300
    profile_cache_ttl_seconds: int = 7200
    news_cache_ttl_seconds: int = 300
    search_cache_ttl_seconds: int = 1800

    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    mail_sender_name: str = "Signalist"

    scheduler_enabled: bool = False
    hourly_alerts_cron: str = "0 * * * *"
    daily_news_cron: str = "0 12 * * *"

    admin_emails: list[str] = Field(default_factory=list)


def _parse_list_env(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    vals = [item.strip() for item in raw.split(",")]
    vals = [item for item in vals if item]
    return vals or None


def _env(name: str, legacy_name: str | None = None) -> str | None:
    val = os.getenv(name)
    if val is not None:
        return val
    if legacy_name:
        return os.getenv(legacy_name)
    return None


def _flag(raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _load_yaml() -> dict[str, Any]:
    base = Path(__file__).resolve().parents[2]
    source = Path(_env("SIGNALIST_SETTINGS_FILE") or base / "config" / "settings.yaml")
    if not source.exists():
        return {}
    payload = yaml.safe_load(source.read_text(encoding="utf-8")) or {}
    return payload if isinstance(payload, dict) else {}


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    payload = _load_yaml()
    app_cfg = payload.get("app", {}) or {}
    finnhub_cfg = payload.get("finnhub", {}) or {}
    cache_cfg = payload.get("cache", {}) or {}
    smtp_cfg = payload.get("smtp", {}) or {}
    scheduler_cfg = payload.get("scheduler", {}) or {}
    defaults = AppSettings()

    return AppSettings(
        app_name=_env("SIGNALIST_APP_NAME") or app_cfg.get("name", defaults.app_name),
        app_version=_env("SIGNALIST_APP_VERSION") or app_cfg.get("version", defaults.app_version),
        cors_origins=_parse_list_env(_env("SIGNALIST_CORS_ORIGINS"))
        or app_cfg.get("cors_origins", _default_cors_origins()),
        database_url=_env("SIGNALIST_DATABASE_URL", "DATABASE_URL")
        or payload.get("database_url", defaults.database_url),
        finnhub_api_key=_env("FINNHUB_API_KEY", "NEXT_PUBLIC_FINNHUB_API_KEY")
        or finnhub_cfg.get("api_key", ""),
        finnhub_timeout_seconds=float(
            _env("SIGNALIST_FINNHUB_TIMEOUT_SECONDS")
            or finnhub_cfg.get("timeout_seconds", defaults.finnhub_timeout_seconds)
        ),
        quote_cache_ttl_seconds=int(cache_cfg.get("quote_ttl_seconds", defaults.quote_cache_ttl_seconds)),
        profile_cache_ttl_seconds=int(cache_cfg.get("profile_ttl_seconds", defaults.profile_cache_ttl_seconds)),
        news_cache_ttl_seconds=int(cache_cfg.get("news_ttl_seconds", defaults.news_cache_ttl_seconds)),
        search_cache_ttl_seconds=int(cache_cfg.get("search_ttl_seconds", defaults.search_cache_ttl_seconds)),
        smtp_host=_env("SMTP_HOST") or smtp_cfg.get("host", ""),
        smtp_port=int(_env("SMTP_PORT") or smtp_cfg.get("port", defaults.smtp_port)),
        smtp_user=_env("SMTP_USER") or smtp_cfg.get("user", ""),
        smtp_password=_env("SMTP_PASSWORD") or smtp_cfg.get("password", ""),
        mail_sender_name=smtp_cfg.get("sender_name", defaults.mail_sender_name),
        scheduler_enabled=_flag(
            _env("SIGNALIST_SCHEDULER_ENABLED"),
            bool(scheduler_cfg.get("enabled", defaults.scheduler_enabled)),
        ),
        hourly_alerts_cron=scheduler_cfg.get("hourly_alerts_cron", defaults.hourly_alerts_cron),
        daily_news_cron=scheduler_cfg.get("daily_news_cron", defaults.daily_news_cron),
        admin_emails=[
            str(e).strip().lower()
            for e in (_parse_list_env(_env("SIGNALIST_ADMIN_EMAILS")) or payload.get("admin_emails") or [])
        ],
    )
