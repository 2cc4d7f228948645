from __future__ import annotations

import pytest

from signalist.config.settings import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_yaml_file_and_env_overlay(tmp_path, monkeypatch) -> None:
    cfg = tmp_path / "settings.yaml"
    cfg.write_text(
        "\n".join(
            [
                "app:",
                "  name: Signalist Test",
                "database_url: sqlite:///./from-yaml.db",
                "finnhub:",
                "  timeout_seconds: 5",
                "cache:",
                "  quote_ttl_seconds: 60",
                "scheduler:",
                "  enabled: false",
                "  hourly_alerts_cron: '15 * * * *'",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("SIGNALIST_SETTINGS_FILE", str(cfg))
    monkeypatch.delenv("FINNHUB_API_KEY", raising=False)
    monkeypatch.setenv("NEXT_PUBLIC_FINNHUB_API_KEY", "legacy-key")
    monkeypatch.setenv("SIGNALIST_SCHEDULER_ENABLED", "true")
    monkeypatch.delenv("SIGNALIST_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)

    settings = get_settings()

    assert settings.app_name == "Signalist Test"
    assert settings.database_url == "sqlite:///./from-yaml.db"
    assert settings.finnhub_api_key == "legacy-key"
    assert settings.finnhub_timeout_seconds == 5.0
    assert settings.quote_cache_ttl_seconds == 60
    assert settings.profile_cache_ttl_seconds == 7200
    assert settings.scheduler_enabled is True
    assert settings.hourly_alerts_cron == "15 * * * *"
    assert settings.daily_news_cron == "0 12 * * *"


def test_missing_settings_file_uses_defaults(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("SIGNALIST_SETTINGS_FILE", str(tmp_path / "absent.yaml"))
    monkeypatch.setenv("FINNHUB_API_KEY", "primary")
    monkeypatch.setenv("NEXT_PUBLIC_FINNHUB_API_KEY", "legacy")
    monkeypatch.setenv("SIGNALIST_CORS_ORIGINS", "https://a.example, https://b.example")

    settings = get_settings()

    assert settings.finnhub_api_key == "primary"
    assert settings.cors_origins == ["https://a.example", "https://b.example"]
    assert settings.smtp_port == 587
    assert settings.mail_sender_name == "Signalist"


def test_admin_emails_from_yaml_and_env(tmp_path, monkeypatch) -> None:
    cfg = tmp_path / "settings.yaml"
    cfg.write_text("admin_emails:\n  - Ops@Example.com\n", encoding="utf-8")
    monkeypatch.setenv("SIGNALIST_SETTINGS_FILE", str(cfg))
    monkeypatch.delenv("SIGNALIST_ADMIN_EMAILS", raising=False)

    assert get_settings().admin_emails == ["ops@example.com"]

    get_settings.cache_clear()
    monkeypatch.setenv("SIGNALIST_ADMIN_EMAILS", "root@example.com, Lead@Example.com")

    assert get_settings().admin_emails == ["root@example.com", "lead@example.com"]
