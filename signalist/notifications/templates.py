from __future__ import annotations

import html
from datetime import datetime, timezone
from typing import Sequence

from signalist.core.formatting import format_change, format_currency
from signalist.core.models import NewsArticle, StockSnapshot

WELCOME_SUBJECT = "Welcome to Signalist! your stock market toolkit is ready!"
WELCOME_INTRO = (
    "Thanks for joining Signalist. You now have the tools to track markets and make smarter moves."
)
ALERT_TABLE_HEADERS = ("Symbol", "Price", "Change", "Open", "High", "Low", "Prev Close")

_UP_COLOR = "#0FEDBE"
_DOWN_COLOR = "#FF495B"


def date_label(now: datetime | None = None) -> str:
    """``Oct 19, 2026, 3:00 PM`` in UTC."""
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{moment.strftime('%b')} {moment.day}, {moment.year}, {hour}:{moment.minute:02d} {suffix}"


def day_label(now: datetime | None = None) -> str:
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%d")


def _shell(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{html.escape(title)}</title></head>"
        "<body style=\"margin:0;padding:24px;background:#050505;color:#CCDADC;"
        "font-family:Arial,Helvetica,sans-serif;\">"
        f"{body}"
        "<p style=\"margin-top:32px;font-size:12px;color:#6b7280;\">"
        "You are receiving this email because you signed up for Signalist.</p>"
        "</body></html>"
    )


def render_welcome(name: str, intro: str = WELCOME_INTRO) -> str:
    body = (
        f"<h1 style=\"color:#FDD458;\">Welcome aboard, {html.escape(name or 'there')}!</h1>"
        f"<p>{html.escape(intro)}</p>"
        "<ul>"
        "<li>Build a watchlist and follow it with live prices.</li>"
        "<li>Turn on hourly alerts for the stocks you care about.</li>"
        "<li>Get a daily market news summary tailored to your watchlist.</li>"
        "</ul>"
    )
    return _shell(WELCOME_SUBJECT, body)


def render_news_summary(articles: Sequence[NewsArticle], date: str) -> str:
    items = []
    for article in articles:
        items.append(
            "<div style=\"margin-bottom:20px;\">"
            f"<h3 style=\"margin:0 0 6px;\"><a style=\"color:#FDD458;\" href=\"{html.escape(article.url, quote=True)}\">"
            f"{html.escape(article.headline)}</a></h3>"
            f"<p style=\"margin:0 0 4px;\">{html.escape(article.summary)}</p>"
            f"<p style=\"margin:0;font-size:12px;color:#9ca3af;\">{html.escape(article.source)}"
            f"{' &middot; ' + html.escape(article.related) if article.related else ''}</p>"
            "</div>"
        )
    body = (
        f"<h1 style=\"color:#FDD458;\">Market News Summary Today</h1>"
        f"<p style=\"color:#9ca3af;\">{html.escape(date)}</p>"
        + "".join(items)
    )
    return _shell(f"Market News Summary - {date}", body)


def _cell(value: str, color: str | None = None) -> str:
    style = "padding:8px;border-bottom:1px solid #30333A;"
    if color:
        style += f"color:{color};"
    return f"<td style=\"{style}\">{html.escape(value)}</td>"


def render_alert_summary(name: str, snapshots: Sequence[StockSnapshot], date: str) -> str:
    header = "".join(
        f"<th style=\"padding:8px;text-align:left;border-bottom:1px solid #30333A;\">{h}</th>"
        for h in ALERT_TABLE_HEADERS
    )
    rows = []
    for snap in snapshots:
        color = _UP_COLOR if snap.change_percent >= 0 else _DOWN_COLOR
        rows.append(
            "<tr>"
            + _cell(snap.symbol)
            + _cell(format_currency(snap.price))
            + _cell(format_change(snap.change_percent), color)
            + _cell(format_currency(snap.open))
            + _cell(format_currency(snap.high))
            + _cell(format_currency(snap.low))
            + _cell(format_currency(snap.previous_close))
            + "</tr>"
        )
    body = (
        f"<h1 style=\"color:#FDD458;\">Hourly Stock Alert</h1>"
        f"<p>Hi {html.escape(name or 'there')}, here is the latest on your alerted stocks as of "
        f"{html.escape(date)}.</p>"
        "<table style=\"width:100%;border-collapse:collapse;\">"
        f"<thead><tr>{header}</tr></thead>"
        f"<tbody>{''.join(rows)}</tbody>"
        "</table>"
    )
    return _shell(f"Hourly Stock Alert - {date}", body)
