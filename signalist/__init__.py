"""Signalist: stock watchlists, market news and hourly price alerts."""

__version__ = "0.1.0"
