from __future__ import annotations

from signalist.shared.cache import ResponseCache

__all__ = [
    "ResponseCache",
]
