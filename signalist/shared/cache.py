from __future__ import annotations

import hashlib
import json
import time
from typing import Any, Callable, Dict, Optional, Tuple


class ResponseCache:
    """In-process TTL cache for upstream HTTP responses.

    Entries are keyed by endpoint and query parameters; the API token never
    takes part in the key.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, max_entries: int = 2048):
        self._clock = clock
        self._max_entries = max_entries
        self._entries: Dict[str, Tuple[float, Any]] = {}

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expiry, value = entry
        if self._clock() < expiry:
            return value
        del self._entries[key]
        return None

    async def set(self, key: str, value: Any, ttl: int = 300) -> None:
        if ttl <= 0:
            return
        if len(self._entries) >= self._max_entries:
            self._evict_expired()
        if len(self._entries) >= self._max_entries:
            # Oldest insertion goes first.
            self._entries.pop(next(iter(self._entries)))
        self._entries[key] = (self._clock() + ttl, value)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _evict_expired(self) -> None:
        now = self._clock()
        for key in [k for k, (expiry, _) in self._entries.items() if expiry <= now]:
            del self._entries[key]

    @staticmethod
    def build_key(endpoint: str, params: Optional[dict] = None) -> str:
        p_str = json.dumps(params or {}, sort_keys=True, default=str)
        h = hashlib.md5(p_str.encode()).hexdigest()
        return f"signalist:{endpoint}:{h}"
