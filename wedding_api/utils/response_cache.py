"""
In-memory TTL cache for API responses, keyed by request signature.
"""
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional
from urllib.parse import urlencode

DEFAULT_TTL = 5 * 60  # seconds


def request_signature(method: str, url: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """'GET /api/gallery?a=1' with query parameters in sorted order."""
    signature = f"{method.upper()} {url}"
    if params:
        signature += "?" + urlencode(sorted(params.items()))
    return signature


@dataclass
class CacheEntry:
    data: Any
    stored_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.stored_at < self.ttl


class ResponseCache:
    """
    Maps request signatures to cached response bodies.

    Expired entries stay available through get_stale() so callers can fall
    back to them when a refresh times out.
    """

    def __init__(self, ttl: float = DEFAULT_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str, default: Any = None) -> Any:
        """Fresh cached data for key, or default."""
        entry = self._entries.get(key)
        if entry is None or not entry.is_fresh(self._clock()):
            return default
        return entry.data

    def get_stale(self, key: str, default: Any = None) -> Any:
        """Cached data for key regardless of age, or default."""
        entry = self._entries.get(key)
        return entry.data if entry else default

    def set(self, key: str, data: Any, ttl: Optional[float] = None) -> None:
        self._entries[key] = CacheEntry(data=data, stored_at=self._clock(), ttl=self.ttl if ttl is None else ttl)

    def invalidate(self, prefix: str) -> int:
        """Drop every entry whose signature starts with prefix. Returns the count."""
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
