"""In-memory TTL cache for expensive tool call results."""

import json
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from tokenwise.utils.time import now_ms

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 5 * 60 * 1000


@dataclass(frozen=True)
class CacheEntry:
    """A cached tool result and when it stops being valid."""

    result: Any
    timestamp: int
    ttl_ms: int

    def is_expired(self, now: int) -> bool:
        return now - self.timestamp > self.ttl_ms


class ResultCache:
    """
    TTL cache for tool results keyed by tool name and input.

    Expiry is lazy: an entry is only checked, and deleted, when it is looked
    up. There is no size bound; use stats() to watch growth.

    Args:
        default_ttl_ms: TTL used when set() is called without one
        clock: Returns the current time in epoch milliseconds
    """

    def __init__(
        self,
        default_ttl_ms: int = DEFAULT_TTL_MS,
        clock: Callable[[], int] | None = None,
    ):
        self.default_ttl_ms = default_ttl_ms
        self._clock = clock or now_ms
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def cache_key(tool_name: str, tool_input: Any) -> str:
        """Key from the tool name and canonical JSON of the input."""
        canonical = json.dumps(tool_input, sort_keys=True, separators=(",", ":"), default=str)
        return f"{tool_name}:{canonical}"

    def get(self, tool_name: str, tool_input: Any) -> Any | None:
        """
        Get a cached result if present and not expired.

        Args:
            tool_name: Name of the tool
            tool_input: Input the tool was called with

        Returns:
            The cached result, or None on a miss
        """
        key = self.cache_key(tool_name, tool_input)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                logger.debug(f"Tool result cache entry expired: {tool_name}")
                return None

        logger.debug(f"Tool result cache hit: {tool_name}")
        return entry.result

    def set(
        self, tool_name: str, tool_input: Any, result: Any, ttl_ms: int | None = None
    ) -> None:
        """Store (or replace) a tool result."""
        ttl = self.default_ttl_ms if ttl_ms is None else ttl_ms
        key = self.cache_key(tool_name, tool_input)
        with self._lock:
            self._entries[key] = CacheEntry(result=result, timestamp=self._clock(), ttl_ms=ttl)
        logger.debug(f"Tool result cached: {tool_name} (ttl={ttl}ms)")

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict[str, int]:
        """
        Cache statistics.

        Returns:
            {"entries": count, "oldest_ms": age of the oldest entry (0 if empty)}
        """
        now = self._clock()
        with self._lock:
            oldest = min((e.timestamp for e in self._entries.values()), default=now)
            return {"entries": len(self._entries), "oldest_ms": now - oldest}
