"""Coarse TTL cache addressed by `type:identifier` keys."""

from typing import Any

from notegraph.cache.incremental import IncrementalCache


class TypedCache(IncrementalCache):
    """IncrementalCache without file tracking, for callers that only need TTL
    expiry plus an optional opaque hash check."""

    @staticmethod
    def cache_key(cache_type: str, identifier: str) -> str:
        return f"{cache_type}:{identifier}"

    def get_cache(self, cache_type: str, identifier: str) -> Any | None:
        return self.get(self.cache_key(cache_type, identifier))

    def set_cache(
        self, cache_type: str, identifier: str, data: Any, content_hash: str | None = None
    ) -> None:
        self.set(self.cache_key(cache_type, identifier), data, [], content_hash=content_hash)

    def invalidate_cache(self, cache_type: str, identifier: str) -> None:
        self.delete(self.cache_key(cache_type, identifier))

    def invalidate_cache_by_type(self, cache_type: str) -> list[str]:
        return self.invalidate_by_prefix(f"{cache_type}:")

    def is_cache_valid(self, cache_type: str, identifier: str, current_hash: str) -> bool:
        """Check that an entry exists, has not expired, and was stored with
        `current_hash` (entries stored without a hash match any hash)."""
        with self._lock:
            entry = self._live_entry(self.cache_key(cache_type, identifier))
        if entry is None:
            return False
        return entry.hash is None or entry.hash == current_hash
