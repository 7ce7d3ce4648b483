"""In-memory caches for derived graph data."""

from notegraph.cache.incremental import DEFAULT_TTL_SECONDS, IncrementalCache, hash_content
from notegraph.cache.typed import TypedCache
from notegraph.cache.watcher import NoteFileWatcher

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "IncrementalCache",
    "NoteFileWatcher",
    "TypedCache",
    "hash_content",
]
