"""Dependency-aware in-memory cache.

Each entry remembers the files it was computed from. An entry is served only
while it is younger than the TTL and every dependency is unchanged: a file
whose mtime still matches is trusted as is, and only a file with a new mtime
is re-hashed and compared with the stored content hash.

A dependency that was unreadable when the entry was stored is re-checked on
every read and invalidates the entry as soon as it can be read again.

Public methods are serialized by a lock so that a file watcher thread can
invalidate entries while requests are served. Nothing here is safe to share
across processes.
"""

import functools
import threading
import time
from hashlib import sha256
from typing import Any, Callable

from loguru import logger

from notegraph.domain.cache import CacheEntry, CacheStats, FileDependency, ValidationResult
from notegraph.filesystem.base import FileSystem
from notegraph.filesystem.local import LocalFileSystem

DEFAULT_TTL_SECONDS = 5 * 60
HASH_LENGTH = 16
UNREADABLE_HASH = ""
MISSING_MTIME = -1

Validator = Callable[[], ValidationResult]


def hash_content(content: bytes) -> str:
    """Truncated SHA-256 hex digest used to detect content changes."""
    return sha256(content).hexdigest()[:HASH_LENGTH]


def _locked(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


class IncrementalCache:
    """Key/value cache whose entries are invalidated by changes to their files."""

    def __init__(
        self,
        *,
        filesystem: FileSystem | None = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize an empty cache.

        Args:
            filesystem: Used to stat and read dependency files
            ttl_seconds: Age after which an entry expires regardless of its files
            clock: Returns the current time in seconds
        """
        self.filesystem = filesystem or LocalFileSystem()
        self.ttl_seconds = ttl_seconds
        self._clock = clock

        self._entries: dict[str, CacheEntry] = {}
        # file path -> cache keys depending on it
        self._dependents: dict[str, set[str]] = {}
        # file path -> (hash, mtime) of the last content hashed
        self._file_hashes: dict[str, tuple[str, int]] = {}
        self._lock = threading.RLock()

    @_locked
    def get(self, key: str, validator: Validator | None = None) -> Any | None:
        """Return the cached value for `key`, or None when missing or stale.

        Stale entries (expired, with a changed or unreadable dependency, or
        rejected by `validator`) are deleted.
        """
        entry = self._live_entry(key)
        if entry is None:
            return None

        changed_files = self._changed_dependencies(entry)
        if changed_files:
            logger.debug(f"Cache entry {key} invalidated by {len(changed_files)} changed file(s)")
            self.delete(key)
            return None

        if validator is not None:
            result = validator()
            if not result.valid:
                logger.debug(
                    f"Cache entry {key} rejected by validator: {', '.join(result.changed_files)}"
                )
                self.delete(key)
                return None

        return entry.data

    @_locked
    def set(
        self,
        key: str,
        data: Any,
        dependencies: list[str] | list[FileDependency],
        *,
        content_hash: str | None = None,
    ) -> None:
        """Store `data` under `key` together with the state of its dependencies.

        Paths are snapshotted now. Callers that read the files themselves
        should pass the result of `snapshot` taken before reading instead, so
        that an edit landing during the computation invalidates the entry.

        Args:
            key: Cache key
            data: Value to cache
            dependencies: Paths or snapshots of the files `data` was computed from
            content_hash: Optional opaque hash stored alongside the entry
        """
        self._unlink_dependents(key)

        file_dependencies: dict[str, FileDependency] = {}
        for dependency in dependencies:
            path = dependency if isinstance(dependency, str) else dependency.path
            if path in file_dependencies:
                continue
            if isinstance(dependency, str):
                file_dependencies[path] = self._snapshot(dependency)
            else:
                file_dependencies[path] = dependency.model_copy()

        self._entries[key] = CacheEntry(
            data=data,
            created_at=self._clock(),
            dependencies=list(file_dependencies.values()),
            hash=content_hash,
        )
        for path in file_dependencies:
            self._dependents.setdefault(path, set()).add(key)

    @_locked
    def snapshot(self, paths: list[str]) -> list[FileDependency]:
        """Record the current hash and mtime of each file, for a later `set`."""
        return [self._snapshot(path) for path in dict.fromkeys(paths)]

    @_locked
    def delete(self, key: str) -> bool:
        """Remove a single entry. Returns True if it existed."""
        self._unlink_dependents(key)
        return self._entries.pop(key, None) is not None

    @_locked
    def invalidate_by_file(self, path: str) -> list[str]:
        """Remove every entry depending on `path`.

        Returns:
            The removed cache keys
        """
        keys = sorted(self._dependents.pop(path, set()))
        for key in keys:
            self.delete(key)
        self._file_hashes.pop(path, None)

        if keys:
            logger.debug(f"Invalidated {len(keys)} cache entries depending on {path}")
        return keys

    @_locked
    def invalidate_by_prefix(self, prefix: str) -> list[str]:
        """Remove every entry whose key starts with `prefix`."""
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            self.delete(key)
        return keys

    @_locked
    def clear(self) -> None:
        self._entries.clear()
        self._dependents.clear()
        self._file_hashes.clear()

    @_locked
    def cleanup_expired(self) -> int:
        """Delete every expired entry. Returns the number removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            self.delete(key)
        return len(expired)

    @_locked
    def get_stats(self) -> CacheStats:
        return CacheStats(
            cache_size=len(self._entries),
            file_hash_cache_size=len(self._file_hashes),
            tracked_files=len(self._dependents),
            keys=list(self._entries),
        )

    @_locked
    def get_dependencies(self, key: str) -> list[FileDependency]:
        entry = self._entries.get(key)
        if entry is None:
            return []
        return [dependency.model_copy() for dependency in entry.dependencies]

    def _live_entry(self, key: str) -> CacheEntry | None:
        """Get an entry if present and not expired, deleting it if expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry, self._clock()):
            logger.debug(f"Cache entry {key} expired")
            self.delete(key)
            return None
        return entry

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at >= self.ttl_seconds

    def _changed_dependencies(self, entry: CacheEntry) -> list[str]:
        """Check every dependency of an entry and list those that changed."""
        changed = []
        for dependency in entry.dependencies:
            if dependency.hash == UNREADABLE_HASH:
                if self._is_readable(dependency.path):
                    changed.append(dependency.path)
                continue

            try:
                current_mtime = self.filesystem.mtime(dependency.path)
                if current_mtime == dependency.mtime:
                    continue

                current_hash = self._hash_file(dependency.path, current_mtime)
            except OSError:
                changed.append(dependency.path)
                continue

            if current_hash != dependency.hash:
                changed.append(dependency.path)
            else:
                # touched but identical, skip hashing next time
                dependency.mtime = current_mtime
        return changed

    def _snapshot(self, path: str) -> FileDependency:
        mtime = MISSING_MTIME
        try:
            mtime = self.filesystem.mtime(path)
            file_hash = self._hash_file(path, mtime)
        except OSError as e:
            logger.warning(f"Cannot read cache dependency {path}, tracking it as unreadable: {e}")
            return FileDependency(path=path, hash=UNREADABLE_HASH, mtime=mtime)
        return FileDependency(path=path, hash=file_hash, mtime=mtime)

    def _is_readable(self, path: str) -> bool:
        try:
            self._hash_file(path, self.filesystem.mtime(path))
        except OSError:
            return False
        return True

    def _hash_file(self, path: str, mtime: int) -> str:
        """Hash a file, reusing the memoized hash while its mtime is unchanged."""
        memo = self._file_hashes.get(path)
        if memo is not None and memo[1] == mtime:
            return memo[0]

        file_hash = hash_content(self.filesystem.read_bytes(path))
        self._file_hashes[path] = (file_hash, mtime)
        return file_hash

    def _unlink_dependents(self, key: str) -> None:
        entry = self._entries.get(key)
        if entry is None:
            return
        for dependency in entry.dependencies:
            keys = self._dependents.get(dependency.path)
            if keys is None:
                continue
            keys.discard(key)
            if not keys:
                del self._dependents[dependency.path]
