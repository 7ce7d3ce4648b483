"""Cache domain models."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class FileDependency(BaseModel):
    """A file a cache entry was computed from.

    Attributes:
        path: File path as given to the cache
        hash: First 16 hex characters of the SHA-256 of the file content
        mtime: Modification time in nanoseconds when the entry was stored

    A file that could not be read when the entry was stored carries an empty
    `hash`, and `mtime` is -1 if it could not even be stat-ed.
    """

    path: str
    hash: str
    mtime: int


class CacheEntry(BaseModel, Generic[T]):
    data: T
    created_at: float
    dependencies: list[FileDependency] = []
    hash: str | None = None  # opaque caller-supplied hash, used by TypedCache

    model_config = {"arbitrary_types_allowed": True}


class ValidationResult(BaseModel):
    """Outcome of a caller-supplied cache validator."""

    valid: bool
    changed_files: list[str] = []


class CacheStats(BaseModel):
    cache_size: int
    file_hash_cache_size: int
    tracked_files: int
    keys: list[str]
