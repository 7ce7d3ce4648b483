"""Invalidates cache entries as soon as a note changes on disk.

Without a watcher, changes are only noticed when a cached entry is next read.
Events are debounced per file: a burst of writes to the same note produces
a single invalidation once the file has been quiet for `debounce_seconds`.
"""

import os
import threading
from typing import Callable

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from notegraph.cache.incremental import IncrementalCache

MARKDOWN_SUFFIX = ".md"
DEFAULT_DEBOUNCE_SECONDS = 0.3

# read-only access, nothing to invalidate
IGNORED_EVENT_TYPES = {"opened", "closed_no_write"}

InvalidationCallback = Callable[[str, list[str]], None]


class NoteChangeHandler(FileSystemEventHandler):
    """Forwards changes to markdown files to the watcher."""

    def __init__(self, watcher: "NoteFileWatcher"):
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in IGNORED_EVENT_TYPES:
            return

        # a move touches both its source and its destination
        for raw_path in (event.src_path, getattr(event, "dest_path", "")):
            path = os.fsdecode(raw_path) if raw_path else ""
            if path.endswith(MARKDOWN_SUFFIX):
                self.watcher.schedule_invalidation(path)


class NoteFileWatcher:
    """Watches a notes directory recursively and invalidates dependent cache entries."""

    def __init__(
        self,
        notes_dir: str,
        cache: IncrementalCache,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        on_invalidated: InvalidationCallback | None = None,
    ):
        """Initialize the watcher. Nothing is watched until `start`.

        Args:
            notes_dir: Directory to watch; `~` is expanded
            cache: Cache whose entries depend on the notes
            debounce_seconds: Quiet period after the last event on a file
            on_invalidated: Called with the file path and the removed keys,
                only when at least one entry was removed
        """
        self.notes_dir = os.path.abspath(os.path.expanduser(str(notes_dir)))
        self.cache = cache
        self.debounce_seconds = debounce_seconds
        self.on_invalidated = on_invalidated

        self._observer = None
        self._timers: dict[str, threading.Timer] = {}
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def start(self) -> None:
        """Start watching in a background thread.

        Raises:
            FileNotFoundError: If the notes directory does not exist
        """
        if self.is_running:
            logger.warning(f"Watcher for {self.notes_dir} is already running")
            return
        if not os.path.isdir(self.notes_dir):
            raise FileNotFoundError(f"Notes directory not found: {self.notes_dir}")

        observer = Observer()
        observer.schedule(NoteChangeHandler(self), self.notes_dir, recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.info(f"Watching {self.notes_dir} for note changes")

    def stop(self) -> None:
        """Stop watching and drop pending invalidations."""
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()

        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
            logger.info(f"Stopped watching {self.notes_dir}")

    def schedule_invalidation(self, path: str) -> None:
        """Invalidate entries depending on `path` once it has been quiet for the debounce period."""
        with self._lock:
            pending = self._timers.pop(path, None)
            if pending is not None:
                pending.cancel()

            timer = threading.Timer(self.debounce_seconds, self._invalidate, args=(path,))
            timer.daemon = True
            self._timers[path] = timer
            timer.start()

    def _invalidate(self, path: str) -> None:
        with self._lock:
            if self._timers.get(path) is threading.current_thread():
                del self._timers[path]

        try:
            keys = self.cache.invalidate_by_file(path)
            if keys:
                logger.info(f"{os.path.basename(path)} changed, invalidated {len(keys)} cache entries")
                if self.on_invalidated is not None:
                    self.on_invalidated(path, keys)
        except Exception as e:
            logger.error(f"Failed to invalidate cache for {path}: {str(e)}")
