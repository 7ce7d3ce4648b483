import threading
import time
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from watchdog.events import (
    DirModifiedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileOpenedEvent,
)

from notegraph.api import create_app
from notegraph.cache.incremental import IncrementalCache
from notegraph.cache.watcher import NoteChangeHandler, NoteFileWatcher
from notegraph.graph.analyzer import NoteGraphAnalyzer
from notegraph.graph.link_merger import LinkMerger
from tests.fakes import VAULT

NOTE_A = f"{VAULT}/A.md"


class RecordingCache:
    """Stands in for IncrementalCache, reporting one removed key per invalidation."""

    def __init__(self) -> None:
        self.invalidated: list[str] = []

    def invalidate_by_file(self, path: str) -> list[str]:
        self.invalidated.append(path)
        return [f"key:{path}"]


def test_handler_forwards_markdown_changes_only(cache: IncrementalCache) -> None:
    watcher = NoteFileWatcher(VAULT, cache)
    scheduled: list[str] = []
    watcher.schedule_invalidation = scheduled.append
    handler = NoteChangeHandler(watcher)

    handler.on_any_event(FileModifiedEvent(NOTE_A))
    handler.on_any_event(FileCreatedEvent(f"{VAULT}/image.png"))
    handler.on_any_event(DirModifiedEvent(f"{VAULT}/sub"))
    handler.on_any_event(FileOpenedEvent(f"{VAULT}/B.md"))
    handler.on_any_event(FileMovedEvent(f"{VAULT}/old.md", f"{VAULT}/new.md"))

    assert scheduled == [NOTE_A, f"{VAULT}/old.md", f"{VAULT}/new.md"]


def test_change_invalidates_dependent_entries(cache: IncrementalCache) -> None:
    cache.set("graph", "stats", [NOTE_A])
    cache.set("other", "stats", [f"{VAULT}/B.md"])
    done = threading.Event()
    calls: list[tuple[str, list[str]]] = []

    def on_invalidated(path: str, keys: list[str]) -> None:
        calls.append((path, keys))
        done.set()

    watcher = NoteFileWatcher(VAULT, cache, debounce_seconds=0, on_invalidated=on_invalidated)
    watcher.schedule_invalidation(NOTE_A)

    assert done.wait(timeout=5)
    assert calls == [(NOTE_A, ["graph"])]
    assert cache.get_stats().keys == ["other"]


def test_burst_of_events_invalidates_once() -> None:
    cache = RecordingCache()
    done = threading.Event()
    watcher = NoteFileWatcher(
        VAULT, cache, debounce_seconds=0.2, on_invalidated=lambda _path, _keys: done.set()
    )

    for _ in range(5):
        watcher.schedule_invalidation(NOTE_A)

    assert done.wait(timeout=5)
    time.sleep(0.3)
    assert cache.invalidated == [NOTE_A]


def test_untracked_file_does_not_notify(cache: IncrementalCache) -> None:
    calls: list[str] = []
    watcher = NoteFileWatcher(
        VAULT, cache, debounce_seconds=0, on_invalidated=lambda path, _keys: calls.append(path)
    )

    watcher.schedule_invalidation(f"{VAULT}/untracked.md")
    time.sleep(0.2)

    assert calls == []


def test_stop_drops_pending_invalidations(cache: IncrementalCache) -> None:
    cache.set("graph", "stats", [NOTE_A])
    watcher = NoteFileWatcher(VAULT, cache, debounce_seconds=30)

    watcher.schedule_invalidation(NOTE_A)
    watcher.stop()

    assert watcher._timers == {}
    assert cache.get("graph") == "stats"


def test_start_and_stop(notes_directory: Path) -> None:
    watcher = NoteFileWatcher(str(notes_directory), IncrementalCache())

    watcher.start()
    assert watcher.is_running

    watcher.stop()
    assert not watcher.is_running


def test_start_requires_existing_directory(temp_notes_base: Path) -> None:
    watcher = NoteFileWatcher(str(temp_notes_base / "missing"), IncrementalCache())

    with pytest.raises(FileNotFoundError):
        watcher.start()
    assert not watcher.is_running


def test_app_runs_watcher_for_its_lifetime(notes_directory: Path) -> None:
    cache = IncrementalCache()
    analyzer = NoteGraphAnalyzer(cache=cache)
    watcher = NoteFileWatcher(str(notes_directory), cache)
    app = create_app(
        analyzer=analyzer,
        link_merger=LinkMerger(filesystem=analyzer.filesystem, analyzer=analyzer),
        notes_dir=str(notes_directory),
        watcher=watcher,
    )

    with TestClient(app) as client:
        assert watcher.is_running
        assert client.get("/health").status_code == 200

    assert not watcher.is_running
