import tempfile
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from notegraph.api import create_app
from notegraph.cache.incremental import IncrementalCache
from notegraph.graph.analyzer import NoteGraphAnalyzer
from notegraph.graph.link_merger import LinkMerger
from tests.fakes import VAULT, FakeClock, FakeFileSystem


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_filesystem() -> FakeFileSystem:
    """Small vault: A links to B, B links back to A, C is an orphan."""
    return FakeFileSystem(
        {
            f"{VAULT}/A.md": "# A\n\nSee [[B]] for details.",
            f"{VAULT}/B.md": "Back to [[A]].",
            f"{VAULT}/C.md": "Nothing links here.",
        }
    )


@pytest.fixture
def cache(fake_filesystem: FakeFileSystem, fake_clock: FakeClock) -> IncrementalCache:
    return IncrementalCache(filesystem=fake_filesystem, ttl_seconds=300, clock=fake_clock)


@pytest.fixture
def analyzer(fake_filesystem: FakeFileSystem, cache: IncrementalCache) -> NoteGraphAnalyzer:
    return NoteGraphAnalyzer(filesystem=fake_filesystem, cache=cache, io_concurrency=2)


@pytest.fixture
def link_merger(fake_filesystem: FakeFileSystem, analyzer: NoteGraphAnalyzer) -> LinkMerger:
    return LinkMerger(filesystem=fake_filesystem, analyzer=analyzer)


@pytest.fixture
def test_client(analyzer: NoteGraphAnalyzer, link_merger: LinkMerger) -> TestClient:
    """Create test client backed by the in-memory vault."""
    app = create_app(analyzer=analyzer, link_merger=link_merger, notes_dir=VAULT)
    return TestClient(app)


@pytest.fixture
def temp_notes_base() -> Generator[Path, None, None]:
    """Create a temporary directory for tests that work against real files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def notes_directory(temp_notes_base: Path) -> Path:
    """Create notes subdirectory."""
    notes_dir = temp_notes_base / "notes"
    notes_dir.mkdir()
    return notes_dir
