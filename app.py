import sys

from loguru import logger

from notegraph.api import create_app
from notegraph.cache import IncrementalCache, NoteFileWatcher
from notegraph.config import settings
from notegraph.filesystem import LocalFileSystem
from notegraph.graph import LinkMerger, NoteGraphAnalyzer

logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])

logger.info(f"Serving note graph for {settings.notes_dir}")
filesystem = LocalFileSystem()
cache = IncrementalCache(filesystem=filesystem, ttl_seconds=settings.cache_ttl_seconds)
analyzer = NoteGraphAnalyzer(
    filesystem=filesystem,
    cache=cache,
    io_concurrency=settings.io_concurrency,
    context_length=settings.context_length,
)
link_merger = LinkMerger(filesystem=filesystem, analyzer=analyzer)
watcher = (
    NoteFileWatcher(
        str(settings.notes_dir), cache, debounce_seconds=settings.watch_debounce_seconds
    )
    if settings.watch_notes
    else None
)
app = create_app(
    analyzer=analyzer,
    link_merger=link_merger,
    notes_dir=str(settings.notes_dir),
    cors_origins=settings.cors_origins,
    max_cluster_input=settings.max_cluster_input,
    watcher=watcher,
)
