from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from notegraph.api.endpoints import get_endpoints_router
from notegraph.cache.watcher import NoteFileWatcher
from notegraph.graph.analyzer import NoteGraphAnalyzer, resolve_notes_dir
from notegraph.graph.link_merger import LinkMerger


def create_app(
    *,
    analyzer: NoteGraphAnalyzer,
    link_merger: LinkMerger,
    notes_dir: str,
    cors_origins: list[str] | None = None,
    max_cluster_input: int = 1000,
    watcher: NoteFileWatcher | None = None,
) -> FastAPI:
    """Create FastAPI app.

    When a watcher is given it runs for the lifetime of the app.
    """

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        if watcher is not None:
            try:
                watcher.start()
            except Exception as e:
                logger.warning(f"Note watcher failed to start, relying on cache validation: {e}")
        yield
        if watcher is not None:
            watcher.stop()

    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        router=get_endpoints_router(
            analyzer=analyzer,
            link_merger=link_merger,
            notes_dir=resolve_notes_dir(notes_dir),
            max_cluster_input=max_cluster_input,
        )
    )

    return app
