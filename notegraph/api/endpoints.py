import os
import time
from typing import Literal

from fastapi import APIRouter, HTTPException, Query
from loguru import logger

from notegraph.domain.clusters import MergeLinkRequest, MergeLinkResult
from notegraph.graph.analyzer import NoteGraphAnalyzer
from notegraph.graph.clustering import cluster_dangling_links
from notegraph.graph.link_merger import LinkMerger
from notegraph.graph.pagerank import calculate_pagerank

from .graph_view import build_graph_view, focus_graph, paginate_graph
from .schemas import (
    DanglingLinksResponse,
    GraphView,
    MergeSimilarLinksBody,
    PageRankResponse,
    RankedNote,
    SimilarLinksResponse,
    StatsResponse,
)


def _create_stats_endpoint(analyzer: NoteGraphAnalyzer, notes_dir: str):
    """Create the quick stats endpoint handler."""

    async def get_stats() -> StatsResponse:
        try:
            stats = analyzer.get_quick_stats(notes_dir)
        except Exception as e:
            logger.error(f"Error fetching quick stats: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to get stats") from e

        return StatsResponse(**stats.model_dump(), last_updated=time.time())

    return get_stats


def _create_graph_endpoint(analyzer: NoteGraphAnalyzer, notes_dir: str):
    """Create the full graph endpoint handler, with pagination and focus support."""

    async def get_graph(
        center: str | None = None,
        depth: int = Query(2, ge=0),
        limit: int = Query(100, ge=1),
        offset: int = Query(0, ge=0),
        sort: Literal["connections", "default"] = "default",
        all_nodes: bool = Query(False, alias="all"),
    ) -> GraphView:
        try:
            stats = analyzer.analyze_note_graph(notes_dir)
            view = build_graph_view(stats, notes_dir)
        except Exception as e:
            logger.error(f"Error fetching graph data: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to analyze graph") from e

        if center:
            return focus_graph(view, center, depth, limit)
        if all_nodes:
            return view
        return paginate_graph(view, offset, limit, sort)

    return get_graph


def _create_focused_graph_endpoint(analyzer: NoteGraphAnalyzer, notes_dir: str):
    """Create the single-note neighborhood endpoint handler."""

    async def get_focused_graph(
        node_id: str,
        depth: int = Query(1, ge=0),
        limit: int = Query(100, ge=1),
    ) -> GraphView:
        try:
            stats = analyzer.analyze_note_graph(notes_dir)
            view = build_graph_view(stats, notes_dir)
        except Exception as e:
            logger.error(f"Error fetching focused graph: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to analyze graph") from e

        return focus_graph(view, node_id, depth, limit)

    return get_focused_graph


def _create_dangling_links_endpoint(analyzer: NoteGraphAnalyzer, notes_dir: str):
    """Create the raw dangling links endpoint handler."""

    async def get_dangling_links() -> DanglingLinksResponse:
        try:
            dangling_links = analyzer.find_dangling_links(notes_dir)
        except Exception as e:
            logger.error(f"Error fetching dangling links: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch dangling links") from e

        logger.debug(f"Found {len(dangling_links)} dangling links")
        return DanglingLinksResponse(
            dangling_links=dangling_links,
            total_count=len(dangling_links),
            fetched_at=time.time(),
        )

    return get_dangling_links


def _create_similar_links_endpoint(
    analyzer: NoteGraphAnalyzer, notes_dir: str, max_cluster_input: int
):
    """Create the similar dangling link clusters endpoint handler."""

    async def get_similar_links(
        threshold: float = Query(0.7, ge=0, le=1),
        limit: int = Query(50, ge=1, le=1000),
    ) -> SimilarLinksResponse:
        try:
            dangling_links = analyzer.find_dangling_links(notes_dir)
            clusters = cluster_dangling_links(
                dangling_links,
                threshold=threshold,
                max_results=limit,
                max_input=max_cluster_input,
            )
        except Exception as e:
            logger.error(f"Error analyzing similar links: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to analyze similar links") from e

        return SimilarLinksResponse(
            clusters=clusters,
            total_clusters=len(clusters),
            total_dangling_links=len(dangling_links),
            analyzed_at=time.time(),
        )

    return get_similar_links


def _create_merge_endpoint(link_merger: LinkMerger, notes_dir: str):
    """Create the similar links merge endpoint handler."""

    async def merge_similar_links(body: MergeSimilarLinksBody) -> MergeLinkResult:
        try:
            return link_merger.merge_similar_links(
                notes_dir,
                MergeLinkRequest(
                    old_targets=body.old_targets,
                    new_target=body.new_target,
                    preserve_as_alias=body.preserve_as_alias,
                ),
            )
        except Exception as e:
            logger.error(f"Error merging similar links: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to merge similar links") from e

    return merge_similar_links


def _create_pagerank_endpoint(analyzer: NoteGraphAnalyzer, notes_dir: str):
    """Create the note importance endpoint handler."""

    async def get_pagerank(limit: int = Query(20, ge=1, le=1000)) -> PageRankResponse:
        try:
            stats = analyzer.analyze_note_graph(notes_dir)
            result = calculate_pagerank(stats.forward_links, stats.backlinks, notes=stats.notes)
        except Exception as e:
            logger.error(f"Error computing pagerank: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to compute pagerank") from e

        titles = {note.path: note.title for note in stats.notes}
        ranked = sorted(result.scores.items(), key=lambda item: (-item[1], item[0]))[:limit]
        return PageRankResponse(
            notes=[
                RankedNote(path=path, title=titles.get(path, os.path.basename(path)), score=score)
                for path, score in ranked
            ],
            iterations=result.iterations,
            converged=result.converged,
        )

    return get_pagerank


def get_endpoints_router(
    *,
    analyzer: NoteGraphAnalyzer,
    link_merger: LinkMerger,
    notes_dir: str,
    max_cluster_input: int = 1000,
) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    async def health_check():
        return {"status": "healthy"}

    @router.get("/api/heartbeat")
    async def heartbeat():
        return {"status": "ok", "timestamp": time.time()}

    @router.post("/api/graph/refresh")
    async def refresh_graph():
        invalidated = analyzer.invalidate_graph_cache(notes_dir)
        return {"invalidated": invalidated}

    router.get("/api/stats")(_create_stats_endpoint(analyzer, notes_dir))
    router.get("/api/graph")(_create_graph_endpoint(analyzer, notes_dir))
    router.get("/api/graph/{node_id:path}")(_create_focused_graph_endpoint(analyzer, notes_dir))
    router.get("/api/dangling-links")(_create_dangling_links_endpoint(analyzer, notes_dir))
    router.get("/api/similar-links")(
        _create_similar_links_endpoint(analyzer, notes_dir, max_cluster_input)
    )
    router.post("/api/similar-links/merge")(_create_merge_endpoint(link_merger, notes_dir))
    router.get("/api/pagerank")(_create_pagerank_endpoint(analyzer, notes_dir))

    return router
