"""CLI printing a JSON report of the link graph of a notes directory"""

import argparse
import json
import sys

from loguru import logger

from notegraph.config import settings
from notegraph.graph import NoteGraphAnalyzer, cluster_dangling_links


def main(
    notes_dir: str,
    threshold: float,
    max_clusters: int,
    include_clusters: bool,
) -> dict:
    analyzer = NoteGraphAnalyzer(
        io_concurrency=settings.io_concurrency,
        context_length=settings.context_length,
    )
    stats = analyzer.analyze_note_graph(notes_dir, use_cache=False)

    report = {
        "stats": {
            "note_count": stats.note_count,
            "connection_count": stats.unique_connections,
            "total_mentions": stats.total_mentions,
            "dangling_count": len(stats.dangling_links),
            "orphan_count": len(stats.orphan_notes),
        },
        "orphan_notes": stats.orphan_notes,
        "dangling_links": [link.model_dump() for link in stats.dangling_links],
    }

    if include_clusters:
        clusters = cluster_dangling_links(
            stats.dangling_links,
            threshold=threshold,
            max_results=max_clusters,
            max_input=settings.max_cluster_input,
        )
        report["similar_link_clusters"] = [cluster.model_dump() for cluster in clusters]

    return report


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--notes-dir",
        type=str,
        required=False,
        help="Folder containing markdown notes",
        default=str(settings.notes_dir),
    )
    parser.add_argument(
        "--threshold",
        type=float,
        required=False,
        help="Similarity threshold for clustering dangling links",
        default=settings.similarity_threshold,
    )
    parser.add_argument(
        "--max-clusters",
        type=int,
        required=False,
        help="Maximum number of clusters to report",
        default=settings.max_cluster_results,
    )
    parser.add_argument(
        "--no-clusters",
        action="store_true",
        help="Skip clustering of dangling links",
    )

    args = parser.parse_args()

    logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])

    result = main(
        notes_dir=args.notes_dir,
        threshold=args.threshold,
        max_clusters=args.max_clusters,
        include_clusters=not args.no_clusters,
    )
    json.dump(result, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
