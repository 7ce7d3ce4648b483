"""Wikilink graph analysis, similarity clustering and link repair."""

from notegraph.graph.analyzer import NoteGraphAnalyzer, collect_markdown_files, resolve_notes_dir
from notegraph.graph.clustering import (
    UnionFind,
    cluster_dangling_links,
    find_similar_dangling_links,
)
from notegraph.graph.link_merger import LinkMerger, build_replacement_regex
from notegraph.graph.pagerank import calculate_pagerank, get_pagerank_score
from notegraph.graph.similarity import (
    calculate_similarity,
    containment_similarity,
    find_similar_pairs,
    is_similar,
    jaro_winkler_similarity,
    ngram_similarity,
    token_overlap_similarity,
)
from notegraph.graph.wikilinks import (
    count_wikilink_mentions,
    extract_context,
    extract_wikilinks,
    find_links_to_note,
    is_same_note,
    normalize_note_title,
    parse_wikilinks,
)

__all__ = [
    "LinkMerger",
    "NoteGraphAnalyzer",
    "UnionFind",
    "build_replacement_regex",
    "calculate_pagerank",
    "calculate_similarity",
    "cluster_dangling_links",
    "collect_markdown_files",
    "containment_similarity",
    "count_wikilink_mentions",
    "extract_context",
    "extract_wikilinks",
    "find_links_to_note",
    "find_similar_dangling_links",
    "find_similar_pairs",
    "get_pagerank_score",
    "is_same_note",
    "is_similar",
    "jaro_winkler_similarity",
    "ngram_similarity",
    "normalize_note_title",
    "parse_wikilinks",
    "resolve_notes_dir",
    "token_overlap_similarity",
]
