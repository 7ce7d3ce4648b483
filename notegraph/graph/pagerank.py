"""PageRank importance scores over the note link graph."""

import os

import numpy as np

from notegraph.domain.graph import BacklinkEntry, NoteMetadata, PageRankResult

from .wikilinks import normalize_note_title


def calculate_pagerank(
    forward_links: dict[str, list[str]],
    backlinks: dict[str, list[BacklinkEntry]],
    *,
    damping: float = 0.85,
    max_iterations: int = 20,
    tolerance: float = 1e-6,
    notes: list[NoteMetadata] | None = None,
) -> PageRankResult:
    """Compute PageRank by power iteration.

    PR(A) = (1 - d) / N + d * sum(PR(T) / C(T)) over notes T linking to A,
    where C(T) is the number of notes T links to. Iteration stops when the
    L1 distance between successive score vectors drops below `tolerance`.

    Args:
        forward_links: Note path -> titles it links to; its keys are the graph nodes
        backlinks: Note title -> entries of the notes linking to it
        damping: Damping factor d
        max_iterations: Upper bound on iterations
        tolerance: Convergence threshold
        notes: Note metadata, used to map paths to titles (default: filename stem)

    Returns:
        Scores normalized so the highest is 1
    """
    paths = list(forward_links)
    n = len(paths)
    if n == 0:
        return PageRankResult(scores={}, iterations=0, converged=True)

    index = {path: i for i, path in enumerate(paths)}
    titles = {note.path: note.title for note in notes or []}

    incoming: dict[str, list[str]] = {}
    for title, entries in backlinks.items():
        incoming.setdefault(normalize_note_title(title), []).extend(
            entry.source_path for entry in entries
        )

    sources = []
    destinations = []
    for path in paths:
        title = titles.get(path) or os.path.splitext(os.path.basename(path))[0]
        for source_path in incoming.get(normalize_note_title(title), []):
            if source_path in index:
                sources.append(index[source_path])
                destinations.append(index[path])

    sources = np.array(sources, dtype=np.int64)
    destinations = np.array(destinations, dtype=np.int64)
    out_degree = np.array([max(len(forward_links[path]), 1) for path in paths], dtype=np.float64)

    scores = np.full(n, 1.0 / n)
    base_score = (1.0 - damping) / n
    converged = False
    iterations = 0

    for iteration in range(max_iterations):
        iterations = iteration + 1
        contributions = np.bincount(
            destinations, weights=scores[sources] / out_degree[sources], minlength=n
        )
        new_scores = base_score + damping * contributions
        delta = np.abs(new_scores - scores).sum()
        scores = new_scores
        if delta < tolerance:
            converged = True
            break

    max_score = scores.max()
    if max_score > 0:
        scores = scores / max_score
    else:
        scores = np.full(n, 1.0 / n)

    return PageRankResult(
        scores={path: float(score) for path, score in zip(paths, scores)},
        iterations=iterations,
        converged=converged,
    )


def get_pagerank_score(scores: dict[str, float], note_path: str) -> float:
    return scores.get(note_path, 0.0)
