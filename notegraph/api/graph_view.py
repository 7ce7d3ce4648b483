"""Conversion of graph statistics into the node/link shape used by the visualization."""

import os
from collections import deque
from typing import Literal

from notegraph.domain.graph import NoteGraphStats

from .schemas import GraphLink, GraphNode, GraphStatsSummary, GraphView, Pagination

DANGLING_PREFIX = "dangling:"


def build_graph_view(stats: NoteGraphStats, notes_dir: str) -> GraphView:
    """Build the full graph view.

    Note nodes are identified by their path relative to `notes_dir`, dangling
    targets by `dangling:<target>`.
    """
    orphans = set(stats.orphan_notes)
    node_ids = {note.path: os.path.relpath(note.path, notes_dir) for note in stats.notes}
    title_to_id: dict[str, str] = {}
    for note in stats.notes:
        title_to_id.setdefault(note.title, node_ids[note.path])

    nodes = [
        GraphNode(
            id=node_ids[note.path],
            title=note.title,
            path=note.path,
            type="orphan" if note.path in orphans else "note",
            connection_count=len(stats.forward_links.get(note.path, []))
            + len(stats.backlinks.get(note.title, [])),
        )
        for note in stats.notes
    ]

    links = []
    for source_path, titles in stats.forward_links.items():
        for title in titles:
            target_id = title_to_id.get(title)
            if target_id is not None and source_path in node_ids:
                links.append(GraphLink(source=node_ids[source_path], target=target_id))

    for dangling in stats.dangling_links:
        dangling_id = f"{DANGLING_PREFIX}{dangling.target}"
        nodes.append(
            GraphNode(
                id=dangling_id,
                title=dangling.target,
                path="",
                type="dangling",
                connection_count=len(dangling.sources),
            )
        )
        for source in dangling.sources:
            if source.note_path in node_ids:
                links.append(GraphLink(source=node_ids[source.note_path], target=dangling_id))

    return GraphView(
        nodes=nodes,
        links=links,
        stats=GraphStatsSummary(
            note_count=stats.note_count,
            connection_count=stats.unique_connections,
            dangling_count=len(stats.dangling_links),
            orphan_count=len(stats.orphan_notes),
        ),
    )


def focus_graph(view: GraphView, node_id: str, depth: int = 1, limit: int = 100) -> GraphView:
    """Subgraph of the nodes within `depth` hops of `node_id`, at most `limit` nodes."""
    adjacency: dict[str, set[str]] = {}
    for link in view.links:
        adjacency.setdefault(link.source, set()).add(link.target)
        adjacency.setdefault(link.target, set()).add(link.source)

    connected = {node_id}
    queue = deque([(node_id, 0)])
    while queue and len(connected) < limit:
        current, distance = queue.popleft()
        if distance >= depth:
            continue
        for neighbor in sorted(adjacency.get(current, ())):
            if neighbor not in connected and len(connected) < limit:
                connected.add(neighbor)
                queue.append((neighbor, distance + 1))

    return GraphView(
        nodes=[node for node in view.nodes if node.id in connected],
        links=[
            link for link in view.links if link.source in connected and link.target in connected
        ],
        stats=view.stats,
    )


def paginate_graph(
    view: GraphView,
    offset: int,
    limit: int,
    sort: Literal["connections", "default"] = "default",
) -> GraphView:
    """A page of nodes, with only the links between nodes of that page."""
    nodes = list(view.nodes)
    if sort == "connections":
        nodes.sort(key=lambda node: node.connection_count, reverse=True)

    page = nodes[offset : offset + limit]
    page_ids = {node.id for node in page}

    return GraphView(
        nodes=page,
        links=[link for link in view.links if link.source in page_ids and link.target in page_ids],
        stats=view.stats,
        pagination=Pagination(
            offset=offset,
            limit=limit,
            total=len(nodes),
            has_more=offset + limit < len(nodes),
        ),
    )
