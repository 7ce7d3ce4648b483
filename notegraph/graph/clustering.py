"""Clustering of dangling links that look like spellings of the same note.

Any two targets scoring at least the threshold are joined, and clusters are
the connected components of that relation. Two members of a cluster may
therefore score below the threshold against each other when they are only
connected through a third member.
"""

from uuid import uuid4

from loguru import logger

from notegraph.domain.clusters import (
    SimilarDanglingLink,
    SimilarityScore,
    SimilarLinkCluster,
    SimilarLinkMember,
)
from notegraph.domain.graph import DanglingLink

from .similarity import calculate_similarity

DEFAULT_THRESHOLD = 0.7
DEFAULT_MIN_CLUSTER_SIZE = 2
DEFAULT_MAX_RESULTS = 50
DEFAULT_MAX_INPUT = 1000


class UnionFind:
    """Disjoint sets over 0..size-1 with path compression and union by rank."""

    def __init__(self, size: int):
        self.parent = list(range(size))
        self.rank = [0] * size

    def find(self, x: int) -> int:
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, x: int, y: int) -> None:
        root_x = self.find(x)
        root_y = self.find(y)
        if root_x == root_y:
            return

        if self.rank[root_x] < self.rank[root_y]:
            self.parent[root_x] = root_y
        elif self.rank[root_x] > self.rank[root_y]:
            self.parent[root_y] = root_x
        else:
            self.parent[root_y] = root_x
            self.rank[root_x] += 1

    def connected(self, x: int, y: int) -> bool:
        return self.find(x) == self.find(y)

    def get_groups(self) -> list[list[int]]:
        """Connected components, each listed in ascending index order."""
        groups: dict[int, list[int]] = {}
        for index in range(len(self.parent)):
            groups.setdefault(self.find(index), []).append(index)
        return list(groups.values())


def _pair_similarity(s1: str, s2: str) -> SimilarityScore:
    # fixed argument order keeps results independent of input order
    return calculate_similarity(*sorted((s1, s2)))


def _representative_sort_key(link: DanglingLink) -> tuple[int, int, str]:
    return (-link.total_occurrences, -len(link.sources), link.target)


def _cap_input(dangling_links: list[DanglingLink], max_input: int) -> list[DanglingLink]:
    logger.warning(
        f"Clustering {len(dangling_links)} dangling links exceeds the limit of {max_input}, "
        "keeping only the most referenced ones"
    )
    return sorted(dangling_links, key=_representative_sort_key)[:max_input]


def cluster_dangling_links(
    dangling_links: list[DanglingLink],
    *,
    threshold: float = DEFAULT_THRESHOLD,
    min_cluster_size: int = DEFAULT_MIN_CLUSTER_SIZE,
    max_results: int = DEFAULT_MAX_RESULTS,
    max_input: int | None = DEFAULT_MAX_INPUT,
) -> list[SimilarLinkCluster]:
    """Group similar dangling links.

    Args:
        dangling_links: Dangling links with distinct targets
        threshold: Minimum composite similarity for two targets to be joined
        min_cluster_size: Smallest cluster returned
        max_results: Largest number of clusters returned
        max_input: Cap on the number of links compared pairwise; the most
            referenced links are kept. None disables the cap.

    Returns:
        Clusters sorted by total occurrences, largest first
    """
    if not 0 <= threshold <= 1:
        raise ValueError(f"Threshold must be between 0 and 1, got {threshold}")

    if max_input is not None and len(dangling_links) > max_input:
        dangling_links = _cap_input(dangling_links, max_input)

    if len(dangling_links) < 2:
        return []

    targets = [link.target for link in dangling_links]
    union_find = UnionFind(len(targets))
    similarities: dict[tuple[int, int], SimilarityScore] = {}

    for i in range(len(targets)):
        for j in range(i + 1, len(targets)):
            similarity = _pair_similarity(targets[i], targets[j])
            similarities[(i, j)] = similarity
            if similarity.score >= threshold:
                union_find.union(i, j)

    clusters = []
    for group in union_find.get_groups():
        if len(group) < min_cluster_size:
            continue

        representative_index = min(
            group, key=lambda index: _representative_sort_key(dangling_links[index])
        )

        members = []
        for index in group:
            if index == representative_index:
                similarity = 1.0
            else:
                pair = (min(index, representative_index), max(index, representative_index))
                similarity = similarities[pair].score
            link = dangling_links[index]
            members.append(
                SimilarLinkMember(
                    target=link.target,
                    similarity=similarity,
                    sources=[source.model_copy() for source in link.sources],
                )
            )

        representative = dangling_links[representative_index].target
        others = [member for member in members if member.target != representative]
        average_similarity = (
            sum(member.similarity for member in others) / len(others) if others else 1.0
        )
        members.sort(
            key=lambda member: (member.target != representative, -member.similarity, member.target)
        )

        clusters.append(
            SimilarLinkCluster(
                id=f"cluster-{uuid4()}",
                representative_target=representative,
                members=members,
                total_occurrences=sum(
                    source.count for member in members for source in member.sources
                ),
                average_similarity=average_similarity,
            )
        )

    clusters.sort(key=lambda cluster: (-cluster.total_occurrences, cluster.representative_target))
    logger.info(
        f"Found {len(clusters)} similar link clusters among {len(targets)} dangling links "
        f"at threshold {threshold}"
    )
    return clusters[:max_results]


def find_similar_dangling_links(
    target: str,
    dangling_links: list[DanglingLink],
    *,
    threshold: float = DEFAULT_THRESHOLD,
) -> list[SimilarDanglingLink]:
    """Dangling links similar to `target`, most similar first."""
    results = []
    for link in dangling_links:
        if link.target == target:
            continue
        similarity = calculate_similarity(target, link.target)
        if similarity.score >= threshold:
            results.append(SimilarDanglingLink(dangling_link=link, similarity=similarity))

    results.sort(key=lambda result: result.similarity.score, reverse=True)
    return results
