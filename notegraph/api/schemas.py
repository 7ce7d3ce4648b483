from typing import Literal

from pydantic import BaseModel, field_validator

from notegraph.domain.clusters import SimilarLinkCluster
from notegraph.domain.graph import DanglingLink


class GraphNode(BaseModel):
    id: str
    title: str
    path: str
    type: Literal["note", "dangling", "orphan"]
    connection_count: int


class GraphLink(BaseModel):
    source: str
    target: str


class GraphStatsSummary(BaseModel):
    note_count: int
    connection_count: int
    dangling_count: int
    orphan_count: int


class Pagination(BaseModel):
    offset: int
    limit: int
    total: int
    has_more: bool


class GraphView(BaseModel):
    """Nodes and links for the force-directed graph visualization."""

    nodes: list[GraphNode]
    links: list[GraphLink]
    stats: GraphStatsSummary
    pagination: Pagination | None = None


class StatsResponse(GraphStatsSummary):
    last_updated: float


class DanglingLinksResponse(BaseModel):
    dangling_links: list[DanglingLink]
    total_count: int
    fetched_at: float


class SimilarLinksResponse(BaseModel):
    clusters: list[SimilarLinkCluster]
    total_clusters: int
    total_dangling_links: int
    analyzed_at: float


class MergeSimilarLinksBody(BaseModel):
    old_targets: list[str]
    new_target: str
    preserve_as_alias: bool

    @field_validator("old_targets")
    @classmethod
    def check_old_targets(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("old_targets must be a non-empty array")
        if not all(target.strip() for target in value):
            raise ValueError("Each old target must be a non-empty string")
        return value

    @field_validator("new_target")
    @classmethod
    def check_new_target(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("new_target must be a non-empty string")
        return value


class RankedNote(BaseModel):
    path: str
    title: str
    score: float


class PageRankResponse(BaseModel):
    notes: list[RankedNote]
    iterations: int
    converged: bool
