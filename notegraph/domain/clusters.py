"""Similarity clustering and link merging domain models."""

from pydantic import BaseModel

from notegraph.domain.graph import DanglingLink, DanglingSource


class SimilarityScore(BaseModel):
    """Composite similarity between two strings, with its components."""

    score: float
    jaro_winkler: float
    ngram: float
    token_overlap: float
    containment: float


class SimilarLinkMember(BaseModel):
    target: str
    similarity: float  # to the cluster representative
    sources: list[DanglingSource] = []


class SimilarLinkCluster(BaseModel):
    """A group of dangling links that look like spellings of the same note."""

    id: str
    representative_target: str
    members: list[SimilarLinkMember]
    total_occurrences: int
    average_similarity: float


class SimilarDanglingLink(BaseModel):
    dangling_link: DanglingLink
    similarity: SimilarityScore


class MergeLinkRequest(BaseModel):
    """Rewrite every link to one of `old_targets` so that it points at `new_target`."""

    old_targets: list[str]
    new_target: str
    preserve_as_alias: bool = True


class MergeLinkResult(BaseModel):
    files_modified: int = 0
    links_replaced: int = 0
    modified_files: list[str] = []
    errors: dict[str, str] = {}


class MergePreviewMatch(BaseModel):
    original: str
    replaced: str
    line: int  # 1-based


class MergePreview(BaseModel):
    file_path: str
    matches: list[MergePreviewMatch]
