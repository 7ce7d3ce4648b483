"""Note graph domain models."""

from pydantic import BaseModel


class NoteMetadata(BaseModel):
    """Metadata derived for a note file on every analysis pass.

    Attributes:
        id: Frontmatter id, or the filename stem
        title: Frontmatter title, or the filename stem
        path: Absolute file path
        basename: Filename without the .md extension
    """

    id: str
    title: str
    path: str
    basename: str


class BacklinkEntry(BaseModel):
    """A note referencing a given title."""

    source_note_id: str
    source_title: str
    source_path: str
    context: str | None = None
    alias: str | None = None


class DanglingSource(BaseModel):
    """A note containing a dangling link and how often it mentions it."""

    note_id: str
    note_path: str
    note_title: str
    count: int


class DanglingLink(BaseModel):
    """A link target that matches no existing note."""

    target: str
    sources: list[DanglingSource] = []

    @property
    def total_occurrences(self) -> int:
        return sum(source.count for source in self.sources)


class NoteGraphStats(BaseModel):
    """Complete link statistics for a notes directory.

    Attributes:
        note_count: Number of markdown notes found
        unique_connections: Distinct (source note, target note) edges
        total_mentions: All wikilink occurrences, duplicates included
        forward_links: Note path -> titles of the existing notes it links to
        backlinks: Note title -> notes linking to it
        dangling_links: Targets that match no note
        orphan_notes: Paths of notes with neither forward links nor backlinks
        notes: Metadata of every note, in traversal order
    """

    note_count: int = 0
    unique_connections: int = 0
    total_mentions: int = 0
    forward_links: dict[str, list[str]] = {}
    backlinks: dict[str, list[BacklinkEntry]] = {}
    dangling_links: list[DanglingLink] = []
    orphan_notes: list[str] = []
    notes: list[NoteMetadata] = []


class QuickNoteStats(BaseModel):
    """Numeric projection of NoteGraphStats for dashboards."""

    note_count: int
    connection_count: int
    dangling_count: int
    orphan_count: int


class PageRankResult(BaseModel):
    """PageRank scores keyed by note path, scaled so the top note scores 1."""

    scores: dict[str, float] = {}
    iterations: int = 0
    converged: bool = True
