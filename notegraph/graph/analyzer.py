"""Note graph analysis: forward links, backlinks, dangling links and orphans."""

import os
from concurrent.futures import ThreadPoolExecutor

import frontmatter
import yaml
from loguru import logger

from notegraph.cache.incremental import IncrementalCache
from notegraph.domain.cache import ValidationResult
from notegraph.domain.graph import (
    BacklinkEntry,
    DanglingLink,
    DanglingSource,
    NoteGraphStats,
    NoteMetadata,
    QuickNoteStats,
)
from notegraph.filesystem.base import FileSystem
from notegraph.filesystem.local import LocalFileSystem

from .wikilinks import extract_context, normalize_note_title, parse_wikilinks

CACHE_TYPE = "graph-stats"
MARKDOWN_SUFFIX = ".md"


def collect_markdown_files(filesystem: FileSystem, notes_dir: str) -> list[str]:
    """Recursively list markdown files, skipping hidden directories.

    Entries are visited in sorted order so that results are reproducible.
    A missing root yields an empty list and unreadable subdirectories are skipped.
    """
    if not filesystem.exists(notes_dir):
        return []

    files = []
    pending = [notes_dir]
    while pending:
        current_dir = pending.pop()
        try:
            entries = sorted(filesystem.list_dir(current_dir))
        except OSError as e:
            logger.warning(f"Skipping unreadable directory {current_dir}: {e}")
            continue

        subdirs = []
        for name, is_dir in entries:
            full_path = os.path.join(current_dir, name)
            if is_dir:
                if not name.startswith("."):
                    subdirs.append(full_path)
            elif name.endswith(MARKDOWN_SUFFIX):
                files.append(full_path)
        # reversed so that subdirectories are popped in sorted order
        pending.extend(reversed(subdirs))

    return sorted(files)


def resolve_notes_dir(notes_dir: str) -> str:
    """Absolute form of a notes directory, with `~` expanded."""
    return os.path.abspath(os.path.expanduser(str(notes_dir)))


def _basename(path: str) -> str:
    name = os.path.basename(path)
    return name[: -len(MARKDOWN_SUFFIX)] if name.endswith(MARKDOWN_SUFFIX) else name


class NoteGraphAnalyzer:
    """Builds NoteGraphStats for a notes directory, caching the result until a note changes."""

    def __init__(
        self,
        *,
        filesystem: FileSystem | None = None,
        cache: IncrementalCache | None = None,
        io_concurrency: int = 10,
        context_length: int = 50,
    ):
        """Initialize the analyzer.

        Args:
            filesystem: Used to list and read notes
            cache: Cache for analysis results; one sharing `filesystem` is created if omitted
            io_concurrency: Number of threads reading notes in parallel
            context_length: Default number of context characters around backlinks
        """
        self.filesystem = filesystem or LocalFileSystem()
        self.cache = cache or IncrementalCache(filesystem=self.filesystem)
        self.io_concurrency = max(1, io_concurrency)
        self.context_length = context_length
        # cache key -> note paths the cached result was built from
        self._listings: dict[str, frozenset[str]] = {}

    def analyze_note_graph(
        self,
        notes_dir: str,
        *,
        include_context: bool = False,
        context_length: int | None = None,
        use_cache: bool = True,
    ) -> NoteGraphStats:
        """Analyze every note under `notes_dir`.

        Args:
            notes_dir: Notes directory; `~` is expanded
            include_context: Attach surrounding text to backlink entries
            context_length: Context characters on each side of a link
            use_cache: Serve and store results through the cache

        Returns:
            Graph statistics; empty when the directory does not exist. The
            object may be the one held by the cache and must not be modified.
        """
        root = resolve_notes_dir(notes_dir)
        context_length = self.context_length if context_length is None else context_length
        cache_key = self._cache_key(root, include_context, context_length)

        if use_cache:
            cached = self.cache.get(cache_key, validator=self._listing_validator(root, cache_key))
            if cached is not None:
                logger.debug(f"Graph cache hit for {root}")
                return cached
            self._prune_listings()

        files = collect_markdown_files(self.filesystem, root)
        # snapshot before reading: an edit made during the build must invalidate the result
        dependencies = self.cache.snapshot(files) if use_cache else []
        stats = self._build_stats(files, include_context, context_length)

        logger.info(
            f"Analyzed {stats.note_count} notes in {root}: "
            f"{stats.unique_connections} connections, {len(stats.dangling_links)} dangling links, "
            f"{len(stats.orphan_notes)} orphans"
        )

        if use_cache:
            self._listings[cache_key] = frozenset(files)
            self.cache.set(cache_key, stats, dependencies)
        return stats

    def get_backlinks_for_note(self, notes_dir: str, note_title: str) -> list[BacklinkEntry]:
        """Backlinks of a note, looked up by exact then normalized title."""
        stats = self.analyze_note_graph(notes_dir, include_context=True)

        if note_title in stats.backlinks:
            return [entry.model_copy() for entry in stats.backlinks[note_title]]

        normalized = normalize_note_title(note_title)
        for title, entries in stats.backlinks.items():
            if normalize_note_title(title) == normalized:
                return [entry.model_copy() for entry in entries]
        return []

    def get_forward_links(self, notes_dir: str, note_path: str) -> list[str]:
        stats = self.analyze_note_graph(notes_dir)
        return list(stats.forward_links.get(note_path, []))

    def find_dangling_links(self, notes_dir: str) -> list[DanglingLink]:
        stats = self.analyze_note_graph(notes_dir)
        return [link.model_copy(deep=True) for link in stats.dangling_links]

    def find_orphan_notes(self, notes_dir: str) -> list[str]:
        return list(self.analyze_note_graph(notes_dir).orphan_notes)

    def get_quick_stats(self, notes_dir: str) -> QuickNoteStats:
        stats = self.analyze_note_graph(notes_dir)
        return QuickNoteStats(
            note_count=stats.note_count,
            connection_count=stats.unique_connections,
            dangling_count=len(stats.dangling_links),
            orphan_count=len(stats.orphan_notes),
        )

    def invalidate_graph_cache(self, notes_dir: str) -> list[str]:
        """Drop every cached analysis of `notes_dir`. Returns the removed keys."""
        base_key = self._cache_key(resolve_notes_dir(notes_dir), False, 0)
        removed = self.cache.invalidate_by_prefix(f"{base_key}:context=")
        if self.cache.delete(base_key):
            removed.append(base_key)
        self._prune_listings()
        logger.debug(f"Invalidated {len(removed)} graph cache entries for {notes_dir}")
        return removed

    @staticmethod
    def _cache_key(root: str, include_context: bool, context_length: int) -> str:
        key = f"{CACHE_TYPE}:{root}"
        if include_context:
            key = f"{key}:context={context_length}"
        return key

    def _prune_listings(self) -> None:
        """Forget the listings of results no longer held by the cache."""
        live_keys = set(self.cache.get_stats().keys)
        for key in [key for key in self._listings if key not in live_keys]:
            del self._listings[key]

    def _listing_validator(self, root: str, cache_key: str):
        """Reject a cached result when notes were added to or removed from `root`."""

        def validate() -> ValidationResult:
            cached_files = self._listings.get(cache_key, frozenset())
            current_files = set(collect_markdown_files(self.filesystem, root))
            changed = sorted(cached_files ^ current_files)
            return ValidationResult(valid=not changed, changed_files=changed)

        return validate

    def _read_note(self, path: str) -> tuple[NoteMetadata, str | None]:
        """Read a note and derive its metadata. Content is None when unreadable."""
        basename = _basename(path)
        fallback = NoteMetadata(id=basename, title=basename, path=path, basename=basename)

        try:
            content = self.filesystem.read_text(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Cannot read note {path}: {e}")
            return fallback, None

        try:
            metadata = frontmatter.loads(content).metadata
        except yaml.YAMLError as e:
            logger.warning(f"Invalid frontmatter in {path}, using filename as title: {e}")
            return fallback, content

        note_id = metadata.get("id")
        title = metadata.get("title")
        return (
            NoteMetadata(
                id=str(note_id) if note_id else basename,
                title=str(title) if title else basename,
                path=path,
                basename=basename,
            ),
            content,
        )

    def _build_stats(
        self, files: list[str], include_context: bool, context_length: int
    ) -> NoteGraphStats:
        with ThreadPoolExecutor(max_workers=self.io_concurrency) as executor:
            notes = list(executor.map(self._read_note, files))

        lookup: dict[str, NoteMetadata] = {}
        for metadata, _ in notes:
            for name in (metadata.title, metadata.basename, metadata.id):
                lookup.setdefault(normalize_note_title(name), metadata)

        forward_links: dict[str, list[str]] = {}
        backlinks: dict[str, list[BacklinkEntry]] = {}
        seen_backlinks: set[tuple[str, str]] = set()
        linked_paths: set[str] = set()
        connections: set[tuple[str, str]] = set()
        dangling: dict[str, dict[str, DanglingSource]] = {}
        total_mentions = 0

        for metadata, content in notes:
            targets: list[str] = []
            forward_links[metadata.path] = targets
            if content is None:
                continue

            links = parse_wikilinks(content)
            total_mentions += len(links)

            for link in links:
                target_note = lookup.get(normalize_note_title(link.target))

                if target_note is None:
                    sources = dangling.setdefault(link.target, {})
                    if metadata.path in sources:
                        sources[metadata.path].count += 1
                    else:
                        sources[metadata.path] = DanglingSource(
                            note_id=metadata.id,
                            note_path=metadata.path,
                            note_title=metadata.title,
                            count=1,
                        )
                    continue

                if target_note.title not in targets:
                    targets.append(target_note.title)
                connections.add((metadata.path, target_note.path))
                linked_paths.add(target_note.path)

                if (target_note.title, metadata.path) in seen_backlinks:
                    continue
                seen_backlinks.add((target_note.title, metadata.path))
                backlinks.setdefault(target_note.title, []).append(
                    BacklinkEntry(
                        source_note_id=metadata.id,
                        source_title=metadata.title,
                        source_path=metadata.path,
                        context=(
                            extract_context(content, link, context_length)
                            if include_context
                            else None
                        ),
                        alias=link.alias,
                    )
                )

        orphan_notes = [
            metadata.path
            for metadata, _ in notes
            if not forward_links[metadata.path] and metadata.path not in linked_paths
        ]

        return NoteGraphStats(
            note_count=len(files),
            unique_connections=len(connections),
            total_mentions=total_mentions,
            forward_links=forward_links,
            backlinks=backlinks,
            dangling_links=[
                DanglingLink(target=target, sources=list(sources.values()))
                for target, sources in dangling.items()
            ],
            orphan_notes=orphan_notes,
            notes=[metadata for metadata, _ in notes],
        )
