"""Rewriting variant spellings of a link target to one canonical target."""

import re

from loguru import logger

from notegraph.domain.clusters import (
    MergeLinkRequest,
    MergeLinkResult,
    MergePreview,
    MergePreviewMatch,
)
from notegraph.filesystem.base import FileSystem

from .analyzer import NoteGraphAnalyzer, collect_markdown_files, resolve_notes_dir


def build_replacement_regex(targets: list[str]) -> re.Pattern[str]:
    """Regex matching [[t]], [[t#section]], [[t|alias]] and [[t#section|alias]] for any target.

    Groups: 1 = target, 2 = section, 3 = alias.
    """
    if not targets:
        raise ValueError("At least one target is required")

    # longest first so that a target is never shadowed by its own prefix
    alternatives = "|".join(re.escape(t) for t in sorted(targets, key=len, reverse=True))
    return re.compile(rf"\[\[({alternatives})(?:#([^\[\]|\n]+))?(?:\|([^\[\]\n]+))?\]\]")


def _replacement(match: re.Match[str], new_target: str, preserve_as_alias: bool) -> str:
    original_target, section, existing_alias = match.group(1), match.group(2), match.group(3)

    section_part = f"#{section}" if section else ""
    alias_part = ""
    if existing_alias:
        alias_part = f"|{existing_alias}"
    elif preserve_as_alias and original_target != new_target:
        alias_part = f"|{original_target}"

    return f"[[{new_target}{section_part}{alias_part}]]"


class LinkMerger:
    """Merges similar dangling links across a notes directory."""

    def __init__(self, *, filesystem: FileSystem, analyzer: NoteGraphAnalyzer):
        self.filesystem = filesystem
        self.analyzer = analyzer

    def replace_links_in_file(
        self,
        path: str,
        old_targets: list[str],
        new_target: str,
        preserve_as_alias: bool,
    ) -> tuple[bool, int]:
        """Rewrite links in a single file.

        Returns:
            Tuple of (file was updated, number of links replaced)

        Raises:
            OSError: If the file cannot be read or written
        """
        content = self.filesystem.read_text(path)
        regex = build_replacement_regex(old_targets)

        new_content, count = regex.subn(
            lambda match: _replacement(match, new_target, preserve_as_alias), content
        )
        if count == 0:
            return False, 0

        self.filesystem.write_text(path, new_content)
        return True, count

    def merge_similar_links(self, notes_dir: str, request: MergeLinkRequest) -> MergeLinkResult:
        """Apply a merge to every note under `notes_dir`.

        Files that fail are reported in `errors` and do not stop the merge.
        """
        result = MergeLinkResult()
        if not request.old_targets:
            return result

        root = resolve_notes_dir(notes_dir)
        self.analyzer.invalidate_graph_cache(root)

        for path in collect_markdown_files(self.filesystem, root):
            try:
                updated, count = self.replace_links_in_file(
                    path, request.old_targets, request.new_target, request.preserve_as_alias
                )
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Failed to merge links in {path}: {e}")
                result.errors[path] = str(e)
                continue

            if updated:
                result.files_modified += 1
                result.links_replaced += count
                result.modified_files.append(path)

        if result.files_modified:
            self.analyzer.invalidate_graph_cache(root)

        logger.info(
            f"Merged {len(request.old_targets)} targets into '{request.new_target}': "
            f"{result.links_replaced} links in {result.files_modified} files"
        )
        return result

    def preview_merge(self, notes_dir: str, request: MergeLinkRequest) -> list[MergePreview]:
        """Show what `merge_similar_links` would change without writing anything."""
        if not request.old_targets:
            return []

        root = resolve_notes_dir(notes_dir)
        regex = build_replacement_regex(request.old_targets)

        previews = []
        for path in collect_markdown_files(self.filesystem, root):
            try:
                content = self.filesystem.read_text(path)
            except (OSError, UnicodeDecodeError):
                continue

            matches = [
                MergePreviewMatch(
                    original=match.group(0),
                    replaced=_replacement(match, request.new_target, request.preserve_as_alias),
                    line=line_number,
                )
                for line_number, line in enumerate(content.split("\n"), start=1)
                for match in regex.finditer(line)
            ]
            if matches:
                previews.append(MergePreview(file_path=path, matches=matches))

        return previews
