"""Wikilink parsing and note title normalization.

Supported forms: [[target]], [[target|alias]], [[target#section]] and
[[target#section|alias]]. Links never span lines and no part of a link may
contain a bracket, so an unterminated "[[" never swallows the link after it.
"""

import re
from bisect import bisect_right

from notegraph.domain.wikilink import LinkPosition, Wikilink

WIKILINK_PATTERN = re.compile(r"\[\[([^\[\]|#\n]+)(?:#([^\[\]|\n]+))?(?:\|([^\[\]\n]+))?\]\]")

ELLIPSIS = "…"


def _strip_or_none(value: str | None) -> str | None:
    return value.strip() if value is not None else None


def parse_wikilinks(content: str) -> list[Wikilink]:
    """Extract every wikilink in `content` with its position.

    Args:
        content: Markdown content

    Returns:
        Wikilinks in order of appearance, duplicates included
    """
    line_starts = [match.end() for match in re.finditer("\n", content)]

    links = []
    for match in WIKILINK_PATTERN.finditer(content):
        target = match.group(1).strip()
        if not target:
            continue

        links.append(
            Wikilink(
                raw=match.group(0),
                target=target,
                section=_strip_or_none(match.group(2)),
                alias=_strip_or_none(match.group(3)),
                position=LinkPosition(
                    start=match.start(),
                    end=match.end(),
                    line=bisect_right(line_starts, match.start()),
                ),
            )
        )
    return links


def extract_wikilinks(content: str) -> list[str]:
    """Unique link targets in order of first appearance."""
    return list(dict.fromkeys(link.target for link in parse_wikilinks(content)))


def count_wikilink_mentions(content: str) -> int:
    """Total number of wikilinks, duplicates included."""
    return len(parse_wikilinks(content))


def find_links_to_note(content: str, target_note: str) -> list[Wikilink]:
    """Wikilinks in `content` pointing at `target_note` (normalized comparison)."""
    normalized_target = normalize_note_title(target_note)
    return [
        link
        for link in parse_wikilinks(content)
        if normalize_note_title(link.target) == normalized_target
    ]


def extract_context(content: str, link: Wikilink, context_length: int = 50) -> str:
    """Text surrounding a link, for display next to a backlink.

    Args:
        content: Content the link was parsed from
        link: The link
        context_length: Characters to keep on each side of the link

    Returns:
        Single-line context, with ellipsis markers where it was cut
    """
    start = max(0, link.position.start - context_length)
    end = min(len(content), link.position.end + context_length)

    context = content[start:end]
    if start > 0:
        context = ELLIPSIS + context.lstrip()
    if end < len(content):
        context = context.rstrip() + ELLIPSIS

    return re.sub(r"[\r\n]+", " ", context).strip()


def normalize_note_title(title: str) -> str:
    """Canonical form used to compare note titles, filenames and link targets."""
    normalized = title.lower().strip()
    normalized = re.sub(r"\.md$", "", normalized)
    normalized = re.sub(r"[-_]", " ", normalized)
    return re.sub(r"\s+", " ", normalized)


def is_same_note(title1: str, title2: str) -> bool:
    return normalize_note_title(title1) == normalize_note_title(title2)
