"""Wikilink domain models."""

from pydantic import BaseModel


class LinkPosition(BaseModel):
    """Location of a wikilink inside note content.

    Attributes:
        start: Zero-based character offset of the opening brackets
        end: Zero-based character offset just past the closing brackets
        line: Zero-based line number
    """

    start: int
    end: int
    line: int


class Wikilink(BaseModel):
    """A single `[[target#section|alias]]` occurrence.

    The target is kept as written (only surrounding whitespace trimmed);
    normalization happens when links are matched against notes.
    """

    raw: str
    target: str
    section: str | None = None
    alias: str | None = None
    position: LinkPosition
