"""
Document Index for the structured NDPA text

Loads the pre-structured JSON produced by the structurer:

    [{"part": "PART I - ...", "sections": [{"section_number": "1", "content": "..."}]}]

into immutable Document/Part/Section values and flattens them into the
query-time view used by the section matcher.
"""

import json
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Iterator, Union

from .errors import LoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Section:
    """The atomic retrievable unit of the Act."""
    section_number: str
    content: str

    def to_dict(self) -> dict:
        return {"section_number": self.section_number, "content": self.content}


@dataclass(frozen=True)
class Part:
    """A titled division of the Act, e.g. "PART III - PRINCIPLES"."""
    title: str
    sections: tuple[Section, ...]

    def to_dict(self) -> dict:
        return {
            "part": self.title,
            "sections": [s.to_dict() for s in self.sections],
        }


@dataclass(frozen=True)
class Document:
    """The whole Act as an ordered sequence of parts."""
    parts: tuple[Part, ...]

    @property
    def section_count(self) -> int:
        return sum(len(p.sections) for p in self.parts)

    def to_dict(self) -> list[dict]:
        return [p.to_dict() for p in self.parts]


@dataclass(frozen=True)
class IndexEntry:
    """Denormalized section with its part title, one per section."""
    part_title: str
    section_number: str
    content: str


def _require_text(value, field_name: str, location: str) -> str:
    if not isinstance(value, str):
        raise LoadError(
            f"Field '{field_name}' at {location} must be a string, got {type(value).__name__}",
            location=location,
        )
    return value


def _load_section(raw, location: str) -> Section:
    if not isinstance(raw, dict):
        raise LoadError(f"Section at {location} must be an object", location=location)
    for key in ("section_number", "content"):
        if key not in raw:
            raise LoadError(f"Section at {location} is missing '{key}'", location=location)

    number = raw["section_number"]
    # The structurer writes strings; tolerate hand-edited integer numbers
    if isinstance(number, int) and not isinstance(number, bool):
        number = str(number)

    return Section(
        section_number=_require_text(number, "section_number", location),
        content=_require_text(raw["content"], "content", location),
    )


def _load_part(raw, location: str) -> Part:
    if not isinstance(raw, dict):
        raise LoadError(f"Part at {location} must be an object", location=location)
    for key in ("part", "sections"):
        if key not in raw:
            raise LoadError(f"Part at {location} is missing '{key}'", location=location)
    if not isinstance(raw["sections"], list):
        raise LoadError(f"Field 'sections' at {location} must be an array", location=location)

    sections = tuple(
        _load_section(s, f"{location}.sections[{i}]")
        for i, s in enumerate(raw["sections"])
    )
    return Part(title=_require_text(raw["part"], "part", location), sections=sections)


def load_document(source) -> Document:
    """
    Build a Document from already-parsed structured JSON.

    Args:
        source: Ordered list of {"part", "sections": [{"section_number", "content"}]}

    Returns:
        Immutable Document

    Raises:
        LoadError: If the source is not an array or a required field is missing
    """
    if not isinstance(source, list):
        raise LoadError(
            f"Structured document must be an array, got {type(source).__name__}",
            location="$",
        )
    parts = tuple(_load_part(p, f"$[{i}]") for i, p in enumerate(source))
    return Document(parts=parts)


def load_document_file(path: Union[str, Path]) -> Document:
    """Read and validate the structured NDPA JSON file."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            source = json.load(f)
    except FileNotFoundError as e:
        raise LoadError(f"Structured document not found: {path}", location=str(path)) from e
    except json.JSONDecodeError as e:
        raise LoadError(f"Invalid JSON in {path}: {e}", location=str(path)) from e

    document = load_document(source)
    logger.info(
        f"Loaded {path.name}: {len(document.parts)} parts, {document.section_count} sections"
    )
    return document


def flatten(document: Document) -> list[IndexEntry]:
    """Flatten parts and sections into index entries, preserving document order."""
    return [
        IndexEntry(
            part_title=part.title,
            section_number=section.section_number,
            content=section.content,
        )
        for part in document.parts
        for section in part.sections
    ]


class DocumentIndex:
    """
    Read-only, query-time view of the Act.

    Constructed once at startup and shared by the tool, agent, workflow and
    API. The flattened entries are computed once since the Document never
    changes.
    """

    def __init__(self, document: Document):
        self._document = document
        self._entries: tuple[IndexEntry, ...] = tuple(flatten(document))

    @classmethod
    def from_source(cls, source) -> "DocumentIndex":
        return cls(load_document(source))

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "DocumentIndex":
        return cls(load_document_file(path))

    @property
    def document(self) -> Document:
        return self._document

    @property
    def entries(self) -> tuple[IndexEntry, ...]:
        return self._entries

    @property
    def part_titles(self) -> list[str]:
        return [p.title for p in self._document.parts]

    def __iter__(self) -> Iterator[IndexEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
