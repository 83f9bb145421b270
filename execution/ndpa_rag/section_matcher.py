"""
Section Matcher - finds the single best NDPA section for a question

Two tiers, in strict precedence:
1. Citation match: "Part II", "Section 5", or both, matched structurally
2. Keyword match: count of question words found in each section's text

If neither tier finds anything the "N/A" sentinel result is returned;
matching never raises for a string question.
"""

import logging
from enum import Enum
from typing import Iterable, Optional
from dataclasses import dataclass, asdict

from .document_index import IndexEntry
from .language_patterns import (
    PART_REFERENCE_REGEX,
    SECTION_REFERENCE_REGEX,
    NOT_APPLICABLE,
    NO_MATCH_SUMMARY,
    SUMMARY_LIMIT,
    SUMMARY_ELLIPSIS,
)

logger = logging.getLogger(__name__)


class MatchTier(str, Enum):
    """Which strategy produced a result."""
    CITATION = "citation"
    KEYWORD = "keyword"
    NONE = "none"


@dataclass(frozen=True)
class Citation:
    """Part/section reference parsed out of a question."""
    part: Optional[str] = None  # uppercased, e.g. "II" or "2"
    section: Optional[str] = None  # digits as written, e.g. "05"

    @property
    def found(self) -> bool:
        return self.part is not None or self.section is not None

    def matches(self, entry: IndexEntry) -> bool:
        """Both conditions must hold; an absent reference is vacuously true."""
        if self.part is not None:
            if f"part {self.part.lower()}" not in entry.part_title.lower():
                return False
        if self.section is not None:
            if entry.section_number != self.section:
                return False
        return True


@dataclass(frozen=True)
class QueryResult:
    """The matcher's answer: provenance plus a bounded excerpt."""
    part: str
    section_number: str
    summary: str

    @property
    def is_match(self) -> bool:
        return not (self.part == NOT_APPLICABLE and self.section_number == NOT_APPLICABLE)

    def to_dict(self) -> dict:
        return asdict(self)


NO_MATCH = QueryResult(
    part=NOT_APPLICABLE,
    section_number=NOT_APPLICABLE,
    summary=NO_MATCH_SUMMARY,
)


def normalize_question(question) -> str:
    """Lowercase and trim; anything that is not a string becomes empty."""
    if not isinstance(question, str):
        return ""
    return question.lower().strip()


def parse_citation(text: str) -> Citation:
    """
    Extract explicit part/section references from a question.

    Patterns (case-insensitive, first occurrence wins):
        part\\s*([ivx\\d]+)   -> part token, uppercased ("part ii" -> "II")
        section\\s*(\\d+)     -> section digits, kept as written

    Args:
        text: Question text

    Returns:
        Citation with whichever references were found
    """
    part_match = PART_REFERENCE_REGEX.search(text)
    section_match = SECTION_REFERENCE_REGEX.search(text)
    return Citation(
        part=part_match.group(1).upper() if part_match else None,
        section=section_match.group(1) if section_match else None,
    )


def truncate_summary(content: str, limit: int = SUMMARY_LIMIT) -> str:
    """Cut content to `limit` characters, marking the cut with an ellipsis."""
    if len(content) <= limit:
        return content
    return content[:limit] + SUMMARY_ELLIPSIS


def score_entry(tokens: list[str], entry: IndexEntry) -> int:
    """Number of question tokens (repeats included) found inside the section text."""
    content = entry.content.lower()
    return sum(1 for token in tokens if token in content)


def _to_result(entry: IndexEntry) -> QueryResult:
    return QueryResult(
        part=entry.part_title,
        section_number=entry.section_number,
        summary=truncate_summary(entry.content),
    )


def match_section_with_tier(
    question,
    index: Iterable[IndexEntry],
) -> tuple[QueryResult, MatchTier]:
    """Like match_section, also reporting which tier produced the result."""
    query = normalize_question(question)
    entries = list(index)

    citation = parse_citation(query)
    if citation.found:
        for entry in entries:
            if citation.matches(entry):
                logger.debug(
                    f"Citation match part={citation.part} section={citation.section} "
                    f"-> {entry.part_title} / {entry.section_number}"
                )
                return _to_result(entry), MatchTier.CITATION
        logger.debug(
            f"No entry for part={citation.part} section={citation.section}, "
            f"falling back to keyword match"
        )

    tokens = query.split()
    best_entry: Optional[IndexEntry] = None
    best_score = 0

    for entry in entries:
        score = score_entry(tokens, entry)
        if score > best_score:
            best_score = score
            best_entry = entry

    if best_entry is not None and best_score > 0:
        logger.debug(
            f"Keyword match score={best_score} -> {best_entry.part_title} / {best_entry.section_number}"
        )
        return _to_result(best_entry), MatchTier.KEYWORD

    return NO_MATCH, MatchTier.NONE


def match_section(question, index: Iterable[IndexEntry]) -> QueryResult:
    """
    Return the single best section for a question.

    Args:
        question: Free-text question; non-strings are treated as empty
        index: Flattened index entries in document order (a DocumentIndex works)

    Returns:
        QueryResult for the best section, or NO_MATCH
    """
    result, _ = match_section_with_tier(question, index)
    return result
