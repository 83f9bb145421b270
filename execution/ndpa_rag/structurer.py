"""
Structurer - converts the raw NDPA text into the JSON the index loads

The Act is split at "PART <roman numeral>" headings; inside each part,
sections start at "<number>. -" markers (hyphen, en dash or em dash), with an
optional "(1)" subsection marker that is dropped from the content.
"""

import re
import json
import logging
from pathlib import Path
from typing import Union

from .language_patterns import (
    PART_SPLIT_REGEX,
    PART_TITLE_REGEX,
    SECTION_BODY_REGEX,
    UNKNOWN_PART_TITLE,
)

logger = logging.getLogger(__name__)


def _collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def extract_sections(part_text: str) -> list[dict]:
    """All numbered sections in one part's text, in order."""
    return [
        {
            "section_number": match.group(1),
            "content": _collapse_whitespace(match.group(3)),
        }
        for match in SECTION_BODY_REGEX.finditer(part_text)
    ]


def structure_text(text: str) -> list[dict]:
    """
    Split the Act into parts and sections.

    Args:
        text: Full plain text of the Act

    Returns:
        [{"part": title, "sections": [{"section_number", "content"}]}] in order.
        Text before the first PART heading becomes an "UNKNOWN PART".
    """
    parts = []
    for part_text in PART_SPLIT_REGEX.split(text):
        if not part_text.strip():
            continue
        title_match = PART_TITLE_REGEX.search(part_text)
        title = title_match.group(1).strip() if title_match else UNKNOWN_PART_TITLE
        parts.append({"part": title, "sections": extract_sections(part_text)})
    return parts


def structure_file(source: Union[str, Path], destination: Union[str, Path]) -> list[dict]:
    """Read the raw Act, structure it, and write indented JSON."""
    source = Path(source)
    destination = Path(destination)

    text = source.read_text(encoding="utf-8")
    parts = structure_text(text)

    destination.write_text(json.dumps(parts, indent=2, ensure_ascii=False), encoding="utf-8")

    section_count = sum(len(p["sections"]) for p in parts)
    logger.info(f"Structured {source.name} into {len(parts)} parts and {section_count} sections -> {destination}")
    if any(p["part"] == UNKNOWN_PART_TITLE for p in parts):
        logger.warning("Some text appeared before the first PART heading and was kept as UNKNOWN PART")
    return parts
