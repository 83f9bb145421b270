"""
Tests for execution/ndpa_rag/structurer.py

Covers: part splitting, section extraction with subsection markers and
        dash variants, text before the first heading, and the file output
        the DocumentIndex loads.
"""

import json

from execution.ndpa_rag.document_index import load_document_file
from execution.ndpa_rag.structurer import extract_sections, structure_file, structure_text


RAW_NDPA = """PART I - OBJECTIVE AND APPLICATION
1. - (1) The objective of this Act is to
safeguard the fundamental rights of data subjects.
2. - This Act shall apply to the processing of personal data.
PART II - ESTABLISHMENT OF THE NIGERIA DATA PROTECTION COMMISSION
4. – There is established the Nigeria Data Protection Commission.
5. — The Commission shall regulate data protection.
"""


class TestExtractSections:

    def test_numbers_and_content(self):
        sections = extract_sections("1. - First rule.\n2. - Second rule.\n")
        assert sections == [
            {"section_number": "1", "content": "First rule."},
            {"section_number": "2", "content": "Second rule."},
        ]

    def test_subsection_marker_dropped(self):
        sections = extract_sections("7. - (1) A controller shall comply.")
        assert sections[0]["content"] == "A controller shall comply."

    def test_whitespace_collapsed(self):
        sections = extract_sections("3. -   spread\n   over\n\nlines  ")
        assert sections[0]["content"] == "spread over lines"

    def test_no_sections(self):
        assert extract_sections("PART IX - MISCELLANEOUS\n") == []


class TestStructureText:

    def test_splits_parts_in_order(self):
        parts = structure_text(RAW_NDPA)
        assert [p["part"] for p in parts] == [
            "PART I - OBJECTIVE AND APPLICATION",
            "PART II - ESTABLISHMENT OF THE NIGERIA DATA PROTECTION COMMISSION",
        ]

    def test_sections_per_part(self):
        parts = structure_text(RAW_NDPA)
        assert [s["section_number"] for s in parts[0]["sections"]] == ["1", "2"]
        assert [s["section_number"] for s in parts[1]["sections"]] == ["4", "5"]

    def test_multiline_section_joined(self):
        first = structure_text(RAW_NDPA)[0]["sections"][0]
        assert first["content"] == (
            "The objective of this Act is to safeguard the fundamental rights of data subjects."
        )

    def test_en_and_em_dash_markers(self):
        commission = structure_text(RAW_NDPA)[1]["sections"]
        assert commission[0]["content"] == "There is established the Nigeria Data Protection Commission."
        assert commission[1]["content"] == "The Commission shall regulate data protection."

    def test_preamble_becomes_unknown_part(self):
        parts = structure_text("NIGERIA DATA PROTECTION ACT\n" + RAW_NDPA)
        assert parts[0]["part"] == "UNKNOWN PART"
        assert parts[0]["sections"] == []
        assert len(parts) == 3

    def test_empty_text(self):
        assert structure_text("") == []


class TestStructureFile:

    def test_writes_loadable_json(self, tmp_path):
        source = tmp_path / "ndpa.txt"
        destination = tmp_path / "ndpa_structured.json"
        source.write_text(RAW_NDPA, encoding="utf-8")

        parts = structure_file(source, destination)

        assert json.loads(destination.read_text(encoding="utf-8")) == parts
        document = load_document_file(destination)
        assert document.section_count == 4

    def test_output_is_indented(self, tmp_path):
        source = tmp_path / "ndpa.txt"
        destination = tmp_path / "out.json"
        source.write_text(RAW_NDPA, encoding="utf-8")

        structure_file(source, destination)

        assert destination.read_text(encoding="utf-8").startswith('[\n  {\n    "part"')
