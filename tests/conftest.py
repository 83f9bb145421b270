"""
Shared fixtures and test utilities for NDPA agent tests.

Provides a small structured NDPA sample, index/tool fixtures, and helpers
that build fake OpenAI chat-completion responses so that all tests run
without API keys or network access.
"""

import os
import sys
import copy
import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# ---------------------------------------------------------------------------
# Path setup - ensure the execution package is importable
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("LLM_API_KEY", "test-key")

# ---------------------------------------------------------------------------
# Sample structured NDPA (a faithful excerpt, shortened)
# ---------------------------------------------------------------------------

LONG_PRINCIPLES_TEXT = (
    "A data controller or data processor shall ensure that personal data is "
    "processed in a fair, lawful and transparent manner; collected for specified, "
    "explicit and legitimate purposes, and not to be further processed in a way "
    "incompatible with these purposes; adequate, relevant, and limited to the "
    "minimum necessary for the purposes for which the personal data was collected "
    "or further processed; retained for not longer than is necessary to achieve "
    "the lawful bases for which the personal data was collected or further "
    "processed; accurate, complete, not misleading, and, where necessary, kept up "
    "to date having regard to the purposes for which the personal data is "
    "collected or is further processed; and processed in a manner that ensures "
    "appropriate security of personal data, including protection against "
    "unauthorised or unlawful processing, access, loss, destruction, damage, or "
    "any form of data breach."
)

SAMPLE_NDPA = [
    {
        "part": "PART I - OBJECTIVE AND APPLICATION",
        "sections": [
            {
                "section_number": "1",
                "content": "The objective of this Act is to safeguard the fundamental "
                           "rights and freedoms, and the interests of data subjects, "
                           "as guaranteed under the Constitution.",
            },
            {
                "section_number": "2",
                "content": "This Act shall apply to the processing of personal data, "
                           "whether by automated means or not.",
            },
        ],
    },
    {
        "part": "PART II - ESTABLISHMENT OF THE NIGERIA DATA PROTECTION COMMISSION",
        "sections": [
            {
                "section_number": "4",
                "content": "There is established the Nigeria Data Protection Commission "
                           "which shall be a body corporate with perpetual succession.",
            },
            {
                "section_number": "5",
                "content": "The Commission shall regulate the deployment of technological "
                           "and organisational measures to enhance personal data protection.",
            },
        ],
    },
    {
        "part": "PART V - PRINCIPLES AND LAWFUL BASES GOVERNING PROCESSING OF PERSONAL DATA",
        "sections": [
            {"section_number": "24", "content": LONG_PRINCIPLES_TEXT},
            {
                "section_number": "26",
                "content": "Where processing is based on consent, the data controller "
                           "shall be able to demonstrate that the data subject consented.",
            },
        ],
    },
    {
        "part": "PART VIII - DATA SECURITY",
        "sections": [
            {
                "section_number": "40",
                "content": "Where a personal data breach has occurred, the data controller "
                           "shall, within 72 hours of becoming aware of the breach, notify "
                           "the Commission of the breach.",
            },
        ],
    },
]

SECTION_COUNT = sum(len(p["sections"]) for p in SAMPLE_NDPA)


@pytest.fixture
def sample_structure():
    """A fresh copy of the structured sample, safe to mutate."""
    return copy.deepcopy(SAMPLE_NDPA)


@pytest.fixture
def sample_document(sample_structure):
    from execution.ndpa_rag.document_index import load_document
    return load_document(sample_structure)


@pytest.fixture
def ndpa_index(sample_structure):
    from execution.ndpa_rag.document_index import DocumentIndex
    return DocumentIndex.from_source(sample_structure)


@pytest.fixture
def structured_file(tmp_path, sample_structure):
    """The sample written to disk the way the structurer writes it."""
    path = tmp_path / "ndpa_structured.json"
    path.write_text(json.dumps(sample_structure, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def search_tool(ndpa_index):
    from execution.ndpa_rag.tools import SearchSectionTool
    return SearchSectionTool(ndpa_index)


# ---------------------------------------------------------------------------
# Fake OpenAI responses
# ---------------------------------------------------------------------------

def make_completion(content="", tool_calls=None):
    """A chat.completions.create() result with one choice."""
    message = MagicMock()
    message.content = content
    message.tool_calls = tool_calls
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


def make_tool_call(call_id, arguments, name="search-ndpa"):
    """A tool call as it appears on a completion message."""
    call = MagicMock()
    call.id = call_id
    call.function.name = name
    call.function.arguments = arguments if isinstance(arguments, str) else json.dumps(arguments)
    return call


def make_stream(*deltas):
    """An iterator of streamed chunks carrying the given text deltas."""
    chunks = []
    for delta in deltas:
        choice = MagicMock()
        choice.delta.content = delta
        chunk = MagicMock()
        chunk.choices = [choice]
        chunks.append(chunk)
    return iter(chunks)


@pytest.fixture
def mock_llm_client():
    """An OpenAI client whose completions must be configured by the test."""
    return MagicMock()


@pytest.fixture
def ndpa_agent(mock_llm_client, search_tool):
    from execution.ndpa_rag.agent import NdpaAgent
    return NdpaAgent(client=mock_llm_client, tool=search_tool, model="test-model")


# ---------------------------------------------------------------------------
# Singleton resets between tests
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def reset_metrics_singleton():
    """Reset the MetricsCollector singleton between tests."""
    import execution.ndpa_rag.metrics as metrics_mod
    metrics_mod.MetricsCollector._instance = None
    metrics_mod._collector = None
    yield
    metrics_mod.MetricsCollector._instance = None
    metrics_mod._collector = None
