"""
NDPA RAG - Plain-English answers about the Nigeria Data Protection Act 2023

This module provides:
- A structured, in-memory index of the Act's parts and sections
- A deterministic section matcher (explicit citations first, keywords second)
- The search-ndpa tool, an LLM agent, and a retrieve-and-explain workflow
- An A2A JSON-RPC endpoint and evaluation scorers
"""

__version__ = "0.1.0"

from .errors import NdpaError, LoadError, ToolInputError, WorkflowError, AgentError
from .document_index import (
    Section,
    Part,
    Document,
    IndexEntry,
    DocumentIndex,
    load_document,
    load_document_file,
    flatten,
)
from .section_matcher import (
    Citation,
    QueryResult,
    MatchTier,
    NO_MATCH,
    parse_citation,
    truncate_summary,
    match_section,
)
from .tools import SearchSectionTool
from .agent import NdpaAgent, AgentRegistry
from .workflow import NdpaWorkflow

__all__ = [
    "NdpaError",
    "LoadError",
    "ToolInputError",
    "WorkflowError",
    "AgentError",
    "Section",
    "Part",
    "Document",
    "IndexEntry",
    "DocumentIndex",
    "load_document",
    "load_document_file",
    "flatten",
    "Citation",
    "QueryResult",
    "MatchTier",
    "NO_MATCH",
    "parse_citation",
    "truncate_summary",
    "match_section",
    "SearchSectionTool",
    "NdpaAgent",
    "AgentRegistry",
    "NdpaWorkflow",
]
