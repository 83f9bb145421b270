"""
The search-ndpa tool: a validated wrapper around the section matcher.

The same tool is handed to the agent (as an OpenAI function definition) and
called directly by the workflow's search step.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from .document_index import DocumentIndex
from .errors import ToolInputError
from .section_matcher import match_section_with_tier

logger = logging.getLogger(__name__)


class SectionQuery(BaseModel):
    """Input schema of the search-ndpa tool."""
    question: str = Field(..., description="User's question about the NDPA")


class SectionResult(BaseModel):
    """Output schema of the search-ndpa tool."""
    part: str
    section_number: str
    summary: str


class SearchSectionTool:
    """Search the Act for the section that best answers a question."""

    id = "search-ndpa"
    description = "Search the Nigeria Data Protection Act (NDPA) 2023 for relevant sections."
    input_schema = SectionQuery
    output_schema = SectionResult

    def __init__(self, index: DocumentIndex, metrics=None):
        self._index = index
        self._metrics = metrics

    def parse_input(self, payload: Any) -> SectionQuery:
        """Validate a raw payload (dict or JSON string) against the input schema."""
        try:
            if isinstance(payload, (str, bytes)):
                return SectionQuery.model_validate_json(payload)
            return SectionQuery.model_validate(payload)
        except ValidationError as e:
            raise ToolInputError(f"Invalid input for {self.id}: {e}", tool_id=self.id) from e

    def execute(self, payload: Any) -> SectionResult:
        """
        Run the matcher for a tool call.

        Args:
            payload: {"question": str}, as a dict, JSON string or SectionQuery

        Returns:
            SectionResult with part, section_number and summary

        Raises:
            ToolInputError: If the payload does not match the input schema
        """
        query = payload if isinstance(payload, SectionQuery) else self.parse_input(payload)
        result, tier = match_section_with_tier(query.question, self._index)
        logger.info(
            f"{self.id}: tier={tier.value} part={result.part!r} section={result.section_number!r}"
        )
        if self._metrics is not None:
            self._metrics.record_match(tier)
        return SectionResult(**result.to_dict())

    def to_openai_tool(self) -> dict:
        """Function-calling definition for chat.completions."""
        return {
            "type": "function",
            "function": {
                "name": self.id,
                "description": self.description,
                "parameters": SectionQuery.model_json_schema(),
            },
        }

    def call_from_arguments(self, arguments: str) -> dict:
        """Execute a tool call whose arguments arrive as a JSON string from the LLM."""
        return self.execute(arguments or "{}").model_dump()
