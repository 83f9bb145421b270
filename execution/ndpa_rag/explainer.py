"""
Explanation Generator - turns a matched NDPA section into plain English.
"""

import logging
from typing import Optional, TextIO, Union

from .language_patterns import EXPLAIN_PROMPT, EXPLANATION_FALLBACKS
from .section_matcher import QueryResult
from .tools import SectionResult

logger = logging.getLogger(__name__)


def build_explain_prompt(result: Union[QueryResult, SectionResult, dict]) -> str:
    """Fill the explanation template with the matcher's fields, verbatim."""
    if not isinstance(result, dict):
        result = {
            "part": result.part,
            "section_number": result.section_number,
            "summary": result.summary,
        }
    return EXPLAIN_PROMPT.format(
        part=result["part"],
        section_number=result["section_number"],
        summary=result["summary"],
    )


class ExplanationGenerator:
    """Streams an explanation of a section through the agent's model."""

    def __init__(self, agent):
        self._agent = agent

    def explain(
        self,
        result: Union[QueryResult, SectionResult, dict],
        stream_to: Optional[TextIO] = None,
    ) -> str:
        """
        Explain a matched section.

        Args:
            result: Part, section number and summary from the search step
            stream_to: Optional text stream each delta is written to as it arrives

        Returns:
            The explanation, or a fixed fallback if the model call fails
        """
        prompt = build_explain_prompt(result)
        explanation = ""
        try:
            for delta in self._agent.stream([{"role": "user", "content": prompt}]):
                if stream_to is not None:
                    stream_to.write(delta)
                explanation += delta
        except Exception as e:
            from openai import APITimeoutError
            if isinstance(e, APITimeoutError):
                logger.error("Explanation generation timed out")
                return EXPLANATION_FALLBACKS["timeout"]
            logger.error(f"Explanation failed: {type(e).__name__}: {e}")
            return EXPLANATION_FALLBACKS["error"]
        return explanation
