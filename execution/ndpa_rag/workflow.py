"""
NDPA Workflow - search, then explain

    {question} -> search-ndpa-step -> {part, section_number, summary}
               -> explain-ndpa-step -> {explanation}
"""

import sys
import logging
from dataclasses import dataclass, field
from typing import Optional, TextIO

from pydantic import BaseModel, Field, ValidationError

from .errors import WorkflowError
from .explainer import ExplanationGenerator
from .tools import SearchSectionTool, SectionQuery, SectionResult

logger = logging.getLogger(__name__)


class WorkflowInput(BaseModel):
    question: str = Field(..., description="User's legal or privacy question")


class WorkflowOutput(BaseModel):
    explanation: str


@dataclass
class WorkflowRun:
    """Outputs of each step, keyed by step id, plus the final result."""
    workflow_id: str
    status: str = "running"
    steps: dict = field(default_factory=dict)
    result: Optional[WorkflowOutput] = None


class SearchStep:
    """Find the relevant NDPA section for the user's question."""

    id = "search-ndpa-step"
    description = "Find relevant NDPA section(s) for a user's question"

    def __init__(self, tool: SearchSectionTool):
        self._tool = tool

    def execute(self, input_data: Optional[dict]) -> SectionResult:
        if not input_data:
            raise WorkflowError("Input data not found", step_id=self.id)
        try:
            query = SectionQuery.model_validate(input_data)
        except ValidationError as e:
            raise WorkflowError(f"Invalid input for {self.id}: {e}", step_id=self.id) from e
        return self._tool.execute(query)


class ExplainStep:
    """Summarize and explain the relevant NDPA section."""

    id = "explain-ndpa-step"
    description = "Summarize and explain the relevant NDPA section"

    def __init__(self, agent, stream_to: Optional[TextIO] = None):
        self._agent = agent
        self._stream_to = stream_to

    def execute(self, input_data: SectionResult) -> WorkflowOutput:
        if self._agent is None:
            raise WorkflowError("NDPA Agent not found", step_id=self.id)
        explanation = ExplanationGenerator(self._agent).explain(
            input_data, stream_to=self._stream_to,
        )
        return WorkflowOutput(explanation=explanation)


class NdpaWorkflow:
    """Two-step retrieve-and-explain pipeline over the Act."""

    id = "ndpa-workflow"
    input_schema = WorkflowInput
    output_schema = WorkflowOutput

    def __init__(self, tool: SearchSectionTool, agent, stream_to: Optional[TextIO] = None):
        self.search_step = SearchStep(tool)
        self.explain_step = ExplainStep(agent, stream_to=stream_to)

    def run(self, input_data: Optional[dict]) -> WorkflowRun:
        """
        Run both steps in order.

        Raises:
            WorkflowError: If input is missing/invalid or no agent is configured
        """
        run = WorkflowRun(workflow_id=self.id)
        try:
            section = self.search_step.execute(input_data)
            run.steps[self.search_step.id] = section.model_dump()

            output = self.explain_step.execute(section)
            run.steps[self.explain_step.id] = output.model_dump()
        except WorkflowError as e:
            run.status = "failed"
            logger.error(f"{self.id}: step {e.step_id} failed: {e}")
            raise

        run.result = output
        run.status = "success"
        return run


def run_workflow(tool: SearchSectionTool, agent, question: str) -> str:
    """Convenience wrapper: stream the explanation to stdout and return it."""
    workflow = NdpaWorkflow(tool, agent, stream_to=sys.stdout)
    return workflow.run({"question": question}).result.explanation
