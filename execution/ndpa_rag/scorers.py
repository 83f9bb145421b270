"""
Evaluation Scorers for the NDPA Agent

Scorers observe a finished agent run (input messages, final text, tools
called) and produce a 0-1 score with a reason:

- ToolCallAccuracyScorer: did the agent call search-ndpa?
- CompletenessScorer: how many of the question's terms does the answer cover?
- RelevanceScorer: an LLM judge decides if the cited section answers the question

Each scorer is attached to the agent with a sampling ratio.
"""

import random
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from pydantic import BaseModel, Field, ValidationError

from .language_patterns import (
    STOPWORDS,
    TERM_REGEX,
    RELEVANCE_JUDGE_INSTRUCTIONS,
    RELEVANCE_JUDGE_PROMPT,
)

logger = logging.getLogger(__name__)


@dataclass
class ScorerRun:
    """What a scorer sees of one agent run."""
    input_messages: list[dict]
    output_text: str
    tool_calls: list[str] = field(default_factory=list)

    @property
    def user_text(self) -> str:
        if not self.input_messages:
            return ""
        content = self.input_messages[0].get("content", "")
        return content if isinstance(content, str) else ""


@dataclass
class ScoreResult:
    """A scorer's verdict."""
    scorer: str
    score: float
    reason: str
    analysis: Optional[dict] = None

    def to_dict(self) -> dict:
        return {
            "scorer": self.scorer,
            "score": self.score,
            "reason": self.reason,
            "analysis": self.analysis,
        }


@dataclass
class ScorerSampling:
    """Ratio sampling: run a scorer on roughly `rate` of agent runs."""
    rate: float = 1.0

    def should_sample(self, rng: Callable[[], float] = random.random) -> bool:
        if self.rate >= 1:
            return True
        if self.rate <= 0:
            return False
        return rng() < self.rate


class ToolCallAccuracyScorer:
    """
    Checks that the expected tool was called.

    Non-strict mode passes if the expected tool is among the calls; strict
    mode requires it to be the only tool called.
    """

    name = "Tool Call Accuracy"

    def __init__(self, expected_tool: str = "search-ndpa", strict_mode: bool = False):
        self.expected_tool = expected_tool
        self.strict_mode = strict_mode

    def run(self, run: ScorerRun) -> ScoreResult:
        called = run.tool_calls
        if self.strict_mode:
            passed = len(called) == 1 and called[0] == self.expected_tool
        else:
            passed = self.expected_tool in called

        if not called:
            reason = f"No tools were called; expected '{self.expected_tool}'."
        elif passed:
            reason = f"Expected tool '{self.expected_tool}' was called."
        elif self.strict_mode:
            reason = f"Expected only '{self.expected_tool}' to be called, got {called}."
        else:
            reason = f"Expected tool '{self.expected_tool}' was not called, got {called}."

        return ScoreResult(scorer=self.name, score=1.0 if passed else 0.0, reason=reason)


def extract_terms(text: str) -> set[str]:
    """Lowercased content words of a text, stopwords and single letters removed."""
    return {
        t for t in TERM_REGEX.findall(text.lower())
        if len(t) > 1 and t not in STOPWORDS
    }


class CompletenessScorer:
    """Share of the question's content terms that reappear in the answer."""

    name = "Completeness"

    def run(self, run: ScorerRun) -> ScoreResult:
        input_terms = extract_terms(run.user_text)
        if not input_terms:
            return ScoreResult(
                scorer=self.name, score=1.0,
                reason="Input has no content terms to cover.",
            )

        output_terms = extract_terms(run.output_text)
        covered = input_terms & output_terms
        missing = sorted(input_terms - output_terms)
        score = len(covered) / len(input_terms)

        return ScoreResult(
            scorer=self.name,
            score=round(score, 4),
            reason=f"Covered {len(covered)}/{len(input_terms)} input terms. Missing: {missing}",
            analysis={"covered": sorted(covered), "missing": missing},
        )


class RelevanceAnalysis(BaseModel):
    """JSON the relevance judge must return."""
    relevant: bool
    confidence: float = Field(default=0.5, ge=0, le=1)
    explanation: str = ""


class RelevanceScorer:
    """
    LLM-judged relevance of the cited section to the user's question.

    Pipeline: preprocess (user/assistant text) -> analyze (judge call,
    JSON validated with RelevanceAnalysis) -> score -> reason.
    """

    name = "NDPA Relevance"
    description = (
        "Evaluates whether the NDPA agent retrieved the most relevant "
        "section(s) to the user's query."
    )

    def __init__(self, client, model: str):
        self._client = client
        self._model = model

    def preprocess(self, run: ScorerRun) -> dict:
        return {"user_text": run.user_text, "assistant_text": run.output_text or ""}

    def analyze(self, preprocessed: dict) -> RelevanceAnalysis:
        """Ask the judge model; raises ValidationError on malformed JSON."""
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": RELEVANCE_JUDGE_INSTRUCTIONS},
                {"role": "user", "content": RELEVANCE_JUDGE_PROMPT.format(**preprocessed)},
            ],
            response_format={"type": "json_object"},
            temperature=0,
        )
        content = response.choices[0].message.content or ""
        return RelevanceAnalysis.model_validate_json(content)

    @staticmethod
    def generate_score(analysis: RelevanceAnalysis) -> float:
        return analysis.confidence if analysis.relevant else 0.0

    @staticmethod
    def generate_reason(analysis: RelevanceAnalysis, score: float) -> str:
        return (
            f"Relevance scoring: relevant={analysis.relevant}, "
            f"confidence={analysis.confidence}. {analysis.explanation} Score={score}."
        )

    def run(self, run: ScorerRun) -> ScoreResult:
        preprocessed = self.preprocess(run)
        try:
            analysis = self.analyze(preprocessed)
        except ValidationError as e:
            logger.warning(f"Relevance judge returned malformed output: {e}")
            return ScoreResult(
                scorer=self.name, score=0.0,
                reason=f"Relevance scoring: judge output could not be parsed ({e.error_count()} errors). Score=0.0.",
            )

        score = self.generate_score(analysis)
        return ScoreResult(
            scorer=self.name,
            score=score,
            reason=self.generate_reason(analysis, score),
            analysis=analysis.model_dump(),
        )


def build_default_scorers(client, model: str, rate: float = 1.0) -> dict:
    """The agent's scorer set, keyed the way results are reported."""
    sampling = ScorerSampling(rate=rate)
    return {
        "toolCallAppropriateness": (ToolCallAccuracyScorer("search-ndpa", strict_mode=False), sampling),
        "completeness": (CompletenessScorer(), sampling),
        "relevance": (RelevanceScorer(client, model), sampling),
    }
