"""
Tests for execution/ndpa_rag/scorers.py

Covers: sampling, tool-call accuracy (strict and non-strict), completeness
        term coverage, and the LLM relevance judge with a mocked client.
"""

import json
from unittest.mock import MagicMock

import pytest

from execution.ndpa_rag.scorers import (
    CompletenessScorer,
    RelevanceAnalysis,
    RelevanceScorer,
    ScorerRun,
    ScorerSampling,
    ToolCallAccuracyScorer,
    build_default_scorers,
    extract_terms,
)

from tests.conftest import make_completion


def _run(question="What does the NDPA say about consent?", output="", tools=None):
    return ScorerRun(
        input_messages=[{"role": "user", "content": question}],
        output_text=output,
        tool_calls=tools or [],
    )


class TestScorerSampling:

    def test_full_rate_always_samples(self):
        assert ScorerSampling(1.0).should_sample(rng=lambda: 0.99)

    def test_zero_rate_never_samples(self):
        assert not ScorerSampling(0.0).should_sample(rng=lambda: 0.0)

    def test_partial_rate_uses_rng(self):
        sampling = ScorerSampling(0.3)
        assert sampling.should_sample(rng=lambda: 0.1)
        assert not sampling.should_sample(rng=lambda: 0.5)


class TestScorerRun:

    def test_user_text_is_first_message(self):
        run = ScorerRun(
            input_messages=[{"role": "user", "content": "first"}, {"role": "user", "content": "second"}],
            output_text="",
        )
        assert run.user_text == "first"

    def test_user_text_empty_without_messages(self):
        assert ScorerRun(input_messages=[], output_text="x").user_text == ""


class TestToolCallAccuracyScorer:

    def test_expected_tool_called(self):
        result = ToolCallAccuracyScorer().run(_run(tools=["search-ndpa"]))
        assert result.score == 1.0
        assert result.reason == "Expected tool 'search-ndpa' was called."

    def test_no_tools_called(self):
        result = ToolCallAccuracyScorer().run(_run())
        assert result.score == 0.0
        assert "No tools were called" in result.reason

    def test_other_tool_called(self):
        result = ToolCallAccuracyScorer().run(_run(tools=["web-search"]))
        assert result.score == 0.0
        assert "was not called" in result.reason

    def test_non_strict_allows_extra_calls(self):
        scorer = ToolCallAccuracyScorer(strict_mode=False)
        assert scorer.run(_run(tools=["web-search", "search-ndpa"])).score == 1.0

    def test_strict_requires_single_call(self):
        scorer = ToolCallAccuracyScorer(strict_mode=True)
        result = scorer.run(_run(tools=["search-ndpa", "search-ndpa"]))
        assert result.score == 0.0
        assert result.reason.startswith("Expected only 'search-ndpa'")

    def test_strict_single_call_passes(self):
        scorer = ToolCallAccuracyScorer(strict_mode=True)
        assert scorer.run(_run(tools=["search-ndpa"])).score == 1.0


class TestCompletenessScorer:

    def test_extract_terms_drops_stopwords(self):
        assert extract_terms("What does the NDPA say about consent?") == {"ndpa", "about", "consent"}

    def test_full_coverage(self):
        result = CompletenessScorer().run(_run(
            question="consent withdrawal",
            output="Under the NDPA, consent withdrawal must be as easy as giving consent.",
        ))
        assert result.score == 1.0
        assert result.analysis["missing"] == []

    def test_partial_coverage(self):
        result = CompletenessScorer().run(_run(
            question="breach notification deadline",
            output="A breach must be reported.",
        ))
        assert result.score == round(1 / 3, 4)
        assert result.analysis["covered"] == ["breach"]
        assert result.analysis["missing"] == ["deadline", "notification"]
        assert result.reason.startswith("Covered 1/3 input terms.")

    def test_no_content_terms_scores_full(self):
        result = CompletenessScorer().run(_run(question="what is it?", output=""))
        assert result.score == 1.0


class TestRelevanceScorer:

    def _scorer(self, judge_output):
        client = MagicMock()
        client.chat.completions.create.return_value = make_completion(content=judge_output)
        return RelevanceScorer(client, "judge-model"), client

    def test_relevant_scores_confidence(self):
        scorer, _ = self._scorer(json.dumps({
            "relevant": True, "confidence": 0.9, "explanation": "Section 26 covers consent.",
        }))
        result = scorer.run(_run(output="Part V Section 26 covers consent."))
        assert result.score == 0.9
        assert result.reason == (
            "Relevance scoring: relevant=True, confidence=0.9. "
            "Section 26 covers consent. Score=0.9."
        )
        assert result.analysis["relevant"] is True

    def test_not_relevant_scores_zero(self):
        scorer, _ = self._scorer(json.dumps({"relevant": False, "confidence": 0.8}))
        result = scorer.run(_run(output="Section 4 establishes the Commission."))
        assert result.score == 0.0

    def test_missing_confidence_defaults(self):
        scorer, _ = self._scorer(json.dumps({"relevant": True}))
        assert scorer.run(_run()).score == 0.5

    @pytest.mark.parametrize("judge_output", [
        "not json at all",
        json.dumps({"confidence": 0.9}),
        json.dumps({"relevant": True, "confidence": 1.5}),
    ])
    def test_malformed_judge_output_scores_zero(self, judge_output):
        scorer, _ = self._scorer(judge_output)
        result = scorer.run(_run())
        assert result.score == 0.0
        assert "could not be parsed" in result.reason

    def test_judge_prompt_contains_question_and_answer(self):
        scorer, client = self._scorer(json.dumps({"relevant": True, "confidence": 1}))
        scorer.run(_run(question="Is consent required?", output="Yes, see Section 26."))

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "judge-model"
        assert kwargs["response_format"] == {"type": "json_object"}
        prompt = kwargs["messages"][1]["content"]
        assert "Is consent required?" in prompt
        assert "Yes, see Section 26." in prompt

    def test_analysis_model_bounds(self):
        assert RelevanceAnalysis(relevant=True, confidence=1).confidence == 1


class TestBuildDefaultScorers:

    def test_scorer_keys_and_sampling(self):
        scorers = build_default_scorers(MagicMock(), "m", rate=0.5)
        assert set(scorers) == {"toolCallAppropriateness", "completeness", "relevance"}
        for scorer, sampling in scorers.values():
            assert sampling.rate == 0.5

    def test_tool_accuracy_is_non_strict(self):
        scorer, _ = build_default_scorers(MagicMock(), "m")["toolCallAppropriateness"]
        assert scorer.expected_tool == "search-ndpa"
        assert scorer.strict_mode is False
