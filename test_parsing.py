"""
Free-text Decoder Tests

Tests for the fallback parsers used when a model answers in prose instead
of calling the structured planning/review tools.
"""

from tandem.orchestration.models import ConfidenceLevel, NextAction
from tandem.orchestration.parsing import (
    FALLBACK_PLAN_REASON,
    FALLBACK_QUERY_PURPOSE,
    clamp_score,
    coerce_next_action,
    extract_final_answer,
    parse_plan_text,
    parse_review_text,
)

PLAN_TEXT = """Objective: Find the latest stable Python release
Deliverable: Version number with release date
Needs Exec Agent: yes
Exec Decision Reason: Release data changes over time

Strategy:
Query 1: "latest Python release" - Purpose: find the version - Expected: version number
Query 2: "Python release schedule 2024" - Purpose: find dates - Expected: release dates

Information Gaps:
- Exact release date
- Whether a bugfix release is pending

Initial Confidence: medium
"""

REVIEW_TEXT = """Confidence Score: 62

Critique: Sources agree on the version but the date is unverified.

Next Action: refine_strategy

Query: "Python 3.13 release date" - Reason: confirm the date
Query: "python.org downloads" - Reason: official source
"""


def test_parse_full_plan():
    """All labelled sections are picked up."""
    result = parse_plan_text(PLAN_TEXT)
    spec, strategy = result.spec, result.strategy

    print(f"Objective: {spec.objective}")
    print(f"Queries: {[q.query for q in strategy.queries]}")

    assert spec.objective == "Find the latest stable Python release"
    assert spec.deliverable == "Version number with release date"
    assert spec.needs_execution is True
    assert spec.execution_reason == "Release data changes over time"

    assert [q.query for q in strategy.queries] == [
        "latest Python release",
        "Python release schedule 2024",
    ]
    assert strategy.queries[0].purpose == "find the version"
    assert strategy.queries[0].expected_info == "version number"
    assert strategy.queries[1].expected_info == "release dates"

    assert strategy.information_gaps == ["Exact release date", "Whether a bugfix release is pending"]
    assert spec.information_gaps == strategy.information_gaps
    assert strategy.confidence_level == ConfidenceLevel.MEDIUM
    assert result.reasoning == PLAN_TEXT


def test_parse_plan_defaults():
    """Unlabelled prose yields a plan-only result with default fields."""
    result = parse_plan_text("I think this is easy to answer directly.")

    assert result.spec.objective == "Clarify user objective"
    assert result.spec.deliverable == "Direct answer"
    assert result.spec.execution_reason == FALLBACK_PLAN_REASON
    assert result.spec.needs_execution is False
    assert result.strategy.queries == []
    assert result.strategy.confidence_level == ConfidenceLevel.LOW


def test_parse_plan_infers_execution_from_queries():
    """Without an explicit decision, finding queries means execution is needed."""
    text = 'Queries:\nQuery 1: "tavily api pricing" - Purpose: cost - Expected: price table\n'
    result = parse_plan_text(text)

    assert result.spec.needs_execution is True
    assert len(result.strategy.queries) == 1


def test_parse_plan_fallback_query_from_objective():
    """Declared execution with no parsable queries gets exactly one query."""
    text = "Objective: Compare uvicorn worker models\nNeeds Exec Agent: true\n"
    result = parse_plan_text(text)

    assert len(result.strategy.queries) == 1
    query = result.strategy.queries[0]
    assert query.query == "Compare uvicorn worker models"
    assert query.purpose == FALLBACK_QUERY_PURPOSE


def test_parse_plan_no_execution_drops_queries():
    """A plan-only decision empties the query list even if queries were written."""
    text = (
        "Needs Exec Agent: no\n"
        'Strategy:\nQuery 1: "capital of France" - Purpose: check - Expected: city name\n'
    )
    result = parse_plan_text(text)

    assert result.spec.needs_execution is False
    assert result.strategy.queries == []


def test_parse_review():
    """Score, critique, action and queries are all decoded."""
    review = parse_review_text(REVIEW_TEXT)

    assert review.confidence_score == 62
    assert review.critique == "Sources agree on the version but the date is unverified."
    assert review.next_action == NextAction.REFINE_STRATEGY
    assert [q.query for q in review.additional_queries] == [
        "Python 3.13 release date",
        "python.org downloads",
    ]
    assert review.additional_queries[1].reason == "official source"
    assert review.is_sufficient is False


def test_parse_review_defaults():
    """Nothing recognizable means score 0, empty critique, continue_search."""
    review = parse_review_text("The evidence looks fine to me.")

    assert review.confidence_score == 0
    assert review.critique == ""
    assert review.next_action == NextAction.CONTINUE_SEARCH
    assert review.additional_queries == ()


def test_parse_review_clamps_score():
    review = parse_review_text("Confidence Score: 250\nNext Action: finalize")

    assert review.confidence_score == 100
    assert review.next_action == NextAction.FINALIZE
    assert review.is_sufficient is True


def test_score_and_action_coercion():
    assert clamp_score(-5) == 0
    assert clamp_score("87") == 87
    assert clamp_score(None) == 0
    assert clamp_score(99.6) == 99
    assert coerce_next_action("FINALIZE") == NextAction.FINALIZE
    assert coerce_next_action("give_up") == NextAction.CONTINUE_SEARCH
    assert coerce_next_action(None) == NextAction.CONTINUE_SEARCH


def test_extract_final_answer():
    text = "Some reasoning first.\n\nFinal Answer: Paris is the capital of France [1]."
    assert extract_final_answer(text) == "Paris is the capital of France [1]."
    assert extract_final_answer("No marker here.") == "No marker here."
    assert extract_final_answer("final answer:\n  multi\nline") == "multi\nline"


def test_clamp_score_non_finite_and_huge_values():
    """Out-of-range numbers clamp to a bound instead of raising."""
    assert clamp_score(float("inf")) == 100
    assert clamp_score(float("-inf")) == 0
    assert clamp_score(float("nan")) == 0
    assert clamp_score(10 ** 400) == 100
    assert clamp_score(-(10 ** 400)) == 0
    assert clamp_score("1e999") == 100
    assert clamp_score("9" * 400) == 100


def test_parse_review_with_enormous_score():
    review = parse_review_text("Confidence Score: " + "9" * 400 + "\nNext Action: continue_search")

    assert review.confidence_score == 100
    assert review.next_action == NextAction.CONTINUE_SEARCH
