"""
Best-effort decoders for free-text model output.

Used only when a model ignores the forced tool call and answers in prose.
Every function here is total: unparseable input produces safe defaults,
never an exception.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any

from .models import (
    AdditionalQuery,
    ConfidenceLevel,
    NextAction,
    PlanResult,
    RequirementSpec,
    ReviewResult,
    SearchQuery,
    SearchStrategy,
)

logger = logging.getLogger(__name__)

FALLBACK_QUERY_PURPOSE = "Fallback execution query from parsed objective"
FALLBACK_QUERY_EXPECTED = "Information needed to fulfill the objective"
FALLBACK_PLAN_REASON = "Fallback parser: no structured tool call returned"

_OBJECTIVE = re.compile(r"Objective:\s*([^\n]+)", re.IGNORECASE)
_DELIVERABLE = re.compile(r"Deliverable:\s*([^\n]+)", re.IGNORECASE)
_NEEDS_EXEC = re.compile(r"Needs Exec Agent:\s*(true|false|yes|no)", re.IGNORECASE)
_EXEC_REASON = re.compile(r"Exec Decision Reason:\s*([^\n]+)", re.IGNORECASE)
_STRATEGY_SECTION = re.compile(
    r"(?:Strategy|Queries):([\s\S]*?)(?=Information Gaps:|\Z)", re.IGNORECASE
)
_PLANNED_QUERY = re.compile(
    r'Query\s+(\d+):\s*"([^"]+)"\s*-\s*Purpose:\s*([^\n]+)\s*-\s*Expected:\s*([^\n]+)',
    re.IGNORECASE,
)
_GAPS_SECTION = re.compile(
    r"Information Gaps:([\s\S]*?)(?=Initial Confidence:|\Z)", re.IGNORECASE
)
_BULLET = re.compile(r"^\s*-\s*(.+)", re.MULTILINE)
_INITIAL_CONFIDENCE = re.compile(r"Initial Confidence:\s*(high|medium|low)", re.IGNORECASE)

_CONFIDENCE_SCORE = re.compile(r"Confidence Score:\s*(\d+)", re.IGNORECASE)
_CRITIQUE = re.compile(r"Critique:([\s\S]*?)(?=Next Action:|\Z)", re.IGNORECASE)
_NEXT_ACTION = re.compile(
    r"Next Action:\s*(finalize|refine_strategy|continue_search)", re.IGNORECASE
)
_REVIEW_QUERY = re.compile(r'Query:\s*"([^"]+)"\s*-\s*Reason:\s*([^\n]+)', re.IGNORECASE)

_FINAL_ANSWER = re.compile(r"Final Answer:\s*([\s\S]+)", re.IGNORECASE)


def clamp_score(value: Any) -> int:
    """Coerce a confidence score to an integer in 0..100 (0 when unusable).

    Infinite and out-of-range values clamp to the nearest bound; NaN is unusable.
    """
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0
    except OverflowError:
        # Integers too large for a float
        return 100 if value > 0 else 0
    if math.isnan(score):
        return 0
    if not math.isfinite(score):
        return 100 if score > 0 else 0
    return int(max(0.0, min(100.0, score)))


def string_list(value: Any) -> list[str]:
    """Non-empty stripped strings of a list value; anything but a list gives []."""
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def coerce_next_action(value: Any) -> NextAction:
    """Map a declared action onto NextAction; unknown values mean continue_search."""
    try:
        return NextAction(str(value).strip().lower())
    except ValueError:
        logger.warning(f"Unknown next action {value!r}, using continue_search")
        return NextAction.CONTINUE_SEARCH


def coerce_confidence_level(value: Any) -> ConfidenceLevel:
    try:
        return ConfidenceLevel(str(value).strip().lower())
    except ValueError:
        return ConfidenceLevel.LOW


def ensure_executable(spec: RequirementSpec, strategy: SearchStrategy) -> SearchStrategy:
    """
    Reconcile the execution decision with the query list.

    A plan that needs execution always carries at least one query (one is
    built from the objective if necessary); a plan that does not need
    execution carries none.
    """
    if not spec.needs_execution:
        return strategy.with_replaced([])

    if not strategy.queries:
        logger.warning("Plan requires execution but has no queries, adding one from the objective")
        return strategy.with_replaced([
            SearchQuery(
                query=spec.objective,
                purpose=FALLBACK_QUERY_PURPOSE,
                expected_info=FALLBACK_QUERY_EXPECTED,
            )
        ])

    return strategy


def parse_plan_text(text: str) -> PlanResult:
    """
    Decode a plan from labelled free text.

    Recognizes "Objective:", "Deliverable:", "Needs Exec Agent:",
    "Exec Decision Reason:", a "Strategy"/"Queries" section of
    ``Query N: "..." - Purpose: ... - Expected: ...`` lines, an
    "Information Gaps:" bullet list and "Initial Confidence:".

    When no execution decision is stated, execution is needed exactly when
    queries were found.
    """
    spec = RequirementSpec(execution_reason=FALLBACK_PLAN_REASON)
    queries: list[SearchQuery] = []
    gaps: list[str] = []
    confidence = ConfidenceLevel.LOW

    match = _OBJECTIVE.search(text)
    if match:
        spec.objective = match.group(1).strip()
    match = _DELIVERABLE.search(text)
    if match:
        spec.deliverable = match.group(1).strip()

    needs_exec = _NEEDS_EXEC.search(text)
    if needs_exec:
        spec.needs_execution = needs_exec.group(1).lower() in ("true", "yes")

    match = _EXEC_REASON.search(text)
    if match:
        spec.execution_reason = match.group(1).strip()

    section = _STRATEGY_SECTION.search(text)
    if section:
        for m in _PLANNED_QUERY.finditer(section.group(1)):
            queries.append(
                SearchQuery(
                    query=m.group(2).strip(),
                    purpose=m.group(3).strip(),
                    expected_info=m.group(4).strip(),
                )
            )

    section = _GAPS_SECTION.search(text)
    if section:
        gaps = [m.group(1).strip() for m in _BULLET.finditer(section.group(1))]
        spec.information_gaps = list(gaps)

    match = _INITIAL_CONFIDENCE.search(text)
    if match:
        confidence = ConfidenceLevel(match.group(1).lower())

    if not needs_exec:
        spec.needs_execution = bool(queries)

    strategy = SearchStrategy(
        queries=queries,
        information_gaps=gaps,
        confidence_level=confidence,
        reasoning=text,
    )
    logger.debug(f"Parsed plan text: {len(queries)} queries, needs_execution={spec.needs_execution}")
    return PlanResult(spec=spec, strategy=ensure_executable(spec, strategy), reasoning=text)


def parse_review_text(text: str) -> ReviewResult:
    """
    Decode a review from labelled free text.

    Defaults when nothing matches: score 0, empty critique,
    continue_search, no additional queries.
    """
    score = 0
    critique = ""
    action = NextAction.CONTINUE_SEARCH

    match = _CONFIDENCE_SCORE.search(text)
    if match:
        score = clamp_score(match.group(1))
    match = _CRITIQUE.search(text)
    if match:
        critique = match.group(1).strip()
    match = _NEXT_ACTION.search(text)
    if match:
        action = NextAction(match.group(1).lower())

    queries = tuple(
        AdditionalQuery(query=m.group(1).strip(), reason=m.group(2).strip())
        for m in _REVIEW_QUERY.finditer(text)
    )

    logger.debug(f"Parsed review text: score={score}, action={action.value}, queries={len(queries)}")
    return ReviewResult(
        confidence_score=score,
        critique=critique,
        next_action=action,
        additional_queries=queries,
    )


def extract_final_answer(text: str) -> str:
    """Return the text after a "Final Answer:" marker, or the whole text."""
    match = _FINAL_ANSWER.search(text)
    if match:
        return match.group(1).strip()
    return text
