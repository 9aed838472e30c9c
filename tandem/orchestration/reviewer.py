"""Reviewer: scores the collected evidence and picks the next action."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..llm.protocols import Message
from .formatting import format_review_context
from .models import AdditionalQuery, AgentStep, ReviewResult, SearchStrategy
from .parsing import clamp_score, coerce_next_action, parse_review_text, string_list
from .prompts import REVIEW_SYSTEM_PROMPT

if TYPE_CHECKING:
    from ..config.loader import ReviewerConfig
    from ..llm.protocols import LanguageModel

logger = logging.getLogger(__name__)

REVIEW_TOOL_NAME = "submit_review"

SUBMIT_REVIEW_TOOL = {
    "type": "function",
    "function": {
        "name": REVIEW_TOOL_NAME,
        "description": (
            "Submit your review of the collected information with confidence "
            "score and next action"
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "confidenceScore": {
                    "type": "integer",
                    "minimum": 0,
                    "maximum": 100,
                    "description": (
                        "Confidence score (0-100). 80+ = strong evidence, "
                        "50-79 = moderate, <50 = weak"
                    ),
                },
                "critique": {
                    "type": "string",
                    "description": "Detailed critique of the collected information",
                },
                "nextAction": {
                    "type": "string",
                    "enum": ["finalize", "refine_strategy", "continue_search"],
                    "description": (
                        "finalize = sufficient info, refine_strategy = add queries "
                        "to current, continue_search = new queries needed"
                    ),
                },
                "additionalQueries": {
                    "type": "array",
                    "description": (
                        "Additional queries if nextAction is refine_strategy "
                        "or continue_search"
                    ),
                    "items": {
                        "type": "object",
                        "properties": {
                            "query": {"type": "string", "description": "The search query"},
                            "reason": {"type": "string", "description": "Why this query is needed"},
                        },
                        "required": ["query", "reason"],
                    },
                },
                "evidenceQuality": {
                    "type": "string",
                    "description": "Assessment of evidence quality",
                },
                "assumptionsDetected": {
                    "type": "array",
                    "description": "List of assumptions identified in reasoning",
                    "items": {"type": "string"},
                },
                "informationGaps": {
                    "type": "array",
                    "description": "Remaining information gaps",
                    "items": {"type": "string"},
                },
            },
            "required": ["confidenceScore", "critique", "nextAction"],
        },
    },
}


def _decode_additional_queries(raw: Any) -> tuple[AdditionalQuery, ...]:
    queries = []
    for item in raw if isinstance(raw, list) else []:
        if isinstance(item, str):
            text, reason = item, ""
        elif isinstance(item, dict):
            text, reason = str(item.get("query") or ""), str(item.get("reason") or "")
        else:
            continue
        if text.strip():
            queries.append(AdditionalQuery(query=text.strip(), reason=reason.strip()))
    return tuple(queries)


def _critique_with_extras(args: dict[str, Any]) -> str:
    """Fold the optional assessment fields into the critique text."""
    parts = [str(args.get("critique") or "").strip()]

    quality = str(args.get("evidenceQuality") or "").strip()
    if quality:
        parts.append(f"Evidence Quality: {quality}")

    for title, key in (
        ("Assumptions Detected", "assumptionsDetected"),
        ("Remaining Information Gaps", "informationGaps"),
    ):
        items = string_list(args.get(key))
        if items:
            parts.append(f"{title}:\n" + "\n".join(f"- {i}" for i in items))

    return "\n\n".join(p for p in parts if p)


class Reviewer:
    """Critical review of the evidence gathered so far."""

    def __init__(self, llm: LanguageModel, config: ReviewerConfig | None = None):
        self.llm = llm

        if config is None:
            from ..config.loader import ReviewerConfig
            config = ReviewerConfig()

        self.temperature = config.temperature

    async def review(
        self,
        strategy: SearchStrategy,
        collected_info: str,
        plan_history: list[AgentStep],
    ) -> ReviewResult:
        """
        Score the collected information.

        Args:
            strategy: The active strategy
            collected_info: All evidence collected in the run so far
            plan_history: The Planner's step history

        Returns:
            ReviewResult with a score in 0..100

        Raises:
            Any error from the language model call
        """
        context = format_review_context(strategy, collected_info, plan_history)
        logger.info(f"Reviewing {len(collected_info)} chars of collected information")

        response = await self.llm.call(
            system_prompt=REVIEW_SYSTEM_PROMPT,
            messages=[Message.user(context)],
            tools=[SUBMIT_REVIEW_TOOL],
            tool_choice=REVIEW_TOOL_NAME,
            temperature=self.temperature,
        )

        call = response.find_tool_call(REVIEW_TOOL_NAME)
        if call is not None:
            args = call.arguments
            result = ReviewResult(
                confidence_score=clamp_score(args.get("confidenceScore")),
                critique=_critique_with_extras(args),
                next_action=coerce_next_action(args.get("nextAction")),
                additional_queries=_decode_additional_queries(args.get("additionalQueries")),
            )
        else:
            logger.warning("Reviewer returned no submit_review call, parsing text")
            result = parse_review_text(response.content or "")

        logger.info(
            f"Review: confidence={result.confidence_score}, "
            f"next_action={result.next_action.value}, "
            f"{len(result.additional_queries)} additional queries"
        )
        return result
