"""
Planner: turns the user's request into a requirement spec and search strategy.

Never calls tools and never judges whether evidence is sufficient.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..llm.protocols import Message
from .models import ConfidenceLevel, PlanResult, RequirementSpec, SearchQuery, SearchStrategy
from .parsing import coerce_confidence_level, ensure_executable, parse_plan_text, string_list
from .prompts import PLAN_SYSTEM_PROMPT, PLAN_USER_PROMPT

if TYPE_CHECKING:
    from ..config.loader import PlannerConfig
    from ..llm.protocols import LanguageModel

logger = logging.getLogger(__name__)

PLAN_TOOL_NAME = "spec_user_requirement"

_SKIPPED_DIRS = {"node_modules", "__pycache__", "venv", "build", "dist"}

SPEC_USER_REQUIREMENT_TOOL = {
    "type": "function",
    "function": {
        "name": PLAN_TOOL_NAME,
        "description": (
            "Create a structured requirement spec and decide whether Exec Agent "
            "execution is needed"
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "objective": {
                    "type": "string",
                    "description": "Core user objective in one clear sentence",
                },
                "deliverable": {
                    "type": "string",
                    "description": "Expected output format or deliverable for the user",
                },
                "constraints": {
                    "type": "array",
                    "description": "Explicit constraints from user or context",
                    "items": {"type": "string"},
                },
                "assumptions": {
                    "type": "array",
                    "description": "Assumptions made while interpreting the request",
                    "items": {"type": "string"},
                },
                "acceptanceCriteria": {
                    "type": "array",
                    "description": "Criteria that define a successful response",
                    "items": {"type": "string"},
                },
                "informationGaps": {
                    "type": "array",
                    "description": "Key information gaps that need to be addressed",
                    "items": {"type": "string"},
                },
                "needsExecAgent": {
                    "type": "boolean",
                    "description": "Whether Exec Agent must be invoked",
                },
                "execDecisionReason": {
                    "type": "string",
                    "description": "Reason for invoking or skipping Exec Agent",
                },
                "queries": {
                    "type": "array",
                    "description": "Execution queries for Exec Agent when needsExecAgent=true",
                    "items": {
                        "type": "object",
                        "properties": {
                            "query": {
                                "type": "string",
                                "description": "Concise search query (no filler words)",
                            },
                            "purpose": {
                                "type": "string",
                                "description": "Why this search is needed",
                            },
                            "expectedInfo": {
                                "type": "string",
                                "description": "What specific facts/data you expect to find",
                            },
                        },
                        "required": ["query", "purpose", "expectedInfo"],
                    },
                },
                "confidenceLevel": {
                    "type": "string",
                    "enum": ["high", "medium", "low"],
                    "description": "Confidence level of requirement specification completeness",
                },
                "reasoning": {
                    "type": "string",
                    "description": "Brief explanation of the specification and routing decision",
                },
            },
            "required": ["objective", "deliverable", "needsExecAgent", "execDecisionReason"],
        },
    },
}


def project_file_tree(root: Path, max_entries: int = 200) -> str:
    """List the files under ``root`` as a bullet tree, skipping hidden and build dirs."""
    entries: list[str] = []

    def walk(directory: Path, prefix: str) -> None:
        try:
            children = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError:
            return
        for child in children:
            if len(entries) >= max_entries:
                return
            if child.name.startswith(".") and child.name != ".env.example":
                continue
            if child.name in _SKIPPED_DIRS:
                continue
            relative = f"{prefix}{child.name}"
            entries.append(relative)
            if child.is_dir():
                walk(child, f"{relative}/")

    walk(Path(root), "")
    return "\n".join(f"- {entry}" for entry in entries)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes")
    return bool(value)


def _decode_queries(raw: Any) -> list[SearchQuery]:
    queries = []
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict):
            continue
        text = str(item.get("query") or "").strip()
        if not text:
            continue
        queries.append(
            SearchQuery(
                query=text,
                purpose=str(item.get("purpose") or "").strip(),
                expected_info=str(item.get("expectedInfo") or "").strip(),
            )
        )
    return queries


def limit_queries(queries: list[SearchQuery], max_queries: int) -> list[SearchQuery]:
    """Drop queries whose text repeats an earlier one, then cap the list."""
    seen: set[str] = set()
    distinct = []
    for q in queries:
        key = q.query.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        distinct.append(q)
    return distinct[:max_queries]


class Planner:
    """
    Requirement specification and search strategy generation.

    Prefers a forced ``spec_user_requirement`` tool call; falls back to
    parsing labelled free text when the model answers in prose.
    """

    def __init__(
        self,
        llm: LanguageModel,
        config: PlannerConfig | None = None,
        workspace_root: Path | None = None,
    ):
        """
        Initialize the Planner.

        Args:
            llm: Language model used for planning
            config: Planner configuration
            workspace_root: Directory whose file tree is shown to the model
        """
        self.llm = llm

        if config is None:
            from ..config.loader import PlannerConfig
            config = PlannerConfig()

        self.max_queries = config.max_queries
        self.temperature = config.temperature
        self.workspace_root = workspace_root

    def _system_prompt(self) -> str:
        if self.workspace_root is None:
            file_tree = "(not available)"
        else:
            file_tree = project_file_tree(self.workspace_root) or "(empty)"
        return PLAN_SYSTEM_PROMPT.format(file_tree=file_tree)

    async def plan(self, user_message: str, context: str | None = None) -> PlanResult:
        """
        Produce a requirement spec and strategy for a user message.

        Args:
            user_message: The raw user request
            context: Optional prior context prepended to the request

        Returns:
            PlanResult whose strategy has 1 to ``max_queries`` distinct
            queries when execution is needed, and none otherwise

        Raises:
            Any error from the language model call
        """
        prompt = PLAN_USER_PROMPT.format(message=user_message)
        if context:
            prompt = f"Context: {context}\n\n{prompt}"

        logger.info(f"Planning request ({len(user_message)} chars)")
        response = await self.llm.call(
            system_prompt=self._system_prompt(),
            messages=[Message.user(prompt)],
            tools=[SPEC_USER_REQUIREMENT_TOOL],
            tool_choice=PLAN_TOOL_NAME,
            temperature=self.temperature,
        )

        call = response.find_tool_call(PLAN_TOOL_NAME)
        if call is not None:
            result = self._from_arguments(call.arguments, response.content)
        else:
            logger.warning("Planner returned no spec_user_requirement call, parsing text")
            result = parse_plan_text(response.content or "")

        queries = limit_queries(result.strategy.queries, self.max_queries)
        result.strategy = ensure_executable(result.spec, result.strategy.with_replaced(queries))

        logger.info(
            f"Plan: needs_execution={result.spec.needs_execution}, "
            f"{len(result.strategy.queries)} queries, "
            f"confidence={result.strategy.confidence_level.value}"
        )
        return result

    def _from_arguments(self, args: dict[str, Any], content: str | None) -> PlanResult:
        spec = RequirementSpec(
            objective=str(args.get("objective") or "").strip() or "Clarify user objective",
            deliverable=str(args.get("deliverable") or "").strip() or "Direct answer",
            constraints=string_list(args.get("constraints")),
            assumptions=string_list(args.get("assumptions")),
            acceptance_criteria=string_list(args.get("acceptanceCriteria")),
            information_gaps=string_list(args.get("informationGaps")),
            needs_execution=_as_bool(args.get("needsExecAgent")),
            execution_reason=(
                str(args.get("execDecisionReason") or "").strip()
                or "No routing reason provided"
            ),
        )

        level = args.get("confidenceLevel")
        strategy = SearchStrategy(
            queries=_decode_queries(args.get("queries")),
            information_gaps=list(spec.information_gaps),
            confidence_level=coerce_confidence_level(level) if level else ConfidenceLevel.LOW,
            reasoning=str(args.get("reasoning") or "") or content or "",
        )
        return PlanResult(spec=spec, strategy=strategy, reasoning=strategy.reasoning)
