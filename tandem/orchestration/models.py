"""Data models for the planner/executor coordination loop."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from ..tools.web_search import SearchHistory


class AgentType(str, Enum):
    """Agent a step originates from."""

    PLAN = "plan"
    EXEC = "exec"


class StepType(str, Enum):
    """Kind of an observable reasoning step."""

    THOUGHT = "thought"
    ACTION = "action"
    OBSERVATION = "observation"
    REVIEW = "review"


class ConfidenceLevel(str, Enum):
    """Planner's coarse self-rated confidence."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class NextAction(str, Enum):
    """Reviewer's decision for the next round."""

    FINALIZE = "finalize"
    REFINE_STRATEGY = "refine_strategy"
    CONTINUE_SEARCH = "continue_search"


@dataclass(frozen=True)
class SearchQuery:
    """One planned unit of search work."""

    query: str
    purpose: str
    expected_info: str


@dataclass
class SearchStrategy:
    """The current ordered plan of search queries."""

    queries: list[SearchQuery] = field(default_factory=list)
    information_gaps: list[str] = field(default_factory=list)
    confidence_level: ConfidenceLevel = ConfidenceLevel.LOW
    reasoning: str = ""

    def with_appended(self, queries: list[SearchQuery]) -> SearchStrategy:
        """New strategy with ``queries`` added after the existing ones."""
        return replace(self, queries=[*self.queries, *queries])

    def with_replaced(self, queries: list[SearchQuery]) -> SearchStrategy:
        """New strategy whose query list is exactly ``queries``."""
        return replace(self, queries=list(queries))


@dataclass
class RequirementSpec:
    """Structured interpretation of the user's request."""

    objective: str = "Clarify user objective"
    deliverable: str = "Direct answer"
    constraints: list[str] = field(default_factory=list)
    assumptions: list[str] = field(default_factory=list)
    acceptance_criteria: list[str] = field(default_factory=list)
    information_gaps: list[str] = field(default_factory=list)
    needs_execution: bool = False
    execution_reason: str = "No routing reason provided"


@dataclass
class PlanResult:
    """Everything one planning pass produces."""

    spec: RequirementSpec
    strategy: SearchStrategy
    reasoning: str


@dataclass
class AgentStep:
    """One observable unit of reasoning or action."""

    agent: AgentType
    step_type: StepType
    content: str
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class AdditionalQuery:
    """A follow-up query requested by the Reviewer."""

    query: str
    reason: str = ""


@dataclass(frozen=True)
class ReviewResult:
    """One Reviewer verdict."""

    confidence_score: int
    critique: str
    next_action: NextAction
    additional_queries: tuple[AdditionalQuery, ...] = ()

    @property
    def is_sufficient(self) -> bool:
        """Whether the evidence clears the finalize threshold (75)."""
        return self.confidence_score >= 75


@dataclass
class ExecAgentResult:
    """Outcome of one Executor invocation."""

    collected_info: str = ""
    queries_executed: list[str] = field(default_factory=list)
    successful_searches: int = 0


@dataclass
class CoordinationState:
    """State of one whole run. Mutated only by the Coordinator."""

    user_message: str
    plan_steps: list[AgentStep] = field(default_factory=list)
    exec_steps: list[AgentStep] = field(default_factory=list)
    current_spec: RequirementSpec | None = None
    current_strategy: SearchStrategy | None = None
    is_complete: bool = False
    final_answer: str | None = None
    iteration_count: int = 0


@dataclass
class RunContext:
    """
    Deduplication state of one run.

    Created by the Coordinator at run start and passed by reference into
    every Executor invocation; the Executor adds to ``executed_queries``
    directly, so there is exactly one record of what has been run.
    """

    executed_queries: set[str] = field(default_factory=set)
    search_history: SearchHistory = field(default_factory=SearchHistory)

    @staticmethod
    def key(query: str) -> str:
        return query.strip()

    def is_executed(self, query: str) -> bool:
        return self.key(query) in self.executed_queries

    def mark_executed(self, query: str) -> None:
        self.executed_queries.add(self.key(query))
