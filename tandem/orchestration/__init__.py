"""
Planner/Executor coordination loop.

Architecture:
- Planner: requirement spec, execution decision and search strategy
- Executor: bounded tool-calling loop over the planned queries
- Reviewer: confidence score and next action
- Coordinator: state machine sequencing the three and streaming events
"""

from .models import (
    AgentType,
    StepType,
    ConfidenceLevel,
    NextAction,
    SearchQuery,
    SearchStrategy,
    RequirementSpec,
    PlanResult,
    AgentStep,
    AdditionalQuery,
    ReviewResult,
    ExecAgentResult,
    CoordinationState,
    RunContext,
)
from .events import EventType, StreamEvent, END_OF_STREAM, step_to_event, encode_sse, iter_sse
from .parsing import parse_plan_text, parse_review_text, extract_final_answer
from .planner import Planner
from .executor import Executor
from .reviewer import Reviewer
from .synthesis import synthesize_answer
from .coordinator import Coordinator, run_multi_agent_loop

__all__ = [
    # Models
    "AgentType",
    "StepType",
    "ConfidenceLevel",
    "NextAction",
    "SearchQuery",
    "SearchStrategy",
    "RequirementSpec",
    "PlanResult",
    "AgentStep",
    "AdditionalQuery",
    "ReviewResult",
    "ExecAgentResult",
    "CoordinationState",
    "RunContext",
    # Events
    "EventType",
    "StreamEvent",
    "END_OF_STREAM",
    "step_to_event",
    "encode_sse",
    "iter_sse",
    # Parsing
    "parse_plan_text",
    "parse_review_text",
    "extract_final_answer",
    # Agents
    "Planner",
    "Executor",
    "Reviewer",
    "synthesize_answer",
    "Coordinator",
    "run_multi_agent_loop",
]
