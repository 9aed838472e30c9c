"""
Coordinator: the Planning -> Executing -> Reviewing state machine.

Runs the Planner once, then alternates Executor and Reviewer rounds until
the review is sufficient, the Reviewer finalizes, or the iteration budget
runs out, narrating every step as a StreamEvent.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, AsyncIterator

from ..tools.web_search import SearchHistory
from .events import StreamEvent, step_to_event
from .executor import Executor
from .formatting import format_specification, format_strategy
from .models import (
    AgentStep,
    AgentType,
    CoordinationState,
    ExecAgentResult,
    NextAction,
    ReviewResult,
    RunContext,
    SearchQuery,
    StepType,
)
from .planner import Planner
from .reviewer import Reviewer
from .synthesis import synthesize_answer

if TYPE_CHECKING:
    from ..config.loader import CoordinatorConfig
    from ..llm.protocols import LanguageModel
    from ..tools.executor import ToolExecutorProtocol

logger = logging.getLogger(__name__)

REFINE_PURPOSE = "Refined search based on review feedback"
REFINE_EXPECTED = "Additional information to address gaps"
CONTINUE_PURPOSE = "Additional search based on review feedback"
CONTINUE_EXPECTED = "Information to address identified gaps"


class Coordinator:
    """
    Top-level orchestrator of one question-answering run.

    Usage:
        coordinator = Coordinator(llm, tools)
        async for event in coordinator.run("What changed in Python 3.13?"):
            print(event.type, event.content)
        state = coordinator.state
    """

    def __init__(
        self,
        llm: LanguageModel,
        tools: ToolExecutorProtocol,
        config: CoordinatorConfig | None = None,
        planner: Planner | None = None,
        executor: Executor | None = None,
        reviewer: Reviewer | None = None,
        similarity_threshold: float = 0.8,
    ):
        """
        Initialize the Coordinator.

        Args:
            llm: Language model used for synthesis and default sub-agents
            tools: Tool executor handed to the default Executor
            config: Coordinator configuration
            planner: Planner to use instead of a default one
            executor: Executor to use instead of a default one
            reviewer: Reviewer to use instead of a default one
            similarity_threshold: Word overlap above which a search counts as a repeat
        """
        self.llm = llm

        if config is None:
            from ..config.loader import CoordinatorConfig
            config = CoordinatorConfig()

        self.max_iterations = config.max_iterations
        self.confidence_threshold = config.confidence_threshold

        self.planner = planner or Planner(llm)
        self.executor = executor or Executor(llm, tools)
        self.reviewer = reviewer or Reviewer(llm)
        self.similarity_threshold = similarity_threshold

        self.state: CoordinationState | None = None

    async def run(
        self,
        user_message: str,
        max_iterations: int | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """
        Answer a user message, yielding events as the run progresses.

        The stream ends with a ``final_answer`` event, or with a single
        ``error`` event when planning, execution or review fails. When the
        iteration budget is exhausted a warning ``error`` precedes the
        best-effort ``final_answer``.

        Args:
            user_message: The user's question
            max_iterations: Round budget overriding the configured one

        Yields:
            StreamEvent objects in the order the steps happen
        """
        if max_iterations is None:
            max_iterations = self.max_iterations
        state = CoordinationState(user_message=user_message)
        self.state = state
        context = RunContext(search_history=SearchHistory(self.similarity_threshold))
        collected_info = ""

        logger.info(f"Starting run (max {max_iterations} iterations)")
        yield StreamEvent.phase_change("Planning Phase", "Planning")

        try:
            plan = await self.planner.plan(user_message)
            step = self._record(state.plan_steps, AgentType.PLAN, StepType.THOUGHT, plan.reasoning)
            yield step_to_event(step, format_specification(plan.spec, plan.strategy))

            state.current_spec = plan.spec
            state.current_strategy = plan.strategy

            if not plan.spec.needs_execution or not plan.strategy.queries:
                if plan.spec.needs_execution:
                    logger.warning("Plan requested execution without queries, answering from the plan")
                    yield StreamEvent.phase_change("Finalization", "Finalization")
                else:
                    yield StreamEvent.phase_change("Finalization (Plan-only)", "Finalization")

                async for event in self._finalize(state, collected_info):
                    yield event
                return

            while not state.is_complete and state.iteration_count < max_iterations:
                state.iteration_count += 1
                logger.info(
                    f"Round {state.iteration_count}: "
                    f"{len(state.current_strategy.queries)} strategy queries, "
                    f"{len(context.executed_queries)} executed so far"
                )
                yield StreamEvent.phase_change(f"Execution Round {state.iteration_count}", "Execution")

                exec_result = ExecAgentResult()
                async for item in self.executor.run(state.current_strategy, context):
                    if isinstance(item, ExecAgentResult):
                        exec_result = item
                    else:
                        state.exec_steps.append(item)
                        yield step_to_event(item)

                collected_info += exec_result.collected_info
                step = self._record(
                    state.exec_steps,
                    AgentType.EXEC,
                    StepType.ACTION,
                    f"Executed {len(exec_result.queries_executed)} new searches "
                    f"({len(context.executed_queries)} total)",
                )
                yield step_to_event(step)

                yield StreamEvent.phase_change("Review Phase", "Review")
                review = await self.reviewer.review(
                    state.current_strategy,
                    collected_info,
                    state.plan_steps,
                )
                step = self._record(
                    state.plan_steps,
                    AgentType.PLAN,
                    StepType.REVIEW,
                    f"Confidence Score: {review.confidence_score}/100\n\nCritique:\n{review.critique}",
                )
                yield step_to_event(step)

                if (
                    review.confidence_score >= self.confidence_threshold
                    or review.next_action == NextAction.FINALIZE
                ):
                    yield StreamEvent.phase_change("Finalization", "Finalization")
                    async for event in self._finalize(state, collected_info):
                        yield event
                    return

                event = self._apply_review(state, review)
                if event is not None:
                    yield event

                if state.iteration_count < max_iterations:
                    yield StreamEvent.phase_change("Continuing search...", "Continue")

            logger.warning(f"Iteration budget of {max_iterations} exhausted")
            yield StreamEvent.error(
                f"Max iterations ({max_iterations}) reached without sufficient "
                "confidence. Best effort answer follows."
            )
            yield StreamEvent.phase_change("Finalization", "Finalization")
            async for event in self._finalize(state, collected_info, complete=False):
                yield event

        except Exception as e:
            logger.exception("Coordinator run failed")
            yield StreamEvent.error(f"Coordinator error: {e}")

    @staticmethod
    def _record(
        history: list[AgentStep],
        agent: AgentType,
        step_type: StepType,
        content: str,
    ) -> AgentStep:
        step = AgentStep(agent=agent, step_type=step_type, content=content)
        history.append(step)
        return step

    def _apply_review(self, state: CoordinationState, review: ReviewResult) -> StreamEvent | None:
        """Update the strategy from a non-final review; returns the event narrating it."""
        strategy = state.current_strategy
        extra = review.additional_queries

        if review.next_action == NextAction.REFINE_STRATEGY and extra:
            new_queries = [
                SearchQuery(q.query, q.reason or REFINE_PURPOSE, REFINE_EXPECTED)
                for q in extra
            ]
            state.current_strategy = strategy.with_appended(new_queries)
            summary = f"Refined strategy with {len(extra)} new queries"
        elif review.next_action == NextAction.CONTINUE_SEARCH and extra:
            new_queries = [
                SearchQuery(q.query, q.reason or CONTINUE_PURPOSE, CONTINUE_EXPECTED)
                for q in extra
            ]
            state.current_strategy = strategy.with_replaced(new_queries)
            summary = f"Continuing search with {len(extra)} additional queries"
        else:
            logger.warning(
                f"Review chose {review.next_action.value} without additional queries, "
                "strategy unchanged"
            )
            return None

        logger.info(summary)
        step = self._record(state.plan_steps, AgentType.PLAN, StepType.THOUGHT, summary)
        return step_to_event(step, format_strategy(state.current_strategy))

    async def _finalize(
        self,
        state: CoordinationState,
        collected_info: str,
        complete: bool = True,
    ) -> AsyncIterator[StreamEvent]:
        answer = await synthesize_answer(
            self.llm,
            state.user_message,
            collected_info,
            state.plan_steps,
            state.current_spec,
        )
        state.final_answer = answer
        state.is_complete = complete
        logger.info(f"Run finished after {state.iteration_count} rounds")
        yield StreamEvent.final_answer(answer)


async def run_multi_agent_loop(
    user_message: str,
    llm: LanguageModel,
    tools: ToolExecutorProtocol,
    max_iterations: int | None = None,
    config: CoordinatorConfig | None = None,
) -> AsyncIterator[StreamEvent]:
    """Run one question through a default Coordinator, yielding its events."""
    coordinator = Coordinator(llm, tools, config=config)
    async for event in coordinator.run(user_message, max_iterations=max_iterations):
        yield event
