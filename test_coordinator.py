"""
Coordinator Tests

Drives whole runs against a scripted language model and the mock search
backend, checking the event stream and the final CoordinationState.
"""

import asyncio
import json

from tandem.config.loader import CoordinatorConfig
from tandem.llm import LLMResponse, MockLLMProvider, ToolCall
from tandem.orchestration import (
    Coordinator,
    EventType,
    StreamEvent,
    iter_sse,
    run_multi_agent_loop,
)
from tandem.tools import MockSearchClient, ToolExecutor

HEIGHT = "eiffel tower height"
BUILT = "eiffel tower construction year"
ARCHITECT = "gustave eiffel architect"


def plan_args(queries: list[str], needs_exec: bool = True) -> dict:
    return {
        "objective": "Describe the Eiffel Tower",
        "deliverable": "Short factual summary",
        "needsExecAgent": needs_exec,
        "execDecisionReason": "Needs sourced facts" if needs_exec else "Common knowledge",
        "queries": [
            {"query": q, "purpose": f"find {q}", "expectedInfo": "a fact"} for q in queries
        ],
        "confidenceLevel": "medium",
        "reasoning": "Plan for the Eiffel Tower question.",
    }


def review(score: int, action: str, queries: list[str] | None = None) -> dict:
    args = {"confidenceScore": score, "critique": f"Scored {score}.", "nextAction": action}
    if queries:
        args["additionalQueries"] = [{"query": q, "reason": f"need {q}"} for q in queries]
    return args


def scripted_llm(plan: dict, reviews: list[dict], answer: str = "Final Answer: 330 m, 1889.",
                 fail_on: str | None = None) -> MockLLMProvider:
    """
    Language model that plans and reviews from a script.

    Executor turns get no tool calls, so every planned query runs through
    the Executor's fallback search.
    """
    reviews = list(reviews)

    def handler(system_prompt, messages, tools, tool_choice):
        if fail_on is not None and (tool_choice == fail_on or (fail_on == "synthesis" and not tools)):
            raise RuntimeError(f"{fail_on} unavailable")
        if tool_choice == "spec_user_requirement":
            return LLMResponse(
                tool_calls=[ToolCall(id="plan", name="spec_user_requirement", arguments=plan)],
                finish_reason="tool_calls",
            )
        if tool_choice == "submit_review":
            return LLMResponse(
                tool_calls=[ToolCall(id="review", name="submit_review", arguments=reviews.pop(0))],
                finish_reason="tool_calls",
            )
        if tools:
            return LLMResponse(finish_reason="stop")
        return LLMResponse(content=answer, finish_reason="stop")

    return MockLLMProvider(handler=handler)


def run_to_end(coordinator: Coordinator, message: str, max_iterations: int | None = None):
    async def collect():
        return [event async for event in coordinator.run(message, max_iterations=max_iterations)]

    return asyncio.run(collect())


def make_coordinator(llm, search, tmp_path, max_iterations: int = 5) -> Coordinator:
    tools = ToolExecutor(search, tmp_path)
    return Coordinator(llm, tools, config=CoordinatorConfig(max_iterations=max_iterations))


def types(events: list[StreamEvent]) -> list[EventType]:
    return [e.type for e in events]


def print_events(events: list[StreamEvent]):
    for event in events:
        print(f"  {event.type.value:14} {event.content[:60]!r}")


def test_plan_only_run(tmp_path):
    """A question needing no evidence goes straight from planning to the answer."""
    print("=" * 60)
    print("Plan-only run")
    print("=" * 60)

    llm = scripted_llm(plan_args([], needs_exec=False), [], answer="Final Answer: Paris")
    search = MockSearchClient()
    coordinator = make_coordinator(llm, search, tmp_path)

    events = run_to_end(coordinator, "What is the capital of France?")
    print_events(events)

    assert types(events) == [
        EventType.PHASE,
        EventType.PLAN_THOUGHT,
        EventType.PHASE,
        EventType.FINAL_ANSWER,
    ]
    assert events[0].phase == "Planning"
    assert events[2].content == "Finalization (Plan-only)"
    assert events[3].content == "Paris"
    assert events[3].agent.value == "plan"
    assert events[1].content.startswith("Requirement Specification:")
    assert "Needs Exec Agent: No" in events[1].content

    state = coordinator.state
    assert state.is_complete is True
    assert state.final_answer == "Paris"
    assert state.iteration_count == 0
    assert search.queries == []


def test_refine_then_finalize(tmp_path):
    """A low score with refine_strategy appends queries; only new ones run next round."""
    llm = scripted_llm(
        plan_args([HEIGHT, BUILT]),
        [review(40, "refine_strategy", [ARCHITECT]), review(90, "finalize")],
    )
    search = MockSearchClient()
    coordinator = make_coordinator(llm, search, tmp_path)

    events = run_to_end(coordinator, "Tell me about the Eiffel Tower")
    print_events(events)

    assert search.queries == [HEIGHT, BUILT, ARCHITECT]
    state = coordinator.state
    assert [q.query for q in state.current_strategy.queries] == [HEIGHT, BUILT, ARCHITECT]
    assert state.current_strategy.queries[2].purpose == f"need {ARCHITECT}"
    assert state.iteration_count == 2
    assert state.is_complete is True
    assert state.final_answer == "330 m, 1889."

    phases = [e.content for e in events if e.type == EventType.PHASE]
    assert phases == [
        "Planning Phase",
        "Execution Round 1",
        "Review Phase",
        "Continuing search...",
        "Execution Round 2",
        "Review Phase",
        "Finalization",
    ]
    reviews = [e.content for e in events if e.type == EventType.REVIEW]
    assert reviews[0].startswith("Confidence Score: 40/100\n\nCritique:\nScored 40.")

    exec_actions = [e.content for e in events if e.type == EventType.EXEC_ACTION]
    assert "Executed 2 new searches (2 total)" in exec_actions
    assert "Executed 1 new searches (3 total)" in exec_actions
    assert events[-1].type == EventType.FINAL_ANSWER


def test_high_score_finalizes_regardless_of_action(tmp_path):
    llm = scripted_llm(plan_args([HEIGHT]), [review(80, "continue_search", [ARCHITECT])])
    coordinator = make_coordinator(llm, MockSearchClient(), tmp_path)

    events = run_to_end(coordinator, "How tall is the Eiffel Tower?")

    assert coordinator.state.iteration_count == 1
    assert coordinator.state.is_complete is True
    assert types(events).count(EventType.REVIEW) == 1
    assert events[-1].type == EventType.FINAL_ANSWER


def test_finalize_action_ends_run_at_low_score(tmp_path):
    llm = scripted_llm(plan_args([HEIGHT]), [review(30, "finalize")])
    coordinator = make_coordinator(llm, MockSearchClient(), tmp_path)

    events = run_to_end(coordinator, "How tall is the Eiffel Tower?")

    assert coordinator.state.iteration_count == 1
    assert events[-1].type == EventType.FINAL_ANSWER
    assert EventType.ERROR not in types(events)


def test_continue_search_replaces_strategy(tmp_path):
    llm = scripted_llm(
        plan_args([HEIGHT, BUILT]),
        [review(20, "continue_search", [ARCHITECT]), review(85, "finalize")],
    )
    search = MockSearchClient()
    coordinator = make_coordinator(llm, search, tmp_path)

    events = run_to_end(coordinator, "Who designed the Eiffel Tower?")

    strategy = coordinator.state.current_strategy
    assert [q.query for q in strategy.queries] == [ARCHITECT]
    assert strategy.queries[0].expected_info == "Information to address identified gaps"
    assert search.queries == [HEIGHT, BUILT, ARCHITECT]

    thoughts = [e.content for e in events if e.type == EventType.PLAN_THOUGHT]
    assert thoughts[1].startswith("Search Strategy:")


def test_repeated_review_queries_are_not_searched_twice(tmp_path):
    llm = scripted_llm(
        plan_args([HEIGHT, BUILT]),
        [review(40, "refine_strategy", [f"  {HEIGHT} ", ARCHITECT]), review(90, "finalize")],
    )
    search = MockSearchClient()
    coordinator = make_coordinator(llm, search, tmp_path)

    run_to_end(coordinator, "Tell me about the Eiffel Tower")

    assert search.queries == [HEIGHT, BUILT, ARCHITECT]
    assert len(coordinator.state.current_strategy.queries) == 4


def test_budget_exhaustion_gives_best_effort_answer(tmp_path):
    """Reviews that never add queries stop at the budget with a warning."""
    llm = scripted_llm(
        plan_args([HEIGHT, BUILT]),
        [review(50, "continue_search"), review(50, "continue_search")],
    )
    search = MockSearchClient()
    coordinator = make_coordinator(llm, search, tmp_path, max_iterations=2)

    events = run_to_end(coordinator, "Tell me about the Eiffel Tower")
    print_events(events)

    assert types(events)[-3:] == [EventType.ERROR, EventType.PHASE, EventType.FINAL_ANSWER]
    assert events[-3].content == (
        "Max iterations (2) reached without sufficient confidence. Best effort answer follows."
    )
    exec_actions = [e.content for e in events if e.type == EventType.EXEC_ACTION]
    assert exec_actions[-1] == "Executed 0 new searches (2 total)"
    assert search.queries == [HEIGHT, BUILT]

    state = coordinator.state
    assert state.iteration_count == 2
    assert state.is_complete is False
    assert state.final_answer == "330 m, 1889."


def test_run_budget_override(tmp_path):
    llm = scripted_llm(plan_args([HEIGHT]), [review(10, "continue_search")])
    coordinator = make_coordinator(llm, MockSearchClient(), tmp_path, max_iterations=5)

    events = run_to_end(coordinator, "How tall?", max_iterations=1)

    assert coordinator.state.iteration_count == 1
    assert "Max iterations (1)" in events[-3].content
    assert "Continuing search..." not in [e.content for e in events]


def test_zero_iteration_override_is_respected(tmp_path):
    """An explicit budget of 0 runs no rounds rather than the configured default."""
    llm = scripted_llm(plan_args([HEIGHT]), [])
    search = MockSearchClient()
    coordinator = make_coordinator(llm, search, tmp_path, max_iterations=5)

    events = run_to_end(coordinator, "How tall?", max_iterations=0)

    assert types(events) == [
        EventType.PHASE,
        EventType.PLAN_THOUGHT,
        EventType.ERROR,
        EventType.PHASE,
        EventType.FINAL_ANSWER,
    ]
    assert "Max iterations (0)" in events[2].content
    assert coordinator.state.iteration_count == 0
    assert coordinator.state.is_complete is False
    assert search.queries == []


def test_infinite_review_score_still_finishes(tmp_path):
    llm = scripted_llm(plan_args([HEIGHT]), [review(float("inf"), "continue_search")])
    coordinator = make_coordinator(llm, MockSearchClient(), tmp_path)

    events = run_to_end(coordinator, "How tall is the Eiffel Tower?")

    assert EventType.ERROR not in types(events)
    assert events[-1].type == EventType.FINAL_ANSWER
    reviews = [e.content for e in events if e.type == EventType.REVIEW]
    assert reviews[0].startswith("Confidence Score: 100/100")
    assert coordinator.state.is_complete is True


def test_planner_failure_ends_with_single_error(tmp_path):
    llm = scripted_llm(plan_args([HEIGHT]), [], fail_on="spec_user_requirement")
    coordinator = make_coordinator(llm, MockSearchClient(), tmp_path)

    events = run_to_end(coordinator, "How tall is the Eiffel Tower?")

    assert types(events) == [EventType.PHASE, EventType.ERROR]
    assert events[-1].content == "Coordinator error: spec_user_requirement unavailable"
    assert coordinator.state.final_answer is None


def test_reviewer_failure_ends_with_single_error(tmp_path):
    llm = scripted_llm(plan_args([HEIGHT]), [], fail_on="submit_review")
    coordinator = make_coordinator(llm, MockSearchClient(), tmp_path)

    events = run_to_end(coordinator, "How tall is the Eiffel Tower?")

    assert events[-1].type == EventType.ERROR
    assert types(events).count(EventType.ERROR) == 1
    assert EventType.FINAL_ANSWER not in types(events)
    assert coordinator.state.is_complete is False


def test_synthesis_failure_still_answers(tmp_path):
    llm = scripted_llm(plan_args([HEIGHT]), [review(90, "finalize")], fail_on="synthesis")
    coordinator = make_coordinator(llm, MockSearchClient(), tmp_path)

    events = run_to_end(coordinator, "How tall is the Eiffel Tower?")

    assert events[-1].type == EventType.FINAL_ANSWER
    assert events[-1].content == "Error generating final answer: synthesis unavailable"
    assert EventType.ERROR not in types(events)


def test_every_step_is_narrated_once(tmp_path):
    """Each recorded step has exactly one non-phase, non-terminal event."""
    llm = scripted_llm(
        plan_args([HEIGHT, BUILT]),
        [review(40, "refine_strategy", [ARCHITECT]), review(90, "finalize")],
    )
    coordinator = make_coordinator(llm, MockSearchClient(), tmp_path)

    events = run_to_end(coordinator, "Tell me about the Eiffel Tower")

    narrated = [
        e for e in events
        if e.type not in (EventType.PHASE, EventType.FINAL_ANSWER, EventType.ERROR)
    ]
    state = coordinator.state
    assert len(narrated) == len(state.plan_steps) + len(state.exec_steps)
    assert sum(1 for e in events if e.is_terminal) == 1


def test_sse_stream_ends_with_sentinel(tmp_path):
    llm = scripted_llm(plan_args([HEIGHT]), [review(90, "finalize")])
    coordinator = make_coordinator(llm, MockSearchClient(), tmp_path)

    async def collect():
        return [frame async for frame in iter_sse(coordinator.run("How tall?"))]

    frames = asyncio.run(collect())

    assert frames[-1] == "data: [DONE]\n\n"
    for frame in frames[:-1]:
        assert frame.startswith("data: ") and frame.endswith("\n\n")
        payload = json.loads(frame[len("data: "):])
        assert "type" in payload and "content" in payload
    assert json.loads(frames[-2][len("data: "):])["type"] == "final_answer"


def test_run_multi_agent_loop_with_default_mock(tmp_path):
    """The offline mock walks a run through every phase."""
    llm = MockLLMProvider()
    search = MockSearchClient()
    tools = ToolExecutor(search, tmp_path)

    async def collect():
        return [e async for e in run_multi_agent_loop("What is HTTP/3?", llm, tools)]

    events = asyncio.run(collect())
    print_events(events)

    assert search.queries == ["What is HTTP/3?"]
    assert events[-1].type == EventType.FINAL_ANSWER
    assert events[-1].content == "[Mock answer based on the collected information]"
    assert EventType.ERROR not in types(events)
