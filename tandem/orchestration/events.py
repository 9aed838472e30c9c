"""Stream events emitted by the Coordinator and their SSE framing."""

from __future__ import annotations

import json
from enum import Enum
from typing import AsyncIterator

from pydantic import BaseModel

from .models import AgentStep, AgentType, StepType

END_OF_STREAM = "[DONE]"


class EventType(str, Enum):
    """Types of events in the run's narration stream."""

    PHASE = "phase"
    PLAN_THOUGHT = "plan_thought"
    PLAN_ACTION = "plan_action"
    EXEC_THOUGHT = "exec_thought"
    EXEC_ACTION = "exec_action"
    OBSERVATION = "observation"
    REVIEW = "review"
    FINAL_ANSWER = "final_answer"
    ERROR = "error"


class StreamEvent(BaseModel):
    """One event of the stream."""

    type: EventType
    content: str
    agent: AgentType | None = None
    phase: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.type in (EventType.FINAL_ANSWER, EventType.ERROR)

    @classmethod
    def phase_change(cls, content: str, phase: str) -> StreamEvent:
        return cls(type=EventType.PHASE, content=content, phase=phase)

    @classmethod
    def error(cls, content: str) -> StreamEvent:
        return cls(type=EventType.ERROR, content=content)

    @classmethod
    def final_answer(cls, content: str) -> StreamEvent:
        return cls(type=EventType.FINAL_ANSWER, content=content, agent=AgentType.PLAN)


_STEP_EVENT_TYPES: dict[tuple[AgentType, StepType], EventType] = {
    (AgentType.PLAN, StepType.THOUGHT): EventType.PLAN_THOUGHT,
    (AgentType.PLAN, StepType.ACTION): EventType.PLAN_ACTION,
    (AgentType.PLAN, StepType.REVIEW): EventType.REVIEW,
    (AgentType.PLAN, StepType.OBSERVATION): EventType.OBSERVATION,
    (AgentType.EXEC, StepType.THOUGHT): EventType.EXEC_THOUGHT,
    (AgentType.EXEC, StepType.ACTION): EventType.EXEC_ACTION,
    (AgentType.EXEC, StepType.OBSERVATION): EventType.OBSERVATION,
    (AgentType.EXEC, StepType.REVIEW): EventType.REVIEW,
}


def step_to_event(step: AgentStep, content: str | None = None) -> StreamEvent:
    """
    Map a recorded step to the single event that narrates it.

    Args:
        step: The step appended to a history
        content: Display text, when it differs from the recorded content

    Returns:
        StreamEvent of the type matching the step's agent and kind
    """
    return StreamEvent(
        type=_STEP_EVENT_TYPES[(step.agent, step.step_type)],
        content=step.content if content is None else content,
        agent=step.agent,
    )


def encode_sse(data: StreamEvent | str) -> str:
    """Frame one event (or the end sentinel) as a server-sent-event message."""
    if isinstance(data, StreamEvent):
        payload = json.dumps(data.model_dump(mode="json", exclude_none=True))
    else:
        payload = data
    return f"data: {payload}\n\n"


async def iter_sse(events: AsyncIterator[StreamEvent]) -> AsyncIterator[str]:
    """Frame an event stream as SSE messages followed by the end sentinel."""
    async for event in events:
        yield encode_sse(event)
    yield encode_sse(END_OF_STREAM)
