"""Mock language model for offline profiles and tests."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from .protocols import LanguageModel, LLMResponse, Message, MessageRole, ToolCall

logger = logging.getLogger(__name__)

Handler = Callable[..., LLMResponse]


@dataclass
class RecordedCall:
    """Arguments of one call made against the mock."""

    system_prompt: str
    messages: list[Message]
    tools: list[dict] | None
    tool_choice: str | None


def _last_user_text(messages: list[Message]) -> str:
    for msg in reversed(messages):
        if msg.role == MessageRole.USER and msg.content:
            return msg.content
    return ""


def default_handler(
    system_prompt: str,
    messages: list[Message],
    tools: list[dict] | None,
    tool_choice: str | None,
) -> LLMResponse:
    """Deterministic responses that walk a run through every phase once."""
    if tool_choice == "spec_user_requirement":
        request = _last_user_text(messages).rsplit(":", 1)[-1].strip() or "the request"
        return LLMResponse(
            tool_calls=[
                ToolCall(
                    id="mock-plan",
                    name="spec_user_requirement",
                    arguments={
                        "objective": f"Answer: {request}",
                        "deliverable": "Direct answer with sources",
                        "needsExecAgent": True,
                        "execDecisionReason": "Mock planner always gathers evidence",
                        "queries": [
                            {
                                "query": request[:120],
                                "purpose": "Collect evidence for the request",
                                "expectedInfo": "Facts that answer the request",
                            }
                        ],
                        "confidenceLevel": "medium",
                        "reasoning": "Mock plan with a single search.",
                    },
                )
            ],
            finish_reason="tool_calls",
        )

    if tool_choice == "submit_review":
        return LLMResponse(
            tool_calls=[
                ToolCall(
                    id="mock-review",
                    name="submit_review",
                    arguments={
                        "confidenceScore": 80,
                        "critique": "Mock review: evidence accepted.",
                        "nextAction": "finalize",
                    },
                )
            ],
            finish_reason="tool_calls",
        )

    if tools:
        return LLMResponse(content="Proceeding with the planned searches.", finish_reason="stop")

    return LLMResponse(
        content="Final Answer: [Mock answer based on the collected information]",
        finish_reason="stop",
    )


@dataclass
class MockLLMProvider(LanguageModel):
    """
    Mock LLM provider for testing.

    Queued ``responses`` are served first, in order; an Exception in the
    queue is raised instead of returned. Once the queue is empty the
    ``handler`` answers. Every call is recorded in ``calls``.
    """

    responses: list[LLMResponse | Exception] = field(default_factory=list)
    handler: Handler = default_handler
    calls: list[RecordedCall] = field(default_factory=list)

    async def call(
        self,
        system_prompt: str,
        messages: list[Message],
        tools: list[dict] | None = None,
        tool_choice: str | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        self.calls.append(
            RecordedCall(
                system_prompt=system_prompt,
                messages=list(messages),
                tools=tools,
                tool_choice=tool_choice,
            )
        )

        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response

        return self.handler(system_prompt, messages, tools, tool_choice)

    async def __aenter__(self) -> MockLLMProvider:
        return self

    async def __aexit__(self, *args) -> None:
        pass
