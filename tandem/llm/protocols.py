"""Protocol definitions for language model providers."""

from enum import Enum
from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, Field


class MessageRole(str, Enum):
    """Role of a message in a conversation."""

    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolCall(BaseModel):
    """A structured tool-call request returned by the model."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class Message(BaseModel):
    """A message in a conversation.

    Assistant messages may carry tool calls; tool messages answer one of
    them through ``tool_call_id``.
    """

    role: MessageRole
    content: str | None = None
    tool_calls: list[ToolCall] = Field(default_factory=list)
    tool_call_id: str | None = None
    name: str | None = None

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str | None, tool_calls: list[ToolCall] | None = None) -> "Message":
        return cls(role=MessageRole.ASSISTANT, content=content, tool_calls=tool_calls or [])

    @classmethod
    def tool(cls, tool_call_id: str, name: str, content: str) -> "Message":
        return cls(role=MessageRole.TOOL, content=content, tool_call_id=tool_call_id, name=name)


FinishReason = Literal["stop", "tool_calls", "length"]


class LLMResponse(BaseModel):
    """Response of a single model call."""

    content: str | None = None
    tool_calls: list[ToolCall] = Field(default_factory=list)
    finish_reason: FinishReason | None = None

    def find_tool_call(self, name: str) -> ToolCall | None:
        """Return the first tool call with the given name, if any."""
        for call in self.tool_calls:
            if call.name == name:
                return call
        return None


@runtime_checkable
class LanguageModel(Protocol):
    """Protocol for language model providers.

    Implement this protocol to add support for new LLM APIs.
    """

    async def call(
        self,
        system_prompt: str,
        messages: list[Message],
        tools: list[dict] | None = None,
        tool_choice: str | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        """
        Run one model turn.

        Args:
            system_prompt: System prompt for the turn
            messages: Ordered conversation (user, assistant and tool messages)
            tools: Optional OpenAI-style function schemas the model may call
            tool_choice: None or "auto" lets the model decide; any other
                value is the name of a single tool the model must call
            temperature: Optional sampling temperature override

        Returns:
            LLMResponse with text content, tool calls and finish reason

        Raises:
            Any transport or provider error. Providers never return a
            synthetic empty response in place of a failure.
        """
        ...
