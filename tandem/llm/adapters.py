"""Adapter implementations for LLM providers."""

import json
import logging

from openai import AsyncOpenAI

from ..settings import (
    ANTHROPIC_API_KEY,
    ANTHROPIC_DEFAULT_MODEL,
    OPENROUTER_API_KEY,
    OPENROUTER_BASE_URL,
    OPENROUTER_DEFAULT_MODEL,
)
from .protocols import LanguageModel, LLMResponse, Message, MessageRole, ToolCall

logger = logging.getLogger(__name__)


def _decode_arguments(raw: str | None) -> dict:
    """Decode a JSON argument string, tolerating empty or malformed payloads."""
    if not raw:
        return {}
    try:
        decoded = json.loads(raw, strict=False)
    except json.JSONDecodeError as e:
        logger.warning(f"Malformed tool call arguments ({e}): {raw[:200]}")
        return {}
    return decoded if isinstance(decoded, dict) else {}


class OpenRouterAdapter(LanguageModel):
    """
    Adapter for OpenRouter API.

    OpenRouter provides access to many LLMs through an OpenAI-compatible API.

    Usage:
        async with OpenRouterAdapter() as llm:
            response = await llm.call(system_prompt, [Message.user("Hi")])
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ):
        """
        Initialize the OpenRouter adapter.

        Args:
            api_key: Optional API key. If not provided, uses OPENROUTER_API_KEY env var.
            model: Model to use. Defaults to OPENROUTER_DEFAULT_MODEL.
            base_url: API base URL. Defaults to OPENROUTER_BASE_URL.
            temperature: Default sampling temperature
            max_tokens: Maximum tokens to generate per call
        """
        self.api_key = api_key or OPENROUTER_API_KEY
        self.model = model or OPENROUTER_DEFAULT_MODEL
        self.base_url = base_url or OPENROUTER_BASE_URL
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client: AsyncOpenAI | None = None

        if not self.api_key:
            raise ValueError(
                "OpenRouter API key required. Set OPENROUTER_API_KEY in .env"
            )

        logger.info(f"OpenRouter adapter initialized with model: {self.model}")

    async def __aenter__(self) -> "OpenRouterAdapter":
        self._client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            max_retries=3,
            timeout=120.0,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.close()
            self._client = None

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with' context manager."
            )
        return self._client

    @staticmethod
    def _format_message(msg: Message) -> dict:
        if msg.role == MessageRole.TOOL:
            return {
                "role": "tool",
                "tool_call_id": msg.tool_call_id,
                "content": msg.content or "",
            }

        formatted: dict = {"role": msg.role.value, "content": msg.content}
        if msg.tool_calls:
            formatted["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.name,
                        "arguments": json.dumps(call.arguments),
                    },
                }
                for call in msg.tool_calls
            ]
        return formatted

    async def call(
        self,
        system_prompt: str,
        messages: list[Message],
        tools: list[dict] | None = None,
        tool_choice: str | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        """Run one model turn through the chat completions API."""
        formatted_messages = [{"role": "system", "content": system_prompt}]
        formatted_messages.extend(self._format_message(m) for m in messages)

        kwargs: dict = {}
        if self.max_tokens:
            kwargs["max_tokens"] = self.max_tokens
        if tools:
            kwargs["tools"] = tools
            if tool_choice and tool_choice != "auto":
                kwargs["tool_choice"] = {"type": "function", "function": {"name": tool_choice}}
            else:
                kwargs["tool_choice"] = "auto"

        logger.info(
            f"Calling {self.model} ({len(messages)} messages, {len(tools or [])} tools)"
        )

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=formatted_messages,
            temperature=self.temperature if temperature is None else temperature,
            **kwargs,
        )

        choice = response.choices[0]
        tool_calls = [
            ToolCall(
                id=call.id,
                name=call.function.name,
                arguments=_decode_arguments(call.function.arguments),
            )
            for call in (choice.message.tool_calls or [])
        ]
        finish_reason = choice.finish_reason
        if finish_reason not in ("stop", "tool_calls", "length"):
            finish_reason = None

        logger.info(
            f"Response received: {len(choice.message.content or '')} chars, "
            f"{len(tool_calls)} tool calls, finish_reason={choice.finish_reason}"
        )
        logger.debug(f"Usage: {response.usage}")

        return LLMResponse(
            content=choice.message.content,
            tool_calls=tool_calls,
            finish_reason=finish_reason,
        )


class AnthropicAdapter(LanguageModel):
    """
    Adapter for Anthropic API (direct).

    Uses the Anthropic Python SDK directly for Claude models. OpenAI-style
    tool schemas are translated to Anthropic's ``input_schema`` format.

    Usage:
        async with AnthropicAdapter() as llm:
            response = await llm.call(system_prompt, [Message.user("Hi")])
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ):
        """
        Initialize the Anthropic adapter.

        Args:
            api_key: Optional API key. If not provided, uses ANTHROPIC_API_KEY env var.
            model: Model to use. Defaults to ANTHROPIC_DEFAULT_MODEL.
            temperature: Default sampling temperature
            max_tokens: Maximum tokens to generate per call
        """
        self.api_key = api_key or ANTHROPIC_API_KEY
        self.model = model or ANTHROPIC_DEFAULT_MODEL
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = None

        if not self.api_key:
            raise ValueError(
                "Anthropic API key required. Set ANTHROPIC_API_KEY in .env"
            )

        logger.info(f"Anthropic adapter initialized with model: {self.model}")

    async def __aenter__(self) -> "AnthropicAdapter":
        import anthropic

        self._client = anthropic.AsyncAnthropic(
            api_key=self.api_key,
            max_retries=3,
            timeout=120.0,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.close()
            self._client = None

    @property
    def client(self):
        if self._client is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with' context manager."
            )
        return self._client

    @staticmethod
    def _convert_tools(tools: list[dict]) -> list[dict]:
        converted = []
        for tool in tools:
            function = tool.get("function", tool)
            converted.append({
                "name": function["name"],
                "description": function.get("description", ""),
                "input_schema": function.get("parameters", {"type": "object", "properties": {}}),
            })
        return converted

    @staticmethod
    def _format_messages(messages: list[Message]) -> list[dict]:
        """Translate the conversation into Anthropic content blocks.

        Tool results travel as ``tool_result`` blocks inside user turns, and
        consecutive tool results are merged into a single user turn.
        """
        formatted: list[dict] = []

        for msg in messages:
            if msg.role == MessageRole.TOOL:
                block = {
                    "type": "tool_result",
                    "tool_use_id": msg.tool_call_id,
                    "content": msg.content or "",
                }
                previous = formatted[-1] if formatted else None
                if (
                    previous
                    and previous["role"] == "user"
                    and isinstance(previous["content"], list)
                    and all(b.get("type") == "tool_result" for b in previous["content"])
                ):
                    previous["content"].append(block)
                else:
                    formatted.append({"role": "user", "content": [block]})

            elif msg.role == MessageRole.ASSISTANT and msg.tool_calls:
                blocks: list[dict] = []
                if msg.content:
                    blocks.append({"type": "text", "text": msg.content})
                for call in msg.tool_calls:
                    blocks.append({
                        "type": "tool_use",
                        "id": call.id,
                        "name": call.name,
                        "input": call.arguments,
                    })
                formatted.append({"role": "assistant", "content": blocks})

            else:
                formatted.append({"role": msg.role.value, "content": msg.content or ""})

        return formatted

    async def call(
        self,
        system_prompt: str,
        messages: list[Message],
        tools: list[dict] | None = None,
        tool_choice: str | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        """Run one model turn through the messages API."""
        kwargs: dict = {}
        if tools:
            kwargs["tools"] = self._convert_tools(tools)
            if tool_choice and tool_choice != "auto":
                kwargs["tool_choice"] = {"type": "tool", "name": tool_choice}
            else:
                kwargs["tool_choice"] = {"type": "auto"}

        logger.info(
            f"Calling {self.model} ({len(messages)} messages, {len(tools or [])} tools)"
        )

        message = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens or 4096,
            system=system_prompt,
            messages=self._format_messages(messages),
            temperature=self.temperature if temperature is None else temperature,
            **kwargs,
        )

        content = ""
        tool_calls: list[ToolCall] = []
        for block in message.content:
            if block.type == "text":
                content += block.text
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCall(id=block.id, name=block.name, arguments=dict(block.input or {}))
                )

        finish_reason = {
            "end_turn": "stop",
            "stop_sequence": "stop",
            "tool_use": "tool_calls",
            "max_tokens": "length",
        }.get(message.stop_reason)

        logger.info(
            f"Response received: {len(content)} chars, {len(tool_calls)} tool calls, "
            f"stop_reason={message.stop_reason}"
        )
        logger.debug(
            f"Usage: input={message.usage.input_tokens}, output={message.usage.output_tokens}"
        )

        return LLMResponse(
            content=content or None,
            tool_calls=tool_calls,
            finish_reason=finish_reason,
        )
