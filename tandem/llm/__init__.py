"""LLM provider integrations with protocol-based adapter pattern."""

from .protocols import LanguageModel, LLMResponse, Message, MessageRole, ToolCall
from .adapters import AnthropicAdapter, OpenRouterAdapter
from .mock import MockLLMProvider

__all__ = [
    # Protocols
    "LanguageModel",
    "LLMResponse",
    "Message",
    "MessageRole",
    "ToolCall",
    # Adapters
    "OpenRouterAdapter",
    "AnthropicAdapter",
    "MockLLMProvider",
]
