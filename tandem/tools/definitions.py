"""Tool definitions and typed argument records for the Executor's tools."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, Field, ValidationError

from ..exceptions import ToolArgumentError, UnknownToolError


class ToolType(str, Enum):
    """Tools available to the Executor."""

    WEB_SEARCH = "web_search"
    READ = "read"
    WRITE = "write"


class WebSearchArgs(BaseModel):
    """Arguments of a ``web_search`` call."""

    query: str = Field(min_length=1)


class ReadArgs(BaseModel):
    """Arguments of a ``read`` call."""

    path: str = Field(min_length=1)


class WriteArgs(BaseModel):
    """Arguments of a ``write`` call."""

    path: str = Field(min_length=1)
    content: str


ToolArguments = Union[WebSearchArgs, ReadArgs, WriteArgs]


@dataclass
class ToolResult:
    """Result of a tool execution. Failures are data, never exceptions."""

    content: str
    is_error: bool = False


@dataclass
class ToolDefinition:
    """Definition of a tool for LLM function calling."""

    name: str
    description: str
    parameters: dict[str, dict]
    required_params: list[str]
    arguments_model: type[BaseModel]


TOOL_DEFINITIONS: dict[str, ToolDefinition] = {
    ToolType.WEB_SEARCH.value: ToolDefinition(
        name="web_search",
        description=(
            "Search the web for current information. Returns the top 3 most "
            "relevant results with summaries. Avoid searching for similar "
            "queries repeatedly."
        ),
        parameters={
            "query": {
                "type": "string",
                "description": (
                    "Concise search query with keywords only. Remove filler words. "
                    'Example: "Next.js 14 app router middleware auth"'
                ),
            },
        },
        required_params=["query"],
        arguments_model=WebSearchArgs,
    ),
    ToolType.READ.value: ToolDefinition(
        name="read",
        description="Read a file from the project directory",
        parameters={
            "path": {
                "type": "string",
                "description": "Relative path to the file to read",
            },
        },
        required_params=["path"],
        arguments_model=ReadArgs,
    ),
    ToolType.WRITE.value: ToolDefinition(
        name="write",
        description="Write content to a file in the project directory (restricted to project root)",
        parameters={
            "path": {
                "type": "string",
                "description": "Relative path where the file should be written",
            },
            "content": {
                "type": "string",
                "description": "Content to write to the file",
            },
        },
        required_params=["path", "content"],
        arguments_model=WriteArgs,
    ),
}


def get_tool_schema() -> list[dict]:
    """
    Get OpenAI-style function schema for all tools.

    Returns:
        List of tool schemas for LLM function calling
    """
    schemas = []

    for tool_def in TOOL_DEFINITIONS.values():
        schema = {
            "type": "function",
            "function": {
                "name": tool_def.name,
                "description": tool_def.description,
                "parameters": {
                    "type": "object",
                    "properties": tool_def.parameters,
                    "required": tool_def.required_params,
                },
            },
        }
        schemas.append(schema)

    return schemas


def get_tool_descriptions() -> str:
    """
    Get human-readable tool descriptions.

    Returns:
        Formatted string describing all available tools
    """
    lines = []

    for name, tool_def in TOOL_DEFINITIONS.items():
        lines.append(f"- {name}: {tool_def.description}")
        if tool_def.required_params:
            lines.append(f"  Required: {', '.join(tool_def.required_params)}")

    return "\n".join(lines)


def parse_tool_arguments(name: str, arguments: dict[str, Any] | None) -> ToolArguments:
    """
    Decode a loosely-typed tool call into its typed argument record.

    Args:
        name: Tool name requested by the model
        arguments: Raw argument object

    Returns:
        WebSearchArgs, ReadArgs or WriteArgs

    Raises:
        UnknownToolError: If the tool name is not known
        ToolArgumentError: If the arguments do not validate
    """
    tool_def = TOOL_DEFINITIONS.get(name)
    if tool_def is None:
        raise UnknownToolError(name, list(TOOL_DEFINITIONS))

    try:
        return tool_def.arguments_model.model_validate(arguments or {})
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or name for err in e.errors())
        raise ToolArgumentError(f"Invalid arguments for {name}: {fields}") from e
