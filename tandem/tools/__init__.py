"""Tools the Executor can call: web_search, read and write."""

from .definitions import (
    ToolType,
    ToolDefinition,
    ToolResult,
    WebSearchArgs,
    ReadArgs,
    WriteArgs,
    ToolArguments,
    TOOL_DEFINITIONS,
    get_tool_schema,
    get_tool_descriptions,
    parse_tool_arguments,
)
from .web_search import (
    SearchClient,
    SearchHit,
    SearchHistory,
    SearchResponse,
    TavilySearchClient,
    MockSearchClient,
    web_search,
)
from .files import read_file, write_file
from .executor import ToolExecutor, ToolExecutorProtocol

__all__ = [
    # Definitions
    "ToolType",
    "ToolDefinition",
    "ToolResult",
    "WebSearchArgs",
    "ReadArgs",
    "WriteArgs",
    "ToolArguments",
    "TOOL_DEFINITIONS",
    "get_tool_schema",
    "get_tool_descriptions",
    "parse_tool_arguments",
    # Web search
    "SearchClient",
    "SearchHit",
    "SearchHistory",
    "SearchResponse",
    "TavilySearchClient",
    "MockSearchClient",
    "web_search",
    # Files
    "read_file",
    "write_file",
    # Executor
    "ToolExecutor",
    "ToolExecutorProtocol",
]
