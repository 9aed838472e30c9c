"""Tool executor: dispatches tool calls by name and never raises."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from ..exceptions import ToolArgumentError, UnknownToolError
from .definitions import ReadArgs, ToolResult, WebSearchArgs, WriteArgs, parse_tool_arguments
from .files import read_file, write_file
from .web_search import SearchClient, SearchHistory, web_search

logger = logging.getLogger(__name__)


@runtime_checkable
class ToolExecutorProtocol(Protocol):
    """Protocol for executing the Executor's tools."""

    async def execute(
        self,
        name: str,
        arguments: dict[str, Any],
        history: SearchHistory | None = None,
    ) -> ToolResult:
        """
        Execute one tool call.

        Args:
            name: Tool name
            arguments: Raw argument object from the model
            history: Search history of the current run (web_search only)

        Returns:
            ToolResult; all failures resolve to is_error=True
        """
        ...


class ToolExecutor(ToolExecutorProtocol):
    """
    Executes web_search, read and write calls.

    Arguments are decoded into typed records at this boundary; unknown tool
    names and invalid arguments come back as error results.
    """

    def __init__(
        self,
        search_client: SearchClient,
        workspace_root: Path,
        max_file_size: int = 1024 * 1024,
        top_results: int = 3,
    ):
        """
        Initialize the tool executor.

        Args:
            search_client: Backend for web_search
            workspace_root: Directory read/write are confined to
            max_file_size: Largest file read will return
            top_results: Results shown per web_search observation
        """
        self.search_client = search_client
        self.workspace_root = Path(workspace_root)
        self.max_file_size = max_file_size
        self.top_results = top_results

    async def __aenter__(self) -> ToolExecutor:
        if hasattr(self.search_client, "__aenter__"):
            await self.search_client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if hasattr(self.search_client, "__aexit__"):
            await self.search_client.__aexit__(exc_type, exc_val, exc_tb)

    async def execute(
        self,
        name: str,
        arguments: dict[str, Any],
        history: SearchHistory | None = None,
    ) -> ToolResult:
        try:
            args = parse_tool_arguments(name, arguments)
        except (UnknownToolError, ToolArgumentError) as e:
            logger.warning(f"Rejected tool call {name}: {e}")
            return ToolResult(content=f"Error: {e}", is_error=True)

        logger.debug(f"Executing {name} with {args!r}")

        try:
            if isinstance(args, WebSearchArgs):
                return await web_search(
                    self.search_client,
                    args.query,
                    history=history,
                    top_results=self.top_results,
                )
            elif isinstance(args, ReadArgs):
                return read_file(self.workspace_root, args.path, self.max_file_size)
            elif isinstance(args, WriteArgs):
                return write_file(self.workspace_root, args.path, args.content)
        except Exception as e:
            logger.error(f"Tool {name} failed: {e}")
            return ToolResult(content=f"Error executing {name}: {e}", is_error=True)

        return ToolResult(content=f"Error: No handler for tool {name}", is_error=True)
