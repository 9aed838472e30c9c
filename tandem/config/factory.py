"""Factory functions to create backends from configuration."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from ..exceptions import ConfigError
from .. import settings

if TYPE_CHECKING:
    from ..llm.protocols import LanguageModel
    from ..orchestration.coordinator import Coordinator
    from ..tools.executor import ToolExecutor
    from ..tools.web_search import SearchClient
    from .loader import LLMConfig, ProfileConfig, SearchBackendConfig, WorkspaceConfig


def create_llm(config: LLMConfig) -> LanguageModel:
    """Create a language model backend from configuration.

    Args:
        config: LLM configuration

    Returns:
        LanguageModel instance (OpenRouterAdapter, AnthropicAdapter, or mock)

    Raises:
        ConfigError: If the backend is unsupported or has no API key
    """
    if config.backend == "openrouter":
        from ..llm import OpenRouterAdapter

        if not config.api_key:
            raise ConfigError("OpenRouter backend requires api_key")

        return OpenRouterAdapter(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    elif config.backend == "anthropic":
        from ..llm import AnthropicAdapter

        if not config.api_key:
            raise ConfigError("Anthropic backend requires api_key")

        return AnthropicAdapter(
            api_key=config.api_key,
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    elif config.backend == "mock":
        from ..llm import MockLLMProvider

        return MockLLMProvider()

    else:
        raise ConfigError(f"Unsupported LLM backend: {config.backend}")


def create_search_client(config: SearchBackendConfig) -> SearchClient:
    """Create a web search backend from configuration.

    Raises:
        ConfigError: If the backend is unsupported or has no API key
    """
    if config.backend == "tavily":
        from ..tools.web_search import TavilySearchClient

        if not config.api_key:
            raise ConfigError("Tavily backend requires api_key")

        return TavilySearchClient(
            api_key=config.api_key,
            base_url=config.base_url,
            max_results=config.max_results,
        )

    elif config.backend == "mock":
        from ..tools.web_search import MockSearchClient

        return MockSearchClient()

    else:
        raise ConfigError(f"Unsupported search backend: {config.backend}")


def create_tool_executor(
    search_client: SearchClient,
    workspace: WorkspaceConfig,
    top_results: int = 3,
) -> ToolExecutor:
    """Create the tool executor for web_search, read and write."""
    from ..tools.executor import ToolExecutor

    return ToolExecutor(
        search_client=search_client,
        workspace_root=Path(workspace.root_dir or settings.WORKSPACE_ROOT),
        max_file_size=workspace.max_file_size,
        top_results=top_results,
    )


def create_coordinator(
    llm: LanguageModel,
    tools: ToolExecutor,
    profile: ProfileConfig,
) -> Coordinator:
    """Create a Coordinator whose agents follow the profile's settings.

    Args:
        llm: Language model shared by all agents
        tools: Tool executor for the Executor
        profile: Profile configuration

    Returns:
        Coordinator instance
    """
    from ..orchestration.coordinator import Coordinator
    from ..orchestration.executor import Executor
    from ..orchestration.planner import Planner
    from ..orchestration.reviewer import Reviewer

    return Coordinator(
        llm=llm,
        tools=tools,
        config=profile.coordinator,
        planner=Planner(
            llm,
            config=profile.planner,
            workspace_root=tools.workspace_root,
        ),
        executor=Executor(llm, tools, config=profile.executor),
        reviewer=Reviewer(llm, config=profile.reviewer),
        similarity_threshold=profile.search.similarity_threshold,
    )


def create_from_profile(profile: ProfileConfig) -> tuple:
    """Create all backends from a profile configuration.

    The LLM and tool executor are async context managers; enter them before
    running the coordinator.

    Returns:
        Tuple of (llm, tools, coordinator)

    Raises:
        ConfigError: If any backend configuration is invalid
    """
    llm = create_llm(profile.llm)
    search_client = create_search_client(profile.search)
    tools = create_tool_executor(search_client, profile.workspace, profile.search.top_results)
    coordinator = create_coordinator(llm, tools, profile)

    return llm, tools, coordinator
