"""Configuration profiles and backend factories."""

from .loader import (
    LLMConfig,
    SearchBackendConfig,
    WorkspaceConfig,
    CoordinatorConfig,
    PlannerConfig,
    ExecutorConfig,
    ReviewerConfig,
    ProfileConfig,
    ConfigFile,
    load_config,
    load_config_from_yaml,
    load_config_from_env,
    list_profiles,
    expand_env_vars,
)
from .factory import (
    create_llm,
    create_search_client,
    create_tool_executor,
    create_coordinator,
    create_from_profile,
)

__all__ = [
    # Loader
    "LLMConfig",
    "SearchBackendConfig",
    "WorkspaceConfig",
    "CoordinatorConfig",
    "PlannerConfig",
    "ExecutorConfig",
    "ReviewerConfig",
    "ProfileConfig",
    "ConfigFile",
    "load_config",
    "load_config_from_yaml",
    "load_config_from_env",
    "list_profiles",
    "expand_env_vars",
    # Factory
    "create_llm",
    "create_search_client",
    "create_tool_executor",
    "create_coordinator",
    "create_from_profile",
]
