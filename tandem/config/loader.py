"""Configuration loader with Pydantic validation and env var expansion."""

import logging
import os
import re
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel

from .. import settings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "models.yaml"


class LLMConfig(BaseModel):
    """Configuration for the language model backend."""

    backend: Literal["openrouter", "anthropic", "mock"] = "openrouter"
    model: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    temperature: float = 0.7
    max_tokens: int | None = None


class SearchBackendConfig(BaseModel):
    """Configuration for the web search backend."""

    backend: Literal["tavily", "mock"] = "tavily"
    api_key: str | None = None
    base_url: str | None = None
    max_results: int = 5
    top_results: int = 3  # Results shown to the model per search
    similarity_threshold: float = 0.8  # Jaccard similarity that counts as a repeat


class WorkspaceConfig(BaseModel):
    """Directory the read/write tools are confined to."""

    root_dir: str | None = None  # None = TANDEM_WORKSPACE or current directory
    max_file_size: int = settings.MAX_FILE_SIZE


class CoordinatorConfig(BaseModel):
    """Configuration for the Coordinator state machine."""

    max_iterations: int = settings.MAX_ITERATIONS
    confidence_threshold: int = settings.CONFIDENCE_THRESHOLD


class PlannerConfig(BaseModel):
    """Configuration for the Planner."""

    max_queries: int = 5
    temperature: float | None = None


class ExecutorConfig(BaseModel):
    """Configuration for the Executor tool loop."""

    max_turns: int = 20  # Model turns per invocation, independent of query count
    temperature: float | None = None


class ReviewerConfig(BaseModel):
    """Configuration for the Reviewer."""

    temperature: float | None = None


class ProfileConfig(BaseModel):
    """Configuration profile containing all backend configs."""

    llm: LLMConfig
    search: SearchBackendConfig = SearchBackendConfig()
    workspace: WorkspaceConfig = WorkspaceConfig()
    coordinator: CoordinatorConfig = CoordinatorConfig()
    planner: PlannerConfig = PlannerConfig()
    executor: ExecutorConfig = ExecutorConfig()
    reviewer: ReviewerConfig = ReviewerConfig()


class ConfigFile(BaseModel):
    """Root configuration file structure."""

    profiles: dict[str, ProfileConfig]


def expand_env_vars(value: str) -> str:
    """Expand ${VAR} references in a string with environment variables.

    Unset variables are left as written.
    """
    if not isinstance(value, str):
        return value

    def replacer(match):
        return os.environ.get(match.group(1), match.group(0))

    return re.sub(r"\$\{([^}]+)\}", replacer, value)


def expand_env_vars_recursive(data):
    """Recursively expand env vars in nested dict/list structures."""
    if isinstance(data, dict):
        return {k: expand_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def _drop_unexpanded(value: str | None) -> str | None:
    """Treat a ``${VAR}`` left unexpanded as missing."""
    if value and re.fullmatch(r"\$\{[^}]+\}", value):
        return None
    return value


def read_config_file(config_path: Path) -> ConfigFile:
    """Read and validate a YAML profiles file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config is invalid
    """
    with open(config_path) as f:
        raw_data = yaml.safe_load(f) or {}

    return ConfigFile(**expand_env_vars_recursive(raw_data))


def load_config_from_yaml(config_path: Path, profile_name: str) -> ProfileConfig:
    """Load one profile from a YAML file.

    Args:
        config_path: Path to config YAML file
        profile_name: Name of profile to load

    Returns:
        ProfileConfig for the requested profile

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config is invalid
        KeyError: If profile doesn't exist
    """
    config_file = read_config_file(config_path)

    if profile_name not in config_file.profiles:
        available = ", ".join(config_file.profiles.keys())
        raise KeyError(
            f"Profile '{profile_name}' not found. Available profiles: {available}"
        )

    profile = config_file.profiles[profile_name]
    profile.llm.api_key = _drop_unexpanded(profile.llm.api_key)
    profile.search.api_key = _drop_unexpanded(profile.search.api_key)
    return profile


def load_config_from_env() -> ProfileConfig:
    """Build a profile from environment variables (fallback mode).

    Uses Anthropic when only ANTHROPIC_API_KEY is set, OpenRouter otherwise.
    """
    if settings.ANTHROPIC_API_KEY and not settings.OPENROUTER_API_KEY:
        llm = LLMConfig(
            backend="anthropic",
            model=settings.ANTHROPIC_DEFAULT_MODEL,
            api_key=settings.ANTHROPIC_API_KEY,
        )
    else:
        llm = LLMConfig(
            backend="openrouter",
            model=settings.OPENROUTER_DEFAULT_MODEL,
            api_key=settings.OPENROUTER_API_KEY,
            base_url=os.environ.get("OPENROUTER_BASE_URL", settings.OPENROUTER_BASE_URL),
        )

    search = SearchBackendConfig(
        backend="tavily",
        api_key=settings.TAVILY_API_KEY,
        base_url=settings.TAVILY_BASE_URL,
    )

    return ProfileConfig(
        llm=llm,
        search=search,
        workspace=WorkspaceConfig(root_dir=settings.WORKSPACE_ROOT),
    )


def list_profiles(config_path: Path | None = None) -> list[str]:
    """Names of the profiles in the config file (empty when it is missing)."""
    config_path = config_path or DEFAULT_CONFIG_PATH
    if not config_path.exists():
        return []
    return list(read_config_file(config_path).profiles)


def load_config(
    profile: str | None = None,
    config_path: Path | None = None,
) -> ProfileConfig:
    """Load configuration from YAML file or environment variables.

    Main entry point for configuration. Tries the YAML profiles file first
    and falls back to environment variables when it is missing or invalid.

    Args:
        profile: Profile name to load. If None, uses the TANDEM_PROFILE
                env var or "default".
        config_path: Path to config file. If None, uses the models.yaml
                    shipped next to this module.

    Returns:
        ProfileConfig with all backend configurations

    Raises:
        KeyError: If the requested profile doesn't exist in the file
    """
    if profile is None:
        profile = os.environ.get("TANDEM_PROFILE", "default")

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        logger.info(f"Config file {config_path} not found, using environment variables")
        return load_config_from_env()

    try:
        return load_config_from_yaml(config_path, profile)
    except KeyError:
        raise
    except Exception as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        logger.warning("Falling back to environment variables...")
        return load_config_from_env()
