"""Configuration settings for the tandem question-answering agent."""

import logging
import os
from dotenv import load_dotenv

load_dotenv()

# Logging setup
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)

# OpenRouter
# Available models via OpenRouter:
# - anthropic/claude-3.5-sonnet (balanced)
# - anthropic/claude-3.5-haiku (fast)
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
OPENROUTER_DEFAULT_MODEL = os.getenv("OPENROUTER_MODEL", "anthropic/claude-3.5-sonnet")

# Anthropic (direct API)
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
ANTHROPIC_DEFAULT_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-3-5-haiku-20241022")

# Tavily web search
TAVILY_API_KEY = os.getenv("TAVILY_API_KEY")
TAVILY_BASE_URL = "https://api.tavily.com"

# Project directory the read/write tools are confined to
WORKSPACE_ROOT = os.getenv("TANDEM_WORKSPACE", os.getcwd())
MAX_FILE_SIZE = 1024 * 1024

# Coordination defaults
MAX_ITERATIONS = 5
CONFIDENCE_THRESHOLD = 75
