"""tandem: planner/executor question answering with streamed reasoning."""

from .orchestration import Coordinator, StreamEvent, run_multi_agent_loop
from .config import load_config, create_from_profile

__all__ = [
    "Coordinator",
    "StreamEvent",
    "run_multi_agent_loop",
    "load_config",
    "create_from_profile",
]
