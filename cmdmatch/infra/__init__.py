# Infrastructure module - Logging and configuration
# Nothing here knows about grammar or matching

from .logging import (
    get_logger, configure_logging, reset_logging, MatchContext,
    get_match_id, generate_match_id,
)
from .config import ConfigManager, MatcherSettings

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "reset_logging",
    "MatchContext",
    "get_match_id",
    "generate_match_id",
    # Config
    "ConfigManager",
    "MatcherSettings",
]
