"""Core module initialization."""

from .config_manager import ConfigManager, CosmosConfig, HttpConfig, LoggingConfig
from .logging_config import setup_logging, log_with_context

__all__ = [
    "ConfigManager",
    "CosmosConfig",
    "HttpConfig",
    "LoggingConfig",
    "setup_logging",
    "log_with_context",
]
