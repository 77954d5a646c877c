"""
igotifier Utilities Package.

Configuration and logging shared across all packages.
Requires Python 3.11+.
"""

from utils.config import APP_NAME, APP_VERSION, LOG_LEVEL, DispatchConfig
from utils.logger import configure_logging, get_logger, LoggerMixin

__all__ = [
    "APP_NAME",
    "APP_VERSION",
    "DispatchConfig",
    "LOG_LEVEL",
    "configure_logging",
    "get_logger",
    "LoggerMixin",
]
