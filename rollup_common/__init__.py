"""
Rollup Tracker - Common Module

This module holds the configuration and logging helpers shared by the
observer transport, the operation trackers and the command-line watcher.
"""

from .config import Settings, load_settings
from .logging_utils import configure_logging, get_logger

__all__ = ['Settings', 'load_settings', 'configure_logging', 'get_logger']
