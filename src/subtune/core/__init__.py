"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Logging (Loguru)
- Console management (Rich)
"""

from .config import (
    Config,
    create_default_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_log_path,
    load_config,
)
from .console import get_console, safe_print
from .output import attach_ui_sink, detach_ui_sink, get_ui_lines, setup_loguru

__all__ = [
    # Config
    "Config",
    "create_default_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_log_path",
    "load_config",
    # Console
    "get_console",
    "safe_print",
    # Output
    "attach_ui_sink",
    "detach_ui_sink",
    "get_ui_lines",
    "setup_loguru",
]
