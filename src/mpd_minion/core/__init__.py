"""Core infrastructure layer - no protocol dependencies.

This module provides foundation-level services:
- Configuration management (TOML + MPD environment variables)
- Logging setup (Loguru)
- Console management (Rich)
"""

# Configuration
from .config import (
    Config,
    ConnectionConfig,
    LoggingConfig,
    load_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_log_file_path,
    create_default_config,
    ensure_directories,
)

# Console
from .console import get_console, print_error, safe_print

__all__ = [
    # Config
    "Config",
    "ConnectionConfig",
    "LoggingConfig",
    "load_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_log_file_path",
    "create_default_config",
    "ensure_directories",
    # Console
    "get_console",
    "print_error",
    "safe_print",
]
