"""Configuration management.

This module provides configuration management through:
- RuntimeConfig: Runtime configuration from env vars, files, and CLI flags
- ApplicationMode: Enum for application execution modes
- ConfigError: Exception for configuration errors
"""

from promise_rejection_fixer.config.exceptions import ConfigError
from promise_rejection_fixer.config.runtime_config import ApplicationMode, RuntimeConfig

__all__ = ["ApplicationMode", "ConfigError", "RuntimeConfig"]
