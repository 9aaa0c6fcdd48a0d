"""Common utilities for Dicebot."""
from .config import ConfigError, configure_logger, get_config, get_plugin_config

__all__ = ['ConfigError', 'get_config', 'get_plugin_config', 'configure_logger']
