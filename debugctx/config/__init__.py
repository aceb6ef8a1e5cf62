"""Configuration management for debug context collection."""

from debugctx.config.collector_config import DEFAULT_CONFIG
from debugctx.config.collector_config import OPTION_NAMES
from debugctx.config.collector_config import CollectorConfig
from debugctx.config.config_manager import ConfigContext
from debugctx.config.config_manager import config_context
from debugctx.config.config_manager import get_config
from debugctx.config.config_manager import reset_config
from debugctx.config.config_manager import set_config
from debugctx.config.config_manager import update_config

__all__ = [
    "DEFAULT_CONFIG",
    "OPTION_NAMES",
    "CollectorConfig",
    "ConfigContext",
    "config_context",
    "get_config",
    "reset_config",
    "set_config",
    "update_config",
]
