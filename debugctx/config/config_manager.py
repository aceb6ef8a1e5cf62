"""Process-wide collector configuration.

Provides thread-safe access to the current :class:`CollectorConfig` and a
context manager for temporary changes.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING
from typing import Any

if TYPE_CHECKING:
    import types

from debugctx.config.collector_config import DEFAULT_CONFIG
from debugctx.config.collector_config import CollectorConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    """Thread-safe manager for process-wide configuration state."""

    def __init__(self, default_config: CollectorConfig) -> None:
        self._lock = threading.RLock()
        self._default_config = default_config
        self._current_config = default_config.copy()

    def get_config(self) -> CollectorConfig:
        """Get the current configuration in a thread-safe manner."""
        with self._lock:
            return self._current_config

    def set_config(self, config: CollectorConfig) -> None:
        """Validate and install *config* as the current configuration."""
        with self._lock:
            config.validate()
            self._current_config = config

    def update_config(self, **kwargs: Any) -> CollectorConfig:
        """Update the current configuration with new values.

        The current config is replaced by a new object so collectors holding
        the previous one keep consistent budgets.
        """
        with self._lock:
            new_config = CollectorConfig.from_options(kwargs, base=self._current_config)
            self._current_config = new_config
            return new_config

    def reset_config(self) -> None:
        """Reset configuration to defaults."""
        with self._lock:
            self._current_config = self._default_config.copy()

    def apply_context_changes(self, changes: dict[str, Any]) -> tuple[CollectorConfig, CollectorConfig]:
        """Apply temporary configuration changes atomically.

        Returns:
            Tuple of (original_config, new_config).
        """
        with self._lock:
            original = self._current_config
            new_config = CollectorConfig.from_options(changes, base=original)
            self._current_config = new_config
            return original, new_config

    def restore_config(self, config: CollectorConfig) -> None:
        """Restore a previously captured configuration."""
        with self._lock:
            self._current_config = config


_config_manager = ConfigManager(DEFAULT_CONFIG)


def get_config() -> CollectorConfig:
    """Get the current configuration in a thread-safe manner.

    Returns:
        The current CollectorConfig instance
    """
    return _config_manager.get_config()


def set_config(config: CollectorConfig) -> None:
    """Set the current configuration in a thread-safe manner.

    Args:
        config: The new configuration to set
    """
    _config_manager.set_config(config)


def update_config(**kwargs: Any) -> CollectorConfig:
    """Update the current configuration with new values.

    Args:
        **kwargs: Configuration values to update (field or option names)
    """
    return _config_manager.update_config(**kwargs)


def reset_config() -> None:
    """Reset configuration to defaults."""
    _config_manager.reset_config()


class ConfigContext:
    """Context manager for temporary configuration changes.

    The previous configuration is restored when the context exits.
    """

    def __init__(self, **kwargs: Any):
        self._manager = _config_manager
        self._changes = kwargs
        self._original_config: CollectorConfig | None = None

    def __enter__(self) -> CollectorConfig:
        self._original_config, new_config = self._manager.apply_context_changes(self._changes)
        return new_config

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        if self._original_config is not None:
            self._manager.restore_config(self._original_config)


def config_context(**kwargs: Any) -> ConfigContext:
    """Create a context manager for temporary configuration changes."""
    return ConfigContext(**kwargs)
