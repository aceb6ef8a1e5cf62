"""Budgets and options for debug context collection.

Every limit here truncates a collection rather than failing it: a walk that
hits a budget stops issuing new backend requests and reports what it has.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import fields
from dataclasses import replace
import logging
from typing import TYPE_CHECKING
from typing import Any
from typing import Literal

from debugctx.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

# Option names accepted by from_options(), as sent by an IDE/assistant host.
OPTION_NAMES: dict[str, str] = {
    "maxStackItems": "max_stack_items",
    "maxStackBytes": "max_stack_bytes",
    "maxSnapshotBytes": "max_snapshot_bytes",
    "maxDebuggerCalls": "max_debugger_calls",
    "maxNestedDepth": "max_nested_depth",
    "maxChildrenPerNode": "max_children_per_node",
    "maxStackTraceLines": "max_stack_trace_lines",
    "enclosingPrefixLines": "enclosing_prefix_lines",
    "enclosingSuffixLines": "enclosing_suffix_lines",
    "logLevel": "log_level",
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class CollectorConfig:
    """Budgets for stack, snapshot and exception collection."""

    # Stack collection
    max_stack_items: int = 20
    max_stack_bytes: int = 20_000
    enclosing_prefix_lines: int = 10
    enclosing_suffix_lines: int = 10

    # Snapshot collection
    max_snapshot_bytes: int = 50_000
    max_debugger_calls: int = 500
    max_nested_depth: int = 3
    max_children_per_node: int = 100

    # Exception collection
    max_stack_trace_lines: int = 30

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @classmethod
    def from_options(cls, options: Mapping[str, Any], base: CollectorConfig | None = None) -> CollectorConfig:
        """Create a config from host options (camelCase or field names).

        Unknown keys are logged and ignored.
        """
        known = {f.name for f in fields(cls)}
        changes: dict[str, Any] = {}
        unknown: list[str] = []
        for key, value in options.items():
            name = OPTION_NAMES.get(key, key)
            if name in known:
                changes[name] = value
            else:
                unknown.append(key)
        if unknown:
            logger.warning("Ignoring unknown collector option(s): %s", ", ".join(sorted(unknown)))

        config = replace(base or cls(), **changes)
        config.validate()
        return config

    def validate(self) -> None:
        """Validate budgets and raise ConfigurationError for invalid values."""
        for f in fields(self):
            if f.name == "log_level":
                continue
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(
                    f"{f.name} must be an integer",
                    config_key=f.name,
                    details={"value": value},
                )
            if value < 0:
                raise ConfigurationError(
                    f"{f.name} must not be negative",
                    config_key=f.name,
                    details={"value": value},
                )

        if self.max_stack_trace_lines < 1:
            raise ConfigurationError(
                "max_stack_trace_lines must be at least 1",
                config_key="max_stack_trace_lines",
                details={"value": self.max_stack_trace_lines},
            )

        if self.log_level not in _LOG_LEVELS:
            raise ConfigurationError(
                f"log_level must be one of {', '.join(_LOG_LEVELS)}",
                config_key="log_level",
                details={"value": self.log_level},
            )

    def copy(self) -> CollectorConfig:
        """Return an independent copy of this config."""
        return replace(self)


# Default configuration instance
DEFAULT_CONFIG = CollectorConfig()
