"""Result types produced by debug context collection.

Snapshot items are built through :class:`SnapshotItemBuilder`, which is
mutated only by the walk branch that created it, and frozen with
:meth:`SnapshotItemBuilder.finalize` once its own children have joined.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
import enum
import json
from typing import TYPE_CHECKING
from typing import Any
from typing import Union

if TYPE_CHECKING:
    from collections.abc import Iterable

UNKNOWN_TYPE = "unknown"
UNAVAILABLE_VALUE = "unavailable"


class ItemKind(str, enum.Enum):
    LOCAL = "Local"
    FIELD = "Field"


class ContextKind(str, enum.Enum):
    STACK = "STACK"
    SNAPSHOT = "SNAPSHOT"
    EXCEPTION = "EXCEPTION"


@dataclass(frozen=True)
class SnapshotItem:
    """An immutable binding in a collected snapshot tree."""

    name: str
    type: str = UNKNOWN_TYPE
    value: str = UNAVAILABLE_VALUE
    kind: ItemKind = ItemKind.LOCAL
    children: tuple[SnapshotItem, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "value": self.value,
            "kind": self.kind.value,
            "children": [child.to_dict() for child in self.children],
        }

    def depth(self) -> int:
        """Height of this subtree: 0 for a leaf."""
        if not self.children:
            return 0
        return 1 + max(child.depth() for child in self.children)


@dataclass
class SnapshotItemBuilder:
    """Mutable counterpart of :class:`SnapshotItem` used during a walk."""

    name: str
    kind: ItemKind = ItemKind.LOCAL
    type: str = UNKNOWN_TYPE
    value: str = UNAVAILABLE_VALUE
    children: list[SnapshotItemBuilder] = field(default_factory=list)

    def finalize(self) -> SnapshotItem:
        """Return an immutable copy of this builder and its children."""
        return SnapshotItem(
            name=self.name,
            type=self.type,
            value=self.value,
            kind=self.kind,
            children=tuple(child.finalize() for child in self.children),
        )


@dataclass(frozen=True)
class StackItem:
    """One retained frame of the call stack."""

    file_path: str
    line_number: int
    enclosing_function_text: str = ""
    language_hint: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "filePath": self.file_path,
            "lineNumber": self.line_number,
            "enclosingFunctionText": self.enclosing_function_text,
            "languageHint": self.language_hint,
        }


@dataclass(frozen=True)
class ExceptionDetail:
    """The exception active in a paused frame."""

    message: str
    type: str = UNKNOWN_TYPE
    stack_trace: str = ""
    file_path: str = "unknown"
    line_number: int = -1

    def has_data(self) -> bool:
        return bool(self.message) or bool(self.stack_trace)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "type": self.type,
            "stackTrace": self.stack_trace,
            "filePath": self.file_path,
            "lineNumber": self.line_number,
        }


Payload = Union[list[SnapshotItem], list[StackItem], ExceptionDetail, None]


@dataclass(frozen=True)
class ContextItem:
    """Result envelope delivered once per collection request."""

    payload: Payload
    success: bool
    kind: ContextKind

    def to_dict(self) -> dict[str, Any]:
        payload: Any
        if isinstance(self.payload, list):
            payload = [item.to_dict() for item in self.payload]
        elif self.payload is not None:
            payload = self.payload.to_dict()
        else:
            payload = None
        return {"kind": self.kind.value, "success": self.success, "payload": payload}


def serialize_items(items: Iterable[SnapshotItem | StackItem]) -> str:
    """Compact JSON form of a result list, as sent to the assistant."""
    return json.dumps([item.to_dict() for item in items], separators=(",", ":"), ensure_ascii=False)


__all__ = [
    "UNAVAILABLE_VALUE",
    "UNKNOWN_TYPE",
    "ContextItem",
    "ContextKind",
    "ExceptionDetail",
    "ItemKind",
    "Payload",
    "SnapshotItem",
    "SnapshotItemBuilder",
    "StackItem",
    "serialize_items",
]
