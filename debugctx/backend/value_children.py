"""Inspection helpers used by the in-process Python backend.

Decide how a live Python object is displayed and which children it
exposes:

* **structured models** (dataclasses, namedtuples, Pydantic v1/v2 models)
  expand to their declared fields and are labelled ``"dataclass Point"``;
* **exceptions** expand to ``args`` plus their traceback and chained causes;
* **tracebacks** and **frames** expose the links a traceback walk follows;
* mappings, sequences and sets expand to their items;
* other objects expand to their public instance attributes.
"""

from __future__ import annotations

from collections.abc import Iterable
from collections.abc import Mapping
import dataclasses
import itertools
import types
from typing import Any

DEFAULT_MAX_STRING_LENGTH = 1000

_SCALARS = (str, bytes, bytearray, int, float, complex, bool, type(None))
_LEAF_TYPES = (
    type,
    types.ModuleType,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.CodeType,
)

# ---------------------------------------------------------------------------
# Structured models
# ---------------------------------------------------------------------------


def is_dataclass_instance(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def is_namedtuple_instance(value: Any) -> bool:
    fields = getattr(type(value), "_fields", None)
    return isinstance(value, tuple) and isinstance(fields, tuple) and all(isinstance(f, str) for f in fields)


def _pydantic_field_names(value: Any) -> list[str] | None:
    """Declared field names of a Pydantic v2 or v1 model instance."""
    cls = type(value)
    fields = getattr(cls, "model_fields", None)
    if isinstance(fields, dict):
        return list(fields)
    if hasattr(cls, "__fields__") and hasattr(cls, "__validators__"):
        return list(cls.__fields__)
    return None


def is_pydantic_instance(value: Any) -> bool:
    # Duck-typed so pydantic stays an optional import.
    return not isinstance(value, type) and _pydantic_field_names(value) is not None


def is_structured_model(value: Any) -> bool:
    if isinstance(value, type):
        return False
    return is_dataclass_instance(value) or is_namedtuple_instance(value) or is_pydantic_instance(value)


def get_model_fields(value: Any) -> list[tuple[str, Any]]:
    """``(name, value)`` pairs of a structured model's declared fields."""
    if is_dataclass_instance(value):
        missing = object()
        pairs = [(f.name, getattr(value, f.name, missing)) for f in dataclasses.fields(value)]
        return [(name, v) for name, v in pairs if v is not missing]
    if is_namedtuple_instance(value):
        return [(name, getattr(value, name)) for name in type(value)._fields]
    names = _pydantic_field_names(value)
    if names is None:
        return []
    return [(name, getattr(value, name)) for name in names if hasattr(value, name)]


def type_label(value: Any) -> str:
    """Short type label, e.g. ``"int"`` or ``"namedtuple Pair"``."""
    name = type(value).__name__
    if is_dataclass_instance(value):
        return f"dataclass {name}"
    if is_namedtuple_instance(value):
        return f"namedtuple {name}"
    if is_pydantic_instance(value):
        return f"pydantic {name}"
    return name


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


def format_value(value: Any, max_length: int = DEFAULT_MAX_STRING_LENGTH) -> str:
    """``repr()`` of *value*, truncated to *max_length* characters."""
    try:
        s = repr(value)
    except Exception:
        return "<Error getting value>"
    if len(s) > max_length:
        return s[:max_length] + "..."
    return s


def fragment_kind(value: Any) -> str:
    """Renderer fragment a value's text is sent as."""
    if value is None or isinstance(value, bool):
        return "keyword"
    if isinstance(value, (int, float, complex)):
        return "numeric"
    if isinstance(value, (str, bytes, bytearray)):
        return "string"
    return "value"


# ---------------------------------------------------------------------------
# Children
# ---------------------------------------------------------------------------


def _public_attributes(value: Any) -> list[tuple[str, Any]]:
    try:
        attrs = vars(value)
    except TypeError:
        return []
    return [(name, v) for name, v in attrs.items() if not name.startswith("_")]


def value_children(value: Any, limit: int | None = None) -> list[tuple[str, Any]]:
    """Ordered ``(name, child)`` pairs shown when *value* is expanded.

    At most *limit* pairs are returned when a limit is given.
    """
    pairs: Iterable[tuple[str, Any]]
    if isinstance(value, _SCALARS) or isinstance(value, _LEAF_TYPES):
        pairs = []
    elif is_structured_model(value):
        pairs = get_model_fields(value)
    elif isinstance(value, BaseException):
        pairs = [
            ("args", value.args),
            ("__traceback__", value.__traceback__),
            ("__cause__", value.__cause__),
            ("__context__", value.__context__),
            *_public_attributes(value),
        ]
    elif isinstance(value, types.TracebackType):
        pairs = [("tb_frame", value.tb_frame), ("tb_lineno", value.tb_lineno), ("tb_next", value.tb_next)]
    elif isinstance(value, types.FrameType):
        pairs = [("f_code", value.f_code), ("f_lineno", value.f_lineno), ("f_locals", value.f_locals)]
    elif isinstance(value, Mapping):
        pairs = ((format_value(k, 100), v) for k, v in value.items())
    elif isinstance(value, (list, tuple, set, frozenset)):
        pairs = ((str(index), item) for index, item in enumerate(value))
    else:
        pairs = _public_attributes(value)
    return list(itertools.islice(pairs, limit))


def has_children(value: Any) -> bool:
    return bool(value_children(value, 1))


__all__ = [
    "DEFAULT_MAX_STRING_LENGTH",
    "format_value",
    "fragment_kind",
    "get_model_fields",
    "has_children",
    "is_dataclass_instance",
    "is_namedtuple_instance",
    "is_pydantic_instance",
    "is_structured_model",
    "type_label",
    "value_children",
]
