"""Tests for per-language exception conventions."""

from debugctx.core.languages import GENERIC
from debugctx.core.languages import JAVA
from debugctx.core.languages import KOTLIN
from debugctx.core.languages import PYTHON
from debugctx.core.languages import LanguageRegistry
from debugctx.core.languages import LanguageSupport
from debugctx.core.languages import default_registry


class TestLanguageRegistry:
    def test_lookup_by_extension_and_name(self) -> None:
        registry = default_registry()

        assert registry.for_hint("java") is JAVA
        assert registry.for_hint(".kt") is KOTLIN
        assert registry.for_hint("PY") is PYTHON
        assert registry.for_hint("python") is PYTHON

    def test_unknown_hint_uses_default(self) -> None:
        registry = default_registry()
        assert registry.for_hint("rs") is GENERIC
        assert registry.for_hint(None) is GENERIC
        assert registry.for_hint("") is GENERIC

    def test_register_replaces_provider(self) -> None:
        registry = LanguageRegistry()
        custom = LanguageSupport(name="java", extensions=frozenset({"java"}), exception_names=frozenset({"t"}))

        registry.register(JAVA)
        registry.register(custom)

        assert registry.for_hint("java") is custom
        assert registry.names() == ["java"]

    def test_custom_default(self) -> None:
        assert LanguageRegistry(default=PYTHON).for_hint("c") is PYTHON


class TestFieldNames:
    def test_java_fields(self) -> None:
        assert JAVA.is_message_field("message")
        assert JAVA.is_message_field("Message")
        assert JAVA.is_detail_field("detailMessage")
        assert JAVA.is_trace_field("stackTrace")
        assert not JAVA.is_trace_field("cause")

    def test_python_fields(self) -> None:
        assert PYTHON.is_message_field("args")
        assert PYTHON.is_message_field("msg")
        assert not PYTHON.is_detail_field("detailMessage")
        assert PYTHON.is_trace_field("__traceback__")
        assert PYTHON.walks_traceback_chain
        assert "__exception__" in PYTHON.triple_markers

    def test_traceback_substring_is_a_trace_field(self) -> None:
        assert GENERIC.is_trace_field("formattedTraceback")


class TestFallbackText:
    def test_python_names_the_live_type(self) -> None:
        class Holder:
            value = frozenset()

        assert PYTHON.fallback_text("x", Holder()) == "<frozenset object>"

    def test_python_without_live_object(self) -> None:
        assert PYTHON.fallback_text("x", object()) is None

    def test_jvm_languages_have_no_fallback(self) -> None:
        assert JAVA.fallback_text is None
        assert KOTLIN.fallback_text is None
