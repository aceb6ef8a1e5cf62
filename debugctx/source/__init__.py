"""Source navigation for stack excerpts."""

from debugctx.source.navigator import PythonSourceNavigator

__all__ = ["PythonSourceNavigator"]
