"""Post-mortem command line: run a script and collect context if it fails.

Usage::

    python -m debugctx [options] script.py [args...]
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
from dataclasses import fields
import json
import logging
import os
import runpy
import sys
from typing import TYPE_CHECKING
from typing import Any

from debugctx.backend.python_backend import BackendOptions
from debugctx.backend.python_backend import ImmediateDispatcher
from debugctx.backend.python_backend import PythonBackend
from debugctx.backend.python_backend import ThreadPoolDispatcher
from debugctx.backend.value_children import DEFAULT_MAX_STRING_LENGTH
from debugctx.config import CollectorConfig
from debugctx.core.collector import DebugContextCollector
from debugctx.errors import ConfigurationError
from debugctx.session import DebugContextSession
from debugctx.source.navigator import PythonSourceNavigator

if TYPE_CHECKING:
    from collections.abc import Sequence
    import types

logger = logging.getLogger(__name__)

NAME_TO_LEVEL = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

_BUDGET_FIELDS = [f.name for f in fields(CollectorConfig) if f.name != "log_level"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m debugctx",
        description="Run a Python script and print its debug context if it raises",
    )
    parser.add_argument("script", help="Path of the script to run")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="Arguments passed to the script")
    parser.add_argument("-o", "--output", help="Write the JSON document to this file instead of stdout")
    parser.add_argument(
        "--threads",
        type=int,
        default=0,
        help="Answer backend requests on this many worker threads (default: 0, synchronous)",
    )
    parser.add_argument(
        "--max-string-length",
        type=int,
        default=DEFAULT_MAX_STRING_LENGTH,
        help=f"Truncate rendered values to this many characters (default: {DEFAULT_MAX_STRING_LENGTH})",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=list(NAME_TO_LEVEL),
        help="Log level (default: WARNING)",
    )
    defaults = CollectorConfig()
    budgets = parser.add_argument_group("budgets")
    for name in _BUDGET_FIELDS:
        budgets.add_argument(
            "--" + name.replace("_", "-"),
            dest=name,
            type=int,
            default=None,
            help=f"(default: {getattr(defaults, name)})",
        )
    return parser


def config_from_args(args: argparse.Namespace) -> CollectorConfig:
    changes = {name: getattr(args, name) for name in _BUDGET_FIELDS if getattr(args, name) is not None}
    changes["log_level"] = args.log_level
    return CollectorConfig.from_options(changes)


def run_script(path: str, argv: Sequence[str]) -> BaseException | None:
    """Run *path* as ``__main__`` and return the exception it raised, if any."""
    saved_argv = sys.argv[:]
    saved_path = sys.path[:]
    sys.argv = [path, *argv]
    sys.path.insert(0, os.path.dirname(os.path.abspath(path)))
    try:
        runpy.run_path(path, run_name="__main__")
    except SystemExit as e:
        logger.info("Script exited with status %s", e.code)
        return None
    except Exception as e:
        return e
    finally:
        sys.argv = saved_argv
        sys.path[:] = saved_path
    return None


def script_traceback(exc: BaseException, path: str) -> types.TracebackType | None:
    """The part of *exc*'s traceback that starts in the script itself."""
    target = os.path.abspath(path)
    tb = exc.__traceback__
    current = tb
    while current is not None:
        if os.path.abspath(current.tb_frame.f_code.co_filename) == target:
            return current
        current = current.tb_next
    return tb


def collect(exc: BaseException, path: str, config: CollectorConfig, options: BackendOptions) -> dict[str, Any]:
    tb = script_traceback(exc, path)
    if tb is None:
        msg = "exception has no traceback"
        raise ValueError(msg)
    backend = PythonBackend.from_traceback(tb, exc=exc, options=options)
    session = DebugContextSession(DebugContextCollector(config, navigator=PythonSourceNavigator()))
    stack, snapshot, exception = asyncio.run(session.collect_all(backend))
    return {
        "stack": stack.to_dict(),
        "snapshot": snapshot.to_dict(),
        "exception": exception.to_dict(),
    }


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=NAME_TO_LEVEL.get(args.log_level, logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    try:
        config = config_from_args(args)
    except ConfigurationError as e:
        parser.error(str(e))

    if not os.path.isfile(args.script):
        parser.error(f"script not found: {args.script}")

    exc = run_script(args.script, args.args)
    if exc is None:
        logger.info("Script completed without an exception")
        return 0

    with contextlib.ExitStack() as stack:
        if args.threads > 0:
            dispatcher = stack.enter_context(ThreadPoolDispatcher(args.threads))
        else:
            dispatcher = ImmediateDispatcher()
        options = BackendOptions(
            dispatcher,
            max_string_length=args.max_string_length,
            max_children=config.max_children_per_node,
        )
        document = collect(exc, args.script, config, options)

    text = json.dumps(document, indent=2, ensure_ascii=False)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text + "\n")
        logger.info("Wrote debug context to %s", args.output)
    else:
        print(text)
    return 1


__all__ = ["build_parser", "collect", "config_from_args", "main", "run_script", "script_traceback"]
