"""Deterministic fake debugger backends for the collector tests.

Every fake routes its callbacks through a :class:`Scheduler`:

* ``immediate`` - callbacks run synchronously inside the request;
* ``deferred``  - callbacks are queued and run by :meth:`Scheduler.drain`,
  optionally reversed or shuffled to simulate out-of-order delivery;
* ``threaded``  - each callback runs on its own thread.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
import random
import threading
from typing import Any
from typing import Callable

from debugctx.backend.protocol import EnclosingFunction
from debugctx.backend.protocol import SourcePosition


class Scheduler:
    def __init__(self, mode: str = "immediate", *, seed: int = 0) -> None:
        assert mode in ("immediate", "deferred", "threaded")
        self.mode = mode
        self._lock = threading.Lock()
        self._pending: list[Callable[[], None]] = []
        self._threads: list[threading.Thread] = []
        self._random = random.Random(seed)

    def submit(self, fn: Callable[[], None]) -> None:
        if self.mode == "immediate":
            fn()
        elif self.mode == "deferred":
            with self._lock:
                self._pending.append(fn)
        else:
            thread = threading.Thread(target=fn, daemon=True)
            with self._lock:
                self._threads.append(thread)
            thread.start()

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def drain(self, *, reverse: bool = False, shuffle: bool = False) -> None:
        """Run queued callbacks (and any they queue) until none are left."""
        while True:
            with self._lock:
                batch, self._pending = self._pending, []
            if not batch:
                return
            if reverse:
                batch.reverse()
            if shuffle:
                self._random.shuffle(batch)
            for fn in batch:
                fn()

    def join(self, timeout: float = 5.0) -> None:
        """Wait for every callback thread, including ones started meanwhile."""
        while True:
            with self._lock:
                alive = [t for t in self._threads if t.is_alive()]
            if not alive:
                return
            for thread in alive:
                thread.join(timeout)

    def settle(self) -> None:
        if self.mode == "deferred":
            self.drain()
        elif self.mode == "threaded":
            self.join()


IMMEDIATE = Scheduler()


class FakePresentation:
    def __init__(self, text: str | None, type_name: str | None = None, error: Exception | None = None) -> None:
        self.text = text
        self._type_name = type_name
        self.error = error

    @property
    def type_name(self) -> str | None:
        return self._type_name

    def render(self, renderer: Any) -> None:
        if self.error is not None:
            raise self.error
        renderer.render_value(self.text)
        renderer.render_comment(" (comment)")


class FakeValue:
    """A value with a fixed presentation and children.

    ``children_error`` makes the value report a structural error instead of
    children; ``raise_on_children`` / ``raise_on_presentation`` make the
    request itself raise. ``batches`` splits the children over that many
    ``add_children`` calls.
    """

    def __init__(
        self,
        text: str | None = "",
        type_name: str | None = None,
        children: list[tuple[str, FakeValue]] | None = None,
        *,
        scheduler: Scheduler | None = None,
        has_children: bool | None = None,
        children_error: str | None = None,
        render_error: Exception | None = None,
        raise_on_children: Exception | None = None,
        raise_on_presentation: Exception | None = None,
        repeat_presentation: bool = False,
        batches: int = 1,
    ) -> None:
        self.text = text
        self.type_name = type_name
        self.children = list(children or [])
        self.scheduler = scheduler or IMMEDIATE
        self._has_children = has_children
        self.children_error = children_error
        self.render_error = render_error
        self.raise_on_children = raise_on_children
        self.raise_on_presentation = raise_on_presentation
        self.repeat_presentation = repeat_presentation
        self.batches = max(batches, 1)
        self._lock = threading.Lock()
        self.presentation_requests = 0
        self.children_requests = 0

    def __repr__(self) -> str:
        return f"FakeValue({self.text!r})"

    @property
    def has_children(self) -> bool:
        if self._has_children is not None:
            return self._has_children
        return bool(self.children) or self.children_error is not None

    def compute_presentation(self, listener: Any) -> None:
        with self._lock:
            self.presentation_requests += 1
        if self.raise_on_presentation is not None:
            raise self.raise_on_presentation
        presentation = FakePresentation(self.text, self.type_name, self.render_error)

        def send() -> None:
            listener.set_presentation(presentation, self.has_children)
            if self.repeat_presentation:
                listener.set_presentation(FakePresentation("again"), False)

        self.scheduler.submit(send)

    def compute_children(self, listener: Any) -> None:
        with self._lock:
            self.children_requests += 1
        if self.raise_on_children is not None:
            raise self.raise_on_children
        if self.children_error is not None:
            message = self.children_error
            self.scheduler.submit(lambda: listener.error_occurred(message))
            return
        children = list(self.children)
        if not children:
            self.scheduler.submit(lambda: listener.add_children([], True))
            return
        size = -(-len(children) // self.batches)
        chunks = [children[i : i + size] for i in range(0, len(children), size)]

        def send() -> None:
            # Batches of one node arrive in order, on one callback.
            for index, chunk in enumerate(chunks):
                listener.add_children(chunk, index == len(chunks) - 1)

        self.scheduler.submit(send)


class FakeFrame(FakeValue):
    def __init__(
        self,
        children: list[tuple[str, FakeValue]] | None = None,
        *,
        file: str | None = "/src/app.py",
        line: int = 1,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("has_children", True)
        super().__init__("frame", "frame", children, **kwargs)
        self.position = SourcePosition(file, line) if file is not None else None

    def source_position(self) -> SourcePosition | None:
        return self.position


class FakeStack:
    def __init__(
        self,
        frames: list[FakeFrame],
        *,
        scheduler: Scheduler | None = None,
        batch_size: int = 10,
        error: str | None = None,
    ) -> None:
        self.frames = frames
        self.scheduler = scheduler or IMMEDIATE
        self.batch_size = batch_size
        self.error = error
        self.batches_sent = 0

    def compute_frames(self, first_index: int, listener: Any) -> None:
        if self.error is not None:
            error = self.error
            self.scheduler.submit(lambda: listener.error_occurred(error))
            return
        frames = self.frames[first_index:]
        if not frames:
            self.scheduler.submit(lambda: listener.add_frames([], True))
            return
        def send() -> None:
            for start in range(0, len(frames), self.batch_size):
                self.batches_sent += 1
                listener.add_frames(frames[start : start + self.batch_size], start + self.batch_size >= len(frames))

        self.scheduler.submit(send)


@dataclass
class FakeBackend:
    stack: FakeStack | None = None
    frame: FakeFrame | None = None

    def active_stack(self) -> FakeStack | None:
        return self.stack

    def active_frame(self) -> FakeFrame | None:
        return self.frame


@dataclass
class FakeNavigator:
    functions: dict[str, EnclosingFunction] = field(default_factory=dict)
    fail: bool = False

    def enclosing_function_text(self, path: str, line: int) -> EnclosingFunction | None:
        if self.fail:
            raise RuntimeError("navigator exploded")
        return self.functions.get(path)


class Sink:
    """Collects results handed to an ``on_done`` callback."""

    def __init__(self) -> None:
        self.calls: list[Any] = []
        self._event = threading.Event()

    def __call__(self, *args: Any) -> None:
        self.calls.append(args[0] if len(args) == 1 else args)
        self._event.set()

    def wait(self, timeout: float = 5.0) -> Any:
        assert self._event.wait(timeout), "callback never ran"
        return self.calls[0]

    @property
    def result(self) -> Any:
        assert len(self.calls) == 1, f"expected exactly one call, got {len(self.calls)}"
        return self.calls[0]


def leaf(text: str, type_name: str | None = "str", **kwargs: Any) -> FakeValue:
    return FakeValue(text, type_name, **kwargs)


def nested_tree(
    depth: int,
    fanout: int = 2,
    *,
    scheduler: Scheduler | None = None,
    prefix: str = "n",
) -> list[tuple[str, FakeValue]]:
    """``fanout`` bindings per level, ``depth`` levels below the top one."""
    children = []
    for i in range(fanout):
        name = f"{prefix}{i}"
        sub = nested_tree(depth - 1, fanout, scheduler=scheduler, prefix=name + "_") if depth > 0 else []
        children.append((name, FakeValue(name, "node", sub, scheduler=scheduler)))
    return children
