"""Lexical scope tracking for function and arrow parameters."""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager


class ScopeTracker:
    """Stack of identifier-name frames, innermost last.

    A name is bound if any frame holds it. Only parameters ever create
    bindings, so no shadowing rules are needed.
    """

    def __init__(self) -> None:
        self._frames: list[frozenset[str]] = []

    @property
    def depth(self) -> int:
        return len(self._frames)

    def enter_scope(self, names: Iterable[str]) -> None:
        self._frames.append(frozenset(names))

    def exit_scope(self) -> None:
        if not self._frames:
            raise RuntimeError("exit_scope called with no open scope")
        self._frames.pop()

    def is_bound(self, name: str) -> bool:
        return any(name in frame for frame in self._frames)

    @contextmanager
    def scope(self, names: Iterable[str]) -> Iterator["ScopeTracker"]:
        """Push a frame for the duration of a with-block."""
        self.enter_scope(names)
        try:
            yield self
        finally:
            self.exit_scope()
