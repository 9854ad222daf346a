"""Scoped update cycle.

Mutations that fan out to many observers open a cycle first.  Observer
callbacks scheduled while a cycle is open are queued and delivered once,
in scheduling order, when the outermost cycle ends.  Outside a cycle,
scheduled callbacks run immediately.
"""

from __future__ import annotations

import contextlib
import logging
from collections import deque
from collections.abc import Callable, Iterator

_logger = logging.getLogger(__name__)


class UpdateCycle:
    """Nestable begin/end bracket that batches observer callbacks."""

    def __init__(self) -> None:
        self._depth = 0
        self._pending: deque[Callable[[], None]] = deque()

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def is_active(self) -> bool:
        return self._depth > 0

    def begin(self) -> None:
        self._depth += 1

    def end(self) -> None:
        if self._depth == 0:
            raise RuntimeError("UpdateCycle.end() called without a matching begin()")
        self._depth -= 1
        if self._depth == 0:
            self.flush()

    def schedule(self, callback: Callable[[], None]) -> None:
        """Run *callback* now, or at the end of the active cycle."""
        if self._depth == 0:
            callback()
            return
        self._pending.append(callback)

    def flush(self) -> None:
        """Deliver queued callbacks.

        Flushing runs after the outermost cycle has closed, so callbacks
        scheduled by a flushed callback run immediately.  If a callback raises,
        the callbacks behind it stay queued for the next flush.
        """
        if self._pending:
            _logger.debug("Flushing %d observer callback(s)", len(self._pending))
        while self._pending:
            callback = self._pending.popleft()
            callback()

    @contextlib.contextmanager
    def scope(self) -> Iterator[UpdateCycle]:
        """Open a cycle for the duration of a ``with`` block.

        The cycle is ended on every exit path.  When the block raises, queued
        callbacks are still delivered.
        """
        self.begin()
        try:
            yield self
        finally:
            self.end()
