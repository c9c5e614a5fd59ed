"""
Build coalescer — at most one concurrent build per input hash.

When several callers ask for the same key at once, the first becomes
the leader and runs the build; the others block until it finishes and
then observe the same result, or the same exception.  Different keys
run in parallel.

Once a flight lands it is forgotten: later callers go through the
store, which already holds the published output.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Flight(Generic[T]):
    """One in-progress execution and the callers waiting on it."""

    def __init__(self) -> None:
        self.done = threading.Event()
        self.result: T | None = None
        self.error: BaseException | None = None
        self.waiters = 0


class BuildCoalescer(Generic[T]):
    """Single-flight execution keyed by input hash."""

    def __init__(self) -> None:
        self._flights: dict[str, _Flight[T]] = {}
        self._guard = threading.Lock()
        self._executions = 0

    @property
    def executions(self) -> int:
        """How many times a build function was actually run."""
        with self._guard:
            return self._executions

    def in_flight(self) -> list[str]:
        with self._guard:
            return list(self._flights)

    def waiters(self, key: str) -> int:
        """Callers currently blocked on ``key`` (leader not counted)."""
        with self._guard:
            flight = self._flights.get(key)
            return flight.waiters if flight else 0

    def run(self, key: str, fn: Callable[[], T]) -> T:
        """Run ``fn`` for ``key``, or join the flight already running it."""
        with self._guard:
            flight = self._flights.get(key)
            leader = flight is None
            if leader:
                flight = _Flight()
                self._flights[key] = flight
                self._executions += 1
            else:
                flight.waiters += 1

        if not leader:
            logger.debug("Joining in-flight build %s", key[:12])
            flight.done.wait()
            if flight.error is not None:
                raise flight.error
            return flight.result  # type: ignore[return-value]

        try:
            flight.result = fn()
            return flight.result
        except BaseException as exc:
            flight.error = exc
            raise
        finally:
            with self._guard:
                self._flights.pop(key, None)
            flight.done.set()
