"""Choosing among datanodes for a single block operation, avoiding recent failures."""

from __future__ import annotations

import threading
import time
from collections.abc import Iterable

_failures: dict[str, float] = {}
_failures_lock = threading.Lock()


def record_datanode_failure(address: str, when: float | None = None) -> None:
    """Record that the datanode at address failed at the given time (default: now)."""
    with _failures_lock:
        _failures[address] = time.time() if when is None else when


def clear_datanode_failures() -> None:
    """Forget every recorded datanode failure."""
    with _failures_lock:
        _failures.clear()


def _failure_time(address: str) -> float | None:
    with _failures_lock:
        return _failures.get(address)


class DatanodeFailover:
    """Tries a list of datanodes in turn, preferring ones that have not failed recently."""

    def __init__(self, datanodes: Iterable[str]) -> None:
        self._datanodes = list(datanodes)
        self._current = ""
        self._error: BaseException | None = None

    def record_failure(self, err: BaseException) -> None:
        """Mark the datanode last returned by next() as failed, remembering err."""
        record_datanode_failure(self._current)
        self._error = err

    def next(self) -> str:
        """Remove and return the best remaining datanode address."""
        if not self._datanodes:
            raise LookupError("no datanodes remaining")

        picked = 0
        oldest: float | None = None
        for index, address in enumerate(self._datanodes):
            failed_at = _failure_time(address)
            if failed_at is None:
                picked = index
                break
            if oldest is None or failed_at < oldest:
                picked = index
                oldest = failed_at

        address = self._datanodes.pop(picked)
        self._current = address
        return address

    def num_remaining(self) -> int:
        """Number of datanodes not yet tried."""
        return len(self._datanodes)

    def last_error(self) -> BaseException | None:
        """The most recently recorded failure, if any."""
        return self._error