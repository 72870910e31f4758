# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
tickets.utils.time
==================

Clock capability used by the oracle freshness check, sale timestamps and
commitment records. Timestamps are integer epoch seconds.

- :class:`SystemClock` reads wall time.
- :class:`ManualClock` is driven explicitly (tests, replay, simulations) and
  refuses to move backwards, matching the host guarantee that time is
  monotonic non-decreasing within a transaction.
"""

from __future__ import annotations

import threading
import time
from typing import Protocol, runtime_checkable

__all__ = ["Clock", "SystemClock", "ManualClock"]


@runtime_checkable
class Clock(Protocol):
    def now(self) -> int:
        """Current timestamp in epoch seconds."""
        ...


class SystemClock:
    """Wall-clock seconds, never decreasing across calls on this instance."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            t = max(int(time.time()), self._last)
            self._last = t
            return t


class ManualClock:
    """A clock that only moves when told to."""

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError("start must be >= 0")
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def set(self, ts: int) -> None:
        if ts < self._now:
            raise ValueError(f"clock cannot move backwards ({ts} < {self._now})")
        self._now = int(ts)

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("seconds must be >= 0")
        self._now += int(seconds)
        return self._now
