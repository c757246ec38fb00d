"""Fixed-window admission gate for outbound document submissions."""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from crpt_api.errors import ConfigError

WINDOW_UNITS: dict[str, float] = {
    "second": 1.0,
    "minute": 60.0,
    "hour": 3600.0,
    "day": 86400.0,
}


def window_seconds(unit: str, amount: float = 1) -> float:
    """Convert a window unit and magnitude into seconds."""
    normalized = unit.strip().lower().removesuffix("s")
    factor = WINDOW_UNITS.get(normalized)
    if factor is None:
        allowed = ",".join(WINDOW_UNITS)
        raise ConfigError(f"unknown window unit: {unit!r} (expected one of {allowed})")
    if not math.isfinite(amount) or amount <= 0:
        raise ConfigError(f"window amount must be a positive number, got {amount}")
    return factor * float(amount)


@dataclass(frozen=True)
class GateState:
    """Point-in-time view of gate usage."""

    limit: int
    count: int
    remaining: int
    reset_in_s: float


class AdmissionGate:
    """Allow at most `limit` admissions per window.

    The window is rolled forward lazily: an admission check that observes an
    expired window resets the counter and starts a new window at "now". The
    whole check-reset-increment sequence runs under one lock, so the gate can
    be shared by threads and by asyncio tasks alike.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_s: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ConfigError(f"request limit must be a positive integer, got {limit!r}")
        if not math.isfinite(window_s) or window_s <= 0:
            raise ConfigError(f"window duration must be a positive number, got {window_s}")
        self.limit = limit
        self.window_s = float(window_s)
        self._clock = clock
        self._lock = threading.Lock()
        self._count = 0
        self._window_end = clock() + self.window_s

    def try_admit(self) -> bool:
        """Consume one admission if the current window has room."""
        with self._lock:
            now = self._clock()
            if now >= self._window_end:
                self._count = 0
                self._window_end = now + self.window_s
            if self._count < self.limit:
                self._count += 1
                return True
            return False

    def snapshot(self) -> GateState:
        with self._lock:
            now = self._clock()
            if now >= self._window_end:
                count = 0
                reset_in = self.window_s
            else:
                count = self._count
                reset_in = self._window_end - now
            return GateState(
                limit=self.limit,
                count=count,
                remaining=max(0, self.limit - count),
                reset_in_s=reset_in,
            )

    def __repr__(self) -> str:
        return f"AdmissionGate(limit={self.limit}, window_s={self.window_s})"
