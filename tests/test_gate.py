import math
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from crpt_api.errors import ConfigError
from crpt_api.gate import AdmissionGate, window_seconds


class _FakeClock:
    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def test_window_seconds_units() -> None:
    assert window_seconds("second") == 1.0
    assert window_seconds("minute") == 60.0
    assert window_seconds("Hours", 2) == 7200.0
    assert window_seconds("day") == 86400.0


@pytest.mark.parametrize(
    ("unit", "amount"),
    [("fortnight", 1), ("minute", 0), ("second", -1), ("minute", math.nan), ("hour", math.inf)],
)
def test_window_seconds_rejects_bad_input(unit: str, amount: float) -> None:
    with pytest.raises(ConfigError):
        window_seconds(unit, amount)


@pytest.mark.parametrize(
    ("limit", "window_s"),
    [(0, 60.0), (-3, 60.0), (3, 0.0), (3, -1.0), (3, math.nan), (3, math.inf)],
)
def test_gate_rejects_non_positive_config(limit: int, window_s: float) -> None:
    with pytest.raises(ConfigError):
        AdmissionGate(limit=limit, window_s=window_s)


@pytest.mark.parametrize("limit", [2.7, "3", True])
def test_gate_requires_integer_limit(limit: object) -> None:
    with pytest.raises(ConfigError, match="positive integer"):
        AdmissionGate(limit=limit, window_s=60.0)  # type: ignore[arg-type]


def test_gate_admits_up_to_limit_within_window() -> None:
    clock = _FakeClock()
    gate = AdmissionGate(limit=3, window_s=60.0, clock=clock)

    results = []
    for _ in range(10):
        results.append(gate.try_admit())
        clock.advance(1.0)

    assert results == [True, True, True] + [False] * 7


def test_gate_denial_leaves_state_unchanged() -> None:
    clock = _FakeClock()
    gate = AdmissionGate(limit=2, window_s=60.0, clock=clock)
    assert gate.try_admit()
    assert gate.try_admit()
    before = gate.snapshot()

    assert gate.try_admit() is False

    assert gate.snapshot() == before
    assert before.count == 2
    assert before.remaining == 0


def test_gate_rolls_window_after_expiry() -> None:
    clock = _FakeClock()
    gate = AdmissionGate(limit=3, window_s=60.0, clock=clock)
    assert [gate.try_admit() for _ in range(4)] == [True, True, True, False]

    clock.advance(60.0)

    assert [gate.try_admit() for _ in range(4)] == [True, True, True, False]


def test_gate_recomputes_window_from_now_after_idle_period() -> None:
    clock = _FakeClock()
    gate = AdmissionGate(limit=1, window_s=10.0, clock=clock)
    assert gate.try_admit()

    clock.advance(1234.5)
    assert gate.try_admit()

    # the new window runs from the instant of the reset, not from a multiple of 10s
    clock.advance(9.9)
    assert gate.try_admit() is False
    assert gate.snapshot().reset_in_s == pytest.approx(0.1)
    clock.advance(0.2)
    assert gate.try_admit()


def test_snapshot_reports_fresh_window_once_expired() -> None:
    clock = _FakeClock()
    gate = AdmissionGate(limit=2, window_s=5.0, clock=clock)
    gate.try_admit()
    clock.advance(5.0)

    state = gate.snapshot()

    assert state.count == 0
    assert state.remaining == 2


def test_concurrent_admissions_are_bounded() -> None:
    limit = 20
    attempts = limit * 3
    for _ in range(5):
        gate = AdmissionGate(limit=limit, window_s=3600.0)
        barrier = threading.Barrier(attempts)

        def _attempt(
            _: int, gate: AdmissionGate = gate, barrier: threading.Barrier = barrier
        ) -> bool:
            barrier.wait()
            return gate.try_admit()

        with ThreadPoolExecutor(max_workers=attempts) as executor:
            results = list(executor.map(_attempt, range(attempts)))

        assert results.count(True) == limit
        assert results.count(False) == limit * 2
