"""Shared fixtures: a hand-cranked clock and a scheduler bound to it.

Nothing in the suite waits on real time.  ``advance(ms)`` moves the fake clock
forward and fires everything that became due, in order.
"""

from __future__ import annotations

import pytest

from lumi_timer import LoopTimerSource, PomodoroTimer


class FakeClock:
    """Monotonic clock that only moves when told to.

    Counts whole milliseconds so repeated small steps never drift.
    """

    def __init__(self, start_ms: int = 0):
        self.ms = start_ms

    def __call__(self) -> float:
        return self.ms / 1000.0


class Driver:
    """Bundles the fake clock with its scheduler."""

    def __init__(self):
        self.clock = FakeClock()
        self.source = LoopTimerSource(clock=self.clock)

    def advance(self, ms: int) -> int:
        self.clock.ms += ms
        return self.source.run_pending()

    def ticks(self, n: int) -> None:
        """Advance exactly n one-second steps."""
        for _ in range(n):
            self.advance(1000)


@pytest.fixture()
def driver() -> Driver:
    return Driver()


@pytest.fixture()
def source(driver) -> LoopTimerSource:
    return driver.source


@pytest.fixture()
def timer(source) -> PomodoroTimer:
    return PomodoroTimer(source)


@pytest.fixture()
def settings_path(tmp_path):
    return str(tmp_path / "lumi_settings.json")
