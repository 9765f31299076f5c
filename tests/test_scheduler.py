"""Unit tests for lumi_timer.LoopTimerSource."""

from __future__ import annotations

import pytest

from lumi_timer import LoopTimerSource


# ---------------------------------------------------------------------------
# One-shot callbacks
# ---------------------------------------------------------------------------


class TestCallLater:
    def test_fires_only_once_due(self, driver):
        calls = []
        driver.source.call_later(300, lambda: calls.append("x"))

        driver.advance(299)
        assert calls == []
        driver.advance(1)
        assert calls == ["x"]
        driver.advance(1000)
        assert calls == ["x"]

    def test_cancelled_never_fires(self, driver):
        calls = []
        handle = driver.source.call_later(100, lambda: calls.append("x"))
        handle.cancel()
        handle.cancel()  # idempotent

        driver.advance(500)
        assert calls == []
        assert driver.source.pending == 0

    def test_fire_in_due_order_after_a_long_gap(self, driver):
        calls = []
        driver.source.call_later(300, lambda: calls.append("b"))
        driver.source.call_later(100, lambda: calls.append("a"))
        driver.source.call_later(300, lambda: calls.append("c"))

        driver.advance(1000)
        assert calls == ["a", "b", "c"]


# ---------------------------------------------------------------------------
# Repeating callbacks
# ---------------------------------------------------------------------------


class TestCallEvery:
    def test_fires_every_period(self, driver):
        calls = []
        driver.source.call_every(1000, lambda: calls.append(driver.source.now()))

        driver.advance(3500)
        assert calls == [1.0, 2.0, 3.0]

    def test_cancel_from_inside_callback(self, driver):
        calls = []
        handle = None

        def cb():
            calls.append(1)
            if len(calls) == 2:
                handle.cancel()

        handle = driver.source.call_every(100, cb)
        driver.advance(1000)
        assert calls == [1, 1]
        assert driver.source.pending == 0


# ---------------------------------------------------------------------------
# Logical time while firing
# ---------------------------------------------------------------------------


class TestNow:
    def test_now_is_due_time_inside_callback(self, driver):
        seen = []
        driver.source.call_later(250, lambda: seen.append(driver.source.now()))

        driver.advance(2000)
        assert seen == [0.25]
        assert driver.source.now() == 2.0

    def test_nested_schedule_is_anchored_to_event(self, driver):
        seen = []

        def first():
            driver.source.call_later(100, lambda: seen.append(driver.source.now()))

        driver.source.call_later(100, first)
        driver.advance(1000)
        assert seen == [pytest.approx(0.2)]

    def test_next_due_skips_cancelled(self):
        clock = [5.0]
        src = LoopTimerSource(clock=lambda: clock[0])
        h = src.call_later(100, lambda: None)
        src.call_later(400, lambda: None)
        h.cancel()
        assert src.next_due() == pytest.approx(5.4)
