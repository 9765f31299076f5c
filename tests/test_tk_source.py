"""Tests for the desktop host's Tk-backed scheduling, without a display.

Coverage strategy:
    ``TkTimerSource`` only ever calls ``root.after`` and ``root.after_cancel``,
    so a fake root with a queue of after ids stands in for Tk.  The same fake
    drives the cursor poll loop and shutdown on a bare ``LumiApp`` instance.
"""

from __future__ import annotations

import importlib
import itertools
import sys

import pytest

from lumi_timer import Mode, PomodoroTimer

tk = pytest.importorskip("tkinter")


@pytest.fixture(scope="module")
def lumi():
    # Loading pystray needs a display; block it so the module imports tray-less.
    saved = sys.modules.get("pystray")
    had_pystray = "pystray" in sys.modules
    sys.modules["pystray"] = None
    try:
        return importlib.import_module("lumi")
    finally:
        if had_pystray:
            sys.modules["pystray"] = saved
        else:
            del sys.modules["pystray"]


class FakeRoot:
    """``after`` / ``after_cancel`` over a queue, advanced by hand in ms."""

    def __init__(self):
        self.ms = 0
        self.queue: dict[str, tuple[int, int, object]] = {}
        self._seq = itertools.count(1)
        self.quit_called = False

    def after(self, delay_ms, callback):
        n = next(self._seq)
        after_id = f"after#{n}"
        self.queue[after_id] = (self.ms + delay_ms, n, callback)
        return after_id

    def after_cancel(self, after_id):
        self.queue.pop(after_id, None)

    def advance(self, ms: int) -> None:
        target = self.ms + ms
        while True:
            due = [(d, n, k) for k, (d, n, _) in self.queue.items() if d <= target]
            if not due:
                break
            d, _, key = min(due)
            _, _, callback = self.queue.pop(key)
            self.ms = d
            callback()
        self.ms = target

    def quit(self):
        self.quit_called = True


class PointerlessRoot(FakeRoot):
    def winfo_pointerxy(self):
        raise tk.TclError("pointer is on another screen")


@pytest.fixture()
def root():
    return FakeRoot()


@pytest.fixture()
def source(lumi, root):
    return lumi.TkTimerSource(root)


# ---------------------------------------------------------------------------
# TkTimerSource
# ---------------------------------------------------------------------------


class TestCallLater:
    def test_fires_once(self, source, root):
        calls = []
        source.call_later(500, lambda: calls.append(root.ms))
        root.advance(499)
        assert calls == []
        root.advance(1)
        assert calls == [500]
        root.advance(5000)
        assert calls == [500]
        assert root.queue == {}

    def test_cancel_before_firing(self, source, root):
        calls = []
        handle = source.call_later(500, lambda: calls.append(1))
        handle.cancel()
        handle.cancel()
        root.advance(1000)
        assert calls == []
        assert root.queue == {}


class TestCallEvery:
    def test_repeats_until_cancelled_from_inside(self, source, root):
        calls = []

        def cb():
            calls.append(root.ms)
            if len(calls) == 3:
                handle.cancel()

        handle = source.call_every(1000, cb)
        root.advance(10_000)
        assert calls == [1000, 2000, 3000]
        assert root.queue == {}

    def test_cancel_from_outside(self, source, root):
        calls = []
        handle = source.call_every(250, lambda: calls.append(1))
        root.advance(600)
        handle.cancel()
        root.advance(5000)
        assert len(calls) == 2
        assert root.queue == {}


class TestTimerOnTk:
    def test_interval_with_auto_start_grace(self, source, root):
        timer = PomodoroTimer(source, focus_seconds=3, break_seconds=2, auto_start_break=True)
        timer.start()
        root.advance(3000)
        assert timer.remaining == 0 and timer.is_running

        root.advance(1000)
        assert timer.mode is Mode.BREAK
        assert not timer.is_running
        assert len(root.queue) == 1          # only the grace start

        root.advance(999)
        assert not timer.is_running
        root.advance(1)
        assert timer.is_running
        assert timer.remaining == 2
        assert len(root.queue) == 1          # only the ticker

        timer.pause()
        assert root.queue == {}

    def test_pause_inside_grace_cancels_auto_start(self, source, root):
        timer = PomodoroTimer(source, focus_seconds=1, auto_start_break=True)
        timer.start()
        root.advance(2000)
        assert timer.auto_start_pending
        timer.pause()
        root.advance(5000)
        assert not timer.is_running
        assert root.queue == {}


# ---------------------------------------------------------------------------
# Cursor poll and shutdown
# ---------------------------------------------------------------------------


def _bare_app(lumi, root):
    app = lumi.LumiApp.__new__(lumi.LumiApp)
    app.root = root
    app._poll_id = None
    return app


class TestCursorPoll:
    def test_failed_pointer_read_keeps_polling(self, lumi):
        root = PointerlessRoot()
        app = _bare_app(lumi, root)
        app._poll_cursor()
        assert app._poll_id in root.queue
        first = app._poll_id

        root.advance(lumi.SAMPLE_INTERVAL_MS)
        assert app._poll_id in root.queue
        assert app._poll_id != first

    def test_shutdown_cancels_poll(self, lumi):
        app = _bare_app(lumi, PointerlessRoot())
        app._poll_cursor()
        app._quit()
        app.root.advance(0)
        assert app.root.queue == {}
        assert app._poll_id is None
        assert app.root.quit_called
