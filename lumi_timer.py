"""
Lumi — focus/break countdown
━━━━━━━━━━━━━━━━━━━━━━━━━━━━

The Pomodoro state machine shared by the desktop and terminal variants.

Time never comes from the wall clock directly: every repeating tick and every
delayed callback goes through a timer source.  The desktop app hands in a
source backed by ``Tk.after``; the terminal app and the tests use
``LoopTimerSource``.  ``PomodoroTimer``, ``DockAnimator`` and
``VisibilityController`` all take one as ``source``.

Timer source contract (duck-typed):

    call_later(delay_ms, callback) -> handle
        Run ``callback()`` once, ``delay_ms`` milliseconds from now.
    call_every(period_ms, callback) -> handle
        Run ``callback()`` every ``period_ms`` until the handle is cancelled.
        The first call comes one period from now.
    now() -> float
        Current time in seconds on the source's own clock.
    handle.cancel()
        Idempotent.  A cancelled callback never fires, even when cancelled
        from inside its own call.
"""
from __future__ import annotations
import enum, heapq, itertools, time
from collections import namedtuple
from typing import Any, Callable, Optional

from lumi_settings import (KEY_FOCUS, KEY_BREAK, KEY_AUTO_FOCUS, KEY_AUTO_BREAK,
                           clamp_minutes, settings_from_values)

# ─── Named Constants ─────────────────────────────────────────
DEFAULT_FOCUS_SECONDS = 25 * 60
DEFAULT_BREAK_SECONDS = 5 * 60
TICK_MS = 1000                 # countdown step
AUTO_START_GRACE_MS = 1000     # pause on the finished state before auto-continuing


class Mode(enum.Enum):
    FOCUS = "focus"
    BREAK = "break"

    @property
    def other(self) -> "Mode":
        return Mode.BREAK if self is Mode.FOCUS else Mode.FOCUS


TimerSnapshot = namedtuple("TimerSnapshot", "mode remaining total is_running")


# ─── Timer Sources ───────────────────────────────────────────
class _Handle:
    """Cancellable reference to one scheduled callback."""
    __slots__ = ("callback", "period", "cancelled")

    def __init__(self, callback: Callable[[], Any], period: Optional[float] = None):
        self.callback = callback
        self.period = period
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class LoopTimerSource:
    """Cooperative scheduler driven by polling ``run_pending()``.

    Callbacks fire in due-time order.  While a callback runs, ``now()`` reports
    the time it was due rather than the clock, so work it schedules is anchored
    to the event and not to however late the poll happened.  Repeating
    callbacks re-arm at ``due + period``.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._queue: list = []
        self._seq = itertools.count()
        self._firing_at: Optional[float] = None

    def now(self) -> float:
        return self._firing_at if self._firing_at is not None else self.clock()

    def call_later(self, delay_ms: int, callback: Callable[[], Any]) -> _Handle:
        handle = _Handle(callback)
        self._push(self.now() + delay_ms / 1000.0, handle)
        return handle

    def call_every(self, period_ms: int, callback: Callable[[], Any]) -> _Handle:
        handle = _Handle(callback, period_ms / 1000.0)
        self._push(self.now() + handle.period, handle)
        return handle

    def _push(self, due: float, handle: _Handle) -> None:
        heapq.heappush(self._queue, (due, next(self._seq), handle))

    @property
    def pending(self) -> int:
        """Number of live (not cancelled) scheduled callbacks."""
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def next_due(self) -> Optional[float]:
        for due, _, h in sorted(self._queue):
            if not h.cancelled:
                return due
        return None

    def run_pending(self) -> int:
        """Fire everything due up to the current clock reading. Returns count fired."""
        deadline = self.clock()
        fired = 0
        while self._queue and self._queue[0][0] <= deadline:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            if handle.period is not None:
                self._push(due + handle.period, handle)
            self._firing_at = due
            try:
                handle.callback()
            finally:
                self._firing_at = None
            fired += 1
        return fired


# ─── State Machine ───────────────────────────────────────────
class PomodoroTimer:
    """Alternates focus and break intervals, counting down once per tick.

    ``total`` is captured when an interval begins, so changing the configured
    durations never disturbs a countdown that is already in flight.
    """

    def __init__(self, source, focus_seconds: int = DEFAULT_FOCUS_SECONDS,
                 break_seconds: int = DEFAULT_BREAK_SECONDS,
                 auto_start_focus: bool = False, auto_start_break: bool = False,
                 persist: Optional[Callable[[dict[str, Any]], None]] = None):
        self.source = source
        self.focus_seconds = int(focus_seconds)
        self.break_seconds = int(break_seconds)
        self.auto_start_focus = bool(auto_start_focus)
        self.auto_start_break = bool(auto_start_break)
        self.persist = persist

        self.mode = Mode.FOCUS
        self.total = self.focus_seconds
        self.remaining = self.total
        self.is_running = False

        self._ticker = None       # repeating tick handle, set iff is_running
        self._auto_start = None   # pending grace-delay start
        self._listeners: list[Callable[[TimerSnapshot], None]] = []
        self._complete_listeners: list[Callable[[Mode, Mode], None]] = []

    @classmethod
    def from_settings(cls, source, settings: dict[str, Any],
                      persist: Optional[Callable[[dict[str, Any]], None]] = None) -> "PomodoroTimer":
        return cls(source,
                   focus_seconds=settings[KEY_FOCUS],
                   break_seconds=settings[KEY_BREAK],
                   auto_start_focus=settings[KEY_AUTO_FOCUS],
                   auto_start_break=settings[KEY_AUTO_BREAK],
                   persist=persist)

    # ━━━ Observation ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def subscribe(self, fn: Callable[[TimerSnapshot], None]) -> None:
        self._listeners.append(fn)

    def on_complete(self, fn: Callable[[Mode, Mode], None]) -> None:
        """Register ``fn(finished_mode, next_mode)``; fired when an interval runs out."""
        self._complete_listeners.append(fn)

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(self.mode, self.remaining, self.total, self.is_running)

    @property
    def progress(self) -> float:
        return self.remaining / self.total if self.total else 0.0

    @property
    def auto_start_pending(self) -> bool:
        return self._auto_start is not None

    def duration_for(self, mode: Mode) -> int:
        return self.focus_seconds if mode is Mode.FOCUS else self.break_seconds

    def _notify(self) -> None:
        snap = self.snapshot()
        for fn in list(self._listeners):
            fn(snap)

    # ━━━ Controls ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def start(self) -> None:
        self._cancel_auto_start()
        if self.is_running:
            return
        self.is_running = True
        self._ticker = self.source.call_every(TICK_MS, self.tick)
        self._notify()

    def pause(self) -> None:
        self._cancel_auto_start()
        if not self.is_running:
            return
        self.is_running = False
        self._ticker.cancel()
        self._ticker = None
        self._notify()

    def toggle(self) -> None:
        if self.is_running:
            self.pause()
        else:
            self.start()

    def skip(self) -> None:
        """Jump to the next interval, stopped. Never auto-continues."""
        self.pause()
        self._advance_mode()
        self._notify()

    def tick(self) -> None:
        if not self.is_running:
            return
        if self.remaining > 0:
            self.remaining -= 1
            self._notify()
        else:
            self._interval_complete()

    def _interval_complete(self) -> None:
        finished = self.mode
        self.pause()
        self._advance_mode()
        self._notify()
        for fn in list(self._complete_listeners):
            fn(finished, self.mode)
        auto = self.auto_start_break if self.mode is Mode.BREAK else self.auto_start_focus
        if auto:
            self._auto_start = self.source.call_later(AUTO_START_GRACE_MS, self._auto_continue)

    def _advance_mode(self) -> None:
        self.mode = self.mode.other
        self.total = self.remaining = self.duration_for(self.mode)

    def _auto_continue(self) -> None:
        self._auto_start = None
        if not self.is_running:
            self.start()

    def _cancel_auto_start(self) -> None:
        if self._auto_start is not None:
            self._auto_start.cancel()
            self._auto_start = None

    # ━━━ Settings ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def update_settings(self, focus_minutes: int, break_minutes: int,
                        auto_start_focus: bool, auto_start_break: bool) -> None:
        """Apply new durations/flags (clamped), persist them, and reset a stopped timer."""
        self.focus_seconds = clamp_minutes("focus", focus_minutes) * 60
        self.break_seconds = clamp_minutes("break", break_minutes) * 60
        self.auto_start_focus = bool(auto_start_focus)
        self.auto_start_break = bool(auto_start_break)
        if self.persist is not None:
            self.persist(settings_from_values(self.focus_seconds, self.break_seconds,
                                              self.auto_start_focus, self.auto_start_break))
        if not self.is_running:
            self.total = self.remaining = self.duration_for(self.mode)
        self._notify()
