"""
Peeking dock: decides when the desktop window slides to the screen edge
and back, from cursor samples taken ~30 times a second.

Nothing here touches tkinter.  The window host supplies a timer source,
position getter/setter and show/hide callbacks.
"""
from __future__ import annotations
import math
from collections import namedtuple
from typing import Any, Callable, Optional

# ─── Named Constants ─────────────────────────────────────────
WINDOW_WIDTH = 320
WINDOW_HEIGHT = 180
DOCK_PADDING = 32            # gap from the bottom-right corner of the work area
INDICATOR_WIDTH = 24         # strip left on screen while hidden

TRANSITION_MS = 280          # slide duration
FRAME_MS = 16                # slide step
ANIMATION_LOCK_MS = 500      # no new cursor-driven transition while locked
HIDE_DEBOUNCE_MS = 300
SAMPLE_INTERVAL_MS = 33

EDGE_ZONE_WIDTH = 50         # indicator zone: rightmost px of the screen
EDGE_ZONE_SLACK = 30         # ...and this much above/below the indicator
WINDOW_SLACK = 20            # hover margin around the window

EYE_MAX_OFFSET = 10
EYE_FALLOFF = 40


CursorSample = namedtuple("CursorSample", [
    "mouse_x", "mouse_y",
    "window_x", "window_y", "window_width", "window_height",
    "screen_width", "indicator_y", "indicator_height",
])

DockLayout = namedtuple("DockLayout", "width height normal_x normal_y hidden_x hidden_y")


def dock_layout(screen_width: int, screen_height: int,
                width: int = WINDOW_WIDTH, height: int = WINDOW_HEIGHT) -> DockLayout:
    """Resting positions for the visible window and the edge indicator."""
    normal_x = screen_width - width - DOCK_PADDING
    normal_y = screen_height - height - DOCK_PADDING
    return DockLayout(width, height, normal_x, normal_y,
                      screen_width - INDICATOR_WIDTH, normal_y)


def in_indicator_zone(s: CursorSample) -> bool:
    return (s.mouse_x >= s.screen_width - EDGE_ZONE_WIDTH and
            s.indicator_y - EDGE_ZONE_SLACK <= s.mouse_y
            <= s.indicator_y + s.indicator_height + EDGE_ZONE_SLACK)


def over_window(s: CursorSample) -> bool:
    return (s.window_x - WINDOW_SLACK <= s.mouse_x
            <= s.window_x + s.window_width + WINDOW_SLACK and
            s.window_y - WINDOW_SLACK <= s.mouse_y
            <= s.window_y + s.window_height + WINDOW_SLACK)


def eye_offset(mouse_x: float, mouse_y: float,
               center_x: float, center_y: float) -> tuple[float, float]:
    """Pupil displacement toward the cursor, easing off with distance."""
    dx = mouse_x - center_x
    dy = mouse_y - center_y
    angle = math.atan2(dy, dx)
    distance = min(EYE_MAX_OFFSET, math.hypot(dx, dy) / EYE_FALLOFF)
    return math.cos(angle) * distance, math.sin(angle) * distance


def ease_out_cubic(t: float) -> float:
    return 1 - (1 - t) ** 3


# ─── Window Slide ────────────────────────────────────────────
class DockAnimator:
    """Slides a fixed-size window between positions.

    Asking for the target already in flight is a no-op.  Any other target
    cancels the running slide and starts over from where the window is now.
    """

    def __init__(self, source, get_position: Callable[[], tuple[int, int]],
                 set_position: Callable[[int, int], None]):
        self.source = source
        self.get_position = get_position
        self.set_position = set_position
        self.target: Optional[tuple[int, int]] = None
        self._step = None

    @property
    def in_flight(self) -> bool:
        return self._step is not None

    def cancel(self) -> None:
        if self._step is not None:
            self._step.cancel()
            self._step = None
        self.target = None

    def animate_to(self, x: int, y: int, duration_ms: int = TRANSITION_MS) -> None:
        if self.target == (x, y):
            return
        self.cancel()
        self.target = (x, y)
        start_x, start_y = self.get_position()
        started = self.source.now()

        def step():
            self._step = None
            elapsed_ms = (self.source.now() - started) * 1000
            progress = min(elapsed_ms / duration_ms, 1.0) if duration_ms > 0 else 1.0
            eased = ease_out_cubic(progress)
            if progress < 1:
                self.set_position(round(start_x + (x - start_x) * eased),
                                  round(start_y + (y - start_y) * eased))
                self._step = self.source.call_later(FRAME_MS, step)
            else:
                self.set_position(x, y)
                self.target = None

        step()


# ─── Auto Hide / Show ────────────────────────────────────────
class VisibilityController:
    """Pinned / hidden / in-transition bookkeeping for the dock.

    The window starts pinned and visible.  Once unpinned it hides itself
    after the cursor has been away for ``HIDE_DEBOUNCE_MS`` and comes back
    when the cursor touches the indicator zone at the screen edge.
    """

    def __init__(self, source, show_window: Callable[[], Any], hide_window: Callable[[], Any],
                 on_change: Optional[Callable[["VisibilityController"], None]] = None):
        self.source = source
        self.show_window = show_window
        self.hide_window = hide_window
        self.on_change = on_change

        self.is_hidden = False
        self.is_pinned = True
        self.is_animating = False
        self._pending_hide = None
        self._unlock = None

    @property
    def hide_pending(self) -> bool:
        return self._pending_hide is not None

    # ━━━ Commands ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def _show(self) -> None:
        self.is_hidden = False
        self.show_window()
        self._changed()

    def _hide(self) -> None:
        self.is_hidden = True
        self.hide_window()
        self._changed()

    def _changed(self) -> None:
        if self.on_change:
            self.on_change(self)

    def _lock_animation(self) -> None:
        self.is_animating = True
        if self._unlock is not None:
            self._unlock.cancel()
        self._unlock = self.source.call_later(ANIMATION_LOCK_MS, self._release_lock)

    def _release_lock(self) -> None:
        self._unlock = None
        self.is_animating = False

    def _cancel_pending_hide(self) -> None:
        if self._pending_hide is not None:
            self._pending_hide.cancel()
            self._pending_hide = None

    # ━━━ User Requests ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def pin(self) -> None:
        """Suppress auto-hide; pinning always reveals the window."""
        self.is_pinned = True
        self._cancel_pending_hide()
        if self.is_hidden:
            self._show()
        else:
            self._changed()

    def unpin_and_hide(self) -> None:
        self.is_pinned = False
        self._cancel_pending_hide()
        self._hide()

    def request_show(self) -> None:
        """Reveal without pinning, so leaving the window hides it again."""
        self._show()

    def toggle_hidden(self) -> None:
        if self.is_hidden:
            self.request_show()
        else:
            self.unpin_and_hide()

    def interact(self, action: Callable[[], Any]) -> Any:
        """Run a control's action, re-pinning first if auto-hide is active."""
        if not self.is_pinned:
            self.pin()
        return action()

    # ━━━ Cursor Samples ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def on_sample(self, sample: CursorSample) -> None:
        if self.is_pinned:
            return
        near_edge = in_indicator_zone(sample)
        hovering = over_window(sample)

        if hovering or near_edge:
            self._cancel_pending_hide()

        if self.is_hidden and not self.is_animating:
            if near_edge:
                self._lock_animation()
                self._show()
        elif not self.is_hidden and not self.is_animating:
            if not hovering and not near_edge and self._pending_hide is None:
                self._pending_hide = self.source.call_later(HIDE_DEBOUNCE_MS, self._debounced_hide)

    def _debounced_hide(self) -> None:
        self._pending_hide = None
        # state may have moved on during the debounce window
        if not self.is_pinned and not self.is_hidden and not self.is_animating:
            self._lock_animation()
            self._hide()
