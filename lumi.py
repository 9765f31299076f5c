#!/usr/bin/env python3
"""
Lumi — Peeking Focus Timer
━━━━━━━━━━━━━━━━━━━━━━━━━━

A small always-on-top Pomodoro card that docks in the bottom-right corner.
Hit the hide button and it slides to the screen edge, leaving a thin
progress strip; touch the strip with the cursor and it peeks back out.
A pair of eyes on the card follows the cursor around the screen.

Features:
  - Focus / break intervals with pause, resume and skip
  - Optional auto-start of the next interval
  - Durations and auto-start flags persist between sessions
  - Tray icon with the same controls (when pystray is installed)

Usage:
    python lumi.py
    python lumi.py --test   (1-minute intervals, settings not saved)
    pythonw lumi.py         (Windows — no console)
"""
from __future__ import annotations
import sys, platform
import argparse

# ─── tkinter check ────────────────────────────────────────────
try:
    import tkinter as tk
except ImportError:
    _s = platform.system()
    print("Error: tkinter is required.")
    if _s == "Darwin":
        print("  brew install python-tk@3.12  (or use python.org installer)")
    elif _s == "Linux":
        print("  sudo apt install python3-tk")
    sys.exit(1)

# ─── Imports ──────────────────────────────────────────────────
import threading, time
from typing import Any, Callable, Optional

from PIL import ImageTk

try:
    import pystray
    HAS_TRAY = True
except ImportError:
    HAS_TRAY = False

from lumi_dock import (SAMPLE_INTERVAL_MS, CursorSample, DockAnimator,
                       VisibilityController, dock_layout, eye_offset)
from lumi_render import (FACE_SIZE, draw_app_icon, draw_face, draw_indicator,
                         format_clock, palette, progress_fraction)
from lumi_settings import (KEY_FOCUS, KEY_BREAK, adjust_minutes, load_settings,
                           parse_minutes, save_settings)
from lumi_timer import Mode, PomodoroTimer, TimerSnapshot

# ─── Platform ────────────────────────────────────────────────
IS_MAC = platform.system() == "Darwin"
IS_WIN = platform.system() == "Windows"
FONT = "Helvetica Neue" if IS_MAC else "Segoe UI" if IS_WIN else "DejaVu Sans"
MONO = "Menlo" if IS_MAC else "Consolas" if IS_WIN else "DejaVu Sans Mono"

if IS_WIN:
    try:
        import ctypes
        # Enable high-DPI awareness for crisp rendering
        try:
            ctypes.windll.shcore.SetProcessDpiAwareness(1)
        except AttributeError:
            ctypes.windll.user32.SetProcessDPIAware()
    except (ImportError, OSError):
        pass

# ─── Named Constants ─────────────────────────────────────────
WINDOW_ALPHA = 0.97
TEST_INTERVAL_SECONDS = 60
TRAY_ICON_SIZE = 64

COMPLETION_MESSAGES = {
    Mode.FOCUS: "Focus complete! Time for a break.",
    Mode.BREAK: "Break over! Back to focus.",
}


# ─── Tk timer source ─────────────────────────────────────────
class _AfterHandle:
    """Cancellable wrapper around a Tk ``after`` id."""

    def __init__(self, root: tk.Misc):
        self.root = root
        self.after_id = None
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True
        if self.after_id is not None:
            try:
                self.root.after_cancel(self.after_id)
            except (tk.TclError, ValueError):
                pass
            self.after_id = None


class TkTimerSource:
    """Timer source backed by the Tk event loop."""

    def __init__(self, root: tk.Misc):
        self.root = root

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay_ms: int, callback: Callable[[], Any]) -> _AfterHandle:
        handle = _AfterHandle(self.root)

        def fire():
            handle.after_id = None
            if not handle.cancelled:
                callback()

        handle.after_id = self.root.after(delay_ms, fire)
        return handle

    def call_every(self, period_ms: int, callback: Callable[[], Any]) -> _AfterHandle:
        handle = _AfterHandle(self.root)

        def fire():
            if handle.cancelled:
                return
            handle.after_id = self.root.after(period_ms, fire)
            callback()

        handle.after_id = self.root.after(period_ms, fire)
        return handle


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
class LumiApp:

    def __init__(self, test_mode: bool = False):
        self.root = tk.Tk()
        self.root.title("Lumi")
        self.root.overrideredirect(True)
        self.root.attributes("-topmost", True)
        try:
            self.root.attributes("-alpha", WINDOW_ALPHA)
        except tk.TclError:
            pass

        self.test_mode = test_mode
        settings = load_settings()
        persist = save_settings
        if test_mode:
            settings[KEY_FOCUS] = settings[KEY_BREAK] = TEST_INTERVAL_SECONDS
            persist = None

        self.source = TkTimerSource(self.root)
        self.timer = PomodoroTimer.from_settings(self.source, settings, persist=persist)

        self.screen_w = self.root.winfo_screenwidth()
        self.screen_h = self.root.winfo_screenheight()
        self.layout = dock_layout(self.screen_w, self.screen_h)
        self.root.geometry(f"{self.layout.width}x{self.layout.height}"
                           f"+{self.layout.normal_x}+{self.layout.normal_y}")

        self.animator = DockAnimator(self.source, self._window_pos, self._move_window)
        self.dock = VisibilityController(
            self.source,
            show_window=lambda: self.animator.animate_to(self.layout.normal_x, self.layout.normal_y),
            hide_window=lambda: self.animator.animate_to(self.layout.hidden_x, self.layout.hidden_y),
            on_change=self._on_dock_change)

        self._eye = (0.0, 0.0)
        self._mode_drawn = None
        # keep PhotoImages alive
        self._face_photo = None
        self._strip_photo = None
        self._themed: list[tuple[tk.Widget, dict[str, str]]] = []
        self._settings_open = False
        self._poll_id = None

        self._build_card()
        self._build_settings_panel()
        self._build_indicator()
        self._on_dock_change(self.dock)

        self.timer.subscribe(self._on_timer_change)
        self.timer.on_complete(self._on_interval_complete)
        self.root.protocol("WM_DELETE_WINDOW", self._quit)
        self.root.bind("<Button-3>", self._context_menu)

        if HAS_TRAY:
            threading.Thread(target=self._run_tray, daemon=True).start()

        self._print_startup()
        self._render(self.timer.snapshot())
        self._poll_cursor()

    def run(self) -> None:
        self.root.mainloop()

    # ━━━ Layout ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def _theme(self, widget: tk.Widget, **roles: str) -> tk.Widget:
        """Register widget options (bg/fg/...) to recolour on mode change."""
        self._themed.append((widget, roles))
        return widget

    def _btn(self, parent: tk.Widget, text: str, cmd: Callable, primary: bool = False,
             size: int = 12) -> tk.Button:
        b = tk.Button(parent, text=text, font=(FONT, size, "bold" if primary else "normal"),
                      relief="flat", bd=0, padx=8, pady=2, cursor="hand2", command=cmd)
        role = "btn_pri" if primary else "btn"
        return self._theme(b, bg=role, fg="text", activebackground=role, activeforeground="text")

    def _build_card(self) -> None:
        self.card = self._theme(tk.Frame(self.root, padx=14, pady=12), bg="card")
        self.card.pack(fill="both", expand=True)

        self.face_label = self._theme(tk.Label(self.card, bd=0), bg="card")
        self.face_label.grid(row=0, column=0, rowspan=3, padx=(0, 14))

        self.mode_label = self._theme(tk.Label(self.card, font=(FONT, 10, "bold")),
                                      bg="card", fg="text_dim")
        self.mode_label.grid(row=0, column=1, sticky="w")

        self.time_label = self._theme(tk.Label(self.card, font=(MONO, 30, "bold")),
                                      bg="card", fg="text")
        self.time_label.grid(row=1, column=1, sticky="w")

        controls = self._theme(tk.Frame(self.card), bg="card")
        controls.grid(row=2, column=1, sticky="w", pady=(4, 0))
        self.start_btn = self._btn(controls, "▶", lambda: self._control(self.timer.toggle),
                                   primary=True, size=14)
        self.start_btn.pack(side="left")
        self._btn(controls, "⏭", lambda: self._control(self.timer.skip)).pack(side="left", padx=(6, 0))

        dock_row = self._theme(tk.Frame(self.card), bg="card")
        dock_row.grid(row=3, column=0, columnspan=2, sticky="e", pady=(10, 0))
        self._btn(dock_row, "⚙", lambda: self._control(self._toggle_settings), size=10).pack(side="left")
        self.hide_btn = self._btn(dock_row, "⇥", self.dock.toggle_hidden, size=10)
        self.hide_btn.pack(side="left", padx=(6, 0))
        self.pin_btn = self._btn(dock_row, "📌", self.dock.pin, size=10)
        self.pin_btn.pack(side="left", padx=(6, 0))

    def _build_indicator(self) -> None:
        self.strip = self._theme(tk.Label(self.root, bd=0), bg="card")

    def _build_settings_panel(self) -> None:
        p = self.panel = self._theme(tk.Frame(self.root, padx=14, pady=10), bg="card")

        self._minutes = {
            "focus": tk.IntVar(value=self.timer.focus_seconds // 60),
            "break": tk.IntVar(value=self.timer.break_seconds // 60),
        }
        self._value_labels: dict[str, tk.Label] = {}
        self._entries: dict[str, tk.Entry] = {}

        for row, (kind, title) in enumerate([("focus", "Focus"), ("break", "Break")]):
            self._theme(tk.Label(p, text=title, font=(FONT, 10)), bg="card", fg="text_dim"
                        ).grid(row=row, column=0, sticky="w", pady=2)
            self._btn(p, "−", lambda k=kind: self._control(lambda: self._step(k, -1)), size=10).grid(row=row, column=1)
            lbl = self._theme(tk.Label(p, width=5, font=(MONO, 11, "bold"), cursor="xterm"),
                              bg="card", fg="text")
            lbl.grid(row=row, column=2)
            lbl.bind("<Button-1>", lambda e, k=kind: self._enable_edit(k))
            ent = self._theme(tk.Entry(p, width=5, font=(MONO, 11), relief="flat", justify="center"),
                              bg="btn", fg="text", insertbackground="text")
            ent.bind("<Return>", lambda e, k=kind: self._finish_edit(k))
            ent.bind("<FocusOut>", lambda e, k=kind: self._finish_edit(k))
            ent.bind("<Escape>", lambda e, k=kind: self._cancel_edit(k))
            self._btn(p, "+", lambda k=kind: self._control(lambda: self._step(k, 1)), size=10).grid(row=row, column=3)
            self._value_labels[kind] = lbl
            self._entries[kind] = ent
            self._refresh_value(kind)

        self._auto_break = tk.BooleanVar(value=self.timer.auto_start_break)
        self._auto_focus = tk.BooleanVar(value=self.timer.auto_start_focus)
        for row, (var, text) in enumerate([(self._auto_break, "Auto-start breaks"),
                                           (self._auto_focus, "Auto-start focus")], start=2):
            self._theme(tk.Checkbutton(p, text=text, variable=var, font=(FONT, 9), bd=0,
                                       highlightthickness=0, command=self._control),
                        bg="card", fg="text", selectcolor="btn", activebackground="card",
                        activeforeground="text").grid(row=row, column=0, columnspan=4, sticky="w")

        bf = self._theme(tk.Frame(p), bg="card")
        bf.grid(row=4, column=0, columnspan=4, sticky="e", pady=(6, 0))
        self._btn(bf, "Cancel", lambda: self._control(self._toggle_settings), size=9).pack(side="left")
        self._btn(bf, "Save", lambda: self._control(self._save_settings), primary=True,
                  size=9).pack(side="left", padx=(6, 0))

    # ━━━ Settings Panel ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def _toggle_settings(self) -> None:
        if self._settings_open:
            self.panel.place_forget()
            self._settings_open = False
            return
        # start from what the timer is actually using
        self._minutes["focus"].set(self.timer.focus_seconds // 60)
        self._minutes["break"].set(self.timer.break_seconds // 60)
        self._auto_break.set(self.timer.auto_start_break)
        self._auto_focus.set(self.timer.auto_start_focus)
        for kind in self._minutes:
            self._refresh_value(kind)
        self.panel.place(x=0, y=0, relwidth=1, relheight=1)
        self.panel.lift()
        self._settings_open = True

    def _refresh_value(self, kind: str) -> None:
        self._value_labels[kind].config(text=f"{self._minutes[kind].get()}m")

    def _step(self, kind: str, delta: int) -> None:
        self._minutes[kind].set(adjust_minutes(kind, self._minutes[kind].get(), delta))
        self._refresh_value(kind)

    def _enable_edit(self, kind: str) -> None:
        lbl, ent = self._value_labels[kind], self._entries[kind]
        info = lbl.grid_info()
        ent.delete(0, "end")
        ent.insert(0, str(self._minutes[kind].get()))
        lbl.grid_remove()
        ent.grid(row=info["row"], column=info["column"])
        ent.focus_set()
        ent.select_range(0, "end")

    def _close_edit(self, kind: str) -> None:
        lbl, ent = self._value_labels[kind], self._entries[kind]
        if not ent.winfo_ismapped():
            return
        info = ent.grid_info()
        ent.grid_remove()
        lbl.grid(row=info["row"], column=info["column"])
        self._refresh_value(kind)

    def _finish_edit(self, kind: str) -> None:
        if not self._entries[kind].winfo_ismapped():
            return
        self._minutes[kind].set(parse_minutes(self._entries[kind].get(), kind))
        self._close_edit(kind)

    def _cancel_edit(self, kind: str) -> None:
        # Escape: keep the value shown before editing
        self._close_edit(kind)

    def _save_settings(self) -> None:
        for kind in self._entries:
            self._finish_edit(kind)
        self.timer.update_settings(self._minutes["focus"].get(), self._minutes["break"].get(),
                                   self._auto_focus.get(), self._auto_break.get())
        if self.test_mode:
            print("  [!] TEST MODE: settings applied but not saved")
        self._toggle_settings()

    # ━━━ Controls ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def _control(self, action: Optional[Callable[[], Any]] = None) -> None:
        """Controls other than hide re-pin the dock before acting."""
        self.dock.interact(action or (lambda: None))

    def _context_menu(self, event) -> None:
        menu = tk.Menu(self.root, tearoff=0)
        menu.add_command(label="Pause" if self.timer.is_running else "Start",
                         command=lambda: self._control(self.timer.toggle))
        menu.add_command(label="Skip", command=lambda: self._control(self.timer.skip))
        menu.add_command(label="Settings", command=lambda: self._control(self._toggle_settings))
        menu.add_separator()
        menu.add_command(label="Show" if self.dock.is_hidden else "Hide",
                         command=self.dock.toggle_hidden)
        menu.add_command(label="Pin", command=self.dock.pin)
        menu.add_separator()
        menu.add_command(label="Quit", command=self._quit)
        try:
            menu.tk_popup(event.x_root, event.y_root)
        finally:
            menu.grab_release()

    # ━━━ Window / Cursor ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def _window_pos(self) -> tuple[int, int]:
        return self.root.winfo_x(), self.root.winfo_y()

    def _move_window(self, x: int, y: int) -> None:
        try:
            self.root.geometry(f"{self.layout.width}x{self.layout.height}+{x}+{y}")
        except tk.TclError:
            pass

    def _poll_cursor(self) -> None:
        """~30 Hz: feed the dock controller and point the eyes at the cursor."""
        try:
            self._sample_cursor()
        finally:
            try:
                self._poll_id = self.root.after(SAMPLE_INTERVAL_MS, self._poll_cursor)
            except tk.TclError:
                self._poll_id = None

    def _sample_cursor(self) -> None:
        try:
            mx, my = self.root.winfo_pointerxy()
            wx, wy = self.root.winfo_x(), self.root.winfo_y()
            fx = self.face_label.winfo_rootx() + FACE_SIZE / 2
            fy = self.face_label.winfo_rooty() + FACE_SIZE / 2
        except tk.TclError:
            # skip this sample only
            return

        self.dock.on_sample(CursorSample(
            mouse_x=mx, mouse_y=my,
            window_x=wx, window_y=wy,
            window_width=self.layout.width, window_height=self.layout.height,
            screen_width=self.screen_w,
            indicator_y=self.layout.normal_y, indicator_height=self.layout.height))

        if not self.dock.is_hidden:
            dx, dy = eye_offset(mx, my, fx, fy)
            eye = (round(dx, 1), round(dy, 1))
            if eye != self._eye:
                self._eye = eye
                self._draw_face(self.timer.snapshot())

    def _on_dock_change(self, dock: VisibilityController) -> None:
        if dock.is_hidden:
            if self._settings_open:
                self._toggle_settings()
            self.card.pack_forget()
            self.strip.pack(side="left", fill="y")
        else:
            self.strip.pack_forget()
            self.card.pack(fill="both", expand=True)
        self.pin_btn.config(relief="sunken" if dock.is_pinned else "flat")

    # ━━━ Rendering ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def _apply_palette(self, mode: Mode) -> None:
        pal = palette(mode)
        for widget, roles in self._themed:
            try:
                widget.config(**{opt: pal[role] for opt, role in roles.items()})
            except tk.TclError:
                pass
        self._mode_drawn = mode

    def _draw_face(self, snap: TimerSnapshot) -> None:
        img = draw_face(snap.mode, progress_fraction(snap.remaining, snap.total), *self._eye)
        self._face_photo = ImageTk.PhotoImage(img)
        self.face_label.config(image=self._face_photo)

    def _render(self, snap: TimerSnapshot) -> None:
        if snap.mode is not self._mode_drawn:
            self._apply_palette(snap.mode)
        progress = progress_fraction(snap.remaining, snap.total)
        self._draw_face(snap)
        self._strip_photo = ImageTk.PhotoImage(draw_indicator(snap.mode, progress,
                                                              height=self.layout.height))
        self.strip.config(image=self._strip_photo)
        self.mode_label.config(text="FOCUS" if snap.mode is Mode.FOCUS else "BREAK")
        self.time_label.config(text=format_clock(snap.remaining))
        self.start_btn.config(text="⏸" if snap.is_running else "▶")

    def _on_timer_change(self, snap: TimerSnapshot) -> None:
        try:
            self._render(snap)
        except tk.TclError:
            return
        self._update_tray_icon()

    def _on_interval_complete(self, finished: Mode, upcoming: Mode) -> None:
        print(f"  [OK] {COMPLETION_MESSAGES[finished]}")
        try:
            self.root.bell()
        except tk.TclError:
            pass

    def _print_startup(self) -> None:
        t = self.timer
        print("\n  Lumi — peeking focus timer")
        print(f"    Focus {t.focus_seconds // 60} min · Break {t.break_seconds // 60} min")
        print(f"    Auto-start breaks: {'on' if t.auto_start_break else 'off'}"
              f" · focus: {'on' if t.auto_start_focus else 'off'}")
        if self.test_mode:
            print("\n  [!] TEST MODE: 1-minute intervals, settings not saved")
        if not HAS_TRAY:
            print("  [!] pystray not installed — tray icon disabled")
        print()

    # ━━━ System Tray ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def _tray_title(self) -> str:
        snap = self.timer.snapshot()
        label = "Focus" if snap.mode is Mode.FOCUS else "Break"
        state = format_clock(snap.remaining) if snap.is_running else "paused"
        return f"Lumi — {label} {state}"

    def _update_tray_icon(self) -> None:
        """Update tray icon to reflect mode and running state."""
        if HAS_TRAY and hasattr(self, "tray"):
            snap = self.timer.snapshot()
            self.tray.icon = draw_app_icon(TRAY_ICON_SIZE, snap.mode, snap.is_running)
            self.tray.title = self._tray_title()

    def _run_tray(self) -> None:
        img = draw_app_icon(TRAY_ICON_SIZE, self.timer.mode, self.timer.is_running)
        later = self.root.after

        menu = pystray.Menu(
            # Hidden default item for left-click
            pystray.MenuItem("Show", lambda icon, item: later(0, self.dock.pin),
                             default=True, visible=False),
            pystray.MenuItem(
                lambda item: "⏸  Pause" if self.timer.is_running else "▶  Start",
                lambda icon, item: later(0, lambda: self._control(self.timer.toggle))),
            pystray.MenuItem("⏭  Skip",
                lambda icon, item: later(0, lambda: self._control(self.timer.skip))),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Show", lambda icon, item: later(0, self.dock.pin)),
            pystray.MenuItem("Hide", lambda icon, item: later(0, self.dock.unpin_and_hide)),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Quit", self._quit),
        )
        self.tray = pystray.Icon("lumi", img, self._tray_title(), menu)
        self.tray.run()

    def _quit(self, icon: Optional[Any] = None, item: Optional[Any] = None) -> None:
        if HAS_TRAY and hasattr(self, "tray"):
            self.tray.stop()
        # may run on the tray thread; Tk calls happen on the Tk thread
        self.root.after(0, self._shutdown)

    def _shutdown(self) -> None:
        if self._poll_id is not None:
            try:
                self.root.after_cancel(self._poll_id)
            except (tk.TclError, ValueError):
                pass
            self._poll_id = None
        self.root.quit()


# ─── CLI ─────────────────────────────────────────────────────
def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Lumi peeking focus timer")
    parser.add_argument("--test", action="store_true",
                        help="Use 1-minute intervals and don't save settings")
    args = parser.parse_args(argv)
    LumiApp(test_mode=args.test).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
