#!/usr/bin/env python3
"""
Lumi (terminal) — keyboard-driven focus timer
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

Usage:
    lumi-term                      (durations from ~/lumi_settings.json)
    lumi-term --focus 50 --break 10 --auto-break

Keys: r resume · p pause · space toggle · k skip · q / Ctrl+C quit
"""
from __future__ import annotations
import argparse, sys, time
from typing import Optional

from rich.align import Align
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from lumi_render import format_hms, progress_fraction
from lumi_settings import (KEY_FOCUS, KEY_BREAK, KEY_AUTO_FOCUS, KEY_AUTO_BREAK,
                           clamp_minutes, load_settings)
from lumi_timer import LoopTimerSource, Mode, PomodoroTimer, TimerSnapshot

POLL_SECONDS = 0.05
BAR_WIDTH = 40

COMPLETION_MESSAGES = {
    Mode.FOCUS: "🎉 Focus complete! Time for a break.",
    Mode.BREAK: "💪 Break over! Back to focus.",
}


# ─── Keyboard ────────────────────────────────────────────────
class KeyboardHandler:
    """Non-blocking single-key reads (cbreak mode on POSIX, msvcrt on Windows)."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdin
        self.old_settings = None
        self._msvcrt = None
        try:
            import msvcrt
            self._msvcrt = msvcrt
        except ImportError:
            self._setup_posix()

    def _setup_posix(self) -> None:
        import termios, tty
        try:
            fd = self.stream.fileno()
            self.old_settings = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        except (termios.error, OSError, ValueError):
            # not a tty (piped input); keys are still read, just line-buffered
            self.old_settings = None

    def get_key(self) -> Optional[str]:
        """Return one pressed key, or None if nothing is waiting."""
        if self._msvcrt is not None:
            if self._msvcrt.kbhit():
                key = self._msvcrt.getch()
                if isinstance(key, bytes):
                    key = key.decode("utf-8", errors="ignore")
                return key
            return None
        import select
        try:
            ready, _, _ = select.select([self.stream], [], [], 0)
        except (OSError, ValueError):
            return None
        if ready:
            return self.stream.read(1)
        return None

    def stop(self) -> None:
        """Restore terminal settings."""
        if self.old_settings is not None:
            import termios
            try:
                termios.tcsetattr(self.stream.fileno(), termios.TCSADRAIN, self.old_settings)
            except (OSError, termios.error):
                pass
            self.old_settings = None


# ─── Display ─────────────────────────────────────────────────
def render_panel(snap: TimerSnapshot) -> Panel:
    if snap.mode is Mode.FOCUS:
        header = Text("🎯 === FOCUS MODE ===", style="bold red", justify="center")
        colour = "red"
    else:
        header = Text("☕ === BREAK MODE ===", style="bold cyan", justify="center")
        colour = "cyan"

    clock = Text(f"Time: {format_hms(snap.remaining)}",
                 style=f"bold {colour}" if snap.is_running else "bold yellow",
                 justify="center")

    left = progress_fraction(snap.remaining, snap.total)
    filled = int(BAR_WIDTH * left)
    bar = Text("█" * filled + "░" * (BAR_WIDTH - filled), style=colour, justify="center")

    if snap.is_running:
        commands = "Commands: (p) Pause | (k) Skip to next"
    else:
        commands = "Commands: (r) Resume | (k) Skip to next"
    footer = Group(Text(commands, style="dim", justify="center"),
                   Text("Press Ctrl+C to quit", style="dim", justify="center"))

    body = Group(header, Text(""), clock, bar, Text(""), footer)
    title = "running" if snap.is_running else "paused"
    return Panel(Align.center(body), title=f"Lumi · {title}", border_style=colour)


# ─── Controls ────────────────────────────────────────────────
def handle_key(timer: PomodoroTimer, key: str) -> bool:
    """Apply one key press. Returns False when the user asked to quit."""
    if key in ("\x03", "q", "Q"):
        return False
    k = key.lower()
    if k == "r":
        timer.start()
    elif k == "p":
        timer.pause()
    elif k == " ":
        timer.toggle()
    elif k == "k":
        timer.skip()
    return True


def run(timer: PomodoroTimer, source: LoopTimerSource, console: Console,
        keyboard: KeyboardHandler, poll: float = POLL_SECONDS) -> None:
    with Live(render_panel(timer.snapshot()), console=console,
              refresh_per_second=10, transient=False) as live:
        timer.subscribe(lambda snap: live.update(render_panel(snap)))
        timer.on_complete(lambda done, _next: live.console.print(COMPLETION_MESSAGES[done]))
        try:
            while True:
                key = keyboard.get_key()
                if key is not None and not handle_key(timer, key):
                    break
                source.run_pending()
                time.sleep(poll)
        except KeyboardInterrupt:
            pass
    console.print("\nGoodbye! 👋")


# ─── CLI ─────────────────────────────────────────────────────
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="lumi-term", description="Lumi focus timer for the terminal")
    p.add_argument("--focus", type=int, metavar="MIN", help="focus minutes (1-120)")
    p.add_argument("--break", dest="break_minutes", type=int, metavar="MIN",
                   help="break minutes (1-60)")
    p.add_argument("--auto-break", action="store_true", help="start breaks automatically")
    p.add_argument("--auto-focus", action="store_true", help="start focus automatically")
    return p


def settings_for_args(args: argparse.Namespace, settings: dict) -> dict:
    """Overlay command-line overrides on loaded settings (session only)."""
    merged = dict(settings)
    if args.focus is not None:
        merged[KEY_FOCUS] = clamp_minutes("focus", args.focus) * 60
    if args.break_minutes is not None:
        merged[KEY_BREAK] = clamp_minutes("break", args.break_minutes) * 60
    if args.auto_break:
        merged[KEY_AUTO_BREAK] = True
    if args.auto_focus:
        merged[KEY_AUTO_FOCUS] = True
    return merged


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()
    source = LoopTimerSource()
    timer = PomodoroTimer.from_settings(source, settings_for_args(args, load_settings()))
    keyboard = KeyboardHandler()
    try:
        run(timer, source, console, keyboard)
    finally:
        keyboard.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
