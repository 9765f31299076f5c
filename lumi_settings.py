"""Persisted timer settings: four scalar values in a JSON file in the home directory."""
from __future__ import annotations
import json, math, os
from typing import Any, Optional

SETTINGS_FILE = os.path.join(os.path.expanduser("~"), "lumi_settings.json")

KEY_FOCUS      = "lumi_focusDuration"    # seconds
KEY_BREAK      = "lumi_breakDuration"    # seconds
KEY_AUTO_FOCUS = "lumi_autoStartFocus"
KEY_AUTO_BREAK = "lumi_autoStartBreak"

DEFAULT_SETTINGS = {
    KEY_FOCUS: 25 * 60,
    KEY_BREAK: 5 * 60,
    KEY_AUTO_FOCUS: False,
    KEY_AUTO_BREAK: False,
}

# (min, max) minutes accepted by the settings panel
MINUTE_LIMITS = {
    "focus": (1, 120),
    "break": (1, 60),
}


def clamp_minutes(kind: str, value: int) -> int:
    lo, hi = MINUTE_LIMITS[kind]
    return max(lo, min(hi, int(value)))


def adjust_minutes(kind: str, value: int, delta: int) -> int:
    """Stepper button: add delta and keep within range."""
    return clamp_minutes(kind, int(value) + delta)


def parse_minutes(text: Any, kind: str) -> int:
    """Parse a typed minutes value like parseInt: leading digits, else 1."""
    s = str(text).strip()
    digits = ""
    for i, ch in enumerate(s):
        if ch.isdigit() or (i == 0 and ch in "+-"):
            digits += ch
        else:
            break
    try:
        value = int(digits)
    except ValueError:
        value = 0
    return clamp_minutes(kind, value or 1)


def settings_from_values(focus_seconds: int, break_seconds: int,
                         auto_start_focus: bool, auto_start_break: bool) -> dict[str, Any]:
    return {
        KEY_FOCUS: int(focus_seconds),
        KEY_BREAK: int(break_seconds),
        KEY_AUTO_FOCUS: bool(auto_start_focus),
        KEY_AUTO_BREAK: bool(auto_start_break),
    }


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return default


def _as_seconds(value: Any, kind: str, default: int) -> int:
    # bool is an int subclass; "true" is not a duration
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return default
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        return default
    lo, hi = MINUTE_LIMITS[kind]
    return max(lo * 60, min(hi * 60, int(value)))


def validate_settings(raw: dict[str, Any]) -> dict[str, Any]:
    """Coerce loaded values; anything malformed counts as absent."""
    return {
        KEY_FOCUS: _as_seconds(raw.get(KEY_FOCUS), "focus", DEFAULT_SETTINGS[KEY_FOCUS]),
        KEY_BREAK: _as_seconds(raw.get(KEY_BREAK), "break", DEFAULT_SETTINGS[KEY_BREAK]),
        KEY_AUTO_FOCUS: _as_bool(raw.get(KEY_AUTO_FOCUS), DEFAULT_SETTINGS[KEY_AUTO_FOCUS]),
        KEY_AUTO_BREAK: _as_bool(raw.get(KEY_AUTO_BREAK), DEFAULT_SETTINGS[KEY_AUTO_BREAK]),
    }


def _read_file(path: str) -> dict[str, Any]:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError, OSError) as e:
        print(f"  [!] Settings load error: {e}. Using defaults.")
        return {}
    return data if isinstance(data, dict) else {}


def load_settings(path: Optional[str] = None) -> dict[str, Any]:
    """Load settings from file, falling back to defaults for missing/invalid values."""
    return validate_settings(_read_file(path or SETTINGS_FILE))


def save_settings(settings: dict[str, Any], path: Optional[str] = None) -> None:
    """Write the four values, keeping any other keys already in the file."""
    path = path or SETTINGS_FILE
    data = _read_file(path)
    data.update({k: settings[k] for k in DEFAULT_SETTINGS if k in settings})
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
    except (IOError, OSError) as e:
        print(f"  [!] Settings save error: {e}")
