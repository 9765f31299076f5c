"""Drawing helpers: countdown text, progress ring, eyes, edge strip and icons."""
from __future__ import annotations
import math

from PIL import Image, ImageDraw

from lumi_timer import Mode

# ─── Colours ──────────────────────────────────────────────────
PALETTES = {
    Mode.FOCUS: {
        "bg": "#1e1b2e", "card": "#2a2540", "track": "#3b3557",
        "ring": "#f87171", "eye": "#f8fafc", "text": "#f1f5f9",
        "text_dim": "#a5a3c2", "btn": "#3b3557", "btn_pri": "#f87171",
    },
    Mode.BREAK: {
        "bg": "#0f2a2a", "card": "#123838", "track": "#1f4d4b",
        "ring": "#2dd4bf", "eye": "#f0fdfa", "text": "#ecfeff",
        "text_dim": "#99c9c4", "btn": "#1f4d4b", "btn_pri": "#2dd4bf",
    },
}

RING_RADIUS = 44
RING_WIDTH = 6
CIRCUMFERENCE = 2 * math.pi * RING_RADIUS
FACE_SIZE = 2 * (RING_RADIUS + RING_WIDTH)   # px square around the ring
SUPERSAMPLE = 2


def palette(mode: Mode) -> dict[str, str]:
    return PALETTES[mode]


def hex_rgb(colour: str, alpha: int = 255) -> tuple[int, int, int, int]:
    c = colour.lstrip("#")
    return int(c[0:2], 16), int(c[2:4], 16), int(c[4:6], 16), alpha


# ─── Text ────────────────────────────────────────────────────
def format_clock(seconds: int) -> str:
    """MM:SS as shown on the desktop card (minutes may exceed 59)."""
    m, s = divmod(max(0, int(seconds)), 60)
    return f"{m:02d}:{s:02d}"


def format_hms(seconds: int) -> str:
    """HH:MM:SS as shown in the terminal."""
    seconds = max(0, int(seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


def progress_fraction(remaining: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return max(0.0, min(1.0, remaining / total))


def ring_dash_offset(remaining: int, total: int) -> float:
    """Length of ring that has been used up."""
    return CIRCUMFERENCE * (1 - progress_fraction(remaining, total))


# ─── Raster ──────────────────────────────────────────────────
def draw_face(mode: Mode, progress: float, eye_dx: float = 0.0, eye_dy: float = 0.0,
              bg: str = None) -> Image.Image:
    """Ring showing time left, with a pair of eyes inside that look at the cursor."""
    pal = palette(mode)
    k = SUPERSAMPLE
    size = FACE_SIZE * k
    img = Image.new("RGBA", (size, size), hex_rgb(bg or pal["card"]))
    draw = ImageDraw.Draw(img)
    cx = cy = size / 2
    r = RING_RADIUS * k
    w = RING_WIDTH * k
    box = [cx - r, cy - r, cx + r, cy + r]

    draw.ellipse(box, outline=hex_rgb(pal["track"]), width=w)
    progress = max(0.0, min(1.0, progress))
    if progress >= 1.0:
        draw.ellipse(box, outline=hex_rgb(pal["ring"]), width=w)
    elif progress > 0.0:
        draw.arc(box, start=-90, end=-90 + 360 * progress, fill=hex_rgb(pal["ring"]), width=w)

    # eyes: two upright ovals, moved as a pair
    ex, ey = eye_dx * k, eye_dy * k
    gap, ew, eh = 14 * k, 6 * k, 10 * k
    for side in (-1, 1):
        x = cx + side * gap + ex
        y = cy + ey
        draw.ellipse([x - ew, y - eh, x + ew, y + eh], fill=hex_rgb(pal["eye"]))

    return img.resize((FACE_SIZE, FACE_SIZE), Image.LANCZOS)


def draw_indicator(mode: Mode, progress: float, width: int = 24, height: int = 180) -> Image.Image:
    """Edge strip shown while the dock is hidden; fill height tracks time left."""
    pal = palette(mode)
    img = Image.new("RGBA", (width, height), hex_rgb(pal["card"]))
    draw = ImageDraw.Draw(img)
    inset = max(2, width // 4)
    track = [inset, inset, width - inset - 1, height - inset - 1]
    radius = (width - 2 * inset) // 2
    draw.rounded_rectangle(track, radius=radius, fill=hex_rgb(pal["track"]))
    usable = track[3] - track[1]
    filled = round(usable * max(0.0, min(1.0, progress)))
    if filled > 0:
        draw.rounded_rectangle([track[0], track[3] - filled, track[2], track[3]],
                               radius=min(radius, filled // 2), fill=hex_rgb(pal["ring"]))
    return img


def draw_app_icon(size: int = 64, mode: Mode = Mode.FOCUS, running: bool = True) -> Image.Image:
    """Round face icon for the tray and the .ico file; greyed out while stopped."""
    pal = palette(mode)
    k = 4
    s = size * k
    img = Image.new("RGBA", (s, s), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    if running:
        face, ring, eye = hex_rgb(pal["card"]), hex_rgb(pal["ring"]), hex_rgb(pal["eye"])
    else:
        face, ring, eye = (70, 70, 80, 255), (130, 130, 140, 255), (200, 200, 205, 255)
    pad = s * 0.06
    draw.ellipse([pad, pad, s - pad, s - pad], fill=face, outline=ring, width=max(1, int(s * 0.09)))
    c = s / 2
    gap, ew, eh = s * 0.14, s * 0.065, s * 0.11
    for side in (-1, 1):
        x = c + side * gap
        draw.ellipse([x - ew, c - eh, x + ew, c + eh], fill=eye)
    return img.resize((size, size), Image.LANCZOS)
