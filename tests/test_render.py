"""Unit tests for lumi_render: text formatting and Pillow drawing."""

from __future__ import annotations

import math

import pytest

from lumi_render import (CIRCUMFERENCE, FACE_SIZE, RING_RADIUS, RING_WIDTH, draw_app_icon,
                         draw_face, draw_indicator, format_clock, format_hms, hex_rgb,
                         palette, progress_fraction, ring_dash_offset)
from lumi_timer import Mode


class TestText:
    @pytest.mark.parametrize("seconds, expected", [
        (1500, "25:00"), (59, "00:59"), (0, "00:00"), (7200, "120:00"), (-3, "00:00"),
    ])
    def test_format_clock(self, seconds, expected):
        assert format_clock(seconds) == expected

    @pytest.mark.parametrize("seconds, expected", [
        (3665, "01:01:05"), (1500, "00:25:00"), (0, "00:00:00"),
    ])
    def test_format_hms(self, seconds, expected):
        assert format_hms(seconds) == expected


class TestProgress:
    def test_fraction(self):
        assert progress_fraction(300, 300) == 1.0
        assert progress_fraction(150, 300) == 0.5
        assert progress_fraction(0, 300) == 0.0
        assert progress_fraction(5, 0) == 0.0

    def test_ring_offset(self):
        assert CIRCUMFERENCE == pytest.approx(2 * math.pi * 44)
        assert ring_dash_offset(300, 300) == pytest.approx(0)
        assert ring_dash_offset(0, 300) == pytest.approx(CIRCUMFERENCE)
        assert ring_dash_offset(75, 300) == pytest.approx(CIRCUMFERENCE * 0.75)


class TestDrawing:
    def test_hex_rgb(self):
        assert hex_rgb("#ff8000") == (255, 128, 0, 255)
        assert hex_rgb("00ff00", 10) == (0, 255, 0, 10)

    @pytest.mark.parametrize("mode", [Mode.FOCUS, Mode.BREAK])
    @pytest.mark.parametrize("progress", [0.0, 0.4, 1.0])
    def test_face_size(self, mode, progress):
        img = draw_face(mode, progress, 3.0, -2.0)
        assert img.size == (FACE_SIZE, FACE_SIZE)
        assert img.mode == "RGBA"

    def test_face_ring_reflects_progress(self):
        ring = hex_rgb(palette(Mode.FOCUS)["ring"])[:3]
        top = (FACE_SIZE // 2, FACE_SIZE // 2 - RING_RADIUS + RING_WIDTH // 2)
        full = draw_face(Mode.FOCUS, 1.0).convert("RGB").getpixel(top)
        empty = draw_face(Mode.FOCUS, 0.0).convert("RGB").getpixel(top)
        assert sum(abs(a - b) for a, b in zip(full, ring)) < sum(abs(a - b) for a, b in zip(empty, ring))

    def test_eyes_move(self):
        centred = draw_face(Mode.FOCUS, 1.0, 0, 0).tobytes()
        looking = draw_face(Mode.FOCUS, 1.0, 10, 0).tobytes()
        assert centred != looking

    def test_modes_use_different_palettes(self):
        a = draw_face(Mode.FOCUS, 0.5).tobytes()
        b = draw_face(Mode.BREAK, 0.5).tobytes()
        assert a != b

    def test_indicator_fill_grows_from_bottom(self):
        ring = hex_rgb(palette(Mode.BREAK)["ring"])
        near_bottom = (12, 150)
        near_top = (12, 12)
        half = draw_indicator(Mode.BREAK, 0.5, 24, 180)
        assert half.size == (24, 180)
        assert half.getpixel(near_bottom) == ring
        assert half.getpixel(near_top) != ring
        assert draw_indicator(Mode.BREAK, 1.0).getpixel(near_top) == ring
        assert draw_indicator(Mode.BREAK, 0.0).getpixel(near_bottom) != ring

    @pytest.mark.parametrize("size", [16, 64, 256])
    def test_app_icon(self, size):
        img = draw_app_icon(size)
        assert img.size == (size, size)
        assert img.getpixel((0, 0))[3] == 0

    def test_stopped_icon_is_grey(self):
        running = draw_app_icon(64, Mode.FOCUS, True).tobytes()
        stopped = draw_app_icon(64, Mode.FOCUS, False).tobytes()
        assert running != stopped
