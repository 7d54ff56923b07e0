# tests/test_progress.py

from __future__ import annotations

import pytest

from pomotodo.timer.progress import PIE_GLYPHS, clamp_percent, pie_shape


@pytest.mark.parametrize(
    ("percent", "rotation", "gt50", "glyph"),
    [
        (0, 0.0, False, "○"),
        (10, 36.0, False, "○"),
        (25, 90.0, False, "◔"),
        (50, 180.0, False, "◑"),
        (50.5, 181.8, True, "◑"),
        (75, 270.0, True, "◕"),
        (100, 360.0, True, "●"),
    ],
)
def test_pie_shape(percent: float, rotation: float, gt50: bool, glyph: str) -> None:
    shape = pie_shape(percent)
    assert shape.rotation_deg == pytest.approx(rotation)
    assert shape.gt50 is gt50
    assert shape.glyph == glyph


def test_out_of_range_percent_is_clamped() -> None:
    assert clamp_percent(-5) == 0.0
    assert clamp_percent(140) == 100.0
    assert pie_shape(140).glyph == PIE_GLYPHS[-1]
    assert pie_shape(-1).rotation_deg == 0.0
