# src/pomotodo/timer/progress.py

"""
Pie-chart geometry for the countdown indicator.

A pie is drawn as one rotated half-disc; past 50% a second, filled half-disc is
needed to cover the first half of the circle.
"""

from __future__ import annotations

from dataclasses import dataclass

# Quarter glyphs, indexed by the number of quarters already elapsed.
PIE_GLYPHS = ("○", "◔", "◑", "◕", "●")


@dataclass(slots=True, frozen=True)
class PieShape:
    percent: float
    rotation_deg: float
    gt50: bool

    @property
    def glyph(self) -> str:
        return PIE_GLYPHS[min(4, int(self.rotation_deg // 90))]


def clamp_percent(percent: float) -> float:
    return max(0.0, min(100.0, float(percent)))


def pie_shape(percent: float) -> PieShape:
    p = clamp_percent(percent)
    return PieShape(percent=p, rotation_deg=360.0 / 100.0 * p, gt50=p > 50.0)
