"""Coordinate mapping between the priority-map canvas and impact/effort space.

Effort runs left to right and impact bottom to top, both as percentages of
the canvas. The viewport transform is anchored at the canvas's top-left
corner: a point ``p`` on the unscaled map is displayed at ``p * zoom + pan``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from chaosmatrix.models import clamp_percent

logger = logging.getLogger(__name__)

ZOOM_MIN = 0.5
ZOOM_MAX = 2.0
PRECISION = 2


@dataclass(frozen=True)
class CanvasRect:
    left: float
    top: float
    width: float
    height: float

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class Viewport:
    pan_x: float = 0.0
    pan_y: float = 0.0
    zoom: float = 1.0


@dataclass(frozen=True)
class MatrixPoint:
    effort: float
    impact: float

    def to_dict(self) -> dict[str, float]:
        return {"effort": self.effort, "impact": self.impact}


def clamp_zoom(zoom: float) -> float:
    return max(ZOOM_MIN, min(ZOOM_MAX, zoom))


def screen_to_matrix(
    pointer_x: float,
    pointer_y: float,
    rect: CanvasRect,
    viewport: Viewport,
    previous: MatrixPoint,
) -> MatrixPoint:
    """Map a pointer position to (effort, impact); ``previous`` if unmappable."""
    if rect.is_degenerate or viewport.zoom <= 0:
        logger.warning(
            "canvas %sx%s at zoom %s cannot be mapped; keeping previous position",
            rect.width,
            rect.height,
            viewport.zoom,
        )
        return previous

    map_x = (pointer_x - rect.left - viewport.pan_x) / viewport.zoom
    map_y = (pointer_y - rect.top - viewport.pan_y) / viewport.zoom
    effort = clamp_percent(map_x / rect.width * 100)
    impact = clamp_percent(100 - map_y / rect.height * 100)
    return MatrixPoint(
        effort=round(effort, PRECISION), impact=round(impact, PRECISION)
    )


def matrix_to_canvas(point: MatrixPoint, rect: CanvasRect) -> tuple[float, float]:
    """Position of a task on the unscaled map, relative to the canvas origin."""
    x = point.effort / 100 * rect.width
    y = (100 - point.impact) / 100 * rect.height
    return x, y


def apply_viewport(x: float, y: float, viewport: Viewport) -> tuple[float, float]:
    return x * viewport.zoom + viewport.pan_x, y * viewport.zoom + viewport.pan_y


def matrix_to_screen(
    point: MatrixPoint, rect: CanvasRect, viewport: Viewport
) -> tuple[float, float]:
    x, y = apply_viewport(*matrix_to_canvas(point, rect), viewport)
    return rect.left + x, rect.top + y


def quadrant(point: MatrixPoint) -> str:
    if point.impact >= 50:
        return "quick_win" if point.effort < 50 else "major_project"
    return "fill_in" if point.effort < 50 else "thankless"
