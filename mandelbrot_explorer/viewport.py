"""Viewport state and the pixel to complex-plane mapping."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

PLANE_SPAN = 4


@dataclass(frozen=True)
class Resolution:
    """Fixed output resolution of the rendered frame."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Resolution must be positive, got {self.width}x{self.height}.")

    @property
    def shape(self) -> tuple[int, int]:
        return self.height, self.width


@dataclass(frozen=True)
class Viewport:
    """Center of the view in the complex plane and its zoom scale.

    Larger ``scale`` means more zoomed in.
    """

    center_x: float = 0.0
    center_y: float = 0.0
    scale: float = 1.5


def _plane_factor(viewport: Viewport, resolution: Resolution) -> float:
    return viewport.scale * resolution.width


def to_complex(px, py, viewport: Viewport, resolution: Resolution):
    """Map pixel coordinates to a point of the complex plane.

    Works elementwise on numpy arrays as well as on plain numbers. Both axes
    are divided by the width, so a non-square resolution stretches the view
    vertically.
    """

    factor = _plane_factor(viewport, resolution)
    x0 = viewport.center_x + (px - resolution.width / 2) * PLANE_SPAN / factor
    y0 = viewport.center_y + (py - resolution.height / 2) * PLANE_SPAN / factor
    return x0, y0


def to_complex_delta(dpx, dpy, viewport: Viewport, resolution: Resolution):
    """Convert a pixel delta (e.g. a drag) to a complex-plane delta."""

    factor = _plane_factor(viewport, resolution)
    return dpx * PLANE_SPAN / factor, dpy * PLANE_SPAN / factor


def pixel_grid(viewport: Viewport, resolution: Resolution) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(x0, y0)`` arrays of shape ``(height, width)`` for every pixel."""

    px = np.arange(resolution.width, dtype=np.float64)
    py = np.arange(resolution.height, dtype=np.float64)
    x0, _ = to_complex(px, np.float64(0.0), viewport, resolution)
    _, y0 = to_complex(np.float64(0.0), py, viewport, resolution)
    X, Y = np.meshgrid(x0, y0)
    return X, Y


def plane_bounds(viewport: Viewport, resolution: Resolution) -> tuple[float, float, float, float]:
    """Plane coordinates ``(left, right, bottom, top)`` of the frame edges.

    ``bottom`` is the last pixel row, which has the larger imaginary part,
    because rows grow downwards on screen.
    """

    left, top = to_complex(0.0, 0.0, viewport, resolution)
    right, bottom = to_complex(float(resolution.width), float(resolution.height), viewport, resolution)
    return float(left), float(right), float(bottom), float(top)
