"""Public API for the progressive Mandelbrot explorer."""

from .viewport import Resolution, Viewport, pixel_grid, plane_bounds, to_complex, to_complex_delta
from .renderer import (
    color_for,
    colorize,
    escape_iterations,
    escape_iterations_grid,
    render_frame,
    select_device,
)
from .animation import AnimationRun, FrameLoop, ProgressiveAnimator, RunState, Scheduler
from .config import ExplorerConfig
from .controller import ViewportController

__all__ = [
    "AnimationRun",
    "ExplorerConfig",
    "FrameLoop",
    "ProgressiveAnimator",
    "Resolution",
    "RunState",
    "Scheduler",
    "Viewport",
    "ViewportController",
    "color_for",
    "colorize",
    "escape_iterations",
    "escape_iterations_grid",
    "pixel_grid",
    "plane_bounds",
    "render_frame",
    "select_device",
    "to_complex",
    "to_complex_delta",
]
