"""Input intents that change the viewport and restart the detail ramp."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from .animation import AnimationRun, ProgressiveAnimator
from .config import ExplorerConfig
from .viewport import Viewport, to_complex_delta

logger = logging.getLogger(__name__)


class ViewportController:
    """Sole owner and writer of the explorer's :class:`Viewport`.

    Every operation that changes the view commits the new viewport and then
    begins a fresh animation run, which supersedes any run in flight.
    """

    def __init__(self, config: ExplorerConfig, animator: ProgressiveAnimator) -> None:
        self.config = config
        self.animator = animator
        self.viewport: Viewport = config.initial_viewport()
        self.animation_duration_ms: float = config.animation_duration_ms
        self._drag_origin: Optional[tuple[float, float]] = None

    @property
    def dragging(self) -> bool:
        return self._drag_origin is not None

    def _commit(self, viewport: Viewport) -> AnimationRun:
        if viewport.scale < self.config.min_scale:
            logger.debug("Clamping scale %g to %g", viewport.scale, self.config.min_scale)
            viewport = replace(viewport, scale=self.config.min_scale)
        self.viewport = viewport
        return self.request_render()

    def request_render(self) -> AnimationRun:
        """Begin a run for the current view with the current duration."""

        return self.animator.begin_animation(self.viewport, self.animation_duration_ms)

    def request_initial_render(self) -> AnimationRun:
        logger.info(
            "Initial render at %dx%d, max_iter=%d",
            self.config.width,
            self.config.height,
            self.config.max_iter,
        )
        return self.request_render()

    def zoom_in(self) -> AnimationRun:
        return self._commit(replace(self.viewport, scale=self.viewport.scale * self.config.zoom_factor))

    def zoom_out(self) -> AnimationRun:
        return self._commit(replace(self.viewport, scale=self.viewport.scale / self.config.zoom_factor))

    def reset(self) -> AnimationRun:
        return self._commit(self.config.initial_viewport())

    def pan_by(self, dpx: float, dpy: float) -> AnimationRun:
        dx, dy = to_complex_delta(dpx, dpy, self.viewport, self.config.resolution)
        return self._commit(
            replace(
                self.viewport,
                center_x=self.viewport.center_x - dx,
                center_y=self.viewport.center_y - dy,
            )
        )

    def pan_start(self, px: float, py: float) -> None:
        self._drag_origin = (px, py)

    def pan_move(self, px: float, py: float) -> Optional[AnimationRun]:
        """Pan by the pointer delta since the last move; ignored unless dragging."""

        if self._drag_origin is None:
            return None
        last_x, last_y = self._drag_origin
        self._drag_origin = (px, py)
        return self.pan_by(px - last_x, py - last_y)

    def pan_end(self) -> None:
        self._drag_origin = None

    def set_animation_duration(self, seconds: float) -> None:
        """Store the duration used by the next run; the current run keeps its own."""

        self.animation_duration_ms = float(seconds) * 1000.0
