"""Explorer configuration and its defaults."""

from __future__ import annotations

from dataclasses import dataclass

from .viewport import Resolution, Viewport

DEFAULT_DURATION_SECONDS = 2


@dataclass(frozen=True)
class ExplorerConfig:
    """Settings fixed for the lifetime of an explorer session.

    Only the animation duration is user-adjustable later on, through
    :meth:`ViewportController.set_animation_duration`; the value here is the
    starting point.
    """

    width: int = 800
    height: int = 600
    max_iter: int = 100
    zoom_factor: float = 1.5
    initial_scale: float = 1.5
    initial_center: tuple[float, float] = (0.0, 0.0)
    animation_duration_ms: float = DEFAULT_DURATION_SECONDS * 1000.0
    min_scale: float = 1e-12

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Resolution must be positive, got {self.width}x{self.height}.")
        if self.max_iter < 1:
            raise ValueError("max_iter must be at least 1.")
        if self.zoom_factor <= 1:
            raise ValueError("zoom_factor must be greater than 1.")
        if self.min_scale <= 0:
            raise ValueError("min_scale must be positive.")
        if self.initial_scale < self.min_scale:
            raise ValueError(f"initial_scale must be at least min_scale ({self.min_scale}).")

    @property
    def resolution(self) -> Resolution:
        return Resolution(self.width, self.height)

    def initial_viewport(self) -> Viewport:
        center_x, center_y = self.initial_center
        return Viewport(center_x=float(center_x), center_y=float(center_y), scale=float(self.initial_scale))

    @classmethod
    def from_args(cls, opt) -> "ExplorerConfig":
        """Build a config from parsed CLI options (duration in seconds)."""

        return cls(
            width=opt.width,
            height=opt.height,
            max_iter=opt.max_iterations,
            zoom_factor=opt.zoom_factor,
            animation_duration_ms=float(opt.duration) * 1000.0,
        )
