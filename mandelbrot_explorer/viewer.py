"""Interactive matplotlib front end: buttons, duration slider and drag panning."""

from __future__ import annotations

import logging
from typing import Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.widgets import Button, Slider

from .animation import ProgressiveAnimator, TickCallback, monotonic_ms
from .config import ExplorerConfig
from .controller import ViewportController

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 16


class TimerScheduler:
    """Fire each callback once from a single-shot canvas timer."""

    def __init__(self, canvas, interval_ms: int = FRAME_INTERVAL_MS) -> None:
        self._canvas = canvas
        self._interval_ms = interval_ms
        self._timers: set = set()

    def call_soon(self, callback: TickCallback) -> None:
        timer = self._canvas.new_timer(interval=self._interval_ms)
        timer.single_shot = True

        def fire() -> None:
            self._timers.discard(timer)
            callback(monotonic_ms())

        timer.add_callback(fire)
        self._timers.add(timer)
        timer.start()


class ExplorerWindow:
    """Matplotlib figure wired to a :class:`ViewportController`."""

    def __init__(self, config: ExplorerConfig, *, device: Optional[str] = None) -> None:
        self.config = config
        self.fig = plt.figure(figsize=(config.width / 100, config.height / 100 + 1.4))
        self.ax = self.fig.add_axes([0.0, 0.22, 1.0, 0.78])
        self.ax.set_axis_off()
        self.im = self.ax.imshow(
            np.zeros((config.height, config.width, 4), dtype=np.uint8),
            interpolation='nearest',
        )

        self.progress_ax = self.fig.add_axes([0.05, 0.16, 0.9, 0.03])
        self.progress_ax.set_xlim(0, 100)
        self.progress_ax.set_axis_off()
        self.progress_bar = self.progress_ax.barh([0], [0], height=1.0, color='tab:blue')[0]
        self.progress_text = self.fig.text(0.5, 0.12, '0%', ha='center')

        self.zoom_in_button = Button(self.fig.add_axes([0.05, 0.03, 0.14, 0.06]), 'Zoom in')
        self.zoom_out_button = Button(self.fig.add_axes([0.21, 0.03, 0.14, 0.06]), 'Zoom out')
        self.reset_button = Button(self.fig.add_axes([0.37, 0.03, 0.12, 0.06]), 'Reset')
        self.duration_slider = Slider(
            self.fig.add_axes([0.62, 0.045, 0.28, 0.03]),
            'Duration (s)',
            1,
            10,
            valinit=config.animation_duration_ms / 1000.0,
            valstep=1,
        )

        animator = ProgressiveAnimator(
            config.resolution,
            config.max_iter,
            self.present_frame,
            self.report_progress,
            TimerScheduler(self.fig.canvas),
            device=device,
        )
        self.controller = ViewportController(config, animator)

        self.zoom_in_button.on_clicked(lambda _event: self.controller.zoom_in())
        self.zoom_out_button.on_clicked(lambda _event: self.controller.zoom_out())
        self.reset_button.on_clicked(lambda _event: self.controller.reset())
        self.duration_slider.on_changed(self._on_duration)

        self.fig.canvas.mpl_connect('button_press_event', self._on_press)
        self.fig.canvas.mpl_connect('motion_notify_event', self._on_motion)
        self.fig.canvas.mpl_connect('button_release_event', self._on_release)
        self.fig.canvas.mpl_connect('axes_leave_event', self._on_leave)

    def present_frame(self, frame: np.ndarray) -> None:
        self.im.set_data(frame)
        self.fig.canvas.draw_idle()

    def report_progress(self, percent: int) -> None:
        self.progress_bar.set_width(percent)
        self.progress_text.set_text(f'{percent}%')
        self.fig.canvas.draw_idle()

    def _on_duration(self, value: float) -> None:
        self.controller.set_animation_duration(value)
        self.controller.request_render()

    def _on_press(self, event) -> None:
        if event.inaxes is not self.ax or event.xdata is None:
            return
        self.controller.pan_start(event.xdata, event.ydata)

    def _on_motion(self, event) -> None:
        if not self.controller.dragging or event.inaxes is not self.ax or event.xdata is None:
            return
        self.controller.pan_move(event.xdata, event.ydata)

    def _on_release(self, event) -> None:
        self.controller.pan_end()

    def _on_leave(self, event) -> None:
        if event.inaxes is self.ax:
            self.controller.pan_end()

    def show(self) -> None:
        self.controller.request_initial_render()
        plt.show()
