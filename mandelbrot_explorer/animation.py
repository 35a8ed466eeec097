"""Progressive "detail ramp" rendering driven by a cooperative scheduler.

A run re-renders the whole frame on every tick with an iteration cap that
grows with elapsed time, until the configured maximum is reached. Starting a
new run supersedes the current one; the superseded run's pending tick sees
that it is no longer current and does nothing.
"""

from __future__ import annotations

import enum
import logging
import math
import time
from collections import deque
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Optional, Protocol

import numpy as np

from .renderer import render_frame
from .viewport import Resolution, Viewport

logger = logging.getLogger(__name__)

TickCallback = Callable[[float], None]
FrameSink = Callable[[np.ndarray], None]
ProgressSink = Callable[[int], None]
RenderFunction = Callable[..., np.ndarray]


def monotonic_ms() -> float:
    return time.perf_counter() * 1000.0


class Scheduler(Protocol):
    """Source of scheduling opportunities (one per display refresh)."""

    def call_soon(self, callback: TickCallback) -> None:
        """Invoke ``callback(now_ms)`` at the next opportunity."""


class RunState(enum.Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    SUPERSEDED = "superseded"


@dataclass
class AnimationRun:
    """One in-flight progressive render."""

    start_time: float
    duration: float
    target_cap: int
    viewport: Viewport
    state: RunState = RunState.RUNNING
    ticks: int = 0

    def progress(self, now: float) -> float:
        if self.duration <= 0:
            return 1.0
        return min(max((now - self.start_time) / self.duration, 0.0), 1.0)

    def cap_at(self, progress: float) -> int:
        return max(1, math.floor(progress * self.target_cap))


class ProgressiveAnimator:
    """Owns the current :class:`AnimationRun` and turns ticks into frames."""

    def __init__(
        self,
        resolution: Resolution,
        max_iter: int,
        present_frame: FrameSink,
        report_progress: ProgressSink,
        scheduler: Scheduler,
        *,
        clock: Callable[[], float] = monotonic_ms,
        render: RenderFunction = render_frame,
        device: Optional[str] = None,
    ) -> None:
        self.resolution = resolution
        self.max_iter = max_iter
        self._present_frame = present_frame
        self._report_progress = report_progress
        self._scheduler = scheduler
        self._clock = clock
        self._render = render
        self._device = device
        self._current: Optional[AnimationRun] = None

    @property
    def current_run(self) -> Optional[AnimationRun]:
        return self._current

    @property
    def is_running(self) -> bool:
        return self._current is not None and self._current.state is RunState.RUNNING

    def begin_animation(self, viewport: Viewport, duration_ms: float) -> AnimationRun:
        """Start a new run, superseding the one in flight, if any."""

        previous = self._current
        if previous is not None and previous.state is RunState.RUNNING:
            previous.state = RunState.SUPERSEDED
            logger.debug("Superseded run after %d ticks", previous.ticks)

        run = AnimationRun(
            start_time=self._clock(),
            duration=float(duration_ms),
            target_cap=self.max_iter,
            viewport=viewport,
        )
        self._current = run
        self._report_progress(0)
        self._scheduler.call_soon(partial(self._tick, run))
        return run

    def _tick(self, run: AnimationRun, now: float) -> None:
        if run is not self._current or run.state is not RunState.RUNNING:
            return

        run.ticks += 1
        progress = run.progress(now)
        cap = run.cap_at(progress)
        frame = self._render(run.viewport, self.resolution, cap, device=self._device)
        self._present_frame(frame)

        if progress < 1:
            self._report_progress(math.floor(progress * 100))
            self._scheduler.call_soon(partial(self._tick, run))
            return

        run.state = RunState.COMPLETED
        self._report_progress(100)
        logger.debug("Run completed after %d ticks at cap %d", run.ticks, cap)


@dataclass
class FrameLoop:
    """Headless :class:`Scheduler` that drains queued ticks in FIFO order.

    ``frame_interval_ms`` paces successive callbacks like a display refresh;
    ``clock`` and ``sleep`` are injectable so tests can run on fake time.
    """

    frame_interval_ms: float = 0.0
    clock: Callable[[], float] = monotonic_ms
    sleep: Callable[[float], None] = time.sleep
    _pending: deque = field(default_factory=deque, init=False, repr=False)
    _last_fire: Optional[float] = field(default=None, init=False, repr=False)

    def call_soon(self, callback: TickCallback) -> None:
        self._pending.append(callback)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def run_once(self) -> bool:
        """Fire the oldest pending callback; returns False when idle."""

        if not self._pending:
            return False
        callback = self._pending.popleft()
        if self._last_fire is not None and self.frame_interval_ms > 0:
            wait = self._last_fire + self.frame_interval_ms - self.clock()
            if wait > 0:
                self.sleep(wait / 1000.0)
        now = self.clock()
        self._last_fire = now
        callback(now)
        return True

    def run(self, max_callbacks: Optional[int] = None) -> int:
        """Drain callbacks until idle (or ``max_callbacks`` fired)."""

        fired = 0
        while max_callbacks is None or fired < max_callbacks:
            if not self.run_once():
                break
            fired += 1
        return fired
