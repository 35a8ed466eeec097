from __future__ import annotations

import numpy as np
import pytest

from mandelbrot_explorer import FrameLoop, ProgressiveAnimator, Resolution


class FakeClock:
    """Millisecond clock that only moves when told to (or when slept on)."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms

    def sleep(self, seconds: float) -> None:
        self.now += seconds * 1000.0


class RecordingRenderer:
    def __init__(self) -> None:
        self.calls = []

    def __call__(self, viewport, resolution, cap, *, device=None):
        self.calls.append((viewport, cap))
        return np.full(resolution.shape + (4,), cap % 256, dtype=np.uint8)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def loop(clock):
    return FrameLoop(frame_interval_ms=100.0, clock=clock, sleep=clock.sleep)


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def sinks():
    frames: list = []
    progress: list[int] = []
    return frames, progress


@pytest.fixture
def animator(loop, clock, renderer, sinks):
    frames, progress = sinks
    return ProgressiveAnimator(
        Resolution(8, 6),
        100,
        frames.append,
        progress.append,
        loop,
        clock=clock,
        render=renderer,
    )
