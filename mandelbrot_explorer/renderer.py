"""Escape-time evaluation, colour mapping and full-frame rendering."""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
import tensorflow as tf

from .viewport import Resolution, Viewport, pixel_grid

HORIZON = 4
INSIDE_COLOR = (0, 0, 0)
OPAQUE = 255

logger = logging.getLogger(__name__)


def escape_iterations(x0: float, y0: float, cap: int) -> int:
    """Count iterations of ``z -> z**2 + c`` before ``|z|**2`` exceeds 4.

    Returns ``cap`` for points that never escape within the cap.
    """

    x = 0.0
    y = 0.0
    iteration = 0
    while x * x + y * y <= HORIZON and iteration < cap:
        x, y = x * x - y * y + x0, 2 * x * y + y0
        iteration += 1
    return iteration


def color_for(iteration: int, cap: int) -> tuple[int, int, int]:
    """Map an escape count to an RGB triple; points inside the set are black."""

    if iteration == cap:
        return INSIDE_COLOR
    t = iteration / cap
    r = math.floor(255 * abs(math.sin(math.pi * t)))
    g = math.floor(255 * abs(math.sin(math.pi * t + 2)))
    b = math.floor(255 * abs(math.sin(math.pi * t + 4)))
    return r, g, b


@tf.function
def _escape_step(xs: tf.Tensor, ys: tf.Tensor, x0: tf.Tensor, y0: tf.Tensor, ns: tf.Tensor, active: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance every point that has not escaped by one iteration."""

    xs_new = xs * xs - ys * ys + x0
    ys_new = 2 * xs * ys + y0
    xs = tf.where(active, xs_new, xs)
    ys = tf.where(active, ys_new, ys)
    ns = ns + tf.cast(active, tf.int32)
    horizon = tf.constant(HORIZON, dtype=xs.dtype)
    active = tf.logical_and(active, xs * xs + ys * ys <= horizon)
    return xs, ys, ns, active


@tf.function
def _escape_run(x0: tf.Tensor, y0: tf.Tensor, cap: tf.Tensor) -> tf.Tensor:
    """Iterate the quadratic map with a TensorFlow while loop."""

    cap = tf.cast(cap, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    xs = tf.zeros_like(x0)
    ys = tf.zeros_like(y0)
    ns = tf.zeros_like(x0, tf.int32)
    active = tf.ones_like(ns, tf.bool)

    def cond(i, xs, ys, ns, active):
        return tf.logical_and(tf.less(i, cap), tf.reduce_any(active))

    def body(i, xs, ys, ns, active):
        xs, ys, ns, active = _escape_step(xs, ys, x0, y0, ns, active)
        return i + 1, xs, ys, ns, active

    _, _, _, ns, _ = tf.while_loop(cond, body, (i, xs, ys, ns, active))
    return ns


def escape_iterations_grid(x0: np.ndarray, y0: np.ndarray, cap: int, *, device: Optional[str] = None) -> np.ndarray:
    """Vectorised :func:`escape_iterations` over arrays of plane coordinates."""

    with tf.device(device if device is not None else "/CPU:0"):
        x_tf = tf.convert_to_tensor(x0, dtype=tf.float64)
        y_tf = tf.convert_to_tensor(y0, dtype=tf.float64)
        ns = _escape_run(x_tf, y_tf, tf.constant(cap, dtype=tf.int32))
    return ns.numpy()


def colorize(iterations: np.ndarray, cap: int, out: Optional[np.ndarray] = None) -> np.ndarray:
    """Apply :func:`color_for` to an iteration array, producing opaque RGBA."""

    if out is None:
        out = np.empty(iterations.shape + (4,), dtype=np.uint8)

    t = iterations.astype(np.float64) / cap
    inside = iterations == cap
    for channel, phase in enumerate((0, 2, 4)):
        values = np.floor(255 * np.abs(np.sin(np.pi * t + phase)))
        out[..., channel] = np.where(inside, INSIDE_COLOR[channel], values).astype(np.uint8)
    out[..., 3] = OPAQUE
    return out


def render_frame(
    viewport: Viewport,
    resolution: Resolution,
    cap: int,
    *,
    out: Optional[np.ndarray] = None,
    device: Optional[str] = None,
) -> np.ndarray:
    """Render the whole frame at ``cap`` iterations.

    The result has shape ``(height, width, 4)``; pixel ``(px, py)`` lives at
    ``[py, px]``. When ``out`` is given it is overwritten in place.
    """

    if cap < 1:
        raise ValueError(f"Iteration cap must be at least 1, got {cap}.")
    if out is not None and out.shape != resolution.shape + (4,):
        raise ValueError(f"Render target has shape {out.shape}, expected {resolution.shape + (4,)}.")

    x0, y0 = pixel_grid(viewport, resolution)
    iterations = escape_iterations_grid(x0, y0, cap, device=device)
    return colorize(iterations, cap, out=out)


def select_device() -> str:
    """Use the first GPU when TensorFlow can see one, otherwise the CPU."""

    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        logger.info("No GPU found, using CPU")
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as exc:
        logger.warning("Could not configure GPU memory growth: %s", exc)
        return '/CPU:0'
    logger.info("GPU found, using %s", gpus[0].name)
    return '/GPU:0'
