import os
import sys
import warnings
from argparse import ArgumentParser

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

import logging

import tensorflow as tf

from mandelbrot_explorer import (
    ExplorerConfig,
    FrameLoop,
    ProgressiveAnimator,
    ViewportController,
    select_device,
)
from mandelbrot_explorer.logging_config import setup_logging
from mandelbrot_explorer.surfaces import ConsoleProgress, FrameRecorder, resolve_output_config

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")

logger = logging.getLogger("mandelbrot_explorer.cli")

SIMPLE_INTENTS = ("zoom-in", "zoom-out", "reset")


def parse_intent(value: str, parser: ArgumentParser) -> tuple[str, tuple[float, ...]]:
    """Parse ``zoom-in``, ``zoom-out``, ``reset`` or ``pan:DX,DY``."""

    if value in SIMPLE_INTENTS:
        return value, ()
    name, _, arguments = value.partition(":")
    if name != "pan" or not arguments:
        parser.error(f"Unknown intent '{value}'. Use {', '.join(SIMPLE_INTENTS)} or pan:DX,DY.")
    parts = arguments.split(",")
    if len(parts) != 2:
        parser.error(f"Pan intent needs two pixel offsets, got '{arguments}'.")
    try:
        return "pan", (float(parts[0]), float(parts[1]))
    except ValueError:
        parser.error(f"Pan offsets must be numbers, got '{arguments}'.")


def apply_intent(controller: ViewportController, intent: tuple[str, tuple[float, ...]]) -> None:
    name, arguments = intent
    if name == "zoom-in":
        controller.zoom_in()
    elif name == "zoom-out":
        controller.zoom_out()
    elif name == "reset":
        controller.reset()
    else:
        controller.pan_by(*arguments)


def build_parser():
    parser = ArgumentParser(description="Progressively render an explorable Mandelbrot view.")

    parser.add_argument('--width', type=int, dest='width', help='canvas width in pixels',
                        metavar='WIDTH', default=800)

    parser.add_argument('--height', type=int, dest='height', help='canvas height in pixels',
                        metavar='HEIGHT', default=600)

    parser.add_argument('--max-iterations', type=int, dest='max_iterations',
                        help='iteration cap reached at the end of every detail ramp',
                        metavar='MAX_ITERATIONS', default=100)

    parser.add_argument('--zoom-factor', type=float, dest='zoom_factor',
                        help='scale multiplier applied by zoom-in (and divided by zoom-out)',
                        metavar='ZOOM_FACTOR', default=1.5)

    parser.add_argument('--duration', type=float, dest='duration',
                        help='length of the detail ramp in seconds; 0 renders full detail at once',
                        metavar='SECONDS', default=2)

    parser.add_argument('--fps', type=float, dest='fps',
                        help='headless tick rate; 0 ticks as fast as frames render',
                        metavar='FPS', default=60)

    parser.add_argument('--intent', dest='intents', action='append', metavar='INTENT', default=[],
                        help='Viewport intent applied after the initial render. May be repeated. '
                             'Choices: zoom-in, zoom-out, reset, pan:DX,DY.')

    parser.add_argument('--mode', dest='modes', action='append', metavar='MODE',
                        help='Output modes to generate. May be repeated. Choices: gif, image, frames.')

    parser.add_argument('--output', dest='output', type=str,
                        help='Destination for single-file outputs (gif/image) or container directory when both are requested.')

    parser.add_argument('--frame-dir', dest='frame_dir', type=str,
                        help='Directory in which to store the frame sequence.')

    parser.add_argument('--format', type=str, dest='format',
                        help='file format for image-based outputs. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT', default='png')

    parser.add_argument('--interactive', action='store_true',
                        help='Open the interactive viewer instead of writing files.')

    parser.add_argument('--log-file', dest='log_file', type=str, help='Also write log records to this file.')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def run_headless(config: ExplorerConfig, intents, output_config, fps: float, device: str) -> FrameRecorder:
    """Render the initial view, apply ``intents`` and record the surviving run."""

    frame_interval_ms = 1000.0 / fps if fps > 0 else 0.0
    loop = FrameLoop(frame_interval_ms=frame_interval_ms)
    recorder = FrameRecorder(output_config, frame_duration=max(frame_interval_ms, 10.0) / 1000.0)
    animator = ProgressiveAnimator(
        config.resolution,
        config.max_iter,
        recorder,
        ConsoleProgress(),
        loop,
        device=device,
    )
    controller = ViewportController(config, animator)

    try:
        controller.request_initial_render()
        for intent in intents:
            apply_intent(controller, intent)
        fired = loop.run()
        logger.debug("Frame loop idle after %d callbacks", fired)
        viewport = controller.viewport
        logger.info(
            "Final view: center=(%.6g, %.6g) scale=%.6g, %d frames presented",
            viewport.center_x,
            viewport.center_y,
            viewport.scale,
            recorder.frames_presented,
        )
        recorder.finalize()
    finally:
        recorder.close()
    return recorder


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    setup_logging(logging.DEBUG if opt.verbose else logging.INFO, log_file=opt.log_file)

    intents = [parse_intent(value, parser) for value in opt.intents]
    try:
        config = ExplorerConfig.from_args(opt)
    except ValueError as exc:
        parser.error(str(exc))

    device = select_device()

    if opt.interactive:
        from mandelbrot_explorer.viewer import ExplorerWindow

        ExplorerWindow(config, device=device).show()
        return

    output_config = resolve_output_config(opt, parser)
    run_headless(config, intents, output_config, opt.fps, device)


if __name__ == '__main__':
    main()
