"""Presentation surfaces for headless runs: files on disk and console progress."""

from __future__ import annotations

import logging
import os
import sys
from argparse import ArgumentParser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, TextIO

import imageio
import numpy as np
import PIL.Image

logger = logging.getLogger(__name__)

VALID_MODES = ("gif", "image", "frames")


@dataclass
class OutputConfig:
    modes: tuple[str, ...]
    gif_path: Path | None
    image_path: Path | None
    frame_dir: Path | None
    image_format: str


def resolve_output_config(opt, parser: ArgumentParser) -> OutputConfig:
    """Validate the output-related CLI options and resolve their paths."""

    modes: list[str] = []
    for mode in opt.modes or ["image"]:
        if mode not in VALID_MODES:
            parser.error(f"Unknown output mode '{mode}'. Valid choices: {', '.join(sorted(VALID_MODES))}.")
        if mode not in modes:
            modes.append(mode)
    modes_tuple = tuple(modes)

    image_format = (getattr(opt, "format", "png") or "png").lower().lstrip(".")
    if not image_format:
        image_format = "png"

    frame_dir_path: Path | None = None
    frame_dir_value = getattr(opt, "frame_dir", None)
    if "frames" in modes_tuple:
        frame_dir_path = Path(frame_dir_value or "./frames").expanduser().resolve()
    elif frame_dir_value is not None:
        parser.error("--frame-dir is only valid with the frames mode.")

    file_modes = [mode for mode in modes_tuple if mode in {"gif", "image"}]
    output_arg = getattr(opt, "output", None)
    gif_path: Path | None = None
    image_path: Path | None = None

    if not file_modes:
        if output_arg:
            parser.error("--output is only valid when gif or image modes are requested.")
    elif len(file_modes) == 1:
        mode = file_modes[0]
        if output_arg:
            output_path = Path(output_arg).expanduser()
            if str(output_arg).endswith(tuple(filter(None, {os.sep, os.altsep}))):
                parser.error("--output must be a file path when a single file-based mode is selected.")
            if output_path.exists() and output_path.is_dir():
                parser.error("--output must point to a file, not a directory, when a single file mode is active.")
            if mode == "gif":
                if output_path.suffix and output_path.suffix.lower() != ".gif":
                    parser.error("GIF outputs must end with .gif.")
                gif_path = output_path.with_suffix(".gif").resolve()
            else:
                expected_suffix = f".{image_format}"
                if output_path.suffix and output_path.suffix.lower() != expected_suffix:
                    parser.error(f"--output extension {output_path.suffix} does not match --format {image_format}.")
                image_path = output_path.with_suffix(expected_suffix).resolve()
        elif mode == "gif":
            gif_path = Path("ramp.gif").resolve()
        else:
            image_path = Path(f"frame_final.{image_format}").resolve()
    else:
        base_dir = Path(output_arg).expanduser() if output_arg else Path.cwd()
        if base_dir.exists() and not base_dir.is_dir():
            parser.error("--output must be a directory when both gif and image modes are active.")
        gif_path = (base_dir / "ramp.gif").resolve()
        image_path = (base_dir / f"frame_final.{image_format}").resolve()

    return OutputConfig(
        modes=modes_tuple,
        gif_path=gif_path,
        image_path=image_path,
        frame_dir=frame_dir_path,
        image_format=image_format,
    )


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def to_image(frame: np.ndarray) -> PIL.Image.Image:
    """Wrap an RGBA frame buffer as an RGB Pillow image (frames are opaque)."""

    return PIL.Image.fromarray(np.ascontiguousarray(frame[..., :3]))


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=_pil_format_name(image_format))


def write_frame_sequence(
    image: PIL.Image.Image,
    frame_dir: Path,
    index: int,
    digits: int,
    image_format: str,
    prefix: str = "frame",
) -> Path:
    """Persist a frame in a numbered sequence inside ``frame_dir``."""

    frame_path = frame_dir / f"{prefix}{index:0{digits}d}.{image_format}"
    frame_dir.mkdir(parents=True, exist_ok=True)
    image.save(str(frame_path), format=_pil_format_name(image_format))
    return frame_path


@dataclass
class FrameRecorder:
    """``present_frame`` sink that records the detail ramp to disk.

    Every presented frame is appended to the GIF and to the frame sequence
    when those modes are active; the last one becomes the final image on
    :meth:`finalize`.
    """

    config: OutputConfig
    frame_duration: float = 0.1
    frame_digits: int = 4
    frames_presented: int = field(default=0, init=False)
    last_frame: Optional[np.ndarray] = field(default=None, init=False, repr=False)
    _gif_writer: Any = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if "gif" in self.config.modes and self.config.gif_path is not None:
            self.config.gif_path.parent.mkdir(parents=True, exist_ok=True)
            self._gif_writer = imageio.get_writer(
                str(self.config.gif_path), mode='I', duration=self.frame_duration, loop=0
            )

    def __call__(self, frame: np.ndarray) -> None:
        index = self.frames_presented
        self.frames_presented += 1
        self.last_frame = frame.copy()
        if self._gif_writer is not None:
            self._gif_writer.append_data(self.last_frame)
        if "frames" in self.config.modes and self.config.frame_dir is not None:
            write_frame_sequence(
                to_image(self.last_frame),
                self.config.frame_dir,
                index,
                self.frame_digits,
                self.config.image_format,
            )

    def finalize(self) -> Optional[Path]:
        """Write the final image if requested; returns its path."""

        if "image" not in self.config.modes or self.config.image_path is None:
            return None
        if self.last_frame is None:
            logger.warning("No frame was presented; skipping %s", self.config.image_path)
            return None
        write_single_image(to_image(self.last_frame), self.config.image_path, self.config.image_format)
        return self.config.image_path

    def close(self) -> None:
        if self._gif_writer is not None:
            self._gif_writer.close()
            self._gif_writer = None


@dataclass
class ConsoleProgress:
    """``report_progress`` sink printing the percentage on a single line."""

    stream: TextIO = field(default_factory=lambda: sys.stdout)
    last_percent: Optional[int] = field(default=None, init=False)

    def __call__(self, percent: int) -> None:
        self.last_percent = percent
        end = "\n" if percent >= 100 else "\r"
        print("progress {0:3d}%".format(percent), end=end, file=self.stream, flush=True)
