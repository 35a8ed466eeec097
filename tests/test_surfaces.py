import io
from argparse import Namespace

import imageio
import numpy as np
import PIL.Image
import pytest

from explore import build_parser
from mandelbrot_explorer.surfaces import ConsoleProgress, FrameRecorder, OutputConfig, resolve_output_config


def _resolve(*args):
    parser = build_parser()
    return resolve_output_config(parser.parse_args(list(args)), parser)


def _frame(value, shape=(4, 6)):
    frame = np.full(shape + (4,), value, dtype=np.uint8)
    frame[..., 3] = 255
    return frame


def test_default_mode_is_final_image(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = _resolve()
    assert config.modes == ("image",)
    assert config.image_path == tmp_path.resolve() / "frame_final.png"
    assert config.gif_path is None


def test_single_gif_output_gets_suffix(tmp_path):
    config = _resolve("--mode", "gif", "--output", str(tmp_path / "ramp"))
    assert config.gif_path == tmp_path.resolve() / "ramp.gif"


def test_both_file_modes_use_output_directory(tmp_path):
    config = _resolve("--mode", "gif", "--mode", "image", "--output", str(tmp_path))
    assert config.gif_path == tmp_path.resolve() / "ramp.gif"
    assert config.image_path == tmp_path.resolve() / "frame_final.png"


@pytest.mark.parametrize(
    "args",
    [
        ("--mode", "movie"),
        ("--mode", "gif", "--output", "out.png"),
        ("--mode", "image", "--format", "png", "--output", "out.jpg"),
        ("--frame-dir", "frames"),
        ("--mode", "frames", "--output", "x.png"),
    ],
)
def test_inconsistent_options_exit(args):
    with pytest.raises(SystemExit):
        _resolve(*args)


def test_recorder_writes_final_image_and_frames(tmp_path):
    config = OutputConfig(
        modes=("image", "frames"),
        gif_path=None,
        image_path=tmp_path / "final.png",
        frame_dir=tmp_path / "frames",
        image_format="png",
    )
    recorder = FrameRecorder(config)
    try:
        recorder(_frame(10))
        recorder(_frame(200))
        assert recorder.finalize() == tmp_path / "final.png"
    finally:
        recorder.close()

    assert recorder.frames_presented == 2
    assert sorted(p.name for p in (tmp_path / "frames").iterdir()) == ["frame0000.png", "frame0001.png"]
    with PIL.Image.open(tmp_path / "final.png") as image:
        assert image.mode == "RGB"
        assert image.size == (6, 4)
        assert image.getpixel((0, 0)) == (200, 200, 200)


def test_recorder_keeps_copy_of_presented_frame(tmp_path):
    config = OutputConfig(("image",), None, tmp_path / "final.png", None, "png")
    recorder = FrameRecorder(config)
    frame = _frame(5)
    recorder(frame)
    frame[...] = 0
    assert recorder.last_frame[0, 0, 0] == 5


def test_recorder_appends_every_frame_to_gif(tmp_path):
    gif_path = tmp_path / "ramp.gif"
    config = OutputConfig(("gif",), gif_path, None, None, "png")
    recorder = FrameRecorder(config)
    try:
        for value in (0, 80, 160):
            recorder(_frame(value))
    finally:
        recorder.close()
    assert recorder.finalize() is None
    assert len(imageio.mimread(str(gif_path))) == 3


def test_finalize_without_frames_writes_nothing(tmp_path):
    config = OutputConfig(("image",), None, tmp_path / "final.png", None, "png")
    assert FrameRecorder(config).finalize() is None
    assert not (tmp_path / "final.png").exists()


def test_console_progress_ends_line_at_completion():
    stream = io.StringIO()
    progress = ConsoleProgress(stream=stream)
    for percent in (0, 42, 100):
        progress(percent)
    assert stream.getvalue() == "progress   0%\rprogress  42%\rprogress 100%\n"
    assert progress.last_percent == 100


def test_explorer_config_from_cli_args():
    from mandelbrot_explorer import ExplorerConfig

    opt = Namespace(width=320, height=200, max_iterations=50, zoom_factor=2.0, duration=0.5)
    config = ExplorerConfig.from_args(opt)
    assert config.resolution.shape == (200, 320)
    assert config.animation_duration_ms == 500.0
    assert config.max_iter == 50
