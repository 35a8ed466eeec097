import pytest

from mandelbrot_explorer import ExplorerConfig, ProgressiveAnimator, RunState, Viewport, ViewportController


@pytest.fixture
def config():
    return ExplorerConfig(width=800, height=600, animation_duration_ms=1000.0)


@pytest.fixture
def controller(config, loop, clock, renderer, sinks):
    frames, progress = sinks
    animator = ProgressiveAnimator(
        config.resolution,
        config.max_iter,
        frames.append,
        progress.append,
        loop,
        clock=clock,
        render=renderer,
    )
    return ViewportController(config, animator)


def test_starts_at_initial_view(controller):
    assert controller.viewport == Viewport(0.0, 0.0, 1.5)


def test_reset_restores_initial_view(controller):
    controller.zoom_in()
    controller.pan_by(120, -45)
    controller.reset()
    assert controller.viewport == Viewport(0.0, 0.0, 1.5)


@pytest.mark.parametrize("first,second", [("zoom_in", "zoom_out"), ("zoom_out", "zoom_in")])
def test_zoom_round_trip(controller, first, second):
    getattr(controller, first)()
    getattr(controller, second)()
    assert controller.viewport.scale == pytest.approx(1.5)


def test_zoom_in_multiplies_scale(controller):
    controller.zoom_in()
    assert controller.viewport.scale == pytest.approx(2.25)


def test_pan_moves_center_against_drag(controller):
    controller.pan_by(80, 0)
    assert controller.viewport.center_x == pytest.approx(-0.2666667, abs=1e-6)
    assert controller.viewport.center_y == 0.0
    assert controller.viewport.scale == 1.5


def test_zoom_out_is_clamped_to_min_scale(loop, clock, renderer):
    config = ExplorerConfig(initial_scale=1e-11, min_scale=1e-12)
    animator = ProgressiveAnimator(config.resolution, config.max_iter, lambda f: None, lambda p: None,
                                   loop, clock=clock, render=renderer)
    controller = ViewportController(config, animator)
    for _ in range(10):
        controller.zoom_out()
    assert controller.viewport.scale == 1e-12
    assert controller.viewport.scale > 0


def test_every_operation_supersedes_running_animation(controller):
    runs = [
        controller.request_initial_render(),
        controller.zoom_in(),
        controller.zoom_out(),
        controller.pan_by(3, 4),
        controller.reset(),
    ]
    assert [run.state for run in runs[:-1]] == [RunState.SUPERSEDED] * 4
    assert controller.animator.current_run is runs[-1]
    assert runs[-1].viewport == controller.viewport


def test_drag_pans_by_pointer_deltas(controller, config):
    controller.pan_start(100, 100)
    assert controller.dragging
    controller.pan_move(140, 100)
    controller.pan_move(180, 130)
    controller.pan_end()
    factor = 4 / (1.5 * config.width)
    assert controller.viewport.center_x == pytest.approx(-80 * factor)
    assert controller.viewport.center_y == pytest.approx(-30 * factor)
    assert controller.pan_move(500, 500) is None
    assert controller.viewport.center_x == pytest.approx(-80 * factor)


def test_pan_move_without_start_is_ignored(controller):
    assert controller.pan_move(10, 10) is None
    assert controller.animator.current_run is None


def test_duration_change_applies_to_next_run(controller, loop):
    running = controller.request_initial_render()
    controller.set_animation_duration(3)
    assert running.duration == 1000.0
    nxt = controller.request_render()
    assert nxt.duration == 3000.0


def test_zero_duration_completes_on_first_tick(controller, loop, renderer, sinks):
    _, progress = sinks
    controller.set_animation_duration(0)
    run = controller.request_render()
    loop.run()
    assert progress[-1] == 100
    assert renderer.calls == [(controller.viewport, 100)]
    assert run.ticks == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"width": 0},
        {"height": -3},
        {"max_iter": 0},
        {"zoom_factor": 1.0},
        {"min_scale": 0.0},
        {"initial_scale": 0.0},
    ],
)
def test_invalid_config_is_rejected(kwargs):
    with pytest.raises(ValueError):
        ExplorerConfig(**kwargs)
