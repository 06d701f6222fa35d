"""StrokeTracer（trace_stroke）のテスト。"""

from __future__ import annotations

import math

import numpy as np
import pytest

from flowfield.core.config import FlowfieldConfig
from flowfield.core.field_grid import FieldGrid, build_field_grid
from flowfield.core.noise import NoiseSource
from flowfield.core.tracer import max_segments, path_length, stroke_budget, trace_stroke


def _uniform_grid(angle: float, *, width: float = 100.0, height: float = 100.0) -> FieldGrid:
    """全セルが同じ角度を持つ 10x10 の格子を返す。"""
    return FieldGrid(
        angles=np.full((10, 10), float(angle), dtype=np.float64),
        canvas_width=width,
        canvas_height=height,
        cell_size=width / 5.0,
        left=-0.5 * width,
        top=-0.5 * height,
    )


def test_straight_stroke_runs_until_budget() -> None:
    grid = _uniform_grid(0.0)
    pts = trace_stroke(grid, (5.0, 50.0), segment_length=10.0, max_length_fraction=0.9)
    # 予算 90px -> 9 ステップ
    assert pts.shape == (10, 2)
    np.testing.assert_allclose(pts[:, 0], np.arange(5.0, 100.0, 10.0))
    np.testing.assert_allclose(pts[:, 1], 50.0)
    assert path_length(pts) == pytest.approx(90.0)


def test_stroke_stops_before_leaving_canvas() -> None:
    grid = _uniform_grid(0.0)
    pts = trace_stroke(grid, (50.0, 50.0), segment_length=10.0, max_length_fraction=0.9)
    # 100.0 は [0, 100) の外なので捨てる
    np.testing.assert_allclose(pts[:, 0], [50.0, 60.0, 70.0, 80.0, 90.0])


def test_stroke_follows_field_direction() -> None:
    grid = _uniform_grid(math.pi / 2.0)
    pts = trace_stroke(grid, (20.0, 10.0), segment_length=5.0, max_length_fraction=0.2)
    np.testing.assert_allclose(pts[:, 0], 20.0, atol=1e-9)
    np.testing.assert_allclose(pts[:, 1], [10.0, 15.0, 20.0, 25.0, 30.0])


def test_immediate_exit_keeps_only_start() -> None:
    grid = _uniform_grid(math.pi)
    pts = trace_stroke(grid, (3.0, 40.0), segment_length=10.0, max_length_fraction=0.9)
    assert pts.shape == (1, 2)
    np.testing.assert_allclose(pts[0], [3.0, 40.0])


def test_zero_budget_keeps_only_start() -> None:
    grid = _uniform_grid(0.0)
    pts = trace_stroke(grid, (10.0, 10.0), segment_length=10.0, max_length_fraction=0.0)
    assert pts.shape == (1, 2)


def test_partial_segment_budget_is_not_exceeded() -> None:
    grid = _uniform_grid(0.0, width=200.0, height=100.0)
    # 予算 0.475 * 200 = 95px、セグメント 10px -> 9 ステップ（90px）
    pts = trace_stroke(grid, (0.0, 50.0), segment_length=10.0, max_length_fraction=0.475)
    assert pts.shape[0] == 10
    assert path_length(pts) <= stroke_budget(grid, 0.475)


@pytest.mark.parametrize("start", [(-1.0, 10.0), (10.0, 100.0), (100.0, 10.0)])
def test_start_outside_canvas_is_rejected(start: tuple[float, float]) -> None:
    with pytest.raises(ValueError):
        trace_stroke(_uniform_grid(0.0), start, segment_length=10.0, max_length_fraction=0.5)


def test_start_just_below_right_edge_is_traced() -> None:
    # 64 / 134 の列幅では、右端直下の x が除算の丸めで列 134 になる。
    grid = FieldGrid(
        angles=np.full((134, 100), math.pi, dtype=np.float64),
        canvas_width=64.0,
        canvas_height=48.0,
        cell_size=64.0 * 0.015,
        left=-32.0,
        top=-24.0,
    )
    x0 = float(np.nextafter(64.0, -math.inf))
    pts = trace_stroke(grid, (x0, 10.0), segment_length=1.0, max_length_fraction=0.5)
    assert pts.shape == (33, 2)
    np.testing.assert_allclose(pts[-1], [x0 - 32.0, 10.0], atol=1e-9)


def test_long_stroke_grows_past_initial_buffer() -> None:
    grid = _uniform_grid(0.0, width=1000.0, height=100.0)
    pts = trace_stroke(grid, (0.0, 50.0), segment_length=1.0, max_length_fraction=0.9)
    assert pts.shape == (901, 2)
    np.testing.assert_allclose(pts[:, 0], np.arange(0.0, 901.0))


def test_huge_budget_returns_only_the_reached_points() -> None:
    grid = _uniform_grid(0.0)
    pts = trace_stroke(grid, (50.0, 50.0), segment_length=1.0, max_length_fraction=5000.0)
    assert pts.shape == (50, 2)
    assert pts.base is None
    np.testing.assert_allclose(pts[:, 0], np.arange(50.0, 100.0))


def test_max_segments() -> None:
    assert max_segments(900.0, 10.0) == 90
    assert max_segments(905.0, 10.0) == 90
    assert max_segments(0.9 * 1000.0, 10.0) == 90
    assert max_segments(0.0, 10.0) == 0
    with pytest.raises(ValueError):
        max_segments(100.0, 0.0)


def test_strokes_on_noise_field_stay_bounded() -> None:
    width, height = 1000.0, 750.0
    cfg = FlowfieldConfig()
    grid = build_field_grid(width, height, cfg, NoiseSource(seed=17))
    budget = stroke_budget(grid, cfg.max_stroke_length)
    assert budget == pytest.approx(900.0)

    rng = np.random.default_rng(3)
    for _ in range(200):
        start = (float(rng.uniform(0.0, width)), float(rng.uniform(0.0, height)))
        pts = trace_stroke(
            grid,
            start,
            segment_length=cfg.stroke_segment_length,
            max_length_fraction=cfg.max_stroke_length,
        )
        assert 1 <= pts.shape[0] <= 91
        assert np.all(pts[:, 0] >= 0.0) and np.all(pts[:, 0] < width)
        assert np.all(pts[:, 1] >= 0.0) and np.all(pts[:, 1] < height)
        assert path_length(pts) <= budget + 1e-6


def test_trace_is_deterministic() -> None:
    grid = build_field_grid(500.0, 400.0, FlowfieldConfig(), NoiseSource(seed=2))
    a = trace_stroke(grid, (250.0, 200.0), segment_length=10.0, max_length_fraction=0.9)
    b = trace_stroke(grid, (250.0, 200.0), segment_length=10.0, max_length_fraction=0.9)
    np.testing.assert_array_equal(a, b)
