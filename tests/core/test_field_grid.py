"""角度格子（build_field_grid / FieldGrid.angle_at）のテスト。"""

from __future__ import annotations

import math

import numpy as np
import pytest

from flowfield.core.config import FlowfieldConfig
from flowfield.core.errors import DegenerateGridError
from flowfield.core.field_grid import TAU, build_field_grid
from flowfield.core.noise import NoiseSource


def _grid(width: float = 1000.0, height: float = 750.0, seed: int = 3, **changes):
    cfg = FlowfieldConfig().with_changes(**changes)
    return build_field_grid(width, height, cfg, NoiseSource(seed=seed))


def test_dimensions_follow_loop_bound_rounding() -> None:
    grid = _grid()
    assert grid.cell_size == pytest.approx(15.0)
    # 2000 / 15 = 133.33.. -> 134 列、1500 / 15 = 100 -> 100 行
    assert (grid.columns, grid.rows) == (134, 100)
    assert grid.left == -500.0
    assert grid.top == -375.0


def test_angles_are_in_half_open_turn() -> None:
    grid = _grid(seed=21, noise_scale=0.05)
    assert grid.angles.dtype == np.float64
    assert np.all(grid.angles >= 0.0)
    assert np.all(grid.angles < TAU)


def test_angles_are_read_only() -> None:
    grid = _grid()
    with pytest.raises(ValueError):
        grid.angles[0, 0] = 1.0


def test_angles_map_noise_linearly() -> None:
    cfg = FlowfieldConfig(noise_scale=0.02, noise_depth=1.5)
    noise = NoiseSource(seed=4)
    grid = build_field_grid(400.0, 300.0, cfg, noise)
    for column, row in [(0, 0), (3, 7), (grid.columns - 1, grid.rows - 1)]:
        n = noise.sample(column * 0.02, row * 0.02, 1.5)
        expected = (n + 1.0) * math.pi
        actual = grid.angles[column, row]
        assert min(abs(actual - expected), TAU - abs(actual - expected)) < 1e-9


def test_same_seed_builds_identical_grid() -> None:
    a = _grid(seed=8)
    b = _grid(seed=8)
    np.testing.assert_array_equal(a.angles, b.angles)


def test_every_canvas_point_resolves_to_a_cell() -> None:
    grid = _grid()
    rng = np.random.default_rng(0)
    xs = rng.uniform(0.0, 1000.0, size=2000)
    ys = rng.uniform(0.0, 750.0, size=2000)
    for x, y in zip(xs, ys):
        angle = grid.angle_at(float(x), float(y))
        assert 0.0 <= angle < TAU

    for x, y in [(0.0, 0.0), (1000.0 - 1e-6, 0.0), (0.0, 750.0 - 1e-6), (999.999, 749.999)]:
        column, row = grid.index_at(x, y)
        assert 0 <= column < grid.columns
        assert 0 <= row < grid.rows


@pytest.mark.parametrize("width, height", [(64.0, 48.0), (1000.0, 750.0), (333.0, 1217.0), (2999.0, 71.0)])
@pytest.mark.parametrize("resolution", [0.005, 0.0123, 0.015, 0.05, 0.1])
def test_last_representable_point_falls_in_last_cell(width: float, height: float, resolution: float) -> None:
    grid = _grid(width, height, grid_resolution=resolution)
    x = float(np.nextafter(width, -math.inf))
    y = float(np.nextafter(height, -math.inf))
    assert grid.index_at(x, y) == (grid.columns - 1, grid.rows - 1)
    assert 0.0 <= grid.angle_at(x, y) < TAU
    assert grid.index_at(x, 10.0)[0] == grid.columns - 1


def test_angle_at_uses_canvas_wide_cell_mapping() -> None:
    grid = _grid()
    column_size = 1000.0 / 134
    row_size = 750.0 / 100
    x, y = 3.5 * column_size, 10.5 * row_size
    assert grid.index_at(x, y) == (3, 10)
    assert grid.angle_at(x, y) == grid.angles[3, 10]
    assert grid.cell_origin(3, 10) == pytest.approx((3 * column_size, 10 * row_size))


@pytest.mark.parametrize(
    "x, y",
    [(-0.5, 10.0), (10.0, -0.5), (1000.0 + 10.0, 10.0), (10.0, 900.0), (1000.0, 10.0), (10.0, 750.0)],
)
def test_angle_at_rejects_points_outside_canvas(x: float, y: float) -> None:
    grid = _grid()
    with pytest.raises(IndexError):
        grid.angle_at(x, y)


@pytest.mark.parametrize(
    "width, height, changes",
    [
        (0.0, 100.0, {}),
        (100.0, -1.0, {}),
        (math.nan, 100.0, {}),
        (100.0, 100.0, {"grid_resolution": 0.0}),
        (100.0, 100.0, {"grid_resolution": math.inf}),
    ],
)
def test_degenerate_grid_is_rejected(width: float, height: float, changes: dict) -> None:
    cfg = FlowfieldConfig().with_changes(**changes)
    with pytest.raises(DegenerateGridError):
        build_field_grid(width, height, cfg, NoiseSource())
