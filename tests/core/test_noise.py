"""NoiseSource（OpenSimplex）のテスト。"""

from __future__ import annotations

import numpy as np
import pytest

from flowfield.core.noise import NOISE_MAX, NOISE_MIN, NoiseSource, map_range


def test_same_seed_same_values() -> None:
    a = NoiseSource(seed=11)
    b = NoiseSource(seed=11)
    for x, y, z in [(0.1, 0.2, 1.0), (3.5, -2.25, 0.0), (100.0, 7.0, 4.2)]:
        assert a.sample(x, y, z) == b.sample(x, y, z)


def test_different_seeds_differ_somewhere() -> None:
    a = NoiseSource(seed=1)
    b = NoiseSource(seed=2)
    pts = [(0.37 * i, 0.11 * i, 1.0) for i in range(1, 20)]
    assert any(a.sample(*p) != b.sample(*p) for p in pts)


def test_values_within_documented_bounds() -> None:
    noise = NoiseSource(seed=5)
    xs = np.linspace(-10.0, 10.0, 41)
    ys = np.linspace(-5.0, 5.0, 23)
    values = noise.sample_lattice(xs, ys, 1.0)
    assert values.shape == (41, 23)
    assert np.all(values >= NOISE_MIN - 1e-9)
    assert np.all(values <= NOISE_MAX + 1e-9)


def test_lattice_agrees_with_point_samples() -> None:
    noise = NoiseSource(seed=9)
    xs = np.arange(7, dtype=np.float64) * 0.3
    ys = np.arange(5, dtype=np.float64) * 0.3
    values = noise.sample_lattice(xs, ys, 1.0)
    for i, x in enumerate(xs):
        for j, y in enumerate(ys):
            assert values[i, j] == pytest.approx(noise.sample(x, y, 1.0), abs=1e-12)


def test_map_range_is_linear() -> None:
    assert map_range(-1.0, -1.0, 1.0, 0.0, 10.0) == 0.0
    assert map_range(0.0, -1.0, 1.0, 0.0, 10.0) == 5.0
    assert map_range(1.0, -1.0, 1.0, 0.0, 10.0) == 10.0
    out = map_range(np.array([0.0, 0.5]), 0.0, 1.0, 0.0, 2.0)
    np.testing.assert_allclose(out, [0.0, 1.0])
