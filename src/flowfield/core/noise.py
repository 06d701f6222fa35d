"""3 次元 coherent noise の供給源（OpenSimplex）。

`NoiseSource` はシードを 1 回だけ受け取り、以後は (x, y, z) の純関数として振る舞う。
出力範囲は OpenSimplex の仕様どおり [NOISE_MIN, NOISE_MAX] = [-1, 1]。
角度として使う前に `map_range()` で写像すること。
"""

from __future__ import annotations

import numpy as np
from opensimplex import OpenSimplex  # type: ignore[import-untyped]

NOISE_MIN = -1.0
NOISE_MAX = 1.0

# opensimplex の既定シードに合わせる。
DEFAULT_SEED = 3


def map_range(
    value: float | np.ndarray,
    in_min: float,
    in_max: float,
    out_min: float,
    out_max: float,
) -> float | np.ndarray:
    """値を [in_min, in_max] から [out_min, out_max] へ線形写像する。

    範囲外の値もクリップせずに外挿する。
    """

    return (value - in_min) * (out_max - out_min) / (in_max - in_min) + out_min


class NoiseSource:
    """シード固定の 3D OpenSimplex ノイズ。"""

    def __init__(self, seed: int = DEFAULT_SEED) -> None:
        self._seed = int(seed)
        self._gen = OpenSimplex(seed=self._seed)

    @property
    def seed(self) -> int:
        return self._seed

    def sample(self, x: float, y: float, z: float) -> float:
        """1 点のノイズ値を返す。"""

        return float(self._gen.noise3(float(x), float(y), float(z)))

    def sample_lattice(self, xs: np.ndarray, ys: np.ndarray, z: float) -> np.ndarray:
        """`xs × ys` の直積格子上でノイズをまとめて評価する。

        Returns
        -------
        np.ndarray
            float64 shape `(len(xs), len(ys))`。`out[i, j] == sample(xs[i], ys[j], z)`。
        """

        xs_a = np.ascontiguousarray(xs, dtype=np.float64)
        ys_a = np.ascontiguousarray(ys, dtype=np.float64)
        zs_a = np.array([float(z)], dtype=np.float64)
        # noise3array は (z, y, x) の順で返す。
        block = self._gen.noise3array(xs_a, ys_a, zs_a)
        return np.ascontiguousarray(np.asarray(block, dtype=np.float64)[0].T)


__all__ = ["DEFAULT_SEED", "NOISE_MAX", "NOISE_MIN", "NoiseSource", "map_range"]
