# どこで: `src/flowfield/core/field_grid.py`。
# 何を: ノイズから角度格子（flow field）を構築し、キャンバス座標 -> 格子角度の参照を提供する。
# なぜ: ストロークの積分が「その地点の流れの向き」を O(1) で引けるようにするため。

"""角度格子 `FieldGrid` の構築と参照。

格子の論理範囲はキャンバスの -50%..+150%（幅・高さとも）で、キャンバスより大きい。
一方で `angle_at()` はキャンバス [0, width) × [0, height) を格子全体へ引き伸ばして対応付ける。
キャンバス内の点は必ずどれかのセルに落ちる（最終列/行へクランプ）。

列数/行数の丸め
----------------
`(right - left) / cell_size` は一般に非整数になる。ここでは
「0 以上 n 未満の整数インデックスの個数」= `ceil(n)` を列数とする。
浮動小数の誤差で整数値が 100.0000000001 のようになった場合に列が 1 つ増えないよう、
`_COUNT_EPS` だけ差し引いてから切り上げる。

例: 1000×750, grid_resolution=0.015 → cell 15px, 2000/15=133.3 → 134 列, 1500/15 → 100 行。
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from flowfield.core.config import FlowfieldConfig
from flowfield.core.errors import DegenerateGridError
from flowfield.core.noise import NOISE_MAX, NOISE_MIN, NoiseSource, map_range

_logger = logging.getLogger(__name__)

TAU = 2.0 * math.pi

# 格子範囲（キャンバス寸法に対する比）。
_EXTENT_MIN = -0.5
_EXTENT_MAX = 1.5

_COUNT_EPS = 1e-9


@dataclass(frozen=True, slots=True)
class FieldGrid:
    """角度格子。

    Attributes
    ----------
    angles:
        float64 shape `(columns, rows)` の角度配列 [rad]。値は [0, 2π)。
        `angles[column, row]` で参照する。writeable=False。
    canvas_width, canvas_height:
        構築時のキャンバス寸法 [px]。
    cell_size:
        格子セルの一辺 [px]（格子の論理空間での値）。
    left, top:
        格子論理範囲の左上 [px]。
    """

    angles: np.ndarray
    canvas_width: float
    canvas_height: float
    cell_size: float
    left: float
    top: float

    @property
    def columns(self) -> int:
        return int(self.angles.shape[0])

    @property
    def rows(self) -> int:
        return int(self.angles.shape[1])

    @property
    def column_size(self) -> float:
        """キャンバス上での 1 列の幅 [px]。"""

        return self.canvas_width / self.columns

    @property
    def row_size(self) -> float:
        """キャンバス上での 1 行の高さ [px]。"""

        return self.canvas_height / self.rows

    def index_at(self, x: float, y: float) -> tuple[int, int]:
        """キャンバス座標が落ちる (column, row) を返す。

        Raises
        ------
        IndexError
            キャンバス `[0, width) × [0, height)` の外を指す場合。ラップはしない。
        """

        fx = float(x)
        fy = float(y)
        if not (0.0 <= fx < self.canvas_width and 0.0 <= fy < self.canvas_height):
            raise IndexError(
                f"({x}, {y}) はキャンバスの外です:"
                f" canvas=({self.canvas_width}, {self.canvas_height})"
            )
        # 上端直下の値は除算の丸めで columns/rows に届くことがある。
        column = min(int(math.floor(fx / self.column_size)), self.columns - 1)
        row = min(int(math.floor(fy / self.row_size)), self.rows - 1)
        return column, row

    def angle_at(self, x: float, y: float) -> float:
        """キャンバス座標 (x, y) の場の角度 [rad] を返す。"""

        column, row = self.index_at(x, y)
        return float(self.angles[column, row])

    def cell_origin(self, column: int, row: int) -> tuple[float, float]:
        """セル (column, row) のキャンバス上の原点を返す。"""

        return (float(column) * self.column_size, float(row) * self.row_size)


def _lattice_count(span: float, cell_size: float, *, axis: str) -> int:
    n = span / cell_size
    if not math.isfinite(n):
        raise DegenerateGridError(f"{axis} の格子数が非有限です: span={span}, cell_size={cell_size}")
    count = int(math.ceil(n - _COUNT_EPS))
    if count <= 0:
        raise DegenerateGridError(f"{axis} の格子数が 0 です: span={span}, cell_size={cell_size}")
    return count


def build_field_grid(
    width: float,
    height: float,
    config: FlowfieldConfig,
    noise: NoiseSource,
) -> FieldGrid:
    """キャンバス寸法と設定から角度格子を構築する。

    Raises
    ------
    DegenerateGridError
        キャンバス寸法・セルサイズ・列数/行数が 0 または非有限の場合。
    """

    w = float(width)
    h = float(height)
    if not (math.isfinite(w) and math.isfinite(h)) or w <= 0.0 or h <= 0.0:
        raise DegenerateGridError(f"キャンバス寸法は正の有限値である必要があります: got=({width}, {height})")

    left = w * _EXTENT_MIN
    right = w * _EXTENT_MAX
    top = h * _EXTENT_MIN
    bottom = h * _EXTENT_MAX

    cell_size = w * float(config.grid_resolution)
    if not math.isfinite(cell_size) or cell_size <= 0.0:
        raise DegenerateGridError(f"セルサイズが 0 または非有限です: got={cell_size}")

    columns = _lattice_count(right - left, cell_size, axis="column")
    rows = _lattice_count(bottom - top, cell_size, axis="row")

    scale = float(config.noise_scale)
    xs = np.arange(columns, dtype=np.float64) * scale
    ys = np.arange(rows, dtype=np.float64) * scale
    values = noise.sample_lattice(xs, ys, float(config.noise_depth))

    angles = map_range(values, NOISE_MIN, NOISE_MAX, 0.0, TAU)
    # 2π は 0 と同じ向き。ノイズ値の僅かな範囲外もここで [0, 2π) に収める。
    angles = np.mod(angles, TAU)
    angles[angles >= TAU] = 0.0
    angles.setflags(write=False)

    _logger.debug(
        "field grid built: canvas=%gx%g cell=%g shape=(%d, %d)", w, h, cell_size, columns, rows
    )
    return FieldGrid(
        angles=angles,
        canvas_width=w,
        canvas_height=h,
        cell_size=cell_size,
        left=left,
        top=top,
    )


__all__ = ["FieldGrid", "TAU", "build_field_grid"]
