"""角度格子に沿ってストロークのポリラインを積分する。

アルゴリズム
------------
開始点 P から、

1. `angle = grid.angle_at(P)` を引く
2. `P' = P + segment_length * (cos(angle), sin(angle))`
3. `P'` がキャンバス `[0, width) × [0, height)` の外なら即終了（`P'` は捨てる）
4. そうでなければ `P'` を追加し、残り長さを `segment_length` だけ減らす
5. 残り長さが 1 セグメント分に満たなくなったら終了

残り長さの初期値は `max_length_fraction * max(width, height)`。
ステップ数の上限を `max_segments()` で先に決めるため、経路長が初期値を超えることはない。
"""

from __future__ import annotations

import math

import numpy as np
from numba import njit  # type: ignore[import-untyped]

from flowfield.core.field_grid import FieldGrid

# budget / segment_length が整数に近いときの誤差吸収（相対）。
_STEP_EPS = 1e-9

# 点列バッファの初期行数（足りなければ倍々で伸ばす）。
_INITIAL_CAPACITY = 256


def stroke_budget(grid: FieldGrid, max_length_fraction: float) -> float:
    """1 本あたりの長さ予算 [px] を返す。"""

    return float(max_length_fraction) * max(grid.canvas_width, grid.canvas_height)


def max_segments(budget: float, segment_length: float) -> int:
    """予算内で取れるステップ数の上限を返す。"""

    seg = float(segment_length)
    if seg <= 0.0 or not math.isfinite(seg):
        raise ValueError(f"segment_length は正の有限値である必要があります: got={segment_length}")
    if budget <= 0.0:
        return 0
    return int(math.floor(float(budget) / seg + _STEP_EPS))


@njit(cache=True)
def _trace_into(
    out: np.ndarray,
    n0: int,
    angles: np.ndarray,
    column_size: float,
    row_size: float,
    width: float,
    height: float,
    segment_length: float,
    n_steps: int,
) -> int:
    """out[n0 - 1] から最大 n_steps 点を書き足し、書き終えた後の点数を返す（Numba）。"""
    columns = angles.shape[0]
    rows = angles.shape[1]

    n = n0
    x = out[n - 1, 0]
    y = out[n - 1, 1]
    for _ in range(n_steps):
        # 現在点は常にキャンバス内。上端直下の丸めだけ最終列/行へ寄せる。
        column = min(int(math.floor(x / column_size)), columns - 1)
        row = min(int(math.floor(y / row_size)), rows - 1)
        angle = angles[column, row]
        nx = x + math.cos(angle) * segment_length
        ny = y + math.sin(angle) * segment_length
        if nx < 0.0 or nx >= width or ny < 0.0 or ny >= height:
            break
        out[n, 0] = nx
        out[n, 1] = ny
        n += 1
        x = nx
        y = ny
    return n


def trace_stroke(
    grid: FieldGrid,
    start: tuple[float, float],
    *,
    segment_length: float,
    max_length_fraction: float,
) -> np.ndarray:
    """開始点から場に沿って 1 本のポリラインを積分する。

    Parameters
    ----------
    grid : FieldGrid
        角度格子。
    start : tuple[float, float]
        開始点。キャンバス `[0, width) × [0, height)` の内側であること。
    segment_length : float
        1 ステップの長さ [px]。
    max_length_fraction : float
        長さ予算（max(幅, 高さ) に対する比）。

    Returns
    -------
    np.ndarray
        float64 shape `(N, 2)` の点列（N >= 1）。先頭は必ず開始点。

    Raises
    ------
    ValueError
        開始点がキャンバス外、または segment_length が正でない場合。
    """

    x0 = float(start[0])
    y0 = float(start[1])
    width = float(grid.canvas_width)
    height = float(grid.canvas_height)
    if not (0.0 <= x0 < width and 0.0 <= y0 < height):
        raise ValueError(f"開始点はキャンバス内である必要があります: got=({x0}, {y0})")

    n_steps = max_segments(stroke_budget(grid, max_length_fraction), segment_length)
    seg = float(segment_length)
    column_size = float(grid.column_size)
    row_size = float(grid.row_size)

    # 予算が大きくても実際の経路は早く抜けることが多いので、バッファは倍々で伸ばす。
    out = np.empty((min(n_steps, _INITIAL_CAPACITY) + 1, 2), dtype=np.float64)
    out[0, 0] = x0
    out[0, 1] = y0
    n = 1
    remaining = n_steps
    while remaining > 0:
        take = min(remaining, out.shape[0] - n)
        m = _trace_into(out, n, grid.angles, column_size, row_size, width, height, seg, take)
        remaining -= m - n
        stopped = m - n < take
        n = m
        if stopped or remaining <= 0:
            break
        grow = min(remaining, out.shape[0])
        out = np.concatenate([out, np.empty((grow, 2), dtype=np.float64)])
    return out[:n].copy()


def path_length(points: np.ndarray) -> float:
    """ポリラインの長さ（セグメント長の和）を返す。"""

    if points.shape[0] < 2:
        return 0.0
    d = np.diff(points, axis=0)
    return float(np.sum(np.hypot(d[:, 0], d[:, 1])))


__all__ = ["max_segments", "path_length", "stroke_budget", "trace_stroke"]
