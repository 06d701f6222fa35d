"""描画 1 回ぶんのストローク（点列 + 線幅 + 色）。"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from flowfield.core.color import Color


@dataclass(frozen=True, slots=True)
class Stroke:
    """StrokeTracer が作り、Compositor が描いたら捨てる一時値。

    Parameters
    ----------
    points : np.ndarray
        float64 shape (N, 2) の点列（N >= 1）。
    width : float
        線幅 [px]。
    color : Color
        RGBA 0..1。
    """

    points: np.ndarray
    width: float
    color: Color

    def __post_init__(self) -> None:
        points = np.asarray(self.points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 2 or points.shape[0] < 1:
            raise ValueError("points は shape (N>=1, 2) である必要がある")
        object.__setattr__(self, "points", points)

    @property
    def n_points(self) -> int:
        return int(self.points.shape[0])


__all__ = ["Stroke"]
