# どこで: `src/flowfield/core/compositor.py`。
# 何を: 角度格子の再構築（reset）と、1 呼び出しあたり上限付きのストローク描画（step）を束ねる。
# なぜ: 外部のアニメーションループから毎 tick `step()` を呼ぶだけで、段階的に絵が出来上がるようにするため。

"""flow field 描画のセッション管理。

公開操作
--------
- `configure(config)`: 新しい設定を検証して保留する。効くのは次の `reset()` から。
- `reset(width, height)`: 格子を作り直し、カウンタ 0・パレット再選択・背景クリア・
  （任意で）デバッグ格子描画を行う。キャンバス寸法や設定が変わったら必ず呼ぶ。
- `step()`: 最大 `batch_size` 本を描く。予算到達後は何もしない。

状態遷移は単一スレッド前提。`reset()` は新しい格子を完成させてから差し替えるため、
途中で失敗しても前回の状態は残る。
"""

from __future__ import annotations

import logging
import math

import numpy as np

from flowfield.core.color import WHITE, Color
from flowfield.core.config import CONFIG_META, FlowfieldConfig, validate_config
from flowfield.core.field_grid import FieldGrid, build_field_grid
from flowfield.core.noise import NoiseSource
from flowfield.core.palette import Palette, choose_color, choose_palette
from flowfield.core.stats import FrameStatsRecorder, ParameterPanel
from flowfield.core.stroke import Stroke
from flowfield.core.surface import DrawingSurface
from flowfield.core.tracer import trace_stroke

_logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 300

# デバッグ格子の見た目。
_GRID_COLOR: Color = (1.0, 1.0, 1.0, 0.3)
_GRID_LENGTH_RATIO = 0.8


def _below(limit: float) -> float:
    return float(np.nextafter(float(limit), -math.inf))


class Compositor:
    """描画面・ストローク予算・描画済み本数を持ち、描画命令を発行する。

    Parameters
    ----------
    surface : DrawingSurface
        描画先。寸法の管理は呼び出し側が行う。
    config : FlowfieldConfig | None
        初期設定。省略時は既定値。
    noise : NoiseSource | None
        ノイズ源。省略時は `rng` からシードを引いて作る。
    rng : np.random.Generator | None
        開始点・線幅・色・パレットの乱数源。
    panel : ParameterPanel | None
        `configure()` のたびに設定を提示する。
    stats : FrameStatsRecorder | None
        `step()` を begin/end で挟む。
    batch_size : int
        1 回の `step()` で描く最大本数。
    palettes : sequence of Palette | None
        パレット表。省略時は同梱表。
    """

    def __init__(
        self,
        surface: DrawingSurface,
        *,
        config: FlowfieldConfig | None = None,
        noise: NoiseSource | None = None,
        rng: np.random.Generator | None = None,
        panel: ParameterPanel | None = None,
        stats: FrameStatsRecorder | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        palettes: tuple[Palette, ...] | None = None,
    ) -> None:
        if int(batch_size) <= 0:
            raise ValueError(f"batch_size は 1 以上である必要があります: got={batch_size}")

        self._surface = surface
        self._rng = rng if rng is not None else np.random.default_rng()
        self._noise = (
            noise if noise is not None else NoiseSource(seed=int(self._rng.integers(0, 2**31 - 1)))
        )
        self._panel = panel
        self._stats = stats
        self._batch_size = int(batch_size)
        self._palettes = palettes

        self._pending = validate_config(config if config is not None else FlowfieldConfig())
        self._config: FlowfieldConfig | None = None
        self._grid: FieldGrid | None = None
        self._palette: Palette = ()
        self._strokes_drawn = 0
        self._completion_logged = False

        if self._panel is not None:
            self._panel.present(self._pending, CONFIG_META)

    # --- 状態 -----------------------------------------------------------

    @property
    def config(self) -> FlowfieldConfig:
        """次の reset で使う設定（保留中を含む）。"""

        return self._pending

    @property
    def active_config(self) -> FlowfieldConfig | None:
        """直近の reset で採用された設定。未 reset なら None。"""

        return self._config

    @property
    def grid(self) -> FieldGrid | None:
        return self._grid

    @property
    def palette(self) -> Palette:
        return self._palette

    @property
    def noise(self) -> NoiseSource:
        return self._noise

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def strokes_drawn(self) -> int:
        return self._strokes_drawn

    @property
    def canvas_size(self) -> tuple[float, float] | None:
        if self._grid is None:
            return None
        return (self._grid.canvas_width, self._grid.canvas_height)

    @property
    def is_complete(self) -> bool:
        """予算に到達済みなら True（未 reset なら False）。"""

        cfg = self._config
        return cfg is not None and self._strokes_drawn >= int(cfg.stroke_count)

    # --- 操作 -----------------------------------------------------------

    def configure(self, config: FlowfieldConfig) -> None:
        """設定を検証して保留する。効くのは次の `reset()` から。

        Raises
        ------
        ConfigurationError
            設定が有効域の外にある場合（保留中の設定は変更しない）。
        """

        self._pending = validate_config(config)
        if self._panel is not None:
            self._panel.present(self._pending, CONFIG_META)

    def reset(self, width: float, height: float) -> None:
        """キャンバス寸法に対して描画セッションを作り直す。

        Raises
        ------
        ConfigurationError
            保留中の設定が不正な場合。
        DegenerateGridError
            格子が作れない場合。いずれも前回の状態は変更しない。
        """

        config = validate_config(self._pending)
        grid = build_field_grid(width, height, config, self._noise)

        self._config = config
        self._grid = grid
        self._strokes_drawn = 0
        self._completion_logged = False
        self._palette = choose_palette(self._rng, self._palettes)

        self._surface.clear(config.background_color)
        if config.draw_grid:
            self.draw_grid()

        _logger.debug(
            "reset: canvas=%gx%g grid=(%d, %d) budget=%d",
            grid.canvas_width,
            grid.canvas_height,
            grid.columns,
            grid.rows,
            config.stroke_count,
        )

    def step(self) -> int:
        """最大 `batch_size` 本のストロークを描き、描いた本数を返す。

        未 reset、または予算到達後は何もせず 0 を返す。
        """

        config = self._config
        grid = self._grid
        if config is None or grid is None:
            return 0

        remaining = int(config.stroke_count) - self._strokes_drawn
        if remaining <= 0:
            return 0

        if self._stats is not None:
            self._stats.begin()
        try:
            n = min(self._batch_size, remaining)
            for _ in range(n):
                self._draw_stroke(self._next_stroke(config, grid))
                self._strokes_drawn += 1
        finally:
            if self._stats is not None:
                self._stats.end()

        if self.is_complete and not self._completion_logged:
            self._completion_logged = True
            _logger.info("stroke budget reached: %d strokes", self._strokes_drawn)
        return n

    def draw_grid(self) -> None:
        """各セルの原点から、その角度方向へ短い線分を描く（デバッグ用）。"""

        grid = self._grid
        if grid is None:
            return

        surface = self._surface
        length = grid.column_size * _GRID_LENGTH_RATIO
        surface.set_stroke_color(_GRID_COLOR)
        surface.set_line_width(1.0)
        for column in range(grid.columns):
            for row in range(grid.rows):
                angle = float(grid.angles[column, row])
                x0, y0 = grid.cell_origin(column, row)
                surface.begin_path()
                surface.move_to(x0, y0)
                surface.line_to(x0 + math.cos(angle) * length, y0 + math.sin(angle) * length)
                surface.stroke()

    # --- 内部 -----------------------------------------------------------

    def _next_stroke(self, config: FlowfieldConfig, grid: FieldGrid) -> Stroke:
        rng = self._rng
        # uniform は丸めで上端ちょうどを返し得るので、半開区間に収める。
        start = (
            min(float(rng.uniform(0.0, grid.canvas_width)), _below(grid.canvas_width)),
            min(float(rng.uniform(0.0, grid.canvas_height)), _below(grid.canvas_height)),
        )
        width = float(rng.uniform(config.min_stroke_thickness, config.max_stroke_thickness))
        if config.black_and_white:
            color = WHITE
        else:
            color = choose_color(rng, self._palette)

        points = trace_stroke(
            grid,
            start,
            segment_length=config.stroke_segment_length,
            max_length_fraction=config.max_stroke_length,
        )
        return Stroke(points=points, width=width, color=color)

    def _draw_stroke(self, stroke: Stroke) -> None:
        surface = self._surface
        points = stroke.points
        surface.set_stroke_color(stroke.color)
        surface.set_line_width(stroke.width)
        surface.begin_path()
        surface.move_to(float(points[0, 0]), float(points[0, 1]))
        for x, y in points[1:].tolist():
            surface.line_to(x, y)
        surface.stroke()


__all__ = ["Compositor", "DEFAULT_BATCH_SIZE"]
