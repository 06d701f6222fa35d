# どこで: `src/flowfield/interactive/window.py`。
# 何を: pyglet ウィンドウで flow field を段階的に描くプレビューを提供する。
# なぜ: 「毎 tick `step()`、サイズ変更で `reset()`」というループの所有者を core の外に置くため。

from __future__ import annotations

import logging

import numpy as np

from flowfield.core.compositor import DEFAULT_BATCH_SIZE, Compositor
from flowfield.core.config import FlowfieldConfig
from flowfield.core.noise import NoiseSource
from flowfield.core.stats import FrameStatsRecorder, ParameterPanel
from flowfield.export.image import RasterSurface

_logger = logging.getLogger(__name__)


class PreviewSession:
    """ウィンドウ 1 枚ぶんの描画状態（pyglet 非依存）。

    - `resize()` は描画面を作り直して `reset()` する（途中経過は破棄）
    - `tick()` は 1 バッチ描き、描いたら `dirty` を立てる
    """

    def __init__(
        self,
        config: FlowfieldConfig,
        *,
        canvas_size: tuple[int, int],
        seed: int | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        panel: ParameterPanel | None = None,
        stats: FrameStatsRecorder | None = None,
    ) -> None:
        rng = np.random.default_rng(seed)
        width, height = (int(canvas_size[0]), int(canvas_size[1]))
        self.surface = RasterSurface(width, height)
        self.compositor = Compositor(
            self.surface,
            config=config,
            noise=NoiseSource(seed=int(rng.integers(0, 2**31 - 1))),
            rng=rng,
            panel=panel,
            stats=stats,
            batch_size=batch_size,
        )
        self.compositor.reset(width, height)
        self.dirty = True

    @property
    def size(self) -> tuple[int, int]:
        return self.surface.size

    def resize(self, width: int, height: int) -> None:
        if (int(width), int(height)) == self.surface.size:
            return
        if int(width) <= 0 or int(height) <= 0:
            # 最小化などで 0 になる。次の有効なサイズまで待つ。
            return
        self.surface.resize(width, height)
        self.compositor.reset(width, height)
        self.dirty = True

    def reconfigure(self, config: FlowfieldConfig) -> None:
        """設定を差し替えて最初から描き直す。"""

        self.compositor.configure(config)
        self.compositor.reset(*self.surface.size)
        self.dirty = True

    def tick(self) -> int:
        n = self.compositor.step()
        if n > 0:
            self.dirty = True
        return n

    def frame_rgba(self) -> bytes:
        """現在の描画内容を上から下の行順の RGBA バイト列で返す。"""

        self.dirty = False
        return self.surface.to_image().convert("RGBA").tobytes()


def run_window(
    config: FlowfieldConfig,
    *,
    canvas_size: tuple[int, int],
    seed: int | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    fps: float = 60.0,
    window_pos: tuple[int, int] | None = None,
    panel: ParameterPanel | None = None,
    stats: FrameStatsRecorder | None = None,
) -> None:
    """プレビューウィンドウを開き、閉じられるまでブロックする。"""

    import pyglet

    width, height = (int(canvas_size[0]), int(canvas_size[1]))
    window = pyglet.window.Window(width=width, height=height, resizable=True, caption="flowfield")
    if window_pos is not None:
        window.set_location(int(window_pos[0]), int(window_pos[1]))

    session = PreviewSession(
        config,
        canvas_size=(width, height),
        seed=seed,
        batch_size=batch_size,
        panel=panel,
        stats=stats,
    )
    frame: list[object] = [None]

    @window.event
    def on_draw() -> None:
        if session.dirty or frame[0] is None:
            w, h = session.size
            # Pillow は上から下、pyglet は下から上の行順なので pitch を負にする。
            frame[0] = pyglet.image.ImageData(w, h, "RGBA", session.frame_rgba(), pitch=-w * 4)
        window.clear()
        frame[0].blit(0, 0)  # type: ignore[attr-defined]

    @window.event
    def on_resize(w: int, h: int) -> None:
        # 既定ハンドラ（viewport 更新）も走らせるため、ここでは EVENT_HANDLED を返さない。
        session.resize(w, h)
        frame[0] = None

    def _update(_dt: float) -> None:
        session.tick()

    pyglet.clock.schedule_interval(_update, 1.0 / float(fps))
    _logger.info("preview window opened: %dx%d", width, height)
    try:
        pyglet.app.run()
    finally:
        pyglet.clock.unschedule(_update)


__all__ = ["PreviewSession", "run_window"]
