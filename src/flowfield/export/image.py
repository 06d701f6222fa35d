"""
どこで: `src/flowfield/export/image.py`。
何を: Pillow による DrawingSurface 実装（`RasterSurface`）と、ヘッドレス PNG 書き出しを提供する。
なぜ: ウィンドウを立ち上げずに、予算ぶんのストロークを描き切った 1 枚を保存できるようにするため。
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw

from flowfield.core.color import Color, color_to_rgba255
from flowfield.core.compositor import DEFAULT_BATCH_SIZE, Compositor
from flowfield.core.config import FlowfieldConfig
from flowfield.core.noise import NoiseSource

_logger = logging.getLogger(__name__)


class RasterSurface:
    """Pillow の画像へ描く DrawingSurface。

    内部では `scale` 倍の解像度で描き、`to_image()` で元寸法へ縮小する（スーパーサンプリング）。
    1px 未満の線幅は 1px に切り上げ、不足分をアルファで薄める。

    Parameters
    ----------
    width, height : int
        キャンバス寸法 [px]。
    scale : float
        内部描画倍率。
    """

    def __init__(self, width: int, height: int, *, scale: float = 1.0) -> None:
        if float(scale) <= 0.0:
            raise ValueError(f"scale は正の値である必要があります: got={scale}")
        self._scale = float(scale)
        self._stroke_color: Color = (0.0, 0.0, 0.0, 1.0)
        self._line_width = 1.0
        self._subpaths: list[list[tuple[float, float]]] = []
        self.resize(width, height)

    @property
    def size(self) -> tuple[int, int]:
        return (self._width, self._height)

    @property
    def scale(self) -> float:
        return self._scale

    def resize(self, width: int, height: int) -> None:
        """キャンバス寸法を変える。描画内容は破棄される（呼び出し側で reset すること）。"""

        w = int(width)
        h = int(height)
        if w <= 0 or h <= 0:
            raise ValueError(f"キャンバス寸法は正の値である必要があります: got=({width}, {height})")
        self._width = w
        self._height = h
        inner = (max(1, int(round(w * self._scale))), max(1, int(round(h * self._scale))))
        self._image = Image.new("RGB", inner, (0, 0, 0))
        self._draw = ImageDraw.Draw(self._image, "RGBA")
        self._subpaths = []

    # --- DrawingSurface -------------------------------------------------

    def clear(self, color: Color) -> None:
        r, g, b, _a = color_to_rgba255(color)
        self._draw.rectangle((0, 0, self._image.width, self._image.height), fill=(r, g, b, 255))

    def set_stroke_color(self, color: Color) -> None:
        self._stroke_color = color

    def set_line_width(self, width: float) -> None:
        self._line_width = float(width)

    def begin_path(self) -> None:
        self._subpaths = []

    def move_to(self, x: float, y: float) -> None:
        self._subpaths.append([(x * self._scale, y * self._scale)])

    def line_to(self, x: float, y: float) -> None:
        p = (x * self._scale, y * self._scale)
        if not self._subpaths:
            self._subpaths.append([p])
            return
        self._subpaths[-1].append(p)

    def stroke(self) -> None:
        width_px = self._line_width * self._scale
        r, g, b, a = color_to_rgba255(self._stroke_color)
        if width_px < 1.0:
            a = int(round(a * max(width_px, 0.0)))
            width_px = 1.0
        if a <= 0:
            return
        fill = (r, g, b, a)
        w = max(1, int(round(width_px)))
        for sub in self._subpaths:
            # 1 点だけの subpath は何も描かない（canvas と同じ）。
            if len(sub) < 2:
                continue
            self._draw.line(sub, fill=fill, width=w, joint="curve")

    # --- 出力 -----------------------------------------------------------

    def to_image(self) -> Image.Image:
        """キャンバス寸法の RGB 画像を返す。"""

        if self._image.size == (self._width, self._height):
            return self._image.copy()
        return self._image.resize((self._width, self._height), Image.Resampling.LANCZOS)

    def to_array(self) -> np.ndarray:
        """uint8 shape (H, W, 3) の配列を返す。"""

        return np.asarray(self.to_image(), dtype=np.uint8)

    def save(self, path: str | Path) -> Path:
        """PNG として保存し、保存先を返す。"""

        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        self.to_image().save(out, format="PNG")
        return out


def render_to_completion(compositor: Compositor, *, max_steps: int | None = None) -> int:
    """予算に到達するまで `step()` を回し、呼んだ回数を返す。"""

    steps = 0
    while not compositor.is_complete:
        if max_steps is not None and steps >= int(max_steps):
            break
        if compositor.step() == 0:
            break
        steps += 1
    return steps


def export_png(
    config: FlowfieldConfig,
    path: str | Path,
    *,
    canvas_size: tuple[int, int],
    seed: int | None = None,
    scale: float = 1.0,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> Path:
    """設定から 1 枚を描き切って PNG 保存する。

    Parameters
    ----------
    config : FlowfieldConfig
        描画パラメータ。
    path : str or Path
        出力先。親ディレクトリは作成する。
    canvas_size : tuple[int, int]
        キャンバス寸法 (w, h) [px]。
    seed : int | None
        乱数シード。同じシード・設定・寸法なら同じ画像になる。
    scale : float
        スーパーサンプリング倍率。
    batch_size : int
        1 回の `step()` の本数（結果には影響しない）。

    Returns
    -------
    Path
        保存先。
    """

    width, height = (int(canvas_size[0]), int(canvas_size[1]))
    rng = np.random.default_rng(seed)
    noise = NoiseSource(seed=int(rng.integers(0, 2**31 - 1)))

    surface = RasterSurface(width, height, scale=scale)
    compositor = Compositor(surface, config=config, noise=noise, rng=rng, batch_size=batch_size)
    compositor.reset(width, height)
    steps = render_to_completion(compositor)

    out = surface.save(path)
    _logger.info(
        "exported %s (%dx%d, strokes=%d, steps=%d)",
        out,
        width,
        height,
        compositor.strokes_drawn,
        steps,
    )
    return out


__all__ = ["RasterSurface", "export_png", "render_to_completion"]
