# どこで: `src/flowfield/core/palette.py`。
# 何を: 同梱パレット表（`flowfield/resource/palettes.yaml`）の読み込みとランダム選択を提供する。
# なぜ: 色選びを注入された乱数源だけで決め、同じシードなら同じ絵になるようにするため。

from __future__ import annotations

from collections.abc import Sequence
from functools import lru_cache
from importlib import resources

import numpy as np

from flowfield.core.color import Color, parse_color

Palette = tuple[Color, ...]


def _load_yaml_palettes(text: str, *, source: str) -> tuple[Palette, ...]:
    import yaml  # type: ignore[import-untyped]

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise RuntimeError(f"パレットの読み込みに失敗しました: source={source}") from exc

    raw = data.get("palettes") if isinstance(data, dict) else None
    if not isinstance(raw, list) or not raw:
        raise RuntimeError(f"palettes は空でない配列である必要があります: source={source}")

    out: list[Palette] = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, list) or not entry:
            raise RuntimeError(f"palettes[{i}] は空でない色配列である必要があります: source={source}")
        try:
            out.append(tuple(parse_color(c) for c in entry))
        except ValueError as exc:
            raise RuntimeError(f"palettes[{i}] に不正な色があります: source={source}") from exc
    return tuple(out)


@lru_cache(maxsize=1)
def builtin_palettes() -> tuple[Palette, ...]:
    """同梱パレット表を返す（プロセス内キャッシュ）。"""

    blob = (
        resources.files("flowfield")
        .joinpath("resource", "palettes.yaml")
        .read_text(encoding="utf-8")
    )
    return _load_yaml_palettes(blob, source="flowfield/resource/palettes.yaml")


def choose_palette(rng: np.random.Generator, palettes: Sequence[Palette] | None = None) -> Palette:
    """パレット表から 1 つを一様に選ぶ。"""

    table = builtin_palettes() if palettes is None else tuple(palettes)
    if not table:
        raise ValueError("palettes が空です")
    return table[int(rng.integers(0, len(table)))]


def choose_color(rng: np.random.Generator, palette: Palette) -> Color:
    """パレットから 1 色を一様に選ぶ。"""

    return palette[int(rng.integers(0, len(palette)))]


__all__ = ["Palette", "builtin_palettes", "choose_color", "choose_palette"]
