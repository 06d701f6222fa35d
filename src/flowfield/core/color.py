# どこで: `src/flowfield/core/color.py`。
# 何を: 色表現（"#rrggbb" / "rgba(r, g, b, a)" / タプル）を RGBA 0..1 float に正規化する。
# なぜ: 設定ファイル・パレット・描画面がそれぞれ別表現を持つため、境界で 1 形式に揃える。

from __future__ import annotations

import re

Color = tuple[float, float, float, float]
"""RGBA（各成分 0..1）の色。"""

WHITE: Color = (1.0, 1.0, 1.0, 1.0)

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{8}|[0-9a-fA-F]{3})$")
_RGBA_RE = re.compile(r"^rgba?\(\s*([^)]*)\)$")


def _parse_hex(text: str) -> Color:
    m = _HEX_RE.match(text)
    if m is None:
        raise ValueError(f"色の形式が不正です: {text!r}")
    digits = m.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) == 6:
        digits += "ff"
    r, g, b, a = (int(digits[i : i + 2], 16) for i in range(0, 8, 2))
    return (r / 255.0, g / 255.0, b / 255.0, a / 255.0)


def _parse_css_rgba(text: str) -> Color:
    m = _RGBA_RE.match(text)
    if m is None:
        raise ValueError(f"色の形式が不正です: {text!r}")
    parts = [p.strip() for p in m.group(1).split(",")]
    if len(parts) not in (3, 4):
        raise ValueError(f"rgb()/rgba() は 3 または 4 成分である必要があります: {text!r}")
    try:
        r, g, b = (float(p) for p in parts[:3])
        a = float(parts[3]) if len(parts) == 4 else 1.0
    except ValueError as exc:
        raise ValueError(f"色の成分が数値ではありません: {text!r}") from exc
    if not all(0.0 <= v <= 255.0 for v in (r, g, b)) or not 0.0 <= a <= 1.0:
        raise ValueError(f"色の成分が範囲外です: {text!r}")
    return (r / 255.0, g / 255.0, b / 255.0, a)


def parse_color(value: object) -> Color:
    """色を RGBA 0..1 float のタプルとして返す。

    受理する形式:

    - `"#rrggbb"` / `"#rrggbbaa"` / `"#rgb"`
    - `"rgb(r, g, b)"` / `"rgba(r, g, b, a)"`（r,g,b は 0..255、a は 0..1）
    - 3 または 4 要素の数値タプル（0..1）

    Raises
    ------
    ValueError
        解釈できない場合。
    """

    if isinstance(value, str):
        s = value.strip()
        if s.lower().startswith("rgb"):
            return _parse_css_rgba(s.lower())
        return _parse_hex(s)

    try:
        seq = [float(v) for v in value]  # type: ignore[union-attr]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"色の形式が不正です: {value!r}") from exc
    if len(seq) == 3:
        seq.append(1.0)
    if len(seq) != 4 or not all(0.0 <= v <= 1.0 for v in seq):
        raise ValueError(f"色タプルは 0..1 の 3 または 4 要素である必要があります: {value!r}")
    return (seq[0], seq[1], seq[2], seq[3])


def color_to_rgba255(color: Color) -> tuple[int, int, int, int]:
    """RGBA 0..1 を Pillow 等が受け取る 0..255 の整数タプルへ変換する。"""

    r, g, b, a = color
    return (
        int(round(r * 255.0)),
        int(round(g * 255.0)),
        int(round(b * 255.0)),
        int(round(a * 255.0)),
    )


__all__ = ["Color", "WHITE", "color_to_rgba255", "parse_color"]
