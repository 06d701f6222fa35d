# どこで: `src/flowfield/core/surface.py`。
# 何を: 即時モード 2D 描画面の最小プリミティブ集合（Protocol）と、命令を記録する実装を定義する。
# なぜ: Compositor をラスタライザ（Pillow / pyglet）から切り離し、描画命令列そのものをテストできるようにするため。

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from flowfield.core.color import Color


class DrawingSurface(Protocol):
    """Compositor が使う描画プリミティブ。

    1 本のストロークは
    `set_stroke_color → set_line_width → begin_path → move_to → line_to... → stroke`
    の順に発行される。
    """

    def clear(self, color: Color) -> None: ...

    def set_stroke_color(self, color: Color) -> None: ...

    def set_line_width(self, width: float) -> None: ...

    def begin_path(self) -> None: ...

    def move_to(self, x: float, y: float) -> None: ...

    def line_to(self, x: float, y: float) -> None: ...

    def stroke(self) -> None: ...


DrawCommand = tuple[object, ...]
"""`("line_to", x, y)` のような (命令名, 引数...) のタプル。"""


@dataclass(slots=True)
class RecordingSurface:
    """発行された描画命令をそのまま記録する描画面。"""

    commands: list[DrawCommand] = field(default_factory=list)

    def clear(self, color: Color) -> None:
        self.commands.append(("clear", tuple(color)))

    def set_stroke_color(self, color: Color) -> None:
        self.commands.append(("set_stroke_color", tuple(color)))

    def set_line_width(self, width: float) -> None:
        self.commands.append(("set_line_width", float(width)))

    def begin_path(self) -> None:
        self.commands.append(("begin_path",))

    def move_to(self, x: float, y: float) -> None:
        self.commands.append(("move_to", float(x), float(y)))

    def line_to(self, x: float, y: float) -> None:
        self.commands.append(("line_to", float(x), float(y)))

    def stroke(self) -> None:
        self.commands.append(("stroke",))

    def count(self, name: str) -> int:
        """命令名 `name` の発行回数を返す。"""

        return sum(1 for c in self.commands if c[0] == name)


__all__ = ["DrawCommand", "DrawingSurface", "RecordingSurface"]
