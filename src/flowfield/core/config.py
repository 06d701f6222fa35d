# どこで: `src/flowfield/core/config.py`。
# 何を: flow field 描画パラメータ `FlowfieldConfig` と、その検証・UI メタ情報を定義する。
# なぜ: UI や設定ファイルは「新しい設定値を作る側」に徹し、エンジン状態を直接書き換えないようにするため。

"""flow field 描画パラメータ。

`FlowfieldConfig` は不変値である。パラメータを変えるときは
`FlowfieldConfig.with_changes()` で新しい値を作り、`Compositor.configure()` に渡す。
変更が効くのは次の `Compositor.reset()` から。

検証方針
--------
- 数値は全て有限であること。
- 格子解像度・セグメント長は正、線幅・ストローク長・本数は 0 以上。
- UI レンジ（`CONFIG_META`）は表示専用で、検証には使わない。
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

from flowfield.core.color import Color, parse_color
from flowfield.core.errors import ConfigurationError
from flowfield.core.parameters import ParamMeta, meta_dict_from_user

CONFIG_META: dict[str, ParamMeta] = meta_dict_from_user(
    {
        "grid_resolution": {"kind": "float", "ui_min": 0.01, "ui_max": 0.1},
        "noise_scale": {"kind": "float", "ui_min": 0.0001, "ui_max": 0.02},
        "noise_depth": {"kind": "float", "ui_min": 0.1, "ui_max": 5.0},
        "stroke_count": {"kind": "int", "ui_min": 100, "ui_max": 20000},
        "max_stroke_length": {"kind": "float", "ui_min": 0.001, "ui_max": 1.0},
        "stroke_segment_length": {"kind": "float", "ui_min": 0.5, "ui_max": 100.0},
        "min_stroke_thickness": {"kind": "float", "ui_min": 0.02, "ui_max": 3.0},
        "max_stroke_thickness": {"kind": "float", "ui_min": 0.02, "ui_max": 3.0},
        "background": {"kind": "rgb"},
        "black_and_white": {"kind": "bool"},
        "draw_grid": {"kind": "bool"},
    }
)


@dataclass(frozen=True, slots=True)
class FlowfieldConfig:
    """1 セッションぶんの描画パラメータ。

    Attributes
    ----------
    grid_resolution:
        セルサイズ = キャンバス幅 × grid_resolution。
    noise_scale:
        格子インデックスからノイズ座標への倍率。小さいほど流れが大きくうねる。
    noise_depth:
        ノイズの z 座標。値を変えると同じシードで別の場になる。
    stroke_count:
        セッションで描くストロークの総数。
    max_stroke_length:
        1 本の最大長（max(幅, 高さ) に対する比）。
    min_stroke_thickness, max_stroke_thickness:
        線幅の一様乱数レンジ [px]。
    stroke_segment_length:
        積分 1 ステップの長さ [px]。
    background:
        背景色（"#rrggbb" など、`parse_color()` が受理する形式）。
    black_and_white:
        True ならパレットを使わず白一色で描く。
    draw_grid:
        True なら reset 時に場のベクトルをデバッグ表示する。
    """

    grid_resolution: float = 0.015
    noise_scale: float = 0.007
    noise_depth: float = 1.0
    stroke_count: int = 8000
    max_stroke_length: float = 0.9
    min_stroke_thickness: float = 0.1
    max_stroke_thickness: float = 0.5
    stroke_segment_length: float = 10.0
    background: str = "#212322"
    black_and_white: bool = False
    draw_grid: bool = False

    def with_changes(self, **changes: Any) -> "FlowfieldConfig":
        """指定フィールドだけを差し替えた新しい設定を返す。"""

        unknown = set(changes) - _FIELD_NAMES
        if unknown:
            names = ", ".join(sorted(unknown))
            raise ConfigurationError(f"未知のパラメータです: {names}")
        return replace(self, **changes)

    @property
    def background_color(self) -> Color:
        """背景色を RGBA 0..1 で返す。"""

        return parse_color(self.background)


_FIELD_NAMES = frozenset(f.name for f in fields(FlowfieldConfig))


def _require_finite(name: str, value: float) -> None:
    if not math.isfinite(float(value)):
        raise ConfigurationError(f"{name} は有限の数値である必要があります: got={value!r}")


def validate_config(config: FlowfieldConfig) -> FlowfieldConfig:
    """設定の数値域を検証し、問題がなければそのまま返す。

    Raises
    ------
    ConfigurationError
        いずれかのパラメータが有効域の外にある場合。
    """

    for name in (
        "grid_resolution",
        "noise_scale",
        "noise_depth",
        "max_stroke_length",
        "min_stroke_thickness",
        "max_stroke_thickness",
        "stroke_segment_length",
    ):
        _require_finite(name, getattr(config, name))

    if config.grid_resolution <= 0.0:
        raise ConfigurationError(
            f"grid_resolution は正の値である必要があります: got={config.grid_resolution}"
        )
    if config.stroke_segment_length <= 0.0:
        raise ConfigurationError(
            "stroke_segment_length は正の値である必要があります"
            f": got={config.stroke_segment_length}"
        )
    if int(config.stroke_count) < 0:
        raise ConfigurationError(
            f"stroke_count は 0 以上である必要があります: got={config.stroke_count}"
        )
    if config.max_stroke_length < 0.0:
        raise ConfigurationError(
            f"max_stroke_length は 0 以上である必要があります: got={config.max_stroke_length}"
        )
    if config.min_stroke_thickness < 0.0 or config.max_stroke_thickness < 0.0:
        raise ConfigurationError(
            "stroke thickness は 0 以上である必要があります"
            f": got=({config.min_stroke_thickness}, {config.max_stroke_thickness})"
        )
    if config.min_stroke_thickness > config.max_stroke_thickness:
        raise ConfigurationError(
            "min_stroke_thickness は max_stroke_thickness 以下である必要があります"
            f": got=({config.min_stroke_thickness}, {config.max_stroke_thickness})"
        )

    try:
        parse_color(config.background)
    except ValueError as exc:
        raise ConfigurationError(f"background を色として解釈できません: {exc}") from exc

    return config


def _coerce_field(name: str, value: Any) -> Any:
    kind = CONFIG_META[name].kind
    try:
        if kind == "float":
            return float(value)
        if kind == "int":
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(value)
            return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} は数値である必要があります: got={value!r}") from exc
    if kind == "bool":
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        raise ConfigurationError(f"{name} は bool である必要があります: got={value!r}")
    return str(value)


def config_from_mapping(
    values: Mapping[str, Any] | None,
    *,
    base: FlowfieldConfig | None = None,
) -> FlowfieldConfig:
    """mapping（YAML の `flowfield:` 節など）から設定を構築して検証する。

    `base`（省略時は既定値）に対し、mapping に現れたキーだけを上書きする。
    """

    cfg = base if base is not None else FlowfieldConfig()
    if not values:
        return validate_config(cfg)
    if not isinstance(values, Mapping):
        raise ConfigurationError(f"flowfield 設定は mapping である必要があります: got={values!r}")

    changes = {}
    for key, value in values.items():
        name = str(key)
        if name not in _FIELD_NAMES:
            raise ConfigurationError(f"未知のパラメータです: {name}")
        changes[name] = _coerce_field(name, value)
    return validate_config(cfg.with_changes(**changes))


__all__ = [
    "CONFIG_META",
    "FlowfieldConfig",
    "config_from_mapping",
    "validate_config",
]
