"""パラメータの UI メタ情報 `ParamMeta` を定義する。"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ParamMeta:
    """1 パラメータぶんの UI ヒント。

    Parameters
    ----------
    kind : str
        値の種類。`"float"`, `"int"`, `"bool"`, `"rgb"` のいずれかを想定する。
    ui_min, ui_max : object, optional
        スライダ等のレンジ。値の検証には使わない（表示専用）。
    choices : Sequence[str] | None, optional
        `kind="choice"` の選択肢。
    """

    kind: str
    ui_min: object | None = None
    ui_max: object | None = None
    choices: Sequence[str] | None = None


__all__ = ["ParamMeta"]
