# どこで: `src/flowfield/core/errors.py`。
# 何を: flowfield の例外階層（設定エラー / 格子の退化）を定義する。
# なぜ: reset の失敗理由を呼び出し側が型で判別し、設定を直して再試行できるようにするため。

from __future__ import annotations


class FlowfieldError(Exception):
    """flowfield が送出する例外の基底クラス。"""


class ConfigurationError(FlowfieldError, ValueError):
    """パラメータが有効な数値域の外にある。

    `configure()` / `reset()` の時点で検出し、格子を構築する前に拒否する。
    """


class DegenerateGridError(FlowfieldError, ValueError):
    """セルサイズまたは列数/行数が 0 か非有限になった。

    送出時点で新しい格子は未設置のまま（前回の状態は変更しない）。
    """


__all__ = ["ConfigurationError", "DegenerateGridError", "FlowfieldError"]
