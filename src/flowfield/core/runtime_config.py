# どこで: `src/flowfield/core/runtime_config.py`。
# 何を: config.yaml による実行時設定（探索・ロード・キャッシュ）を提供する。
# なぜ: CLI / プレビューウィンドウの既定値（キャンバス寸法・シード・出力先・描画パラメータ）を
#       コードを書き換えずにユーザーが差し替えられるようにするため。

"""実行時設定（`config.yaml`）の探索・ロード・キャッシュを担当する。

- `config.yaml` を「同梱デフォルト → 探索で見つかったユーザー設定 → 明示指定」の順に適用して
  `RuntimeConfig` を構築する
- 1 回ロードした結果はプロセス内でキャッシュする（切り替えは `set_config_path()`）

実装メモ
--------
- ユーザー設定の適用は `dict.update()`（トップレベルの浅い上書き）で行う。
  ネストした mapping（`flowfield:` など）は部分マージされず丸ごと置換される。
  ただし `flowfield:` の中身は `FlowfieldConfig` の既定値に対する差分として解釈する。
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

from flowfield.core.config import FlowfieldConfig, config_from_mapping


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """flowfield の実行時設定。

    Attributes
    ----------
    config_path:
        採用されたユーザー設定ファイルのパス。同梱デフォルトのみなら None。
    output_dir:
        生成物（PNG）の出力先ディレクトリ。
    canvas_size:
        既定のキャンバス寸法 (w, h) [px]。
    seed:
        既定の乱数シード。None なら実行ごとに変わる。
    batch_size:
        1 回の `step()` で描く最大本数。
    png_scale:
        PNG 書き出し時のスーパーサンプリング倍率。
    window_pos:
        プレビューウィンドウの左上座標 (x, y)。
    flowfield:
        描画パラメータ。
    """

    config_path: Path | None
    output_dir: Path
    canvas_size: tuple[int, int]
    seed: int | None
    batch_size: int
    png_scale: float
    window_pos: tuple[int, int]
    flowfield: FlowfieldConfig


_EXPLICIT_CONFIG_PATH: Path | None = None
_CONFIG_CACHE: RuntimeConfig | None = None


def set_config_path(path: str | Path | None) -> None:
    """以降の設定探索で使う明示 config パスを設定する（None で解除）。

    設定が変わるため、`runtime_config()` のキャッシュを破棄する。
    """

    global _EXPLICIT_CONFIG_PATH, _CONFIG_CACHE
    _EXPLICIT_CONFIG_PATH = None if path is None else Path(str(path)).expanduser()
    _CONFIG_CACHE = None


def _default_config_candidates() -> tuple[Path, ...]:
    """既定の `config.yaml` 探索候補を返す。

    探索順（先勝ち）:
    - `./.flowfield/config.yaml`
    - `~/.config/flowfield/config.yaml`
    """

    return (
        Path.cwd() / ".flowfield" / "config.yaml",
        Path.home() / ".config" / "flowfield" / "config.yaml",
    )


def _expand_path_text(text: str) -> str:
    return os.path.expandvars(os.path.expanduser(str(text)))


def _as_optional_path(value: Any) -> Path | None:
    """任意値を「空なら None / それ以外は Path」へ変換する。"""

    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    return Path(_expand_path_text(s))


def _as_mapping(value: Any, *, key: str) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return dict(value)
    raise RuntimeError(f"{key} は mapping である必要があります: got={value!r}")


def _as_int_pair(value: Any, *, key: str) -> tuple[int, int] | None:
    """任意値を (x, y) の整数ペアとして解釈して返す。"""

    if value is None:
        return None
    try:
        seq = list(value)
    except TypeError as exc:
        raise RuntimeError(f"{key} は [x, y] の配列である必要があります: got={value!r}") from exc
    if len(seq) != 2:
        raise RuntimeError(f"{key} は [x, y] の配列である必要があります: got={value!r}")
    try:
        return (int(seq[0]), int(seq[1]))
    except (TypeError, ValueError) as exc:
        raise RuntimeError(f"{key} は [x, y] の整数配列である必要があります: got={value!r}") from exc


def _as_int(value: Any, *, key: str) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise RuntimeError(f"{key} は整数である必要があります: got={value!r}") from exc


def _as_float(value: Any, *, key: str) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise RuntimeError(f"{key} は数値である必要があります: got={value!r}") from exc


def _load_yaml_text(text: str, *, source: str) -> dict[str, Any]:
    """YAML テキストを読み、トップレベル mapping を dict として返す（空なら `{}`）。"""

    import yaml  # type: ignore[import-untyped]

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise RuntimeError(f"config.yaml の読み込みに失敗しました: source={source}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RuntimeError(f"config.yaml は mapping である必要があります: source={source}")
    return dict(data)


def _load_yaml_config(path: Path) -> dict[str, Any]:
    return _load_yaml_text(path.read_text(encoding="utf-8"), source=str(path))


def _load_packaged_default_config() -> dict[str, Any]:
    """同梱 `flowfield/resource/default_config.yaml` をロードする。"""

    blob = (
        resources.files("flowfield")
        .joinpath("resource", "default_config.yaml")
        .read_text(encoding="utf-8")
    )
    return _load_yaml_text(blob, source="flowfield/resource/default_config.yaml")


def runtime_config() -> RuntimeConfig:
    """実行時設定をロードして返す（キャッシュ）。

    読み込み元の優先順位（後勝ち）:
    1) 同梱 `flowfield/resource/default_config.yaml`
    2) 探索で見つかった `config.yaml`（任意）
    3) `set_config_path()` で明示指定された `config.yaml`（任意）

    Raises
    ------
    FileNotFoundError
        明示指定した config が存在しない場合。
    RuntimeError
        YAML が壊れている、必須キーが無い、型が合わない場合。
    ConfigurationError
        `flowfield:` 節の描画パラメータが不正な場合。
    """

    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    explicit_path = _EXPLICIT_CONFIG_PATH
    if explicit_path is not None and not explicit_path.is_file():
        raise FileNotFoundError(f"config.yaml が見つかりません: {explicit_path}")

    discovered_path: Path | None = None
    for p in _default_config_candidates():
        if p.is_file():
            discovered_path = p
            break

    payload = _load_packaged_default_config()
    if discovered_path is not None:
        payload.update(_load_yaml_config(discovered_path))
    if explicit_path is not None:
        payload.update(_load_yaml_config(explicit_path))

    version = _as_int(payload.get("version"), key="version")
    if version is None:
        raise RuntimeError("config.yaml の version が未設定です")
    if version != 1:
        raise RuntimeError(f"未対応の config.yaml version です: got={version}")

    paths = _as_mapping(payload.get("paths"), key="paths")
    output_dir = _as_optional_path(paths.get("output_dir"))
    if output_dir is None:
        raise RuntimeError("paths.output_dir が未設定です")

    canvas = _as_mapping(payload.get("canvas"), key="canvas")
    canvas_size = _as_int_pair(canvas.get("size"), key="canvas.size")
    if canvas_size is None:
        raise RuntimeError("canvas.size が未設定です")
    if canvas_size[0] <= 0 or canvas_size[1] <= 0:
        raise RuntimeError(f"canvas.size は正の値である必要があります: got={canvas_size}")
    seed = _as_int(canvas.get("seed"), key="canvas.seed")

    render = _as_mapping(payload.get("render"), key="render")
    batch_size = _as_int(render.get("batch_size"), key="render.batch_size")
    if batch_size is None:
        raise RuntimeError("render.batch_size が未設定です")
    if batch_size <= 0:
        raise RuntimeError(f"render.batch_size は 1 以上である必要があります: got={batch_size}")
    png_scale = _as_float(render.get("png_scale"), key="render.png_scale")
    if png_scale is None:
        raise RuntimeError("render.png_scale が未設定です")
    if png_scale <= 0:
        raise RuntimeError(f"render.png_scale は正の値である必要があります: got={png_scale}")

    ui = _as_mapping(payload.get("ui"), key="ui")
    window_pos = _as_int_pair(ui.get("window_pos"), key="ui.window_pos") or (50, 50)

    flowfield = config_from_mapping(_as_mapping(payload.get("flowfield"), key="flowfield"))

    cfg = RuntimeConfig(
        config_path=explicit_path or discovered_path,
        output_dir=output_dir,
        canvas_size=canvas_size,
        seed=seed,
        batch_size=int(batch_size),
        png_scale=float(png_scale),
        window_pos=window_pos,
        flowfield=flowfield,
    )
    _CONFIG_CACHE = cfg
    return cfg


def output_root_dir() -> Path:
    """出力ファイルを保存する既定ルートディレクトリを返す。"""

    return Path(runtime_config().output_dir)


__all__ = [
    "RuntimeConfig",
    "output_root_dir",
    "runtime_config",
    "set_config_path",
]
