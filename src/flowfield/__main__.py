# どこで: `src/flowfield/__main__.py`。
# 何を: `python -m flowfield ...` の CLI エントリポイントを提供する。
# なぜ: PNG 書き出しとプレビューを、スクリプトを書かずに短い導線で実行できるようにするため。

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from flowfield.core.config import FlowfieldConfig, config_from_mapping
from flowfield.core.errors import FlowfieldError
from flowfield.core.output_paths import png_output_path
from flowfield.core.runtime_config import runtime_config, set_config_path

_logger = logging.getLogger("flowfield")


def _parse_size(text: str) -> tuple[int, int]:
    parts = text.lower().replace("*", "x").split("x")
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"WxH 形式で指定してください: {text!r}")
    try:
        w, h = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"WxH 形式で指定してください: {text!r}") from exc
    if w <= 0 or h <= 0:
        raise argparse.ArgumentTypeError(f"寸法は正の値である必要があります: {text!r}")
    return (w, h)


def _parse_overrides(items: list[str], base: FlowfieldConfig) -> FlowfieldConfig:
    """`--set name=value` の列を設定へ適用する（値は YAML スカラとして解釈）。"""

    if not items:
        return base

    import yaml  # type: ignore[import-untyped]

    changes: dict[str, object] = {}
    for item in items:
        name, sep, raw = item.partition("=")
        if not sep or not name.strip():
            raise argparse.ArgumentTypeError(f"--set は name=value 形式です: {item!r}")
        changes[name.strip()] = yaml.safe_load(raw)
    return config_from_mapping(changes, base=base)


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", type=Path, default=None, help="config.yaml のパス")
    p.add_argument("--size", type=_parse_size, default=None, help="キャンバス寸法 WxH")
    p.add_argument("--seed", type=int, default=None, help="乱数シード")
    p.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="描画パラメータの上書き（複数可）",
    )
    p.add_argument("--log-level", default="INFO", help="ログレベル（DEBUG/INFO/...）")


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    p = argparse.ArgumentParser(prog="python -m flowfield")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_export = sub.add_parser("export", help="予算ぶん描き切った PNG を保存する")
    _add_common(p_export)
    p_export.add_argument("--out", type=Path, default=None, help="出力 PNG のパス")
    p_export.add_argument("--scale", type=float, default=None, help="スーパーサンプリング倍率")
    p_export.add_argument("--run-id", default=None, help="ファイル名の接尾辞")

    p_run = sub.add_parser("run", help="プレビューウィンドウを開く")
    _add_common(p_run)

    args = p.parse_args(argv)

    logging.basicConfig(
        level=str(args.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.config is not None:
        set_config_path(args.config)

    try:
        cfg = runtime_config()
        flowfield = _parse_overrides(list(args.overrides), cfg.flowfield)
    except (FlowfieldError, RuntimeError, FileNotFoundError, argparse.ArgumentTypeError) as exc:
        _logger.error("%s", exc)
        return 2

    canvas_size = args.size or cfg.canvas_size
    seed = args.seed if args.seed is not None else cfg.seed

    if args.cmd == "export":
        from flowfield.export.image import export_png

        out = args.out or png_output_path(canvas_size=canvas_size, seed=seed, run_id=args.run_id)
        export_png(
            flowfield,
            out,
            canvas_size=canvas_size,
            seed=seed,
            scale=float(args.scale) if args.scale is not None else cfg.png_scale,
            batch_size=cfg.batch_size,
        )
        print(out)
        return 0

    if args.cmd == "run":
        from flowfield.core.stats import LogParameterPanel, PerfStats
        from flowfield.interactive.window import run_window

        run_window(
            flowfield,
            canvas_size=canvas_size,
            seed=seed,
            batch_size=cfg.batch_size,
            window_pos=cfg.window_pos,
            panel=LogParameterPanel(),
            stats=PerfStats(),
        )
        return 0

    raise AssertionError(f"unknown cmd: {args.cmd!r}")


if __name__ == "__main__":
    raise SystemExit(main())
