# どこで: `src/flowfield/core/output_paths.py`。
# 何を: 書き出す PNG の保存先パスを決める。
# なぜ: `output/png/` 配下に、寸法・シード・run_id から一意に読めるファイル名で整理するため。

from __future__ import annotations

import re
from pathlib import Path

from flowfield.core.runtime_config import output_root_dir


def _run_id_suffix(run_id: str | None) -> str:
    """ファイル名に使えない文字を `_` に潰した `_<run_id>` を返す。空なら空文字。"""

    if run_id is None:
        return ""
    s = re.sub(r"[^A-Za-z0-9._-]+", "_", str(run_id).strip()).strip("_")
    return f"_{s}" if s else ""


def png_output_path(
    *,
    canvas_size: tuple[int, int],
    seed: int | None,
    run_id: str | None = None,
    stem: str = "flowfield",
    root: Path | None = None,
) -> Path:
    """PNG の保存先 `<root>/png/<stem>_<W>x<H>[_seed<seed>][_<run_id>].png` を返す。

    `root` を省略すると `runtime_config().output_dir` を使う。
    """

    w, h = (int(v) for v in canvas_size)
    if w <= 0 or h <= 0:
        raise ValueError(f"canvas_size は正の値である必要があります: got={canvas_size}")

    base = Path(root) if root is not None else output_root_dir()
    seed_suffix = "" if seed is None else f"_seed{int(seed)}"
    return base / "png" / f"{stem}_{w}x{h}{seed_suffix}{_run_id_suffix(run_id)}.png"


__all__ = ["png_output_path"]
