"""フレーム計測フックと、パラメータ提示フックの Protocol。

どちらも Compositor へ任意で注入する。未指定なら何もしない。
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Protocol

from flowfield.core.config import FlowfieldConfig
from flowfield.core.parameters import ParamMeta

_logger = logging.getLogger(__name__)


class FrameStatsRecorder(Protocol):
    """1 回の `step()` を begin/end で挟んで計測する。"""

    def begin(self) -> None: ...

    def end(self) -> None: ...


class ParameterPanel(Protocol):
    """現在の設定値と UI メタ情報を提示する。"""

    def present(self, config: FlowfieldConfig, meta: Mapping[str, ParamMeta]) -> None: ...


class PerfStats:
    """`step()` の所要時間を集計する FrameStatsRecorder。

    `log_every` フレームごとに平均/最大を DEBUG で出す（0 なら出さない）。
    """

    def __init__(self, *, log_every: int = 60) -> None:
        self._log_every = int(log_every)
        self._t0: float | None = None
        self.frames = 0
        self.total_s = 0.0
        self.max_s = 0.0

    def begin(self) -> None:
        self._t0 = time.perf_counter()

    def end(self) -> None:
        if self._t0 is None:
            return
        dt = time.perf_counter() - self._t0
        self._t0 = None
        self.frames += 1
        self.total_s += dt
        self.max_s = max(self.max_s, dt)
        if self._log_every > 0 and self.frames % self._log_every == 0:
            _logger.debug(
                "step timing: frames=%d mean=%.2fms max=%.2fms",
                self.frames,
                1000.0 * self.mean_s,
                1000.0 * self.max_s,
            )

    @property
    def mean_s(self) -> float:
        return self.total_s / self.frames if self.frames else 0.0


class LogParameterPanel:
    """設定値を UI レンジと並べてログへ出す ParameterPanel。"""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _logger

    def present(self, config: FlowfieldConfig, meta: Mapping[str, ParamMeta]) -> None:
        for name, m in meta.items():
            value = getattr(config, name)
            if m.ui_min is None and m.ui_max is None:
                self._logger.info("%-22s = %r", name, value)
            else:
                self._logger.info("%-22s = %r  [%s, %s]", name, value, m.ui_min, m.ui_max)


__all__ = ["FrameStatsRecorder", "LogParameterPanel", "ParameterPanel", "PerfStats"]
