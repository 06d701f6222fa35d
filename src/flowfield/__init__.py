"""flowfield: ノイズ由来の角度格子に沿ってストロークを描く生成的ラインアート。

最小の使い方::

    import numpy as np
    from flowfield import Compositor, FlowfieldConfig, RasterSurface

    surface = RasterSurface(1500, 1000)
    comp = Compositor(surface, config=FlowfieldConfig(), rng=np.random.default_rng(0))
    comp.reset(1500, 1000)
    while comp.step():
        pass
    surface.save("out.png")
"""

from __future__ import annotations

from flowfield.core.compositor import Compositor
from flowfield.core.config import FlowfieldConfig
from flowfield.core.errors import ConfigurationError, DegenerateGridError, FlowfieldError
from flowfield.core.field_grid import FieldGrid, build_field_grid
from flowfield.core.noise import NoiseSource
from flowfield.core.surface import DrawingSurface, RecordingSurface
from flowfield.core.tracer import trace_stroke
from flowfield.export.image import RasterSurface, export_png

__all__ = [
    "Compositor",
    "ConfigurationError",
    "DegenerateGridError",
    "DrawingSurface",
    "FieldGrid",
    "FlowfieldConfig",
    "FlowfieldError",
    "NoiseSource",
    "RasterSurface",
    "RecordingSurface",
    "build_field_grid",
    "export_png",
    "trace_stroke",
]
