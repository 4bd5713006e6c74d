"""Per-pixel fractal kernel and color palettes."""

from lyapscope.fractal.kernel import (
    FrameParameters,
    KernelResult,
    evaluate,
    lyapunov_exponent,
    shade,
    transform_uv,
    value_noise,
)
from lyapscope.fractal.palettes import PALETTE_NAMES, PALETTES, get_palette_color

__all__ = [
    "FrameParameters",
    "KernelResult",
    "evaluate",
    "lyapunov_exponent",
    "shade",
    "transform_uv",
    "value_noise",
    "PALETTE_NAMES",
    "PALETTES",
    "get_palette_color",
]
