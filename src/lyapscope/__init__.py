"""Real-time explorable Lyapunov fractal renderer."""

from lyapscope.config import LyapunovConfig, Palette
from lyapscope.core.pattern import encode_pattern
from lyapscope.core.smoother import ParameterSmoother
from lyapscope.fractal.kernel import FrameParameters, evaluate
from lyapscope.renderer import FrameUpdateCycle, LyapunovRenderer

__version__ = "0.1.0"
__all__ = [
    "LyapunovConfig",
    "Palette",
    "encode_pattern",
    "ParameterSmoother",
    "FrameParameters",
    "evaluate",
    "FrameUpdateCycle",
    "LyapunovRenderer",
]
