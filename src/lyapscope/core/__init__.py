"""Pattern encoding and parameter smoothing."""

from lyapscope.core.pattern import MAX_PATTERN, EncodedPattern, encode_pattern
from lyapscope.core.smoother import ParameterSmoother, SmoothedState, tick

__all__ = [
    "MAX_PATTERN",
    "EncodedPattern",
    "encode_pattern",
    "ParameterSmoother",
    "SmoothedState",
    "tick",
]
