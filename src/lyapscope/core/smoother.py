"""
Per-frame parameter smoothing.

Every numeric knob of the view drifts toward its target by a fixed
fraction each frame, so dragging a control never pops the image.

The step is applied once per rendered frame with a constant factor, so
the convergence speed follows the frame rate: at 60 fps a knob covers
about 99.8% of the distance to its target in one second, at 30 fps only
about 96%.
"""

import dataclasses
import math
from dataclasses import dataclass

from lyapscope.config import LyapunovConfig

LERP_FACTOR = 0.1


@dataclass(frozen=True)
class SmoothedState:
    """Current (smoothed) values of the numeric knobs. Rotation in radians."""

    zoom: float
    displace_x: float
    displace_y: float
    white_threshold: float
    black_threshold: float
    lyp_min: float
    lyp_max: float
    rotation: float


SMOOTHED_FIELDS = tuple(f.name for f in dataclasses.fields(SmoothedState))


def _lerp(current: float, target: float, factor: float) -> float:
    return current + (target - current) * factor


def target_state(config: LyapunovConfig) -> SmoothedState:
    """Extract the smoothable targets from a config, degrees to radians."""
    return SmoothedState(
        zoom=float(config.zoom),
        displace_x=float(config.displace_x),
        displace_y=float(config.displace_y),
        white_threshold=float(config.white_threshold),
        black_threshold=float(config.black_threshold),
        lyp_min=float(config.lyp_min),
        lyp_max=float(config.lyp_max),
        rotation=math.radians(config.rotation),
    )


def tick(
    state: SmoothedState,
    target: SmoothedState,
    alpha: float = LERP_FACTOR,
) -> SmoothedState:
    """
    Advance every knob one frame toward its target.

    Rotation is interpolated linearly in radians with no wraparound, so a
    target that crosses 0/360 degrees sweeps the long way around.

    Args:
        state: Current smoothed values.
        target: Values to drift toward.
        alpha: Fraction of the remaining distance covered per call.

    Returns:
        New SmoothedState; ``state`` is left untouched.
    """
    return SmoothedState(
        **{
            name: _lerp(getattr(state, name), getattr(target, name), alpha)
            for name in SMOOTHED_FIELDS
        }
    )


class ParameterSmoother:
    """
    Owns the smoothed state of one view.

    Starts snapped to the initial config; afterwards only ``tick`` moves it.
    """

    def __init__(self, config: LyapunovConfig, alpha: float = LERP_FACTOR):
        self.alpha = alpha
        self.state = target_state(config)

    def tick(self, config: LyapunovConfig) -> SmoothedState:
        """Advance one frame toward ``config`` and return the new state."""
        self.state = tick(self.state, target_state(config), self.alpha)
        return self.state

    def reset(self, config: LyapunovConfig) -> SmoothedState:
        """Snap straight to ``config`` (initialization only)."""
        self.state = target_state(config)
        return self.state
