"""Pytest configuration and shared fixtures."""

import pytest

from lyapscope.config import LyapunovConfig
from lyapscope.core.pattern import encode_pattern
from lyapscope.core.smoother import target_state
from lyapscope.fractal.kernel import FrameParameters


@pytest.fixture
def small_config() -> LyapunovConfig:
    """Default view at a size that renders quickly."""
    return LyapunovConfig(width=24, height=16, fps=30, iter_max=40)


@pytest.fixture
def make_params():
    """
    Build FrameParameters straight from a config, no smoothing involved.

    Returns:
        Factory taking a LyapunovConfig plus optional time.
    """

    def _make(config: LyapunovConfig, time: float = 0.0) -> FrameParameters:
        return FrameParameters(
            state=target_state(config),
            pattern=encode_pattern(config.pattern),
            time=time,
            iter_max=config.iter_max,
            palette=int(config.palette),
            noise_enabled=config.noise_enabled,
            rotation_enabled=config.rotation_enabled,
        )

    return _make
