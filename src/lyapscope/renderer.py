"""
Frame orchestrator for the Lyapunov fractal.

Each frame: advance the parameter smoother, re-encode the forcing
pattern, advance or freeze time, then evaluate the kernel over the whole
pixel grid. Sequences are yielded as a generator for memory-efficient
piping to the encoder.
"""

import logging
from typing import Iterator

import numpy as np

from lyapscope.config import LyapunovConfig
from lyapscope.core.pattern import encode_pattern
from lyapscope.core.smoother import ParameterSmoother
from lyapscope.fractal.kernel import FrameParameters, shade

logger = logging.getLogger(__name__)


class FrameUpdateCycle:
    """
    Turns a stream of config snapshots into per-frame kernel uniforms.

    Must be ticked exactly once per rendered frame; the smoothing rate is
    tied to that cadence.
    """

    def __init__(self, config: LyapunovConfig):
        self.smoother = ParameterSmoother(config)
        self.time = 0.0

    @property
    def state(self):
        return self.smoother.state

    def tick(self, config: LyapunovConfig, elapsed: float) -> FrameParameters:
        """
        Advance one frame.

        Args:
            config: Latest target config from the UI.
            elapsed: Host clock time in seconds since start.

        Returns:
            FrameParameters for this frame's pixels.
        """
        state = self.smoother.tick(config)
        pattern = encode_pattern(config.pattern)

        if config.animate_time:
            self.time = float(elapsed)

        return FrameParameters(
            state=state,
            pattern=pattern,
            time=self.time,
            iter_max=max(int(config.iter_max), 1),
            palette=int(config.palette),
            noise_enabled=bool(config.noise_enabled),
            rotation_enabled=bool(config.rotation_enabled),
        )

    def reset(self, config: LyapunovConfig):
        self.smoother.reset(config)
        self.time = 0.0


def uv_grid(width: int, height: int) -> tuple[np.ndarray, np.ndarray]:
    """
    Pixel-center UV coordinates for a (height, width) image.

    Row 0 is the top of the image, so v runs from ~1 at the top to ~0 at
    the bottom.
    """
    u = (np.arange(width, dtype=np.float64) + 0.5) / width
    v = 1.0 - (np.arange(height, dtype=np.float64) + 0.5) / height
    return np.meshgrid(u, v)


def to_rgba8(rgba: np.ndarray) -> np.ndarray:
    """Float RGBA to uint8, clipping palette overshoot."""
    return (np.clip(rgba, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)


def composite(rgba: np.ndarray, background: tuple[int, int, int] = (0, 0, 0)) -> np.ndarray:
    """
    Flatten an RGBA frame over a solid background.

    Args:
        rgba: (H, W, 4) uint8 frame; alpha 0 marks discarded pixels.
        background: RGB shown through discarded pixels.

    Returns:
        (H, W, 3) uint8 RGB array.
    """
    alpha = rgba[..., 3:4].astype(np.float32) / 255.0
    bg = np.asarray(background, dtype=np.float32)
    rgb = rgba[..., :3].astype(np.float32) * alpha + bg * (1.0 - alpha)
    return (rgb + 0.5).astype(np.uint8)


class LyapunovRenderer:
    """
    Host-side renderer.

    Owns one FrameUpdateCycle and a cached pixel grid; the kernel is
    evaluated for every pixel of every frame.
    """

    def __init__(self, config: LyapunovConfig | None = None):
        self.cfg = config or LyapunovConfig()
        self.cycle = FrameUpdateCycle(self.cfg)
        self.params: FrameParameters | None = None
        self._grid: tuple[np.ndarray, np.ndarray] | None = None
        self._grid_size: tuple[int, int] | None = None

    def _get_grid(self, width: int, height: int) -> tuple[np.ndarray, np.ndarray]:
        if self._grid_size != (width, height):
            self._grid = uv_grid(width, height)
            self._grid_size = (width, height)
        return self._grid

    def render_frame(
        self,
        config: LyapunovConfig | None = None,
        elapsed: float = 0.0,
    ) -> np.ndarray:
        """
        Tick once and render a frame.

        Args:
            config: New target config (keeps the current one if None).
            elapsed: Host clock time in seconds.

        Returns:
            (H, W, 4) uint8 RGBA array, alpha 0 where discarded.
        """
        if config is not None:
            self.cfg = config

        self.params = self.cycle.tick(self.cfg, elapsed)
        u, v = self._get_grid(self.cfg.width, self.cfg.height)
        return to_rgba8(shade(u, v, self.params))

    def render_sequence(
        self,
        n_frames: int,
        config: LyapunovConfig | None = None,
        start: LyapunovConfig | None = None,
        progress_callback: callable = None,
    ) -> Iterator[np.ndarray]:
        """
        Render consecutive frames as a generator.

        Time advances by 1/fps per frame. The smoother is snapped to
        ``start`` (or the target config) first, so a sequence with a
        different start config drifts from that view to the target.

        Args:
            n_frames: Number of frames to yield.
            config: Target config (keeps the current one if None).
            start: Config the view starts from.
            progress_callback: Optional callback(current, total).

        Yields:
            (H, W, 4) uint8 RGBA arrays, one per frame.
        """
        if config is not None:
            self.cfg = config
        self.cycle.reset(start or self.cfg)

        fps = max(int(self.cfg.fps), 1)
        logger.info(
            "Rendering %d frames at %dx%d, pattern %s",
            n_frames, self.cfg.width, self.cfg.height, self.cfg.pattern,
        )

        for i in range(n_frames):
            frame = self.render_frame(elapsed=i / fps)
            yield frame

            if progress_callback:
                progress_callback(i + 1, n_frames)

