"""
Lyapunov fractal kernel.

Vectorized with numpy, with no per-pixel Python loops. Every function here is
pure: the same coordinates and parameters always give the same exponent,
color and discard decision, so any batch of pixels can be evaluated
independently.

Pipeline per pixel:
    uv -> viewport transform -> Lyapunov exponent (+ optional noise)
       -> smoothstep normalization -> palette -> white/black masking
"""

import math
from dataclasses import dataclass

import numpy as np

from lyapscope.core.pattern import EncodedPattern
from lyapscope.core.smoother import SmoothedState
from lyapscope.fractal.palettes import get_palette_color, mix, smoothstep

# Floor for |f'(x)| inside the log; keeps superstable points finite.
LOG_EPSILON = 1e-10

NOISE_SCALE = 5.0
NOISE_SPEED = 0.5
NOISE_AMPLITUDE = 2.0


@dataclass(frozen=True)
class FrameParameters:
    """Everything the kernel reads for one frame (the per-frame uniforms)."""

    state: SmoothedState
    pattern: EncodedPattern
    time: float = 0.0
    iter_max: int = 100
    palette: int = 2
    noise_enabled: bool = True
    rotation_enabled: bool = True

    @property
    def rotation(self) -> float:
        return self.state.rotation if self.rotation_enabled else 0.0


@dataclass
class KernelResult:
    """Per-pixel outputs of one kernel evaluation."""

    exponent: np.ndarray  # raw exponent, noise included
    t: np.ndarray  # normalized to [0, 1]
    color: np.ndarray  # (..., 3) RGB, unclamped
    discard: np.ndarray  # bool


def transform_uv(
    u,
    v,
    zoom: float,
    displace_x: float,
    displace_y: float,
    rotation: float = 0.0,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Map normalized screen coordinates into parameter space.

    Scales about the center, offsets, then rotates about (0.5, 0.5).

    Args:
        u, v: Screen coordinates in [0, 1] (scalars or arrays).
        zoom: Size of the visible window.
        displace_x, displace_y: Offsets added after scaling.
        rotation: Angle in radians.

    Returns:
        (a, b) parameter-space coordinates with the broadcast shape of u, v.
    """
    x = (np.asarray(u, dtype=np.float64) - 0.5) * zoom + 0.5 + displace_x
    y = (np.asarray(v, dtype=np.float64) - 0.5) * zoom + 0.5 + displace_y

    cx = x - 0.5
    cy = y - 0.5
    cos_r = math.cos(rotation)
    sin_r = math.sin(rotation)

    return cos_r * cx + sin_r * cy + 0.5, -sin_r * cx + cos_r * cy + 0.5


def lyapunov_exponent(a, b, pattern: EncodedPattern, iter_max: int) -> np.ndarray:
    """
    Finite-sample Lyapunov exponent of the A/B-forced logistic map.

    At step i the growth rate is ``mix(a, b, pattern[i % length])``; the
    exponent is the mean of ``log|r - 2 r x|`` over ``iter_max`` steps
    starting from x = 0.5.

    Regions where r leaves [0, 4] diverge to infinity; those pixels
    saturate to the largest finite float rather than producing NaN.
    """
    a, b = np.broadcast_arrays(
        np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64)
    )
    iter_max = max(int(iter_max), 1)
    sequence = pattern.values
    length = max(pattern.length, 1)

    x = np.full(a.shape, 0.5, dtype=np.float64)
    total = np.zeros(a.shape, dtype=np.float64)

    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        for i in range(iter_max):
            r = mix(a, b, sequence[i % length])
            x = r * x * (1.0 - x)
            total += np.log(np.maximum(np.abs(r - 2.0 * r * x), LOG_EPSILON))

        exponent = total / iter_max

    return np.nan_to_num(exponent, nan=0.0)


def _hash(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    s = np.sin(x * 12.9898 + y * 4.1414) * 43758.5453
    return s - np.floor(s)


def value_noise(x, y) -> np.ndarray:
    """
    Squared value noise on the integer lattice.

    Hashed corner values, Hermite-smoothed bilinear blend, squared so the
    result sits in [0, 1] with a bias toward 0.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    ix = np.floor(x)
    iy = np.floor(y)
    fx = x - ix
    fy = y - iy
    ux = fx * fx * (3.0 - 2.0 * fx)
    uy = fy * fy * (3.0 - 2.0 * fy)

    bottom = mix(_hash(ix, iy), _hash(ix + 1.0, iy), ux)
    top = mix(_hash(ix, iy + 1.0), _hash(ix + 1.0, iy + 1.0), ux)
    res = mix(bottom, top, uy)
    return res * res


def discard_mask(color: np.ndarray, white_threshold: float, black_threshold: float) -> np.ndarray:
    """True where a color is closer than the threshold to white or black."""
    color = np.asarray(color, dtype=np.float64)
    to_white = np.linalg.norm(color - 1.0, axis=-1)
    to_black = np.linalg.norm(color, axis=-1)
    return (to_white < white_threshold) | (to_black < black_threshold)


def evaluate(u, v, params: FrameParameters) -> KernelResult:
    """
    Run the full kernel over a batch of screen coordinates.

    Args:
        u, v: Screen coordinates in [0, 1], any broadcastable shapes.
        params: Uniforms for the frame.

    Returns:
        KernelResult with arrays in the broadcast shape of u, v.
    """
    state = params.state
    a, b = transform_uv(
        u, v,
        zoom=state.zoom,
        displace_x=state.displace_x,
        displace_y=state.displace_y,
        rotation=params.rotation,
    )

    exponent = lyapunov_exponent(a, b, params.pattern, params.iter_max)

    if params.noise_enabled:
        drift = NOISE_SPEED * params.time
        exponent = exponent + NOISE_AMPLITUDE * value_noise(
            a * NOISE_SCALE + drift,
            b * NOISE_SCALE + drift,
        )

    t = smoothstep(state.lyp_min, state.lyp_max, exponent)
    color = get_palette_color(t, params.palette)
    discard = discard_mask(color, state.white_threshold, state.black_threshold)

    return KernelResult(exponent=exponent, t=t, color=color, discard=discard)


def shade(u, v, params: FrameParameters) -> np.ndarray:
    """
    Evaluate the kernel and pack it as float RGBA.

    Discarded pixels come out as (0, 0, 0, 0).

    Returns:
        (..., 4) float64 array.
    """
    result = evaluate(u, v, params)
    keep = ~result.discard
    rgb = np.where(keep[..., np.newaxis], result.color, 0.0)
    alpha = keep.astype(np.float64)[..., np.newaxis]
    return np.concatenate([rgb, alpha], axis=-1)


def evaluate_pixel(u: float, v: float, params: FrameParameters) -> tuple[float, tuple[float, float, float], bool]:
    """Single-pixel convenience: (exponent, rgb, discarded)."""
    result = evaluate(u, v, params)
    r, g, b = (float(c) for c in result.color)
    return float(result.exponent), (r, g, b), bool(result.discard)
