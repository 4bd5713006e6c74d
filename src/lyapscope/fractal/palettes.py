"""
Scalar-to-color palettes.

Each palette maps a normalized stability value t in [0, 1] to RGB.
All functions are vectorized: ``t`` may be a scalar or an array of any
shape, and the result has one extra trailing axis of size 3.

Inputs are clamped to [0, 1]; outputs are not. Viridis green goes
negative near t = 1 and is left that way.
"""

import numpy as np

TWO_PI = 2.0 * np.pi


def smoothstep(edge0, edge1, x) -> np.ndarray:
    """
    Clamped cubic Hermite step between two edges.

    A degenerate window (edge0 == edge1) becomes a hard step at the edge.
    """
    x = np.asarray(x, dtype=np.float64)
    span = np.asarray(edge1, dtype=np.float64) - edge0
    with np.errstate(divide="ignore", invalid="ignore"):
        t = np.clip((x - edge0) / span, 0.0, 1.0)
    t = np.where(span == 0, (x >= edge0).astype(np.float64), t)
    return t * t * (3.0 - 2.0 * t)


def mix(a, b, t):
    """Linear interpolation ``a + (b - a) * t``."""
    return a + (b - a) * t


def _clamp01(t) -> np.ndarray:
    return np.clip(np.asarray(t, dtype=np.float64), 0.0, 1.0)


def _stack(r, g, b) -> np.ndarray:
    r, g, b = np.broadcast_arrays(r, g, b)
    return np.stack([r, g, b], axis=-1)


def rainbow_palette(t) -> np.ndarray:
    t = _clamp01(t)
    return _stack(
        0.5 + 0.5 * np.cos(TWO_PI * (t + 0.0)),
        0.5 + 0.5 * np.cos(TWO_PI * (t + 0.33)),
        0.5 + 0.5 * np.cos(TWO_PI * (t + 0.66)),
    )


def hot_palette(t) -> np.ndarray:
    """Black through red and yellow to white, dimmed toward the low end."""
    t = _clamp01(t)
    intensity = mix(0.5, 1.0, t)
    return _stack(
        smoothstep(0.0, 0.5, t) * intensity,
        smoothstep(0.25, 0.75, t) * intensity,
        smoothstep(0.5, 1.0, t) * intensity,
    )


def turbo_palette(t) -> np.ndarray:
    t = _clamp01(t)
    return _stack(
        0.5 + 0.5 * np.sin(TWO_PI * (t + 0.0)),
        0.5 + 0.5 * np.sin(TWO_PI * (t + 0.15)),
        0.5 + 0.5 * np.sin(TWO_PI * (t + 0.3)),
    )


def viridis_palette(t) -> np.ndarray:
    """Quadratic fit of matplotlib's viridis."""
    t = _clamp01(t)
    return _stack(
        0.267 + 0.643 * t - 0.379 * t * t,
        0.004 + 1.370 * t - 1.689 * t * t,
        0.329 + 0.861 * t - 0.897 * t * t,
    )


def inferno_palette(t) -> np.ndarray:
    t = _clamp01(t)
    r = np.clip(1.5 * t + 0.05 * np.sin(20.0 * t), 0.0, 1.0)
    g = np.sqrt(t)
    b = 1.0 - t
    return _stack(r * 0.9, g * 0.6, b * 0.8)


def coolwarm_palette(t) -> np.ndarray:
    t = _clamp01(t)
    return _stack(t, 0.5 * np.sin(np.pi * t), 1.0 - t)


def pastel_palette(t) -> np.ndarray:
    t = _clamp01(t)
    return _stack(
        0.8 + 0.2 * np.sin(TWO_PI * (t + 0.1)),
        0.7 + 0.3 * np.sin(TWO_PI * (t + 0.4)),
        0.6 + 0.4 * np.sin(TWO_PI * (t + 0.7)),
    )


PALETTES = (
    rainbow_palette,
    hot_palette,
    turbo_palette,
    viridis_palette,
    inferno_palette,
    coolwarm_palette,
    pastel_palette,
)

PALETTE_NAMES = ("rainbow", "hot", "turbo", "viridis", "inferno", "coolwarm", "pastel")


def get_palette_color(t, palette_id: int) -> np.ndarray:
    """
    Look up a palette by id.

    Ids 0-5 select their palette; anything else falls through to Pastel.

    Args:
        t: Normalized value(s) in [0, 1].
        palette_id: Palette selector.

    Returns:
        (..., 3) float64 RGB array.
    """
    palette_id = int(palette_id)
    if 0 <= palette_id < len(PALETTES) - 1:
        return PALETTES[palette_id](t)
    return pastel_palette(t)
