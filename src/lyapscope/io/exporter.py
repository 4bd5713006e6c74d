"""
Snapshot export and viewport labelling.

Writes rendered RGBA frames to PNG and formats the info label that
describes which window of parameter space is on screen.
"""

import logging
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

from lyapscope.core.smoother import SmoothedState

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT = "lyapunov.png"


def viewport_bounds(state: SmoothedState) -> tuple[float, float, float, float]:
    """
    Parameter-space window covered by the screen, ignoring rotation.

    Returns:
        (x_min, x_max, y_min, y_max)
    """
    half = 0.5 * state.zoom
    x_min = 0.5 - half + state.displace_x
    x_max = 0.5 + half + state.displace_x
    y_min = 0.5 - half + state.displace_y
    y_max = 0.5 + half + state.displace_y
    return x_min, x_max, y_min, y_max


def info_text(pattern: str, state: SmoothedState) -> str:
    """One-line label: forcing pattern and visible window."""
    x_min, x_max, y_min, y_max = viewport_bounds(state)
    return (
        f"Pattern: {pattern} | "
        f"X: [{x_min:.2f}, {x_max:.2f}] | "
        f"Y: [{y_min:.2f}, {y_max:.2f}]"
    )


def save_snapshot(
    frame: np.ndarray,
    path: Union[str, Path] = DEFAULT_SNAPSHOT,
) -> Path:
    """
    Save a rendered frame as PNG.

    Args:
        frame: (H, W, 4) uint8 RGBA or (H, W, 3) uint8 RGB. Discarded
            pixels keep their zero alpha in the file.
        path: Output path; parent directories are created.

    Returns:
        Path to the written file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    Image.fromarray(np.ascontiguousarray(frame, dtype=np.uint8)).save(path)

    logger.info("Snapshot saved to %s", path)
    return path
