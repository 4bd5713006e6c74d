"""
Configuration schema for the Lyapunov fractal explorer.

One dataclass covers every variant of the view: the numeric knobs the
smoother drives, the discrete knobs that are pushed straight to the kernel,
and capability flags (noise, rotation). The core never re-validates these
values; range checks belong to whoever builds the config (CLI, viewer).
"""

import dataclasses
import json
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any, Union


class Palette(IntEnum):
    """Palette selector ids understood by the kernel."""

    RAINBOW = 0
    HOT = 1
    TURBO = 2
    VIRIDIS = 3
    INFERNO = 4
    COOLWARM = 5
    PASTEL = 6


@dataclass
class LyapunovConfig:
    """Target parameters for one view of the fractal."""

    # Render target
    width: int = 512
    height: int = 512
    fps: int = 60

    # Viewport
    zoom: float = 2.04
    displace_x: float = 2.37
    displace_y: float = 3.29
    rotation: float = 0.0  # degrees

    # Masking (distance to white / black below which pixels are discarded)
    white_threshold: float = 0.0
    black_threshold: float = 0.0

    # Exponent normalization window
    lyp_min: float = -1.0
    lyp_max: float = 1.0

    # Dynamics
    iter_max: int = 100
    pattern: str = "AAABB"

    # Color
    palette: int = Palette.TURBO

    # Capability flags
    noise_enabled: bool = True
    animate_time: bool = True
    rotation_enabled: bool = True

    def replace(self, **changes: Any) -> "LyapunovConfig":
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data["palette"] = int(self.palette)
        return data


# Named starting points. "classic" is the default view; the others frame
# well-known regions of the AB-forced logistic map.
PRESETS: dict[str, dict[str, Any]] = {
    "classic": {},
    "zircon": {
        "pattern": "BBBBBBAAAAAA",
        "zoom": 0.6,
        "displace_x": 3.0,
        "displace_y": 3.0,
        "palette": Palette.INFERNO,
        "iter_max": 200,
        "noise_enabled": False,
    },
    "swallow": {
        "pattern": "AB",
        "zoom": 2.0,
        "displace_x": 2.5,
        "displace_y": 2.5,
        "palette": Palette.VIRIDIS,
        "noise_enabled": False,
    },
    "jellyfish": {
        "pattern": "BBABAB",
        "zoom": 0.9,
        "displace_x": 3.15,
        "displace_y": 3.1,
        "lyp_min": -1.5,
        "lyp_max": 0.5,
        "palette": Palette.HOT,
    },
}

_FIELD_NAMES = {f.name for f in dataclasses.fields(LyapunovConfig)}


def from_preset(name: str, **overrides: Any) -> LyapunovConfig:
    """Build a config from a named preset plus explicit overrides."""
    if name not in PRESETS:
        raise KeyError(
            f"Unknown preset '{name}'. Available: {', '.join(sorted(PRESETS))}"
        )
    values = {**PRESETS[name], **overrides}
    return LyapunovConfig(**values)


def config_from_dict(data: dict[str, Any], base: LyapunovConfig | None = None) -> LyapunovConfig:
    """
    Overlay a plain dict onto a config.

    Args:
        data: Mapping of field name to value.
        base: Config to start from (defaults if None).

    Returns:
        New LyapunovConfig.

    Raises:
        ValueError: If the mapping names a field the schema does not have.
    """
    unknown = sorted(set(data) - _FIELD_NAMES)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
    return (base or LyapunovConfig()).replace(**data)


def load_config(path: Union[str, Path], base: LyapunovConfig | None = None) -> LyapunovConfig:
    """Load a JSON config file on top of ``base``."""
    path = Path(path)
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Malformed config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")
    return config_from_dict(data, base)


def save_config(config: LyapunovConfig, path: Union[str, Path]) -> Path:
    """Write a config as indented JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(config.to_dict(), f, indent=2)
    return path
