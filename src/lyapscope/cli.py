"""
CLI entry point for the Lyapunov fractal renderer.

Usage:
    lyapscope [options]
    python -m lyapscope [options]

Renders a PNG snapshot by default, or an MP4 when --frames is above 1.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from lyapscope.config import PRESETS, LyapunovConfig, Palette, from_preset, load_config
from lyapscope.core.pattern import MAX_PATTERN
from lyapscope.io.encoder import QUALITY_PRESETS, encode_video, ffmpeg_available
from lyapscope.io.exporter import DEFAULT_SNAPSHOT, info_text, save_snapshot
from lyapscope.renderer import LyapunovRenderer, composite

logger = logging.getLogger(__name__)

# Resolution, frame rate and encoder quality per profile
PROFILES = {
    "low": (256, 256, 30, "fast"),
    "medium": (512, 512, 30, "medium"),
    "high": (1080, 1080, 60, "high"),
}

PALETTE_CHOICES = [p.name.lower() for p in Palette]

DEFAULT_VIDEO = "lyapunov.mp4"


class ProgressPrinter:
    """
    Frame progress on stdout, with render rate and ETA.

    Redraws one line in a terminal; otherwise prints about twenty lines
    per run so logs stay readable.
    """

    def __init__(self, width: int = 35, stream=None):
        self.width = width
        self.stream = stream or sys.stdout
        self._start = time.monotonic()

    def __call__(self, current: int, total: int):
        total = max(total, 1)
        frac = min(current / total, 1.0)
        elapsed = time.monotonic() - self._start
        rate = current / elapsed if elapsed > 0 else 0.0
        eta = (total - current) / rate if rate > 0 else 0.0
        status = f"{frac * 100:5.1f}%  frame {current}/{total}  {rate:5.1f} fps  eta {eta:4.0f}s"

        if self.stream.isatty():
            done = int(self.width * frac)
            self.stream.write(f"\r[{'=' * done}{' ' * (self.width - done)}] {status}")
            if current >= total:
                self.stream.write("\n")
            self.stream.flush()
        elif current % max(1, total // 20) == 0 or current >= total:
            print(status, file=self.stream, flush=True)


def _parse_color(value: str) -> tuple[int, int, int]:
    """Parse '#rrggbb' or 'r,g,b'."""
    value = value.strip()
    try:
        if value.startswith("#") and len(value) == 7:
            return tuple(int(value[i:i + 2], 16) for i in (1, 3, 5))
        parts = [int(p) for p in value.split(",")]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid color: {value}")
    if len(parts) != 3 or not all(0 <= p <= 255 for p in parts):
        raise argparse.ArgumentTypeError(f"Invalid color: {value}")
    return tuple(parts)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lyapscope",
        description="Lyapunov fractal renderer (PNG snapshot or MP4 sequence)",
    )
    parser.add_argument(
        "-o", "--output", type=Path, default=None,
        help=f"Output path (default: {DEFAULT_SNAPSHOT}, or {DEFAULT_VIDEO} with --frames)",
    )

    source = parser.add_argument_group("source")
    source.add_argument(
        "--preset", type=str, default="classic", choices=sorted(PRESETS),
        help="Starting preset (default: classic)",
    )
    source.add_argument("--config", type=Path, default=None, help="JSON config file applied on top of the preset")
    source.add_argument(
        "--start-config", type=Path, default=None,
        help="JSON config the sequence starts from; the view drifts to the target",
    )

    output = parser.add_argument_group("output size")
    output.add_argument(
        "-p", "--profile", type=str, default="medium", choices=sorted(PROFILES),
        help="low: 256px 30fps, medium: 512px 30fps, high: 1080px 60fps",
    )
    output.add_argument("--width", type=int, default=None, help="Image width (overrides profile)")
    output.add_argument("--height", type=int, default=None, help="Image height (overrides profile)")
    output.add_argument("-f", "--fps", type=int, default=None, help="Frames per second (overrides profile)")
    output.add_argument(
        "-q", "--quality", type=str, default=None, choices=sorted(QUALITY_PRESETS),
        help="Encoder quality (overrides profile)",
    )

    view = parser.add_argument_group("viewport")
    view.add_argument("--zoom", type=float, default=None, help="Window size in parameter space")
    view.add_argument("--displace-x", type=float, default=None, help="Horizontal offset")
    view.add_argument("--displace-y", type=float, default=None, help="Vertical offset")
    view.add_argument("--rotation", type=float, default=None, help="Rotation in degrees")
    view.add_argument("--no-rotation", action="store_true", help="Ignore rotation entirely")

    dynamics = parser.add_argument_group("dynamics")
    dynamics.add_argument(
        "--pattern", type=str, default=None,
        help=f"Forcing pattern over {{A, B}}, up to {MAX_PATTERN} symbols",
    )
    dynamics.add_argument("--iter-max", type=int, default=None, help="Iterations per pixel")
    dynamics.add_argument("--lyp-min", type=float, default=None, help="Exponent mapped to the palette start")
    dynamics.add_argument("--lyp-max", type=float, default=None, help="Exponent mapped to the palette end")

    color = parser.add_argument_group("color")
    color.add_argument("--palette", type=str, default=None, choices=PALETTE_CHOICES, help="Color palette")
    color.add_argument("--white", type=float, default=None, help="Discard colors this close to white")
    color.add_argument("--black", type=float, default=None, help="Discard colors this close to black")
    color.add_argument(
        "--background", type=_parse_color, default=None,
        help="Fill for discarded pixels, '#rrggbb' or 'r,g,b' (default: transparent PNG, black MP4)",
    )

    anim = parser.add_argument_group("animation")
    anim.add_argument("--no-noise", action="store_true", help="Disable noise perturbation")
    anim.add_argument("--freeze-time", action="store_true", help="Hold the noise animation still")
    anim.add_argument("--time", type=float, default=0.0, help="Clock time for a still render (default: 0)")
    anim.add_argument("--frames", type=int, default=1, help="Number of frames; above 1 renders an MP4")

    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _overrides(args: argparse.Namespace) -> dict:
    """Collect explicitly given CLI values as config fields."""
    mapping = {
        "zoom": args.zoom,
        "displace_x": args.displace_x,
        "displace_y": args.displace_y,
        "rotation": args.rotation,
        "pattern": args.pattern,
        "iter_max": args.iter_max,
        "lyp_min": args.lyp_min,
        "lyp_max": args.lyp_max,
        "white_threshold": args.white,
        "black_threshold": args.black,
    }
    values = {k: v for k, v in mapping.items() if v is not None}

    if args.palette is not None:
        values["palette"] = Palette[args.palette.upper()]
    if args.no_noise:
        values["noise_enabled"] = False
    if args.freeze_time:
        values["animate_time"] = False
    if args.no_rotation:
        values["rotation_enabled"] = False
    return values


def validate(config: LyapunovConfig) -> list[str]:
    """Range checks the kernel itself leaves to its callers."""
    problems = []
    if config.zoom <= 0:
        problems.append("zoom must be positive")
    if config.iter_max < 1:
        problems.append("iter-max must be at least 1")
    if not config.lyp_min < config.lyp_max:
        problems.append("lyp-min must be below lyp-max")
    if not 1 <= len(config.pattern) <= MAX_PATTERN:
        problems.append(f"pattern must have 1 to {MAX_PATTERN} symbols")
    elif set(config.pattern) - {"A", "B"}:
        problems.append("pattern may only contain A and B")
    if config.width < 1 or config.height < 1:
        problems.append("width and height must be positive")
    return problems


def _resolve_configs(args: argparse.Namespace) -> tuple[LyapunovConfig, LyapunovConfig | None]:
    """Preset, then config file, then flags. Returns (target, start)."""
    width, height, fps, _ = PROFILES[args.profile]
    config = from_preset(
        args.preset,
        width=args.width or width,
        height=args.height or height,
        fps=args.fps or fps,
    )
    if args.config is not None:
        config = load_config(args.config, base=config)
    config = config.replace(**_overrides(args))

    start = None
    if args.start_config is not None:
        start = load_config(args.start_config, base=config)
    return config, start


def _render_still(renderer: LyapunovRenderer, args: argparse.Namespace, output: Path):
    frame = renderer.render_frame(elapsed=args.time)
    if args.background is not None:
        frame = composite(frame, args.background)
    save_snapshot(frame, output)
    print(f"  {info_text(renderer.cfg.pattern, renderer.cycle.state)}")


def _render_video(
    renderer: LyapunovRenderer,
    args: argparse.Namespace,
    output: Path,
    start: LyapunovConfig | None,
):
    cfg = renderer.cfg
    background = args.background or (0, 0, 0)
    frames = (
        composite(frame, background)
        for frame in renderer.render_sequence(args.frames, start=start)
    )
    encode_video(
        frame_iterator=frames,
        output_path=output,
        width=cfg.width,
        height=cfg.height,
        fps=cfg.fps,
        quality=args.quality or PROFILES[args.profile][3],
        total_frames=args.frames,
        progress_callback=ProgressPrinter(),
    )
    print(f"  {output.stat().st_size / 1024 / 1024:.1f} MB")


def _fail(message: str):
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config, start = _resolve_configs(args)
    except (OSError, ValueError, KeyError) as e:
        _fail(str(e))

    problems = validate(config)
    if problems:
        for problem in problems[:-1]:
            print(f"Error: {problem}", file=sys.stderr)
        _fail(problems[-1])

    video = args.frames > 1
    output = args.output or Path(DEFAULT_VIDEO if video else DEFAULT_SNAPSHOT)
    if video and not ffmpeg_available():
        _fail("ffmpeg not found on PATH")

    logger.debug("Resolved config: %s", config.to_dict())
    print(f"Rendering {config.width}x{config.height}, pattern {config.pattern}, {config.iter_max} iterations")
    t0 = time.time()

    renderer = LyapunovRenderer(config)
    if video:
        try:
            _render_video(renderer, args, output, start)
        except RuntimeError as e:
            _fail(str(e))
    else:
        _render_still(renderer, args, output)

    print(f"  Took {time.time() - t0:.1f}s")
    print(f"  Output: {output}")


if __name__ == "__main__":
    main()
