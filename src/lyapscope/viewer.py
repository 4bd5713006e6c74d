"""
Interactive pygame viewer.

The keyboard edits the target config; every displayed frame ticks the
renderer exactly once, so the view glides toward each new target.
Discarded pixels show the checkerboard backdrop behind the fractal.

Keys:
    arrows      pan                 + / -      zoom in / out
    Q / E       rotate -/+15 deg    [ / ]      iterations -/+10
    P           next palette        N          toggle noise
    T           toggle time         A / B      append pattern symbol
    Backspace   drop last symbol    , / .      white threshold -/+
    ; / '       black threshold -/+ R          reset view
    S           save snapshot       H          toggle HUD
    Esc         quit
"""

import argparse
import time
from pathlib import Path

import numpy as np
import pygame

from lyapscope.config import PRESETS, LyapunovConfig, Palette, from_preset
from lyapscope.core.pattern import MAX_PATTERN
from lyapscope.io.exporter import info_text, save_snapshot
from lyapscope.renderer import LyapunovRenderer

PAN_STEP = 0.05
ZOOM_STEP = 0.9
ROTATION_STEP = 15.0
ITER_STEP = 10
THRESHOLD_STEP = 0.005
THRESHOLD_MAX = 0.2


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def apply_key(config: LyapunovConfig, key: str) -> LyapunovConfig:
    """
    Return the config a key press asks for.

    ``key`` is a pygame key name (``pygame.key.name``). Unknown keys leave
    the config unchanged. Ranges are enforced here, never in the kernel.
    """
    step = PAN_STEP * config.zoom

    if key == "left":
        return config.replace(displace_x=config.displace_x - step)
    if key == "right":
        return config.replace(displace_x=config.displace_x + step)
    if key == "up":
        return config.replace(displace_y=config.displace_y + step)
    if key == "down":
        return config.replace(displace_y=config.displace_y - step)
    if key in ("=", "+", "[+]"):
        return config.replace(zoom=config.zoom * ZOOM_STEP)
    if key in ("-", "[-]"):
        return config.replace(zoom=config.zoom / ZOOM_STEP)
    if key == "q":
        return config.replace(rotation=(config.rotation - ROTATION_STEP) % 360.0)
    if key == "e":
        return config.replace(rotation=(config.rotation + ROTATION_STEP) % 360.0)
    if key == "[":
        return config.replace(iter_max=max(1, config.iter_max - ITER_STEP))
    if key == "]":
        return config.replace(iter_max=config.iter_max + ITER_STEP)
    if key == "p":
        return config.replace(palette=Palette((int(config.palette) + 1) % len(Palette)))
    if key == "n":
        return config.replace(noise_enabled=not config.noise_enabled)
    if key == "t":
        return config.replace(animate_time=not config.animate_time)
    if key in ("a", "b"):
        if len(config.pattern) >= MAX_PATTERN:
            return config
        return config.replace(pattern=config.pattern + key.upper())
    if key == "backspace":
        if len(config.pattern) <= 1:
            return config
        return config.replace(pattern=config.pattern[:-1])
    if key == ",":
        return config.replace(white_threshold=_clamp(config.white_threshold - THRESHOLD_STEP, 0.0, THRESHOLD_MAX))
    if key == ".":
        return config.replace(white_threshold=_clamp(config.white_threshold + THRESHOLD_STEP, 0.0, THRESHOLD_MAX))
    if key == ";":
        return config.replace(black_threshold=_clamp(config.black_threshold - THRESHOLD_STEP, 0.0, THRESHOLD_MAX))
    if key == "'":
        return config.replace(black_threshold=_clamp(config.black_threshold + THRESHOLD_STEP, 0.0, THRESHOLD_MAX))
    return config


def checkerboard(width: int, height: int, cell: int = 16) -> np.ndarray:
    """(H, W, 3) uint8 grey checkerboard used behind discarded pixels."""
    y, x = np.mgrid[:height, :width]
    light = ((x // cell) + (y // cell)) % 2 == 0
    board = np.where(light, 200, 150).astype(np.uint8)
    return np.repeat(board[:, :, np.newaxis], 3, axis=2)


class Viewer:
    """Window, event loop and HUD around a LyapunovRenderer."""

    def __init__(
        self,
        width: int = 800,
        height: int = 800,
        render_size: int = 256,
        config: LyapunovConfig | None = None,
        snapshot_dir: Path = Path("snapshots"),
    ):
        self.width = width
        self.height = height
        self.initial = (config or LyapunovConfig()).replace(
            width=render_size, height=render_size
        )
        self.config = self.initial
        self.renderer = LyapunovRenderer(self.config)
        self.snapshot_dir = Path(snapshot_dir)

        self.running = True
        self.show_hud = True
        self.last_frame: np.ndarray | None = None
        self.hud_font = None

    def _frame_surface(self, frame: np.ndarray) -> pygame.Surface:
        h, w = frame.shape[:2]
        surface = pygame.image.frombuffer(frame.tobytes(), (w, h), "RGBA")
        return pygame.transform.smoothscale(surface.convert_alpha(), (self.width, self.height))

    def _draw_hud(self, screen, fps):
        if not self.show_hud:
            return

        state = self.renderer.cycle.state
        palette = Palette(int(self.config.palette)).name.title()
        lines = [
            info_text(self.config.pattern, state),
            f"Iter: {self.config.iter_max}  |  Palette: {palette}  |  "
            f"Noise: {'on' if self.config.noise_enabled else 'off'}  |  "
            f"Time: {'running' if self.config.animate_time else 'frozen'}  |  FPS: {fps:.0f}",
        ]

        padding = 6
        bg_height = 22 * len(lines) + padding
        bg_surface = pygame.Surface((self.width, bg_height), pygame.SRCALPHA)
        bg_surface.fill((0, 0, 0, 140))
        screen.blit(bg_surface, (0, 0))

        for i, line in enumerate(lines):
            text_surface = self.hud_font.render(line, True, (210, 215, 225))
            screen.blit(text_surface, (padding + 4, padding + i * 22))

    def _save_snapshot(self):
        if self.last_frame is None:
            return
        timestamp = time.strftime("%Y%m%d_%H%M%S")
        path = save_snapshot(self.last_frame, self.snapshot_dir / f"lyapunov_{timestamp}.png")
        print(f"Snapshot saved: {path}")

    def _handle_keydown(self, event):
        key = pygame.key.name(event.key)

        if event.key == pygame.K_ESCAPE:
            self.running = False
        elif key == "s":
            self._save_snapshot()
        elif key == "h":
            self.show_hud = not self.show_hud
        elif key == "r":
            self.config = self.initial
        else:
            self.config = apply_key(self.config, key)

    def run(self):
        """Main viewer loop."""
        pygame.init()

        screen = pygame.display.set_mode((self.width, self.height))
        pygame.display.set_caption("Lyapunov Fractal")
        clock = pygame.time.Clock()
        self.hud_font = pygame.font.SysFont("menlo", 13)

        backdrop = pygame.surfarray.make_surface(
            checkerboard(self.width, self.height).swapaxes(0, 1).copy()
        )
        start = time.time()

        while self.running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.running = False
                elif event.type == pygame.KEYDOWN:
                    self._handle_keydown(event)

            self.last_frame = self.renderer.render_frame(self.config, elapsed=time.time() - start)

            screen.blit(backdrop, (0, 0))
            screen.blit(self._frame_surface(self.last_frame), (0, 0))
            self._draw_hud(screen, clock.get_fps())

            pygame.display.flip()
            clock.tick(60)

        pygame.quit()


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        prog="lyapscope-viewer",
        description="Interactive Lyapunov fractal explorer",
    )
    parser.add_argument("--preset", type=str, default="classic", choices=sorted(PRESETS), help="Starting preset")
    parser.add_argument("--window", type=int, default=800, help="Window size in pixels (default: 800)")
    parser.add_argument("--render-size", type=int, default=256, help="Internal render resolution (default: 256)")
    parser.add_argument("--snapshots", type=Path, default=Path("snapshots"), help="Snapshot directory")
    args = parser.parse_args(argv)

    print("Starting Lyapunov Viewer")
    print(f"  Preset: {args.preset}")
    print(f"  Render size: {args.render_size}x{args.render_size}")
    print(f"  Window: {args.window}x{args.window}")
    print()

    viewer = Viewer(
        width=args.window,
        height=args.window,
        render_size=args.render_size,
        config=from_preset(args.preset),
        snapshot_dir=args.snapshots,
    )
    viewer.run()


if __name__ == "__main__":
    main()
