"""
FFmpeg video encoder.

Rendered frames are flattened to RGB24 and piped to ffmpeg's stdin, so a
sequence of any length is encoded without touching disk in between.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Iterator

import numpy as np

logger = logging.getLogger(__name__)

# Quality presets: (preset, crf, pix_fmt)
QUALITY_PRESETS = {
    "high": ("slow", "18", "yuv444p"),
    "medium": ("medium", "23", "yuv420p"),
    "fast": ("ultrafast", "28", "yuv420p"),
}


def ffmpeg_available() -> bool:
    return shutil.which("ffmpeg") is not None


def build_command(
    output_path: Path,
    width: int,
    height: int,
    fps: int,
    quality: str = "high",
) -> list[str]:
    """Assemble the ffmpeg command line for a raw RGB24 pipe."""
    preset, crf, pix_fmt = QUALITY_PRESETS.get(quality, QUALITY_PRESETS["high"])

    return [
        "ffmpeg", "-y", "-loglevel", "error",
        "-f", "rawvideo",
        "-pix_fmt", "rgb24",
        "-s", f"{width}x{height}",
        "-r", str(fps),
        "-i", "pipe:0",
        # libx264 wants even dimensions
        "-vf", "scale=trunc(iw/2)*2:trunc(ih/2)*2",
        "-c:v", "libx264",
        "-preset", preset,
        "-crf", crf,
        "-pix_fmt", pix_fmt,
        "-movflags", "+faststart",
        str(output_path),
    ]


def _stderr_summary(raw: bytes, max_lines: int = 5) -> str:
    lines = [ln.strip() for ln in raw.decode("utf-8", errors="replace").splitlines() if ln.strip()]
    return "\n".join(lines[-max_lines:]) or "no output"


class FramePipe:
    """
    An ffmpeg process fed one RGB24 frame at a time.

    Use as a context manager: leaving the block normally waits for ffmpeg
    and raises RuntimeError if it failed; leaving through an exception
    kills the process.
    """

    def __init__(self, output_path: Path, width: int, height: int, fps: int, quality: str = "high"):
        self.output_path = Path(output_path)
        self.width = width
        self.height = height
        self.fps = fps
        self.quality = quality
        self.frames_written = 0
        self._proc: subprocess.Popen | None = None

    def __enter__(self) -> "FramePipe":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.abort()
            return False
        self.close()
        return False

    def open(self):
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        cmd = build_command(self.output_path, self.width, self.height, self.fps, self.quality)
        logger.debug("Running %s", " ".join(cmd))
        self._proc = subprocess.Popen(
            cmd,
            stdin=subprocess.PIPE,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
        )

    def write(self, frame: np.ndarray) -> bool:
        """
        Send one frame.

        Args:
            frame: (height, width, 3) uint8 RGB array.

        Returns:
            False once ffmpeg has stopped reading; the caller should stop
            producing frames and let close() report the failure.
        """
        expected = (self.height, self.width, 3)
        if frame.shape != expected:
            raise ValueError(f"Frame shape {frame.shape} does not match {expected}")

        try:
            self._proc.stdin.write(np.ascontiguousarray(frame, dtype=np.uint8).tobytes())
        except BrokenPipeError:
            logger.warning("ffmpeg stopped reading after %d frames", self.frames_written)
            return False
        self.frames_written += 1
        return True

    def close(self):
        try:
            self._proc.stdin.close()
        except BrokenPipeError:
            pass
        self._proc.wait()

        if self._proc.returncode != 0:
            raise RuntimeError(
                f"ffmpeg exited with code {self._proc.returncode}: "
                f"{_stderr_summary(self._proc.stderr.read())}"
            )
        logger.info("Encoded %d frames to %s", self.frames_written, self.output_path)

    def abort(self):
        logger.debug("Killing ffmpeg after %d frames", self.frames_written)
        self._proc.kill()
        self._proc.wait()


def encode_video(
    frame_iterator: Iterator[np.ndarray],
    output_path: Path,
    width: int = 512,
    height: int = 512,
    fps: int = 60,
    quality: str = "high",
    total_frames: int | None = None,
    progress_callback: callable = None,
) -> Path:
    """
    Stream an iterable of RGB frames into an MP4 file.

    Frames must match (height, width, 3) uint8. Encoding stops early if
    ffmpeg stops reading, and its error is raised once the process exits.

    Args:
        total_frames: Expected frame count, used only for progress.
        progress_callback: Optional callback(frames_written, total_frames).

    Raises:
        RuntimeError: ffmpeg exited with a non-zero code.
        ValueError: A frame had the wrong shape.
    """
    with FramePipe(output_path, width, height, fps, quality) as pipe:
        for frame in frame_iterator:
            if not pipe.write(frame):
                break
            if progress_callback and total_frames:
                progress_callback(pipe.frames_written, total_frames)

    return pipe.output_path
