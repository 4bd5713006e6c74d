"""Snapshot and video output."""

from lyapscope.io.encoder import FramePipe, encode_video
from lyapscope.io.exporter import info_text, save_snapshot, viewport_bounds

__all__ = ["FramePipe", "encode_video", "info_text", "save_snapshot", "viewport_bounds"]
