from __future__ import annotations

import os

from juliamotion.errors import SinkWriteError
from juliamotion.renderers.escape_time import FrameBuffer
from juliamotion.util.logging_setup import get_logger


def frame_path(frames_dir: str, frame_index: int) -> str:
    return os.path.join(frames_dir, f"frame_{frame_index:06d}.png")


class PngFrameSink:
    """Saves each frame as frame_NNNNNN.png; `juliamotion encode` turns them into a video."""

    def __init__(self, frames_dir: str) -> None:
        self.frames_dir = frames_dir
        self.frames_written = 0

    def open(self) -> "PngFrameSink":
        os.makedirs(self.frames_dir, exist_ok=True)
        return self

    def write(self, frame: FrameBuffer) -> None:
        if frame.frame_index != self.frames_written:
            raise SinkWriteError(f"Out of order frame, expected {self.frames_written}", frame_index=frame.frame_index)
        path = frame_path(self.frames_dir, frame.frame_index)
        try:
            frame.to_image().save(path, format="PNG", optimize=True)
        except OSError as e:
            raise SinkWriteError(f"Failed to save {path}: {e}", frame_index=frame.frame_index) from e
        self.frames_written += 1
        get_logger().debug("Saved frame %s -> %s", frame.frame_index, path)

    def close(self) -> None:
        get_logger().info("Frames written: %s (%s frames)", self.frames_dir, self.frames_written)

    def __enter__(self) -> "PngFrameSink":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()
