from __future__ import annotations

import glob
import os
from typing import Optional

from natsort import natsorted

from juliamotion.errors import ConfigRangeError, SinkWriteError
from juliamotion.renderers.escape_time import FrameBuffer
from juliamotion.util.logging_setup import get_logger


def _cv2():
    try:
        import cv2  # type: ignore
    except Exception as e:
        raise RuntimeError(f"OpenCV not installed: {e}") from e
    return cv2


class OpenCVVideoSink:
    """Writes RGB frame buffers, strictly in index order, to a video file."""

    def __init__(self, output_file: str, *, width: int, height: int, fps: float, fourcc: str = "mp4v") -> None:
        self.output_file = output_file
        self.width = width
        self.height = height
        self.fps = fps
        self.fourcc = fourcc
        self.frames_written = 0
        self._writer = None

    def open(self) -> "OpenCVVideoSink":
        cv2 = _cv2()
        parent = os.path.dirname(self.output_file)
        if parent:
            os.makedirs(parent, exist_ok=True)
        writer = cv2.VideoWriter(self.output_file, cv2.VideoWriter_fourcc(*self.fourcc), self.fps, (self.width, self.height))
        if not writer.isOpened():
            raise SinkWriteError(f"Failed to open VideoWriter for {self.output_file} (fourcc={self.fourcc})")
        self._writer = writer
        get_logger().info("Video sink open %s (%sx%s @ %.3f fps, fourcc=%s)",
                          self.output_file, self.width, self.height, self.fps, self.fourcc)
        return self

    def write(self, frame: FrameBuffer) -> None:
        if self._writer is None:
            raise SinkWriteError("Video sink is not open", frame_index=frame.frame_index)
        if frame.frame_index != self.frames_written:
            raise SinkWriteError(f"Out of order frame, expected {self.frames_written}", frame_index=frame.frame_index)
        if (frame.width, frame.height) != (self.width, self.height):
            raise SinkWriteError(f"Frame is {frame.width}x{frame.height}, expected {self.width}x{self.height}",
                                 frame_index=frame.frame_index)
        cv2 = _cv2()
        self._writer.write(cv2.cvtColor(frame.pixels, cv2.COLOR_RGB2BGR))
        self.frames_written += 1

    def close(self) -> None:
        if self._writer is not None:
            self._writer.release()
            self._writer = None
            get_logger().info("Video written: %s (%s frames)", self.output_file, self.frames_written)

    def __enter__(self) -> "OpenCVVideoSink":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()


def encode_with_opencv(*, input_dir: str, output_file: str, fps: float, fourcc: str = "mp4v",
                       ext: Optional[str] = None) -> int:
    """Stitch the images of `input_dir`, in natural order, into a video."""
    logger = get_logger()
    cv2 = _cv2()

    exts = (ext,) if ext else (".png", ".jpg", ".jpeg")
    frames = natsorted(p for p in glob.glob(os.path.join(input_dir, "*")) if p.lower().endswith(exts))
    if not frames:
        raise ConfigRangeError("input_dir", input_dir, "contains no frames")

    first = cv2.imread(frames[0])
    if first is None:
        raise SinkWriteError(f"Failed to read first frame: {frames[0]}")
    h, w, _ = first.shape

    out = cv2.VideoWriter(output_file, cv2.VideoWriter_fourcc(*fourcc), fps, (w, h))
    if not out.isOpened():
        raise SinkWriteError(f"Failed to open VideoWriter for {output_file}")

    logger.info("Encoding video %s from %s frames (%sx%s @ %sfps)", output_file, len(frames), w, h, fps)
    try:
        for i, path in enumerate(frames):
            img = cv2.imread(path)
            if img is None:
                raise SinkWriteError(f"Failed to read frame: {path}", frame_index=i)
            if img.shape[0] != h or img.shape[1] != w:
                img = cv2.resize(img, (w, h), interpolation=cv2.INTER_AREA)
            out.write(img)
            if i % 200 == 0:
                logger.info("Encoded %s/%s frames", i, len(frames))
    finally:
        out.release()
    logger.info("Video written: %s", output_file)
    return len(frames)
