from __future__ import annotations

import threading
from typing import Callable, Optional, Protocol, Tuple

from tqdm import tqdm

from juliamotion.util.logging_setup import get_logger


class FrameProgress:
    """Pixel counter for one frame, advanced by the rendering thread."""

    def __init__(self, frame_index: int, total_pixels: int) -> None:
        self.frame_index = frame_index
        self.total = total_pixels
        self._done = 0
        self._lock = threading.Lock()

    def advance(self, pixels: int) -> None:
        with self._lock:
            self._done += pixels

    @property
    def done(self) -> int:
        with self._lock:
            return self._done

    @property
    def finished(self) -> bool:
        return self.done >= self.total


class ProgressState:
    """Per-run counters read by the progress timers."""

    def __init__(self, total_frames: int) -> None:
        self.total_frames = total_frames
        self._frames_emitted = 0
        self._head: Optional[FrameProgress] = None
        self._lock = threading.Lock()

    def frame_emitted(self, head: Optional[FrameProgress]) -> None:
        with self._lock:
            self._frames_emitted += 1
            self._head = head

    def set_head(self, head: Optional[FrameProgress]) -> None:
        with self._lock:
            self._head = head

    @property
    def frames_emitted(self) -> int:
        with self._lock:
            return self._frames_emitted

    def head_progress(self) -> Optional[Tuple[int, int, int]]:
        """(frame_index, pixels_done, pixels_total) of the head frame while it renders."""
        with self._lock:
            head = self._head
        if head is None:
            return None
        done = head.done
        if done <= 0 or done >= head.total:
            return None
        return head.frame_index, done, head.total


class ProgressSink(Protocol):
    def fractal_progress(self, frame_index: int, done: int, total: int) -> None: ...

    def video_progress(self, emitted: int, total: int) -> None: ...

    def close(self) -> None: ...


class LoggingProgressSink:
    def fractal_progress(self, frame_index: int, done: int, total: int) -> None:
        get_logger().info("[Frame %s] Fractal progress %.2f%% (%s/%s px)", frame_index, 100.0 * done / total, done, total)

    def video_progress(self, emitted: int, total: int) -> None:
        get_logger().info("Video progress %.2f%% (%s/%s frames)", 100.0 * emitted / total, emitted, total)

    def close(self) -> None:
        pass


class TqdmProgressSink:
    """Frame bar for the whole video; head-frame progress shows in the postfix.

    Safe to call from the timer threads and the emit loop at once.
    """

    def __init__(self, total_frames: int) -> None:
        self._bar = tqdm(total=total_frames, unit="frame", desc="video")
        self._lock = threading.Lock()

    def fractal_progress(self, frame_index: int, done: int, total: int) -> None:
        with self._lock:
            self._bar.set_postfix_str(f"frame {frame_index}: {100.0 * done / total:.1f}%")

    def video_progress(self, emitted: int, total: int) -> None:
        with self._lock:
            self._bar.update(emitted - self._bar.n)

    def close(self) -> None:
        with self._lock:
            self._bar.close()


class ProgressTimer:
    """Daemon thread calling `report` every `interval` seconds until stopped."""

    def __init__(self, name: str, interval: float, report: Callable[[], None]) -> None:
        self.interval = interval
        self._report = report
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._loop, name=name, daemon=True)

    @property
    def enabled(self) -> bool:
        return self.interval > 0

    def start(self) -> None:
        if self.enabled:
            self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread.is_alive():
            self._thread.join()

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self._report()
            except Exception:
                get_logger().exception("Progress report failed")
