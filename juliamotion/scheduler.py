from __future__ import annotations

import enum
import os
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, Iterator, List, Optional, Protocol, Sequence

from juliamotion.config import RenderConfig
from juliamotion.errors import RunAborted, SinkWriteError
from juliamotion.renderers.escape_time import FrameBuffer, FrameJob, render_frame
from juliamotion.util.logging_setup import get_logger
from juliamotion.util.progress import FrameProgress, LoggingProgressSink, ProgressSink, ProgressState, ProgressTimer

# How often the emit loop wakes up to notice cancel().
_POLL_SECONDS = 0.1

RenderFn = Callable[[FrameJob, RenderConfig, Optional[FrameProgress]], FrameBuffer]


class FrameSink(Protocol):
    def write(self, frame: FrameBuffer) -> None: ...


class SchedulerState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ReorderBuffer:
    """Holds out-of-order frames and releases them by ascending index."""

    def __init__(self, next_index: int = 0) -> None:
        self.next_index = next_index
        self._pending: Dict[int, FrameBuffer] = {}

    def push(self, frame: FrameBuffer) -> None:
        idx = frame.frame_index
        if idx < self.next_index or idx in self._pending:
            raise ValueError(f"Frame {idx} was already received")
        self._pending[idx] = frame

    def pop_ready(self) -> Iterator[FrameBuffer]:
        while self.next_index in self._pending:
            frame = self._pending.pop(self.next_index)
            self.next_index += 1
            yield frame

    def __len__(self) -> int:
        return len(self._pending)


class FrameScheduler:
    """Renders frames on a thread pool and writes them to `sink` in index order.

    At most `window` frames are rendering or waiting to be written at any
    time: frame i + window is only submitted once frame i has been written.
    """

    def __init__(
        self,
        config: RenderConfig,
        sink: FrameSink,
        *,
        workers: Optional[int] = None,
        window: Optional[int] = None,
        progress_sink: Optional[ProgressSink] = None,
        fractal_progress_interval: float = 1.0,
        video_progress_interval: float = 1.0,
        render: RenderFn = render_frame,
    ) -> None:
        self.config = config
        self.sink = sink
        self.workers = workers or os.cpu_count() or 1
        self.window = window or self.workers
        self.progress_sink = progress_sink or LoggingProgressSink()
        self.fractal_progress_interval = fractal_progress_interval
        self.video_progress_interval = video_progress_interval
        self.state = SchedulerState.IDLE
        self.progress: Optional[ProgressState] = None
        self._render = render
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Abort the run from another thread; run() raises RunAborted."""
        self._cancelled.set()

    def run(self, parameters: Sequence[complex]) -> int:
        if self.state is not SchedulerState.IDLE:
            raise RuntimeError(f"Scheduler already {self.state.value}; it runs only once.")
        logger = get_logger()
        total = len(parameters)
        pixels = self.config.image_width * self.config.image_height
        progress = self.progress = ProgressState(total)

        timers = [
            ProgressTimer("fractal-progress", self.fractal_progress_interval, lambda: self._report_fractal(progress)),
            ProgressTimer("video-progress", self.video_progress_interval, lambda: self._report_video(progress)),
        ]
        pool = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="fractal")
        in_flight: Dict[Future, int] = {}
        trackers: Dict[int, FrameProgress] = {}
        reorder = ReorderBuffer()
        next_submit = 0

        logger.info("Scheduler start frames=%s workers=%s window=%s", total, self.workers, self.window)
        self.state = SchedulerState.RUNNING
        try:
            for t in timers:
                t.start()

            while reorder.next_index < total:
                if self._cancelled.is_set():
                    raise RunAborted(f"Render cancelled after {reorder.next_index}/{total} frames")

                while next_submit < total and next_submit < reorder.next_index + self.window:
                    tracker = FrameProgress(next_submit, pixels)
                    trackers[next_submit] = tracker
                    job = FrameJob(next_submit, complex(parameters[next_submit]))
                    in_flight[pool.submit(self._render, job, self.config, tracker)] = next_submit
                    next_submit += 1
                progress.set_head(trackers.get(reorder.next_index))

                done, _ = wait(list(in_flight), timeout=_POLL_SECONDS, return_when=FIRST_COMPLETED)
                for fut in done:
                    idx = in_flight.pop(fut)
                    try:
                        frame = fut.result()
                    except Exception:
                        logger.error("[Frame %s] render failed", idx)
                        raise
                    reorder.push(frame)

                for frame in reorder.pop_ready():
                    self._emit(frame, total)
                    trackers.pop(frame.frame_index, None)
                    progress.frame_emitted(trackers.get(reorder.next_index))
        except KeyboardInterrupt as exc:
            self._fail(in_flight, logger)
            raise RunAborted(f"Render interrupted after {reorder.next_index}/{total} frames") from exc
        except BaseException:
            self._fail(in_flight, logger)
            raise
        finally:
            # Lets in-flight frames finish; queued ones are dropped.
            pool.shutdown(wait=True, cancel_futures=True)
            for t in timers:
                t.stop()

        self.state = SchedulerState.COMPLETED
        self.progress_sink.video_progress(progress.frames_emitted, total)
        logger.info("Scheduler complete frames=%s", total)
        return progress.frames_emitted

    def _emit(self, frame: FrameBuffer, total: int) -> None:
        try:
            self.sink.write(frame)
        except SinkWriteError:
            raise
        except Exception as e:
            raise SinkWriteError(f"Video sink failed: {e}", frame_index=frame.frame_index) from e
        get_logger().debug("[Frame %s] written (%s/%s)", frame.frame_index, frame.frame_index + 1, total)

    def _fail(self, in_flight: Dict[Future, int], logger) -> None:
        self.state = SchedulerState.FAILED
        pending: List[int] = sorted(idx for fut, idx in in_flight.items() if not fut.done())
        for fut in in_flight:
            fut.cancel()
        logger.warning("Scheduler aborting; %s frame(s) still in flight: %s", len(pending), pending)

    def _report_fractal(self, progress: ProgressState) -> None:
        head = progress.head_progress()
        if head is not None:
            self.progress_sink.fractal_progress(*head)

    def _report_video(self, progress: ProgressState) -> None:
        self.progress_sink.video_progress(progress.frames_emitted, progress.total_frames)
