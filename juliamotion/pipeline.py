from __future__ import annotations

import time
from typing import Any, Dict, Optional

from juliamotion.config import JobSettings, RenderConfig
from juliamotion.path.parser import parse_path
from juliamotion.path.sampler import flatten, resample
from juliamotion.scheduler import FrameScheduler, FrameSink
from juliamotion.util.logging_setup import get_logger
from juliamotion.util.progress import LoggingProgressSink, TqdmProgressSink
from juliamotion.video.opencv_writer import OpenCVVideoSink
from juliamotion.video.png_frames import PngFrameSink


def build_sink(job: JobSettings, render: RenderConfig):
    if job.frames_dir:
        return PngFrameSink(job.frames_dir)
    return OpenCVVideoSink(job.output, width=render.image_width, height=render.image_height,
                           fps=job.fps, fourcc=job.fourcc)


def render_video(*, job: JobSettings, render: RenderConfig, progress_bar: bool = False,
                 sink: Optional[FrameSink] = None) -> Dict[str, Any]:
    """Parse the path, sample one parameter per frame and render every frame to the sink.

    Path and configuration errors are raised before any frame is rendered.
    """
    logger = get_logger()
    started = time.time()

    curve = parse_path(job.path)
    polyline = flatten(curve, job.path_tolerance)
    parameters = resample(polyline, job.frames)
    logger.info("Path parsed segments=%s vertices=%s length=%.6f start=%s end=%s",
                len(curve), len(polyline), polyline.length, parameters[0], parameters[-1])
    logger.info("Render start frames=%s size=%sx%s plane_width=%s iter=%s smoothing=%s mode=%s",
                job.frames, render.image_width, render.image_height, render.plane_width,
                render.max_iterations, render.smoothing.describe(), render.mode.value)

    progress = TqdmProgressSink(job.frames) if progress_bar else LoggingProgressSink()
    owned = sink is None
    if owned:
        sink = build_sink(job, render).open()
    try:
        scheduler = FrameScheduler(
            render,
            sink,
            workers=job.workers,
            window=job.window,
            progress_sink=progress,
            fractal_progress_interval=job.fractal_progress_interval / 1000.0,
            video_progress_interval=job.video_progress_interval / 1000.0,
        )
        written = scheduler.run(parameters)
    finally:
        progress.close()
        if owned:
            sink.close()

    elapsed = time.time() - started
    logger.info("Render complete frames=%s elapsed=%.2fs", written, elapsed)
    return {
        "frames": written,
        "path_length": polyline.length,
        "first_parameter": [parameters[0].real, parameters[0].imag],
        "last_parameter": [parameters[-1].real, parameters[-1].imag],
        "elapsed_seconds": elapsed,
    }
