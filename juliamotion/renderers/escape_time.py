from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from numba import njit
from PIL import Image

from juliamotion.config import RenderConfig, RenderMode
from juliamotion.renderers.palette import colorize
from juliamotion.renderers.smoothing import escape_value
from juliamotion.renderers.view import View, draw_crosshair, draw_label, format_parameter
from juliamotion.util.logging_setup import get_logger
from juliamotion.util.progress import FrameProgress

# Rows evaluated per kernel call; progress advances once per band.
BAND_HEIGHT = 16


@dataclass(frozen=True)
class FrameJob:
    frame_index: int
    parameter: complex


@dataclass(frozen=True)
class FrameBuffer:
    frame_index: int
    pixels: np.ndarray  # (height, width, 3) uint8 RGB

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels)


@njit(nogil=True)
def _escape_band(start_re, start_im, scale, width, y0, c_re, c_im, mandelbrot, max_iterations, radius_squared,
                 counts, moduli):
    """Escape-time iteration of z = z^2 + c for rows y0 .. y0 + counts.shape[0].

    counts receives the number of iterations performed before |z|^2 exceeded
    radius_squared (max_iterations if it never did), moduli the last |z|^2.
    """
    for row in range(counts.shape[0]):
        im0 = start_im + (y0 + row) * scale
        for x in range(width):
            re0 = start_re + x * scale
            if mandelbrot:
                zr = 0.0
                zi = 0.0
                cr = re0
                ci = im0
            else:
                zr = re0
                zi = im0
                cr = c_re
                ci = c_im

            n = 0
            m = zr * zr + zi * zi
            while n < max_iterations and m <= radius_squared:
                zr, zi = zr * zr - zi * zi + cr, 2.0 * zr * zi + ci
                n += 1
                m = zr * zr + zi * zi

            counts[row, x] = n
            moduli[row, x] = m


def escape_counts(job: FrameJob, config: RenderConfig, progress: Optional[FrameProgress] = None):
    """Run the kernel over the whole image; returns (counts, moduli, escaped)."""
    width, height = config.image_width, config.image_height
    view = View.uniform(width, height, config.plane_width, config.center)
    radius_squared = config.smoothing.radius_squared
    c = complex(job.parameter)

    counts = np.empty((height, width), dtype=np.int64)
    moduli = np.empty((height, width), dtype=np.float64)

    for y0 in range(0, height, BAND_HEIGHT):
        y1 = min(height, y0 + BAND_HEIGHT)
        _escape_band(view.plane_start.real, view.plane_start.imag, view.scale, width, y0, c.real, c.imag,
                     config.mode is RenderMode.MANDELBROT, config.max_iterations, radius_squared,
                     counts[y0:y1], moduli[y0:y1])
        if progress is not None:
            progress.advance((y1 - y0) * width)

    # NaN or infinite moduli count as never escaping.
    with np.errstate(invalid="ignore"):
        escaped = (counts < config.max_iterations) & np.isfinite(moduli) & (moduli > radius_squared)
    return counts, moduli, escaped


def render_frame(job: FrameJob, config: RenderConfig, progress: Optional[FrameProgress] = None) -> FrameBuffer:
    logger = get_logger()
    logger.debug("[Frame %s] render start c=%s iter=%s", job.frame_index, job.parameter, config.max_iterations)

    counts, moduli, escaped = escape_counts(job, config, progress)
    values = escape_value(config.smoothing, counts, moduli)
    pixels = colorize(values, ~escaped)

    if config.mode is RenderMode.MANDELBROT:
        view = View.uniform(config.image_width, config.image_height, config.plane_width, config.center)
        anchor = draw_crosshair(pixels, view, complex(job.parameter))
        if config.show_label:
            pixels = draw_label(pixels, view, anchor, format_parameter(complex(job.parameter)))

    logger.debug("[Frame %s] render done", job.frame_index)
    return FrameBuffer(job.frame_index, pixels)
