from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from juliamotion.renderers.palette import CROSSHAIR_COLOR

LABEL_MARGIN = 4


@dataclass(frozen=True)
class View:
    """Square-pixel window of the complex plane.

    Pixel (x, y) maps to plane_start + (x + iy) * scale, so row 0 holds the
    smallest imaginary part.
    """

    image_width: int
    image_height: int
    scale: float
    plane_start: complex

    @classmethod
    def uniform(cls, image_width: int, image_height: int, plane_width: float, center: complex = 0j) -> "View":
        scale = plane_width / image_width
        plane_height = image_height * scale
        return cls(image_width, image_height, scale, center - complex(plane_width / 2, plane_height / 2))

    def plane_coordinates(self, x: float, y: float) -> complex:
        return self.plane_start + complex(x * self.scale, y * self.scale)

    def pixel_coordinates(self, point: complex) -> Tuple[int, int]:
        """Pixel containing `point`; may lie outside the image."""
        offset = (point - self.plane_start) / self.scale
        return int(np.floor(offset.real)), int(np.floor(offset.imag))

    def contains_column(self, x: int) -> bool:
        return 0 <= x < self.image_width

    def contains_row(self, y: int) -> bool:
        return 0 <= y < self.image_height


def draw_crosshair(pixels: np.ndarray, view: View, point: complex) -> Tuple[int, int]:
    """Draw a full-width/full-height crosshair through the pixel of `point`.

    Lines falling outside the image are skipped. Returns the pixel location.
    """
    x, y = view.pixel_coordinates(point)
    if view.contains_row(y):
        pixels[y, :] = CROSSHAIR_COLOR
    if view.contains_column(x):
        pixels[:, x] = CROSSHAIR_COLOR
    return x, y


def format_parameter(c: complex) -> str:
    sign = "-" if c.imag < 0 else "+"
    return f"{c.real:.6f} {sign} {abs(c.imag):.6f}i"


def draw_label(pixels: np.ndarray, view: View, anchor: Tuple[int, int], text: str,
               font: Optional[ImageFont.ImageFont] = None) -> np.ndarray:
    """Draw `text` beside the crosshair, on the side facing the image center."""
    img = Image.fromarray(pixels)
    draw = ImageDraw.Draw(img)
    font = font or ImageFont.load_default()
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    w = right - left + 2 * LABEL_MARGIN
    h = bottom - top + 2 * LABEL_MARGIN

    x, y = anchor
    if x >= view.image_width // 2:
        x -= w
    if y >= view.image_height // 2:
        y -= h
    # Labels larger than the image start at the top-left corner.
    x = max(0, min(x, view.image_width - w))
    y = max(0, min(y, view.image_height - h))

    draw.text((x + LABEL_MARGIN - left, y + LABEL_MARGIN - top), text, fill=CROSSHAIR_COLOR, font=font)
    return np.asarray(img, dtype=np.uint8).copy()
