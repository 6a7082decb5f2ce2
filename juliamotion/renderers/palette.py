from __future__ import annotations

import numpy as np

INTERIOR_COLOR = (0, 0, 0)
CROSSHAIR_COLOR = (255, 255, 255)

# Hue advances HUE_RATE / 256 of a turn per unit of escape value.
HUE_RATE = 3.3
# Escape value at which brightness reaches 1 - 1/e.
BRIGHTNESS_RAMP = 16.0


def hsv_to_rgb(h: np.ndarray, s: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Vectorised HSV -> RGB. Inputs in [0, 1]; returns uint8 array (..., 3)."""
    h = np.asarray(h, dtype=np.float64)
    s = np.broadcast_to(np.asarray(s, dtype=np.float64), h.shape)
    v = np.broadcast_to(np.asarray(v, dtype=np.float64), h.shape)

    sector = (h - np.floor(h)) * 6.0
    i = np.floor(sector).astype(np.int64) % 6
    f = sector - np.floor(sector)
    p = v * (1.0 - s)
    q = v * (1.0 - s * f)
    t = v * (1.0 - s * (1.0 - f))

    r = np.choose(i, [v, q, p, p, t, v])
    g = np.choose(i, [t, v, v, q, p, p])
    b = np.choose(i, [p, p, t, v, v, q])
    rgb = np.stack([r, g, b], axis=-1)
    return (np.clip(rgb, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)


def colorize(values: np.ndarray, interior: np.ndarray) -> np.ndarray:
    """Map escape values to RGB; `interior` pixels (and non-finite values) are black."""
    values = np.asarray(values, dtype=np.float64)
    interior = np.asarray(interior, dtype=bool) | ~np.isfinite(values)
    safe = np.where(interior, 0.0, values)

    hue = safe * (HUE_RATE / 256.0)
    brightness = 1.0 - np.exp(-np.maximum(safe, 0.0) / BRIGHTNESS_RAMP)
    rgb = hsv_to_rgb(hue, 1.0, brightness)
    rgb[interior] = INTERIOR_COLOR
    return rgb
