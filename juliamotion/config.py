from __future__ import annotations

import enum
import json
import math
import re
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any, Dict, Optional, Tuple

from juliamotion.errors import ConfigRangeError
from juliamotion.renderers.smoothing import DEFAULT_SMOOTHING, LogarithmicDistance, Smoothing, parse_smoothing

_RATIONAL = re.compile(r"^\s*(\d+)\s*/\s*(\d+)\s*$")

DEFAULTS: Dict[str, Any] = {
    "iterations": 100,
    "path_tolerance": 0.01,
    "smoothing": DEFAULT_SMOOTHING,
    "time_base": "1/30",
    "mandelbrot": False,
    "fractal_progress_interval": 1000,
    "video_progress_interval": 1000,
    "center": [0.0, 0.0],
    "workers": None,
    "window": None,
    "frames_dir": None,
    "output": None,
    "fourcc": "mp4v",
    "show_label": True,
}


class RenderMode(enum.Enum):
    JULIA = "julia"
    MANDELBROT = "mandelbrot"


@dataclass(frozen=True)
class RenderConfig:
    image_width: int
    image_height: int
    plane_width: float
    max_iterations: int = 100
    smoothing: Smoothing = field(default_factory=LogarithmicDistance)
    mode: RenderMode = RenderMode.JULIA
    center: complex = 0j
    show_label: bool = True

    @property
    def scale(self) -> float:
        """Plane units per pixel, identical on both axes."""
        return self.plane_width / self.image_width

    @property
    def plane_height(self) -> float:
        return self.image_height * self.scale


@dataclass(frozen=True)
class JobSettings:
    frames: int
    path: str
    path_tolerance: float = 0.01
    time_base: Fraction = Fraction(1, 30)
    fractal_progress_interval: int = 1000
    video_progress_interval: int = 1000
    output: Optional[str] = None
    frames_dir: Optional[str] = None
    fourcc: str = "mp4v"
    workers: Optional[int] = None
    window: Optional[int] = None

    @property
    def fps(self) -> float:
        return float(1 / self.time_base)


def parse_rational(value: Any) -> Fraction:
    """Parse a time base written as ``N/D`` seconds per frame."""
    if isinstance(value, Fraction):
        result = value
    else:
        m = _RATIONAL.match(str(value))
        if not m:
            raise ConfigRangeError("time_base", value, "must be a fraction N/D")
        num, den = int(m.group(1)), int(m.group(2))
        if den == 0:
            raise ConfigRangeError("time_base", value, "must have a non-zero denominator")
        result = Fraction(num, den)
    if result <= 0:
        raise ConfigRangeError("time_base", value, "must be positive")
    return result


def parse_center(value: Any) -> complex:
    if isinstance(value, complex):
        return value
    if isinstance(value, (int, float)):
        return complex(value, 0.0)
    if isinstance(value, str):
        value = value.split(",")
    if not (isinstance(value, (list, tuple)) and len(value) == 2):
        raise ConfigRangeError("center", value, "must be [re, im]")
    try:
        c = complex(float(value[0]), float(value[1]))
    except (TypeError, ValueError):
        raise ConfigRangeError("center", value, "must be [re, im]") from None
    if not (math.isfinite(c.real) and math.isfinite(c.imag)):
        raise ConfigRangeError("center", value, "must be finite")
    return c


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    if not config_path:
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = json.load(f)
    except OSError as e:
        raise ConfigRangeError("config", config_path, f"could not be read: {e.strerror or e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigRangeError("config", config_path, f"is not valid JSON: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigRangeError("config", config_path, "must hold a JSON object")
    return cfg


def _int(cfg: Dict[str, Any], key: str, *, minimum: int) -> int:
    value = cfg.get(key)
    if isinstance(value, bool):
        raise ConfigRangeError(key, value, "must be an integer")
    try:
        out = int(value)
    except (TypeError, ValueError):
        raise ConfigRangeError(key, value, "must be an integer") from None
    if out != value and not isinstance(value, str):
        raise ConfigRangeError(key, value, "must be an integer")
    if out < minimum:
        raise ConfigRangeError(key, value, "must be positive" if minimum == 1 else f"must be at least {minimum}")
    return out


def _positive_float(cfg: Dict[str, Any], key: str) -> float:
    value = cfg.get(key)
    try:
        out = float(value)
    except (TypeError, ValueError):
        raise ConfigRangeError(key, value, "must be a number") from None
    if not (math.isfinite(out) and out > 0):
        raise ConfigRangeError(key, value, "must be positive")
    return out


def _optional_int(cfg: Dict[str, Any], key: str) -> Optional[int]:
    if cfg.get(key) is None:
        return None
    return _int(cfg, key, minimum=1)


def normalise_config(cfg: Dict[str, Any]) -> Tuple[JobSettings, RenderConfig]:
    """Validate a raw config mapping and split it into job and render settings."""
    required = ["image_width", "image_height", "frames", "plane_width", "path"]
    for r in required:
        if cfg.get(r) is None:
            raise ConfigRangeError(r, None, "is required")

    merged = dict(DEFAULTS)
    merged.update({k: v for k, v in cfg.items() if v is not None})

    if not merged["output"] and not merged["frames_dir"]:
        raise ConfigRangeError("output", None, "is required unless frames_dir is set")

    path = str(merged["path"])
    if not path.strip():
        raise ConfigRangeError("path", path, "must not be empty")

    job = JobSettings(
        frames=_int(merged, "frames", minimum=1),
        path=path,
        path_tolerance=_positive_float(merged, "path_tolerance"),
        time_base=parse_rational(merged["time_base"]),
        fractal_progress_interval=_int(merged, "fractal_progress_interval", minimum=0),
        video_progress_interval=_int(merged, "video_progress_interval", minimum=0),
        output=str(merged["output"]) if merged["output"] else None,
        frames_dir=str(merged["frames_dir"]) if merged["frames_dir"] else None,
        fourcc=str(merged["fourcc"]),
        workers=_optional_int(merged, "workers"),
        window=_optional_int(merged, "window"),
    )
    if len(job.fourcc) != 4:
        raise ConfigRangeError("fourcc", job.fourcc, "must be four characters")

    render = RenderConfig(
        image_width=_int(merged, "image_width", minimum=1),
        image_height=_int(merged, "image_height", minimum=1),
        plane_width=_positive_float(merged, "plane_width"),
        max_iterations=_int(merged, "iterations", minimum=1),
        smoothing=parse_smoothing(str(merged["smoothing"])),
        mode=RenderMode.MANDELBROT if merged["mandelbrot"] else RenderMode.JULIA,
        center=parse_center(merged["center"]),
        show_label=bool(merged["show_label"]),
    )
    return job, render


def describe_config(job: JobSettings, render: RenderConfig) -> Dict[str, Any]:
    """JSON-friendly view of the resolved settings, for the run manifest."""
    return {
        "frames": job.frames,
        "path": job.path,
        "path_tolerance": job.path_tolerance,
        "time_base": f"{job.time_base.numerator}/{job.time_base.denominator}",
        "fractal_progress_interval": job.fractal_progress_interval,
        "video_progress_interval": job.video_progress_interval,
        "output": job.output,
        "frames_dir": job.frames_dir,
        "fourcc": job.fourcc,
        "workers": job.workers,
        "window": job.window,
        "image_width": render.image_width,
        "image_height": render.image_height,
        "plane_width": render.plane_width,
        "iterations": render.max_iterations,
        "smoothing": render.smoothing.describe(),
        "mode": render.mode.value,
        "center": [render.center.real, render.center.imag],
        "show_label": render.show_label,
    }
