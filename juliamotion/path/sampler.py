from __future__ import annotations

import math
from bisect import bisect_left
from dataclasses import dataclass
from typing import List, Tuple

from juliamotion.errors import ConfigRangeError
from juliamotion.path.model import ArcTo, ClosePath, CubicTo, LineTo, MoveTo, PathCurve, QuadTo
from juliamotion.path.parser import parse_path

# Subdivision stops here even if the flatness test still fails.
MAX_SUBDIVISION_DEPTH = 16
# Vertices closer than this to their predecessor are dropped.
POINT_EPSILON = 1e-12

ParameterSequence = Tuple[complex, ...]


@dataclass(frozen=True)
class Polyline:
    points: Tuple[complex, ...]
    # Cumulative arc length at each vertex; jumps between subpaths add nothing.
    lengths: Tuple[float, ...]

    @property
    def length(self) -> float:
        return self.lengths[-1]

    @property
    def start(self) -> complex:
        return self.points[0]

    @property
    def end(self) -> complex:
        return self.points[-1]

    def __len__(self) -> int:
        return len(self.points)


class _PolylineBuilder:
    def __init__(self) -> None:
        self.points: List[complex] = []
        self.lengths: List[float] = []

    @property
    def last(self) -> complex:
        return self.points[-1]

    def jump(self, p: complex) -> None:
        if not self.points:
            self.points.append(p)
            self.lengths.append(0.0)
        elif abs(p - self.last) > POINT_EPSILON:
            self.points.append(p)
            self.lengths.append(self.lengths[-1])

    def line_to(self, p: complex) -> None:
        d = abs(p - self.last)
        if d > POINT_EPSILON:
            self.points.append(p)
            self.lengths.append(self.lengths[-1] + d)

    def build(self) -> Polyline:
        return Polyline(tuple(self.points), tuple(self.lengths))


def _distance_to_segment(p: complex, a: complex, b: complex) -> float:
    ab = b - a
    denom = ab.real * ab.real + ab.imag * ab.imag
    if denom == 0.0:
        return abs(p - a)
    t = ((p - a) * ab.conjugate()).real / denom
    t = min(1.0, max(0.0, t))
    return abs(p - (a + t * ab))


def _flatten_quad(out: _PolylineBuilder, p0: complex, p1: complex, p2: complex, tolerance: float, depth: int) -> None:
    # The curve lies in the hull of its control points, so the control point
    # distance bounds the deviation from the chord.
    if depth >= MAX_SUBDIVISION_DEPTH or _distance_to_segment(p1, p0, p2) <= tolerance:
        out.line_to(p2)
        return
    p01 = (p0 + p1) / 2
    p12 = (p1 + p2) / 2
    mid = (p01 + p12) / 2
    _flatten_quad(out, p0, p01, mid, tolerance, depth + 1)
    _flatten_quad(out, mid, p12, p2, tolerance, depth + 1)


def _flatten_cubic(out: _PolylineBuilder, p0: complex, p1: complex, p2: complex, p3: complex, tolerance: float, depth: int) -> None:
    flatness = max(_distance_to_segment(p1, p0, p3), _distance_to_segment(p2, p0, p3))
    if depth >= MAX_SUBDIVISION_DEPTH or flatness <= tolerance:
        out.line_to(p3)
        return
    p01 = (p0 + p1) / 2
    p12 = (p1 + p2) / 2
    p23 = (p2 + p3) / 2
    p012 = (p01 + p12) / 2
    p123 = (p12 + p23) / 2
    mid = (p012 + p123) / 2
    _flatten_cubic(out, p0, p01, p012, mid, tolerance, depth + 1)
    _flatten_cubic(out, mid, p123, p23, p3, tolerance, depth + 1)


def _arc_angles(theta0: float, theta1: float, r_max: float, tolerance: float, depth: int, out: List[float]) -> None:
    sagitta = r_max * (1.0 - math.cos(abs(theta1 - theta0) / 2.0))
    if depth >= MAX_SUBDIVISION_DEPTH or sagitta <= tolerance:
        out.append(theta1)
        return
    mid = (theta0 + theta1) / 2.0
    _arc_angles(theta0, mid, r_max, tolerance, depth + 1, out)
    _arc_angles(mid, theta1, r_max, tolerance, depth + 1, out)


def _flatten_arc(out: _PolylineBuilder, start: complex, arc: ArcTo, tolerance: float) -> None:
    end = arc.to
    if abs(end - start) <= POINT_EPSILON:
        return
    rx, ry = arc.radii.real, arc.radii.imag
    if rx == 0.0 or ry == 0.0:
        out.line_to(end)
        return

    # Endpoint to center parameterisation, SVG 1.1 appendix F.6.5.
    phi = math.radians(arc.x_axis_rotation)
    rot = complex(math.cos(phi), math.sin(phi))
    half = ((start - end) / 2) * rot.conjugate()
    x1, y1 = half.real, half.imag

    scale = (x1 * x1) / (rx * rx) + (y1 * y1) / (ry * ry)
    if scale > 1.0:
        rx *= math.sqrt(scale)
        ry *= math.sqrt(scale)

    num = rx * rx * ry * ry - rx * rx * y1 * y1 - ry * ry * x1 * x1
    den = rx * rx * y1 * y1 + ry * ry * x1 * x1
    coef = math.sqrt(max(0.0, num / den))
    if arc.large_arc == arc.sweep:
        coef = -coef
    cx = coef * rx * y1 / ry
    cy = -coef * ry * x1 / rx
    center = complex(cx, cy) * rot + (start + end) / 2

    theta0 = math.atan2((y1 - cy) / ry, (x1 - cx) / rx)
    theta1 = math.atan2((-y1 - cy) / ry, (-x1 - cx) / rx)
    delta = theta1 - theta0
    if arc.sweep and delta < 0:
        delta += 2 * math.pi
    elif not arc.sweep and delta > 0:
        delta -= 2 * math.pi

    angles: List[float] = []
    _arc_angles(theta0, theta0 + delta, max(rx, ry), tolerance, 0, angles)
    for theta in angles[:-1]:
        out.line_to(center + rot * complex(rx * math.cos(theta), ry * math.sin(theta)))
    out.line_to(end)


def flatten(curve: PathCurve, tolerance: float) -> Polyline:
    """Approximate a path with line segments no further than `tolerance` from it."""
    if not tolerance > 0:
        raise ConfigRangeError("path_tolerance", tolerance, "must be positive")

    out = _PolylineBuilder()
    for seg in curve:
        if isinstance(seg, MoveTo):
            out.jump(seg.to)
        elif isinstance(seg, (LineTo, ClosePath)):
            out.line_to(seg.to)
        elif isinstance(seg, QuadTo):
            _flatten_quad(out, out.last, seg.ctrl, seg.to, tolerance, 0)
        elif isinstance(seg, CubicTo):
            _flatten_cubic(out, out.last, seg.ctrl1, seg.ctrl2, seg.to, tolerance, 0)
        elif isinstance(seg, ArcTo):
            _flatten_arc(out, out.last, seg, tolerance)
        else:
            raise TypeError(f"Unknown path segment: {seg!r}")
    return out.build()


def path_length(curve: PathCurve, tolerance: float) -> float:
    return flatten(curve, tolerance).length


def resample(polyline: Polyline, frame_count: int) -> ParameterSequence:
    """Pick `frame_count` evenly spaced points along the polyline.

    Points are spaced by arc length. A polyline without length is walked by
    vertex index instead, which degenerates to a single repeated point when it
    has only one vertex.
    """
    if frame_count <= 0:
        raise ConfigRangeError("frames", frame_count, "must be positive")
    points = polyline.points
    if frame_count == 1:
        return (points[0],)

    last = frame_count - 1
    out: List[complex] = []
    total = polyline.length

    if total <= 0.0:
        steps = len(points) - 1
        for k in range(last):
            pos = k * steps / last
            i = int(pos)
            frac = pos - i
            if frac == 0.0:
                out.append(points[i])
            else:
                out.append(points[i] + (points[i + 1] - points[i]) * frac)
        out.append(points[-1])
        return tuple(out)

    lengths = polyline.lengths
    for k in range(last):
        s = total * k / last
        i = bisect_left(lengths, s)
        if i == 0:
            out.append(points[0])
            continue
        span = lengths[i] - lengths[i - 1]
        t = (s - lengths[i - 1]) / span
        out.append(points[i - 1] + (points[i] - points[i - 1]) * t)
    out.append(points[-1])
    return tuple(out)


def sample_path(text: str, frame_count: int, tolerance: float) -> ParameterSequence:
    return resample(flatten(parse_path(text), tolerance), frame_count)
