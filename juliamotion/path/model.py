from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

# Points are complex numbers: real part is x, imaginary part is y.


@dataclass(frozen=True)
class MoveTo:
    to: complex


@dataclass(frozen=True)
class LineTo:
    to: complex


@dataclass(frozen=True)
class QuadTo:
    ctrl: complex
    to: complex


@dataclass(frozen=True)
class CubicTo:
    ctrl1: complex
    ctrl2: complex
    to: complex


@dataclass(frozen=True)
class ArcTo:
    radii: complex
    x_axis_rotation: float
    large_arc: bool
    sweep: bool
    to: complex


@dataclass(frozen=True)
class ClosePath:
    # Start point of the subpath being closed.
    to: complex


Segment = Union[MoveTo, LineTo, QuadTo, CubicTo, ArcTo, ClosePath]


@dataclass(frozen=True)
class PathCurve:
    segments: Tuple[Segment, ...]

    def __post_init__(self) -> None:
        if not self.segments or not isinstance(self.segments[0], MoveTo):
            raise ValueError("A path must start with a MoveTo segment.")

    @property
    def start(self) -> complex:
        return self.segments[0].to

    @property
    def end(self) -> complex:
        return self.segments[-1].to

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self):
        return iter(self.segments)
