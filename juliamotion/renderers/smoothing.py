from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Union

import numpy as np

from juliamotion.errors import SmoothingConfigError

DEFAULT_SMOOTHING = "LogarithmicDistance(4, 2)"
# Escape radius used by the banded (Discrete) strategy.
DISCRETE_ESCAPE_RADIUS = 2.0

_SPEC = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*(?:\((.*)\))?\s*$", re.DOTALL)


@dataclass(frozen=True)
class Discrete:
    """Raw iteration count; produces banded coloring."""

    @property
    def radius_squared(self) -> float:
        return DISCRETE_ESCAPE_RADIUS * DISCRETE_ESCAPE_RADIUS

    def describe(self) -> str:
        return "Discrete()"


@dataclass(frozen=True)
class LogarithmicDistance:
    """Continuous iteration count n + 1 - log(log|z|^2 / log R^2) / log(power).

    `radius` is the escape radius R and `power` the exponent of the iterated
    map, which makes the value continuous from one iteration count to the next.
    """

    radius: float = 4.0
    power: float = 2.0

    @property
    def radius_squared(self) -> float:
        return self.radius * self.radius

    def describe(self) -> str:
        return f"LogarithmicDistance({self.radius:g}, {self.power:g})"


Smoothing = Union[Discrete, LogarithmicDistance]

_ARITY = {"Discrete": 0, "LogarithmicDistance": 2}


def escape_value(smoothing: Smoothing, iterations, modulus_squared):
    """Map an escape iteration count and the last |z|^2 to a coloring value.

    Works element-wise on numpy arrays as well as on scalars.
    """
    if isinstance(smoothing, Discrete):
        return np.asarray(iterations, dtype=np.float64) + 0.0
    if isinstance(smoothing, LogarithmicDistance):
        n = np.asarray(iterations, dtype=np.float64)
        m = np.asarray(modulus_squared, dtype=np.float64)
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            # Clamp at the escape boundary so log never sees a ratio below 1.
            ratio = np.maximum(np.log(np.maximum(m, smoothing.radius_squared)) / math.log(smoothing.radius_squared), 1.0)
            return n + 1.0 - np.log(ratio) / math.log(smoothing.power)
    raise TypeError(f"Unknown smoothing strategy: {smoothing!r}")


def parse_smoothing(text: str) -> Smoothing:
    """Parse a strategy description such as ``LogarithmicDistance(4, 2)``."""
    m = _SPEC.match(text or "")
    if not m:
        raise SmoothingConfigError(f"Unable to parse smoothing {text!r}; expected Name(arg, ...)")
    name, raw_args = m.group(1), m.group(2)

    if name not in _ARITY:
        raise SmoothingConfigError(f"Unknown smoothing {name!r}; expected one of: {', '.join(sorted(_ARITY))}")

    args = []
    if raw_args is not None and raw_args.strip():
        for part in raw_args.split(","):
            try:
                value = float(part.strip())
            except ValueError:
                raise SmoothingConfigError(f"Smoothing argument {part.strip()!r} of {name} is not a number") from None
            if not math.isfinite(value):
                raise SmoothingConfigError(f"Smoothing argument {part.strip()!r} of {name} must be finite")
            args.append(value)

    if len(args) != _ARITY[name]:
        raise SmoothingConfigError(f"{name} takes {_ARITY[name]} argument(s), got {len(args)}")

    if name == "Discrete":
        return Discrete()

    radius, power = args
    if radius <= 1.0:
        raise SmoothingConfigError(f"LogarithmicDistance radius must be greater than 1 (got {radius:g})")
    if power <= 1.0:
        raise SmoothingConfigError(f"LogarithmicDistance power must be greater than 1 (got {power:g})")
    return LogarithmicDistance(radius, power)
