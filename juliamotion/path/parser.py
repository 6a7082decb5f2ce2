from __future__ import annotations

import math
import re
from typing import List, Optional

from juliamotion.errors import PathSyntaxError
from juliamotion.path.model import ArcTo, ClosePath, CubicTo, LineTo, MoveTo, PathCurve, QuadTo, Segment

_COMMANDS = "MmLlHhVvCcSsQqTtAaZz"
_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_TOKEN = re.compile(r"[^\s,]+")
_SEPARATORS = " \t\n\r\f,"

# Number of arguments consumed by one group of each command.
_ARITY = {"M": 2, "L": 2, "H": 1, "V": 1, "C": 6, "S": 4, "Q": 4, "T": 2, "A": 7, "Z": 0}
# Argument positions of an arc that are single-character flags.
_ARC_FLAGS = (3, 4)


def parse_path(text: str) -> PathCurve:
    """Parse an SVG path string into a PathCurve of absolute segments.

    Raises PathSyntaxError naming the offending token and its byte offset.
    """
    return _PathParser(text).parse()


class _PathParser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.segments: List[Segment] = []
        self.current = 0j
        self.subpath_start = 0j
        self.last_kind: Optional[str] = None
        self.last_ctrl = 0j

    def parse(self) -> PathCurve:
        command: Optional[str] = None
        self._skip_separators()
        if self.pos >= len(self.text):
            raise self._error("Empty path")

        while True:
            self._skip_separators()
            if self.pos >= len(self.text):
                break
            ch = self.text[self.pos]
            if ch in _COMMANDS:
                if command is None and ch not in "Mm":
                    raise self._error("Path must begin with a moveto command")
                self.pos += 1
                command = ch
            elif command is None:
                raise self._error("Path must begin with a moveto command")
            elif command in "Zz" or not _NUMBER.match(self.text, self.pos):
                raise self._error("Unexpected token")
            elif command in "Mm":
                # Extra coordinate pairs after a moveto are implicit linetos.
                command = "l" if command == "m" else "L"
            self._run(command)

        return PathCurve(tuple(self.segments))

    def _run(self, command: str) -> None:
        kind = command.upper()
        relative = command.islower()
        args = []
        for i in range(_ARITY[kind]):
            if kind == "A" and i in _ARC_FLAGS:
                args.append(self._read_flag())
            else:
                args.append(self._read_number())

        origin = self.current if relative else 0j

        def point(x: float, y: float) -> complex:
            return origin + complex(x, y)

        if kind == "M":
            to = point(*args)
            self.segments.append(MoveTo(to))
            self.subpath_start = to
        elif kind == "L":
            to = point(*args)
            self.segments.append(LineTo(to))
        elif kind == "H":
            to = complex(origin.real + args[0], self.current.imag)
            self.segments.append(LineTo(to))
        elif kind == "V":
            to = complex(self.current.real, origin.imag + args[0])
            self.segments.append(LineTo(to))
        elif kind == "C":
            ctrl1, ctrl2, to = point(*args[0:2]), point(*args[2:4]), point(*args[4:6])
            self.segments.append(CubicTo(ctrl1, ctrl2, to))
            self.last_ctrl = ctrl2
        elif kind == "S":
            ctrl1 = self._reflected("CS")
            ctrl2, to = point(*args[0:2]), point(*args[2:4])
            self.segments.append(CubicTo(ctrl1, ctrl2, to))
            self.last_ctrl = ctrl2
        elif kind == "Q":
            ctrl, to = point(*args[0:2]), point(*args[2:4])
            self.segments.append(QuadTo(ctrl, to))
            self.last_ctrl = ctrl
        elif kind == "T":
            ctrl = self._reflected("QT")
            to = point(*args)
            self.segments.append(QuadTo(ctrl, to))
            self.last_ctrl = ctrl
        elif kind == "A":
            rx, ry, rotation, large_arc, sweep, x, y = args
            to = point(x, y)
            self.segments.append(ArcTo(complex(abs(rx), abs(ry)), rotation, bool(large_arc), bool(sweep), to))
        else:
            to = self.subpath_start
            self.segments.append(ClosePath(to))

        self.current = to
        self.last_kind = kind

    def _reflected(self, kinds: str) -> complex:
        if self.last_kind is not None and self.last_kind in kinds:
            return 2 * self.current - self.last_ctrl
        return self.current

    def _skip_separators(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in _SEPARATORS:
            self.pos += 1

    def _read_number(self) -> float:
        self._skip_separators()
        m = _NUMBER.match(self.text, self.pos)
        if not m:
            raise self._error("Expected a number")
        value = float(m.group(0))
        if not math.isfinite(value):
            raise self._error("Number out of range")
        self.pos = m.end()
        return value

    def _read_flag(self) -> float:
        self._skip_separators()
        if self.pos >= len(self.text) or self.text[self.pos] not in "01":
            raise self._error("Expected an arc flag (0 or 1)")
        value = float(self.text[self.pos])
        self.pos += 1
        return value

    def _error(self, message: str) -> PathSyntaxError:
        m = _TOKEN.match(self.text, self.pos)
        token = m.group(0)[:16] if m else "<end of path>"
        offset = len(self.text[:self.pos].encode("utf-8"))
        return PathSyntaxError(message, token=token, offset=offset)
