from __future__ import annotations

from typing import Any, Optional


class JuliaMotionError(Exception):
    """Base class for every fatal error raised by a render run."""


class PathSyntaxError(JuliaMotionError, ValueError):
    def __init__(self, message: str, *, token: str, offset: int) -> None:
        self.token = token
        self.offset = offset
        super().__init__(f"{message}: {token!r} at byte {offset}")


class SmoothingConfigError(JuliaMotionError, ValueError):
    pass


class ConfigRangeError(JuliaMotionError, ValueError):
    def __init__(self, field: str, value: Any, requirement: str) -> None:
        self.field = field
        self.value = value
        super().__init__(f"{field} {requirement} (got {value!r})")


class SinkWriteError(JuliaMotionError, RuntimeError):
    def __init__(self, message: str, *, frame_index: Optional[int] = None) -> None:
        self.frame_index = frame_index
        if frame_index is not None:
            message = f"[Frame {frame_index}] {message}"
        super().__init__(message)


class RunAborted(JuliaMotionError, RuntimeError):
    pass
