"""Shared fixtures for juliamotion tests."""

from __future__ import annotations

import threading
from typing import List

import pytest

from juliamotion.config import RenderConfig, RenderMode
from juliamotion.renderers.smoothing import Discrete, LogarithmicDistance


class RecordingSink:
    """Frame sink keeping every written frame in memory."""

    def __init__(self, fail_at: int = -1) -> None:
        self.frames: List = []
        self.fail_at = fail_at
        self._lock = threading.Lock()

    def write(self, frame) -> None:
        if frame.frame_index == self.fail_at:
            raise OSError("disk full")
        with self._lock:
            self.frames.append(frame)

    @property
    def indices(self) -> List[int]:
        return [f.frame_index for f in self.frames]


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def julia_config() -> RenderConfig:
    # 4 / 64 = 1/16 plane units per pixel, so pixel (32, 32) is exactly 0+0i.
    return RenderConfig(image_width=64, image_height=64, plane_width=4.0, max_iterations=50,
                        smoothing=LogarithmicDistance(4.0, 2.0), mode=RenderMode.JULIA)


@pytest.fixture
def mandelbrot_config() -> RenderConfig:
    return RenderConfig(image_width=64, image_height=48, plane_width=4.0, max_iterations=50,
                        smoothing=Discrete(), mode=RenderMode.MANDELBROT, show_label=False)


@pytest.fixture
def make_sink():
    return RecordingSink
