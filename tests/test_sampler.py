"""Tests for path flattening and per-frame resampling."""

import math

import pytest

from juliamotion.errors import ConfigRangeError
from juliamotion.path.parser import parse_path
from juliamotion.path.sampler import Polyline, flatten, path_length, resample, sample_path


class TestFlatten:
    def test_line_emits_endpoints(self):
        polyline = flatten(parse_path("M 0,0 L 1,0 L 1,1"), 0.01)
        assert polyline.points == (0j, 1 + 0j, 1 + 1j)
        assert polyline.lengths == (0.0, 1.0, 2.0)

    def test_duplicate_points_are_dropped(self):
        polyline = flatten(parse_path("M 0,0 L 0,0 L 1,0 L 1,0"), 0.01)
        assert polyline.points == (0j, 1 + 0j)

    def test_close_path_adds_closing_edge(self):
        assert path_length(parse_path("M0,0 H1 V1 H0 Z"), 0.01) == pytest.approx(4.0)

    def test_half_circle_arc_length(self):
        length = path_length(parse_path("M -1,0 A 1,1 0 0 1 1,0"), 1e-4)
        assert length == pytest.approx(math.pi, rel=1e-3)

    def test_arc_points_lie_on_circle(self):
        polyline = flatten(parse_path("M 1,0 A 1,1 0 1 1 0,-1"), 1e-3)
        assert len(polyline) > 10
        for p in polyline.points:
            assert abs(p) == pytest.approx(1.0, abs=1e-9)

    def test_arc_radius_scaled_up_when_too_small(self):
        polyline = flatten(parse_path("M 0,0 A 0.1,0.1 0 0 1 2,0"), 1e-3)
        # The smallest fitting circle has radius 1: a half circle centred at 1.
        assert polyline.length == pytest.approx(math.pi, rel=1e-3)
        assert polyline.end == 2 + 0j

    def test_zero_radius_arc_is_a_line(self):
        polyline = flatten(parse_path("M 0,0 A 0,1 0 0 1 2,0"), 0.01)
        assert polyline.points == (0j, 2 + 0j)

    def test_subpath_jump_adds_no_length(self):
        polyline = flatten(parse_path("M0,0 L1,0 M5,5 L6,5"), 0.01)
        assert polyline.length == pytest.approx(2.0)
        assert polyline.points[-1] == 6 + 5j

    @pytest.mark.parametrize("tol", [0, -1, float("nan")])
    def test_rejects_non_positive_tolerance(self, tol):
        with pytest.raises(ConfigRangeError):
            flatten(parse_path("M0,0 L1,0"), tol)


class TestResample:
    def test_line_three_frames(self):
        assert sample_path("M 0,0 L 1,0", 3, 0.01) == (0j, 0.5 + 0j, 1 + 0j)

    def test_single_frame_is_path_start(self):
        assert sample_path("M 0.3,0.2 L 1,0", 1, 0.01) == (0.3 + 0.2j,)

    def test_zero_length_path_repeats_point(self):
        assert sample_path("M 0.25,-0.5", 4, 0.01) == (0.25 - 0.5j,) * 4

    def test_zero_length_with_jumps_walks_vertices(self):
        polyline = Polyline((0j, 2 + 0j), (0.0, 0.0))
        assert resample(polyline, 3) == (0j, 1 + 0j, 2 + 0j)

    def test_even_arc_length_spacing(self):
        params = sample_path("M0,0 L1,0 L1,3", 5, 0.01)
        assert params[0] == 0j
        assert params[1] == pytest.approx(1 + 0j)
        assert params[2] == pytest.approx(1 + 1j)
        assert params[3] == pytest.approx(1 + 2j)
        assert params[4] == 1 + 3j

    @pytest.mark.parametrize("frames", [0, -3])
    def test_rejects_non_positive_frame_count(self, frames):
        with pytest.raises(ConfigRangeError):
            sample_path("M0,0 L1,0", frames, 0.01)
