"""Tests for SVG path parsing."""

import pytest

from juliamotion.errors import PathSyntaxError
from juliamotion.path.model import ArcTo, ClosePath, CubicTo, LineTo, MoveTo, PathCurve, QuadTo
from juliamotion.path.parser import parse_path


class TestCommands:
    def test_move_and_line(self):
        curve = parse_path("M 0,0 L 1,0")
        assert curve.segments == (MoveTo(0j), LineTo(1 + 0j))

    def test_relative_coordinates_accumulate(self):
        curve = parse_path("m 1 1 l 1 0 l 0 1")
        assert [s.to for s in curve] == [1 + 1j, 2 + 1j, 2 + 2j]

    def test_implicit_lineto_after_moveto(self):
        curve = parse_path("M0 0 1 1 2 0")
        assert curve.segments == (MoveTo(0j), LineTo(1 + 1j), LineTo(2 + 0j))

    def test_implicit_relative_lineto_after_relative_moveto(self):
        curve = parse_path("m1 0 1 0 1 0")
        assert [s.to for s in curve] == [1 + 0j, 2 + 0j, 3 + 0j]
        assert all(isinstance(s, LineTo) for s in curve.segments[1:])

    def test_repeated_argument_groups(self):
        curve = parse_path("M0,0 C 0,1 1,1 1,0 1,-1 2,-1 2,0")
        assert len(curve) == 3
        assert curve.segments[2] == CubicTo(1 - 1j, 2 - 1j, 2 + 0j)

    def test_horizontal_and_vertical(self):
        curve = parse_path("M1,1 H3 V4 h-1 v-1")
        assert [s.to for s in curve] == [1 + 1j, 3 + 1j, 3 + 4j, 2 + 4j, 2 + 3j]

    def test_smooth_cubic_reflects_previous_control(self):
        curve = parse_path("M0,0 C0,1 1,1 1,0 S2,-1 2,0")
        assert curve.segments[2] == CubicTo(1 - 1j, 2 - 1j, 2 + 0j)

    def test_smooth_cubic_without_previous_cubic_uses_current_point(self):
        curve = parse_path("M0,0 L1,0 S2,1 2,0")
        assert curve.segments[2] == CubicTo(1 + 0j, 2 + 1j, 2 + 0j)

    def test_quadratic_and_smooth_quadratic(self):
        curve = parse_path("M0,0 Q1,1 2,0 T4,0")
        assert curve.segments[1] == QuadTo(1 + 1j, 2 + 0j)
        assert curve.segments[2] == QuadTo(3 - 1j, 4 + 0j)

    def test_relative_quadratic(self):
        curve = parse_path("M1,1 q1,1 2,0")
        assert curve.segments[1] == QuadTo(2 + 2j, 3 + 1j)

    def test_arc(self):
        curve = parse_path("M0,0 A1,1 0 0 1 2,0")
        assert curve.segments[1] == ArcTo(1 + 1j, 0.0, False, True, 2 + 0j)

    def test_arc_flags_without_separators(self):
        curve = parse_path("M0,0 a1 1 0 012 0")
        assert curve.segments[1] == ArcTo(1 + 1j, 0.0, False, True, 2 + 0j)

    def test_arc_negative_radii_are_made_positive(self):
        curve = parse_path("M0,0 A-1,-2 30 1 0 2,0")
        assert curve.segments[1].radii == 1 + 2j

    def test_close_path_returns_to_subpath_start(self):
        curve = parse_path("M1,1 L2,1 L2,2 Z l1,0")
        assert curve.segments[3] == ClosePath(1 + 1j)
        assert curve.segments[4] == LineTo(2 + 1j)

    def test_second_subpath(self):
        curve = parse_path("M0,0 L1,0 M5,5 L6,5")
        assert isinstance(curve.segments[2], MoveTo)
        assert curve.end == 6 + 5j


class TestNumbers:
    def test_compact_number_forms(self):
        curve = parse_path("M.5.5L-1-2")
        assert [s.to for s in curve] == [0.5 + 0.5j, -1 - 2j]

    def test_exponents(self):
        curve = parse_path("M1e-1,2E1")
        assert curve.start.real == pytest.approx(0.1)
        assert curve.start.imag == pytest.approx(20.0)

    def test_whitespace_and_commas(self):
        curve = parse_path("  M\t0 ,0\n L 1 , 1  ")
        assert curve.end == 1 + 1j


class TestErrors:
    def test_empty_path(self):
        with pytest.raises(PathSyntaxError):
            parse_path("   ")

    def test_must_start_with_moveto(self):
        with pytest.raises(PathSyntaxError) as exc:
            parse_path("L 1,1")
        assert exc.value.token == "L"
        assert exc.value.offset == 0

    def test_unknown_command_reports_offset(self):
        with pytest.raises(PathSyntaxError) as exc:
            parse_path("M 0,0 X 1,1")
        assert exc.value.token == "X"
        assert exc.value.offset == 6

    def test_missing_argument(self):
        with pytest.raises(PathSyntaxError) as exc:
            parse_path("M 0,0 L 1")
        assert exc.value.token == "<end of path>"
        assert exc.value.offset == 9

    def test_offset_points_at_non_ascii_token(self):
        with pytest.raises(PathSyntaxError) as exc:
            parse_path("M 0,0 L 1,1 \u00e9")
        assert exc.value.token == "\u00e9"
        assert exc.value.offset == 12

    def test_bad_arc_flag(self):
        with pytest.raises(PathSyntaxError) as exc:
            parse_path("M0,0 A1,1 0 2 0 1,1")
        assert exc.value.token.startswith("2")

    def test_numbers_after_close_path(self):
        with pytest.raises(PathSyntaxError):
            parse_path("M0,0 L1,1 Z 3,3")

    def test_message_names_token(self):
        with pytest.raises(PathSyntaxError, match="'X' at byte 6"):
            parse_path("M 0,0 X")


def test_path_curve_requires_moveto():
    with pytest.raises(ValueError):
        PathCurve((LineTo(1 + 0j),))
