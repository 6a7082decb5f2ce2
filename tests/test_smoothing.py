"""Tests for smoothing strategies and their config strings."""

import math

import numpy as np
import pytest

from juliamotion.errors import SmoothingConfigError
from juliamotion.renderers.smoothing import Discrete, LogarithmicDistance, escape_value, parse_smoothing


class TestParse:
    def test_default(self):
        assert parse_smoothing("LogarithmicDistance(4, 2)") == LogarithmicDistance(4.0, 2.0)

    @pytest.mark.parametrize("text", ["Discrete", "Discrete()", "  Discrete ( ) "])
    def test_discrete_forms(self, text):
        assert parse_smoothing(text) == Discrete()

    def test_describe_round_trips(self):
        for s in (Discrete(), LogarithmicDistance(3.5, 2.0)):
            assert parse_smoothing(s.describe()) == s

    @pytest.mark.parametrize("text", [
        "Gaussian(1)",
        "LogarithmicDistance(4)",
        "LogarithmicDistance(4, 2, 1)",
        "Discrete(1)",
        "LogarithmicDistance(four, 2)",
        "LogarithmicDistance(4, 2",
        "LogarithmicDistance(1, 2)",
        "LogarithmicDistance(4, 1)",
        "LogarithmicDistance(inf, 2)",
        "",
    ])
    def test_rejects(self, text):
        with pytest.raises(SmoothingConfigError):
            parse_smoothing(text)


class TestDiscrete:
    def test_returns_iteration_count(self):
        assert escape_value(Discrete(), 7, 123.0) == 7.0

    def test_radius(self):
        assert Discrete().radius_squared == 4.0


class TestLogarithmicDistance:
    def test_value_at_boundary(self):
        s = LogarithmicDistance(4.0, 2.0)
        assert escape_value(s, 5, s.radius_squared) == pytest.approx(6.0)

    def test_clamps_below_threshold(self):
        s = LogarithmicDistance(4.0, 2.0)
        for m in (0.0, 0.5, 1.0, 15.9):
            assert escape_value(s, 5, m) == pytest.approx(6.0)

    def test_textbook_formula(self):
        s = LogarithmicDistance(4.0, 2.0)
        m = 1000.0
        expected = 3 + 1 - math.log(math.log(m) / math.log(16.0)) / math.log(2.0)
        assert escape_value(s, 3, m) == pytest.approx(expected)

    def test_non_finite_moduli_are_not_finite(self):
        s = LogarithmicDistance(4.0, 2.0)
        values = escape_value(s, np.array([1, 2]), np.array([np.inf, np.nan]))
        assert not np.isfinite(values).any()

    def test_vectorised(self):
        s = LogarithmicDistance(4.0, 2.0)
        values = escape_value(s, np.array([[1, 2], [3, 4]]), np.full((2, 2), 100.0))
        assert values.shape == (2, 2)
        assert np.diff(values.ravel()).tolist() == pytest.approx([1.0, 1.0, 1.0])


def test_unknown_strategy_type():
    with pytest.raises(TypeError):
        escape_value(object(), 1, 1.0)
