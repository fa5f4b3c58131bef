"""Tests for lifetime curves, color gradients, ranges and noise."""
import math

import numpy as np
import pytest

from particle_baker.core.curves import (
    WHITE,
    ColorGradient,
    Curve,
    CurvePoint,
    RangeValue,
    clamp01,
    evaluate_color_gradient,
    evaluate_curve,
    round_half_up,
    sample_range,
)
from particle_baker.core.noise import MAX_NOISE_STRENGTH, noise_2d, simple_noise


class TestEvaluateCurve:
    """Test scalar curve evaluation."""

    def test_endpoints_regardless_of_point_order(self):
        """Test unordered points are sorted before sampling."""
        curve = Curve([CurvePoint(1.0, 0.2), CurvePoint(0.0, 1.0)])
        assert evaluate_curve(curve, 0.0) == pytest.approx(1.0)
        assert evaluate_curve(curve, 1.0) == pytest.approx(0.2)
        assert evaluate_curve(curve, 0.5) == pytest.approx(0.6)

    def test_out_of_range_time_is_clamped(self):
        curve = Curve.ramp(2.0, 4.0)
        assert curve.sample(-3.0) == pytest.approx(2.0)
        assert curve.sample(7.0) == pytest.approx(4.0)

    def test_empty_curve_is_zero(self):
        assert evaluate_curve(Curve(), 0.5) == 0.0

    def test_single_point_is_constant(self):
        curve = Curve([CurvePoint(0.3, 0.7)])
        assert curve.sample(0.0) == 0.7
        assert curve.sample(1.0) == 0.7

    def test_smooth_interpolation_eases(self):
        """Test quadratic ease in-out between neighbouring points."""
        curve = Curve.ramp(0.0, 1.0, interpolation='smooth')
        assert curve.sample(0.25) == pytest.approx(0.125)
        assert curve.sample(0.5) == pytest.approx(0.5)
        assert curve.sample(0.75) == pytest.approx(0.875)

    def test_multi_segment(self):
        curve = Curve([CurvePoint(0.0, 0.0), CurvePoint(0.5, 1.0), CurvePoint(1.0, 0.0)])
        assert curve.sample(0.25) == pytest.approx(0.5)
        assert curve.sample(0.5) == pytest.approx(1.0)
        assert curve.sample(0.75) == pytest.approx(0.5)

    def test_from_dict_accepts_point_list(self):
        curve = Curve.from_dict([[0, 1], [1, 3]])
        assert curve.sample(0.5) == pytest.approx(2.0)


class TestColorGradient:
    """Test color gradient evaluation."""

    def test_alpha_midpoint_rounds_half_up(self):
        """Test 255 -> 0 alpha fade gives 128 at the midpoint."""
        gradient = ColorGradient.solid(255, 255, 255, fade=True)
        assert evaluate_color_gradient(gradient, 0.5) == (255, 255, 255, 128)

    def test_endpoints(self):
        gradient = ColorGradient([(0.0, (255, 0, 0, 255)), (1.0, (0, 0, 255, 0))])
        assert gradient.sample(0.0) == (255, 0, 0, 255)
        assert gradient.sample(1.0) == (0, 0, 255, 0)

    def test_empty_gradient_is_white(self):
        assert ColorGradient().sample(0.3) == WHITE

    def test_single_stop_is_constant(self):
        gradient = ColorGradient([(0.5, (10, 20, 30, 40))])
        assert gradient.sample(0.0) == (10, 20, 30, 40)
        assert gradient.sample(1.0) == (10, 20, 30, 40)

    def test_dict_form(self):
        gradient = ColorGradient.from_dict({"points": [
            {"time": 0.0, "color": {"r": 0, "g": 0, "b": 0, "a": 255}},
            {"time": 1.0, "color": {"r": 200, "g": 100, "b": 50, "a": 255}},
        ]})
        assert gradient.sample(0.5) == (100, 50, 25, 255)
        assert ColorGradient.from_dict(gradient.to_dict()) == gradient


class TestRanges:
    """Test range sampling and helpers."""

    def test_degenerate_range(self):
        rng = np.random.default_rng(0)
        assert sample_range(RangeValue(2.0, 2.0), rng) == 2.0

    def test_samples_within_bounds(self):
        rng = np.random.default_rng(1)
        values = [sample_range(RangeValue(1.0, 3.0), rng) for _ in range(200)]
        assert all(1.0 <= v <= 3.0 for v in values)

    def test_from_number_and_list(self):
        assert RangeValue.from_dict(5) == RangeValue(5.0, 5.0)
        assert RangeValue.from_dict([1, 2]) == RangeValue(1.0, 2.0)

    def test_clamp_and_round(self):
        assert clamp01(-0.5) == 0.0
        assert clamp01(1.5) == 1.0
        assert round_half_up(127.5) == 128
        assert round_half_up(127.49) == 127


class TestNoise:
    """Test hashed noise field."""

    def test_simple_noise_in_unit_interval(self):
        values = [simple_noise(x * 0.37, x * 1.91) for x in range(100)]
        assert all(0.0 <= v < 1.0 for v in values)

    def test_noise_is_deterministic(self):
        assert noise_2d(1.5, -2.25, 0.8) == noise_2d(1.5, -2.25, 0.8)

    def test_noise_magnitude_bounded(self):
        for i in range(200):
            fx, fy = noise_2d(i * 0.13, i * -0.07, i * 0.05)
            magnitude = math.hypot(fx, fy)
            assert 0.35 - 1e-9 <= magnitude <= MAX_NOISE_STRENGTH + 1e-9
