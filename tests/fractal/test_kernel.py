"""Tests for the Lyapunov fractal kernel."""

import math

import numpy as np
import pytest

from lyapscope.config import LyapunovConfig, Palette
from lyapscope.core.pattern import encode_pattern
from lyapscope.fractal.kernel import (
    LOG_EPSILON,
    discard_mask,
    evaluate,
    evaluate_pixel,
    lyapunov_exponent,
    shade,
    transform_uv,
    value_noise,
)


def _reference_exponent(a: float, b: float, pattern: str, iter_max: int) -> float:
    """Scalar transcription of the forced logistic-map recurrence."""
    seq = [1.0 if c == "B" else 0.0 for c in pattern]
    x = 0.5
    total = 0.0
    for i in range(iter_max):
        r = a + (b - a) * seq[i % len(seq)]
        x = r * x * (1.0 - x)
        total += math.log(max(abs(r - 2.0 * r * x), LOG_EPSILON))
    return total / iter_max


def _reference_smoothstep(e0: float, e1: float, x: float) -> float:
    t = min(max((x - e0) / (e1 - e0), 0.0), 1.0)
    return t * t * (3.0 - 2.0 * t)


class TestTransformUV:
    def test_center_maps_to_displacement(self):
        a, b = transform_uv(0.5, 0.5, zoom=3.0, displace_x=2.0, displace_y=3.0)
        assert a == pytest.approx(2.5)
        assert b == pytest.approx(3.5)

    def test_zoom_scales_about_center(self):
        a, b = transform_uv(np.array([0.0, 1.0]), np.array([0.0, 1.0]), zoom=2.0, displace_x=0.0, displace_y=0.0)
        np.testing.assert_allclose(a, [-0.5, 1.5])
        np.testing.assert_allclose(b, [-0.5, 1.5])

    def test_rotation_about_center(self):
        # (1, 0) offset from center rotates to (0, -1) for +90 degrees
        a, b = transform_uv(1.5, 0.5, zoom=1.0, displace_x=0.0, displace_y=0.0, rotation=math.pi / 2)
        assert a == pytest.approx(0.5)
        assert b == pytest.approx(-0.5)

    def test_rotation_preserves_distance_from_center(self):
        u = np.random.rand(50)
        v = np.random.rand(50)
        a0, b0 = transform_uv(u, v, 1.3, 0.2, -0.1, 0.0)
        a1, b1 = transform_uv(u, v, 1.3, 0.2, -0.1, 1.1)
        np.testing.assert_allclose(np.hypot(a0 - 0.5, b0 - 0.5), np.hypot(a1 - 0.5, b1 - 0.5))

    def test_broadcast_shape(self):
        u, v = np.meshgrid(np.linspace(0, 1, 4), np.linspace(0, 1, 3))
        a, b = transform_uv(u, v, 2.0, 0.0, 0.0, 0.3)
        assert a.shape == (3, 4)
        assert b.shape == (3, 4)


class TestLyapunovExponent:
    def test_matches_reference(self):
        pattern = "AAABB"
        for a, b in [(2.87, 3.79), (3.4, 3.9), (2.0, 3.6)]:
            got = lyapunov_exponent(a, b, encode_pattern(pattern), 100)
            assert float(got) == pytest.approx(_reference_exponent(a, b, pattern, 100), abs=1e-9)

    def test_superstable_point_clamped(self):
        # r = 2 keeps x at 0.5 where the derivative vanishes
        result = lyapunov_exponent(2.0, 2.0, encode_pattern("A"), 50)
        assert np.isfinite(result)
        assert float(result) == pytest.approx(math.log(LOG_EPSILON))

    def test_stable_region_negative(self):
        assert lyapunov_exponent(3.2, 3.2, encode_pattern("AB"), 500) < 0

    def test_chaotic_region_positive(self):
        assert lyapunov_exponent(3.9, 3.9, encode_pattern("AB"), 1000) > 0

    @pytest.mark.parametrize("iter_max", [0, -5])
    def test_non_positive_iter_max_clamped(self, iter_max):
        result = lyapunov_exponent(3.5, 3.7, encode_pattern("AB"), iter_max)
        expected = lyapunov_exponent(3.5, 3.7, encode_pattern("AB"), 1)
        assert np.isfinite(result)
        assert result == expected

    def test_divergent_region_saturates(self):
        result = lyapunov_exponent(np.array([5.0, -3.0]), np.array([5.0, -3.0]), encode_pattern("AB"), 200)
        assert np.all(np.isfinite(result))
        assert np.all(result > 1e300)

    def test_zero_rate_finite(self):
        result = lyapunov_exponent(0.0, 0.0, encode_pattern("A"), 20)
        assert float(result) == pytest.approx(math.log(LOG_EPSILON))

    def test_empty_pattern_uses_base_rate(self):
        empty = lyapunov_exponent(3.3, 3.9, encode_pattern(""), 60)
        base = lyapunov_exponent(3.3, 3.3, encode_pattern("A"), 60)
        assert empty == base

    def test_vectorized_matches_scalar(self):
        a = np.array([[2.5, 3.1], [3.6, 3.95]])
        b = np.array([[3.9, 3.2], [2.9, 3.5]])
        grid = lyapunov_exponent(a, b, encode_pattern("ABBA"), 80)
        for idx in np.ndindex(a.shape):
            assert grid[idx] == pytest.approx(_reference_exponent(a[idx], b[idx], "ABBA", 80), abs=1e-9)


class TestValueNoise:
    def test_range(self):
        x = np.random.rand(200) * 50 - 25
        y = np.random.rand(200) * 50 - 25
        n = value_noise(x, y)
        assert n.min() >= 0.0
        assert n.max() <= 1.0

    def test_lattice_points_are_squared_hash(self):
        s = math.sin(3 * 12.9898 + 7 * 4.1414) * 43758.5453
        corner = s - math.floor(s)
        assert float(value_noise(3.0, 7.0)) == pytest.approx(corner * corner)

    def test_deterministic(self):
        x = np.linspace(0, 4, 30)
        np.testing.assert_array_equal(value_noise(x, x * 0.5), value_noise(x, x * 0.5))

    def test_continuous(self):
        x = np.linspace(0.0, 3.0, 3001)
        n = value_noise(x, np.full_like(x, 1.25))
        assert np.max(np.abs(np.diff(n))) < 0.01


class TestDiscardMask:
    def test_near_white_discarded(self):
        color = np.array([1.0 - 0.1 + 1e-6, 1.0, 1.0])
        assert discard_mask(color, 0.1, 0.0)

    def test_beyond_white_threshold_kept(self):
        color = np.array([1.0 - 0.1 - 1e-6, 1.0, 1.0])
        assert not discard_mask(color, 0.1, 0.0)

    def test_near_black_discarded(self):
        assert discard_mask(np.array([0.0, 0.05 - 1e-6, 0.0]), 0.0, 0.05)
        assert not discard_mask(np.array([0.0, 0.05 + 1e-6, 0.0]), 0.0, 0.05)

    def test_zero_thresholds_never_discard(self):
        colors = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0], [0.3, 0.6, 0.9]])
        assert not discard_mask(colors, 0.0, 0.0).any()


class TestEvaluate:
    def test_deterministic(self, make_params):
        params = make_params(LyapunovConfig(iter_max=60), time=1.7)
        u, v = np.meshgrid(np.linspace(0, 1, 9), np.linspace(0, 1, 7))
        first = evaluate(u, v, params)
        second = evaluate(u, v, params)
        np.testing.assert_array_equal(first.exponent, second.exponent)
        np.testing.assert_array_equal(first.color, second.color)
        np.testing.assert_array_equal(first.discard, second.discard)

    def test_reference_pixel(self, make_params):
        config = LyapunovConfig(
            pattern="AAABB",
            iter_max=100,
            zoom=2.04,
            displace_x=2.37,
            displace_y=3.29,
            rotation=0.0,
            lyp_min=-1.0,
            lyp_max=1.0,
            palette=Palette.TURBO,
            noise_enabled=False,
        )
        exponent, color, discarded = evaluate_pixel(0.5, 0.5, make_params(config))

        # Same operation order as the kernel: scale, offset, rotate by 0
        cx = (0.5 - 0.5) * 2.04 + 0.5 + 2.37 - 0.5
        cy = (0.5 - 0.5) * 2.04 + 0.5 + 3.29 - 0.5
        a = 1.0 * cx + 0.0 * cy + 0.5
        b = -0.0 * cx + 1.0 * cy + 0.5
        expected = _reference_exponent(a, b, "AAABB", 100)
        t = _reference_smoothstep(-1.0, 1.0, expected)
        expected_color = [0.5 + 0.5 * math.sin(2 * math.pi * (t + p)) for p in (0.0, 0.15, 0.3)]

        assert exponent == pytest.approx(expected, abs=1e-9)
        np.testing.assert_allclose(color, expected_color, atol=1e-9)
        assert not discarded

    def test_noise_adds_perturbation(self, make_params):
        base = LyapunovConfig(noise_enabled=False, iter_max=30)
        noisy = base.replace(noise_enabled=True)
        u, v = np.meshgrid(np.linspace(0.4, 0.6, 5), np.linspace(0.4, 0.6, 5))

        plain = evaluate(u, v, make_params(base)).exponent
        perturbed = evaluate(u, v, make_params(noisy, time=2.0)).exponent
        delta = perturbed - plain
        assert np.all(delta >= 0.0)
        assert np.all(delta <= 2.0)
        assert delta.max() > 0.0

    def test_time_only_matters_with_noise(self, make_params):
        config = LyapunovConfig(noise_enabled=False, iter_max=30)
        u, v = np.meshgrid(np.linspace(0, 1, 6), np.linspace(0, 1, 6))
        r1 = evaluate(u, v, make_params(config, time=0.0))
        r2 = evaluate(u, v, make_params(config, time=9.0))
        np.testing.assert_array_equal(r1.color, r2.color)

        noisy = config.replace(noise_enabled=True)
        r3 = evaluate(u, v, make_params(noisy, time=0.0))
        r4 = evaluate(u, v, make_params(noisy, time=9.0))
        assert not np.array_equal(r3.exponent, r4.exponent)

    def test_rotation_capability_flag(self, make_params):
        rotated = LyapunovConfig(rotation=45.0, noise_enabled=False, iter_max=30)
        disabled = rotated.replace(rotation_enabled=False)
        upright = rotated.replace(rotation=0.0)
        u, v = np.meshgrid(np.linspace(0, 1, 5), np.linspace(0, 1, 5))

        np.testing.assert_array_equal(
            evaluate(u, v, make_params(disabled)).exponent,
            evaluate(u, v, make_params(upright)).exponent,
        )
        assert not np.array_equal(
            evaluate(u, v, make_params(rotated)).exponent,
            evaluate(u, v, make_params(upright)).exponent,
        )

    def test_t_in_unit_range(self, make_params):
        params = make_params(LyapunovConfig(iter_max=40), time=0.5)
        u, v = np.meshgrid(np.linspace(0, 1, 16), np.linspace(0, 1, 16))
        t = evaluate(u, v, params).t
        assert t.min() >= 0.0
        assert t.max() <= 1.0

    def test_white_masking_end_to_end(self, make_params):
        # Window far below any exponent: t = 1, Hot(1) is pure white
        config = LyapunovConfig(
            palette=Palette.HOT, lyp_min=-100.0, lyp_max=-99.0,
            white_threshold=0.01, noise_enabled=False, iter_max=20,
        )
        u, v = np.meshgrid(np.linspace(0, 1, 4), np.linspace(0, 1, 4))
        assert evaluate(u, v, make_params(config)).discard.all()
        assert not evaluate(u, v, make_params(config.replace(white_threshold=0.0))).discard.any()


class TestShade:
    def test_rgba_layout(self, make_params):
        params = make_params(LyapunovConfig(iter_max=20))
        u, v = np.meshgrid(np.linspace(0, 1, 6), np.linspace(0, 1, 4))
        rgba = shade(u, v, params)
        assert rgba.shape == (4, 6, 4)
        np.testing.assert_array_equal(rgba[..., 3], 1.0)

    def test_discarded_pixels_transparent(self, make_params):
        config = LyapunovConfig(
            palette=Palette.HOT, lyp_min=-100.0, lyp_max=-99.0,
            white_threshold=0.01, iter_max=20,
        )
        rgba = shade(np.array([0.2, 0.8]), np.array([0.5, 0.5]), make_params(config))
        np.testing.assert_array_equal(rgba, 0.0)
