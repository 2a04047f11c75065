"""Tests for per-pixel random streams and rejection samplers."""

import numpy as np
import pytest
import taichi as ti


def _draw_floats(stream_count: int, draws: int) -> np.ndarray:
    from sphere_tracer.core.sampler import random_float

    result = ti.field(dtype=ti.f32, shape=(stream_count, draws))

    @ti.kernel
    def test_kernel():
        for s in range(stream_count):
            for k in range(draws):
                result[s, k] = random_float(s)

    test_kernel()
    return result.to_numpy()


class TestSeedStreams:
    """Tests for stream seeding."""

    def test_returns_applied_seed(self):
        """Test that an explicit seed is returned unchanged."""
        from sphere_tracer.core.sampler import seed_streams

        assert seed_streams(1234, count=4) == 1234

    def test_seed_is_masked_to_32_bits(self):
        """Test that seeds wider than 32 bits are truncated."""
        from sphere_tracer.core.sampler import seed_streams

        assert seed_streams(2**32 + 5, count=1) == 5

    def test_none_draws_a_seed(self):
        """Test that an unseeded call picks and reports a 32-bit seed."""
        from sphere_tracer.core.sampler import seed_streams

        seed = seed_streams(None, count=1)
        assert 0 <= seed < 2**32

    def test_rejects_bad_count(self):
        """Test that stream counts outside [1, MAX_STREAMS] are rejected."""
        from sphere_tracer.core.sampler import MAX_STREAMS, seed_streams

        with pytest.raises(ValueError):
            seed_streams(1, count=0)
        with pytest.raises(ValueError):
            seed_streams(1, count=MAX_STREAMS + 1)


class TestRandomFloat:
    """Tests for uniform draws."""

    def test_same_seed_same_sequence(self):
        """Test that reseeding reproduces the draws exactly."""
        from sphere_tracer.core.sampler import seed_streams

        seed_streams(42, count=8)
        first = _draw_floats(8, 16)
        seed_streams(42, count=8)
        second = _draw_floats(8, 16)

        np.testing.assert_array_equal(first, second)

    def test_different_seeds_differ(self):
        """Test that different seeds give different draws."""
        from sphere_tracer.core.sampler import seed_streams

        seed_streams(1, count=4)
        first = _draw_floats(4, 8)
        seed_streams(2, count=4)
        second = _draw_floats(4, 8)

        assert not np.array_equal(first, second)

    def test_streams_are_independent(self):
        """Test that neighbouring streams do not produce the same values."""
        from sphere_tracer.core.sampler import seed_streams

        seed_streams(7, count=2)
        draws = _draw_floats(2, 32)

        assert not np.array_equal(draws[0], draws[1])

    def test_range_and_mean(self):
        """Test that draws lie in [0, 1) and average near 0.5."""
        from sphere_tracer.core.sampler import seed_streams

        seed_streams(99, count=64)
        draws = _draw_floats(64, 128)

        assert draws.min() >= 0.0
        assert draws.max() < 1.0
        assert abs(draws.mean() - 0.5) < 0.02

    def test_wraparound_is_silent_in_debug_mode(self, capfd):
        """Test that seeding and drawing print no overflow reports."""
        from sphere_tracer.core.sampler import seed_streams

        capfd.readouterr()
        seed_streams(0xFFFFFFFF, count=256)
        _draw_floats(256, 16)
        ti.sync()

        captured = capfd.readouterr()
        assert "overflow" not in captured.out.lower()
        assert "overflow" not in captured.err.lower()


class TestRejectionSamplers:
    """Tests for unit sphere and unit disk sampling."""

    def test_unit_sphere_points_inside(self):
        """Test that every point lies strictly inside the unit sphere."""
        from sphere_tracer.core.sampler import random_in_unit_sphere, seed_streams

        n = 2000
        result = ti.Vector.field(3, dtype=ti.f32, shape=n)
        seed_streams(3, count=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                result[i] = random_in_unit_sphere(i)

        test_kernel()
        points = result.to_numpy()
        lengths_sq = np.sum(points**2, axis=1)
        assert np.all(lengths_sq < 1.0)
        # Uniform over the ball: mean close to the origin
        assert np.all(np.abs(points.mean(axis=0)) < 0.05)

    def test_unit_disk_points_inside_plane(self):
        """Test that disk samples have z = 0 and lie inside the unit circle."""
        from sphere_tracer.core.sampler import random_in_unit_disk, seed_streams

        n = 2000
        result = ti.Vector.field(3, dtype=ti.f32, shape=n)
        seed_streams(4, count=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                result[i] = random_in_unit_disk(i)

        test_kernel()
        points = result.to_numpy()
        assert np.all(points[:, 2] == 0.0)
        assert np.all(points[:, 0] ** 2 + points[:, 1] ** 2 < 1.0)
