"""Unit tests for ray and vector utilities.

Tests cover:
- Ray construction and evaluation
- Vector helpers (length, unit, dot, cross)
- Reflection, refraction and Schlick reflectance
- The unit() zero-length precondition in debug mode
"""

import math

import numpy as np
import pytest
import taichi as ti


class TestRay:
    """Tests for the Ray dataclass."""

    def test_ray_at(self):
        """Test evaluating a point along a ray."""
        from sphere_tracer.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 2.0, 3.0), vec3(0.0, 0.0, -2.0))
            result[None] = ray_at(ray, 1.5)

        test_kernel()
        p = result[None]
        assert abs(p[0] - 1.0) < 1e-6
        assert abs(p[1] - 2.0) < 1e-6
        assert abs(p[2] - 0.0) < 1e-6

    def test_ray_at_zero_is_origin(self):
        """Test that t = 0 yields the origin."""
        from sphere_tracer.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(-1.0, 0.5, 4.0), vec3(3.0, 2.0, 1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        p = result[None]
        assert abs(p[0] + 1.0) < 1e-6
        assert abs(p[1] - 0.5) < 1e-6
        assert abs(p[2] - 4.0) < 1e-6


class TestVectorUtilities:
    """Tests for vector helper functions."""

    def test_length_and_length_squared(self):
        """Test Euclidean length of a 3-4-0 vector."""
        from sphere_tracer.core.ray import length, length_squared, vec3

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            v = vec3(3.0, 4.0, 0.0)
            result[0] = length(v)
            result[1] = length_squared(v)

        test_kernel()
        assert abs(result[0] - 5.0) < 1e-6
        assert abs(result[1] - 25.0) < 1e-6

    def test_unit_has_length_one(self):
        """Test that unit() produces a unit-length vector in the same direction."""
        from sphere_tracer.core.ray import unit, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = unit(vec3(0.0, 3.0, 4.0))

        test_kernel()
        v = result[None]
        assert abs(v[0]) < 1e-6
        assert abs(v[1] - 0.6) < 1e-6
        assert abs(v[2] - 0.8) < 1e-6

    def test_unit_zero_vector_asserts_in_debug_mode(self):
        """Test that unit() on a zero vector fails the kernel assertion."""
        from sphere_tracer.core.ray import unit, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(scale: ti.f32):
            result[None] = unit(vec3(1.0, 1.0, 1.0) * scale)

        with pytest.raises((AssertionError, RuntimeError)):
            test_kernel(0.0)

    def test_dot(self):
        """Test dot product."""
        from sphere_tracer.core.ray import dot, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = dot(vec3(1.0, 2.0, 3.0), vec3(4.0, -5.0, 6.0))

        test_kernel()
        assert abs(result[None] - 12.0) < 1e-6

    def test_cross_is_right_handed(self):
        """Test that x cross y equals z."""
        from sphere_tracer.core.ray import cross, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = cross(vec3(1.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        v = result[None]
        assert abs(v[0]) < 1e-6
        assert abs(v[1]) < 1e-6
        assert abs(v[2] - 1.0) < 1e-6

    def test_cross_is_anticommutative(self):
        """Test that a cross b equals -(b cross a) for general vectors."""
        from sphere_tracer.core.ray import cross, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            a = vec3(1.5, -2.25, 0.75)
            b = vec3(-0.5, 3.0, 2.0)
            result[0] = cross(a, b)
            result[1] = cross(b, a)

        test_kernel()
        ab, ba = result.to_numpy()
        np.testing.assert_allclose(ab, -ba, atol=1e-5)
        np.testing.assert_allclose(ab, np.cross([1.5, -2.25, 0.75], [-0.5, 3.0, 2.0]), atol=1e-5)

    def test_add_then_subtract_is_identity(self):
        """Test that a + b - b gives back a."""
        from sphere_tracer.core.ray import vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            a = vec3(0.1, -7.5, 3.25)
            b = vec3(12.0, 0.3, -4.0)
            result[None] = a + b - b

        test_kernel()
        np.testing.assert_allclose(result.to_numpy(), [0.1, -7.5, 3.25], atol=1e-5)


class TestReflectRefract:
    """Tests for reflection, refraction and Schlick's approximation."""

    def test_reflect_about_up_normal(self):
        """Test reflecting (1, -1, 0) about +y gives (1, 1, 0)."""
        from sphere_tracer.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        v = result[None]
        assert abs(v[0] - 1.0) < 1e-6
        assert abs(v[1] - 1.0) < 1e-6
        assert abs(v[2]) < 1e-6

    def test_reflect_flips_normal_component(self):
        """Test reflect(v, n) . n == -(v . n) for a tilted unit normal."""
        from sphere_tracer.core.ray import dot, reflect, unit, vec3

        result = ti.field(dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            v = vec3(0.3, -0.7, 0.2)
            n = unit(vec3(1.0, 2.0, 2.0))
            r = reflect(v, n)
            result[0] = dot(r, n)
            result[1] = -dot(v, n)
            result[2] = dot(r, r) - dot(v, v)

        test_kernel()
        assert abs(result[0] - result[1]) < 1e-5
        assert abs(result[1]) > 0.1
        # Reflection preserves length
        assert abs(result[2]) < 1e-5

    def test_refract_normal_incidence_passes_straight(self):
        """Test that a ray hitting head-on is not bent."""
        from sphere_tracer.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = refract(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1.0 / 1.5)

        test_kernel()
        v = result[None]
        assert abs(v[0]) < 1e-6
        assert abs(v[1] + 1.0) < 1e-6
        assert abs(v[2]) < 1e-6

    def test_refract_obeys_snells_law(self):
        """Test sin(theta_t) = ratio * sin(theta_i) at 45 degrees."""
        from sphere_tracer.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())
        ratio = 1.0 / 1.5
        s = math.sqrt(0.5)

        @ti.kernel
        def test_kernel():
            result[None] = refract(vec3(s, -s, 0.0), vec3(0.0, 1.0, 0.0), ratio)

        test_kernel()
        v = result[None]
        length = math.sqrt(v[0] ** 2 + v[1] ** 2 + v[2] ** 2)
        assert abs(length - 1.0) < 1e-5
        assert abs(v[0] / length - ratio * s) < 1e-5
        assert v[1] < 0.0

    def test_schlick_at_normal_incidence(self):
        """Test that reflectance at cos = 1 equals r0."""
        from sphere_tracer.core.ray import schlick_reflectance

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = schlick_reflectance(1.0, 1.0 / 1.5)

        test_kernel()
        ratio = 1.0 / 1.5
        r0 = ((1.0 - ratio) / (1.0 + ratio)) ** 2
        assert abs(result[None] - r0) < 1e-6

    def test_schlick_at_grazing_incidence(self):
        """Test that reflectance at cos = 0 is 1."""
        from sphere_tracer.core.ray import schlick_reflectance

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = schlick_reflectance(0.0, 1.5)

        test_kernel()
        assert abs(result[None] - 1.0) < 1e-6
