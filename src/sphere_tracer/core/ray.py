"""Ray data structure and vector utilities for the path tracer.

This module provides the Ray dataclass and the vector helpers used by the
intersection, material and camera code. All operations are Taichi functions
and must be called from within kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sphere_tracer.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def point() -> vec3:
    ...     ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -1.0))
    ...     return ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; consumers that need a unit direction normalize it.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def unit(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    The vector must have non-zero length. The precondition is checked when
    Taichi runs in debug mode; otherwise a zero vector yields NaN components.

    Args:
        v: The input vector.

    Returns:
        v divided by its length.
    """
    assert tm.dot(v, v) > 0.0, "unit() called on a zero-length vector"
    return v / tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the right-handed cross product a x b."""
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes v - 2 * (v . n) * n. The normal should be unit length for the
    result to be a mirror reflection.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal.

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(unit_incident: vec3, normal: vec3, ratio: ti.f32) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The refracted direction is split into a component parallel to the surface
    and one along the normal:

        parallel = ratio * (v + cos_theta * n)
        perpendicular = -sqrt(|1 - |parallel|^2|) * n

    Callers are expected to have ruled out total internal reflection.

    Args:
        unit_incident: The incoming direction (unit length).
        normal: The surface normal facing the incoming ray (unit length).
        ratio: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction vector.
    """
    cos_theta = tm.min(-tm.dot(unit_incident, normal), 1.0)
    r_out_parallel = ratio * (unit_incident + cos_theta * normal)
    r_out_perp = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_parallel))) * normal
    return r_out_parallel + r_out_perp


@ti.func
def schlick_reflectance(cosine: ti.f32, ratio: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ratio: Ratio of refractive indices.

    Returns:
        The approximate reflectance r0 + (1 - r0) * (1 - cosine)^5 where
        r0 = ((1 - ratio) / (1 + ratio))^2.
    """
    r0 = (1.0 - ratio) / (1.0 + ratio)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)
