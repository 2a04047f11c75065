"""Sphere primitive and ray-sphere intersection.

The intersection solves the half-b form of the ray-sphere quadratic

    a*t^2 + 2*b*t + c = 0

with a = d.d, b = (o - center).d and c = (o - center).(o - center) - r^2.
A hit requires a strictly positive discriminant b^2 - a*c, so a ray that only
grazes the sphere (discriminant == 0) is reported as a miss.

The radius is signed. The normal is always (p - center) / radius, so a sphere
with a negative radius has inward-facing normals; placing one inside a glass
sphere of the same center produces a thin hollow shell.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sphere_tracer.geometry.sphere import Sphere, hit_sphere, vec3
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center, signed radius and material.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The signed radius. Negative values flip the surface normal.
        material_id: Unified id of the material backing this sphere.
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: 1 if the ray intersected a surface, 0 for a miss.
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The world-space intersection point. Only valid if hit == 1.
        normal: (point - center) / radius. Points away from the center for
            positive radii and toward it for negative radii. Only valid if
            hit == 1.
        material_id: The material of the hit surface, -1 for a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
    )


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for the nearest ray-sphere intersection in the open interval (t_min, t_max).

    The near root is tried first; if it falls outside the interval the far
    root is tried.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.

    Returns:
        A HitRecord. Check the hit field to determine if intersection occurred.
    """
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    b = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = b * b - a * c

    result = make_miss_record()

    if discriminant > 0.0:
        sqrt_d = ti.sqrt(discriminant)

        t = (-b - sqrt_d) / a
        valid = t > t_min and t < t_max

        if not valid:
            t = (-b + sqrt_d) / a
            valid = t > t_min and t < t_max

        if valid:
            point = ray_origin + t * ray_direction
            result = HitRecord(
                hit=1,
                t=t,
                point=point,
                normal=(point - sphere.center) / sphere.radius,
                material_id=sphere.material_id,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32, material_id: ti.i32) -> Sphere:
    """Create a sphere from center, signed radius and material id."""
    return Sphere(center=center, radius=radius, material_id=material_id)
