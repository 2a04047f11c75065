"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with ray-sphere intersection and the shared
        HitRecord structure

Intersection routines are Taichi functions (@ti.func) so they can be inlined
into the per-pixel rendering kernels. Spheres are the only primitive; the
scene aggregate in ``sphere_tracer.scene.intersection`` loops over them.

Ray-object intersection follows the pattern:
    record = hit_shape(ray_origin, ray_direction, shape, t_min, t_max)
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_miss_record, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "make_miss_record",
]
