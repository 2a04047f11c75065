"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure and vector utilities (reflect, refract, Schlick)
    sampler: Per-pixel random streams and rejection samplers
    integrator: Color integration loop, sky background and render target
    renderer: Band renderer with progress reporting and cancellation

All per-pixel computation runs in Taichi kernels; the random streams make
seeded renders reproducible under parallel execution.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    unit,
    vec3,
)
from .sampler import (
    MAX_STREAMS,
    random_float,
    random_in_unit_disk,
    random_in_unit_sphere,
    seed_streams,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from sphere_tracer.core.integrator or sphere_tracer.core.renderer.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "MAX_STREAMS",
    "seed_streams",
    "random_float",
    "random_in_unit_sphere",
    "random_in_unit_disk",
]
