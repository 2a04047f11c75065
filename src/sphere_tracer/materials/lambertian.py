"""Lambertian (ideal diffuse) material implementation.

The scattered direction is the surface normal plus a uniformly random point
inside the unit sphere. The resulting directions cluster around the normal,
which approximates cosine-weighted diffuse reflection without building a
tangent frame.

The attenuation is the albedo and is applied on every bounce; a diffuse
surface never absorbs a ray outright. Energy loss comes from the albedo
product and from the integrator's bounce limit.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sphere_tracer.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation = scatter_lambertian(albedo, normal, stream)
"""

import logging

import taichi as ti
import taichi.math as tm

from sphere_tracer.core.sampler import random_in_unit_sphere

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class LambertianMaterial:
    """Lambertian (ideal diffuse) material properties.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
    """

    albedo: vec3


@ti.func
def scatter_lambertian(
    albedo: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Sample a scattered direction for a Lambertian surface.

    Args:
        albedo: The diffuse reflectance color (RGB).
        normal: The surface normal at the hit point.
        stream: Random stream index.

    Returns:
        A tuple of (scattered_direction, attenuation) where the direction is
        normal + random_in_unit_sphere() (not normalized) and the attenuation
        is the albedo.
    """
    scattered_direction = normal + random_in_unit_sphere(stream)
    return scattered_direction, albedo


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 512

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.
            Each component must be in [0, 1].

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = [float(albedo[0]), float(albedo[1]), float(albedo[2])]
    num_lambertian_materials[None] = idx + 1
    logger.debug("Added Lambertian material %d with albedo %s", idx, albedo)
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a Lambertian material by index."""
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(
    material_idx: ti.i32,
    normal: vec3,
    stream: ti.i32,
):
    """Scatter off a Lambertian material looked up by registry index.

    Returns:
        A tuple of (scattered_direction, attenuation).
    """
    albedo = get_lambertian_albedo(material_idx)
    return scatter_lambertian(albedo, normal, stream)
