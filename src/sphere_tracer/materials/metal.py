"""Metal (specular reflective) material implementation.

Metals reflect the incoming direction about the surface normal:

    R = I - 2(I . N)N

and perturb the result by a random offset inside a sphere of radius ``fuzz``.
A fuzz of 0 is a perfect mirror; larger values blur the reflection.

The perturbed ray is always returned, even when fuzz pushes it below the
surface. The albedo tints every reflection.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sphere_tracer.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation = scatter_metal(albedo, fuzz, incident, normal, stream)
"""

import logging

import taichi as ti
import taichi.math as tm

from sphere_tracer.core.ray import reflect, unit
from sphere_tracer.core.sampler import random_in_unit_sphere

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class MetalMaterial:
    """Metal (specular reflective) material properties.

    Attributes:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: Blur radius in [0, 1]. 0 = perfect mirror.
    """

    albedo: vec3
    fuzz: ti.f32


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Compute the scattered direction for a metal surface.

    Args:
        albedo: The reflective color (RGB).
        fuzz: The blur radius in [0, 1].
        incident_direction: The incoming ray direction (any non-zero length).
        normal: The surface normal at the hit point.
        stream: Random stream index.

    Returns:
        A tuple of (scattered_direction, attenuation) where the direction is
        reflect(unit(incident), normal) + fuzz * random_in_unit_sphere() and
        the attenuation is the albedo.
    """
    reflected = reflect(unit(incident_direction), normal)
    scattered_direction = reflected + fuzz * random_in_unit_sphere(stream)
    return scattered_direction, albedo


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 512

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
            Each component must be in [0, 1].
        fuzz: The blur radius in [0, 1]. Default is 0 (perfect mirror).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
        ValueError: If fuzz is outside [0, 1].
    """
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )

    if fuzz < 0.0 or fuzz > 1.0:
        raise ValueError(
            f"Fuzz = {fuzz} is outside [0, 1]. "
            "Fuzz must be between 0 (perfect mirror) and 1 (maximum blur)."
        )

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_albedos[idx] = [float(albedo[0]), float(albedo[1]), float(albedo[2])]
    metal_fuzzes[idx] = fuzz
    num_metal_materials[None] = idx + 1
    logger.debug("Added metal material %d with albedo %s, fuzz %.3f", idx, albedo, fuzz)
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a metal material by index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    """Get the fuzz for a metal material by index."""
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Scatter off a metal material looked up by registry index.

    Returns:
        A tuple of (scattered_direction, attenuation).
    """
    albedo = get_metal_albedo(material_idx)
    fuzz = get_metal_fuzz(material_idx)
    return scatter_metal(albedo, fuzz, incident_direction, normal, stream)
