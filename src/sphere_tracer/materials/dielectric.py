"""Dielectric (glass/water) material implementation.

Dielectrics both reflect and refract. For every scatter:

    - The side of the surface is read from the incoming direction:
      front_face = incident . normal < 0. The normal is flipped to face the
      ray when the ray is inside, and the index ratio is 1/ref_idx when
      entering and ref_idx when exiting.
    - If ratio * sin(theta) >= 1 there is no refraction solution and the ray
      reflects (total internal reflection; the boundary counts as TIR).
    - Otherwise the ray reflects with probability given by Schlick's
      approximation and refracts otherwise.

Glass absorbs nothing, so the attenuation is always white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sphere_tracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation = scatter_dielectric(ref_idx, incident, normal, stream)
"""

import logging

import taichi as ti
import taichi.math as tm

from sphere_tracer.core.ray import (
    reflect,
    refract,
    schlick_reflectance,
    unit,
)
from sphere_tracer.core.sampler import random_float

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class DielectricMaterial:
    """Dielectric (glass/water) material properties.

    Attributes:
        ref_idx: Index of refraction. Common values:
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4
    """

    ref_idx: ti.f32


@ti.func
def _orient(ref_idx: ti.f32, incident_direction: vec3, normal: vec3):
    """Return the normal facing the ray and the refraction ratio for this side."""
    oriented_normal = normal
    ratio = 1.0 / ref_idx
    if tm.dot(incident_direction, normal) >= 0.0:
        oriented_normal = -normal
        ratio = ref_idx
    return oriented_normal, ratio


@ti.func
def _angles(unit_direction: vec3, oriented_normal: vec3):
    cos_theta = tm.min(-tm.dot(unit_direction, oriented_normal), 1.0)
    sin_theta = ti.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))
    return cos_theta, sin_theta


@ti.func
def cannot_refract(ratio: ti.f32, sin_theta: ti.f32) -> ti.i32:
    """Return 1 when Snell's law has no solution (ratio * sin(theta) >= 1)."""
    result = 0
    if ratio * sin_theta >= 1.0:
        result = 1
    return result


@ti.func
def scatter_dielectric(
    ref_idx: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Compute the scattered direction for a dielectric surface.

    Args:
        ref_idx: Index of refraction of the material.
        incident_direction: The incoming ray direction (any non-zero length).
        normal: The geometric surface normal (either orientation).
        stream: Random stream index. Exactly one value is drawn per call.

    Returns:
        A tuple of (scattered_direction, attenuation) where attenuation is
        white.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    oriented_normal, ratio = _orient(ref_idx, incident_direction, normal)
    unit_direction = unit(incident_direction)
    cos_theta, sin_theta = _angles(unit_direction, oriented_normal)

    total_reflection = cannot_refract(ratio, sin_theta)
    choice = random_float(stream)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if total_reflection == 1 or choice < schlick_reflectance(cos_theta, ratio):
        scattered_direction = reflect(unit_direction, oriented_normal)
    else:
        scattered_direction = refract(unit_direction, oriented_normal, ratio)

    return scattered_direction, attenuation


@ti.func
def will_reflect(
    ref_idx: ti.f32,
    incident_direction: vec3,
    normal: vec3,
) -> ti.i32:
    """Return 1 if the ray is totally internally reflected, 0 otherwise."""
    oriented_normal, ratio = _orient(ref_idx, incident_direction, normal)
    _, sin_theta = _angles(unit(incident_direction), oriented_normal)
    return cannot_refract(ratio, sin_theta)


@ti.func
def fresnel_reflectance(
    ref_idx: ti.f32,
    incident_direction: vec3,
    normal: vec3,
) -> ti.f32:
    """Schlick reflectance for the given incidence, ignoring TIR."""
    oriented_normal, ratio = _orient(ref_idx, incident_direction, normal)
    cos_theta, _ = _angles(unit(incident_direction), oriented_normal)
    return schlick_reflectance(cos_theta, ratio)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 256

# Storage for dielectric material properties
dielectric_ref_idxs = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(ref_idx: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ref_idx: Index of refraction. Default is 1.5 (typical glass).
            Must be positive; values below 1 model a medium less dense than
            its surroundings (e.g. an air bubble in water).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If ref_idx is not positive.
    """
    if ref_idx <= 0.0:
        raise ValueError(f"Index of refraction = {ref_idx} must be positive.")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_ref_idxs[idx] = ref_idx
    num_dielectric_materials[None] = idx + 1
    logger.debug("Added dielectric material %d with ref_idx %.3f", idx, ref_idx)
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ref_idx(material_idx: ti.i32) -> ti.f32:
    """Get the index of refraction for a dielectric material by index."""
    return dielectric_ref_idxs[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Scatter off a dielectric material looked up by registry index.

    Returns:
        A tuple of (scattered_direction, attenuation).
    """
    ref_idx = get_dielectric_ref_idx(material_idx)
    return scatter_dielectric(ref_idx, incident_direction, normal, stream)
