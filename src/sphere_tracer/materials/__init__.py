"""Materials module for surface scattering models.

Components:
    lambertian: Diffuse reflection (normal + random point in unit sphere)
    metal: Mirror reflection blurred by a fuzz radius
    dielectric: Glass-like refraction with Schlick-weighted reflection

The set of materials is closed. Each material type keeps its parameters in a
Taichi field registry; ``sphere_tracer.scene.manager`` maps a unified
material id to (type, type-local index) so that many spheres can share one
material, and the integrator dispatches on the type.

Every scatter function returns ``(direction, attenuation)``. The scattered ray
starts at the hit point, and no material ever absorbs a ray outright.
"""

from .dielectric import (
    DielectricMaterial,
    add_dielectric_material,
    cannot_refract,
    clear_dielectric_materials,
    fresnel_reflectance,
    get_dielectric_material_count,
    get_dielectric_ref_idx,
    scatter_dielectric,
    scatter_dielectric_by_id,
    will_reflect,
)
from .lambertian import (
    LambertianMaterial,
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .metal import (
    MetalMaterial,
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)

__all__ = [
    # Lambertian
    "LambertianMaterial",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_albedo",
    "get_lambertian_material_count",
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    # Metal
    "MetalMaterial",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_albedo",
    "get_metal_fuzz",
    "get_metal_material_count",
    "scatter_metal",
    "scatter_metal_by_id",
    # Dielectric
    "DielectricMaterial",
    "add_dielectric_material",
    "cannot_refract",
    "clear_dielectric_materials",
    "fresnel_reflectance",
    "get_dielectric_material_count",
    "get_dielectric_ref_idx",
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "will_reflect",
]
