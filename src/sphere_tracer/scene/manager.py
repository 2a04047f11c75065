"""Unified scene manager for coordinating spheres and materials.

This module provides the high-level scene building API. It assigns every
material a unified material id across the three material registries and
records which type and type-local index that id refers to, so that the
integrator can dispatch to the right scattering function.

Materials are shared by id: adding one material and passing its id to many
spheres makes all of them reference the same parameters.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sphere_tracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> glass = scene.add_dielectric_material(ref_idx=1.5)
    >>> scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    0
    >>> scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)  # hollow shell
    1
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

import taichi as ti

from sphere_tracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from sphere_tracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from sphere_tracer.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from sphere_tracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the integrator.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 1024

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Returns:
        The material type as an integer (see MaterialType), or -1 for an
        invalid material ID.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local registry index for a given material ID.

    Returns:
        The index into the type-specific material field, or -1 for an
        invalid material ID.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material.
        type_index: The index within the type-specific registry.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage fields.
        center: The center of the sphere.
        radius: The signed radius of the sphere.
        material_id: The material ID assigned to the sphere.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


class SceneManager:
    """Scene builder coordinating the sphere aggregate and material registries.

    Creating a SceneManager clears any previously built scene, since the
    underlying Taichi fields are global.

    Attributes:
        materials: MaterialInfo for all registered materials, indexed by id.
        spheres: SphereInfo for all spheres, in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
        >>> gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> scene.add_sphere((0, -100.5, -1), 100.0, ground)
        0
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
        1
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()

    def clear(self) -> None:
        """Clear the entire scene (spheres and materials)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B), each in [0, 1].

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        type_index = add_lambertian_material(albedo)
        return self._register_material(MaterialType.LAMBERTIAN, type_index, {"albedo": albedo})

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a metal material to the scene.

        Args:
            albedo: The reflective color as (R, G, B), each in [0, 1].
            fuzz: The blur radius in [0, 1]. Default is 0 (perfect mirror).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component or fuzz is outside [0, 1].
        """
        type_index = add_metal_material(albedo, fuzz)
        return self._register_material(
            MaterialType.METAL, type_index, {"albedo": albedo, "fuzz": fuzz}
        )

    def add_dielectric_material(self, ref_idx: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            ref_idx: Index of refraction. Default is 1.5 (typical glass).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If ref_idx is not positive.
        """
        type_index = add_dielectric_material(ref_idx)
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ref_idx": ref_idx})

    def get_material_count(self) -> int:
        """Get the number of registered materials."""
        return len(self.materials)

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material, or None for an unknown id."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material type from Python, or None for an unknown id."""
        info = self.get_material_info(material_id)
        return info.material_type if info is not None else None

    # =========================================================================
    # Sphere Management
    # =========================================================================

    def add_sphere(
        self,
        center: Sequence[float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere referencing an existing material.

        Args:
            center: The center of the sphere as (x, y, z).
            radius: The signed radius. Negative radii flip the normal.
            material_id: The unified material ID from one of the add_*_material
                methods.

        Returns:
            The sphere index.

        Raises:
            ValueError: If the material ID is unknown or the radius is zero.
            RuntimeError: If the maximum number of spheres is exceeded.
        """
        if self.get_material_info(material_id) is None:
            raise ValueError(
                f"Unknown material id {material_id}; "
                f"the scene has {len(self.materials)} materials"
            )

        center_tuple = (float(center[0]), float(center[1]), float(center[2]))
        sphere_index = add_sphere(center_tuple, float(radius), material_id)
        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=center_tuple,
                radius=float(radius),
                material_id=material_id,
            )
        )
        return sphere_index

    def add_lambertian_sphere(
        self,
        center: Sequence[float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> int:
        """Add a sphere with its own new Lambertian material."""
        return self.add_sphere(center, radius, self.add_lambertian_material(albedo))

    def add_metal_sphere(
        self,
        center: Sequence[float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a sphere with its own new metal material."""
        return self.add_sphere(center, radius, self.add_metal_material(albedo, fuzz))

    def add_dielectric_sphere(
        self,
        center: Sequence[float],
        radius: float,
        ref_idx: float = 1.5,
    ) -> int:
        """Add a sphere with its own new dielectric material."""
        return self.add_sphere(center, radius, self.add_dielectric_material(ref_idx))

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    def summary(self) -> dict[str, int]:
        """Count spheres and materials by type, for logging."""
        counts = {material_type.name.lower(): 0 for material_type in MaterialType}
        for info in self.materials:
            counts[info.material_type.name.lower()] += 1
        counts["spheres"] = len(self.spheres)
        return counts

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
