"""Scene module for scene construction and ray-scene queries.

This module handles scene representation and ray-scene queries:

Components:
    intersection: Sphere aggregate in Taichi fields and closest-hit queries
    manager: Unified scene manager coordinating spheres and materials
    presets: Ready-made scenes paired with matching cameras

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for sphere data
    - A unified material id table mapping ids to per-type registries
"""

from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
    query_closest_hit,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .presets import (
    SCENE_PRESETS,
    build_scene,
    create_random_scene,
    create_showcase_scene,
    create_single_sphere_scene,
)

__all__ = [
    # Intersection module
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "query_closest_hit",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Presets module
    "SCENE_PRESETS",
    "build_scene",
    "create_single_sphere_scene",
    "create_showcase_scene",
    "create_random_scene",
]
