"""Scene-level sphere aggregate and closest-hit queries.

The scene stores spheres in Taichi fields (Structure-of-Arrays layout) and
tests a ray against every one of them, narrowing the search interval to the
closest hit found so far. Because the narrowing is monotonic, the result is
the nearest surface regardless of the order spheres were added in.

Fields are written from Python between renders and only read by kernels, so
parallel pixel loops need no synchronization.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sphere_tracer.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
    0
    >>> # Use intersect_scene within a Taichi kernel
"""

from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

from sphere_tracer.geometry.sphere import HitRecord, Sphere, hit_sphere, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres from the scene.

    Resets the sphere count to zero. Field data is overwritten when new
    spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(center: Sequence[float], radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere as (x, y, z).
        radius: The signed radius. Negative values produce inward normals.
        material_id: The unified material ID backing this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        ValueError: If the radius is zero.
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    if radius == 0.0:
        raise ValueError("Sphere radius must be non-zero")

    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = [float(center[0]), float(center[1]), float(center[2])]
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def get_sphere(index: ti.i32) -> Sphere:
    """Assemble the Sphere struct stored at the given index."""
    return Sphere(
        center=sphere_centers[index],
        radius=sphere_radii[index],
        material_id=sphere_material_ids[index],
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Find the closest intersection of a ray with the scene.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.

    Returns:
        The HitRecord of the closest sphere hit in (t_min, t_max), or a miss
        record if nothing was hit.
    """
    closest_t = t_max
    result = make_miss_record()

    for i in range(num_spheres[None]):
        rec = hit_sphere(ray_origin, ray_direction, get_sphere(i), t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result


# Single-query result storage for the Python-side debugging helper
_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=ti.f32, shape=())
_query_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_material_id = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _query_kernel(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
):
    rec = intersect_scene(vec3(ox, oy, oz), vec3(dx, dy, dz), t_min, t_max)
    _query_hit[None] = rec.hit
    _query_t[None] = rec.t
    _query_point[None] = rec.point
    _query_normal[None] = rec.normal
    _query_material_id[None] = rec.material_id


def query_closest_hit(
    origin: Sequence[float],
    direction: Sequence[float],
    t_min: float = 0.001,
    t_max: float = 1e10,
) -> dict[str, object] | None:
    """Python-callable closest-hit query, mainly for debugging and tests.

    Args:
        origin: Ray origin as (x, y, z).
        direction: Ray direction as (x, y, z).
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.

    Returns:
        None for a miss, otherwise a dict with keys t, point, normal and
        material_id.
    """
    _query_kernel(
        float(origin[0]),
        float(origin[1]),
        float(origin[2]),
        float(direction[0]),
        float(direction[1]),
        float(direction[2]),
        t_min,
        t_max,
    )
    if _query_hit[None] == 0:
        return None
    point = _query_point[None]
    normal = _query_normal[None]
    return {
        "t": float(_query_t[None]),
        "point": (float(point[0]), float(point[1]), float(point[2])),
        "normal": (float(normal[0]), float(normal[1]), float(normal[2])),
        "material_id": int(_query_material_id[None]),
    }
