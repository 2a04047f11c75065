"""Thin-lens camera model with depth of field.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite the view direction)
- u: points right in the image plane (vup x w)
- v: points up in the image plane (w x u)

The viewport is placed on the focal plane, ``focus_dist`` in front of the
camera. Each ray starts at a random point on a lens disk of radius
``aperture / 2`` and passes through the focal-plane point for (s, t), so
objects on the focal plane are sharp and everything else blurs. An aperture
of 0 gives a pinhole camera.

Camera state is derived once in Python (NumPy) by setup_camera() and stored
in Taichi fields for use by get_ray() inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sphere_tracer.camera.thin_lens import ThinLensCamera, setup_camera
    >>> camera = ThinLensCamera(
    ...     lookfrom=(3.0, 3.0, 2.0),
    ...     lookat=(0.0, 0.0, -1.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=2.0,
    ...     aperture=2.0,
    ...     focus_dist=5.196,
    ... )
    >>> setup_camera(camera)
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from sphere_tracer.core.ray import Ray, make_ray, vec3
from sphere_tracer.core.sampler import random_in_unit_disk

logger = logging.getLogger(__name__)

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class ThinLensCamera:
    """Configuration for a thin-lens camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: World up direction used to orient the camera.
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 disables depth of field.
        focus_dist: Distance from lookfrom to the plane in perfect focus.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_dist: float = 1.0


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Focal-plane viewport
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def _validate_camera(camera: ThinLensCamera) -> None:
    if not 0.0 < camera.vfov < 180.0:
        raise ValueError(f"Vertical field of view {camera.vfov} must be in (0, 180) degrees")
    if camera.aspect_ratio <= 0.0:
        raise ValueError(f"Aspect ratio {camera.aspect_ratio} must be positive")
    if camera.aperture < 0.0:
        raise ValueError(f"Aperture {camera.aperture} must be non-negative")
    if camera.focus_dist <= 0.0:
        raise ValueError(f"Focus distance {camera.focus_dist} must be positive")


def setup_camera(camera: ThinLensCamera) -> None:
    """Derive camera state from its configuration and upload it.

    Args:
        camera: Camera configuration.

    Raises:
        ValueError: If the parameters are out of range, lookfrom equals
            lookat, or vup is parallel to the view direction.

    Note:
        This function writes to Taichi fields and must be called from
        Python (not from within a Taichi kernel).
    """
    _validate_camera(camera)

    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)
    viewport_height = 2.0 * h
    viewport_width = camera.aspect_ratio * viewport_height

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    w = lookfrom - lookat
    w_norm = np.linalg.norm(w)
    if w_norm == 0.0:
        raise ValueError("Camera lookfrom and lookat must be different points")
    w = w / w_norm

    u = np.cross(vup, w)
    u_norm = np.linalg.norm(u)
    if u_norm < 1e-12:
        raise ValueError("Camera vup must not be parallel to the view direction")
    u = u / u_norm

    v = np.cross(w, u)

    horizontal = camera.focus_dist * viewport_width * u
    vertical = camera.focus_dist * viewport_height * v
    lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - camera.focus_dist * w

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.aperture / 2.0

    logger.debug(
        "Camera at %s looking at %s: vfov=%.1f, aperture=%.3f, focus_dist=%.3f",
        camera.lookfrom,
        camera.lookat,
        camera.vfov,
        camera.aperture,
        camera.focus_dist,
    )


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32, stream: ti.i32) -> Ray:
    """Generate a ray through normalized image coordinates (s, t).

    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    The origin is jittered across the lens disk; the direction is not
    normalized.

    Args:
        s: Horizontal coordinate in [0, 1].
        t: Vertical coordinate in [0, 1].
        stream: Random stream index for the lens sample.

    Returns:
        A Ray from a point on the lens toward the focal-plane point (s, t).
    """
    rd = _lens_radius[None] * random_in_unit_disk(stream)
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y
    origin = _camera_origin[None] + offset
    direction = (
        _lower_left_corner[None]
        + s * _viewport_horizontal[None]
        + t * _viewport_vertical[None]
        - _camera_origin[None]
        - offset
    )
    return make_ray(origin, direction)


# =============================================================================
# Utility Functions
# =============================================================================


def _to_tuple(field_value) -> tuple[float, float, float]:
    return (float(field_value[0]), float(field_value[1]), float(field_value[2]))


def get_camera_info() -> dict[str, object]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        (3-tuples) and lens_radius (float).
    """
    return {
        "origin": _to_tuple(_camera_origin[None]),
        "u": _to_tuple(_camera_u[None]),
        "v": _to_tuple(_camera_v[None]),
        "w": _to_tuple(_camera_w[None]),
        "horizontal": _to_tuple(_viewport_horizontal[None]),
        "vertical": _to_tuple(_viewport_vertical[None]),
        "lower_left": _to_tuple(_lower_left_corner[None]),
        "lens_radius": float(_lens_radius[None]),
    }


# Ray query storage for the Python-side helper
_query_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_direction = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _get_ray_kernel(s: ti.f32, t: ti.f32, stream: ti.i32):
    ray = get_ray(s, t, stream)
    _query_origin[None] = ray.origin
    _query_direction[None] = ray.direction


def generate_ray(
    s: float, t: float, stream: int = 0
) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """Python-callable wrapper around get_ray(), mainly for tests.

    Returns:
        (origin, direction) as 3-tuples.
    """
    _get_ray_kernel(s, t, stream)
    return _to_tuple(_query_origin[None]), _to_tuple(_query_direction[None])
