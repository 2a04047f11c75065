"""Monte Carlo color integrator and render target.

This module traces camera rays through the sphere scene and averages the
results per pixel:

    - Rays are intersected over (T_MIN, T_MAX); T_MIN = 0.001 keeps a
      scattered ray from re-hitting the surface it just left (shadow acne).
    - A hit scatters according to the sphere's material and the path
      throughput is multiplied by the material's attenuation.
    - A miss returns the throughput times the sky gradient.
    - A path that exhausts its bounce budget contributes black.

The bounce loop is iterative and carries the attenuation product, which is
equivalent to the recursive definition color = attenuation * color(scattered).

The render target stores the linear (pre-gamma) average color per pixel.
Pixels are indexed [i, j] with j = 0 at the bottom of the image, matching the
camera's t coordinate; rows passed to render_rows() count from the top.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sphere_tracer.core.integrator import render_rows, setup_render_target
    >>> from sphere_tracer.core.sampler import seed_streams
    >>> from sphere_tracer.scene.presets import create_single_sphere_scene
    >>> from sphere_tracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_single_sphere_scene(aspect_ratio=2.0)
    >>> setup_camera(camera)
    >>> setup_render_target(200, 100)
    >>> seed_streams(42, count=200 * 100)
    42
    >>> render_rows(0, 100, samples_per_pixel=10, max_depth=50)
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from sphere_tracer.camera.thin_lens import get_ray
from sphere_tracer.core.ray import unit
from sphere_tracer.core.sampler import random_float, seed_streams
from sphere_tracer.materials.dielectric import scatter_dielectric_by_id
from sphere_tracer.materials.lambertian import scatter_lambertian_by_id
from sphere_tracer.materials.metal import scatter_metal_by_id
from sphere_tracer.scene.intersection import intersect_scene
from sphere_tracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default bounce budget per camera sample
MAX_DEPTH = 50

# Ray interval; T_MIN guards against self-intersection
T_MIN = 0.001
T_MAX = 1e10

# Sky gradient endpoints
HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
ZENITH_COLOR = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Linear color buffer (preallocated to max size)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffer.

    Sets the active image dimensions and clears the buffer. The buffer is
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT to avoid Taichi kernel
    recompilation issues.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffer to black."""
    _color_buffer.fill(0.0)


def reset_render_target() -> None:
    """Forget the current render target so it must be set up again."""
    _render_target_initialized[None] = 0
    _image_width[None] = 0
    _image_height[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Background and Material Dispatch
# =============================================================================


@ti.func
def background(direction: vec3) -> vec3:
    """Sky gradient: white at the horizon blending to light blue overhead.

    Args:
        direction: Ray direction (any non-zero length).

    Returns:
        (1 - t) * white + t * (0.5, 0.7, 1.0) with t = 0.5 * (unit(d).y + 1).
    """
    t = 0.5 * (unit(direction).y + 1.0)
    return (1.0 - t) * HORIZON_COLOR + t * ZENITH_COLOR


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Dispatch to the scattering function of the hit material.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). All three
        materials always scatter; did_scatter is 0 only for an unknown id.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation = scatter_lambertian_by_id(type_index, normal, stream)
        did_scatter = 1

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation = scatter_metal_by_id(
            type_index, incident_direction, normal, stream
        )
        did_scatter = 1

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation = scatter_dielectric_by_id(
            type_index, incident_direction, normal, stream
        )
        did_scatter = 1

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ray_color(origin: vec3, direction: vec3, max_depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the color seen along a ray.

    Args:
        origin: Ray origin.
        direction: Ray direction (not necessarily normalized).
        max_depth: Bounce budget. A budget of 0 or less yields black.
        stream: Random stream used for every scatter along the path.

    Returns:
        The linear RGB estimate for this path.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction
    remaining = max_depth
    done = 0

    # Taichi doesn't support break in ti.func loops
    while done == 0:
        if remaining <= 0:
            done = 1
        else:
            record = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if record.hit == 0:
                color = throughput * background(ray_direction)
                done = 1
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    record.material_id, ray_direction, record.normal, stream
                )
                if did_scatter == 0:
                    done = 1
                else:
                    throughput *= attenuation
                    ray_origin = record.point
                    ray_direction = scattered_direction
                    remaining -= 1

    return color


@ti.func
def sample_pixel(
    i: ti.i32,
    j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
) -> vec3:
    """Average samples_per_pixel jittered camera samples for pixel (i, j).

    j = 0 is the bottom scanline. The pixel's random stream is j * width + i.
    """
    stream = j * width + i
    total = vec3(0.0, 0.0, 0.0)
    for _ in range(samples_per_pixel):
        s = (ti.cast(i, ti.f32) + random_float(stream)) / ti.cast(width, ti.f32)
        t = (ti.cast(j, ti.f32) + random_float(stream)) / ti.cast(height, ti.f32)
        ray = get_ray(s, t, stream)
        total += ray_color(ray.origin, ray.direction, max_depth, stream)
    return total / ti.cast(samples_per_pixel, ti.f32)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
):
    """Render output rows [row_start, row_end), counted from the top."""
    for row, i in ti.ndrange((row_start, row_end), width):
        j = height - 1 - row
        _color_buffer[i, j] = sample_pixel(i, j, width, height, samples_per_pixel, max_depth)


# Query storage for the Python-side helpers
_trace_result = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _trace_ray_kernel(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    max_depth: ti.i32,
):
    _trace_result[None] = ray_color(vec3(ox, oy, oz), vec3(dx, dy, dz), max_depth, 0)


@ti.kernel
def _background_kernel(dx: ti.f32, dy: ti.f32, dz: ti.f32):
    _trace_result[None] = background(vec3(dx, dy, dz))


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(row_start: int, row_end: int, samples_per_pixel: int, max_depth: int) -> None:
    """Render a band of output rows into the render target.

    Rows are counted from the top of the image. Random streams for the band's
    pixels must have been seeded (see sampler.seed_streams).

    Args:
        row_start: First row to render (0 = top scanline).
        row_end: One past the last row to render.
        samples_per_pixel: Samples averaged per pixel (>= 1).
        max_depth: Bounce budget per sample.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the row range is outside the image or
            samples_per_pixel is less than 1.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Row range [{row_start}, {row_end}) is outside [0, {height})")
    if samples_per_pixel < 1:
        raise ValueError(f"samples_per_pixel = {samples_per_pixel} must be at least 1")

    if row_start == row_end:
        return
    _render_rows(row_start, row_end, width, height, samples_per_pixel, max_depth)


def render_image(samples_per_pixel: int, max_depth: int = MAX_DEPTH) -> None:
    """Render the whole image in a single kernel launch.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    _, height = get_image_dimensions()
    render_rows(0, height, samples_per_pixel, max_depth)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_DEPTH,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Estimate the color along a single ray.

    This is a Python-callable function for testing. It seeds random stream 0
    and traces one path on it.

    Returns:
        Tuple of (R, G, B) linear color values.
    """
    seed_streams(seed, count=1)
    _trace_ray_kernel(
        origin[0],
        origin[1],
        origin[2],
        direction[0],
        direction[1],
        direction[2],
        max_depth,
    )
    color = _trace_result[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def background_color(direction: tuple[float, float, float]) -> tuple[float, float, float]:
    """Sky color for a ray direction, callable from Python."""
    _background_kernel(direction[0], direction[1], direction[2])
    color = _trace_result[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def get_image_numpy() -> np.ndarray:
    """Get the rendered image as a NumPy array.

    Returns the linear (pre-gamma) colors, unclamped. The array shape is
    (height, width, 3) with dtype float32, top scanline first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    # Get raw image data (full buffer)
    full_image = _color_buffer.to_numpy()

    # Extract active region
    image = full_image[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (j = 0 is the bottom scanline, images start at the top)
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)
