"""Per-pixel random streams and Monte Carlo sampling helpers.

Every pixel owns one random stream: a 32-bit state in a Taichi field that is
advanced by a linear congruential step and whitened by an integer hash. A
kernel that touches only its own pixel's stream is therefore reproducible for
a given seed no matter how Taichi schedules the parallel loop.

Streams are indexed by the flattened pixel index ``j * width + i``. Test
kernels and other single-threaded callers can use any fixed stream, e.g. 0.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sphere_tracer.core.sampler import seed_streams, random_float
    >>> seed_streams(42, count=1)
    42
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     return random_float(0)
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from sphere_tracer.core.ray import length_squared

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# One stream per pixel of the largest supported render target (2048 x 2048)
MAX_STREAMS = 2048 * 2048

_rng_state = ti.field(dtype=ti.u32, shape=MAX_STREAMS)


@ti.func
def _mul_u32(a: ti.u32, b: ti.u32) -> ti.u32:
    """Multiply modulo 2**32.

    The product is formed in 64 bits and masked, so debug-mode overflow
    checks never fire on the intended wraparound.
    """
    product = ti.cast(a, ti.u64) * ti.cast(b, ti.u64)
    return ti.cast(product & ti.u64(0xFFFFFFFF), ti.u32)


@ti.func
def _add_u32(a: ti.u32, b: ti.u32) -> ti.u32:
    """Add modulo 2**32."""
    total = ti.cast(a, ti.u64) + ti.cast(b, ti.u64)
    return ti.cast(total & ti.u64(0xFFFFFFFF), ti.u32)


@ti.func
def _hash_u32(x: ti.u32) -> ti.u32:
    """Integer avalanche hash (xor-shift-multiply)."""
    h = ti.cast(x, ti.u32)
    h ^= h >> 16
    h = _mul_u32(h, ti.u32(0x45D9F3B))
    h ^= h >> 16
    h = _mul_u32(h, ti.u32(0x45D9F3B))
    h ^= h >> 16
    return h


@ti.kernel
def _seed_streams(seed: ti.u32, count: ti.i32):
    for i in range(count):
        mixed = _mul_u32(ti.cast(i, ti.u32), ti.u32(0x61C88647))
        _rng_state[i] = _hash_u32(_hash_u32(seed) ^ mixed)


def seed_streams(seed: int | None = None, count: int = MAX_STREAMS) -> int:
    """Reset the first ``count`` random streams from a seed.

    Args:
        seed: 32-bit seed. When None, a seed is drawn from OS entropy and the
            render will not be reproducible unless the returned value is reused.
        count: Number of streams to reset (typically width * height).

    Returns:
        The seed that was applied.

    Raises:
        ValueError: If count is not in [1, MAX_STREAMS].
    """
    if count < 1 or count > MAX_STREAMS:
        raise ValueError(f"Stream count {count} must be in [1, {MAX_STREAMS}]")

    if seed is None:
        seed = int(np.random.default_rng().integers(0, 2**32))
    seed &= 0xFFFFFFFF

    _seed_streams(seed, count)
    logger.debug("Seeded %d random streams with seed %d", count, seed)
    return seed


@ti.func
def random_float(stream: ti.i32) -> ti.f32:
    """Draw a uniform value in [0, 1) and advance the given stream.

    Args:
        stream: Index of the random stream (flattened pixel index).

    Returns:
        A float in [0, 1) with 24 bits of resolution.
    """
    state = _add_u32(_mul_u32(_rng_state[stream], ti.u32(1664525)), ti.u32(1013904223))
    _rng_state[stream] = state
    return ti.cast(_hash_u32(state) >> 8, ti.f32) * (1.0 / 16777216.0)


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a uniformly distributed point strictly inside the unit sphere.

    Rejection sampling from the cube [-1, 1]^3. The loop has no iteration cap;
    each attempt is accepted with probability pi/6.
    """
    p = vec3(1.0, 1.0, 1.0)
    while length_squared(p) >= 1.0:
        p = vec3(
            random_float(stream) * 2.0 - 1.0,
            random_float(stream) * 2.0 - 1.0,
            random_float(stream) * 2.0 - 1.0,
        )
    return p


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Generate a uniformly distributed point inside the unit disk (z = 0).

    Rejection sampling from the square [-1, 1]^2, accepted with probability
    pi/4 per attempt. Used for thin-lens aperture sampling.
    """
    p = vec3(1.0, 1.0, 0.0)
    while p.x * p.x + p.y * p.y >= 1.0:
        p = vec3(
            random_float(stream) * 2.0 - 1.0,
            random_float(stream) * 2.0 - 1.0,
            0.0,
        )
    return p
