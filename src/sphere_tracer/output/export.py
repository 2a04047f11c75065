"""Image export utilities for rendered images.

This module turns the integrator's linear colors into final 8-bit pixels and
encodes them.

Gamma correction uses gamma 2 (a square root per channel), then scales by
255.99 and truncates, so a linear value of 1.0 maps to 255. Values outside
[0, 1] are clamped and NaN channels become 0.

Supported formats:
    - PPM P3 (plain text, one "R G B" line per pixel)
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from sphere_tracer.output.export import image_to_uint8, save_ppm
    >>> from sphere_tracer.core.renderer import Renderer
    >>>
    >>> renderer = Renderer(200, 100)
    >>> renderer.render(samples_per_pixel=10, max_depth=50, seed=42)
    42
    >>> save_ppm(image_to_uint8(renderer.get_image_numpy()), "output.ppm")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

# Scale applied after gamma correction; truncation keeps 1.0 at 255
COLOR_SCALE = 255.99

PPM_MAX_VALUE = 255


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to gamma-corrected 8-bit pixels.

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8, computed as
        clamp(int(255.99 * sqrt(c)), 0, 255) per channel.
    """
    linear = np.nan_to_num(np.asarray(image, dtype=np.float64), nan=0.0)
    linear = np.clip(linear, 0.0, None)
    scaled = np.trunc(COLOR_SCALE * np.sqrt(linear))
    return np.clip(scaled, 0, PPM_MAX_VALUE).astype(np.uint8)


def _check_pixels(pixels: npt.NDArray[np.uint8]) -> None:
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Expected pixels of shape (height, width, 3), got {pixels.shape}")
    if pixels.shape[0] < 1 or pixels.shape[1] < 1:
        raise ValueError(f"Image must have at least one pixel, got {pixels.shape}")


def format_ppm(pixels: npt.NDArray[np.uint8]) -> str:
    """Encode 8-bit pixels as a PPM P3 document.

    The header is ``P3\\n<width> <height>\\n255\\n`` followed by one
    ``R G B`` line per pixel, top scanline first, left to right.

    Raises:
        ValueError: If pixels is not a non-empty (H, W, 3) array.
    """
    _check_pixels(pixels)
    height, width = pixels.shape[:2]
    rows = pixels.reshape(-1, 3).astype(int).tolist()
    lines = [f"P3\n{width} {height}\n{PPM_MAX_VALUE}"]
    lines.extend(f"{r} {g} {b}" for r, g, b in rows)
    return "\n".join(lines) + "\n"


def write_ppm(pixels: npt.NDArray[np.uint8], stream: TextIO) -> None:
    """Write 8-bit pixels to a text stream as PPM P3."""
    stream.write(format_ppm(pixels))


def save_ppm(pixels: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save 8-bit pixels as a PPM P3 file."""
    with open(filepath, "w", encoding="ascii", newline="\n") as stream:
        write_ppm(pixels, stream)
    logger.info("Wrote %dx%d PPM to %s", pixels.shape[1], pixels.shape[0], filepath)


def save_png(pixels: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save 8-bit pixels as a PNG file.

    Args:
        pixels: Gamma-corrected image of shape (H, W, 3), dtype uint8.
        filepath: Output file path (should end in .png).

    Raises:
        ValueError: If pixels is not a non-empty (H, W, 3) array.
    """
    _check_pixels(pixels)
    pil_image = PILImage.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
    pil_image.save(filepath)
    logger.info("Wrote %dx%d PNG to %s", pixels.shape[1], pixels.shape[0], filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
