"""Output module for encoding rendered images.

Components:
    export: Gamma correction to 8-bit pixels, PPM (P3) text encoding and
        PNG export via Pillow

Both encodings take the same final pixels: a (height, width, 3) uint8
array with the top scanline first.
"""

from .export import (
    compute_rmse,
    format_ppm,
    image_to_uint8,
    save_png,
    save_ppm,
    write_ppm,
)

__all__ = [
    "image_to_uint8",
    "format_ppm",
    "write_ppm",
    "save_ppm",
    "save_png",
    "compute_rmse",
]
