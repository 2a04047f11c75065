"""Band renderer with progress reporting and cooperative cancellation.

This module provides a convenient wrapper around the core integrator that:
- Seeds one random stream per pixel so seeded renders are reproducible
- Renders the image in horizontal bands of scanlines, top to bottom
- Reports progress after each band (log records and an optional callback)
- Checks a cancellation token between bands

Each band is a single parallel Taichi kernel launch over its pixels, so the
band height trades progress granularity against launch overhead.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sphere_tracer.core.renderer import Renderer
    >>> from sphere_tracer.scene.presets import create_single_sphere_scene
    >>> from sphere_tracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_single_sphere_scene(aspect_ratio=2.0)
    >>> setup_camera(camera)
    >>>
    >>> renderer = Renderer(200, 100)
    >>> renderer.render(samples_per_pixel=100, max_depth=50, seed=42)
    42
    >>> pixels = renderer.get_image_uint8()
"""

import logging
import threading
import time
from collections.abc import Callable, Generator
from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt

from sphere_tracer.core.integrator import (
    MAX_DEPTH,
    clear_render_target,
    get_image_numpy,
    render_rows,
    setup_render_target,
)
from sphere_tracer.core.sampler import seed_streams
from sphere_tracer.output.export import image_to_uint8, save_png, save_ppm, write_ppm

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]

DEFAULT_BAND_HEIGHT = 16


class RenderCancelledError(RuntimeError):
    """Raised when a render is cancelled between bands.

    Attributes:
        rows_done: Number of scanlines (from the top) that were completed.
        total_rows: Image height.
    """

    def __init__(self, rows_done: int, total_rows: int) -> None:
        super().__init__(f"Render cancelled after {rows_done} of {total_rows} scanlines")
        self.rows_done = rows_done
        self.total_rows = total_rows


class Renderer:
    """A band renderer over the global render target.

    The renderer maintains its own width/height and delegates to the global
    integrator buffers (which are Taichi fields). Rows completed before a
    cancellation stay in the buffer; rows not yet rendered are black.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        seed: The seed used by the last render, or None before any render.
        rows_done: Scanlines completed by the last render.
    """

    def __init__(self, width: int, height: int) -> None:
        """Initialize the renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).

        Raises:
            ValueError: If dimensions are not positive or exceed the maximum
                supported size.
        """
        self._width = width
        self._height = height
        self.seed: int | None = None
        self.rows_done = 0
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self._width / self._height

    def reset(self) -> None:
        """Clear the image without changing its dimensions."""
        clear_render_target()
        self.rows_done = 0

    def render_bands(
        self,
        samples_per_pixel: int,
        max_depth: int = MAX_DEPTH,
        seed: int | None = None,
        band_height: int = DEFAULT_BAND_HEIGHT,
    ) -> Generator[tuple[int, int], None, None]:
        """Render the image band by band, yielding progress after each band.

        This is a generator-based alternative to render() with callbacks.
        Arguments are validated, the image cleared and the streams seeded
        before the first band is rendered. Stopping iteration early leaves
        the remaining rows black.

        Args:
            samples_per_pixel: Samples averaged per pixel (>= 1).
            max_depth: Bounce budget per sample.
            seed: Seed for the per-pixel random streams. None draws a fresh
                seed; the applied seed is stored in self.seed.
            band_height: Scanlines rendered per kernel launch (>= 1).

        Returns:
            A generator yielding (rows_done, total_rows) after each band.

        Raises:
            ValueError: If samples_per_pixel or band_height is less than 1.
        """
        if samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel = {samples_per_pixel} must be at least 1")
        if band_height < 1:
            raise ValueError(f"band_height = {band_height} must be at least 1")

        self.reset()
        self.seed = seed_streams(seed, count=self._width * self._height)
        return self._iter_bands(samples_per_pixel, max_depth, band_height)

    def _iter_bands(
        self, samples_per_pixel: int, max_depth: int, band_height: int
    ) -> Generator[tuple[int, int], None, None]:
        row = 0
        while row < self._height:
            row_end = min(row + band_height, self._height)
            render_rows(row, row_end, samples_per_pixel, max_depth)
            row = row_end
            self.rows_done = row
            logger.debug("Scanlines remaining: %d", self._height - row)
            yield (row, self._height)

    def render(
        self,
        samples_per_pixel: int,
        max_depth: int = MAX_DEPTH,
        seed: int | None = None,
        band_height: int = DEFAULT_BAND_HEIGHT,
        callback: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> int:
        """Render the full image.

        Args:
            samples_per_pixel: Samples averaged per pixel (>= 1).
            max_depth: Bounce budget per sample.
            seed: Seed for the per-pixel random streams. None draws a fresh
                seed.
            band_height: Scanlines rendered per kernel launch.
            callback: Optional callback called after each band.
                Receives (rows_done, total_rows).
            cancel_event: Optional token; when set, the render stops before
                the next band.

        Returns:
            The seed that was applied, so an unseeded render can be repeated.

        Raises:
            RenderCancelledError: If cancel_event was set before the render
                finished.

        Example:
            >>> def progress(done, total):
            ...     print(f"{done}/{total} scanlines")
            >>> renderer.render(100, callback=progress)
        """
        logger.info(
            "Rendering %dx%d at %d samples per pixel, max depth %d",
            self._width,
            self._height,
            samples_per_pixel,
            max_depth,
        )
        start = time.perf_counter()

        bands = self.render_bands(samples_per_pixel, max_depth, seed, band_height)
        if cancel_event is not None and cancel_event.is_set():
            bands.close()
            raise RenderCancelledError(0, self._height)

        for rows_done, total_rows in bands:
            if callback is not None:
                callback(rows_done, total_rows)
            if rows_done < total_rows and cancel_event is not None and cancel_event.is_set():
                bands.close()
                logger.warning(
                    "Render cancelled with %d scanlines remaining", total_rows - rows_done
                )
                raise RenderCancelledError(rows_done, total_rows)

        logger.info("Render finished in %.2fs (seed %d)", time.perf_counter() - start, self.seed)
        return self.seed

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the linear image of shape (height, width, 3), top row first."""
        return get_image_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the gamma-corrected 8-bit image of shape (height, width, 3)."""
        return image_to_uint8(self.get_image_numpy())

    def write_ppm(self, stream: TextIO) -> None:
        """Write the final pixels to a text stream as PPM P3."""
        write_ppm(self.get_image_uint8(), stream)

    def save_image(self, filepath: str | Path) -> None:
        """Save the final pixels, choosing PNG or PPM from the file suffix."""
        if Path(filepath).suffix.lower() == ".png":
            save_png(self.get_image_uint8(), filepath)
        else:
            save_ppm(self.get_image_uint8(), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"rows_done={self.rows_done}, seed={self.seed})"
        )
