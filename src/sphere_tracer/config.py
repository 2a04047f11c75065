"""Render configuration and Taichi backend initialization.

RenderConfig collects every knob of a render. Values come from keyword
arguments, from ``SPHERE_TRACER_*`` environment variables via from_env(), or
from the command line (see cli.py), and are checked by validate().
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any

logger = logging.getLogger(__name__)

ENV_PREFIX = "SPHERE_TRACER_"
_INT_FIELDS = ("width", "height", "samples_per_pixel", "max_depth", "seed", "band_height")

SCENE_NAMES = ("single", "showcase", "random")
ARCH_NAMES = ("auto", "cpu", "gpu")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Preallocated render target and random stream limits
MAX_DIMENSION = 2048


@dataclass(frozen=True)
class RenderConfig:
    """Settings for one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Camera samples averaged per pixel.
        max_depth: Bounce budget per sample.
        seed: Seed for the per-pixel random streams. None draws a fresh one.
        scene: Scene preset name (single, showcase or random).
        band_height: Scanlines rendered per kernel launch.
        arch: Taichi backend (auto, cpu or gpu). auto tries GPU first.
        debug: Run Taichi in debug mode (enables kernel assertions).
        log_level: Log level name for the sphere_tracer logger.
        output: Output path. None or "-" writes PPM to stdout.
    """

    width: int = 200
    height: int = 100
    samples_per_pixel: int = 100
    max_depth: int = 50
    seed: int | None = None
    scene: str = "showcase"
    band_height: int = 16
    arch: str = "auto"
    debug: bool = False
    log_level: str = "INFO"
    output: str | None = None

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    def validate(self) -> "RenderConfig":
        """Check every field and return self.

        Raises:
            ValueError: If any field is out of range or not a known name.
        """
        if not 1 <= self.width <= MAX_DIMENSION:
            raise ValueError(f"width = {self.width} must be in [1, {MAX_DIMENSION}]")
        if not 1 <= self.height <= MAX_DIMENSION:
            raise ValueError(f"height = {self.height} must be in [1, {MAX_DIMENSION}]")
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel = {self.samples_per_pixel} must be at least 1")
        if self.max_depth < 0:
            raise ValueError(f"max_depth = {self.max_depth} must be non-negative")
        if self.seed is not None and not 0 <= self.seed < 2**32:
            raise ValueError(f"seed = {self.seed} must fit in 32 bits")
        if self.scene not in SCENE_NAMES:
            raise ValueError(f"Unknown scene {self.scene!r}; choose from {SCENE_NAMES}")
        if self.band_height < 1:
            raise ValueError(f"band_height = {self.band_height} must be at least 1")
        if self.arch not in ARCH_NAMES:
            raise ValueError(f"Unknown arch {self.arch!r}; choose from {ARCH_NAMES}")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level {self.log_level!r}; choose from {LOG_LEVELS}")
        return self

    def with_overrides(self, **overrides: Any) -> "RenderConfig":
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "RenderConfig":
        """Build a config from ``SPHERE_TRACER_<FIELD>`` environment variables.

        Unset variables keep their defaults. For example
        SPHERE_TRACER_WIDTH=400 and SPHERE_TRACER_SCENE=random.

        Raises:
            ValueError: If a numeric variable cannot be parsed.
        """
        if environ is None:
            environ = dict(os.environ)

        values: dict[str, Any] = {}
        for field in fields(cls):
            raw = environ.get(ENV_PREFIX + field.name.upper())
            if raw is None or raw == "":
                continue
            if field.name in _INT_FIELDS:
                values[field.name] = _parse_int(field.name, raw)
            elif field.name == "debug":
                values[field.name] = raw.strip().lower() in ("1", "true", "yes", "on")
            else:
                values[field.name] = raw.strip()
        return cls(**values)


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name.upper()}={raw!r} is not an integer") from None


def init_taichi(config: RenderConfig) -> str:
    """Initialize Taichi with the backend requested by the config.

    Must be called before importing modules that declare Taichi fields.
    With arch "auto" the GPU backend is tried first, falling back to CPU.

    Returns:
        The name of the backend that was initialized ("gpu" or "cpu").
    """
    # Lazy: importing taichi prints a banner to stdout
    import taichi as ti

    if config.arch == "cpu":
        ti.init(arch=ti.cpu, debug=config.debug)
        backend = "cpu"
    elif config.arch == "gpu":
        ti.init(arch=ti.gpu, debug=config.debug)
        backend = "gpu"
    else:
        try:
            ti.init(arch=ti.gpu, debug=config.debug)
            backend = "gpu"
        except Exception:
            logger.debug("GPU backend unavailable, falling back to CPU", exc_info=True)
            ti.init(arch=ti.cpu, debug=config.debug)
            backend = "cpu"

    logger.info("Using %s backend", backend.upper())
    return backend
