"""Command-line interface for rendering a preset scene.

Usage:
    sphere-tracer [options]
    python -m sphere_tracer [options]

Options:
    --width WIDTH           Image width in pixels (default: 200)
    --height HEIGHT         Image height in pixels (default: 100)
    --samples SAMPLES       Samples per pixel (default: 100)
    --max-depth DEPTH       Bounce budget per sample (default: 50)
    --seed SEED             Seed for reproducible output (default: random)
    --scene NAME            single, showcase or random (default: showcase)
    --output PATH           Output file; "-" or omitted writes PPM to stdout,
                            a .png suffix writes PNG
    --band-height ROWS      Scanlines per progress update (default: 16)
    --arch ARCH             auto, cpu or gpu (default: auto)
    --debug, --no-debug     Taichi debug mode (kernel assertions)
    --log-level LEVEL       Log level (default: INFO)
    --quiet                 Only log warnings and errors

Defaults may also be set with SPHERE_TRACER_<OPTION> environment variables,
e.g. SPHERE_TRACER_SAMPLES_PER_PIXEL=10.

Standard output carries nothing but the image: anything else written to it
while main() runs, including native Taichi output, goes to stderr.

Example:
    sphere-tracer --scene random --width 400 --height 225 --seed 7 -o scene.png
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import os
import sys
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import TextIO

from sphere_tracer.config import ARCH_NAMES, LOG_LEVELS, SCENE_NAMES, RenderConfig, init_taichi
from sphere_tracer.log import setup_logging

logger = logging.getLogger(__name__)


def build_parser(defaults: RenderConfig | None = None) -> argparse.ArgumentParser:
    """Build the argument parser, taking defaults from a config."""
    if defaults is None:
        defaults = RenderConfig()

    parser = argparse.ArgumentParser(
        prog="sphere-tracer",
        description="Render a scene of spheres with a Monte Carlo path tracer.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=defaults.width, help="Image width in pixels")
    parser.add_argument(
        "--height", type=int, default=defaults.height, help="Image height in pixels"
    )
    parser.add_argument(
        "--samples",
        dest="samples_per_pixel",
        type=int,
        default=defaults.samples_per_pixel,
        help="Samples per pixel",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=defaults.max_depth,
        help="Bounce budget per sample",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=defaults.seed,
        help="Seed for reproducible output (random when omitted)",
    )
    parser.add_argument(
        "--scene",
        choices=SCENE_NAMES,
        default=defaults.scene,
        help="Scene preset",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=defaults.output,
        help='Output path; "-" or omitted writes PPM to stdout, .png writes PNG',
    )
    parser.add_argument(
        "--band-height",
        type=int,
        default=defaults.band_height,
        help="Scanlines rendered between progress updates",
    )
    parser.add_argument("--arch", choices=ARCH_NAMES, default=defaults.arch, help="Taichi backend")
    parser.add_argument(
        "--debug",
        action=argparse.BooleanOptionalAction,
        default=defaults.debug,
        help="Taichi debug mode (kernel assertions)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level.upper(),
        help="Log level",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> RenderConfig:
    """Turn parsed arguments into a validated RenderConfig."""
    config = RenderConfig(
        width=args.width,
        height=args.height,
        samples_per_pixel=args.samples_per_pixel,
        max_depth=args.max_depth,
        seed=args.seed,
        scene=args.scene,
        band_height=args.band_height,
        arch=args.arch,
        debug=args.debug,
        log_level="WARNING" if args.quiet else args.log_level,
        output=args.output,
    )
    return config.validate()


def render_scene(config: RenderConfig, stdout: TextIO | None = None) -> int:
    """Render the configured scene and write it out.

    Taichi must already be initialized.

    Args:
        config: Validated render configuration.
        stdout: Stream for PPM output when config.output is None or "-".

    Returns:
        The seed used for the per-pixel random streams.
    """
    # Lazy imports to allow Taichi initialization first
    from sphere_tracer.camera.thin_lens import setup_camera
    from sphere_tracer.core.renderer import Renderer
    from sphere_tracer.scene.presets import build_scene

    scene, camera = build_scene(config.scene, config.aspect_ratio, seed=config.seed)
    logger.info("Scene %r: %s", config.scene, scene.summary())
    setup_camera(camera)

    renderer = Renderer(config.width, config.height)
    seed = renderer.render(
        samples_per_pixel=config.samples_per_pixel,
        max_depth=config.max_depth,
        seed=config.seed,
        band_height=config.band_height,
    )

    if config.output is None or config.output == "-":
        renderer.write_ppm(stdout if stdout is not None else sys.stdout)
    else:
        output_file = Path(config.output)
        renderer.save_image(output_file)
        logger.info("Saved to: %s", output_file.absolute())

    return seed


@contextlib.contextmanager
def _image_stdout() -> Iterator[TextIO]:
    """Point file descriptor 1 at stderr and yield a stream on the real stdout."""
    sys.stdout.flush()
    image_fd = os.dup(1)
    os.dup2(2, 1)
    image_stream = os.fdopen(image_fd, "w", encoding="ascii", newline="\n")
    try:
        with contextlib.redirect_stdout(sys.stderr):
            yield image_stream
    finally:
        image_stream.flush()
        sys.stdout.flush()
        os.dup2(image_fd, 1)
        image_stream.close()


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    try:
        defaults = RenderConfig.from_env()
    except ValueError as e:
        build_parser().error(str(e))

    parser = build_parser(defaults)
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    setup_logging(config.log_level)

    with _image_stdout() as image_stream:
        try:
            init_taichi(config)
            render_scene(config, stdout=image_stream)
            return 0
        except Exception:
            logger.exception("Render failed")
            return 1


if __name__ == "__main__":
    sys.exit(main())
