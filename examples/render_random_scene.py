#!/usr/bin/env python3
"""Render the random sphere field with a live progress line.

This script shows the library API end to end: it builds the random scene,
sets up the camera, renders band by band with a progress callback, and saves
the result. Pressing Ctrl+C cancels the render between bands and still saves
the scanlines finished so far.

Usage:
    python examples/render_random_scene.py [options]

Options:
    --width WIDTH       Image width in pixels (default: 600)
    --height HEIGHT     Image height in pixels (default: 400)
    --samples SAMPLES   Number of samples per pixel (default: 50)
    --seed SEED         Seed for the scene layout and the render (default: 7)
    --output OUTPUT     Output file path (default: random_scene.png)

Example:
    python examples/render_random_scene.py --width 300 --height 200 --samples 20
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the random sphere field.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=600, help="Image width (default: 600)")
    parser.add_argument("--height", type=int, default=400, help="Image height (default: 400)")
    parser.add_argument(
        "--samples",
        type=int,
        default=50,
        help="Number of samples per pixel (default: 50)",
    )
    parser.add_argument("--seed", type=int, default=7, help="Seed (default: 7)")
    parser.add_argument(
        "--output",
        type=str,
        default="random_scene.png",
        help="Output file path (default: random_scene.png)",
    )
    return parser.parse_args()


def render_random_scene(
    width: int,
    height: int,
    num_samples: int,
    seed: int,
    output_path: str,
) -> Path:
    """Render the random scene and save it.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from sphere_tracer.camera.thin_lens import setup_camera
    from sphere_tracer.core.renderer import Renderer, RenderCancelledError
    from sphere_tracer.scene.presets import create_random_scene

    scene, camera = create_random_scene(aspect_ratio=width / height, seed=seed)
    print(f"Built {scene.get_sphere_count()} spheres")
    setup_camera(camera)

    cancel = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: cancel.set())

    start_time = time.time()

    def progress_callback(done: int, total: int) -> None:
        elapsed = time.time() - start_time
        print(
            f"\r  Progress: {done}/{total} scanlines ({100.0 * done / total:.1f}%) "
            f"- {elapsed:.1f}s",
            end="",
            flush=True,
        )

    renderer = Renderer(width, height)
    try:
        renderer.render(
            samples_per_pixel=num_samples,
            max_depth=50,
            seed=seed,
            callback=progress_callback,
            cancel_event=cancel,
        )
    except RenderCancelledError as e:
        print(f"\n{e}; saving partial image")
    print()

    output_file = Path(output_path)
    renderer.save_image(output_file)
    print(f"Saved to: {output_file.absolute()}")
    print(f"Total time: {time.time() - start_time:.2f}s")
    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
    except Exception:
        ti.init(arch=ti.cpu)

    try:
        render_random_scene(args.width, args.height, args.samples, args.seed, args.output)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
