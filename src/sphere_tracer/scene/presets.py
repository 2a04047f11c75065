"""Ready-made scenes.

Each factory clears the global scene, builds its spheres and materials
through a SceneManager, and returns the manager together with a matching
camera:

- single: one diffuse sphere in front of a pinhole camera
- showcase: diffuse, hollow glass and metal spheres on a large ground
  sphere, seen through a lens focused on the center sphere
- random: a large field of small random spheres around three feature
  spheres (the "final scene" layout)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sphere_tracer.scene.presets import create_showcase_scene
    >>> from sphere_tracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_showcase_scene(aspect_ratio=2.0)
    >>> setup_camera(camera)
"""

import logging
import math
from collections.abc import Callable

import numpy as np

from sphere_tracer.camera.thin_lens import ThinLensCamera
from sphere_tracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

ScenePreset = Callable[..., tuple[SceneManager, ThinLensCamera]]


def create_single_sphere_scene(aspect_ratio: float = 2.0) -> tuple[SceneManager, ThinLensCamera]:
    """Create a scene with one diffuse sphere.

    The sphere has radius 0.5, sits at (0, 0, -1) and has albedo
    (0.5, 0.5, 0.5). The camera is a pinhole at the origin looking down -z
    with a 90 degree vertical field of view.

    Args:
        aspect_ratio: Image width divided by height.

    Returns:
        A tuple of (scene_manager, camera).
    """
    scene = SceneManager()
    gray = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, gray)

    camera = ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
        aperture=0.0,
        focus_dist=1.0,
    )

    logger.debug("Built single sphere scene: %s", scene.summary())
    return scene, camera


def create_showcase_scene(aspect_ratio: float = 2.0) -> tuple[SceneManager, ThinLensCamera]:
    """Create the material showcase scene.

    Layout (all spheres of radius 0.5 on a large ground sphere):
    - center (0, 0, -1): diffuse blue
    - left (-1, 0, -1): glass with a radius -0.45 inner shell (hollow bubble)
    - right (1, 0, -1): brushed gold metal

    The camera looks from (3, 3, 2) at the center sphere with a 20 degree
    field of view and aperture 2, focused on the center sphere.

    Args:
        aspect_ratio: Image width divided by height.

    Returns:
        A tuple of (scene_manager, camera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
    center = scene.add_lambertian_material(albedo=(0.1, 0.2, 0.5))
    glass = scene.add_dielectric_material(ref_idx=1.5)
    gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    # Same material with a negative radius: inward normals make a thin shell
    scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)

    lookfrom = (3.0, 3.0, 2.0)
    lookat = (0.0, 0.0, -1.0)
    camera = ThinLensCamera(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=2.0,
        focus_dist=math.dist(lookfrom, lookat),
    )

    logger.debug("Built showcase scene: %s", scene.summary())
    return scene, camera


def create_random_scene(
    aspect_ratio: float = 1.5,
    seed: int | None = None,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the random sphere field.

    A grid of small spheres (radius 0.2) is jittered over
    a in [-11, 11), b in [-11, 11). Each is diffuse with probability 0.8,
    metal with probability 0.15 and glass otherwise; all glass spheres share
    one material. Spheres that would overlap the metal feature sphere are
    skipped. Three feature spheres of radius 1 sit in the middle: glass,
    diffuse brown and polished metal.

    Args:
        aspect_ratio: Image width divided by height.
        seed: Seed for numpy.random.default_rng. The same seed always builds
            the same scene.

    Returns:
        A tuple of (scene_manager, camera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    scene.add_sphere((0.0, -1000.0, 0.0), 1000.0, ground)

    glass = scene.add_dielectric_material(ref_idx=1.5)
    keep_clear = (4.0, 0.2, 0.0)

    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_mat = rng.random()
            center = (a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random())
            if math.dist(center, keep_clear) <= 0.9:
                continue

            if choose_mat < 0.8:
                albedo = tuple(float(x) for x in rng.random(3) * rng.random(3))
                scene.add_lambertian_sphere(center, 0.2, albedo)
            elif choose_mat < 0.95:
                albedo = tuple(float(x) for x in 0.5 * (1.0 + rng.random(3)))
                fuzz = float(0.5 * rng.random())
                scene.add_metal_sphere(center, 0.2, albedo, fuzz)
            else:
                scene.add_sphere(center, 0.2, glass)

    scene.add_sphere((0.0, 1.0, 0.0), 1.0, glass)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), 0.0)

    camera = ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )

    logger.debug("Built random scene (seed %s): %s", seed, scene.summary())
    return scene, camera


SCENE_PRESETS: dict[str, ScenePreset] = {
    "single": create_single_sphere_scene,
    "showcase": create_showcase_scene,
    "random": create_random_scene,
}


def build_scene(
    name: str,
    aspect_ratio: float,
    seed: int | None = None,
) -> tuple[SceneManager, ThinLensCamera]:
    """Build a preset by name.

    The seed only affects the random preset.

    Raises:
        ValueError: If name is not in SCENE_PRESETS.
    """
    if name not in SCENE_PRESETS:
        raise ValueError(f"Unknown scene {name!r}; choose from {sorted(SCENE_PRESETS)}")
    if name == "random":
        return create_random_scene(aspect_ratio, seed=seed)
    return SCENE_PRESETS[name](aspect_ratio)
