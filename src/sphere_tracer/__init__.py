"""Taichi-based Monte Carlo path tracer for scenes of spheres.

This package renders spheres with three materials (Lambertian, metal and
dielectric) through a thin-lens camera, using Taichi kernels for all
per-pixel work:
- Reproducible seeded renders via per-pixel random streams
- Band-by-band rendering with progress logging and cancellation
- PPM (P3) and PNG output

Subpackages:
    core: Vector utilities, random streams, integrator and band renderer
    geometry: Sphere primitive and ray-sphere intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Sphere aggregate, scene manager and presets
    camera: Thin-lens camera with depth of field
    output: Gamma correction and image encoding

Taichi fields are declared at import time, so call ti.init() (or
config.init_taichi()) before importing the subpackages.
"""

__version__ = "0.1.0"
