"""Pytest configuration for sphere_tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts. Debug mode turns
    kernel assertions (such as unit() on a zero vector) into errors.
    """
    ti.init(arch=ti.cpu, debug=True)
    yield
    # Note: We don't call ti.reset() here as it can cause issues
    # with subsequent tests if any cleanup happens after


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data before each test.

    This ensures tests are isolated from each other.
    """
    # Import here to ensure Taichi is initialized
    from sphere_tracer.core.integrator import reset_render_target
    from sphere_tracer.materials.dielectric import clear_dielectric_materials
    from sphere_tracer.materials.lambertian import clear_lambertian_materials
    from sphere_tracer.materials.metal import clear_metal_materials
    from sphere_tracer.scene.intersection import clear_scene
    from sphere_tracer.scene.manager import _clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        reset_render_target()

    # Clear everything before test
    _clear_all()

    yield

    # Clear everything after test
    _clear_all()


@pytest.fixture
def pinhole_camera():
    """A pinhole camera at the origin looking down -z with a 90 degree fov."""
    from sphere_tracer.camera.thin_lens import ThinLensCamera, setup_camera

    camera = ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=2.0,
    )
    setup_camera(camera)
    return camera
