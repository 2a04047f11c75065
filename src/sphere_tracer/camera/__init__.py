"""Camera module for primary ray generation.

Components:
    thin_lens: Thin-lens camera with field of view, orientation and depth of
        field (an aperture of 0 reduces it to a pinhole camera)

Camera responsibilities:
    - Build an orthonormal basis from lookfrom, lookat and vup
    - Place the viewport on the focal plane
    - Map (s, t) image coordinates plus a lens sample to a world-space ray

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import (
    ThinLensCamera,
    generate_ray,
    get_camera_info,
    get_ray,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "setup_camera",
    "get_ray",
    "generate_ray",
    "get_camera_info",
]
