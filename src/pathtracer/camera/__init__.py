"""Camera module for view configuration and ray generation.

Components:
    camera: CameraConfig options, derived CameraGeometry, thin-lens ray
        generation and the Camera.render() entry point

Camera responsibilities:
    - Derive the image height and viewport from the configuration
    - Jitter samples inside each pixel for anti-aliasing
    - Sample ray origins on the defocus disk for depth of field
"""

from .camera import (
    Camera,
    CameraConfig,
    CameraGeometry,
    ProgressCallback,
    compute_camera_geometry,
    defocus_disk_sample,
    get_camera_info,
    get_ray,
    setup_camera,
)

__all__ = [
    "Camera",
    "CameraConfig",
    "CameraGeometry",
    "ProgressCallback",
    "compute_camera_geometry",
    "setup_camera",
    "get_ray",
    "defocus_disk_sample",
    "get_camera_info",
]
