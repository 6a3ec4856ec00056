"""Thin-lens camera model for primary ray generation.

The camera supports:
- Look-at positioning (look_from, look_at, vup)
- Vertical field of view in degrees
- Arbitrary aspect ratios (the image height is derived from the width)
- Jittered sampling inside each pixel for anti-aliasing
- Defocus blur by sampling ray origins on a disk around the camera center

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from look_at toward look_from (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits at ``focus_dist`` in front of the camera. Pixel (0, 0) is the
upper-left pixel, and pixel rows advance downwards.

Geometry is computed once on the host with NumPy and uploaded into 0-D Taichi
fields; get_ray() reads those fields inside kernels.

Example:
    >>> from pathtracer.camera.camera import Camera, CameraConfig
    >>> from pathtracer.scene.demo import create_demo_scene
    >>> camera = Camera(CameraConfig(image_width=400, samples_per_pixel=10))
    >>> pixels = camera.render(create_demo_scene())
    >>> pixels.shape
    (225, 400, 3)
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti

from pathtracer.core.ray import Ray, make_ray, vec3
from pathtracer.core.sampling import random_in_unit_disk, random_real

if TYPE_CHECKING:
    from pathtracer.scene.manager import Scene

logger = logging.getLogger(__name__)

# Progress callback signature: (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]


# =============================================================================
# Camera Configuration
# =============================================================================


@dataclass
class CameraConfig:
    """All options that control a render.

    Attributes:
        image_width: Rendered image width in pixels.
        aspect_ratio: Image width over height.
        vfov: Vertical field of view in degrees, in (0, 180).
        look_from: Camera position in world space.
        look_at: Point the camera looks at.
        vup: Up direction used to orient the camera.
        defocus_angle: Cone angle in degrees of rays through each pixel;
            0 disables defocus blur.
        focus_dist: Distance from the camera to the plane of perfect focus.
        samples_per_pixel: Number of random samples averaged per pixel.
        max_depth: Maximum number of ray bounces.
        seed: Seed for the per-pixel random streams.
        parallel: Let Taichi process pixels in parallel. The image is the
            same either way.
    """

    image_width: int = 512
    aspect_ratio: float = 16.0 / 9.0
    vfov: float = 90.0
    look_from: tuple[float, float, float] = (0.0, 0.0, 0.0)
    look_at: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    defocus_angle: float = 0.0
    focus_dist: float = 10.0
    samples_per_pixel: int = 100
    max_depth: int = 50
    seed: int = 0
    parallel: bool = False

    def __post_init__(self) -> None:
        if self.image_width <= 0:
            raise ValueError(f"image_width must be positive, got {self.image_width}")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if self.defocus_angle < 0.0:
            raise ValueError(f"defocus_angle must be non-negative, got {self.defocus_angle}")
        if self.focus_dist <= 0.0:
            raise ValueError(f"focus_dist must be positive, got {self.focus_dist}")
        if self.samples_per_pixel <= 0:
            raise ValueError(
                f"samples_per_pixel must be positive, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")

        view = np.subtract(self.look_from, self.look_at, dtype=np.float64)
        if not np.any(view):
            raise ValueError("look_from and look_at must differ")
        if np.linalg.norm(np.cross(np.asarray(self.vup, dtype=np.float64), view)) == 0.0:
            raise ValueError("vup must not be parallel to the view direction")


@dataclass(frozen=True)
class CameraGeometry:
    """Derived camera quantities, computed once per configuration.

    All vectors are float64 NumPy arrays of shape (3,).
    """

    image_width: int
    image_height: int
    center: np.ndarray
    u: np.ndarray
    v: np.ndarray
    w: np.ndarray
    viewport_width: float
    viewport_height: float
    viewport_u: np.ndarray
    viewport_v: np.ndarray
    pixel_delta_u: np.ndarray
    pixel_delta_v: np.ndarray
    viewport_upper_left: np.ndarray
    pixel00: np.ndarray
    defocus_angle: float
    defocus_radius: float
    defocus_disk_u: np.ndarray
    defocus_disk_v: np.ndarray


def _unit(v: np.ndarray) -> np.ndarray:
    return v / np.linalg.norm(v)


def compute_camera_geometry(config: CameraConfig) -> CameraGeometry:
    """Derive the viewport and basis vectors from a configuration.

    Args:
        config: A validated camera configuration.

    Returns:
        The CameraGeometry for this configuration.
    """
    image_width = int(config.image_width)
    image_height = max(1, int(image_width / config.aspect_ratio))

    center = np.asarray(config.look_from, dtype=np.float64)
    look_at = np.asarray(config.look_at, dtype=np.float64)
    vup = np.asarray(config.vup, dtype=np.float64)

    # Viewport dimensions at the focus distance
    theta = math.radians(config.vfov)
    h = math.tan(theta / 2.0)
    viewport_height = 2.0 * h * config.focus_dist
    viewport_width = viewport_height * (image_width / image_height)

    # Orthonormal camera frame
    w = _unit(center - look_at)
    u = _unit(np.cross(vup, w))
    v = np.cross(w, u)

    # Vectors across the horizontal and down the vertical viewport edges
    viewport_u = viewport_width * u
    viewport_v = viewport_height * -v

    pixel_delta_u = viewport_u / image_width
    pixel_delta_v = viewport_v / image_height

    viewport_upper_left = center - config.focus_dist * w - viewport_u / 2.0 - viewport_v / 2.0
    pixel00 = viewport_upper_left + 0.5 * (pixel_delta_u + pixel_delta_v)

    defocus_radius = config.focus_dist * math.tan(math.radians(config.defocus_angle / 2.0))

    return CameraGeometry(
        image_width=image_width,
        image_height=image_height,
        center=center,
        u=u,
        v=v,
        w=w,
        viewport_width=viewport_width,
        viewport_height=viewport_height,
        viewport_u=viewport_u,
        viewport_v=viewport_v,
        pixel_delta_u=pixel_delta_u,
        pixel_delta_v=pixel_delta_v,
        viewport_upper_left=viewport_upper_left,
        pixel00=pixel00,
        defocus_angle=float(config.defocus_angle),
        defocus_radius=defocus_radius,
        defocus_disk_u=u * defocus_radius,
        defocus_disk_v=v * defocus_radius,
    )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_center = ti.Vector.field(3, dtype=ti.f64, shape=())
_pixel00 = ti.Vector.field(3, dtype=ti.f64, shape=())
_pixel_delta_u = ti.Vector.field(3, dtype=ti.f64, shape=())
_pixel_delta_v = ti.Vector.field(3, dtype=ti.f64, shape=())
_defocus_disk_u = ti.Vector.field(3, dtype=ti.f64, shape=())
_defocus_disk_v = ti.Vector.field(3, dtype=ti.f64, shape=())
_defocus_angle = ti.field(dtype=ti.f64, shape=())


def setup_camera(geometry: CameraGeometry) -> None:
    """Upload camera geometry into the Taichi fields read by get_ray().

    Must be called from Python, before any kernel that generates camera rays.
    """
    _camera_center[None] = geometry.center.tolist()
    _pixel00[None] = geometry.pixel00.tolist()
    _pixel_delta_u[None] = geometry.pixel_delta_u.tolist()
    _pixel_delta_v[None] = geometry.pixel_delta_v.tolist()
    _defocus_disk_u[None] = geometry.defocus_disk_u.tolist()
    _defocus_disk_v[None] = geometry.defocus_disk_v.tolist()
    _defocus_angle[None] = geometry.defocus_angle

    logger.debug(
        "Camera %dx%d: viewport %.4f x %.4f, pixel00=%s, defocus_radius=%.4f",
        geometry.image_width,
        geometry.image_height,
        geometry.viewport_width,
        geometry.viewport_height,
        np.array2string(geometry.pixel00, precision=4),
        geometry.defocus_radius,
    )


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def defocus_disk_sample(stream: ti.i32) -> vec3:
    """Return a random point on the camera defocus disk."""
    p = random_in_unit_disk(stream)
    return _camera_center[None] + p.x * _defocus_disk_u[None] + p.y * _defocus_disk_v[None]


@ti.func
def get_ray(i: ti.i32, j: ti.i32, stream: ti.i32) -> Ray:
    """Generate a jittered camera ray through pixel column i, row j.

    The sample point is the pixel center offset by a uniform fraction in
    [-0.5, 0.5) of the pixel deltas. With defocus blur enabled the origin is
    drawn from the defocus disk after the jitter.

    Args:
        i: Pixel column (0 = left).
        j: Pixel row (0 = top).
        stream: Random stream to draw from.

    Returns:
        A ray from the camera (or defocus disk) towards the sample point. The
        direction is not normalized.
    """
    pixel_center = _pixel00[None] + i * _pixel_delta_u[None] + j * _pixel_delta_v[None]

    px = -0.5 + random_real(stream)
    py = -0.5 + random_real(stream)
    pixel_sample = pixel_center + px * _pixel_delta_u[None] + py * _pixel_delta_v[None]

    ray_origin = _camera_center[None]
    if _defocus_angle[None] > 0.0:
        ray_origin = defocus_disk_sample(stream)

    return make_ray(ray_origin, pixel_sample - ray_origin)


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with center, pixel00, pixel_delta_u, pixel_delta_v,
        defocus_disk_u and defocus_disk_v.
    """
    fields = {
        "center": _camera_center,
        "pixel00": _pixel00,
        "pixel_delta_u": _pixel_delta_u,
        "pixel_delta_v": _pixel_delta_v,
        "defocus_disk_u": _defocus_disk_u,
        "defocus_disk_v": _defocus_disk_v,
    }
    info = {}
    for name, field in fields.items():
        vec = field.to_numpy()
        info[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
    return info


# =============================================================================
# Camera
# =============================================================================


class Camera:
    """A configured camera that renders scenes into pixel buffers.

    Attributes:
        config: The render options.
        geometry: Quantities derived from the config.
    """

    def __init__(self, config: CameraConfig | None = None) -> None:
        self.config = config if config is not None else CameraConfig()
        self.geometry = compute_camera_geometry(self.config)

    @property
    def image_width(self) -> int:
        return self.geometry.image_width

    @property
    def image_height(self) -> int:
        return self.geometry.image_height

    def render(self, scene: "Scene", progress: ProgressCallback | None = None) -> np.ndarray:
        """Render a scene.

        Args:
            scene: The Scene to render.
            progress: Optional callback receiving (rows_done, total_rows)
                after each image row.

        Returns:
            A uint8 array of shape (image_height, image_width, 3); row 0 is
            the top of the image.

        Raises:
            ValueError: If the image exceeds the pre-allocated buffers.
        """
        # Imported here to avoid a circular import with the integrator
        from pathtracer.core.integrator import render_image

        return render_image(self, scene, progress=progress)
