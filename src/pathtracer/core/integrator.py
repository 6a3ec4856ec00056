"""Path tracing integrator.

This module turns camera rays into pixel colors. A path is traced with an
explicit loop that carries the attenuation gathered so far and the remaining
bounce budget:

    - bounce budget exhausted: return the attenuation (white light)
    - scene miss: return attenuation * sky gradient
    - hit: ask the material to scatter; absorbed paths return black,
      scattered paths continue from the hit point

Every pixel draws from its own random stream (``row * width + column``), so
the rendered image does not depend on the order Taichi visits pixels in.

Pixels are averaged over their samples, gamma corrected with a square root,
clamped to [0, 0.999] and scaled by 255.99 into 8-bit values.

Example:
    >>> from pathtracer.camera.camera import Camera, CameraConfig
    >>> from pathtracer.core.integrator import render_image, trace_ray
    >>> from pathtracer.scene.manager import Scene
    >>> scene = Scene()
    >>> trace_ray(scene, (0.0, 0.0, 0.0), (0.0, 1.0, 0.0))
    (0.5, 0.7, 1.0)
    >>> pixels = render_image(Camera(CameraConfig(image_width=64)), scene)
"""

import logging
import time

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.camera.camera import Camera, ProgressCallback, get_ray, setup_camera
from pathtracer.core.ray import clamp, component_sqrt, unit_vector, vec3
from pathtracer.core.sampling import seed_random_streams
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.intersection import T_MIN, intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    Scene,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Rendering Constants
# =============================================================================

# Sky gradient: white at the horizon blending into light blue overhead
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)

# Largest value kept after gamma correction, and the scale into 8 bits
MAX_INTENSITY = 0.999
COLOR_SCALE = 255.99

# =============================================================================
# Render Target (Image Buffers)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 1024
MAX_IMAGE_HEIGHT = 1024

# Averaged linear color per pixel, before gamma correction
_linear_buffer = ti.Vector.field(3, dtype=ti.f64, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Final 8-bit color per pixel
_pixel_buffer = ti.Vector.field(3, dtype=ti.u8, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# (width, height) of the last completed render
_rendered_size: tuple[int, int] | None = None


def _check_rendered() -> tuple[int, int]:
    if _rendered_size is None:
        raise RuntimeError("No image has been rendered yet. Call render_image() first.")
    return _rendered_size


def get_pixels() -> np.ndarray:
    """Get the last rendered image as 8-bit RGB.

    Returns:
        A uint8 array of shape (height, width, 3); row 0 is the top row.

    Raises:
        RuntimeError: If nothing has been rendered yet.
    """
    width, height = _check_rendered()
    # Buffers are indexed [column, row]; transpose to (row, column, channel)
    image = _pixel_buffer.to_numpy()[:width, :height, :]
    return np.ascontiguousarray(np.transpose(image, (1, 0, 2)))


def get_linear_image() -> np.ndarray:
    """Get the last rendered image as averaged linear color, before gamma.

    Returns:
        A float64 array of shape (height, width, 3).

    Raises:
        RuntimeError: If nothing has been rendered yet.
    """
    width, height = _check_rendered()
    image = _linear_buffer.to_numpy()[:width, :height, :]
    return np.ascontiguousarray(np.transpose(image, (1, 0, 2)))


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Dispatch to the scatter function of the material's type.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Unknown
        material ids absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, normal, stream
        )
    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal, stream
        )
    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face, stream
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky gradient seen by rays that miss every sphere.

    Blends linearly from white to (0.5, 0.7, 1.0) with the y component of
    the normalized direction.
    """
    unit_direction = unit_vector(direction)
    a = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - a) * SKY_HORIZON_COLOR + a * SKY_ZENITH_COLOR


@ti.func
def ray_color(ray_origin: vec3, ray_direction: vec3, max_depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the light arriving along a ray.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).
        max_depth: Number of bounces allowed before the path is cut off.
        stream: Random stream to draw from.

    Returns:
        The RGB color carried back along the ray.
    """
    origin = ray_origin
    direction = ray_direction

    # Product of the attenuations along the path
    throughput = vec3(1.0, 1.0, 1.0)
    color = vec3(0.0, 0.0, 0.0)

    # Taichi doesn't support break in ti.func loops
    active = 1

    for depth in range(max_depth + 1):
        if active == 1:
            if depth == max_depth:
                # Bounce budget exhausted: the path contributes white light
                color = throughput
                active = 0
            else:
                rec = intersect_scene(origin, direction, T_MIN, tm.inf)

                if rec.hit == 0:
                    color = throughput * background_color(direction)
                    active = 0
                else:
                    scattered_direction, attenuation, did_scatter = _scatter_material(
                        rec.material_id, direction, rec.normal, rec.front_face, stream
                    )

                    if did_scatter == 0:
                        color = vec3(0.0, 0.0, 0.0)
                        active = 0
                    else:
                        throughput *= attenuation
                        origin = rec.point
                        direction = scattered_direction

    return color


@ti.func
def _encode_pixel(linear: vec3):
    gamma = clamp(component_sqrt(linear), 0.0, MAX_INTENSITY)
    return ti.cast(gamma * COLOR_SCALE, ti.u8)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    serialize: ti.template(),
):
    """Render rows [row_start, row_end) into the image buffers.

    With serialize set, pixels are processed one at a time in raster order.
    """
    ti.loop_config(serialize=serialize)
    for j, i in ti.ndrange((row_start, row_end), width):
        stream = j * width + i
        total = vec3(0.0, 0.0, 0.0)
        for _ in range(samples_per_pixel):
            ray = get_ray(i, j, stream)
            total += ray_color(ray.origin, ray.direction, max_depth, stream)

        linear = total / ti.cast(samples_per_pixel, ti.f64)
        _linear_buffer[i, j] = linear
        _pixel_buffer[i, j] = _encode_pixel(linear)


@ti.kernel
def _trace_single(origin: vec3, direction: vec3, max_depth: ti.i32, stream: ti.i32) -> vec3:
    return ray_color(origin, direction, max_depth, stream)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_image(
    camera: Camera,
    scene: Scene,
    progress: ProgressCallback | None = None,
) -> np.ndarray:
    """Render a scene through a camera.

    Args:
        camera: The configured camera.
        scene: The scene to render; uploaded to Taichi if needed.
        progress: Optional callback receiving (rows_done, total_rows). When
            given, the image is rendered one row per kernel launch.

    Returns:
        A uint8 array of shape (height, width, 3); row 0 is the top row.

    Raises:
        ValueError: If the image exceeds MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT.
    """
    global _rendered_size

    config = camera.config
    width = camera.image_width
    height = camera.image_height
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    scene.ensure_uploaded()
    setup_camera(camera.geometry)
    seed_random_streams(config.seed, width * height)

    serialize = not config.parallel
    logger.info(
        "Rendering %dx%d image: %d spheres, %d samples per pixel, max depth %d%s",
        width,
        height,
        scene.get_sphere_count(),
        config.samples_per_pixel,
        config.max_depth,
        "" if serialize else " (parallel)",
    )
    start = time.perf_counter()

    # Invalidate the previous image while buffers are overwritten
    _rendered_size = None
    if progress is None:
        _render_rows(0, height, width, config.samples_per_pixel, config.max_depth, serialize)
    else:
        for row in range(height):
            _render_rows(
                row, row + 1, width, config.samples_per_pixel, config.max_depth, serialize
            )
            progress(row + 1, height)
    ti.sync()
    _rendered_size = (width, height)

    logger.info("Render completed in %.3f s", time.perf_counter() - start)
    return get_pixels()


def trace_ray(
    scene: Scene,
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = 50,
    stream: int = 0,
) -> tuple[float, float, float]:
    """Trace one ray through a scene and return its linear color.

    This is a Python-callable entry point for testing and debugging. It draws
    from the given random stream, which must have been seeded with
    seed_random_streams().

    Returns:
        Tuple of (R, G, B) color values.
    """
    scene.ensure_uploaded()
    color = _trace_single(vec3(*origin), vec3(*direction), max_depth, stream)
    return (float(color[0]), float(color[1]), float(color[2]))
