"""Metal (specular reflective) material implementation.

The incoming direction is mirrored about the normal:
    R = V - 2(V . N)N

and then perturbed by ``fuzz * random_unit_vector()``. A fuzz of 0 gives a
perfect mirror. If the perturbation pushes the direction below the surface the
ray is absorbed.

Example:
    >>> from pathtracer.materials.metal import Metal
    >>> gold = Metal(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
    >>> # Inside a kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal, stream
    >>> # )
"""

from dataclasses import dataclass

import taichi as ti

from pathtracer.core.ray import dot, reflect, vec3
from pathtracer.core.sampling import random_unit_vector
from pathtracer.materials.lambertian import validate_albedo


@dataclass(frozen=True)
class Metal:
    """Metal material.

    Attributes:
        albedo: Reflective tint (R, G, B), each component in [0, 1].
        fuzz: Blur of the reflection. Clamped into [0, 1] on construction.
    """

    albedo: tuple[float, float, float]
    fuzz: float = 0.0

    def __post_init__(self) -> None:
        validate_albedo(self.albedo)
        object.__setattr__(self, "albedo", tuple(float(c) for c in self.albedo))
        object.__setattr__(self, "fuzz", min(max(float(self.fuzz), 0.0), 1.0))


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Scatter a ray off a metal surface.

    The random unit vector is drawn even when fuzz is 0, so every scatter
    consumes the same number of samples from the stream.

    Args:
        albedo: The reflective color.
        fuzz: Perturbation radius in [0, 1].
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal at the hit point.
        stream: Random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        did_scatter is 0 when the perturbed reflection points into the surface.
    """
    reflected = reflect(incident_direction, normal)
    scattered_direction = reflected + fuzz * random_unit_vector(stream)

    did_scatter = 0
    if dot(scattered_direction, normal) > 0.0:
        did_scatter = 1

    return scattered_direction, albedo, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

MAX_METAL_MATERIALS = 256

metal_albedos = ti.Vector.field(3, dtype=ti.f64, shape=MAX_METAL_MATERIALS)
metal_fuzz = ti.field(dtype=ti.f64, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials."""
    num_metal_materials[None] = 0


def add_metal_material(material: Metal) -> int:
    """Upload a metal material into the registry.

    Args:
        material: The material to store.

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_albedos[idx] = material.albedo
    metal_fuzz[idx] = material.fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Scatter off the metal material stored at ``material_idx``."""
    direction, attenuation, did_scatter = scatter_metal(
        metal_albedos[material_idx],
        metal_fuzz[material_idx],
        incident_direction,
        normal,
        stream,
    )
    return direction, attenuation, did_scatter
