"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface scatters towards ``normal + random_unit_vector()``, which
distributes outgoing directions with a cosine falloff around the normal. The
surface always scatters and tints the light by its albedo.

When the random unit vector nearly cancels the normal, the sum is close to the
zero vector and would produce a degenerate ray; the normal itself is used
instead.

Example:
    >>> from pathtracer.materials.lambertian import Lambertian, scatter_lambertian
    >>> grey = Lambertian(albedo=(0.5, 0.5, 0.5))
    >>> # Inside a kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian(albedo, normal, stream)
"""

from dataclasses import dataclass

import taichi as ti

from pathtracer.core.ray import near_zero, vec3
from pathtracer.core.sampling import random_unit_vector


def validate_albedo(albedo: tuple[float, float, float]) -> None:
    """Check that every albedo component lies in [0, 1].

    Raises:
        ValueError: If the albedo does not have three components or any
            component is outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


@dataclass(frozen=True)
class Lambertian:
    """Lambertian (ideal diffuse) material.

    Instances are immutable and may be shared by any number of spheres.

    Attributes:
        albedo: Diffuse reflectance (R, G, B), each component in [0, 1].
    """

    albedo: tuple[float, float, float]

    def __post_init__(self) -> None:
        validate_albedo(self.albedo)
        object.__setattr__(self, "albedo", tuple(float(c) for c in self.albedo))


@ti.func
def lambertian_direction(normal: vec3, random_vector: vec3) -> vec3:
    """Combine the normal with a random unit vector into a scatter direction.

    Returns ``normal + random_vector``, or the normal itself when that sum is
    near zero.
    """
    scattered_direction = normal + random_vector

    # Catch degenerate scatter direction
    if near_zero(scattered_direction) == 1:
        scattered_direction = normal

    return scattered_direction


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, stream: ti.i32):
    """Scatter a ray off a Lambertian surface.

    Args:
        albedo: The diffuse reflectance color.
        normal: The unit surface normal at the hit point.
        stream: Random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter); did_scatter
        is always 1.
    """
    scattered_direction = lambertian_direction(normal, random_unit_vector(stream))
    did_scatter = 1
    return scattered_direction, albedo, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 256

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f64, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(material: Lambertian) -> int:
    """Upload a Lambertian material into the registry.

    Args:
        material: The material to store.

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = material.albedo
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, normal: vec3, stream: ti.i32):
    """Scatter off the Lambertian material stored at ``material_idx``."""
    direction, attenuation, did_scatter = scatter_lambertian(
        lambertian_albedos[material_idx], normal, stream
    )
    return direction, attenuation, did_scatter
