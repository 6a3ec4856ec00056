"""Dielectric (glass/water) material implementation.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when refraction_ratio * sin(theta) > 1

A dielectric never absorbs: it either reflects or refracts, choosing reflection
with the Schlick probability, and its attenuation is always white.

Example:
    >>> from pathtracer.materials.dielectric import Dielectric
    >>> glass = Dielectric(refractive_index=1.5)
    >>> # Inside a kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face, stream
    >>> # )
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import dot, reflect, refract, schlick_reflectance, unit_vector, vec3
from pathtracer.core.sampling import random_real


@dataclass(frozen=True)
class Dielectric:
    """Dielectric material.

    Attributes:
        refractive_index: Index of refraction (air 1.0, water 1.33, glass 1.5).
            Values below 1 are accepted and model an optically thinner
            inclusion, such as an air bubble in water.
    """

    refractive_index: float = 1.5

    def __post_init__(self) -> None:
        if self.refractive_index <= 0.0:
            raise ValueError(
                f"Index of refraction = {self.refractive_index} must be positive"
            )
        object.__setattr__(self, "refractive_index", float(self.refractive_index))


@ti.func
def refraction_ratio(ior: ti.f64, front_face: ti.i32) -> ti.f64:
    """Return 1/ior when entering the material and ior when leaving it."""
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def cannot_refract(ior: ti.f64, incident_direction: vec3, normal: vec3, front_face: ti.i32) -> ti.i32:
    """Check for total internal reflection.

    Returns:
        1 if refraction is impossible at this angle, 0 otherwise.
    """
    ratio = refraction_ratio(ior, front_face)
    unit_direction = unit_vector(incident_direction)
    cos_theta = tm.min(dot(-unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)
    result = 0
    if ratio * sin_theta > 1.0:
        result = 1
    return result


@ti.func
def scatter_dielectric(
    ior: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Scatter a ray through or off a dielectric surface.

    A uniform sample is drawn for every scatter, including under total
    internal reflection, so the stream advances by a fixed amount.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal facing against the ray.
        front_face: 1 if the ray enters the material, 0 if it leaves it.
        stream: Random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter); attenuation
        is white and did_scatter is always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    ratio = refraction_ratio(ior, front_face)

    unit_direction = unit_vector(incident_direction)
    cos_theta = tm.min(dot(-unit_direction, normal), 1.0)

    total_internal = cannot_refract(ior, incident_direction, normal, front_face)
    reflectance = schlick_reflectance(cos_theta, ratio)
    u = random_real(stream)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if total_internal == 1 or u < reflectance:
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, ratio)

    did_scatter = 1
    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

MAX_DIELECTRIC_MATERIALS = 256

dielectric_iors = ti.field(dtype=ti.f64, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(material: Dielectric) -> int:
    """Upload a dielectric material into the registry.

    Args:
        material: The material to store.

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = material.refractive_index
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Scatter off the dielectric material stored at ``material_idx``."""
    direction, attenuation, did_scatter = scatter_dielectric(
        dielectric_iors[material_idx], incident_direction, normal, front_face, stream
    )
    return direction, attenuation, did_scatter
