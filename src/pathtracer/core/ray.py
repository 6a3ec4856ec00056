"""Ray data structure and vector utilities.

This module provides the Ray dataclass and the vector helpers used across the
renderer. The same 3-component float64 vector type serves as point, direction
and color. All helpers are Taichi functions and must be called from kernels.

Example:
    >>> import taichi as ti
    >>> from pathtracer.runtime import init_taichi
    >>> init_taichi("cpu")
    >>> from pathtracer.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def probe() -> vec3:
    ...     ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -1.0))
    ...     return ray_at(ray, 5.0)
"""

import taichi as ti
import taichi.math as tm

# 3-component double precision vector: point, direction or RGB color
vec3 = ti.types.vector(3, ti.f64)

# Threshold below which every component counts as zero
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction of the ray. Not required to be normalized;
            a zero direction is accepted and produces NaN downstream.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f64) -> vec3:
    """Compute the point ``origin + t * direction``."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> ti.f64:
    return a.x * b.x + a.y * b.y + a.z * b.z


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return vec3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


@ti.func
def length_squared(v: vec3) -> ti.f64:
    return dot(v, v)


@ti.func
def length(v: vec3) -> ti.f64:
    return ti.sqrt(length_squared(v))


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Normalize a vector by dividing it by its length.

    A zero-length input yields NaN components; callers that can produce zero
    vectors guard with near_zero() first.
    """
    return v / length(v)


@ti.func
def clamp(v: vec3, lo: ti.f64, hi: ti.f64) -> vec3:
    """Clamp each component of v into [lo, hi]."""
    return tm.clamp(v, lo, hi)


@ti.func
def component_sqrt(v: vec3) -> vec3:
    """Componentwise square root, used for gamma-2 correction."""
    return vec3(ti.sqrt(v.x), ti.sqrt(v.y), ti.sqrt(v.z))


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check whether every component of v is close to zero.

    The comparison is signed: a component counts as near zero when it is
    below NEAR_ZERO_EPSILON, so any vector whose components are all negative
    (for example (-1, -1, -1)) is reported as near zero. Lambertian scattering
    then falls back to the surface normal for such directions.

    Returns:
        1 if all components are below NEAR_ZERO_EPSILON, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    result = 0
    if v.x < s and v.y < s and v.z < s:
        result = 1
    return result


@ti.func
def reflect(v: vec3, normal: vec3) -> vec3:
    """Mirror v about a unit normal: ``v - 2 * dot(v, n) * n``."""
    return v - 2.0 * dot(v, normal) * normal


@ti.func
def refract(uv: vec3, normal: vec3, etai_over_etat: ti.f64) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The refracted direction is built from its components perpendicular and
    parallel to the normal. The caller is responsible for ruling out total
    internal reflection beforehand.

    Args:
        uv: The incoming direction (unit length).
        normal: The unit surface normal facing against uv.
        etai_over_etat: Ratio of refractive indices, incident over transmitted.

    Returns:
        The refracted direction.
    """
    cos_theta = tm.min(dot(-uv, normal), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * normal)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f64, ref_idx: ti.f64) -> ti.f64:
    """Approximate Fresnel reflectance with Schlick's polynomial.

    Args:
        cosine: Cosine of the angle between the incoming ray and the normal.
        ref_idx: Refraction ratio at the interface.

    Returns:
        ``r0 + (1 - r0) * (1 - cosine)^5`` with ``r0 = ((1 - ref) / (1 + ref))^2``.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)
