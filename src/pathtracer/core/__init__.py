"""Core rendering module.

Components:
    ray: Ray data structure and vector math (dot, reflect, refract, Schlick)
    sampling: Per-pixel random streams and rejection sampling
    integrator: Ray color loop, background and render kernels

All per-pixel work runs as Taichi functions in double precision.
"""

from .ray import (
    NEAR_ZERO_EPSILON,
    Ray,
    clamp,
    component_sqrt,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)
from .sampling import (
    MAX_STREAMS,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_range,
    random_real,
    random_unit_vector,
    random_vec,
    random_vec_range,
    seed_random_streams,
)

# Note: integrator is NOT imported here to avoid circular imports.
# Import it directly from pathtracer.core.integrator when needed.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "NEAR_ZERO_EPSILON",
    "dot",
    "cross",
    "length",
    "length_squared",
    "unit_vector",
    "clamp",
    "component_sqrt",
    "near_zero",
    "reflect",
    "refract",
    "schlick_reflectance",
    "MAX_STREAMS",
    "seed_random_streams",
    "random_real",
    "random_range",
    "random_vec",
    "random_vec_range",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
]
