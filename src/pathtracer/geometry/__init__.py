"""Geometry module for the sphere primitive.

Components:
    sphere: Sphere dataclass, HitRecord and ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) following the pattern:
    rec = hit_<shape>(ray_origin, ray_direction, shape, t_min, t_max)
where ``rec.hit`` flags whether the other fields are valid. New primitives
plug into the scene scan by providing a function with the same signature.
"""

from .sphere import HitRecord, Sphere, hit_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
]
