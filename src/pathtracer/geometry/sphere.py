"""Sphere primitive with ray-sphere intersection.

The intersection solves ``|origin + t * direction - center|^2 = radius^2`` with
the half-b form of the quadratic formula. The nearer root is tried first and
the farther root second; each must lie inside the caller's [t_min, t_max]
interval, bounds included.

A negative radius is allowed. The outward normal is computed as
``(point - center) / radius``, so a negative radius turns the surface inside
out; placing such a sphere inside a glass sphere models a hollow bubble.
Degenerate inputs (zero radius, zero-length direction) are not guarded and
produce NaN or infinite values.

Example:
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere, vec3
    >>> # Inside a kernel:
    >>> # rec = hit_sphere(origin, direction, Sphere(center=vec3(0.0, 0.0, -1.0), radius=0.5), 0.001, 1e9)
"""

import taichi as ti

from pathtracer.core.ray import dot, length_squared, vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere.
        radius: The radius; negative values flip the outward normal.
    """

    center: vec3
    radius: ti.f64


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: 1 if the ray intersected the sphere inside the interval, 0 otherwise.
        t: Ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: Unit surface normal, always facing against the incoming ray.
            Only valid if hit == 1.
        front_face: 1 if the ray hit the outward side of the surface, 0 if it
            hit from inside. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def _in_interval(t: ti.f64, t_min: ti.f64, t_max: ti.f64) -> ti.i32:
    result = 0
    if t >= t_min and t <= t_max:
        result = 1
    return result


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f64,
    t_max: ti.f64,
) -> HitRecord:
    """Intersect a ray with a sphere.

    With ``oc = origin - center`` the coefficients are:
        a = dot(direction, direction)
        half_b = dot(oc, direction)
        c = dot(oc, oc) - radius^2
        discriminant = half_b^2 - a*c

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).
        sphere: The sphere to test.
        t_min: Smallest accepted ray parameter (inclusive).
        t_max: Largest accepted ray parameter (inclusive).

    Returns:
        A HitRecord; check its hit field before reading the others.
    """
    oc = ray_origin - sphere.center
    a = length_squared(ray_direction)
    half_b = dot(oc, ray_direction)
    c = length_squared(oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    # Taichi requires outer-scope declaration of the result fields
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        root = (-half_b - sqrt_d) / a
        valid = _in_interval(root, t_min, t_max)
        if valid == 0:
            root = (-half_b + sqrt_d) / a
            valid = _in_interval(root, t_min, t_max)

        if valid == 1:
            did_hit = 1
            hit_t = root
            hit_point = ray_origin + root * ray_direction

            outward_normal = (hit_point - sphere.center) / sphere.radius
            if dot(ray_direction, outward_normal) < 0.0:
                is_front_face = 1
                hit_normal = outward_normal
            else:
                is_front_face = 0
                hit_normal = -outward_normal

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )
