"""Taichi path tracer for scenes made of spheres.

This package renders images by tracing rays through a linearly scanned list of
spheres with Lambertian, metal and dielectric materials. All per-pixel work runs
in double precision Taichi kernels.

Subpackages:
    core: Ray and vector utilities, random streams, and the color integrator
    geometry: Sphere primitive and ray-sphere intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Scene container, material arena and nearest-hit query
    camera: Thin-lens camera configuration, ray generation and rendering
    preview: PNG export of rendered pixel buffers

Taichi must be initialised (see ``pathtracer.runtime.init_taichi``) before any
subpackage that declares Taichi fields is imported.
"""

__version__ = "0.1.0"
