"""Scene module: sphere storage, material arena and nearest-hit queries.

Components:
    intersection: Sphere fields and the intersect_scene() linear scan
    manager: Scene container, MaterialType dispatch table and HitInfo queries
    demo: Reference three-sphere scene used by the example driver

Scene data is organized for Taichi kernels:
    - Structure-of-Arrays layout for sphere data
    - A unified material id per material, mapped to a type and a
      type-local registry index
"""

from .demo import create_demo_scene
from .intersection import (
    MAX_SPHERES,
    T_MIN,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    HitInfo,
    MaterialType,
    Scene,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    "T_MIN",
    # Manager module
    "Scene",
    "HitInfo",
    "SphereInfo",
    "MaterialType",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Demo scene
    "create_demo_scene",
]
