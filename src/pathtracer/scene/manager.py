"""Scene container coordinating spheres and materials.

The Scene keeps an ordered list of spheres and an arena of materials on the
Python side. Every registered material receives a unified material id; spheres
refer to materials by that id, so any number of spheres may share one material.

Taichi fields hold a single active scene at a time. ``Scene.upload()`` writes
the scene into the sphere fields, the per-type material registries and the
material tracking fields below, which map a unified id to its MaterialType and
to the index inside that type's registry. Queries and renders upload lazily
whenever a different scene (or a modified one) was uploaded last.

Example:
    >>> from pathtracer.scene.manager import Scene
    >>> from pathtracer.materials import Lambertian
    >>> scene = Scene()
    >>> red = scene.add_material(Lambertian(albedo=(0.8, 0.1, 0.1)))
    >>> scene.add_sphere((0.0, 0.0, -1.0), 0.5, red)
    >>> info = scene.hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
    >>> info.t
    0.5
"""

import itertools
import logging
import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

import taichi as ti

from pathtracer.core.ray import vec3
from pathtracer.materials import Material
from pathtracer.materials.dielectric import (
    MAX_DIELECTRIC_MATERIALS,
    Dielectric,
    add_dielectric_material,
    clear_dielectric_materials,
)
from pathtracer.materials.lambertian import (
    MAX_LAMBERTIAN_MATERIALS,
    Lambertian,
    add_lambertian_material,
    clear_lambertian_materials,
)
from pathtracer.materials.metal import (
    MAX_METAL_MATERIALS,
    Metal,
    add_metal_material,
    clear_metal_materials,
)
from pathtracer.scene.intersection import (
    MAX_SPHERES,
    T_MIN,
    add_sphere,
    clear_scene,
    intersect_scene,
)

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used by the integrator to pick the scatter function for a material id.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


_MATERIAL_TYPES: dict[type, MaterialType] = {
    Lambertian: MaterialType.LAMBERTIAN,
    Metal: MaterialType.METAL,
    Dielectric: MaterialType.DIELECTRIC,
}

_MATERIAL_CAPACITY: dict[MaterialType, int] = {
    MaterialType.LAMBERTIAN: MAX_LAMBERTIAN_MATERIALS,
    MaterialType.METAL: MAX_METAL_MATERIALS,
    MaterialType.DIELECTRIC: MAX_DIELECTRIC_MATERIALS,
}

# Maximum number of materials across all types
MAX_MATERIALS = MAX_LAMBERTIAN_MATERIALS + MAX_METAL_MATERIALS + MAX_DIELECTRIC_MATERIALS

# material_types[i] stores the MaterialType of material id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the index of material id i inside its type registry
# (e.g. if material id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())

# Results of a single host-side hit query
_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=ti.f64, shape=())
_query_point = ti.Vector.field(3, dtype=ti.f64, shape=())
_query_normal = ti.Vector.field(3, dtype=ti.f64, shape=())
_query_front_face = ti.field(dtype=ti.i32, shape=())
_query_material_id = ti.field(dtype=ti.i32, shape=())

# Identifies the (scene, revision) currently held by the Taichi fields
_active_upload: tuple[int, int] | None = None
_scene_serials = itertools.count()


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material id.

    Returns:
        The material type as an integer (see MaterialType), or -1 for an
        invalid material id.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the index of a material id inside its type-specific registry.

    Returns:
        The type-local index, or -1 for an invalid material id.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@ti.kernel
def _query_scene(origin: vec3, direction: vec3, t_min: ti.f64, t_max: ti.f64):
    rec = intersect_scene(origin, direction, t_min, t_max)
    _query_hit[None] = rec.hit
    _query_t[None] = rec.t
    _query_point[None] = rec.point
    _query_normal[None] = rec.normal
    _query_front_face[None] = rec.front_face
    _query_material_id[None] = rec.material_id


@dataclass(frozen=True)
class HitInfo:
    """Result of a host-side nearest-hit query.

    Attributes:
        point: The intersection point.
        normal: Unit normal facing against the query ray.
        t: Ray parameter of the intersection.
        front_face: True if the ray hit the outward side of the surface.
        material_id: Unified id of the sphere's material.
        material: The material object registered under material_id.
    """

    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    t: float
    front_face: bool
    material_id: int
    material: Material


@dataclass(frozen=True)
class SphereInfo:
    """A sphere as stored by the Scene.

    Attributes:
        center: The center of the sphere.
        radius: The radius; negative values turn the surface inside out.
        material_id: The unified material id assigned to the sphere.
    """

    center: tuple[float, float, float]
    radius: float
    material_id: int


def _as_triple(values: Any) -> tuple[float, float, float]:
    if len(values) != 3:
        raise ValueError(f"Expected 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


class Scene:
    """Ordered collection of spheres plus the materials they reference.

    Attributes:
        materials: Registered materials; the list index is the material id.
        spheres: Spheres in insertion order; intersection visits them in
            this order.

    Example:
        >>> scene = Scene()
        >>> glass = scene.add_dielectric_material(refractive_index=1.5)
        >>> scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
        >>> scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)  # hollow bubble
    """

    def __init__(self) -> None:
        self.materials: list[Material] = []
        self.spheres: list[SphereInfo] = []
        self._serial = next(_scene_serials)
        self._revision = 0

    def _touch(self) -> None:
        self._revision += 1

    def clear(self) -> None:
        """Remove all spheres and materials."""
        self.materials.clear()
        self.spheres.clear()
        self._touch()

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_material(self, material: Material) -> int:
        """Register a material and return its unified id.

        Registering the same object again returns the id it already has, so
        spheres sharing a material share one arena entry.

        Raises:
            ValueError: If the object is not a supported material type.
            RuntimeError: If the registry for its type is full.
        """
        for material_id, existing in enumerate(self.materials):
            if existing is material:
                return material_id

        material_type = _MATERIAL_TYPES.get(type(material))
        if material_type is None:
            raise ValueError(f"Unknown material type: {type(material).__name__}")

        same_type = sum(1 for m in self.materials if type(m) is type(material))
        if same_type >= _MATERIAL_CAPACITY[material_type]:
            raise RuntimeError(
                f"Maximum number of {material_type.name.lower()} materials "
                f"({_MATERIAL_CAPACITY[material_type]}) exceeded"
            )

        self.materials.append(material)
        self._touch()
        return len(self.materials) - 1

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a Lambertian (diffuse) material and return its id.

        Raises:
            ValueError: If any albedo component is outside [0, 1].
        """
        return self.add_material(Lambertian(albedo=albedo))

    def add_metal_material(self, albedo: tuple[float, float, float], fuzz: float = 0.0) -> int:
        """Add a metal material and return its id.

        Args:
            albedo: The reflective color, each component in [0, 1].
            fuzz: Reflection blur; clamped into [0, 1].

        Raises:
            ValueError: If any albedo component is outside [0, 1].
        """
        return self.add_material(Metal(albedo=albedo, fuzz=fuzz))

    def add_dielectric_material(self, refractive_index: float = 1.5) -> int:
        """Add a dielectric (glass/water) material and return its id.

        Raises:
            ValueError: If the refractive index is not positive.
        """
        return self.add_material(Dielectric(refractive_index=refractive_index))

    def get_material(self, material_id: int) -> Material:
        """Return the material registered under ``material_id``.

        Raises:
            ValueError: If no material has that id.
        """
        if not 0 <= material_id < len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")
        return self.materials[material_id]

    def get_material_type(self, material_id: int) -> MaterialType:
        """Return the MaterialType of a registered material."""
        return _MATERIAL_TYPES[type(self.get_material(material_id))]

    def get_material_count(self) -> int:
        """Get the number of registered materials."""
        return len(self.materials)

    # =========================================================================
    # Sphere Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material: int | Material,
    ) -> int:
        """Append a sphere to the scene.

        Args:
            center: The center point as (x, y, z).
            radius: The radius. Not validated; a negative radius flips the
                outward normal.
            material: A material id from add_*_material(), or a material
                object, which is registered on first use.

        Returns:
            The index of the added sphere.

        Raises:
            ValueError: If the material id is unknown.
            RuntimeError: If the maximum number of spheres is exceeded.
        """
        if isinstance(material, int):
            material_id = material
            if not 0 <= material_id < len(self.materials):
                raise ValueError(f"Invalid material_id: {material_id}")
        else:
            material_id = self.add_material(material)

        if len(self.spheres) >= MAX_SPHERES:
            raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

        self.spheres.append(
            SphereInfo(center=_as_triple(center), radius=float(radius), material_id=material_id)
        )
        self._touch()
        return len(self.spheres) - 1

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return len(self.spheres)

    # =========================================================================
    # Taichi Upload
    # =========================================================================

    def upload(self) -> None:
        """Write this scene into the Taichi fields, replacing the active scene."""
        global _active_upload

        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()

        for material_id, material in enumerate(self.materials):
            if isinstance(material, Lambertian):
                material_type = MaterialType.LAMBERTIAN
                type_index = add_lambertian_material(material)
            elif isinstance(material, Metal):
                material_type = MaterialType.METAL
                type_index = add_metal_material(material)
            else:
                material_type = MaterialType.DIELECTRIC
                type_index = add_dielectric_material(material)
            material_types[material_id] = int(material_type)
            material_type_indices[material_id] = type_index
        num_materials[None] = len(self.materials)

        for sphere in self.spheres:
            add_sphere(sphere.center, sphere.radius, sphere.material_id)

        _active_upload = (self._serial, self._revision)
        logger.debug(
            "Uploaded scene: %d spheres, %d materials", len(self.spheres), len(self.materials)
        )

    def ensure_uploaded(self) -> None:
        """Upload the scene unless the Taichi fields already hold this revision."""
        if _active_upload != (self._serial, self._revision):
            self.upload()

    # =========================================================================
    # Queries
    # =========================================================================

    def hit(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        t_min: float = T_MIN,
        t_max: float = math.inf,
    ) -> HitInfo | None:
        """Find the nearest sphere hit by a ray in [t_min, t_max].

        Returns:
            A HitInfo for the closest hit, or None if the ray hits nothing.
        """
        self.ensure_uploaded()
        _query_scene(vec3(*_as_triple(origin)), vec3(*_as_triple(direction)), t_min, t_max)

        if _query_hit[None] == 0:
            return None

        material_id = int(_query_material_id[None])
        return HitInfo(
            point=_as_triple(_query_point.to_numpy()),
            normal=_as_triple(_query_normal.to_numpy()),
            t=float(_query_t[None]),
            front_face=bool(_query_front_face[None]),
            material_id=material_id,
            material=self.materials[material_id],
        )

    # =========================================================================
    # Dictionary Form
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a plain dictionary.

        Returns:
            A dictionary with "materials" and "spheres" lists. Spheres refer to
            materials by their index in the "materials" list.
        """
        materials: list[dict[str, Any]] = []
        for material in self.materials:
            if isinstance(material, Lambertian):
                materials.append({"type": "lambertian", "albedo": list(material.albedo)})
            elif isinstance(material, Metal):
                materials.append(
                    {"type": "metal", "albedo": list(material.albedo), "fuzz": material.fuzz}
                )
            else:
                materials.append(
                    {"type": "dielectric", "refractive_index": material.refractive_index}
                )

        spheres = [
            {
                "center": list(sphere.center),
                "radius": sphere.radius,
                "material_id": sphere.material_id,
            }
            for sphere in self.spheres
        ]
        return {"materials": materials, "spheres": spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the scene contents with a dictionary produced by to_dict().

        Raises:
            ValueError: If a material type is unknown or a parameter is invalid.
        """
        self.clear()

        for mat_config in data.get("materials", []):
            mat_type = mat_config.get("type", "").lower()
            if mat_type == "lambertian":
                self.add_material(Lambertian(albedo=_as_triple(mat_config["albedo"])))
            elif mat_type == "metal":
                self.add_material(
                    Metal(
                        albedo=_as_triple(mat_config["albedo"]),
                        fuzz=mat_config.get("fuzz", 0.0),
                    )
                )
            elif mat_type == "dielectric":
                self.add_material(
                    Dielectric(refractive_index=mat_config.get("refractive_index", 1.5))
                )
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for sphere_config in data.get("spheres", []):
            self.add_sphere(
                sphere_config["center"],
                sphere_config["radius"],
                int(sphere_config["material_id"]),
            )

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES
