"""Materials module for light scattering.

Components:
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Glass-like refraction with Schlick reflectance

Each material type provides:
    - a frozen dataclass holding its parameters (host side)
    - scatter_<type>(): a Taichi function returning
      (scattered_direction, attenuation, did_scatter)
    - a parameter registry in Taichi fields plus scatter_<type>_by_id()

The scene assigns every registered material a unified id and records its type,
so the integrator can dispatch to the right scatter function.
"""

from typing import Union

from .dielectric import (
    Dielectric,
    add_dielectric_material,
    cannot_refract,
    clear_dielectric_materials,
    get_dielectric_material_count,
    refraction_ratio,
    scatter_dielectric,
    scatter_dielectric_by_id,
)
from .lambertian import (
    Lambertian,
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_material_count,
    lambertian_direction,
    scatter_lambertian,
    scatter_lambertian_by_id,
    validate_albedo,
)
from .metal import (
    Metal,
    add_metal_material,
    clear_metal_materials,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)

# Any material a sphere can carry
Material = Union[Lambertian, Metal, Dielectric]

__all__ = [
    "Material",
    "validate_albedo",
    # Lambertian
    "Lambertian",
    "lambertian_direction",
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    # Metal
    "Metal",
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    # Dielectric
    "Dielectric",
    "refraction_ratio",
    "cannot_refract",
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
]
