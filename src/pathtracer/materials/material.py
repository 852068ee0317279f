"""Surface material model and material registry.

A single material type describes every surface. Its parameters select, per
bounce, between a mirror bounce, a Fresnel-weighted transmission and a
rough/diffuse reflection (see ``pathtracer.materials.scatter``):

    albedo        diffuse reflectance, per channel in [0, 1]
    specular      tint applied to mirror bounces, per channel in [0, 1]
    specularity   probability of a mirror bounce, in [0, 1]
    emissive      radiance added when a path hits the surface, >= 0
    roughness     0 = mirror reflection, 1 = cosine-weighted diffuse
    fresnel_0     reflectance at normal incidence (Schlick), in [0, 1]
    transparency  fraction of albedo kept on transmission, in [0, 1]
    ior           refractive index; 0 marks an opaque surface that never
                  transmits

Materials are registered once in Taichi fields and referenced by integer id
from any number of primitives. They are never modified after registration.

Example:
    >>> from pathtracer.materials.material import add_material
    >>> glass = add_material(albedo=(1.0, 1.0, 1.0), fresnel_0=0.1,
    ...                      transparency=1.0, ior=1.2)
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class Material:
    """Surface optical response, as seen by the shading kernels."""

    albedo: vec3
    specular: vec3
    specularity: ti.f32
    emissive: vec3
    roughness: ti.f32
    fresnel_0: ti.f32
    transparency: ti.f32
    ior: ti.f32


@dataclass(frozen=True)
class MaterialInfo:
    """Host-side record of a registered material.

    Attributes:
        material_id: Index of the material in the registry.
        params: Read-only view of the parameters the material was created
            with. Colour values are stored as tuples.
    """

    material_id: int
    params: Mapping[str, Any]


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of materials in the scene
MAX_MATERIALS = 256

material_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_speculars = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_specularities = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_emissives = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_roughnesses = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_fresnel_0s = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_transparencies = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_iors = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _check_color(name: str, color: Sequence[float]) -> None:
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"{name} component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


def _check_unit(name: str, value: float) -> None:
    if value < 0.0 or value > 1.0:
        raise ValueError(f"{name} = {value} is outside [0, 1]")


def clear_materials() -> None:
    """Clear all materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def add_material(
    albedo: Sequence[float] = (0.0, 0.0, 0.0),
    specular: Sequence[float] = (0.0, 0.0, 0.0),
    specularity: float = 0.0,
    emissive: Sequence[float] = (0.0, 0.0, 0.0),
    roughness: float = 1.0,
    fresnel_0: float = 1.0,
    transparency: float = 0.0,
    ior: float = 0.0,
) -> int:
    """Add a material to the registry.

    The defaults describe a black, opaque, fully diffuse surface.

    Args:
        albedo: Diffuse reflectance as (R, G, B), each in [0, 1].
        specular: Mirror bounce tint as (R, G, B), each in [0, 1].
        specularity: Probability of a mirror bounce, in [0, 1].
        emissive: Emitted radiance as (R, G, B), each non-negative.
        roughness: 0 for a perfect mirror, 1 for fully diffuse.
        fresnel_0: Reflectance at normal incidence, in [0, 1].
        transparency: Fraction of albedo applied on transmission, in [0, 1].
        ior: Refractive index. 0 marks an opaque material.

    Returns:
        The id of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any parameter is out of range.
    """
    _check_color("Albedo", albedo)
    _check_color("Specular", specular)
    _check_unit("Specularity", specularity)
    _check_unit("Roughness", roughness)
    _check_unit("Fresnel reflectance", fresnel_0)
    _check_unit("Transparency", transparency)
    if len(emissive) != 3:
        raise ValueError(f"Emissive must have 3 components, got {len(emissive)}")
    for i, component in enumerate(emissive):
        if component < 0.0:
            raise ValueError(f"Emissive component {i} = {component} is negative")
    if ior < 0.0:
        raise ValueError(f"Refractive index = {ior} is negative (use 0 for opaque)")

    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    material_speculars[idx] = vec3(specular[0], specular[1], specular[2])
    material_specularities[idx] = specularity
    material_emissives[idx] = vec3(emissive[0], emissive[1], emissive[2])
    material_roughnesses[idx] = roughness
    material_fresnel_0s[idx] = fresnel_0
    material_transparencies[idx] = transparency
    material_iors[idx] = ior
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of materials in the registry."""
    return int(num_materials[None])


@ti.func
def get_material(material_id: ti.i32) -> Material:
    """Look up a registered material by id.

    Args:
        material_id: The index of the material in the registry.

    Returns:
        The Material record.
    """
    return Material(
        albedo=material_albedos[material_id],
        specular=material_speculars[material_id],
        specularity=material_specularities[material_id],
        emissive=material_emissives[material_id],
        roughness=material_roughnesses[material_id],
        fresnel_0=material_fresnel_0s[material_id],
        transparency=material_transparencies[material_id],
        ior=material_iors[material_id],
    )
