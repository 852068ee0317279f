"""Materials module: surface description and scattering.

Components:
    material: The Material record and the Taichi-field material registry
    scatter: Per-bounce event selection (mirror, transmission, rough
        reflection), Schlick Fresnel weighting and refraction

Materials are immutable once registered and shared by id between any
number of primitives.
"""

from .material import (
    MAX_MATERIALS,
    Material,
    MaterialInfo,
    add_material,
    clear_materials,
    get_material,
    get_material_count,
)
from .scatter import (
    RAY_EPSILON,
    reflect_rough,
    refract,
    scatter,
    schlick_fresnel,
)

__all__ = [
    "Material",
    "MaterialInfo",
    "MAX_MATERIALS",
    "add_material",
    "clear_materials",
    "get_material",
    "get_material_count",
    "RAY_EPSILON",
    "schlick_fresnel",
    "reflect_rough",
    "refract",
    "scatter",
]
