"""Core rendering module.

Components:
    ray: Path ray structure, vector helpers and hemisphere sampling
    sampler: Counter-based random number generation
    transform: 4x4 homogeneous transforms and look-at orientation
    config: Render settings and their validation
    integrator: Path tracing kernels and the render target
    renderer: Column-tiled render driver with progress reporting
"""

from .config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, ConfigurationError, RenderSettings
from .ray import (
    N_AIR,
    Ray,
    build_onb_from_normal,
    cross,
    dot,
    length,
    length_squared,
    local_to_world,
    make_ray,
    normalize,
    random_cosine_direction,
    random_in_hemisphere,
    random_unit_vector,
    ray_at,
    reflect,
    sample_cosine_hemisphere,
    vec3,
)

# integrator and renderer declare Taichi fields on import, so they are imported
# directly after ti.init().

__all__ = [
    "ConfigurationError",
    "RenderSettings",
    "MAX_IMAGE_WIDTH",
    "MAX_IMAGE_HEIGHT",
    "N_AIR",
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "random_unit_vector",
    "random_in_hemisphere",
    "random_cosine_direction",
    "build_onb_from_normal",
    "local_to_world",
    "sample_cosine_hemisphere",
]
