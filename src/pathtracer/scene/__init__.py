"""Scene module: primitive storage, closest-hit queries and scene building.

Components:
    intersection: Taichi-field primitive storage and intersect_scene
    manager: Host-side SceneManager with serialization
"""

from .intersection import (
    MAX_PLANES,
    MAX_QUADS,
    MAX_SPHERES,
    SceneHitRecord,
    add_plane,
    add_quad,
    add_sphere,
    clear_scene,
    get_plane_count,
    get_quad_count,
    get_sphere_count,
    intersect_scene,
)
from .manager import PlaneInfo, QuadInfo, SceneConfig, SceneManager, SphereInfo

__all__ = [
    "SceneHitRecord",
    "MAX_SPHERES",
    "MAX_PLANES",
    "MAX_QUADS",
    "add_sphere",
    "add_plane",
    "add_quad",
    "clear_scene",
    "get_sphere_count",
    "get_plane_count",
    "get_quad_count",
    "intersect_scene",
    "SceneManager",
    "SceneConfig",
    "SphereInfo",
    "PlaneInfo",
    "QuadInfo",
]
