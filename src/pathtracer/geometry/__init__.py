"""Geometry module for shape primitives.

This module provides geometric primitives and their intersection routines:

Components:
    sphere: Sphere primitive and the shared HitRecord
    plane: Infinite plane primitive
    quad: Bounded parallelogram with orthogonal edges
    cube: Factory producing the six quads of an axis-aligned cube

All intersection routines are Taichi functions (@ti.func) sharing one
contract:

    record = hit_<shape>(ray_origin, ray_direction, shape)

The returned normal always faces the incoming ray, and a miss is any record
with hit == 0.
"""

from .cube import cube_faces
from .plane import Plane, hit_plane, make_plane
from .quad import Quad, QuadFrame, hit_quad, make_quad_frame
from .sphere import HitRecord, Sphere, hit_sphere, make_miss, make_sphere

__all__ = [
    "HitRecord",
    "make_miss",
    "Sphere",
    "hit_sphere",
    "make_sphere",
    "Plane",
    "hit_plane",
    "make_plane",
    "Quad",
    "QuadFrame",
    "hit_quad",
    "make_quad_frame",
    "cube_faces",
]
