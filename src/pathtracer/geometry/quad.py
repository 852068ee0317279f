"""Parallelogram (quad) primitive with bounded planar intersection.

A quad is defined by:
- corner: one corner point
- dir_u, dir_v: unit directions of its two orthogonal edges
- len_u, len_v: the edge lengths
- normal: normalize(cross(dir_u, dir_v))

Ray-quad intersection first solves the plane through ``corner`` and then
projects the hit point (relative to the corner) onto each edge direction.
The ray hits when both projections lie within ``[0, len]``. Because the edges
are orthogonal, these projections are exactly the quad-local coordinates.

The frame is derived on the host by ``make_quad_frame`` when a quad is added
to the scene, so the kernel does no normalization per ray.

Example:
    >>> from pathtracer.geometry.quad import make_quad_frame
    >>> # Floor quad at y=0, spanning x=[0,2] and z=[0,1]
    >>> frame = make_quad_frame((0, 0, 0), (2, 0, 0), (0, 0, 1))
    >>> frame.len_u
    2.0
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from .sphere import HitRecord, make_miss

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Tolerance for the host-side orthogonality check on edge directions
ORTHOGONALITY_TOLERANCE = 1e-6


@ti.dataclass
class Quad:
    """A parallelogram with orthogonal edges.

    Attributes:
        corner: The corner point of the quad (vec3).
        dir_u: Unit direction of the first edge (vec3).
        dir_v: Unit direction of the second edge (vec3).
        len_u: Length of the first edge.
        len_v: Length of the second edge.
        normal: Unit normal, cross(dir_u, dir_v).
    """

    corner: vec3
    dir_u: vec3
    dir_v: vec3
    len_u: ti.f32
    len_v: ti.f32
    normal: vec3


@dataclass(frozen=True)
class QuadFrame:
    """Host-side quad frame, as stored in the scene fields."""

    corner: tuple[float, float, float]
    dir_u: tuple[float, float, float]
    dir_v: tuple[float, float, float]
    len_u: float
    len_v: float
    normal: tuple[float, float, float]


def make_quad_frame(
    corner: Sequence[float],
    edge_u: Sequence[float],
    edge_v: Sequence[float],
) -> QuadFrame:
    """Derive the normalized frame of a quad from its corner and edge vectors.

    Args:
        corner: The corner point.
        edge_u: Edge vector from the corner to one adjacent corner.
        edge_v: Edge vector from the corner to the other adjacent corner.

    Returns:
        The quad frame with unit edge directions, edge lengths and normal.

    Raises:
        ValueError: If an edge has zero length or the edges are not orthogonal.
    """
    u = np.asarray(edge_u, dtype=np.float64)
    v = np.asarray(edge_v, dtype=np.float64)
    len_u = float(np.linalg.norm(u))
    len_v = float(np.linalg.norm(v))
    if len_u < 1e-12 or len_v < 1e-12:
        raise ValueError(f"Quad edges must be non-zero, got {tuple(edge_u)} and {tuple(edge_v)}")

    dir_u = u / len_u
    dir_v = v / len_v
    if abs(float(np.dot(dir_u, dir_v))) > ORTHOGONALITY_TOLERANCE:
        raise ValueError(
            f"Quad edges must be orthogonal, got {tuple(edge_u)} and {tuple(edge_v)}"
        )

    normal = np.cross(dir_u, dir_v)
    normal = normal / np.linalg.norm(normal)

    return QuadFrame(
        corner=(float(corner[0]), float(corner[1]), float(corner[2])),
        dir_u=tuple(float(c) for c in dir_u),
        dir_v=tuple(float(c) for c in dir_v),
        len_u=len_u,
        len_v=len_v,
        normal=tuple(float(c) for c in normal),
    )


@ti.func
def hit_quad(ray_origin: vec3, ray_direction: vec3, quad: Quad) -> HitRecord:
    """Test for ray-quad intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        quad: The quad to test intersection against.

    Returns:
        A HitRecord whose normal opposes the ray direction (front and back
        faces are both hittable).
    """
    denom = tm.dot(ray_direction, quad.normal)
    t = -tm.dot(ray_origin - quad.corner, quad.normal) / denom

    result = make_miss()
    if t > 0.0 and not tm.isinf(t) and not tm.isnan(t):
        hit_point = ray_origin + t * ray_direction

        # Quad-local coordinates along each edge
        rel = hit_point - quad.corner
        alpha = tm.dot(rel, quad.dir_u)
        beta = tm.dot(rel, quad.dir_v)

        if alpha >= 0.0 and alpha <= quad.len_u and beta >= 0.0 and beta <= quad.len_v:
            hit_normal = quad.normal
            front_face = 1
            if denom > 0.0:
                # Ray hits back face (ray and normal point same direction)
                hit_normal = -quad.normal
                front_face = 0
            result = HitRecord(
                hit=1,
                t=t,
                point=hit_point,
                normal=hit_normal,
                front_face=front_face,
            )

    return result
