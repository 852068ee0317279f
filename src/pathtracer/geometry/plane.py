"""Infinite plane primitive.

A plane is stored as a unit normal and any point on it. The ray parameter at
the intersection solves

    (origin + mu * direction - pos) . normal = 0

A ray parallel to the plane divides by zero; the resulting infinite or NaN
distance fails the ``mu > 0`` finite test and is reported as a miss.
"""

import taichi as ti
import taichi.math as tm

from .sphere import HitRecord, make_miss

vec3 = tm.vec3


@ti.dataclass
class Plane:
    """An infinite plane.

    Attributes:
        normal: Unit normal of the plane (vec3).
        pos: Any point on the plane (vec3).
    """

    normal: vec3
    pos: vec3


@ti.func
def hit_plane(ray_origin: vec3, ray_direction: vec3, plane: Plane) -> HitRecord:
    """Test for ray-plane intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        plane: The plane to test intersection against.

    Returns:
        A HitRecord whose normal opposes the ray direction.
    """
    denom = tm.dot(ray_direction, plane.normal)
    mu = -tm.dot(ray_origin - plane.pos, plane.normal) / denom

    result = make_miss()
    if mu > 0.0 and not tm.isinf(mu) and not tm.isnan(mu):
        hit_normal = plane.normal
        front_face = 1
        if denom > 0.0:
            hit_normal = -plane.normal
            front_face = 0
        result = HitRecord(
            hit=1,
            t=mu,
            point=ray_origin + mu * ray_direction,
            normal=hit_normal,
            front_face=front_face,
        )

    return result


@ti.func
def make_plane(normal: vec3, pos: vec3) -> Plane:
    """Create a plane from a unit normal and a point on it."""
    return Plane(normal=normal, pos=pos)
