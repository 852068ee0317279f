"""Sphere primitive with closed-form ray-sphere intersection.

This module provides a Sphere dataclass, the HitRecord shared by every
primitive, and the sphere intersection routine.

For a unit-length ray direction the intersection distances solve

    |origin + t * direction - center|^2 = radius^2

which, with dp = origin - center and b = direction . dp, gives

    t = -b -/+ sqrt(b^2 - (|dp|^2 - radius^2))

The nearer root is preferred. When it lies behind the origin the ray starts
inside the sphere: the farther root is used and the normal is flipped so it
still faces the incoming ray.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: Distance along the ray to the intersection. Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: Unit surface normal at the intersection point, always
            oriented against the incoming ray. Only valid if hit == 1.
        front_face: 1 if the ray struck the outward side of the surface,
            0 if it came from inside (or from behind). Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def make_miss() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )


@ti.func
def hit_sphere(ray_origin: vec3, ray_direction: vec3, sphere: Sphere) -> HitRecord:
    """Test for ray-sphere intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        sphere: The sphere to test intersection against.

    Returns:
        A HitRecord. Roots at or behind the ray origin are reported as a miss.
    """
    dp = ray_origin - sphere.center
    b = tm.dot(ray_direction, dp)
    discriminant = b * b - (tm.dot(dp, dp) - sphere.radius * sphere.radius)

    # Initialize result fields (Taichi requires outer-scope declaration)
    result = make_miss()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t = -b - sqrt_d
        inside = 0
        if t < 0.0:
            # Origin inside the sphere (or sphere behind the ray)
            t = -b + sqrt_d
            inside = 1

        if t > 0.0:
            hit_point = ray_origin + t * ray_direction
            outward_normal = tm.normalize(hit_point - sphere.center)
            hit_normal = outward_normal
            if inside == 1:
                hit_normal = -outward_normal
            result = HitRecord(
                hit=1,
                t=t,
                point=hit_point,
                normal=hit_normal,
                front_face=1 - inside,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius."""
    return Sphere(center=center, radius=radius)
