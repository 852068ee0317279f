"""Path ray structure and vector utilities for Monte Carlo path tracing.

This module provides the Ray dataclass carried along each light path and the
vector helpers used by the geometry and shading code. Besides origin and
direction, a path ray tracks its multiplicative throughput, the radiance it
has collected so far, and the refractive index of the medium it travels in.

Random sampling helpers take the generator state from
``pathtracer.core.sampler`` and return the advanced state alongside the
sample, so callers control every random draw explicitly.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = make_ray(origin, direction)  # inside a Taichi kernel
    >>> point = ray_at(ray, 5.0)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.sampler import next_float

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Refractive index of air, also the medium every camera ray starts in
N_AIR = 1.0


@ti.dataclass
class Ray:
    """A light path segment.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3). Intersection routines
            assume unit length.
        throughput: Accumulated multiplicative weight of the path (vec3).
        emitted: Radiance collected along the path so far (vec3).
        medium_ior: Refractive index of the medium the ray travels in.
    """

    origin: vec3
    direction: vec3
    throughput: vec3
    emitted: vec3
    medium_ior: ti.f32


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a fresh path ray starting in air with full weight.

    Args:
        origin: The starting point of the ray.
        direction: The direction vector (should be normalized).

    Returns:
        A Ray with throughput (1, 1, 1) and no collected radiance.
    """
    return Ray(
        origin=origin,
        direction=direction,
        throughput=vec3(1.0, 1.0, 1.0),
        emitted=vec3(0.0, 0.0, 0.0),
        medium_ior=N_AIR,
    )


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t."""
    return ray.origin + t * ray.direction


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector."""
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    The caller must guard against zero-length input.
    """
    return tm.normalize(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product of two vectors."""
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The mirror direction incident - 2 (incident . normal) normal.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_unit_vector(state: ti.u32):
    """Generate a random unit vector uniformly distributed on the sphere.

    Points are drawn in the [-1, 1]^3 cube and kept once one falls inside
    the unit ball, then normalized.

    Args:
        state: Generator state.

    Returns:
        A tuple (unit_vector, new_state).
    """
    p = vec3(0.0, 0.0, 1.0)
    s = state
    found = False
    # Rejection sampling loop
    for _ in range(64):  # Max iterations to avoid infinite loops
        if not found:
            ux, s = next_float(s)
            uy, s = next_float(s)
            uz, s = next_float(s)
            candidate = vec3(ux * 2.0 - 1.0, uy * 2.0 - 1.0, uz * 2.0 - 1.0)
            len_sq = length_squared(candidate)
            if len_sq < 1.0 and len_sq > 1e-12:
                p = candidate
                found = True
    return normalize(p), s


@ti.func
def random_in_hemisphere(normal: vec3, state: ti.u32):
    """Generate a uniform random unit vector in the hemisphere of a normal.

    A uniform direction on the sphere is mirrored when it points away from
    the normal.

    Args:
        normal: The surface normal defining the hemisphere orientation.
        state: Generator state.

    Returns:
        A tuple (direction, new_state) with dot(direction, normal) >= 0.
    """
    on_sphere, s = random_unit_vector(state)
    result = on_sphere
    if tm.dot(on_sphere, normal) < 0.0:
        result = -on_sphere
    return result, s


@ti.func
def random_cosine_direction(state: ti.u32):
    """Generate a cosine-weighted direction in the local frame (z-up).

    Uses spherical coordinates phi = 2 pi u1 and theta = acos(sqrt(u2)).

    Args:
        state: Generator state.

    Returns:
        A tuple (local_direction, new_state).
    """
    u1, s = next_float(state)
    u2, s = next_float(s)
    phi = 2.0 * tm.pi * u1
    cos_theta = ti.sqrt(u2)
    sin_theta = ti.sqrt(tm.max(0.0, 1.0 - u2))
    x = ti.cos(phi) * sin_theta
    y = ti.sin(phi) * sin_theta
    return vec3(x, y, cos_theta), s


@ti.func
def build_onb_from_normal(normal: vec3):
    """Build an orthonormal basis with the normal as its z-axis.

    Args:
        normal: The surface normal (should be normalized).

    Returns:
        A tuple (tangent, bitangent, normal) forming an orthonormal basis.
    """
    # Choose a vector not parallel to normal
    a = vec3(1.0, 0.0, 0.0)
    if ti.abs(normal.x) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = normalize(cross(a, normal))
    bitangent = cross(normal, tangent)
    return tangent, bitangent, normal


@ti.func
def local_to_world(local_dir: vec3, tangent: vec3, bitangent: vec3, normal: vec3) -> vec3:
    """Transform a direction from the local (z-up) frame to world space."""
    return local_dir.x * tangent + local_dir.y * bitangent + local_dir.z * normal


@ti.func
def sample_cosine_hemisphere(normal: vec3, state: ti.u32):
    """Cosine-weighted hemisphere sample around a world-space normal.

    Args:
        normal: The surface normal defining the hemisphere orientation.
        state: Generator state.

    Returns:
        A tuple (direction, new_state) with the direction in world space.
    """
    local_dir, s = random_cosine_direction(state)
    tangent, bitangent, n = build_onb_from_normal(normal)
    return local_to_world(local_dir, tangent, bitangent, n), s
