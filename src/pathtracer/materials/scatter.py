"""Shading and light transport at a surface hit.

At every hit the path picks one of three events:

1. Mirror bounce, with probability ``specularity``. The direction is the
   perfect reflection and the throughput is scaled by ``specular * k``,
   where k is the Schlick Fresnel reflectance.
2. Transmission, with probability ``1 - k`` (only for materials with a
   refractive index). The ray refracts into the next medium and the
   throughput is scaled by ``albedo * transparency``.
3. Rough reflection otherwise. The mirror direction is blended with a
   cosine-weighted sample by ``roughness`` and the throughput is scaled by
   ``albedo``.

The medium a ray enters is decided by comparing the index it carries with the
material's index: equal means the ray is leaving the volume into air.

Total internal reflection: when the refraction radicand is negative the ray
is mirrored instead. It keeps its current medium, leaves on the incoming side
of the surface, and is attenuated like a transmitted ray.

Example:
    >>> # Within a Taichi kernel:
    >>> # origin, direction, attenuation, next_ior, state = scatter(
    >>> #     material, incident, point, normal, medium_ior, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import (
    N_AIR,
    length_squared,
    normalize,
    reflect,
    sample_cosine_hemisphere,
)
from pathtracer.core.sampler import next_float
from pathtracer.materials.material import Material

# Type alias for 3D vectors
vec3 = tm.vec3

# Distance a scattered ray origin is pushed off the surface
RAY_EPSILON = 1e-3


@ti.func
def schlick_fresnel(cos_theta: ti.f32, fresnel_0: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cos_theta: Cosine between the outgoing (negated incident) direction
            and the normal.
        fresnel_0: Reflectance at normal incidence.

    Returns:
        fresnel_0 + (1 - fresnel_0) * (1 - cos_theta)^5
    """
    return fresnel_0 + (1.0 - fresnel_0) * ((1.0 - cos_theta) ** 5)


@ti.func
def reflect_rough(incident: vec3, normal: vec3, roughness: ti.f32, state: ti.u32):
    """Reflect about the normal, blended toward a diffuse bounce.

    Args:
        incident: The incoming direction (normalized).
        normal: The surface normal, facing the incoming ray.
        roughness: Blend weight of the random direction, 0 = mirror.
        state: Generator state.

    Returns:
        A tuple (direction, new_state).
    """
    reflected = normalize(reflect(incident, normal))
    random_dir, s = sample_cosine_hemisphere(normal, state)
    blended = (1.0 - roughness) * reflected + roughness * random_dir

    result = normal
    if length_squared(blended) > 1e-12:
        result = normalize(blended)
    return result, s


@ti.func
def refract(incident: vec3, normal: vec3, n1: ti.f32, n2: ti.f32):
    """Refract a direction from a medium of index n1 into one of index n2.

    The normal is flipped to point into the transmission medium, then

        nd = -normal . incident
        root = sqrt(nd^2 + (n2 / n1)^2 - 1)
        out = normalize((-normal * (root - nd) + incident) * n1 / n2)

    Args:
        incident: The incoming direction (normalized).
        normal: The surface normal, facing the incoming ray.
        n1: Refractive index on the incoming side.
        n2: Refractive index on the transmission side.

    Returns:
        A tuple (direction, total_internal) where total_internal is 1 when
        the radicand was negative and the mirror direction was returned.
    """
    inward = -normal
    nd = tm.dot(inward, incident)
    ratio = n2 / n1
    radicand = nd * nd + ratio * ratio - 1.0

    direction = normalize(reflect(incident, normal))
    total_internal = 1
    if radicand >= 0.0:
        root = ti.sqrt(radicand)
        direction = normalize((inward * (root - nd) + incident) * (n1 / n2))
        total_internal = 0
    return direction, total_internal


@ti.func
def scatter(
    material: Material,
    incident: vec3,
    point: vec3,
    normal: vec3,
    medium_ior: ti.f32,
    state: ti.u32,
):
    """Choose and apply the scattering event for one bounce.

    Args:
        material: Material of the hit surface.
        incident: The incoming ray direction (normalized).
        point: The intersection point.
        normal: The surface normal, facing the incoming ray.
        medium_ior: Refractive index carried by the incoming ray.
        state: Generator state.

    Returns:
        A tuple (origin, direction, attenuation, next_ior, new_state).
    """
    cos_theta = -tm.dot(normal, incident)
    k = schlick_fresnel(cos_theta, material.fresnel_0)

    origin = point + RAY_EPSILON * normal
    direction = incident
    attenuation = vec3(0.0, 0.0, 0.0)
    next_ior = medium_ior

    u_specular, s = next_float(state)
    if u_specular < material.specularity:
        direction = normalize(reflect(incident, normal))
        attenuation = material.specular * k
    else:
        u_transmit, s = next_float(s)
        if material.ior > 0.0 and u_transmit < 1.0 - k:
            target_ior = material.ior
            if medium_ior == material.ior:
                # Leaving the volume
                target_ior = N_AIR
            refracted, total_internal = refract(incident, normal, medium_ior, target_ior)
            direction = refracted
            attenuation = material.albedo * material.transparency
            if total_internal == 0:
                next_ior = target_ior
                origin = point - RAY_EPSILON * normal
        else:
            direction, s = reflect_rough(incident, normal, material.roughness, s)
            attenuation = material.albedo

    return origin, direction, attenuation, next_ior, s
