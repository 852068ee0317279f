"""Scene-level primitive intersection testing.

This module stores every primitive of the scene in Taichi fields and answers
closest-hit queries against all of them.

Primitives are kept in a Structure of Arrays layout per kind (spheres, planes,
quads). Each primitive carries the id of a registered material; materials
themselves live in ``pathtracer.materials.material``.

``intersect_scene`` is a linear scan over spheres, then planes, then quads.
Every primitive also records its position in the overall insertion order, so
of two hits at exactly the same distance the one added first wins, whatever
its kind.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.intersection import add_sphere, add_plane, clear_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
    0
    >>> add_plane((0.0, 1.0, 0.0), (0.0, -0.5, 0.0), material_id=1)
    0
    >>> # Use intersect_scene within a Taichi kernel
"""

from collections.abc import Sequence

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.geometry.plane import Plane, hit_plane
from pathtracer.geometry.quad import Quad, QuadFrame, hit_quad
from pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: Whether the ray intersected any primitive (1 if hit, 0 if miss).
        t: Distance along the ray to the closest intersection.
        point: The 3D point where the ray intersected the surface.
        normal: Unit surface normal, oriented against the incoming ray.
        front_face: 1 if the outward side of the surface was struck.
        material_id: The material id of the hit primitive, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


# Maximum number of primitives supported in the scene
MAX_SPHERES = 1024
MAX_PLANES = 1024
MAX_QUADS = 1024

# Sphere storage
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Plane storage
plane_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
plane_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
plane_material_ids = ti.field(dtype=ti.i32, shape=MAX_PLANES)
num_planes = ti.field(dtype=ti.i32, shape=())

# Quad storage: normalized frame computed on the host by make_quad_frame
quad_corners = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
quad_dir_u = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
quad_dir_v = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
quad_len_u = ti.field(dtype=ti.f32, shape=MAX_QUADS)
quad_len_v = ti.field(dtype=ti.f32, shape=MAX_QUADS)
quad_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
quad_material_ids = ti.field(dtype=ti.i32, shape=MAX_QUADS)
num_quads = ti.field(dtype=ti.i32, shape=())

# Insertion sequence shared by all kinds, for breaking distance ties
sphere_orders = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
plane_orders = ti.field(dtype=ti.i32, shape=MAX_PLANES)
quad_orders = ti.field(dtype=ti.i32, shape=MAX_QUADS)
num_primitives = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive counts to zero. The actual field data is not
    cleared but will be overwritten when new primitives are added.
    """
    num_spheres[None] = 0
    num_planes[None] = 0
    num_quads[None] = 0
    num_primitives[None] = 0


def _next_order() -> int:
    order = int(num_primitives[None])
    num_primitives[None] = order + 1
    return order


def add_sphere(center: Sequence[float], radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere (must be positive).
        material_id: The material id to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        ValueError: If the radius is not positive.
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = vec3(center[0], center[1], center[2])
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    sphere_orders[idx] = _next_order()
    num_spheres[None] = idx + 1
    return idx


def add_plane(normal: Sequence[float], pos: Sequence[float], material_id: int = 0) -> int:
    """Add an infinite plane to the scene.

    Args:
        normal: The plane normal. Normalized before storage.
        pos: Any point on the plane.
        material_id: The material id to associate with this plane.

    Returns:
        The index of the added plane.

    Raises:
        ValueError: If the normal has zero length.
        RuntimeError: If the maximum number of planes is exceeded.
    """
    n = np.asarray(normal, dtype=np.float64)
    norm = float(np.linalg.norm(n))
    if norm < 1e-12:
        raise ValueError(f"Plane normal must be non-zero, got {tuple(normal)}")
    n = n / norm

    idx = num_planes[None]
    if idx >= MAX_PLANES:
        raise RuntimeError(f"Maximum number of planes ({MAX_PLANES}) exceeded")
    plane_normals[idx] = vec3(n[0], n[1], n[2])
    plane_positions[idx] = vec3(pos[0], pos[1], pos[2])
    plane_material_ids[idx] = material_id
    plane_orders[idx] = _next_order()
    num_planes[None] = idx + 1
    return idx


def add_quad(frame: QuadFrame, material_id: int = 0) -> int:
    """Add a quad to the scene.

    Args:
        frame: The quad frame, as built by ``make_quad_frame``.
        material_id: The material id to associate with this quad.

    Returns:
        The index of the added quad.

    Raises:
        RuntimeError: If the maximum number of quads is exceeded.
    """
    idx = num_quads[None]
    if idx >= MAX_QUADS:
        raise RuntimeError(f"Maximum number of quads ({MAX_QUADS}) exceeded")
    quad_corners[idx] = vec3(*frame.corner)
    quad_dir_u[idx] = vec3(*frame.dir_u)
    quad_dir_v[idx] = vec3(*frame.dir_v)
    quad_len_u[idx] = frame.len_u
    quad_len_v[idx] = frame.len_v
    quad_normals[idx] = vec3(*frame.normal)
    quad_material_ids[idx] = material_id
    quad_orders[idx] = _next_order()
    num_quads[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_plane_count() -> int:
    """Get the number of planes in the scene."""
    return int(num_planes[None])


def get_quad_count() -> int:
    """Get the number of quads in the scene."""
    return int(num_quads[None])


@ti.func
def _hit_record_to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def _is_closer(
    t: ti.f32, order: ti.i32, result: SceneHitRecord, best_order: ti.i32
) -> ti.i32:
    return result.hit == 0 or t < result.t or (t == result.t and order < best_order)


@ti.func
def intersect_scene(ray_origin: vec3, ray_direction: vec3) -> SceneHitRecord:
    """Find the closest primitive hit by a ray.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.

    Returns:
        A SceneHitRecord for the closest intersection, or a miss record
        (hit == 0, material_id == -1) if nothing was hit.
    """
    result = _make_miss_record()
    best_order = -1

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere)
        if rec.hit == 1 and _is_closer(rec.t, sphere_orders[i], result, best_order):
            result = _hit_record_to_scene_hit_record(rec, sphere_material_ids[i])
            best_order = sphere_orders[i]

    n_planes = num_planes[None]
    for i in range(n_planes):
        plane = Plane(normal=plane_normals[i], pos=plane_positions[i])
        rec = hit_plane(ray_origin, ray_direction, plane)
        if rec.hit == 1 and _is_closer(rec.t, plane_orders[i], result, best_order):
            result = _hit_record_to_scene_hit_record(rec, plane_material_ids[i])
            best_order = plane_orders[i]

    n_quads = num_quads[None]
    for i in range(n_quads):
        quad = Quad(
            corner=quad_corners[i],
            dir_u=quad_dir_u[i],
            dir_v=quad_dir_v[i],
            len_u=quad_len_u[i],
            len_v=quad_len_v[i],
            normal=quad_normals[i],
        )
        rec = hit_quad(ray_origin, ray_direction, quad)
        if rec.hit == 1 and _is_closer(rec.t, quad_orders[i], result, best_order):
            result = _hit_record_to_scene_hit_record(rec, quad_material_ids[i])
            best_order = quad_orders[i]

    return result
