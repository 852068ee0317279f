"""4x4 homogeneous transforms.

Host-side helpers operate on NumPy float64 arrays of shape (4, 4) and are used
to build and check camera orientations. The Taichi functions at the bottom
apply a ``tm.mat4`` to positions (w = 1) and directions (w = 0) inside
kernels.

The look-at basis stores its axes as matrix columns:

    [ right  up  forward  position ]
    [   0     0     0        1     ]

with ``forward = -direction``, so a camera-space ray (x, y, -f) ends up
pointing along ``direction`` in world space.
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

Mat4 = npt.NDArray[np.float64]


def identity() -> Mat4:
    """Return the 4x4 identity transform."""
    return np.eye(4, dtype=np.float64)


def compose(a: Mat4, b: Mat4) -> Mat4:
    """Matrix product ``a @ b`` (apply ``b`` first, then ``a``)."""
    return np.asarray(a, dtype=np.float64) @ np.asarray(b, dtype=np.float64)


def apply(m: Mat4, v: Sequence[float]) -> npt.NDArray[np.float64]:
    """Apply a transform to a homogeneous 4-vector."""
    return np.asarray(m, dtype=np.float64) @ np.asarray(v, dtype=np.float64)


def transform_point(m: Mat4, p: Sequence[float]) -> npt.NDArray[np.float64]:
    """Transform a position (w = 1), including translation."""
    return apply(m, (p[0], p[1], p[2], 1.0))[:3]


def transform_direction(m: Mat4, d: Sequence[float]) -> npt.NDArray[np.float64]:
    """Transform a direction (w = 0), ignoring translation."""
    return apply(m, (d[0], d[1], d[2], 0.0))[:3]


def look_at(
    direction: Sequence[float],
    world_up: Sequence[float] = (0.0, 1.0, 0.0),
    position: Sequence[float] = (0.0, 0.0, 0.0),
) -> Mat4:
    """Build an orthonormal orientation looking along ``direction``.

    Args:
        direction: View direction in world space (need not be normalized).
        world_up: Up reference used to derive the right axis.
        position: Optional translation stored in the last column.

    Returns:
        A (4, 4) float64 matrix whose rotation block is orthonormal.

    Raises:
        ValueError: If ``direction`` is zero or parallel to ``world_up``.
    """
    d = np.asarray(direction, dtype=np.float64)
    d_norm = np.linalg.norm(d)
    if d_norm < 1e-12:
        raise ValueError("look_at direction must be non-zero")

    forward = -d / d_norm
    right = np.cross(np.asarray(world_up, dtype=np.float64), forward)
    right_norm = np.linalg.norm(right)
    if right_norm < 1e-12:
        raise ValueError(
            f"look_at direction {tuple(direction)} is parallel to world_up {tuple(world_up)}"
        )
    right = right / right_norm
    up = np.cross(forward, right)

    m = identity()
    m[:3, 0] = right
    m[:3, 1] = up
    m[:3, 2] = forward
    m[:3, 3] = np.asarray(position, dtype=np.float64)
    return m


def is_orthonormal(m: Mat4, atol: float = 1e-5) -> bool:
    """Check that the rotation block of ``m`` is orthonormal."""
    r = np.asarray(m, dtype=np.float64)[:3, :3]
    return bool(np.allclose(r.T @ r, np.eye(3), atol=atol))


# =============================================================================
# Kernel-side application
# =============================================================================


@ti.func
def mat4_transform_point(m: tm.mat4, p: vec3) -> vec3:
    """Transform a position (w = 1) inside a Taichi kernel."""
    h = m @ tm.vec4(p.x, p.y, p.z, 1.0)
    return vec3(h.x, h.y, h.z)


@ti.func
def mat4_transform_direction(m: tm.mat4, d: vec3) -> vec3:
    """Transform a direction (w = 0) inside a Taichi kernel."""
    h = m @ tm.vec4(d.x, d.y, d.z, 0.0)
    return vec3(h.x, h.y, h.z)
