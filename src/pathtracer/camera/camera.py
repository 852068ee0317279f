"""Camera model for primary ray generation.

The camera is a position, a 4x4 orientation and a focal length. Pixel
(i, j), with j counted from the top row, maps to the camera-space direction

    x = 2 * i / width - 1
    y = 2 * (height - 1 - j) / height - 1
    d = normalize((x, y, -focal_length))

which the orientation then rotates into world space. The ray origin is always
the camera position; the orientation's translation column is ignored. A larger
focal length narrows the field of view.

The camera state lives in Taichi fields so kernels can read it.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.camera import Camera, setup_camera
    >>> from pathtracer.core.transform import look_at
    >>> camera = Camera(
    ...     position=(0.0, 1.0, 5.0),
    ...     orientation=look_at((0.0, 0.0, -1.0)),
    ...     focal_length=2.0,
    ... )
    >>> setup_camera(camera)
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, make_ray, vec3
from pathtracer.core.transform import Mat4, identity, is_orthonormal, mat4_transform_direction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Camera:
    """Immutable camera description.

    Attributes:
        position: Camera position in world space (x, y, z).
        orientation: 4x4 matrix whose rotation block maps camera space to
            world space. Usually built with ``look_at``.
        focal_length: Distance of the image plane; must be positive.
    """

    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    orientation: Mat4 = field(default_factory=identity)
    focal_length: float = 1.0


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_position = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_orientation = ti.Matrix.field(4, 4, dtype=ti.f32, shape=())
_camera_focal_length = ti.field(dtype=ti.f32, shape=())

_camera_ready = False


def setup_camera(camera: Camera) -> None:
    """Validate a camera and upload it for rendering.

    Args:
        camera: The camera to use for subsequent renders.

    Raises:
        ValueError: If the focal length is not positive, the orientation is
            not 4x4, or its rotation block is not orthonormal.
    """
    global _camera_ready

    if camera.focal_length <= 0.0:
        raise ValueError(f"Focal length must be positive, got {camera.focal_length}")
    orientation = np.asarray(camera.orientation, dtype=np.float64)
    if orientation.shape != (4, 4):
        raise ValueError(f"Camera orientation must be 4x4, got shape {orientation.shape}")
    if not is_orthonormal(orientation):
        raise ValueError("Camera orientation rotation block must be orthonormal")

    position = camera.position
    _camera_position[None] = vec3(position[0], position[1], position[2])
    _camera_orientation.from_numpy(orientation.astype(np.float32))
    _camera_focal_length[None] = camera.focal_length
    _camera_ready = True

    logger.debug(
        "Camera set: position=%s focal_length=%s",
        tuple(position),
        camera.focal_length,
    )


def is_camera_ready() -> bool:
    """Whether ``setup_camera`` has been called."""
    return _camera_ready


@ti.func
def get_primary_ray(i: ti.i32, j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate the primary ray through pixel (i, j).

    Args:
        i: Pixel column (0 = left).
        j: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A fresh path Ray from the camera position.
    """
    x = 2.0 * ti.cast(i, ti.f32) / ti.cast(width, ti.f32) - 1.0
    y = 2.0 * ti.cast(height - 1 - j, ti.f32) / ti.cast(height, ti.f32) - 1.0
    local_dir = tm.normalize(vec3(x, y, -_camera_focal_length[None]))
    direction = tm.normalize(mat4_transform_direction(_camera_orientation[None], local_dir))
    return make_ray(_camera_position[None], direction)


def get_camera_info() -> dict[str, Any]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with 'position', 'orientation' and 'focal_length'.
    """
    return {
        "position": tuple(float(c) for c in _camera_position.to_numpy()),
        "orientation": _camera_orientation.to_numpy(),
        "focal_length": float(_camera_focal_length[None]),
    }
