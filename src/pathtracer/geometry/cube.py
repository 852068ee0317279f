"""Axis-aligned cube assembled from six quads.

A cube is not a primitive of its own: ``cube_faces`` returns the six
``(corner, edge_u, edge_v)`` triples that close the box spanning
``origin`` to ``origin + size`` on every axis. Each triple is ordered so that
``cross(edge_u, edge_v)`` points out of the cube.
"""

from collections.abc import Sequence

Vec3Tuple = tuple[float, float, float]
Face = tuple[Vec3Tuple, Vec3Tuple, Vec3Tuple]


def cube_faces(origin: Sequence[float], size: float) -> list[Face]:
    """Build the six faces of an axis-aligned cube.

    Args:
        origin: The minimum corner of the cube.
        size: Edge length (must be positive).

    Returns:
        Six (corner, edge_u, edge_v) triples: bottom, top, back, front,
        left, right.

    Raises:
        ValueError: If size is not positive.
    """
    if size <= 0.0:
        raise ValueError(f"Cube size must be positive, got {size}")

    ox, oy, oz = (float(c) for c in origin)
    s = float(size)
    x: Vec3Tuple = (s, 0.0, 0.0)
    y: Vec3Tuple = (0.0, s, 0.0)
    z: Vec3Tuple = (0.0, 0.0, s)

    return [
        ((ox, oy, oz), x, z),  # bottom, -y
        ((ox, oy + s, oz), z, x),  # top, +y
        ((ox, oy, oz), y, x),  # back, -z
        ((ox, oy, oz + s), x, y),  # front, +z
        ((ox, oy, oz), z, y),  # left, -x
        ((ox + s, oy, oz), y, z),  # right, +x
    ]
