"""Unified scene manager for coordinating primitives and materials.

This module provides the host-side scene building API. It registers
materials, places primitives that reference them by id, and keeps a Python
record of everything added so the scene can be exported and reloaded.

The SceneManager maintains:
- The material registry (one parameterized material type, shared by id)
- Spheres, planes and quads, each owned by the scene
- Cubes, expanded into six quads sharing one material
- Scene serialization through plain dictionaries

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> white = scene.add_material(albedo=(0.8, 0.8, 0.8))
    >>> light = scene.add_material(emissive=(1.0, 1.0, 1.0))
    >>> scene.add_plane((0, 1, 0), (0, 0, 0), white)
    0
    >>> scene.add_sphere((0, 3, 0), 1.0, light)
    0
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pathtracer.geometry.cube import cube_faces
from pathtracer.geometry.quad import make_quad_frame
from pathtracer.materials.material import (
    MAX_MATERIALS,
    MaterialInfo,
    add_material,
    clear_materials,
    get_material_count,
)
from pathtracer.scene.intersection import (
    MAX_PLANES,
    MAX_QUADS,
    MAX_SPHERES,
    add_plane,
    add_quad,
    add_sphere,
    clear_scene,
    get_plane_count,
    get_quad_count,
    get_sphere_count,
)

logger = logging.getLogger(__name__)

Vec3Tuple = tuple[float, float, float]


def _as_tuple(v: Sequence[float]) -> Vec3Tuple:
    return (float(v[0]), float(v[1]), float(v[2]))


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        center: The center of the sphere.
        radius: The radius of the sphere.
        material_id: The material ID assigned to the sphere.
    """

    sphere_index: int
    center: Vec3Tuple
    radius: float
    material_id: int


@dataclass
class PlaneInfo:
    """Information about a plane in the scene.

    Attributes:
        plane_index: The index in the plane storage arrays.
        normal: The plane normal as given (stored normalized).
        pos: A point on the plane.
        material_id: The material ID assigned to the plane.
    """

    plane_index: int
    normal: Vec3Tuple
    pos: Vec3Tuple
    material_id: int


@dataclass
class QuadInfo:
    """Information about a quad in the scene.

    Attributes:
        quad_index: The index in the quad storage arrays.
        corner: The corner point of the quad.
        edge_u: The first edge vector.
        edge_v: The second edge vector.
        material_id: The material ID assigned to the quad.
    """

    quad_index: int
    corner: Vec3Tuple
    edge_u: Vec3Tuple
    edge_v: Vec3Tuple
    material_id: int


@dataclass
class SceneConfig:
    """Configuration for scene serialization."""

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)
    planes: list[dict[str, Any]] = field(default_factory=list)
    quads: list[dict[str, Any]] = field(default_factory=list)


class SceneManager:
    """Scene manager coordinating primitives and materials.

    Creating a SceneManager clears the global scene and material storage, so
    only one scene is live at a time.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        spheres: List of SphereInfo for all spheres in the scene.
        planes: List of PlaneInfo for all planes in the scene.
        quads: List of QuadInfo for all quads in the scene (cube faces
            included).

    Example:
        >>> scene = SceneManager()
        >>> mirror = scene.add_material(specular=(1, 1, 1), specularity=1.0)
        >>> glass = scene.add_material(albedo=(1, 1, 1), fresnel_0=0.1,
        ...                            transparency=1.0, ior=1.2)
        >>> scene.add_sphere((0, 0, -3), 1.0, glass)
        >>> scene.add_cube((-2, -1, -4), 1.0, mirror)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.planes: list[PlaneInfo] = []
        self.quads: list[QuadInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_materials()
        self.materials.clear()
        self.spheres.clear()
        self.planes.clear()
        self.quads.clear()

    def clear(self) -> None:
        """Clear the entire scene (primitives and materials)."""
        self._clear_all()
        logger.debug("Scene cleared")

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_material(self, **params: Any) -> int:
        """Register a material.

        Accepts the keyword arguments of
        ``pathtracer.materials.material.add_material``; omitted parameters
        take its defaults.

        Returns:
            The material ID.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If a parameter is out of range or unknown.
        """
        try:
            material_id = add_material(**params)
        except TypeError as exc:
            raise ValueError(f"Invalid material parameters: {exc}") from exc

        frozen = {k: tuple(v) if isinstance(v, (tuple, list)) else v for k, v in params.items()}
        self.materials.append(
            MaterialInfo(material_id=material_id, params=MappingProxyType(frozen))
        )
        logger.debug("Added material %d: %s", material_id, params)
        return material_id

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return get_material_count()

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID.

        Args:
            material_id: The material ID.

        Returns:
            MaterialInfo for the material, or None if not found.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def _check_material_id(self, material_id: int) -> None:
        if material_id < 0 or material_id >= get_material_count():
            raise ValueError(f"Invalid material_id: {material_id}")

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(self, center: Sequence[float], radius: float, material_id: int) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere (must be positive).
            material_id: The material ID to assign to the sphere.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If material_id or radius is invalid.
        """
        self._check_material_id(material_id)
        sphere_index = add_sphere(center, radius, material_id)
        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=_as_tuple(center),
                radius=float(radius),
                material_id=material_id,
            )
        )
        logger.debug("Added sphere %d at %s, r=%s", sphere_index, tuple(center), radius)
        return sphere_index

    def add_plane(self, normal: Sequence[float], pos: Sequence[float], material_id: int) -> int:
        """Add an infinite plane to the scene.

        Args:
            normal: The plane normal as (x, y, z); need not be unit length.
            pos: Any point on the plane as (x, y, z).
            material_id: The material ID to assign to the plane.

        Returns:
            The index of the added plane.

        Raises:
            RuntimeError: If the maximum number of planes is exceeded.
            ValueError: If material_id is invalid or the normal is zero.
        """
        self._check_material_id(material_id)
        plane_index = add_plane(normal, pos, material_id)
        self.planes.append(
            PlaneInfo(
                plane_index=plane_index,
                normal=_as_tuple(normal),
                pos=_as_tuple(pos),
                material_id=material_id,
            )
        )
        logger.debug("Added plane %d through %s, n=%s", plane_index, tuple(pos), tuple(normal))
        return plane_index

    def add_quad(
        self,
        corner: Sequence[float],
        edge_u: Sequence[float],
        edge_v: Sequence[float],
        material_id: int,
    ) -> int:
        """Add a quad to the scene.

        The quad has vertices corner, corner+edge_u, corner+edge_v and
        corner+edge_u+edge_v. Its normal is cross(edge_u, edge_v).

        Args:
            corner: The corner point of the quad as (x, y, z).
            edge_u: The first edge vector as (x, y, z).
            edge_v: The second edge vector, orthogonal to edge_u.
            material_id: The material ID to assign to the quad.

        Returns:
            The index of the added quad.

        Raises:
            RuntimeError: If the maximum number of quads is exceeded.
            ValueError: If material_id is invalid or the edges are zero
                or not orthogonal.
        """
        self._check_material_id(material_id)
        frame = make_quad_frame(corner, edge_u, edge_v)
        quad_index = add_quad(frame, material_id)
        self.quads.append(
            QuadInfo(
                quad_index=quad_index,
                corner=_as_tuple(corner),
                edge_u=_as_tuple(edge_u),
                edge_v=_as_tuple(edge_v),
                material_id=material_id,
            )
        )
        logger.debug("Added quad %d at %s", quad_index, tuple(corner))
        return quad_index

    def add_cube(self, origin: Sequence[float], size: float, material_id: int) -> list[int]:
        """Add an axis-aligned cube as six quads sharing one material.

        Args:
            origin: The minimum corner of the cube.
            size: Edge length (must be positive).
            material_id: The material ID to assign to every face.

        Returns:
            The indices of the six added quads.

        Raises:
            ValueError: If material_id or size is invalid.
            RuntimeError: If the maximum number of quads is exceeded.
        """
        self._check_material_id(material_id)
        faces = cube_faces(origin, size)
        if get_quad_count() + len(faces) > MAX_QUADS:
            raise RuntimeError(f"Maximum number of quads ({MAX_QUADS}) exceeded")
        return [self.add_quad(corner, u, v, material_id) for corner, u, v in faces]

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    def get_plane_count(self) -> int:
        """Get the number of planes in the scene."""
        return get_plane_count()

    def get_quad_count(self) -> int:
        """Get the number of quads in the scene."""
        return get_quad_count()

    def get_primitive_count(self) -> int:
        """Get the total number of primitives in the scene."""
        return self.get_sphere_count() + self.get_plane_count() + self.get_quad_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()
        for mat in self.materials:
            config.materials.append(
                {k: list(v) if isinstance(v, (tuple, list)) else v for k, v in mat.params.items()}
            )
        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )
        for plane in self.planes:
            config.planes.append(
                {
                    "normal": list(plane.normal),
                    "pos": list(plane.pos),
                    "material_id": plane.material_id,
                }
            )
        for quad in self.quads:
            config.quads.append(
                {
                    "corner": list(quad.corner),
                    "edge_u": list(quad.edge_u),
                    "edge_v": list(quad.edge_v),
                    "material_id": quad.material_id,
                }
            )
        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration. If any entry
        fails to load, the scene is cleared again so no partial scene is left
        behind.

        Raises:
            KeyError: If an entry is missing a required key.
            ValueError: If the configuration contains invalid data.
            RuntimeError: If a capacity limit is exceeded.
        """
        self.clear()
        try:
            self._load_config(config)
        except (KeyError, ValueError, RuntimeError):
            self.clear()
            raise

        logger.info(
            "Loaded scene: %d materials, %d primitives",
            self.get_material_count(),
            self.get_primitive_count(),
        )

    def _load_config(self, config: SceneConfig) -> None:
        # Materials first, primitives reference them
        for mat_config in config.materials:
            self.add_material(**mat_config)
        for sphere_config in config.spheres:
            self.add_sphere(
                sphere_config["center"],
                sphere_config["radius"],
                sphere_config["material_id"],
            )
        for plane_config in config.planes:
            self.add_plane(
                plane_config["normal"],
                plane_config["pos"],
                plane_config["material_id"],
            )
        for quad_config in config.quads:
            self.add_quad(
                quad_config["corner"],
                quad_config["edge_u"],
                quad_config["edge_v"],
                quad_config["material_id"],
            )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "spheres": config.spheres,
            "planes": config.planes,
            "quads": config.quads,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with 'materials', 'spheres', 'planes' and
                'quads' keys; missing keys mean empty lists.

        Raises:
            ValueError: If an entry is missing a required key or is invalid.
        """
        config = SceneConfig(
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
            planes=data.get("planes", []),
            quads=data.get("quads", []),
        )
        try:
            self.from_config(config)
        except KeyError as exc:
            raise ValueError(f"Scene entry is missing key {exc}") from exc

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_planes() -> int:
        """Get the maximum number of planes supported."""
        return MAX_PLANES

    @staticmethod
    def get_max_quads() -> int:
        """Get the maximum number of quads supported."""
        return MAX_QUADS

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
