"""Camera module for primary ray generation."""

from .camera import Camera, get_camera_info, get_primary_ray, is_camera_ready, setup_camera

__all__ = [
    "Camera",
    "setup_camera",
    "is_camera_ready",
    "get_primary_ray",
    "get_camera_info",
]
