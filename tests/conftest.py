"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene, material and render target data around each test."""
    # Import here so Taichi fields are declared after ti.init
    from pathtracer.core.integrator import clear_render_target
    from pathtracer.materials.material import clear_materials
    from pathtracer.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_materials()
        clear_render_target()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def look_down_negative_z():
    """A camera at the origin looking down -z with focal length 1."""
    from pathtracer.camera.camera import Camera
    from pathtracer.core.transform import look_at

    return Camera(
        position=(0.0, 0.0, 0.0),
        orientation=look_at((0.0, 0.0, -1.0)),
        focal_length=1.0,
    )
