"""Unit tests for the camera model.

Tests cover:
- Validation of focal length and orientation
- Pixel-to-direction mapping
- Orientation rotates camera-space rays into world space
- Focal length narrows the field of view
"""

import numpy as np
import pytest
import taichi as ti


def _primary_ray(i, j, width, height):
    from pathtracer.camera.camera import get_primary_ray

    origin = ti.field(dtype=ti.math.vec3, shape=())
    direction = ti.field(dtype=ti.math.vec3, shape=())
    medium = ti.field(dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(pi: ti.i32, pj: ti.i32, w: ti.i32, h: ti.i32):
        ray = get_primary_ray(pi, pj, w, h)
        origin[None] = ray.origin
        direction[None] = ray.direction
        medium[None] = ray.medium_ior

    test_kernel(i, j, width, height)
    return origin.to_numpy(), direction.to_numpy(), float(medium[None])


class TestCameraSetup:
    """Tests for setup_camera validation."""

    def test_setup_and_info(self):
        """Test the uploaded state is reported back."""
        from pathtracer.camera.camera import Camera, get_camera_info, is_camera_ready, setup_camera
        from pathtracer.core.transform import look_at

        orientation = look_at((1.0, 0.0, -1.0))
        setup_camera(Camera(position=(1.0, 2.0, 3.0), orientation=orientation, focal_length=2.5))

        info = get_camera_info()
        assert is_camera_ready()
        np.testing.assert_allclose(info["position"], [1.0, 2.0, 3.0])
        np.testing.assert_allclose(info["orientation"], orientation, atol=1e-6)
        assert info["focal_length"] == pytest.approx(2.5)

    @pytest.mark.parametrize("focal_length", [0.0, -1.0])
    def test_non_positive_focal_length_raises(self, focal_length):
        """Test the focal length must be positive."""
        from pathtracer.camera.camera import Camera, setup_camera

        with pytest.raises(ValueError, match="Focal length"):
            setup_camera(Camera(focal_length=focal_length))

    def test_wrong_shape_raises(self):
        """Test the orientation must be 4x4."""
        from pathtracer.camera.camera import Camera, setup_camera

        with pytest.raises(ValueError, match="4x4"):
            setup_camera(Camera(orientation=np.eye(3)))

    def test_non_orthonormal_raises(self):
        """Test a scaling orientation is rejected."""
        from pathtracer.camera.camera import Camera, setup_camera

        with pytest.raises(ValueError, match="orthonormal"):
            setup_camera(Camera(orientation=np.eye(4) * 2.0))


class TestPrimaryRays:
    """Tests for get_primary_ray."""

    def test_pixel_mapping(self, look_down_negative_z):
        """Test the pixel to camera-space mapping."""
        from pathtracer.camera.camera import setup_camera
        from pathtracer.core.ray import N_AIR

        setup_camera(look_down_negative_z)
        width, height = 8, 4

        for i, j in [(0, 0), (4, 2), (7, 3)]:
            origin, direction, medium = _primary_ray(i, j, width, height)
            x = 2.0 * i / width - 1.0
            y = 2.0 * (height - 1 - j) / height - 1.0
            expected = np.array([x, y, -1.0])
            expected /= np.linalg.norm(expected)
            np.testing.assert_allclose(origin, [0.0, 0.0, 0.0])
            np.testing.assert_allclose(direction, expected, atol=1e-6)
            assert medium == N_AIR

    def test_top_row_points_up(self, look_down_negative_z):
        """Test row 0 is the top of the image."""
        from pathtracer.camera.camera import setup_camera

        setup_camera(look_down_negative_z)
        _, top, _ = _primary_ray(2, 0, 4, 4)
        _, bottom, _ = _primary_ray(2, 3, 4, 4)
        assert top[1] > bottom[1]

    def test_orientation_rotates_rays(self):
        """Test the camera looks along its look-at direction."""
        from pathtracer.camera.camera import Camera, setup_camera
        from pathtracer.core.transform import look_at

        setup_camera(
            Camera(
                position=(0.0, 1.0, 0.0),
                orientation=look_at((1.0, 0.0, 0.0)),
                focal_length=1.0,
            )
        )
        # Pixel (2, 1) of a 4x4 image maps to camera-space (0, 0, -1)
        origin, direction, _ = _primary_ray(2, 1, 4, 4)
        np.testing.assert_allclose(origin, [0.0, 1.0, 0.0])
        np.testing.assert_allclose(direction, [1.0, 0.0, 0.0], atol=1e-6)

    def test_focal_length_narrows_view(self):
        """Test a longer focal length bends edge rays toward the axis."""
        from pathtracer.camera.camera import Camera, setup_camera

        setup_camera(Camera(focal_length=1.0))
        _, wide, _ = _primary_ray(0, 0, 4, 4)
        setup_camera(Camera(focal_length=4.0))
        _, narrow, _ = _primary_ray(0, 0, 4, 4)
        assert -narrow[2] > -wide[2]
