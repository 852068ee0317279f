"""Unit tests for 4x4 homogeneous transforms."""

import numpy as np
import pytest
import taichi as ti


class TestHostTransforms:
    """Tests for NumPy-side transform helpers."""

    def test_identity_and_compose(self):
        """Test composing with identity is a no-op."""
        from pathtracer.core.transform import compose, identity, look_at

        m = look_at((1.0, -0.5, -2.0), position=(1.0, 2.0, 3.0))
        np.testing.assert_allclose(compose(identity(), m), m)
        np.testing.assert_allclose(compose(m, identity()), m)

    def test_point_vs_direction(self):
        """Test translation applies to points only."""
        from pathtracer.core.transform import identity, transform_direction, transform_point

        m = identity()
        m[:3, 3] = (1.0, 2.0, 3.0)
        np.testing.assert_allclose(transform_point(m, (1.0, 1.0, 1.0)), [2.0, 3.0, 4.0])
        np.testing.assert_allclose(transform_direction(m, (1.0, 1.0, 1.0)), [1.0, 1.0, 1.0])

    def test_apply(self):
        """Test applying a transform to a 4-vector."""
        from pathtracer.core.transform import apply, identity

        np.testing.assert_allclose(apply(identity() * 2.0, (1.0, 2.0, 3.0, 1.0)), [2, 4, 6, 2])


class TestLookAt:
    """Tests for the look-at orientation."""

    @pytest.mark.parametrize(
        "direction",
        [(0.0, 0.0, -1.0), (1.0, 0.0, 0.0), (0.3, -0.4, -1.0), (-2.0, 5.0, 1.0)],
    )
    def test_orthonormal(self, direction):
        """Test the rotation block is orthonormal."""
        from pathtracer.core.transform import is_orthonormal, look_at

        assert is_orthonormal(look_at(direction))

    def test_forward_maps_to_direction(self):
        """Test camera-space -z maps onto the view direction."""
        from pathtracer.core.transform import look_at, transform_direction

        direction = np.array([0.3, -0.4, -1.0])
        m = look_at(direction)
        mapped = transform_direction(m, (0.0, 0.0, -1.0))
        np.testing.assert_allclose(mapped, direction / np.linalg.norm(direction), atol=1e-12)

    def test_default_is_identity_rotation(self):
        """Test looking down -z with y up gives the identity rotation."""
        from pathtracer.core.transform import look_at

        np.testing.assert_allclose(look_at((0.0, 0.0, -1.0))[:3, :3], np.eye(3), atol=1e-12)

    def test_zero_direction_raises(self):
        """Test a zero view direction is rejected."""
        from pathtracer.core.transform import look_at

        with pytest.raises(ValueError, match="non-zero"):
            look_at((0.0, 0.0, 0.0))

    def test_parallel_up_raises(self):
        """Test a view direction parallel to world_up is rejected."""
        from pathtracer.core.transform import look_at

        with pytest.raises(ValueError, match="parallel"):
            look_at((0.0, 2.0, 0.0))

    def test_non_orthonormal_detected(self):
        """Test a scaled matrix is not orthonormal."""
        from pathtracer.core.transform import identity, is_orthonormal

        assert not is_orthonormal(identity() * 2.0)


class TestKernelTransforms:
    """Tests for the Taichi-side transform functions."""

    def test_mat4_transform(self):
        """Test point and direction transforms inside a kernel."""
        from pathtracer.core.transform import mat4_transform_direction, mat4_transform_point

        point = ti.field(dtype=ti.math.vec3, shape=())
        direction = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            m = ti.Matrix(
                [
                    [1.0, 0.0, 0.0, 5.0],
                    [0.0, 1.0, 0.0, 6.0],
                    [0.0, 0.0, 1.0, 7.0],
                    [0.0, 0.0, 0.0, 1.0],
                ]
            )
            point[None] = mat4_transform_point(m, ti.math.vec3(1.0, 2.0, 3.0))
            direction[None] = mat4_transform_direction(m, ti.math.vec3(1.0, 2.0, 3.0))

        test_kernel()
        np.testing.assert_allclose(point.to_numpy(), [6.0, 8.0, 10.0], atol=1e-6)
        np.testing.assert_allclose(direction.to_numpy(), [1.0, 2.0, 3.0], atol=1e-6)
