"""Unit tests for per-bounce scattering.

Tests cover:
- Schlick Fresnel endpoints
- Refraction (normal incidence, Snell's law, total internal reflection)
- Mirror, transmission and rough reflection branches
- Medium tracking on entry and exit
- Branch selection frequency
"""

import numpy as np
import pytest
import taichi as ti

N = 4000


def _scatter_many(material_params, incident, normal, medium_ior):
    """Scatter N times off one point and return per-sample results."""
    from pathtracer.materials.material import add_material, get_material
    from pathtracer.materials.scatter import scatter
    from pathtracer.core.sampler import seed_path

    material_id = add_material(**material_params)

    origins = ti.Vector.field(3, dtype=ti.f32, shape=N)
    directions = ti.Vector.field(3, dtype=ti.f32, shape=N)
    attenuations = ti.Vector.field(3, dtype=ti.f32, shape=N)
    next_iors = ti.field(dtype=ti.f32, shape=N)

    @ti.kernel
    def test_kernel(
        mid: ti.i32,
        ix: ti.f32, iy: ti.f32, iz: ti.f32,
        nx: ti.f32, ny: ti.f32, nz: ti.f32,
        medium: ti.f32,
    ):
        for k in range(N):
            material = get_material(mid)
            incident_dir = ti.math.normalize(ti.math.vec3(ix, iy, iz))
            n = ti.math.normalize(ti.math.vec3(nx, ny, nz))
            state = seed_path(k, 0, ti.u32(77))
            origin, direction, attenuation, next_ior, state = scatter(
                material, incident_dir, ti.math.vec3(0.0, 0.0, 0.0), n, medium, state
            )
            origins[k] = origin
            directions[k] = direction
            attenuations[k] = attenuation
            next_iors[k] = next_ior

    test_kernel(material_id, *incident, *normal, medium_ior)
    return (
        origins.to_numpy(),
        directions.to_numpy(),
        attenuations.to_numpy(),
        next_iors.to_numpy(),
    )


class TestSchlick:
    """Tests for Schlick's approximation."""

    @pytest.mark.parametrize(
        "cos_theta, fresnel_0, expected",
        [
            (1.0, 0.04, 0.04),
            (0.0, 0.04, 1.0),
            (0.5, 0.0, 0.03125),
            (0.3, 1.0, 1.0),
        ],
    )
    def test_values(self, cos_theta, fresnel_0, expected):
        """Test known reflectance values."""
        from pathtracer.materials.scatter import schlick_fresnel

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(c: ti.f32, f0: ti.f32):
            result[None] = schlick_fresnel(c, f0)

        test_kernel(cos_theta, fresnel_0)
        assert result[None] == pytest.approx(expected, abs=1e-6)


class TestRefract:
    """Tests for refraction."""

    def _refract(self, incident, normal, n1, n2):
        from pathtracer.materials.scatter import refract

        direction = ti.field(dtype=ti.math.vec3, shape=())
        tir = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(
            ix: ti.f32, iy: ti.f32, iz: ti.f32,
            nx: ti.f32, ny: ti.f32, nz: ti.f32,
            a: ti.f32, b: ti.f32,
        ):
            d, t = refract(
                ti.math.normalize(ti.math.vec3(ix, iy, iz)),
                ti.math.vec3(nx, ny, nz),
                a,
                b,
            )
            direction[None] = d
            tir[None] = t

        test_kernel(*incident, *normal, n1, n2)
        return direction.to_numpy(), int(tir[None])

    def test_normal_incidence_passes_straight(self):
        """Test a ray along the normal is not bent."""
        d, tir = self._refract((0, 0, -1), (0, 0, 1), 1.0, 1.5)
        assert tir == 0
        np.testing.assert_allclose(d, [0.0, 0.0, -1.0], atol=1e-6)

    def test_snell(self):
        """Test the refracted angle follows Snell's law."""
        theta_i = np.radians(40.0)
        incident = (np.sin(theta_i), 0.0, -np.cos(theta_i))
        d, tir = self._refract(incident, (0, 0, 1), 1.0, 1.5)
        assert tir == 0
        assert np.linalg.norm(d) == pytest.approx(1.0, abs=1e-5)
        sin_t = d[0]
        assert sin_t == pytest.approx(np.sin(theta_i) / 1.5, abs=1e-5)
        # Continues into the surface
        assert d[2] < 0.0

    def test_total_internal_reflection(self):
        """Test a steep ray leaving glass is mirrored and flagged."""
        theta_i = np.radians(60.0)
        incident = (np.sin(theta_i), 0.0, -np.cos(theta_i))
        d, tir = self._refract(incident, (0, 0, 1), 1.5, 1.0)
        assert tir == 1
        np.testing.assert_allclose(d, [np.sin(theta_i), 0.0, np.cos(theta_i)], atol=1e-5)


class TestScatterBranches:
    """Tests for the scatter event selection."""

    def test_mirror_bounce(self):
        """Test specularity 1 always mirrors with specular * k attenuation."""
        origins, directions, attenuations, iors = _scatter_many(
            {"specular": (0.9, 0.5, 0.1), "specularity": 1.0, "fresnel_0": 1.0},
            (1, -1, 0),
            (0, 1, 0),
            1.0,
        )
        expected_dir = np.array([1.0, 1.0, 0.0]) / np.sqrt(2.0)
        np.testing.assert_allclose(directions, np.tile(expected_dir, (N, 1)), atol=1e-5)
        np.testing.assert_allclose(attenuations, np.tile([0.9, 0.5, 0.1], (N, 1)), atol=1e-6)
        np.testing.assert_allclose(iors, 1.0)
        # Offset along the normal
        assert np.all(origins[:, 1] > 0.0)

    def test_transmission_enters_medium(self):
        """Test a clear dielectric at normal incidence always transmits."""
        origins, directions, attenuations, iors = _scatter_many(
            {"albedo": (1.0, 0.8, 0.6), "fresnel_0": 0.0, "transparency": 0.5, "ior": 1.5},
            (0, -1, 0),
            (0, 1, 0),
            1.0,
        )
        np.testing.assert_allclose(directions, np.tile([0.0, -1.0, 0.0], (N, 1)), atol=1e-5)
        np.testing.assert_allclose(attenuations, np.tile([0.5, 0.4, 0.3], (N, 1)), atol=1e-6)
        np.testing.assert_allclose(iors, 1.5)
        # Offset against the normal, into the surface
        assert np.all(origins[:, 1] < 0.0)

    def test_transmission_leaves_medium(self):
        """Test a ray inside the dielectric exits into air."""
        _, _, _, iors = _scatter_many(
            {"albedo": (1.0, 1.0, 1.0), "fresnel_0": 0.0, "transparency": 1.0, "ior": 1.5},
            (0, -1, 0),
            (0, 1, 0),
            1.5,
        )
        np.testing.assert_allclose(iors, 1.0)

    def test_total_internal_reflection_keeps_medium(self):
        """Test a steep exit from glass reflects and stays inside."""
        theta_i = np.radians(60.0)
        origins, directions, _, iors = _scatter_many(
            {
                "albedo": (1.0, 1.0, 1.0),
                "fresnel_0": 0.0,
                "transparency": 1.0,
                "roughness": 0.0,
                "ior": 1.5,
            },
            (np.sin(theta_i), -np.cos(theta_i), 0.0),
            (0, 1, 0),
            1.5,
        )
        expected_dir = [np.sin(theta_i), np.cos(theta_i), 0.0]
        np.testing.assert_allclose(directions, np.tile(expected_dir, (N, 1)), atol=1e-5)
        np.testing.assert_allclose(iors, 1.5)
        assert np.all(origins[:, 1] > 0.0)

    def test_opaque_never_transmits(self):
        """Test ior 0 never changes the medium or crosses the surface."""
        origins, directions, _, iors = _scatter_many(
            {"albedo": (0.5, 0.5, 0.5), "fresnel_0": 0.0, "transparency": 1.0},
            (0.3, -1, 0.2),
            (0, 1, 0),
            1.0,
        )
        np.testing.assert_allclose(iors, 1.0)
        assert np.all(directions[:, 1] >= -1e-6)
        assert np.all(origins[:, 1] > 0.0)

    def test_diffuse_is_cosine_weighted(self):
        """Test roughness 1 gives cosine-distributed directions with albedo weight."""
        _, directions, attenuations, _ = _scatter_many(
            {"albedo": (0.2, 0.4, 0.6), "roughness": 1.0},
            (0, -1, 0),
            (0, 1, 0),
            1.0,
        )
        np.testing.assert_allclose(attenuations, np.tile([0.2, 0.4, 0.6], (N, 1)), atol=1e-6)
        cosines = directions[:, 1]
        assert cosines.min() >= -1e-5
        assert abs(cosines.mean() - 2.0 / 3.0) < 0.03

    def test_zero_roughness_is_mirror(self):
        """Test roughness 0 reflects like a mirror."""
        _, directions, _, _ = _scatter_many(
            {"albedo": (0.5, 0.5, 0.5), "roughness": 0.0},
            (1, -1, 0),
            (0, 1, 0),
            1.0,
        )
        expected_dir = np.array([1.0, 1.0, 0.0]) / np.sqrt(2.0)
        np.testing.assert_allclose(directions, np.tile(expected_dir, (N, 1)), atol=1e-5)

    def test_specularity_sets_mirror_frequency(self):
        """Test the mirror branch is taken with probability specularity."""
        _, _, attenuations, _ = _scatter_many(
            {
                "albedo": (0.0, 1.0, 0.0),
                "specular": (1.0, 0.0, 0.0),
                "specularity": 0.3,
                "fresnel_0": 1.0,
            },
            (0, -1, 0),
            (0, 1, 0),
            1.0,
        )
        mirror_fraction = np.mean(attenuations[:, 0] > 0.5)
        assert abs(mirror_fraction - 0.3) < 0.03

    def test_fresnel_splits_reflection_and_transmission(self):
        """Test transmission happens with probability 1 - k."""
        _, _, _, iors = _scatter_many(
            {"albedo": (1.0, 1.0, 1.0), "fresnel_0": 0.25, "transparency": 1.0, "ior": 1.5},
            (0, -1, 0),
            (0, 1, 0),
            1.0,
        )
        # Normal incidence: k = fresnel_0
        transmitted = np.mean(iors > 1.25)
        assert abs(transmitted - 0.75) < 0.03
