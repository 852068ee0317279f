"""Unit tests for the counter-based random number generator.

Tests cover:
- Draws fall in [0, 1)
- The same (pixel, sample, seed) triple reproduces the same sequence
- Different pixels, samples and seeds give different sequences
- Rough uniformity of the draws
- Host-side seed generation
"""

import numpy as np
import taichi as ti


class TestNextFloat:
    """Tests for uniform float draws."""

    def test_range_and_mean(self):
        """Test draws lie in [0, 1) and average close to 0.5."""
        from pathtracer.core.sampler import next_float, seed_path

        n = 4096
        draws = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                state = seed_path(k, 0, ti.u32(1234))
                u, state = next_float(state)
                draws[k] = u

        test_kernel()
        values = draws.to_numpy()
        assert values.min() >= 0.0
        assert values.max() < 1.0
        assert abs(values.mean() - 0.5) < 0.03

    def test_sequence_advances(self):
        """Test consecutive draws from one state differ."""
        from pathtracer.core.sampler import next_float, seed_path

        first = ti.field(dtype=ti.f32, shape=())
        second = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            state = seed_path(3, 5, ti.u32(99))
            a, state = next_float(state)
            b, state = next_float(state)
            first[None] = a
            second[None] = b

        test_kernel()
        assert first[None] != second[None]


class TestSeedPath:
    """Tests for per-path state derivation."""

    def test_same_inputs_same_state(self):
        """Test seeding is a pure function of its inputs."""
        from pathtracer.core.sampler import seed_path

        a = ti.field(dtype=ti.u32, shape=())
        b = ti.field(dtype=ti.u32, shape=())

        @ti.kernel
        def test_kernel():
            a[None] = seed_path(17, 4, ti.u32(2024))
            b[None] = seed_path(17, 4, ti.u32(2024))

        test_kernel()
        assert a[None] == b[None]

    def test_inputs_change_state(self):
        """Test pixel, sample and seed each affect the state."""
        from pathtracer.core.sampler import seed_path

        states = ti.field(dtype=ti.u32, shape=4)

        @ti.kernel
        def test_kernel():
            states[0] = seed_path(17, 4, ti.u32(2024))
            states[1] = seed_path(18, 4, ti.u32(2024))
            states[2] = seed_path(17, 5, ti.u32(2024))
            states[3] = seed_path(17, 4, ti.u32(2025))

        test_kernel()
        values = states.to_numpy()
        assert len(set(values.tolist())) == 4

    def test_state_is_nonzero(self):
        """Test the seeded state never hits the xorshift fixed point."""
        from pathtracer.core.sampler import seed_path

        n = 1024
        states = ti.field(dtype=ti.u32, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                states[k] = seed_path(k, k, ti.u32(0))

        test_kernel()
        assert np.all(states.to_numpy() != 0)


class TestRandomSeed:
    """Tests for host-side seed generation."""

    def test_random_seed_range(self):
        """Test fresh seeds fit in 32 bits."""
        from pathtracer.core.sampler import random_seed

        for _ in range(20):
            seed = random_seed()
            assert isinstance(seed, int)
            assert 0 <= seed < 2**32
