"""Counter-based random number generation for Monte Carlo sampling.

Every random draw inside the renderer goes through an explicit 32-bit state
that is passed into and returned from each Taichi function. Nothing in the
light transport code touches a global generator, which keeps paths
independent under parallel execution and makes a render with a fixed seed
reproducible bit for bit.

A path's state is derived from its global pixel index, its sample index and
the render seed, then advanced with xorshift32:

    state = seed_path(pixel_index, sample_index, seed)
    u, state = next_float(state)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.sampler import next_float, seed_path
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     state = seed_path(0, 0, ti.u32(7))
    ...     u, state = next_float(state)
    ...     return u
"""

import numpy as np
import taichi as ti

# 2^-24: maps the top 24 bits of the state onto [0, 1)
_INV_2_24 = 1.0 / 16777216.0


@ti.func
def hash_u32(x: ti.u32) -> ti.u32:
    """Scramble a 32-bit integer (Wang hash).

    Args:
        x: Input value.

    Returns:
        A well-mixed 32-bit value.
    """
    h = x
    h = (h ^ ti.u32(61)) ^ (h >> 16)
    h = h * ti.u32(9)
    h = h ^ (h >> 4)
    h = h * ti.u32(668265261)
    h = h ^ (h >> 15)
    return h


@ti.func
def seed_path(pixel_index: ti.i32, sample_index: ti.i32, seed: ti.u32) -> ti.u32:
    """Derive the initial generator state for one light path.

    The state depends only on the pixel, the sample number and the render
    seed, never on scheduling or on how the image was split into tiles.

    Args:
        pixel_index: Global index of the pixel (column * height + row).
        sample_index: Index of the sample within the pixel.
        seed: Render seed.

    Returns:
        A non-zero xorshift state.
    """
    h = hash_u32(seed)
    h = hash_u32(h ^ ti.cast(sample_index, ti.u32))
    h = hash_u32(h ^ ti.cast(pixel_index, ti.u32))
    # xorshift has a fixed point at zero
    return h | ti.u32(1)


@ti.func
def next_u32(state: ti.u32) -> ti.u32:
    """Advance the state by one xorshift32 step."""
    s = state
    s ^= s << 13
    s ^= s >> 17
    s ^= s << 5
    return s


@ti.func
def next_float(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Args:
        state: Current generator state.

    Returns:
        A tuple (u, new_state).
    """
    s = next_u32(state)
    u = ti.cast(s >> 8, ti.f32) * _INV_2_24
    return u, s


def random_seed() -> int:
    """Draw a fresh render seed from NumPy's entropy source."""
    return int(np.random.default_rng().integers(0, 2**32, dtype=np.uint64))
