"""Path tracing integrator for Monte Carlo light transport.

This module traces light paths from the camera through the scene and turns
the averaged radiance of each pixel into an 8-bit colour.

Each path starts as a fresh camera ray (full throughput, no radiance, in air)
and runs for at most ``bounces`` scene queries:

    TRACING --miss--> TERMINATED_MISS
    TRACING --bounce limit--> TERMINATED_BOUNCE_LIMIT

On every hit the surface's emission, weighted by the current throughput, is
added to the path radiance before the material picks the next direction. A
path that escapes the scene collects nothing further; there is no
environment light.

A pixel averages ``samples_per_pixel`` independent paths. Every path draws
its random numbers from a state seeded by (pixel, sample, seed), so pixels
never share generator state and the result does not depend on how columns
are grouped into dispatches.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import (
    ...     setup_render_target, render_columns, get_image_uint8
    ... )
    >>> setup_render_target(64, 48)
    >>> render_columns(0, 64, samples=16, bounces=5, seed=1)
    >>> image = get_image_uint8()  # (48, 64, 3) uint8
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.camera import get_primary_ray, is_camera_ready
from pathtracer.core.config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH
from pathtracer.core.ray import Ray
from pathtracer.core.sampler import seed_path
from pathtracer.materials.material import get_material
from pathtracer.materials.scatter import scatter
from pathtracer.scene.intersection import intersect_scene

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Path States
# =============================================================================

TRACING = 0
TERMINATED_MISS = 1
TERMINATED_BOUNCE_LIMIT = 2

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Linear pixel radiance and its 8-bit mapping, indexed [column, row]
# (preallocated to max size to avoid kernel recompilation)
_radiance_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
_color_buffer = ti.Vector.field(3, dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Result slot for single-pixel renders
_pixel_result = ti.Vector.field(3, dtype=ti.i32, shape=())

# Samples whose radiance was non-finite or negative and was zeroed
_rejected_samples = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers and the rejected sample count."""
    _radiance_buffer.fill(0.0)
    _color_buffer.fill(0)
    _rejected_samples[None] = 0


def get_rejected_sample_count() -> int:
    """Number of samples zeroed for non-finite or negative radiance.

    Counts every render since the render target was last set up or cleared.
    """
    return int(_rejected_samples[None])


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def _check_camera_ready() -> None:
    if not is_camera_ready():
        raise RuntimeError("Camera not set up. Call setup_camera() first.")


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def trace_path(ray: Ray, bounces: ti.i32, state: ti.u32):
    """Trace one light path through the scene.

    Args:
        ray: The starting ray, usually fresh from the camera.
        bounces: Maximum number of scene queries.
        state: Generator state for this path.

    Returns:
        A tuple (emitted, path_state, new_state) where emitted is the
        radiance collected along the path and path_state is
        TERMINATED_MISS or TERMINATED_BOUNCE_LIMIT.
    """
    origin = ray.origin
    direction = ray.direction
    throughput = ray.throughput
    emitted = ray.emitted
    medium_ior = ray.medium_ior
    s = state

    # Taichi doesn't support break in ti.func loops
    path_state = TRACING

    for _ in range(bounces):
        if path_state == TRACING:
            hit_record = intersect_scene(origin, direction)

            if hit_record.hit == 0:
                path_state = TERMINATED_MISS
            else:
                material = get_material(hit_record.material_id)
                emitted += material.emissive * throughput

                new_origin, new_direction, attenuation, next_ior, s = scatter(
                    material,
                    direction,
                    hit_record.point,
                    hit_record.normal,
                    medium_ior,
                    s,
                )
                throughput *= attenuation
                origin = new_origin
                direction = new_direction
                medium_ior = next_ior

    if path_state == TRACING:
        path_state = TERMINATED_BOUNCE_LIMIT

    return emitted, path_state, s


@ti.func
def shade_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    bounces: ti.i32,
    seed: ti.u32,
) -> vec3:
    """Estimate the radiance reaching a pixel.

    A sample with non-finite or negative radiance is zeroed before averaging
    and counted in the rejected sample total.

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Number of paths to average.
        bounces: Maximum scene queries per path.
        seed: Render seed.

    Returns:
        The average radiance over all samples.
    """
    camera_ray = get_primary_ray(pixel_i, pixel_j, width, height)
    pixel_index = pixel_i * height + pixel_j

    total = vec3(0.0, 0.0, 0.0)
    for sample in range(samples):
        state = seed_path(pixel_index, sample, seed)
        radiance, path_state, state = trace_path(camera_ray, bounces, state)

        bad = 0
        for c in ti.static(range(3)):
            if tm.isnan(radiance[c]) or tm.isinf(radiance[c]) or radiance[c] < 0.0:
                bad = 1

        if bad:
            _rejected_samples[None] += 1
        else:
            total += radiance

    return total / ti.cast(samples, ti.f32)


@ti.func
def radiance_to_color(radiance: vec3) -> tm.ivec3:
    """Map linear radiance to 8-bit channels: int(255 * clamp(c, 0, 1))."""
    clamped = tm.clamp(radiance, 0.0, 1.0)
    return ti.cast(clamped * 255.0, ti.i32)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_columns(
    col_start: ti.i32,
    col_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    bounces: ti.i32,
    seed: ti.u32,
):
    # Each pixel writes only its own slot, so no synchronization is needed
    for i, j in ti.ndrange((col_start, col_end), (0, height)):
        radiance = shade_pixel(i, j, width, height, samples, bounces, seed)
        _radiance_buffer[i, j] = radiance
        _color_buffer[i, j] = radiance_to_color(radiance)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    bounces: ti.i32,
    seed: ti.u32,
):
    radiance = shade_pixel(pixel_i, pixel_j, width, height, samples, bounces, seed)
    _pixel_result[None] = radiance_to_color(radiance)


# =============================================================================
# Public Rendering API
# =============================================================================


def _check_sampling(samples: int, bounces: int, seed: int) -> None:
    if samples <= 0:
        raise ValueError(f"samples must be positive, got {samples}")
    if bounces <= 0:
        raise ValueError(f"bounces must be positive, got {bounces}")
    if not 0 <= seed < 2**32:
        raise ValueError(f"seed must be in [0, 2**32), got {seed}")


def render_columns(col_start: int, col_end: int, samples: int, bounces: int, seed: int) -> None:
    """Render the pixel columns in [col_start, col_end) in one parallel dispatch.

    Args:
        col_start: First column to render.
        col_end: One past the last column to render.
        samples: Samples per pixel.
        bounces: Maximum scene queries per path.
        seed: Render seed in [0, 2**32).

    Raises:
        RuntimeError: If the render target or camera has not been set up.
        ValueError: If the column range or sampling parameters are invalid.
    """
    _check_render_target_initialized()
    _check_camera_ready()
    _check_sampling(samples, bounces, seed)

    width, height = get_image_dimensions()
    if not 0 <= col_start < col_end <= width:
        raise ValueError(f"Invalid column range [{col_start}, {col_end}) for width {width}")

    _render_columns(col_start, col_end, width, height, samples, bounces, seed)


def render_pixel(
    pixel_i: int, pixel_j: int, samples: int, bounces: int, seed: int
) -> tuple[int, int, int]:
    """Render a single pixel without touching the image buffers.

    This is a Python-callable function for testing. For production rendering,
    use render_columns() which processes pixels in parallel.

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = top).
        samples: Samples per pixel.
        bounces: Maximum scene queries per path.
        seed: Render seed in [0, 2**32).

    Returns:
        Tuple of (R, G, B) integer channels in [0, 255].

    Raises:
        RuntimeError: If the render target or camera has not been set up.
        ValueError: If the pixel or sampling parameters are invalid.
    """
    _check_render_target_initialized()
    _check_camera_ready()
    _check_sampling(samples, bounces, seed)

    width, height = get_image_dimensions()
    if not (0 <= pixel_i < width and 0 <= pixel_j < height):
        raise ValueError(f"Pixel ({pixel_i}, {pixel_j}) outside {width}x{height} image")

    _render_single_pixel(pixel_i, pixel_j, width, height, samples, bounces, seed)
    color = _pixel_result.to_numpy()
    return int(color[0]), int(color[1]), int(color[2])


def get_radiance_numpy() -> npt.NDArray[np.float32]:
    """Get the linear radiance of the active image region.

    Returns:
        NumPy array of shape (height, width, 3), dtype float32, row 0 at the
        top of the image.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    image = _radiance_buffer.to_numpy()[:width, :height, :]
    # (width, height, 3) -> (height, width, 3)
    return np.ascontiguousarray(np.transpose(image, (1, 0, 2))).astype(np.float32)


def get_image_uint8() -> npt.NDArray[np.uint8]:
    """Get the 8-bit colour image of the active region.

    Returns:
        NumPy array of shape (height, width, 3), dtype uint8.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    image = _color_buffer.to_numpy()[:width, :height, :]
    return np.ascontiguousarray(np.transpose(image, (1, 0, 2))).astype(np.uint8)
