"""Render driver: splits the image into column tiles and dispatches them.

This module provides a convenient wrapper around the core integrator that:
- Validates the render settings before any kernel launch
- Sets up the camera and render target
- Renders the image one column tile per parallel dispatch
- Reports progress through a callback or a generator
- Returns the finished 8-bit image

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.camera import Camera
    >>> from pathtracer.core.config import RenderSettings
    >>> from pathtracer.core.renderer import Renderer
    >>> from pathtracer.scene.manager import SceneManager
    >>>
    >>> scene = SceneManager()
    >>> light = scene.add_material(emissive=(1.0, 1.0, 1.0))
    >>> scene.add_sphere((0, 0, -3), 1.0, light)
    >>> renderer = Renderer(RenderSettings(width=64, height=64, seed=3), Camera())
    >>> image = renderer.render()  # (64, 64, 3) uint8
"""

import logging
import time
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt
import taichi as ti

from pathtracer.camera.camera import Camera, setup_camera
from pathtracer.core.config import RenderSettings
from pathtracer.core.integrator import (
    get_image_uint8,
    get_radiance_numpy,
    get_rejected_sample_count,
    render_columns,
    setup_render_target,
)
from pathtracer.core.sampler import random_seed

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (columns_done, total_columns)
ProgressCallback = Callable[[int, int], None]


class Renderer:
    """Tile-parallel renderer for a fixed set of render settings.

    The renderer draws from the global scene and camera state. Passing a
    camera uploads it when the renderer is created; otherwise the camera
    must have been set up with ``setup_camera`` beforehand.

    Attributes:
        settings: The validated render settings.
        last_seed: The seed used by the most recent render, or None before
            the first render.
    """

    def __init__(self, settings: RenderSettings, camera: Camera | None = None) -> None:
        """Initialize the renderer.

        Args:
            settings: Render configuration.
            camera: Optional camera to set up.

        Raises:
            ConfigurationError: If the settings are invalid.
            ValueError: If the camera is invalid.
        """
        settings.validate()
        self.settings = settings
        self.last_seed: int | None = None
        if camera is not None:
            setup_camera(camera)

    def _tiles(self) -> list[tuple[int, int]]:
        width = self.settings.width
        step = self.settings.tile_columns
        return [(start, min(start + step, width)) for start in range(0, width, step)]

    def render_progressive(self) -> Generator[tuple[int, int], None, None]:
        """Render the image, yielding progress after each column tile.

        Yields:
            Tuple of (columns_done, width).
        """
        s = self.settings
        seed = s.seed if s.seed is not None else random_seed()
        self.last_seed = seed

        setup_render_target(s.width, s.height)
        logger.info(
            "Rendering %dx%d, %d spp, %d bounces, seed %d",
            s.width,
            s.height,
            s.samples_per_pixel,
            s.bounces,
            seed,
        )
        start = time.perf_counter()

        columns_done = 0
        for col_start, col_end in self._tiles():
            render_columns(col_start, col_end, s.samples_per_pixel, s.bounces, seed)
            columns_done += col_end - col_start
            logger.debug("Columns %d/%d done", columns_done, s.width)
            yield (columns_done, s.width)

        ti.sync()
        rejected = get_rejected_sample_count()
        if rejected:
            logger.warning(
                "%d of %d samples had non-finite or negative radiance and were dropped",
                rejected,
                s.width * s.height * s.samples_per_pixel,
            )
        logger.info("Render finished in %.2fs", time.perf_counter() - start)

    def render(self, callback: ProgressCallback | None = None) -> npt.NDArray[np.uint8]:
        """Render the whole image.

        Args:
            callback: Optional callback called after each column tile.
                Receives (columns_done, width).

        Returns:
            NumPy array of shape (height, width, 3) with dtype uint8.

        Example:
            >>> def progress(done, total):
            ...     print(f"Progress: {done}/{total} columns")
            >>> image = renderer.render(callback=progress)
        """
        for done, total in self.render_progressive():
            if callback is not None:
                callback(done, total)
        return get_image_uint8()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the last rendered image as an 8-bit NumPy array."""
        return get_image_uint8()

    def get_radiance_numpy(self) -> npt.NDArray[np.float32]:
        """Get the linear radiance of the last render, shape (height, width, 3)."""
        return get_radiance_numpy()

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        s = self.settings
        return (
            f"Renderer(width={s.width}, height={s.height}, "
            f"samples_per_pixel={s.samples_per_pixel}, bounces={s.bounces})"
        )
