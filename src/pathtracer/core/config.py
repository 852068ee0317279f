"""Render configuration.

``RenderSettings`` gathers everything a render needs besides the scene and
camera: image size, bounce limit, sample count, dispatch tile width and the
random seed. ``validate()`` is called by the renderer before anything is
dispatched, so a bad configuration fails fast instead of producing a
partially rendered image.
"""

from dataclasses import asdict, dataclass
from typing import Any

# Maximum supported image dimensions (render target is preallocated)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048


class ConfigurationError(ValueError):
    """Raised when render settings are unusable."""


@dataclass
class RenderSettings:
    """Per-render sampling and output configuration.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        bounces: Maximum number of surface interactions per path.
        samples_per_pixel: Number of independent paths averaged per pixel.
        tile_columns: Number of image columns rendered per parallel dispatch.
            Progress is reported after each tile.
        seed: Render seed. ``None`` draws a fresh seed for every render, so
            repeated renders differ in noise only.
    """

    width: int = 256
    height: int = 256
    bounces: int = 7
    samples_per_pixel: int = 100
    tile_columns: int = 16
    seed: int | None = None

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ConfigurationError: If any value is out of range.
        """
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ConfigurationError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.bounces <= 0:
            raise ConfigurationError(f"Bounce limit must be positive, got {self.bounces}")
        if self.samples_per_pixel <= 0:
            raise ConfigurationError(
                f"Samples per pixel must be positive, got {self.samples_per_pixel}"
            )
        if self.tile_columns <= 0:
            raise ConfigurationError(
                f"Tile width must be at least one column, got {self.tile_columns}"
            )
        if self.seed is not None and not 0 <= self.seed < 2**32:
            raise ConfigurationError(f"Seed must be in [0, 2**32), got {self.seed}")

    def to_dict(self) -> dict[str, Any]:
        """Export the settings to a dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderSettings":
        """Build settings from a dictionary.

        Args:
            data: Mapping of field names to values.

        Raises:
            ConfigurationError: If the mapping contains unknown keys.
        """
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown render settings: {sorted(unknown)}")
        return cls(**data)
