"""
Height-field reconstruction.

Each scanline of the pixel grid is read as a slope signal: a pixel's
intensity minus the neutral midpoint is the height gained across that
pixel. Summing the slopes along a row gives the elevation profile of that
row. Rows are integrated independently and then centered on their own
mean, so the result is a relief shading rather than an exact surface.
"""
import logging
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from .pixels import PixelGrid
from .settings import HEIGHT_SCALE, NEUTRAL_INTENSITY, ReliefSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Sample:
    """Reconstructed elevation record of one pixel."""
    row: int
    col: int
    elevation: int
    delta: int


class HeightField:
    """
    Per-pixel elevations and slopes of a pixel grid.

    Attributes:
        elevation: (H, W) int64 array, height at the leading edge of each pixel
        delta: (H, W) int64 array, intensity minus the neutral midpoint
    """

    def __init__(self, elevation: np.ndarray, delta: np.ndarray):
        if elevation.shape != delta.shape:
            raise ValueError(f"Shape mismatch: elevation {elevation.shape}, delta {delta.shape}")
        self.elevation = elevation
        self.delta = delta

    @property
    def shape(self):
        return self.elevation.shape

    @property
    def height(self) -> int:
        return self.elevation.shape[0]

    @property
    def width(self) -> int:
        return self.elevation.shape[1]

    def __len__(self) -> int:
        return self.elevation.size

    @classmethod
    def reconstruct(cls, grid: PixelGrid) -> 'HeightField':
        """
        Integrate centered intensities along every row of the grid.

        The running sum restarts at zero on every row. Each pixel records the
        sum before its own slope is added.
        """
        delta = grid.array.astype(np.int64) - NEUTRAL_INTENSITY

        # Exclusive prefix sum along the scanline axis
        elevation = np.cumsum(delta, axis=1) - delta

        return cls(elevation, delta)

    def samples(self) -> Iterator[Sample]:
        """Yield one Sample per pixel, rows outer and columns inner."""
        for row in range(self.height):
            for col in range(self.width):
                yield Sample(row, col, int(self.elevation[row, col]), int(self.delta[row, col]))

    def row_means(self) -> np.ndarray:
        """Integer mean elevation of each row, truncated toward zero."""
        if self.width == 0:
            return np.zeros(self.height, dtype=np.int64)
        sums = self.elevation.sum(axis=1)
        return np.sign(sums) * (np.abs(sums) // self.width)

    def normalized(self) -> 'HeightField':
        """Return a copy with each row's mean elevation subtracted."""
        means = self.row_means()
        return HeightField(self.elevation - means[:, np.newaxis], self.delta.copy())

    def global_minimum(self) -> int:
        """Lowest point reached by any cell's top surface, in raw elevation units."""
        if self.elevation.size == 0:
            return 0
        return int((self.elevation + np.minimum(self.delta, 0)).min())

    def base_z(self, settings: ReliefSettings) -> float:
        """Height of the flat base plane beneath the whole model."""
        lowest = min(self.global_minimum(), 0)
        return -settings.base_thickness + lowest / HEIGHT_SCALE * settings.pixel_size


def reconstruct_elevations(grid: PixelGrid) -> HeightField:
    field = HeightField.reconstruct(grid)
    logger.debug(f"Reconstructed {field.height} scanlines of {field.width} pixels")
    return field


def normalize_heightfield(field: HeightField) -> HeightField:
    normalized = field.normalized()
    logger.debug(f"Centered {field.height} scanlines, global minimum {normalized.global_minimum()}")
    return normalized
