import math
from dataclasses import dataclass

from .errors import ConfigurationError

# Constants
DEFAULT_BASE_THICKNESS = 3.0
DEFAULT_PIXEL_SIZE = 1.0
HEIGHT_SCALE = 128
NEUTRAL_INTENSITY = 127

NORMAL_MODES = ('zero', 'computed')


@dataclass(frozen=True)
class ReliefSettings:
    """
    Parameters controlling how a height field becomes a solid.

    Attributes:
        base_thickness: Distance from the lowest relief point down to the base plane
        pixel_size: Footprint edge length of one cell, in model units
        normalize_rows: Subtract each row's mean elevation before meshing
        center: Center the footprint on the model's bounding box
        normals: 'zero' for placeholder normals, 'computed' for winding normals
    """
    base_thickness: float = DEFAULT_BASE_THICKNESS
    pixel_size: float = DEFAULT_PIXEL_SIZE
    normalize_rows: bool = True
    center: bool = True
    normals: str = 'zero'

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """
        Check the settings.

        Raises:
            ConfigurationError: If any value would produce a degenerate or inverted mesh
        """
        if not math.isfinite(self.pixel_size) or self.pixel_size <= 0:
            raise ConfigurationError(f"Invalid pixel size: {self.pixel_size}. Must be positive.")
        if not math.isfinite(self.base_thickness) or self.base_thickness < 0:
            raise ConfigurationError(
                f"Invalid base thickness: {self.base_thickness}. Must be zero or positive.")
        if self.normals not in NORMAL_MODES:
            raise ConfigurationError(
                f"Unknown normal mode: {self.normals}. Must be one of {', '.join(NORMAL_MODES)}.")

    @classmethod
    def legacy(cls, base_thickness: float = DEFAULT_BASE_THICKNESS, normals: str = 'zero') -> 'ReliefSettings':
        """Settings reproducing the simple variant: unit pixels, raw elevations, no centering."""
        return cls(base_thickness=base_thickness, pixel_size=1.0,
                   normalize_rows=False, center=False, normals=normals)
