import os
import logging
from typing import Optional, Tuple

from .heightfield import normalize_heightfield, reconstruct_elevations
from .pixels import PixelGrid
from .settings import DEFAULT_BASE_THICKNESS, DEFAULT_PIXEL_SIZE, ReliefSettings
from .solid import SolidMesh, build_solid_mesh
from .writer import write_stl

logger = logging.getLogger(__name__)


def grid_to_mesh(grid: PixelGrid, settings: Optional[ReliefSettings] = None) -> SolidMesh:
    """
    Turn a pixel grid into a watertight relief solid.

    Parameters:
        grid: Grayscale pixel grid, rows are scanlines
        settings: Relief settings, defaults when None

    Returns:
        The solid mesh, twelve triangles per pixel
    """
    if settings is None:
        settings = ReliefSettings()

    field = reconstruct_elevations(grid)
    if settings.normalize_rows:
        field = normalize_heightfield(field)

    base_z = field.base_z(settings)
    return build_solid_mesh(field, base_z, settings)


def image_to_relief(input_filepath: str, output_filepath: Optional[str] = None,
                    base_thickness: float = DEFAULT_BASE_THICKNESS,
                    pixel_size: float = DEFAULT_PIXEL_SIZE,
                    normalize_rows: bool = True,
                    center: bool = True,
                    normals: str = 'zero',
                    size: Optional[Tuple[int, int]] = None,
                    fit: str = 'crop',
                    invert: bool = False,
                    ascii: bool = False,
                    settings: Optional[ReliefSettings] = None) -> str:
    """
    Convert an image file to a relief STL file.

    Parameters:
        input_filepath: Path to input image file
        output_filepath: Path for output STL file. If None, uses input path with .stl extension
        base_thickness: Distance from the lowest relief point down to the base
        pixel_size: Footprint edge length of one pixel
        normalize_rows: Center every scanline on its mean elevation
        center: Center the model on its bounding box
        normals: 'zero' or 'computed'
        size: Optional (width, height) to resize the image to first
        fit: Resize method ('crop', 'pad', 'stretch')
        invert: Invert the image before conversion
        ascii: Write ASCII STL instead of binary
        settings: Prebuilt settings; overrides the individual relief parameters

    Returns:
        Path to the generated STL file

    Raises:
        FileNotFoundError: If input file does not exist
        ConfigurationError: If invalid parameters provided
        ImageDecodeError: If the image cannot be decoded
        MeshWriteError: If the mesh cannot be saved
    """
    # Validate parameters before touching any file
    if settings is None:
        settings = ReliefSettings(base_thickness=base_thickness, pixel_size=pixel_size,
                                  normalize_rows=normalize_rows, center=center, normals=normals)

    if output_filepath is None:
        output_filepath = os.path.splitext(input_filepath)[0] + '.stl'

    grid = PixelGrid.open(input_filepath, size=size, fit=fit, invert=invert)
    solid = grid_to_mesh(grid, settings)

    bounds = solid.bounds()
    if bounds is not None:
        low, high = bounds
        logger.info(f"Relief spans {high - low} model units")

    return write_stl(solid, output_filepath, ascii=ascii)
