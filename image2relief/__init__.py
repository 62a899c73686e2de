"""Convert grayscale images into watertight relief solids."""

from .errors import ConfigurationError, ImageDecodeError, MeshWriteError, ReliefError
from .heightfield import HeightField, Sample, normalize_heightfield, reconstruct_elevations
from .pipeline import grid_to_mesh, image_to_relief
from .pixels import PixelGrid, prepare_image
from .settings import ReliefSettings
from .solid import SolidMesh, Triangle, build_solid_mesh, compute_normals, quad_triangles
from .writer import to_stl_mesh, write_stl

__version__ = '0.1.0'

__all__ = [
    'ConfigurationError',
    'HeightField',
    'ImageDecodeError',
    'MeshWriteError',
    'PixelGrid',
    'ReliefError',
    'ReliefSettings',
    'Sample',
    'SolidMesh',
    'Triangle',
    'build_solid_mesh',
    'compute_normals',
    'grid_to_mesh',
    'image_to_relief',
    'normalize_heightfield',
    'prepare_image',
    'quad_triangles',
    'reconstruct_elevations',
    'to_stl_mesh',
    'write_stl',
]
