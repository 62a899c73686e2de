import logging

import numpy as np
from stl import mesh
from stl.stl import Mode

from .errors import MeshWriteError
from .solid import SolidMesh

logger = logging.getLogger(__name__)

DEFAULT_SOLID_NAME = 'image2relief'


def to_stl_mesh(solid: SolidMesh) -> mesh.Mesh:
    """Wrap a solid in a numpy-stl mesh, keeping its normals untouched."""
    stl_mesh = mesh.Mesh(np.zeros(len(solid), dtype=mesh.Mesh.dtype), calculate_normals=False)
    stl_mesh.vectors[:] = solid.vectors
    stl_mesh.normals[:] = solid.normals
    return stl_mesh


def write_stl(solid: SolidMesh, output_filepath: str, ascii: bool = False,
              name: str = DEFAULT_SOLID_NAME) -> str:
    """
    Save a solid as an STL file.

    Args:
        solid: Mesh to save
        output_filepath: Destination path, overwritten if it exists
        ascii: Write the text variant instead of binary STL
        name: Solid name stored in the file header

    Returns:
        The output path

    Raises:
        MeshWriteError: If the file cannot be written
    """
    stl_mesh = to_stl_mesh(solid)
    stl_mesh.name = name
    mode = Mode.ASCII if ascii else Mode.BINARY

    try:
        # Normals were decided when the solid was built
        stl_mesh.save(output_filepath, mode=mode, update_normals=False)
    except OSError as e:
        logger.error(f"Failed to write STL {output_filepath}: {e}")
        raise MeshWriteError(f"Failed to write STL {output_filepath}: {e}") from e

    logger.info(f"Relief STL saved: {output_filepath} ({len(solid)} triangles)")
    return output_filepath
