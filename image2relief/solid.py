"""
Solid mesh generation.

Every cell of the height field becomes an independent closed box reaching
from its sloped top patch down to the base plane. Boxes of neighbouring
cells share coincident walls but no vertices, so the triangle soup is
watertight at the cost of twelve triangles per pixel.
"""
import logging
from typing import Iterator, NamedTuple, Optional, Tuple

import numpy as np

from .heightfield import HeightField
from .settings import HEIGHT_SCALE, ReliefSettings

logger = logging.getLogger(__name__)

TRIANGLES_PER_CELL = 12
CELLS_PER_BLOCK = 65536

# Top, bottom, near, far, left, right
OUTWARD_FACE_SIGNS = np.array([1.0, -1.0, 1.0, -1.0, -1.0, 1.0])

Vertex = Tuple[float, float, float]


class Triangle(NamedTuple):
    vertices: Tuple[Vertex, Vertex, Vertex]
    normal: Vertex


def quad_triangles(p0, p1, p2, p3) -> np.ndarray:
    """
    Split a quadrilateral into the triangles (p0, p2, p3) and (p0, p1, p2).

    Corners may be single points or stacked (..., 3) arrays of points; the
    result has shape (..., 2, 3, 3).
    """
    p0, p1, p2, p3 = (np.asarray(p) for p in (p0, p1, p2, p3))
    first = np.stack([p0, p2, p3], axis=-2)
    second = np.stack([p0, p1, p2], axis=-2)
    return np.stack([first, second], axis=-3)


def compute_normals(vectors: np.ndarray) -> np.ndarray:
    """Unit normals following each triangle's winding; zero for degenerate triangles."""
    vectors = np.asarray(vectors, dtype=np.float64)
    normals = np.cross(vectors[:, 1] - vectors[:, 0], vectors[:, 2] - vectors[:, 0])
    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    return np.divide(normals, lengths, out=np.zeros_like(normals), where=lengths > 0)


class SolidMesh:
    """
    Ordered triangle soup of a relief solid.

    Attributes:
        vectors: (T, 3, 3) float32 array of triangle vertices
        normals: (T, 3) float32 array of face normals
    """

    def __init__(self, vectors: np.ndarray, normals: Optional[np.ndarray] = None):
        self.vectors = np.asarray(vectors, dtype=np.float32).reshape(-1, 3, 3)
        if normals is None:
            normals = np.zeros((len(self.vectors), 3), dtype=np.float32)
        self.normals = np.asarray(normals, dtype=np.float32).reshape(-1, 3)
        if len(self.normals) != len(self.vectors):
            raise ValueError(f"Got {len(self.normals)} normals for {len(self.vectors)} triangles")

    def __len__(self) -> int:
        return len(self.vectors)

    def __iter__(self) -> Iterator[Triangle]:
        for tri, normal in zip(self.vectors.tolist(), self.normals.tolist()):
            yield Triangle(tuple(tuple(v) for v in tri), tuple(normal))

    @property
    def is_empty(self) -> bool:
        return len(self.vectors) == 0

    def bounds(self) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        """Axis-aligned (min, max) corners, or None for an empty mesh."""
        if self.is_empty:
            return None
        points = self.vectors.reshape(-1, 3)
        return points.min(axis=0), points.max(axis=0)



def _points(x: np.ndarray, y: np.ndarray, z) -> np.ndarray:
    return np.stack([x, y, np.broadcast_to(z, x.shape)], axis=-1)


def _cell_faces(x0, y0, z0, z1, zb, pixel_size) -> np.ndarray:
    """Triangles of a batch of cells, shape (N, 6, 2, 3, 3)."""
    x1 = x0 + pixel_size
    y1 = y0 + pixel_size
    faces = [
        # Top
        quad_triangles(_points(x0, y0, z0), _points(x1, y0, z0), _points(x1, y1, z1), _points(x0, y1, z1)),
        # Bottom
        quad_triangles(_points(x0, y0, zb), _points(x1, y0, zb), _points(x1, y1, zb), _points(x0, y1, zb)),
        # Near side, leading edge
        quad_triangles(_points(x0, y0, zb), _points(x1, y0, zb), _points(x1, y0, z0), _points(x0, y0, z0)),
        # Far side, trailing edge
        quad_triangles(_points(x0, y1, zb), _points(x1, y1, zb), _points(x1, y1, z1), _points(x0, y1, z1)),
        # Left side
        quad_triangles(_points(x0, y0, zb), _points(x0, y1, zb), _points(x0, y1, z1), _points(x0, y0, z0)),
        # Right side
        quad_triangles(_points(x1, y0, zb), _points(x1, y1, zb), _points(x1, y1, z1), _points(x1, y0, z0)),
    ]
    return np.stack(faces, axis=1)


def build_solid_mesh(field: HeightField, base_z: float, settings: ReliefSettings) -> SolidMesh:
    """
    Emit a closed six-faced box for every cell of the height field.

    Cells are visited row-major. Rows map to the model x axis and columns
    to y, so the slope of each top patch runs along y. Work is done in
    float32 blocks of whole rows, written straight into the output arrays.

    Args:
        field: Height field, normalized or not
        base_z: Height of the base plane
        settings: Pixel size, centering and normal mode

    Returns:
        The mesh, TRIANGLES_PER_CELL triangles per cell
    """
    height, width = field.shape
    pixel_size = np.float32(settings.pixel_size)
    zb = np.float32(base_z)
    scale = np.float32(HEIGHT_SCALE)

    # Center on half the largest index, matching the cell corner at x0/y0
    x_offset = np.float32((height - 1) / 2.0 if settings.center and height else 0.0)
    y_offset = np.float32((width - 1) / 2.0 if settings.center and width else 0.0)

    vectors = np.empty((height * width * TRIANGLES_PER_CELL, 3, 3), dtype=np.float32)
    normals = np.zeros((len(vectors), 3), dtype=np.float32)
    y0_row = (np.arange(width, dtype=np.float32) - y_offset) * pixel_size
    rows_per_block = max(1, CELLS_PER_BLOCK // max(width, 1))

    for start in range(0, height, rows_per_block):
        stop = min(start + rows_per_block, height)
        rows = np.arange(start, stop, dtype=np.float32)

        x0 = np.repeat((rows - x_offset) * pixel_size, width)
        y0 = np.tile(y0_row, stop - start)
        elevation = field.elevation[start:stop].ravel().astype(np.float32)
        delta = field.delta[start:stop].ravel().astype(np.float32)
        z0 = elevation / scale * pixel_size
        z1 = (elevation + delta) / scale * pixel_size

        block = _cell_faces(x0, y0, z0, z1, zb, pixel_size)
        first = start * width * TRIANGLES_PER_CELL
        last = stop * width * TRIANGLES_PER_CELL
        vectors[first:last] = block.reshape(-1, 3, 3)

        if settings.normals == 'computed':
            block_normals = compute_normals(vectors[first:last]).reshape(-1, 6, 2, 3)
            # Shared winding points bottom, far and left faces inward
            normals[first:last] = (block_normals * OUTWARD_FACE_SIGNS[:, np.newaxis, np.newaxis]).reshape(-1, 3)

    solid = SolidMesh(vectors, normals)
    logger.debug(f"Built {len(solid)} triangles for {height}x{width} cells, base at z={base_z}")
    return solid
