import numpy as np
import pytest
from stl import mesh

from image2relief.errors import MeshWriteError
from image2relief.pipeline import grid_to_mesh
from image2relief.settings import ReliefSettings
from image2relief.writer import to_stl_mesh, write_stl


class TestToStlMesh:

    def test_keeps_vectors_and_zero_normals(self, ramp_grid):
        solid = grid_to_mesh(ramp_grid)
        stl_mesh = to_stl_mesh(solid)
        assert len(stl_mesh.vectors) == 24
        np.testing.assert_array_equal(stl_mesh.vectors, solid.vectors)
        assert not stl_mesh.normals.any()

    def test_keeps_computed_normals(self, ramp_grid):
        solid = grid_to_mesh(ramp_grid, ReliefSettings(normals='computed'))
        np.testing.assert_array_equal(to_stl_mesh(solid).normals, solid.normals)


class TestWriteStl:

    def test_binary_round_trip(self, ramp_grid, tmp_path):
        solid = grid_to_mesh(ramp_grid)
        path = str(tmp_path / "ramp.stl")
        assert write_stl(solid, path) == path

        loaded = mesh.Mesh.from_file(path, calculate_normals=False)
        assert len(loaded.vectors) == 24
        np.testing.assert_array_equal(loaded.vectors, solid.vectors)
        assert not loaded.normals.any()

    def test_binary_size(self, random_grid, tmp_path):
        solid = grid_to_mesh(random_grid)
        path = tmp_path / "random.stl"
        write_stl(solid, str(path))
        # 80 byte header, 4 byte count, 50 bytes per triangle
        assert path.stat().st_size == 84 + 50 * len(solid)

    def test_ascii(self, ramp_grid, tmp_path):
        solid = grid_to_mesh(ramp_grid)
        path = tmp_path / "ramp_ascii.stl"
        write_stl(solid, str(path), ascii=True)

        assert path.read_bytes().startswith(b"solid")
        loaded = mesh.Mesh.from_file(str(path), calculate_normals=False)
        np.testing.assert_allclose(loaded.vectors, solid.vectors, atol=1e-5)

    def test_unwritable_path(self, ramp_grid, tmp_path):
        solid = grid_to_mesh(ramp_grid)
        with pytest.raises(MeshWriteError):
            write_stl(solid, str(tmp_path / "missing" / "ramp.stl"))
