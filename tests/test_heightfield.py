import numpy as np
import pytest

from image2relief.heightfield import (HeightField, Sample, normalize_heightfield,
                                      reconstruct_elevations)
from image2relief.pixels import PixelGrid
from image2relief.settings import HEIGHT_SCALE, ReliefSettings


class TestReconstruction:

    def test_ramp_deltas_and_elevations(self, ramp_grid):
        field = reconstruct_elevations(ramp_grid)
        assert field.delta.tolist() == [[0, 128]]
        assert field.elevation.tolist() == [[0, 0]]

    def test_accumulator_resets_every_row(self):
        grid = PixelGrid(np.array([[255, 255, 255], [127, 127, 127]]))
        field = reconstruct_elevations(grid)
        assert field.elevation.tolist() == [[0, 128, 256], [0, 0, 0]]

    def test_elevation_recorded_before_own_delta(self):
        grid = PixelGrid(np.array([[0, 200, 10]]))
        field = reconstruct_elevations(grid)
        assert field.delta.tolist() == [[-127, 73, -117]]
        assert field.elevation.tolist() == [[0, -127, -54]]

    def test_row_sum_closes(self, random_grid):
        field = reconstruct_elevations(random_grid)
        for row in range(field.height):
            assert field.delta[row].sum() == field.elevation[row, -1] + field.delta[row, -1]

    def test_empty_grid(self):
        field = reconstruct_elevations(PixelGrid(np.zeros((0, 0), dtype=np.uint8)))
        assert len(field) == 0
        assert list(field.samples()) == []
        assert field.global_minimum() == 0

    def test_zero_width_rows(self):
        field = reconstruct_elevations(PixelGrid(np.zeros((3, 0), dtype=np.uint8)))
        assert field.shape == (3, 0)
        assert field.row_means().tolist() == [0, 0, 0]


class TestSamples:

    def test_one_sample_per_pixel_row_major(self, random_grid):
        field = reconstruct_elevations(random_grid)
        samples = list(field.samples())
        assert len(samples) == random_grid.width() * random_grid.height()
        coords = [(s.row, s.col) for s in samples]
        assert coords == [(r, c) for r in range(7) for c in range(9)]
        assert len(set(coords)) == len(coords)

    def test_sample_values(self):
        field = reconstruct_elevations(PixelGrid(np.array([[100, 150]])))
        assert list(field.samples()) == [Sample(0, 0, 0, -27), Sample(0, 1, -27, 23)]


class TestNormalization:

    def test_mean_truncates_toward_zero(self):
        # raw elevations [0, -127] have mean -63.5
        field = reconstruct_elevations(PixelGrid(np.array([[0, 0]])))
        assert field.row_means().tolist() == [-63]
        assert field.normalized().elevation.tolist() == [[63, -64]]

    def test_ramp_unchanged(self, ramp_grid):
        field = normalize_heightfield(reconstruct_elevations(ramp_grid))
        assert field.elevation.tolist() == [[0, 0]]
        assert field.global_minimum() == 0

    def test_rows_centered(self, random_grid):
        field = normalize_heightfield(reconstruct_elevations(random_grid))
        assert field.row_means().tolist() == [0] * field.height

    def test_deltas_untouched(self, random_grid):
        raw = reconstruct_elevations(random_grid)
        normalized = normalize_heightfield(raw)
        np.testing.assert_array_equal(raw.delta, normalized.delta)

    def test_does_not_modify_input(self):
        raw = reconstruct_elevations(PixelGrid(np.array([[0, 0]])))
        raw.normalized()
        assert raw.elevation.tolist() == [[0, -127]]


class TestBasePlane:

    def test_default_base(self, ramp_grid):
        field = normalize_heightfield(reconstruct_elevations(ramp_grid))
        assert field.base_z(ReliefSettings()) == -3.0

    def test_downward_slope_lowers_base(self):
        field = reconstruct_elevations(PixelGrid(np.array([[127, 0]])))
        assert field.global_minimum() == -127
        assert field.base_z(ReliefSettings()) == pytest.approx(-3.0 - 127 / 128)

    def test_positive_relief_never_raises_base(self):
        field = reconstruct_elevations(PixelGrid(np.array([[255, 255, 255]])))
        assert field.global_minimum() == 0
        assert field.base_z(ReliefSettings(base_thickness=2.0, pixel_size=0.5)) == -2.0

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    @pytest.mark.parametrize("base_thickness", [0.0, 0.5, 3.0])
    def test_base_below_every_cell(self, seed, base_thickness):
        rng = np.random.default_rng(seed)
        grid = PixelGrid(rng.integers(0, 256, size=(5, 11)))
        settings = ReliefSettings(base_thickness=base_thickness, pixel_size=0.7)
        field = normalize_heightfield(reconstruct_elevations(grid))

        base_z = field.base_z(settings)
        z0 = field.elevation / HEIGHT_SCALE * settings.pixel_size
        z1 = (field.elevation + field.delta) / HEIGHT_SCALE * settings.pixel_size
        assert base_z <= z0.min()
        assert base_z <= z1.min()


def test_shape_mismatch_rejected():
    with pytest.raises(ValueError):
        HeightField(np.zeros((2, 2), dtype=np.int64), np.zeros((2, 3), dtype=np.int64))
