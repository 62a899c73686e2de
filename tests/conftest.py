import numpy as np
import pytest
from PIL import Image

from image2relief.pixels import PixelGrid


@pytest.fixture
def make_png(tmp_path):
    """Write a uint8 array as a grayscale PNG and return its path."""
    def _make(array, name="input.png"):
        path = tmp_path / name
        Image.fromarray(np.asarray(array, dtype=np.uint8)).save(path)
        return str(path)
    return _make


@pytest.fixture
def ramp_grid() -> PixelGrid:
    """A 2x1 grid: neutral gray followed by white."""
    return PixelGrid(np.array([[127, 255]]))


@pytest.fixture
def random_grid() -> PixelGrid:
    rng = np.random.default_rng(1234)
    return PixelGrid(rng.integers(0, 256, size=(7, 9)))
