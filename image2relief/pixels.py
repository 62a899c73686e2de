import os
import logging
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import ConfigurationError, ImageDecodeError
from .settings import NEUTRAL_INTENSITY

logger = logging.getLogger(__name__)

FIT_MODES = ('crop', 'pad', 'stretch')


class PixelGrid:
    """
    A decoded grayscale image as a 2-D grid of 8-bit intensities.

    Rows of the grid are the scanlines walked by the elevation reconstruction.
    """

    def __init__(self, array: np.ndarray):
        array = np.asarray(array)
        if array.ndim != 2:
            raise ValueError(f"Pixel grid must be 2-D, got shape {array.shape}")
        if not np.issubdtype(array.dtype, np.integer):
            raise ValueError(f"Pixel grid must hold integer intensities, got dtype {array.dtype}")
        if array.size and (array.min() < 0 or array.max() > 255):
            raise ValueError(f"Pixel intensities must lie in 0..255, got {array.min()}..{array.max()}")
        self.array = array.astype(np.uint8, copy=False)

    def width(self) -> int:
        return self.array.shape[1]

    def height(self) -> int:
        return self.array.shape[0]

    def intensity_at(self, row: int, col: int) -> int:
        return int(self.array[row, col])

    def __repr__(self) -> str:
        return f"PixelGrid(width={self.width()}, height={self.height()})"

    @classmethod
    def from_image(cls, img: Image.Image, rotate: bool = True) -> 'PixelGrid':
        """
        Build a grid from a Pillow image.

        Args:
            img: Source image, any mode
            rotate: Rotate 270 degrees clockwise so image columns become scanlines

        Returns:
            The grayscale pixel grid
        """
        gray_img = img if img.mode == 'L' else img.convert('L')
        if rotate:
            # ROTATE_90 is counter-clockwise, i.e. 270 degrees clockwise
            gray_img = gray_img.transpose(Image.Transpose.ROTATE_90)
        return cls(np.array(gray_img))

    @classmethod
    def open(cls, image_path: str, rotate: bool = True, size: Optional[Tuple[int, int]] = None,
             fit: str = 'crop', invert: bool = False) -> 'PixelGrid':
        """
        Decode an image file into a pixel grid.

        Args:
            image_path: Input image file path
            rotate: Apply the scanline orientation rotation
            size: Optional target (width, height) to resize to before rotation
            fit: Resize method when size is given ('crop', 'pad' or 'stretch')
            invert: Whether to invert the intensities

        Returns:
            The decoded pixel grid

        Raises:
            FileNotFoundError: If input image does not exist
            ConfigurationError: If the preprocessing options are invalid
            ImageDecodeError: If the file cannot be decoded as an image
        """
        if not os.path.exists(image_path):
            raise FileNotFoundError(f"Input image not found: {image_path}")

        _check_fit(size, fit)

        try:
            with Image.open(image_path) as img:
                img.load()
                prepared = prepare_image(img, size=size, fit=fit, invert=invert)
        except (UnidentifiedImageError, OSError) as e:
            logger.error(f"Failed to decode image {image_path}: {e}")
            raise ImageDecodeError(f"Failed to decode image {image_path}: {e}") from e

        grid = cls.from_image(prepared, rotate=rotate)
        logger.info(f"Loaded {image_path} as {grid.width()}x{grid.height()} pixel grid")
        return grid


def _check_fit(size: Optional[Tuple[int, int]], fit: str) -> None:
    if fit not in FIT_MODES:
        raise ConfigurationError(f"Invalid resize method: {fit}. Must be one of {', '.join(FIT_MODES)}.")
    if size is not None:
        target_width, target_height = size
        if target_width <= 0 or target_height <= 0:
            raise ConfigurationError(f"Invalid dimensions: {size}. Width and height must be positive.")


def prepare_image(img: Image.Image, size: Optional[Tuple[int, int]] = None,
                  fit: str = 'crop', invert: bool = False) -> Image.Image:
    """
    Convert an image to grayscale and optionally invert and resize it.

    Args:
        img: Source image
        size: Target (width, height), or None to keep the original size
        fit: Resize method ('crop' and 'pad' keep the aspect ratio centered, 'stretch' does not)
        invert: Whether to invert the image

    Returns:
        A new grayscale image

    Raises:
        ConfigurationError: If fit or size are invalid
    """
    _check_fit(size, fit)

    gray_img = img.convert('L')
    if invert:
        gray_img = ImageOps.invert(gray_img)

    if size is None:
        return gray_img

    target_width, target_height = size
    orig_width, orig_height = gray_img.size
    if orig_width == 0 or orig_height == 0:
        raise ConfigurationError(f"Cannot resize empty image: {orig_width}x{orig_height}")

    if fit == 'crop':
        return _crop_image(gray_img, target_width, target_height)
    elif fit == 'pad':
        return _pad_image(gray_img, target_width, target_height)
    return gray_img.resize((target_width, target_height), Image.Resampling.LANCZOS)


def _crop_image(img: Image.Image, target_width: int, target_height: int) -> Image.Image:
    """Crop image to target aspect ratio (centered)."""
    orig_width, orig_height = img.size
    target_ratio = target_width / target_height

    if orig_width / orig_height > target_ratio:
        # Wider than target aspect ratio
        new_width = max(1, int(orig_height * target_ratio))
        left = (orig_width - new_width) // 2
        box = (left, 0, left + new_width, orig_height)
    else:
        new_height = max(1, int(orig_width / target_ratio))
        top = (orig_height - new_height) // 2
        box = (0, top, orig_width, top + new_height)

    return img.crop(box).resize((target_width, target_height), Image.Resampling.LANCZOS)


def _pad_image(img: Image.Image, target_width: int, target_height: int) -> Image.Image:
    """Pad image to target aspect ratio (centered), filling with neutral gray."""
    orig_width, orig_height = img.size
    target_ratio = target_width / target_height

    if orig_width / orig_height > target_ratio:
        new_width, new_height = orig_width, int(orig_width / target_ratio)
    else:
        new_width, new_height = int(orig_height * target_ratio), orig_height

    pad_left = (new_width - orig_width) // 2
    pad_right = new_width - orig_width - pad_left
    pad_top = (new_height - orig_height) // 2
    pad_bottom = new_height - orig_height - pad_top

    # Mid-gray padding contributes no slope
    padded_img = ImageOps.expand(img, (pad_left, pad_top, pad_right, pad_bottom), fill=NEUTRAL_INTENSITY)
    return padded_img.resize((target_width, target_height), Image.Resampling.LANCZOS)
