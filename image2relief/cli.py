import sys
import logging
import argparse
from typing import List, Optional, Tuple

from .errors import ReliefError
from .logging_config import setup_logging
from .pipeline import image_to_relief
from .pixels import FIT_MODES
from .settings import DEFAULT_BASE_THICKNESS, DEFAULT_PIXEL_SIZE, NORMAL_MODES, ReliefSettings

logger = logging.getLogger(__name__)


def parse_size(value: str) -> Tuple[int, int]:
    """Parse a WIDTHxHEIGHT argument."""
    try:
        width, height = (int(part) for part in value.lower().split('x'))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid size: {value}. Expected WIDTHxHEIGHT, e.g. 200x150.")
    if width <= 0 or height <= 0:
        raise argparse.ArgumentTypeError(f"Invalid size: {value}. Width and height must be positive.")
    return width, height


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='image2relief',
        description='Turn a grayscale image into a watertight relief STL.')
    parser.add_argument('input', help='Path to the image file')
    parser.add_argument('-o', '--output', default=None,
                        help='Output STL path (default: input path with .stl extension)')
    parser.add_argument('-b', '--base-size', type=float, default=DEFAULT_BASE_THICKNESS,
                        help='Base thickness below the lowest relief point')
    parser.add_argument('-p', '--pixel-size', type=float, default=DEFAULT_PIXEL_SIZE,
                        help='Edge length of one pixel in model units')
    parser.add_argument('--legacy', action='store_true',
                        help='Simple variant: unit pixels, no row centering, no model centering')
    parser.add_argument('--no-normalize', action='store_true',
                        help='Keep raw scanline elevations')
    parser.add_argument('--no-center', action='store_true',
                        help='Place the model corner at the origin')
    parser.add_argument('--normals', choices=NORMAL_MODES, default='zero',
                        help='Face normals to store in the STL')
    parser.add_argument('--size', type=parse_size, default=None,
                        help='Resize the image to WIDTHxHEIGHT first')
    parser.add_argument('--fit', choices=FIT_MODES, default='crop',
                        help='Resize method used with --size')
    parser.add_argument('--invert', action='store_true', help='Invert the image')
    parser.add_argument('--ascii', action='store_true', help='Write ASCII STL')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def settings_from_args(args: argparse.Namespace) -> ReliefSettings:
    if args.legacy:
        if args.pixel_size != DEFAULT_PIXEL_SIZE:
            logger.warning(f"--legacy uses unit pixels, ignoring pixel size {args.pixel_size}")
        return ReliefSettings.legacy(base_thickness=args.base_size, normals=args.normals)
    return ReliefSettings(base_thickness=args.base_size, pixel_size=args.pixel_size,
                          normalize_rows=not args.no_normalize, center=not args.no_center,
                          normals=args.normals)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        settings = settings_from_args(args)
        image_to_relief(args.input, args.output, size=args.size, fit=args.fit,
                        invert=args.invert, ascii=args.ascii, settings=settings)
    except (ReliefError, OSError) as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
