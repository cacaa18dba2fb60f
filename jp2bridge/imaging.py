"""
Image helpers - dimension probing and uncompressed TIFF materialization
"""

import logging

import numpy as np
from PIL import Image, UnidentifiedImageError

from .exceptions import InputFormatError


logger = logging.getLogger(__name__)

TIFF_MAGIC = (b'II*\x00', b'MM\x00*', b'II+\x00', b'MM\x00+')

# Modes kdu_compress reads from an uncompressed TIFF
SUPPORTED_MODES = {'1', 'L', 'RGB', 'RGBA', 'I;16', 'I;16B'}


def is_tiff(path):
    """Check the file header for the TIFF magic number."""
    try:
        with open(path, 'rb') as f:
            return f.read(4) in TIFF_MAGIC
    except OSError:
        return False


def is_uncompressed_tiff(path):
    """Check that the file is a TIFF stored without compression."""
    try:
        with Image.open(path) as img:
            return img.format == 'TIFF' and img.info.get('compression', 'raw') == 'raw'
    except (UnidentifiedImageError, OSError):
        return False


def is_usable_tiff(path):
    """Whether the file can be handed to the engine as-is."""
    name = str(path).lower()
    looks_like_tiff = name.endswith('.tif') or name.endswith('.tiff') or is_tiff(path)
    return looks_like_tiff and is_uncompressed_tiff(path)


def get_image_dimensions(path):
    """
    Read image dimensions without decoding pixel data.

    Args:
        path: Image file path

    Returns:
        tuple: (width, height)
    """
    try:
        with Image.open(path) as img:
            return img.size
    except (UnidentifiedImageError, OSError) as e:
        raise InputFormatError(f"Cannot read image dimensions from {path}: {e}") from e


def image_size(image):
    """Return (width, height) for a PIL Image or numpy array."""
    if isinstance(image, np.ndarray):
        if image.ndim < 2:
            raise ValueError(f"Expected a 2D or 3D array, got shape {image.shape}")
        h, w = image.shape[:2]
        return w, h
    return image.size


def _normalize(image):
    if isinstance(image, np.ndarray):
        image = Image.fromarray(image)

    if image.mode in SUPPORTED_MODES:
        return image
    if image.mode == 'LA':
        return image.convert('L')
    return image.convert('RGB')


def write_tiff(image, path):
    """
    Save an in-memory image as an uncompressed TIFF.

    Args:
        image: PIL Image or numpy array
        path: Destination file path
    """
    img = _normalize(image)
    img.save(path, format='TIFF', compression=None)
    logger.debug("Wrote %s %dx%d TIFF to %s", img.mode, img.width, img.height, path)


def convert_to_tiff(source, path):
    """
    Re-save any image file Pillow can read as an uncompressed TIFF.

    Args:
        source: Input image file path
        path: Destination file path

    Raises:
        InputFormatError: if the input cannot be read
    """
    try:
        with Image.open(source) as img:
            img.load()
            write_tiff(img, path)
    except (UnidentifiedImageError, OSError) as e:
        raise InputFormatError(f"Unrecognized file format: {e}") from e
