"""
Image dimension extraction.

Raster formats are measured with Pillow, which only reads the image header
on ``Image.open``. SVG files are measured from the root element's
``width``/``height`` attributes, falling back to the ``viewBox``.
"""

from __future__ import annotations

import re
import logging
import threading
from typing import Tuple

from bs4 import BeautifulSoup
from PIL import Image, UnidentifiedImageError

from .errors import ImageCorruptedError


logger = logging.getLogger(__name__)

SVG_LENGTH = re.compile(r'^\s*([0-9]*\.?[0-9]+)\s*(px)?\s*$')

# Image.MAX_IMAGE_PIXELS is process-wide; only one header read may lift it
_pixel_limit_lock = threading.Lock()


def image_size(path: str) -> Tuple[float, float]:
    """
    Return (width, height) of an image file.

    Images above Pillow's decompression-bomb limit are still measured:
    nothing is decoded, so only the header is trusted.

    Raises:
        ImageCorruptedError: If the header cannot be parsed
    """
    if path.lower().endswith(('.svg', '.svgz')):
        return _svg_size(path)
    try:
        try:
            width, height = _header_size(path)
        except Image.DecompressionBombError:
            logger.debug(f"{path} exceeds Pillow's pixel limit, reading header without it")
            with _pixel_limit_lock:
                limit = Image.MAX_IMAGE_PIXELS
                Image.MAX_IMAGE_PIXELS = None
                try:
                    width, height = _header_size(path)
                finally:
                    Image.MAX_IMAGE_PIXELS = limit
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise ImageCorruptedError(path, str(e)) from e
    if width <= 0 or height <= 0:
        raise ImageCorruptedError(path, "non-positive dimensions")
    logger.debug(f"Measured {path}: {width}x{height}")
    return width, height


def _header_size(path: str) -> Tuple[int, int]:
    with Image.open(path) as img:
        return img.size


def _svg_size(path: str) -> Tuple[float, float]:
    try:
        with open(path, 'rb') as f:
            soup = BeautifulSoup(f.read(), 'lxml-xml')
    except OSError as e:
        raise ImageCorruptedError(path, str(e)) from e

    root = soup.find('svg')
    if root is None:
        raise ImageCorruptedError(path, "no <svg> root element")

    width = _svg_length(root.get('width'))
    height = _svg_length(root.get('height'))
    if width is None or height is None:
        view_box = (root.get('viewBox') or '').replace(',', ' ').split()
        if len(view_box) != 4:
            raise ImageCorruptedError(path, "missing width/height and viewBox")
        try:
            width, height = float(view_box[2]), float(view_box[3])
        except ValueError as e:
            raise ImageCorruptedError(path, "invalid viewBox") from e
    if width <= 0 or height <= 0:
        raise ImageCorruptedError(path, "non-positive dimensions")
    return width, height


def _svg_length(value):
    if not value:
        return None
    match = SVG_LENGTH.match(value)
    return float(match.group(1)) if match else None


def format_number(value: float) -> str:
    """Format a dimension without a trailing '.0' (100.0 -> '100', 50.5 -> '50.5')."""
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return text or "0"
