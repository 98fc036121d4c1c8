"""
Face-region cropping heuristic.

There is no face detection here. Captured selfies put the face roughly in
the upper-middle of the frame, so the crop keeps the central half of the
width and half of the height, shifted upward: the vertical offset is a
third of the leftover height instead of a half.
"""

import logging
from typing import Tuple

from .errors import InvalidImageError
from .images import RawImage, validate_image

logger = logging.getLogger(__name__)

CROP_FRACTION = 0.5
VERTICAL_BIAS_DIVISOR = 3


def crop_box(width: int, height: int) -> Tuple[int, int, int, int]:
    """
    Compute the face-region crop rectangle for an image size.

    Returns:
        Tuple of (x, y, crop_width, crop_height).

    Raises:
        InvalidImageError: If the crop would be empty (width or height < 2).
    """
    crop_w = int(width * CROP_FRACTION)
    crop_h = int(height * CROP_FRACTION)
    if crop_w <= 0 or crop_h <= 0:
        raise InvalidImageError(
            f"Image {width}x{height} is too small for a face-region crop"
        )

    x = (width - crop_w) // 2
    y = (height - crop_h) // VERTICAL_BIAS_DIVISOR
    return x, y, crop_w, crop_h


def crop_face_region(image: RawImage) -> RawImage:
    """
    Crop the estimated face region out of a RawImage.

    Args:
        image: Source image, left untouched.

    Returns:
        New RawImage of size floor(w/2) x floor(h/2).
    """
    validate_image(image)
    x, y, crop_w, crop_h = crop_box(image.width, image.height)

    patch = image.as_array()[y:y + crop_h, x:x + crop_w]
    logger.debug(
        f"Face-region crop {image.width}x{image.height} -> "
        f"{crop_w}x{crop_h} at ({x}, {y})"
    )
    return RawImage.create(crop_w, crop_h, patch.tobytes())
