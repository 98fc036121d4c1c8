"""
RawImage container and decoding of captured photos.

The capture UI hands over photos as encoded bytes, `data:` URLs or files
on disk. Everything is rasterized here into a RawImage: width, height and
an immutable RGBA byte buffer in row-major order with a top-left origin.
Signature extraction only ever sees RawImages.
"""

import os
import base64
import binascii
import logging
from typing import NamedTuple, Union
from urllib.parse import unquote_to_bytes

import cv2
import numpy as np

from .errors import InvalidImageError, ImageDecodeError

logger = logging.getLogger(__name__)

CHANNELS = 4

ImageSource = Union["RawImage", np.ndarray, bytes, bytearray, memoryview, str, os.PathLike]


class RawImage(NamedTuple):
    """Decoded RGBA bitmap."""

    width: int
    height: int
    data: bytes

    @classmethod
    def create(cls, width: int, height: int, data) -> "RawImage":
        """Build a validated RawImage, copying `data` into immutable bytes."""
        image = cls(int(width), int(height), bytes(data))
        validate_image(image)
        return image

    def as_array(self) -> np.ndarray:
        """Read-only uint8 view of shape (height, width, 4)."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(
            self.height, self.width, CHANNELS
        )


def validate_image(image: RawImage) -> None:
    """
    Check RawImage dimensions against its buffer.

    Raises:
        InvalidImageError: Non-positive width/height or a buffer whose
            length is not width * height * 4.
    """
    if image.width <= 0 or image.height <= 0:
        raise InvalidImageError(
            f"Image dimensions must be positive, got {image.width}x{image.height}"
        )
    expected = image.width * image.height * CHANNELS
    if len(image.data) != expected:
        raise InvalidImageError(
            f"Pixel buffer has {len(image.data)} bytes, expected {expected} "
            f"for {image.width}x{image.height} RGBA"
        )


def normalize_array(image_np: np.ndarray) -> np.ndarray:
    """Ensure array is uint8, scaling [0, 1] floats up to [0, 255]."""
    if image_np.dtype != np.uint8:
        if image_np.size and image_np.max() <= 1.0:
            image_np = image_np * 255
        image_np = np.clip(image_np, 0, 255).astype(np.uint8)
    return image_np


def from_array(image_np: np.ndarray) -> RawImage:
    """
    Convert an RGB-ordered numpy image into a RawImage.

    Accepts grayscale (H, W), RGB (H, W, 3) and RGBA (H, W, 4) arrays.
    Missing alpha is filled with 255.
    """
    if image_np.ndim not in (2, 3) or 0 in image_np.shape[:2]:
        raise InvalidImageError(f"Unsupported image array shape {image_np.shape}")

    image_np = np.ascontiguousarray(normalize_array(image_np))

    if image_np.ndim == 2:
        rgba = cv2.cvtColor(image_np, cv2.COLOR_GRAY2RGBA)
    elif image_np.shape[2] == 1:
        rgba = cv2.cvtColor(image_np[:, :, 0], cv2.COLOR_GRAY2RGBA)
    elif image_np.shape[2] == 3:
        rgba = cv2.cvtColor(image_np, cv2.COLOR_RGB2RGBA)
    elif image_np.shape[2] == 4:
        rgba = image_np
    else:
        raise InvalidImageError(f"Unsupported channel count {image_np.shape[2]}")

    h, w = rgba.shape[:2]
    return RawImage.create(w, h, rgba.tobytes())


def _decoded_to_raw(decoded: np.ndarray) -> RawImage:
    # imdecode yields BGR(A) order; 16-bit PNGs keep their depth
    if decoded.dtype == np.uint16:
        decoded = (decoded >> 8).astype(np.uint8)
    elif decoded.dtype != np.uint8:
        decoded = np.ascontiguousarray(normalize_array(decoded))

    if decoded.ndim == 2:
        rgba = cv2.cvtColor(decoded, cv2.COLOR_GRAY2RGBA)
    elif decoded.shape[2] == 3:
        rgba = cv2.cvtColor(decoded, cv2.COLOR_BGR2RGBA)
    elif decoded.shape[2] == 4:
        rgba = cv2.cvtColor(decoded, cv2.COLOR_BGRA2RGBA)
    else:
        raise ImageDecodeError(f"Unsupported decoded channel count {decoded.shape[2]}")

    h, w = rgba.shape[:2]
    return RawImage.create(w, h, rgba.tobytes())


def _read_data_url(url: str) -> bytes:
    header, sep, payload = url.partition(",")
    if not sep:
        raise ImageDecodeError("Malformed data URL: missing ',' separator")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageDecodeError(f"Invalid base64 payload in data URL: {e}") from e
    return unquote_to_bytes(payload)


def decode_image(source: ImageSource) -> RawImage:
    """
    Rasterize an image source into a RawImage.

    Args:
        source: A RawImage (returned as-is after validation), an RGB numpy
            array, encoded bytes (PNG, JPEG, ...), a `data:image/...;base64,`
            URL as produced by browser canvases, or a filesystem path.

    Returns:
        Decoded RawImage.

    Raises:
        ImageDecodeError: The source could not be read or decoded.
        InvalidImageError: An in-memory image has bad dimensions.
    """
    if isinstance(source, RawImage):
        validate_image(source)
        return source
    if isinstance(source, np.ndarray):
        return from_array(source)

    if isinstance(source, (bytes, bytearray, memoryview)):
        buf = bytes(source)
    elif isinstance(source, (str, os.PathLike)):
        text = os.fspath(source)
        if text.startswith("data:"):
            buf = _read_data_url(text)
        else:
            try:
                with open(text, "rb") as f:
                    buf = f.read()
            except OSError as e:
                raise ImageDecodeError(f"Cannot read image file {text}: {e}") from e
    else:
        raise TypeError(f"Unsupported image source type {type(source).__name__}")

    if not buf:
        raise ImageDecodeError("Image source is empty")

    try:
        decoded = cv2.imdecode(np.frombuffer(buf, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise ImageDecodeError(f"OpenCV failed to decode image: {e}") from e

    if decoded is None or decoded.size == 0:
        raise ImageDecodeError(f"Unrecognized image encoding ({len(buf)} bytes)")

    image = _decoded_to_raw(decoded)
    logger.debug(f"Decoded {len(buf)} bytes into {image.width}x{image.height} RGBA")
    return image


def load_image(path: Union[str, os.PathLike]) -> RawImage:
    """Decode an image file from disk."""
    return decode_image(os.fspath(path))
