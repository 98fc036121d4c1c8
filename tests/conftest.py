"""Shared test fixtures for photo verification tests."""

import numpy as np
import cv2
import pytest

from photo_verify.images import RawImage


def _solid_image(width, height, rgb, alpha=255):
    """Build a RawImage filled with a single RGBA color."""
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[:, :, :3] = rgb
    pixels[:, :, 3] = alpha
    return RawImage.create(width, height, pixels.tobytes())


def _encode_png(rgb_np):
    """Encode an RGB array as PNG bytes."""
    ok, buf = cv2.imencode(".png", cv2.cvtColor(rgb_np, cv2.COLOR_RGB2BGR))
    assert ok
    return buf.tobytes()


@pytest.fixture
def black_image():
    """16x16 solid black RawImage."""
    return _solid_image(16, 16, (0, 0, 0))


@pytest.fixture
def white_image():
    """16x16 solid white RawImage."""
    return _solid_image(16, 16, (255, 255, 255))


@pytest.fixture
def portrait_rgb():
    """Generate a 120x160 RGB 'selfie': skin-toned oval on a blue backdrop."""
    img = np.zeros((160, 120, 3), dtype=np.uint8)
    img[:, :] = [40, 70, 140]
    cv2.ellipse(img, (60, 65), (30, 40), 0, 0, 360, (220, 170, 140), -1)
    cv2.circle(img, (48, 58), 4, (30, 20, 20), -1)
    cv2.circle(img, (72, 58), 4, (30, 20, 20), -1)
    return img


@pytest.fixture
def noise_rgb():
    """Generate a 120x160 random noise image."""
    rng = np.random.RandomState(42)
    return rng.randint(0, 255, (160, 120, 3), dtype=np.uint8)


@pytest.fixture
def solid_image():
    """Factory for single-color RawImages: solid_image(w, h, (r, g, b))."""
    return _solid_image


@pytest.fixture
def encode_png():
    """Encoder turning an RGB array into PNG bytes."""
    return _encode_png
