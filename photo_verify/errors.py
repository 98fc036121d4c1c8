"""
Typed failures raised by the photo verification pipeline.

Every error derives from PhotoVerifyError so callers can catch the whole
family at the UI boundary. Degenerate comparisons (nothing to compare)
are not errors: the scorer returns 0 for those.
"""


class PhotoVerifyError(Exception):
    """Base class for all photo_verify errors."""


class InvalidImageError(PhotoVerifyError, ValueError):
    """Image has non-positive dimensions or a mis-sized pixel buffer."""


class ImageDecodeError(PhotoVerifyError):
    """Encoded image data could not be rasterized."""


class DegenerateFingerprintError(PhotoVerifyError, ValueError):
    """Fingerprints are empty or of mismatched length under the strict policy."""
