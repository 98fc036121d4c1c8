"""
Photo verification pipeline.

Ties the stages together:
    1. Decode both photos into RawImages
    2. Optionally crop the estimated face region
    3. Extract grid-average signatures
    4. Score the signatures and apply the match threshold

Each comparison is independent and holds no state between calls, so a
single Verifier may be shared freely.
"""

import os
import logging
from typing import NamedTuple

import numpy as np

from .images import ImageSource, decode_image
from .preprocessing import crop_face_region
from .signatures import (
    GRID_SIZE, LEGACY_GRID_SIZE, EMPTY_CELL_POLICY, EMPTY_CELL_POLICIES,
    check_grid_size, extract_signature,
)
from .scoring import (
    MATCH_THRESHOLD, LEGACY_MATCH_THRESHOLD, SimilarityResult,
    check_threshold, score_signatures,
)

logger = logging.getLogger(__name__)

CROP_FACE_REGION = os.environ.get("CROP_FACE_REGION", "1").lower() not in ("0", "false", "no")


class Profile(NamedTuple):
    grid_size: int
    threshold: float


DEFAULT_PROFILE = Profile(grid_size=12, threshold=80.0)
LEGACY_PROFILE = Profile(grid_size=LEGACY_GRID_SIZE, threshold=LEGACY_MATCH_THRESHOLD)


class Verifier:
    """
    Compares a live photo against an enrolled photo.

    Configuration is validated once at construction; unspecified values
    fall back to the environment-driven module defaults.
    """

    def __init__(self,
                 grid_size: int = None,
                 threshold: float = None,
                 crop_face: bool = None,
                 empty_cells: str = None,
                 strict: bool = False):
        """
        Args:
            grid_size: Signature grid cells per side (>= 1).
            threshold: Match threshold in [0, 100].
            crop_face: Crop the estimated face region before extraction.
            empty_cells: "drop" or "zero" handling of empty grid cells.
            strict: Raise DegenerateFingerprintError instead of scoring
                empty or mismatched signatures.
        """
        self.grid_size = check_grid_size(GRID_SIZE if grid_size is None else grid_size)
        self.threshold = check_threshold(MATCH_THRESHOLD if threshold is None else threshold)
        self.crop_face = CROP_FACE_REGION if crop_face is None else bool(crop_face)
        self.empty_cells = EMPTY_CELL_POLICY if empty_cells is None else empty_cells
        if self.empty_cells not in EMPTY_CELL_POLICIES:
            raise ValueError(
                f"empty_cells must be one of {EMPTY_CELL_POLICIES}, "
                f"got {self.empty_cells!r}"
            )
        self.strict = strict

    @classmethod
    def from_profile(cls, profile: Profile, **kwargs) -> "Verifier":
        return cls(grid_size=profile.grid_size, threshold=profile.threshold, **kwargs)

    def __repr__(self):
        return (
            f"Verifier(grid_size={self.grid_size}, threshold={self.threshold}, "
            f"crop_face={self.crop_face}, empty_cells={self.empty_cells!r}, "
            f"strict={self.strict})"
        )

    def fingerprint(self, image: ImageSource) -> np.ndarray:
        """Decode, optionally crop, and extract the signature of one photo."""
        raw = decode_image(image)
        if self.crop_face:
            raw = crop_face_region(raw)
        return extract_signature(raw, self.grid_size, self.empty_cells)

    def compare(self, image_a: ImageSource, image_b: ImageSource) -> SimilarityResult:
        """
        Compare two photos.

        Args:
            image_a: Enrolled photo (RawImage, array, bytes, data URL or path).
            image_b: Live photo, same accepted forms.

        Returns:
            SimilarityResult with score and match decision.

        Raises:
            ImageDecodeError: A photo could not be decoded.
            InvalidImageError: A photo has bad dimensions or is too small
                to crop.
        """
        signature_a = self.fingerprint(image_a)
        signature_b = self.fingerprint(image_b)

        result = score_signatures(
            signature_a, signature_b,
            threshold=self.threshold, strict=self.strict,
        )
        logger.info(
            f"Comparison score {result.score:.2f} "
            f"(threshold {self.threshold}) -> {result.outcome}"
        )
        return result

    def compare_signature(self, signature, image: ImageSource) -> SimilarityResult:
        """Compare a previously extracted signature against a photo."""
        result = score_signatures(
            signature, self.fingerprint(image),
            threshold=self.threshold, strict=self.strict,
        )
        logger.info(
            f"Signature comparison score {result.score:.2f} "
            f"(threshold {self.threshold}) -> {result.outcome}"
        )
        return result


def compare_images(image_a: ImageSource,
                   image_b: ImageSource,
                   **config) -> SimilarityResult:
    """Compare two photos with a one-off Verifier built from `config`."""
    return Verifier(**config).compare(image_a, image_b)
