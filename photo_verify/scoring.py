"""
Similarity scoring for grid signatures.

The score is the Manhattan distance between two signatures, normalized
by the largest possible distance (255 per compared value) and flipped
into a 0-100 closeness percentage. A comparison is a match when the score
reaches the threshold (inclusive).

This is a global color comparison: two different faces under similar
lighting can match, and the same face under different lighting may not.
"""

import os
import logging
from typing import NamedTuple

import numpy as np

from .errors import DegenerateFingerprintError

logger = logging.getLogger(__name__)

# Match threshold in percent. The earlier heuristic accepted 75.
MATCH_THRESHOLD = float(os.environ.get("MATCH_THRESHOLD", "80"))
LEGACY_MATCH_THRESHOLD = 75.0

MAX_CHANNEL_VALUE = 255

OUTCOME_VERIFIED = "verified"
OUTCOME_FAILED = "failed"


class SimilarityResult(NamedTuple):
    """Score in [0, 100] and the thresholded match decision."""

    score: float
    is_match: bool

    @property
    def outcome(self) -> str:
        return OUTCOME_VERIFIED if self.is_match else OUTCOME_FAILED

    def as_dict(self) -> dict:
        return {
            "score": round(self.score, 2),
            "is_match": self.is_match,
            "outcome": self.outcome,
        }


def check_threshold(threshold: float) -> float:
    threshold = float(threshold)
    if not 0.0 <= threshold <= 100.0:
        raise ValueError(f"threshold must be within [0, 100], got {threshold}")
    return threshold


def compute_similarity(signature_a, signature_b) -> float:
    """
    Normalized Manhattan similarity between two signatures.

    Only the first min(len(a), len(b)) values are compared. Comparing
    nothing (either signature empty) scores 0.

    Returns:
        Similarity percentage (0-100).
    """
    a = np.asarray(signature_a, dtype=np.float64).reshape(-1)
    b = np.asarray(signature_b, dtype=np.float64).reshape(-1)

    length = min(a.size, b.size)
    if length == 0:
        logger.warning("Empty signature in comparison; similarity is 0")
        return 0.0
    if a.size != b.size:
        logger.warning(
            f"Signature lengths differ ({a.size} vs {b.size}); "
            f"comparing first {length} values"
        )

    total = float(np.abs(a[:length] - b[:length]).sum())
    max_possible = MAX_CHANNEL_VALUE * length

    similarity = 100.0 - total * 100.0 / max_possible
    return float(min(100.0, max(0.0, similarity)))


def is_match(score: float, threshold: float = None) -> bool:
    """True when the score reaches the threshold (inclusive)."""
    threshold = MATCH_THRESHOLD if threshold is None else threshold
    return score >= threshold


def score_signatures(signature_a,
                     signature_b,
                     threshold: float = None,
                     strict: bool = False) -> SimilarityResult:
    """
    Score two signatures and decide match/no-match.

    Args:
        signature_a: First signature.
        signature_b: Second signature.
        threshold: Match threshold in [0, 100]. Defaults to MATCH_THRESHOLD.
        strict: Reject empty or mismatched-length signatures instead of
            truncating to the shorter one.

    Returns:
        SimilarityResult.

    Raises:
        DegenerateFingerprintError: strict is set and the signatures are
            empty or differ in length.
        ValueError: Threshold outside [0, 100].
    """
    threshold = check_threshold(MATCH_THRESHOLD if threshold is None else threshold)

    if strict:
        len_a, len_b = np.size(signature_a), np.size(signature_b)
        if len_a == 0 or len_b == 0:
            raise DegenerateFingerprintError("Cannot compare empty signatures")
        if len_a != len_b:
            raise DegenerateFingerprintError(
                f"Signature lengths differ: {len_a} vs {len_b}"
            )

    score = compute_similarity(signature_a, signature_b)
    return SimilarityResult(score=score, is_match=is_match(score, threshold))
