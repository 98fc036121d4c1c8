"""Tests for signature similarity scoring."""

import numpy as np
import pytest

from photo_verify.errors import DegenerateFingerprintError
from photo_verify.images import from_array
from photo_verify.signatures import extract_signature
from photo_verify.scoring import (
    SimilarityResult, compute_similarity, is_match, score_signatures,
)


class TestComputeSimilarity:
    """Tests for the normalized Manhattan similarity."""

    def test_identical_scores_100(self, noise_rgb):
        sig = extract_signature(from_array(noise_rgb), grid_size=12)
        assert compute_similarity(sig, sig) == 100.0

    def test_black_vs_white_scores_0(self, black_image, white_image):
        black = extract_signature(black_image, grid_size=4)
        white = extract_signature(white_image, grid_size=4)
        assert compute_similarity(black, white) == 0.0

    def test_symmetric(self, portrait_rgb, noise_rgb):
        a = extract_signature(from_array(portrait_rgb), grid_size=12)
        b = extract_signature(from_array(noise_rgb), grid_size=12)
        assert compute_similarity(a, b) == compute_similarity(b, a)

    def test_partial_difference(self):
        # total 255 over 4 values -> 75%
        assert compute_similarity([0, 0, 0, 0], [255, 0, 0, 0]) == 75.0

    def test_empty_scores_0(self):
        assert compute_similarity([], []) == 0.0
        assert compute_similarity([], [1, 2, 3]) == 0.0

    def test_mismatched_lengths_truncated(self):
        assert compute_similarity([0, 0, 0], [0, 0, 0, 255, 255, 255]) == 100.0

    def test_within_bounds(self):
        rng = np.random.RandomState(0)
        for _ in range(20):
            a = rng.randint(0, 256, 48)
            b = rng.randint(0, 256, 48)
            assert 0.0 <= compute_similarity(a, b) <= 100.0

    def test_monotonic_in_difference(self):
        base = np.full(12, 100)
        scores = []
        for delta in range(0, 156, 5):
            other = base.copy()
            other[:3] += delta
            scores.append(compute_similarity(base, other))
        assert all(later <= earlier for earlier, later in zip(scores, scores[1:]))

    def test_accepts_plain_lists(self):
        assert compute_similarity([10, 20], [10, 20]) == 100.0

    def test_fractional_values_not_truncated(self):
        assert compute_similarity([0.9], [0.0]) == pytest.approx(100.0 - 0.9 * 100.0 / 255)


class TestIsMatch:
    """Tests for the threshold decision."""

    def test_threshold_inclusive(self):
        assert is_match(80.0, threshold=80)

    def test_below_threshold(self):
        assert not is_match(79.99, threshold=80)

    def test_legacy_threshold(self):
        assert is_match(76.0, threshold=75)
        assert not is_match(76.0, threshold=80)


class TestScoreSignatures:
    """Tests for the full scoring step."""

    def test_identity_matches_at_any_threshold(self):
        sig = [12, 34, 56]
        for threshold in (0, 50, 80, 100):
            result = score_signatures(sig, sig, threshold=threshold)
            assert result.score == 100.0
            assert result.is_match

    def test_exact_boundary_is_match(self):
        # 51 / 255 = 20% distance -> score exactly 80
        result = score_signatures([0], [51], threshold=80)
        assert result.score == 80.0
        assert result.is_match

    def test_black_vs_white_no_match(self, black_image, white_image):
        result = score_signatures(
            extract_signature(black_image, grid_size=4),
            extract_signature(white_image, grid_size=4),
            threshold=80,
        )
        assert result == SimilarityResult(score=0.0, is_match=False)

    def test_empty_is_zero_not_error(self):
        result = score_signatures([], [], threshold=80)
        assert result.score == 0.0
        assert not result.is_match

    def test_strict_rejects_empty(self):
        with pytest.raises(DegenerateFingerprintError, match="empty"):
            score_signatures([], [], strict=True)

    def test_strict_rejects_mismatched_lengths(self):
        with pytest.raises(DegenerateFingerprintError, match="differ"):
            score_signatures([1, 2, 3], [1, 2, 3, 4, 5, 6], strict=True)

    @pytest.mark.parametrize("threshold", [-1, 100.5])
    def test_threshold_out_of_range(self, threshold):
        with pytest.raises(ValueError, match="threshold"):
            score_signatures([0], [0], threshold=threshold)

    def test_outcome_and_dict(self):
        verified = score_signatures([0], [0], threshold=80)
        failed = score_signatures([0], [255], threshold=80)
        assert verified.outcome == "verified"
        assert failed.outcome == "failed"
        assert failed.as_dict() == {"score": 0.0, "is_match": False, "outcome": "failed"}

    def test_fractional_just_below_threshold(self):
        result = score_signatures([0.0], [51.9], threshold=80)
        assert result.score == pytest.approx(100.0 - 51.9 * 100.0 / 255)
        assert result.score < 80.0
        assert not result.is_match
