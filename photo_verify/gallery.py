"""
In-memory lookup across enrolled identities.

Enrolled signatures are held in a FAISS flat index using the L1 metric,
the same Manhattan distance the scorer normalizes. A probe signature can
then be ranked against every enrolled identity at once, or verified
against a single chosen one.

Only fixed-length signatures (3 * grid_size^2 values) can be enrolled;
use the "zero" empty-cell policy for images that may be smaller than
the grid.
"""

import logging
from typing import Any, Dict, List

import faiss
import numpy as np

from .errors import DegenerateFingerprintError
from .signatures import GRID_SIZE, check_grid_size, signature_length
from .scoring import (
    MATCH_THRESHOLD, SimilarityResult, check_threshold, compute_similarity, is_match,
    score_signatures,
)

logger = logging.getLogger(__name__)


class SignatureGallery:
    """FAISS-backed collection of enrolled identity signatures."""

    def __init__(self, grid_size: int = None):
        self.grid_size = check_grid_size(GRID_SIZE if grid_size is None else grid_size)
        self.dimension = signature_length(self.grid_size)
        self.index = faiss.IndexFlat(self.dimension, faiss.METRIC_L1)
        self._ids: List[str] = []

    def __len__(self):
        return len(self._ids)

    def __contains__(self, identity_id):
        return identity_id in self._ids

    @property
    def identities(self) -> List[str]:
        return list(self._ids)

    def _as_vector(self, signature) -> np.ndarray:
        vector = np.asarray(signature, dtype=np.float32).reshape(-1)
        if vector.size != self.dimension:
            raise DegenerateFingerprintError(
                f"Signature length {vector.size} doesn't match "
                f"gallery dimension {self.dimension}"
            )
        return vector.reshape(1, -1)

    def _stored(self, position: int) -> np.ndarray:
        return self.index.reconstruct(position).astype(np.float64)

    def enroll(self, identity_id: str, signature) -> None:
        """Add an identity, replacing any earlier signature for the same id."""
        vector = self._as_vector(signature)
        if identity_id in self._ids:
            self.remove(identity_id)
            logger.info(f"Re-enrolling identity {identity_id}")
        self.index.add(vector)
        self._ids.append(identity_id)
        logger.debug(f"Enrolled {identity_id}; gallery size {len(self._ids)}")

    def remove(self, identity_id: str) -> bool:
        """Drop an identity. Returns False if it was not enrolled."""
        try:
            position = self._ids.index(identity_id)
        except ValueError:
            return False
        # Flat index removal compacts, keeping positions aligned with _ids
        self.index.remove_ids(np.array([position], dtype=np.int64))
        del self._ids[position]
        return True

    def search(self,
               signature,
               k: int = 5,
               threshold: float = None) -> List[Dict[str, Any]]:
        """
        Rank enrolled identities by similarity to a probe signature.

        Args:
            signature: Probe signature of the gallery's dimension.
            k: Maximum number of identities to return.
            threshold: Match threshold in [0, 100].

        Returns:
            List of dicts with identity_id, score, is_match, distance and
            rank, highest score first. Ties are broken by identity id among
            the returned results only; identities tied at the k-th distance
            are selected in FAISS order.
        """
        threshold = check_threshold(MATCH_THRESHOLD if threshold is None else threshold)
        query = self._as_vector(signature)

        k = min(k, self.index.ntotal)
        if k <= 0:
            return []

        distances, indices = self.index.search(query, k)

        results = []
        for distance, position in zip(distances[0], indices[0]):
            position = int(position)
            if position < 0:
                continue
            score = compute_similarity(query[0].astype(np.float64), self._stored(position))
            results.append({
                "identity_id": self._ids[position],
                "score": score,
                "is_match": is_match(score, threshold),
                "distance": float(distance),
            })

        results.sort(key=lambda r: (-r["score"], str(r["identity_id"])))
        for rank, result in enumerate(results):
            result["rank"] = rank

        logger.info(
            f"Gallery search over {self.index.ntotal} identities -> "
            f"{sum(r['is_match'] for r in results)} matches in top {len(results)}"
        )
        return results

    def verify(self,
               identity_id: str,
               signature,
               threshold: float = None) -> SimilarityResult:
        """
        Score a probe signature against one enrolled identity.

        Raises:
            KeyError: identity_id is not enrolled.
        """
        if identity_id not in self._ids:
            raise KeyError(identity_id)
        query = self._as_vector(signature)
        stored = self._stored(self._ids.index(identity_id))
        return score_signatures(
            stored, query[0].astype(np.float64), threshold=threshold, strict=True,
        )
