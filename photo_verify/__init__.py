"""
photo_verify: Photo enrollment and verification by color-grid signatures.

Reduces a captured photo to a coarse grid of average RGB values and
compares two such signatures with a normalized Manhattan distance. This
is a perceptual-hash-like heuristic, not a face recognizer.

Modules:
    images         RawImage container and decoding of captured photos
    preprocessing  Face-region cropping heuristic
    signatures     Grid-average signature extraction
    scoring        Similarity score and match decision
    verifier       Verifier class tying the pipeline together
    gallery        FAISS lookup across enrolled identities
    errors         Typed exceptions
"""

from .errors import (
    PhotoVerifyError, InvalidImageError, ImageDecodeError,
    DegenerateFingerprintError,
)
from .images import RawImage, decode_image, load_image, from_array
from .scoring import SimilarityResult, compute_similarity, is_match, score_signatures
from .signatures import extract_signature
from .verifier import Verifier, compare_images

__version__ = "1.0.0"
