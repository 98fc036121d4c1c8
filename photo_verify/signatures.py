"""
Grid-average color signatures.

The image is split into grid_size x grid_size cells of
floor(width / grid_size) x floor(height / grid_size) pixels. Each cell
contributes the floored mean of its R, G and B channels (alpha is
ignored), in row-major cell order. Pixels in the right and bottom
remainder strips, narrower than one cell, are never visited.

When the image is smaller than the grid the cells hold no pixels. By
default such cells are dropped, leaving an empty signature; the
"zero" policy emits (0, 0, 0) per empty cell so every signature has the
same length. Selected via SIGNATURE_EMPTY_CELLS or per call.
"""

import os
import logging

import numpy as np

from .images import RawImage, validate_image

logger = logging.getLogger(__name__)

# Production comparisons use a 12x12 grid; the earlier heuristic used 8x8.
GRID_SIZE = int(os.environ.get("SIGNATURE_GRID_SIZE", "12"))
LEGACY_GRID_SIZE = 8

EMPTY_CELLS_DROP = "drop"
EMPTY_CELLS_ZERO = "zero"
EMPTY_CELL_POLICIES = (EMPTY_CELLS_DROP, EMPTY_CELLS_ZERO)
EMPTY_CELL_POLICY = os.environ.get("SIGNATURE_EMPTY_CELLS", EMPTY_CELLS_DROP)

SIGNATURE_DTYPE = np.int32


def signature_length(grid_size: int = GRID_SIZE) -> int:
    """Number of values in a signature with no empty cells."""
    return 3 * grid_size * grid_size


def check_grid_size(grid_size: int) -> int:
    if isinstance(grid_size, bool) or int(grid_size) != grid_size or grid_size < 1:
        raise ValueError(f"grid_size must be a positive integer, got {grid_size!r}")
    return int(grid_size)


def extract_signature(image: RawImage,
                      grid_size: int = None,
                      empty_cells: str = None) -> np.ndarray:
    """
    Extract a grid-average RGB signature from a RawImage.

    Args:
        image: Validated RGBA image.
        grid_size: Cells per side. Defaults to GRID_SIZE.
        empty_cells: "drop" omits empty cells, "zero" fills them with
            zeros. Defaults to EMPTY_CELL_POLICY.

    Returns:
        int32 vector ordered cell (0,0) R,G,B, cell (0,1) R,G,B, ...
        with values in [0, 255].

    Raises:
        InvalidImageError: Bad image dimensions or buffer size.
        ValueError: Bad grid size or empty-cell policy.
    """
    grid_size = check_grid_size(GRID_SIZE if grid_size is None else grid_size)
    empty_cells = EMPTY_CELL_POLICY if empty_cells is None else empty_cells
    if empty_cells not in EMPTY_CELL_POLICIES:
        raise ValueError(
            f"empty_cells must be one of {EMPTY_CELL_POLICIES}, got {empty_cells!r}"
        )
    validate_image(image)

    cell_w = image.width // grid_size
    cell_h = image.height // grid_size

    if cell_w == 0 or cell_h == 0:
        # Every cell is empty when any cell is
        logger.warning(
            f"Image {image.width}x{image.height} is smaller than a "
            f"{grid_size}x{grid_size} grid; all cells are empty"
        )
        if empty_cells == EMPTY_CELLS_ZERO:
            return np.zeros(signature_length(grid_size), dtype=SIGNATURE_DTYPE)
        return np.zeros(0, dtype=SIGNATURE_DTYPE)

    rgb = image.as_array()[:grid_size * cell_h, :grid_size * cell_w, :3]

    # (grid_y, cell_y, grid_x, cell_x, channel) -> per-cell channel sums
    cells = rgb.reshape(grid_size, cell_h, grid_size, cell_w, 3)
    sums = cells.sum(axis=(1, 3), dtype=np.int64)
    means = sums // (cell_w * cell_h)

    signature = means.reshape(-1).astype(SIGNATURE_DTYPE)
    logger.debug(
        f"Extracted {signature.size}-value signature from "
        f"{image.width}x{image.height} image ({cell_w}x{cell_h} cells)"
    )
    return signature
