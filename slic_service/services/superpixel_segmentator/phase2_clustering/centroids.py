import logging
import math

import numpy as np

from ..phase1_pixel_field.pixel_field import PixelField

logger = logging.getLogger(__name__)


def solve_spacing(width: int, height: int, segment_count: int,
                  tolerance: float = 1e-4, max_steps: int = 200) -> float:
    """
    Find the grid step S such that (height / S) * (width / S) ~= segment_count.

    Bisection on S in [1, max(width, height)]. The estimate decreases
    monotonically in S, and the loop is bounded by `max_steps`.
    """
    w, h, n = float(width), float(height), float(segment_count)
    lower, upper = 1.0, max(w, h)

    mid = (lower + upper) / 2.0
    for _ in range(max_steps):
        mid = (lower + upper) / 2.0
        estimate = (h / mid) * (w / mid)
        diff = n - estimate
        if abs(diff) < tolerance:
            break
        if diff > 0:
            upper = mid
        else:
            lower = mid

    logger.debug("Spacing %.4f for %dx%d and %d segments", mid, width, height, segment_count)
    return mid


def centroid_position(i: int, spacing: float, width: int, height: int):
    """
    Integer pixel position of the i-th seed.

    Seeds walk a raster line with step `spacing`, shifted spacing/2
    to the right, wrapping onto a new row every `width` pixels.
    """
    px = spacing / 2.0 + i * spacing
    x = math.fmod(px, width)
    y = math.floor(px / width) * spacing
    return min(int(x), width - 1), min(int(y), height - 1)


def place_centroids(field: PixelField, spacing: float, segment_count: int) -> np.ndarray:
    """
    Returns a (segment_count, 5) array of seeds cloned from the field.
    Row k is centroid k; rows follow raster order of the seed positions.
    """
    rows = [
        field.index(*centroid_position(i, spacing, field.width, field.height))
        for i in range(segment_count)
    ]
    # fancy indexing copies, so centroids never alias the field
    return field.features[rows].astype(np.float64)
