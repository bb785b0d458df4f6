import logging

import numpy as np

from ..phase1_pixel_field.pixel_field import L, A, B, X, Y, FEATURES, PixelField
from ..settings import DEFAULT_CONFIG, SlicConfig

logger = logging.getLogger(__name__)


# =========================================
# DISTANCE
# =========================================

def slic_distance(points: np.ndarray, centroids: np.ndarray, xy_coeff: float) -> np.ndarray:
    """
    L1 color + weighted L1 spatial distance.

        d = |dL| + |da| + |db| + xy_coeff * (|dx| + |dy|)

    `centroids` broadcasts against `points` (one centroid, or one per point).
    """
    diff = np.abs(points - centroids)
    color = diff[..., L] + diff[..., A] + diff[..., B]
    return color + xy_coeff * (diff[..., X] + diff[..., Y])


# =========================================
# ASSIGNMENT SWEEP
# =========================================

def search_window(centroid: np.ndarray, spacing: float, width: int, height: int,
                  config: SlicConfig = DEFAULT_CONFIG):
    """
    Clipped [x0, x1) x [y0, y1) window around a centroid.
    """
    before = config.window_before * spacing
    after = config.window_after * spacing
    cx, cy = centroid[X], centroid[Y]

    x0 = max(int(cx - before), 0)
    x1 = min(int(cx + after), width)
    y0 = max(int(cy - before), 0)
    y1 = min(int(cy + after), height)
    return x0, x1, y0, y1


def sweep(field: PixelField, labels: np.ndarray, centroids: np.ndarray,
          spacing: float, xy_coeff: float, config: SlicConfig = DEFAULT_CONFIG) -> None:
    """
    One assignment pass, centroids visited in index order.

    Inside a window, unassigned pixels go to k and assigned pixels move
    to k only if k is strictly closer. Ties keep the current label, so
    lower indices win ties against later ones. Centroids do not move
    during the pass, which makes a whole window evaluable at once.
    """
    grid = field.grid
    for k in range(len(centroids)):
        x0, x1, y0, y1 = search_window(centroids[k], spacing, field.width, field.height, config)
        if x0 >= x1 or y0 >= y1:
            continue

        window = labels[y0:y1, x0:x1]
        points = grid[y0:y1, x0:x1]

        assigned = window >= 0
        d_k = slic_distance(points, centroids[k], xy_coeff)
        d_now = slic_distance(points, centroids[np.where(assigned, window, 0)], xy_coeff)

        window[~assigned | (d_k < d_now)] = k


# =========================================
# CENTROID UPDATE
# =========================================

def update_centroids(field: PixelField, labels: np.ndarray, centroids: np.ndarray) -> int:
    """
    Move every centroid to the mean of its members, in place.

    Centroids left without members keep their previous value; the
    count of those is returned. Unassigned (-1) pixels are ignored.
    """
    k = len(centroids)
    flat = labels.ravel()
    member = flat >= 0
    owners = flat[member]

    counts = np.bincount(owners, minlength=k)
    sums = np.empty((k, FEATURES), dtype=np.float64)
    for c in range(FEATURES):
        sums[:, c] = np.bincount(owners, weights=field.features[member, c], minlength=k)

    live = counts > 0
    centroids[live] = sums[live] / counts[live, None]
    return int(k - np.count_nonzero(live))


# =========================================
# CONTROLLER
# =========================================

def cluster(field: PixelField, centroids: np.ndarray, spacing: float,
            compactness: float, config: SlicConfig = DEFAULT_CONFIG) -> np.ndarray:
    """
    Run the SLIC loop for `config.iterations` rounds.

    `centroids` is updated in place. Returns a (height, width) int32
    label map with values in {-1} U [0, K).
    """
    labels = np.full((field.height, field.width), -1, dtype=np.int32)
    xy_coeff = compactness / spacing

    for iteration in range(config.iterations):
        sweep(field, labels, centroids, spacing, xy_coeff, config)
        degenerate = update_centroids(field, labels, centroids)
        if degenerate:
            logger.debug("Iteration %d: %d centroid(s) without members kept in place",
                         iteration, degenerate)

    gaps = int(np.count_nonzero(labels < 0))
    if gaps:
        logger.debug("%d pixel(s) never reached by any search window", gaps)

    return labels
