import logging
from collections import deque

import numpy as np

logger = logging.getLogger(__name__)


def size_bounds(width: int, height: int, segment_count: int,
                min_size_ratio: float = 0.25, max_size_ratio: float = 5.0):
    """
    (min_size, max_size) in pixels, relative to the average superpixel area.
    """
    avg_area = width * height / segment_count
    min_size = min_size_ratio * avg_area
    max_size = max(1, int(max_size_ratio * avg_area))
    return min_size, max_size


def _neighbors(idx: int, width: int, size: int):
    """4-connected neighbors of a flat index: left, right, up, down."""
    x = idx % width
    if x > 0:
        yield idx - 1
    if x < width - 1:
        yield idx + 1
    if idx >= width:
        yield idx - width
    if idx + width < size:
        yield idx + width


def _relabel_pass(source, width, height, min_size, max_size):
    """
    One raster scan over `source` (flat list of labels).

    Each unvisited pixel seeds a BFS over same-label neighbors, capped
    at max_size pixels. A component below min_size is merged into the
    already-labelled neighbor it touches most (smallest label on ties),
    skipping neighbors that would grow past max_size; with no eligible
    neighbor it keeps a label of its own.

    Returns (flat labels, region count, merge count).
    """
    size = width * height
    result = [-1] * size

    # tally and region sizes indexed by new label; at most `size` labels exist
    tally = [0] * size
    region_size = [0] * size
    touched = []

    next_label = 0
    merged = 0
    queue = deque()

    for start in range(size):
        if result[start] != -1:
            continue

        original = source[start]
        result[start] = next_label
        component = [start]
        queue.append(start)

        while queue:
            idx = queue.popleft()
            for nb in _neighbors(idx, width, size):
                current = result[nb]
                if current == -1:
                    if source[nb] == original and len(component) < max_size:
                        result[nb] = next_label
                        component.append(nb)
                        queue.append(nb)
                elif current != next_label:
                    if tally[current] == 0:
                        touched.append(current)
                    tally[current] += 1

        target = None
        if len(component) < min_size:
            eligible = [lbl for lbl in touched
                        if region_size[lbl] + len(component) <= max_size]
            if eligible:
                target = min(eligible, key=lambda lbl: (-tally[lbl], lbl))

        if target is not None:
            for idx in component:
                result[idx] = target
            region_size[target] += len(component)
            merged += 1
        else:
            region_size[next_label] = len(component)
            next_label += 1

        for lbl in touched:
            tally[lbl] = 0
        touched.clear()

    return result, next_label, merged


def enforce_connectivity(labels: np.ndarray, segment_count: int,
                         min_size_ratio: float = 0.25,
                         max_size_ratio: float = 5.0) -> np.ndarray:
    """
    Relabel `labels` so every label is a single 4-connected region of at
    most max_size pixels, with undersized fragments merged away.

    The relabel pass is repeated until it no longer changes the map, so
    the result is a fixed point: running this again on its own output
    returns the same labels. After the first pass every region is
    connected and within max_size, so later passes can only merge and
    each changing pass strictly lowers the region count.

    The -1 (unassigned) class is treated like any other label. The
    result is a dense int32 map in [0, M), numbered in raster order of
    each region's first pixel.
    """
    height, width = labels.shape
    min_size, max_size = size_bounds(width, height, segment_count,
                                     min_size_ratio, max_size_ratio)

    current = labels.ravel().tolist()
    passes = 0
    while True:
        relabelled, regions, merged = _relabel_pass(current, width, height,
                                                    min_size, max_size)
        passes += 1
        logger.debug("Connectivity pass %d: %d region(s), %d fragment(s) merged",
                     passes, regions, merged)
        if relabelled == current:
            break
        current = relabelled

    return np.array(current, dtype=np.int32).reshape(height, width)


def is_connected(labels: np.ndarray) -> bool:
    """
    True when every label value in the map forms one 4-connected region.
    """
    height, width = labels.shape
    size = width * height
    flat = labels.ravel().tolist()
    seen = [False] * size
    visited_labels = set()

    for start in range(size):
        if seen[start]:
            continue
        label = flat[start]
        if label in visited_labels:
            return False
        visited_labels.add(label)

        seen[start] = True
        queue = deque([start])
        while queue:
            idx = queue.popleft()
            for nb in _neighbors(idx, width, size):
                if not seen[nb] and flat[nb] == label:
                    seen[nb] = True
                    queue.append(nb)
    return True
