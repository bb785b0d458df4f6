"""Tests for the connectivity-enforcement pass."""
import numpy as np
import pytest

from slic_service.services.superpixel_segmentator.phase3_connectivity.connectivity import (
    enforce_connectivity,
    is_connected,
    size_bounds,
)
from slic_service.services.superpixel_segmentator.superpixel_segmentator import segment_image


def _image(kind, size=16):
    yy, xx = np.mgrid[0:size, 0:size]
    img = np.full((size, size, 4), 255, dtype=np.uint8)
    if kind == "ramp":
        img[..., 0] = xx * 15
        img[..., 1] = yy * 15
        img[..., 2] = (xx + yy) * 7
    elif kind == "two_tone":
        img[..., :3] = np.where((xx + yy < size)[..., None], 40, 210)
    else:
        img[..., :3] = 128
    return img


def _same_partition(a, b):
    """True when a and b differ only by a consistent relabelling."""
    forward, backward = {}, {}
    for x, y in zip(a.ravel().tolist(), b.ravel().tolist()):
        if forward.setdefault(x, y) != y or backward.setdefault(y, x) != x:
            return False
    return True


def test_size_bounds():
    assert size_bounds(10, 10, 4) == (6.25, 125)
    assert size_bounds(1, 1, 1, max_size_ratio=0.1) == (0.25, 1)


def test_disconnected_label_is_split():
    labels = np.array([
        [0, 0, 1, 0, 0],
        [0, 0, 1, 0, 0],
        [0, 0, 1, 0, 0],
    ])
    out = enforce_connectivity(labels, 3)
    expected = np.array([
        [0, 0, 1, 2, 2],
        [0, 0, 1, 2, 2],
        [0, 0, 1, 2, 2],
    ])
    np.testing.assert_array_equal(out, expected)
    assert is_connected(out)


def test_small_fragment_is_merged():
    labels = np.zeros((6, 6), dtype=np.int32)
    labels[3, 3] = 1
    labels[3, 4] = 1
    out = enforce_connectivity(labels, 2)
    assert np.all(out == 0)


def test_merge_tie_goes_to_smallest_label():
    # the centre pixel touches the first region (0) and the second (1)
    # twice each; the left neighbour (1) is seen first
    labels = np.array([
        [5, 5, 5],
        [7, 9, 5],
        [7, 7, 7],
    ])
    out = enforce_connectivity(labels, 2)
    expected = np.array([
        [0, 0, 0],
        [1, 0, 0],
        [1, 1, 1],
    ])
    np.testing.assert_array_equal(out, expected)


def test_flood_fill_is_capped():
    labels = np.zeros((1, 10), dtype=np.int32)
    out = enforce_connectivity(labels, 10)
    np.testing.assert_array_equal(out[0], [0] * 5 + [1] * 5)


def test_unassigned_pixels_become_a_region():
    labels = np.array([
        [-1, -1, 0, 0],
        [-1, -1, 0, 0],
    ])
    out = enforce_connectivity(labels, 2)
    np.testing.assert_array_equal(out, [[0, 0, 1, 1], [0, 0, 1, 1]])
    assert out.min() >= 0


def test_labels_are_dense():
    rng = np.random.default_rng(11)
    labels = rng.integers(0, 4, size=(9, 9))
    out = enforce_connectivity(labels, 4)
    assert set(np.unique(out)) == set(range(int(out.max()) + 1))
    assert is_connected(out)


class TestIdempotence:

    def test_quadrants_unchanged(self):
        labels = np.zeros((8, 8), dtype=np.int32)
        labels[:4, 4:] = 1
        labels[4:, :4] = 2
        labels[4:, 4:] = 3
        once = enforce_connectivity(labels, 4)
        np.testing.assert_array_equal(once, labels)
        np.testing.assert_array_equal(enforce_connectivity(once, 4), once)

    @pytest.mark.parametrize("image", ["ramp", "two_tone", "gray"])
    def test_pipeline_output_is_stable(self, image):
        img = _image(image)
        result = segment_image(img, 16, 16, 8, 10.0)

        assert is_connected(result.labels)
        again = enforce_connectivity(result.labels, 8)
        assert _same_partition(result.labels, again)


    @pytest.mark.parametrize("seed", range(12))
    def test_noise_pipeline_output_is_stable(self, seed):
        rng = np.random.default_rng(seed)
        k = int(rng.integers(2, 40))
        m = float(rng.uniform(1.0, 40.0))
        img = rng.integers(0, 256, size=(20, 24, 4), dtype=np.uint8)
        result = segment_image(img, 24, 20, k, m)

        _, max_size = size_bounds(24, 20, k)
        assert np.bincount(result.labels.ravel()).max() <= max_size
        assert is_connected(result.labels)
        assert _same_partition(result.labels, enforce_connectivity(result.labels, k))

class TestSizeAwareMerge:

    def test_full_neighbour_is_skipped_for_next_best(self):
        # the fragment touches region 0 three times, but 0 is already at
        # max_size (8), so it joins region 1 instead
        labels = np.array([
            [0, 0, 0, 1],
            [0, 0, 2, 1],
            [0, 0, 0, 1],
        ])
        out = enforce_connectivity(labels, 3, min_size_ratio=0.5, max_size_ratio=2.0)
        expected = np.array([
            [0, 0, 0, 1],
            [0, 0, 1, 1],
            [0, 0, 0, 1],
        ])
        np.testing.assert_array_equal(out, expected)

    def test_fragment_without_eligible_neighbour_keeps_its_label(self):
        labels = np.array([
            [0, 0, 0],
            [0, 9, 0],
            [0, 0, 0],
        ])
        out = enforce_connectivity(labels, 4, min_size_ratio=0.5, max_size_ratio=3.6)
        expected = np.array([
            [0, 0, 0],
            [0, 1, 0],
            [0, 0, 0],
        ])
        np.testing.assert_array_equal(out, expected)
        np.testing.assert_array_equal(
            enforce_connectivity(out, 4, min_size_ratio=0.5, max_size_ratio=3.6), out)

    @pytest.mark.parametrize("seed", range(8))
    def test_random_label_maps_are_fixed_points(self, seed):
        rng = np.random.default_rng(seed)
        k = int(rng.integers(2, 30))
        labels = rng.integers(0, 4, size=(9, 11))
        once = enforce_connectivity(labels, k)

        _, max_size = size_bounds(11, 9, k)
        assert np.bincount(once.ravel()).max() <= max_size
        assert is_connected(once)
        assert _same_partition(once, enforce_connectivity(once, k))


def test_is_connected_detects_split_label():
    labels = np.array([[0, 1, 0]])
    assert not is_connected(labels)
    assert is_connected(np.array([[0, 0, 1]]))
