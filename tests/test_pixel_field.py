import numpy as np
import pytest

from slic_service.services.superpixel_segmentator.phase1_pixel_field.color import to_lab
from slic_service.services.superpixel_segmentator.phase1_pixel_field.pixel_field import (
    FeaturePoint,
    PixelField,
)


def _rgba(width, height, seed=0):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)


def test_from_bytes_builds_row_major_field():
    img = _rgba(3, 2)
    field = PixelField.from_rgba(img.tobytes(), 3, 2)

    assert len(field) == 6
    assert field.features.shape == (6, 5)
    assert field.index(2, 1) == 5

    for y in range(2):
        for x in range(3):
            p = field.point(x, y)
            assert isinstance(p, FeaturePoint)
            assert (p.x, p.y) == (x, y)
            r, g, b = (int(c) for c in img[y, x, :3])
            assert (p.L, p.a, p.b) == pytest.approx(to_lab(r, g, b))


def test_alpha_is_ignored():
    img = _rgba(2, 2)
    opaque = img.copy()
    opaque[..., 3] = 255
    a = PixelField.from_rgba(img, 2, 2)
    b = PixelField.from_rgba(opaque, 2, 2)
    np.testing.assert_array_equal(a.features, b.features)


def test_grid_view_and_read_only():
    field = PixelField.from_rgba(_rgba(4, 3), 4, 3)
    assert field.grid.shape == (3, 4, 5)
    assert field.grid[2, 1, 3] == 1.0   # x
    assert field.grid[2, 1, 4] == 2.0   # y
    with pytest.raises(ValueError):
        field.features[0, 0] = 0.0
