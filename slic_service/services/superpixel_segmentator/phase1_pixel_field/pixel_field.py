from typing import NamedTuple

import numpy as np

from .color import rgb_to_lab

# column layout of every feature row
L, A, B, X, Y = range(5)
FEATURES = 5


class FeaturePoint(NamedTuple):
    L: float
    a: float
    b: float
    x: float
    y: float


def as_rgba_array(buffer) -> np.ndarray:
    """
    Flat uint8 view of an RGBA buffer (bytes-like or array-like).
    """
    if isinstance(buffer, (bytes, bytearray, memoryview)):
        return np.frombuffer(buffer, dtype=np.uint8)
    return np.asarray(buffer, dtype=np.uint8).ravel()


class PixelField:
    """
    Dense width x height grid of (L, a, b, x, y) feature rows.

    Stored as one contiguous (width*height, 5) float array, row-major,
    so pixel (x, y) lives at row `y * width + x`.
    """

    def __init__(self, features: np.ndarray, width: int, height: int):
        if features.shape != (width * height, FEATURES):
            raise ValueError(
                f"features must have shape {(width * height, FEATURES)}, "
                f"got {features.shape}"
            )
        features.setflags(write=False)
        self.features = features
        self.width = width
        self.height = height

    @classmethod
    def from_rgba(cls, buffer, width: int, height: int,
                  table: np.ndarray = None) -> "PixelField":
        rgba = as_rgba_array(buffer).reshape(width * height, 4)

        features = np.empty((width * height, FEATURES), dtype=np.float64)
        features[:, L:X] = rgb_to_lab(rgba[:, :3], table)

        idx = np.arange(width * height)
        features[:, X] = idx % width
        features[:, Y] = idx // width

        return cls(features, width, height)

    def index(self, x: int, y: int) -> int:
        return y * self.width + x

    def point(self, x: int, y: int) -> FeaturePoint:
        return FeaturePoint(*(float(v) for v in self.features[self.index(x, y)]))

    @property
    def grid(self) -> np.ndarray:
        """(height, width, 5) view over the same memory."""
        return self.features.reshape(self.height, self.width, FEATURES)

    def __len__(self):
        return self.width * self.height
