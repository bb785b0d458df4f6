import numpy as np
from functools import lru_cache


# =========================================
# CONSTANTS (sRGB, D65 reference white)
# =========================================

GAMMA_THRESHOLD = 0.04045
LAB_THRESHOLD = 0.008856

RGB_TO_XYZ = np.array([
    [0.412453, 0.357580, 0.180423],
    [0.212671, 0.715160, 0.072169],
    [0.019334, 0.119193, 0.950227],
], dtype=np.float64)

REFERENCE_WHITE = np.array([0.950456, 1.0, 1.088754], dtype=np.float64)


# =========================================
# GAMMA DECODING
# =========================================

def linearize(channel: int) -> float:
    """
    Gamma-decode one 8-bit sRGB channel to linear light in [0, 1].
    """
    c = channel / 255.0
    if c > GAMMA_THRESHOLD:
        return ((c + 0.055) / 1.055) ** 2.4
    return c / 12.92


@lru_cache(maxsize=1)
def gamma_table() -> np.ndarray:
    """
    256-entry lookup of `linearize`, built once per process.
    The array is read-only so the cached copy can be shared safely.
    """
    table = np.array([linearize(c) for c in range(256)], dtype=np.float64)
    table.setflags(write=False)
    return table


# =========================================
# sRGB -> CIE-LAB
# =========================================

def _lab_f(t: np.ndarray) -> np.ndarray:
    return np.where(t > LAB_THRESHOLD, np.cbrt(t), 7.787 * t + 16.0 / 116.0)


def rgb_to_lab(rgb: np.ndarray, table: np.ndarray = None) -> np.ndarray:
    """
    Convert uint8 RGB triples of shape (..., 3) to float LAB of the same shape.

    L lands in ~[0, 100], a/b roughly in [-128, 127].
    """
    if table is None:
        table = gamma_table()

    linear = table[np.asarray(rgb, dtype=np.uint8)]
    xyz = (linear @ RGB_TO_XYZ.T) / REFERENCE_WHITE

    x, y, z = xyz[..., 0], xyz[..., 1], xyz[..., 2]
    f_x, f_y, f_z = _lab_f(x), _lab_f(y), _lab_f(z)

    lightness = np.where(y > LAB_THRESHOLD, 116.0 * np.cbrt(y) - 16.0, 903.3 * y)

    return np.stack(
        [lightness, 500.0 * (f_x - f_y), 200.0 * (f_y - f_z)],
        axis=-1,
    )


def to_lab(r: int, g: int, b: int, table: np.ndarray = None):
    """Scalar convenience wrapper around `rgb_to_lab`."""
    lab = rgb_to_lab(np.array([r, g, b], dtype=np.uint8), table)
    return float(lab[0]), float(lab[1]), float(lab[2])
