from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class SlicConfig:
    """
    Tunables for the SLIC pipeline.

    The window multipliers and iteration count were picked empirically,
    so they stay overridable per call instead of living inline.
    """
    iterations: int = 10

    # search window is [c - before*S, c + after*S) on both axes
    window_before: float = 1.25
    window_after: float = 2.0

    # connectivity pass, as fractions of the average superpixel area
    min_size_ratio: float = 0.25
    max_size_ratio: float = 5.0

    spacing_tolerance: float = 1e-4
    spacing_max_steps: int = 200

    boundary_color: Tuple[int, int, int, int] = (255, 0, 0, 255)


DEFAULT_CONFIG = SlicConfig()
