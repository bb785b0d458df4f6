import base64
import io
import logging
import math
from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import ImageTooLarge, InvalidParameter
from .settings import DEFAULT_CONFIG, SlicConfig
from .phase1_pixel_field.pixel_field import PixelField, as_rgba_array
from .phase2_clustering.centroids import place_centroids, solve_spacing
from .phase2_clustering.clustering import cluster
from .phase3_connectivity.connectivity import enforce_connectivity
from .phase4_boundaries.boundaries import RENDER_REGISTRY, composite

logger = logging.getLogger(__name__)


@dataclass
class SegmentationResult:
    labels: np.ndarray          # (H, W) int32, dense in [0, region_count)
    overlay: np.ndarray         # (H, W, 4) uint8
    spacing: float
    region_count: int


# -------------------------------------------------
# Parameter validation
# -------------------------------------------------
def validate_parameters(buffer_length, width, height, segment_count,
                        compactness, mode="boundary"):
    """
    Reject bad input before anything is allocated.
    Raises InvalidParameter; never clamps.
    """
    if width < 1:
        raise InvalidParameter("width", width, "must be >= 1")
    if height < 1:
        raise InvalidParameter("height", height, "must be >= 1")

    pixels = width * height
    if segment_count < 1 or segment_count > pixels:
        raise InvalidParameter("segment_count", segment_count,
                               f"must be between 1 and {pixels}")
    if not (compactness > 0) or not math.isfinite(compactness):
        raise InvalidParameter("compactness", compactness, "must be a finite value > 0")
    if buffer_length != pixels * 4:
        raise InvalidParameter("buffer", buffer_length,
                               f"expected {pixels * 4} bytes for {width}x{height} RGBA")
    if mode not in RENDER_REGISTRY:
        raise InvalidParameter("mode", mode,
                               f"must be one of {sorted(RENDER_REGISTRY)}")


def check_image_size(width, height, max_pixels=None):
    """
    Raise ImageTooLarge when width * height exceeds `max_pixels` (None = no limit).
    """
    if max_pixels is not None and width * height > max_pixels:
        raise ImageTooLarge(width * height, max_pixels)


# -------------------------------------------------
# Main entry points
# -------------------------------------------------
def segment_image(buffer, width: int, height: int, segment_count: int,
                  compactness: float, mode: str = "boundary",
                  config: SlicConfig = None,
                  max_pixels: int = None) -> SegmentationResult:
    """
    Full pipeline:

        RGBA buffer -> pixel field -> seeds -> SLIC labels
                    -> connected labels -> overlay
    """
    check_image_size(width, height, max_pixels)
    config = config or DEFAULT_CONFIG
    rgba = as_rgba_array(buffer)
    validate_parameters(rgba.size, width, height, segment_count, compactness, mode)

    field = PixelField.from_rgba(rgba, width, height)

    spacing = solve_spacing(width, height, segment_count,
                            tolerance=config.spacing_tolerance,
                            max_steps=config.spacing_max_steps)
    centroids = place_centroids(field, spacing, segment_count)

    raw_labels = cluster(field, centroids, spacing, compactness, config)

    labels = enforce_connectivity(raw_labels, segment_count,
                                  min_size_ratio=config.min_size_ratio,
                                  max_size_ratio=config.max_size_ratio)
    region_count = int(labels.max()) + 1

    overlay = RENDER_REGISTRY[mode].render(labels, config.boundary_color)

    logger.info("Segmented %dx%d into %d regions (requested %d, mode=%s)",
                width, height, region_count, segment_count, mode)

    return SegmentationResult(labels=labels, overlay=overlay,
                              spacing=spacing, region_count=region_count)


def segment(buffer, width: int, height: int, segment_count: int,
            compactness: float, mode: str = "boundary",
            config: SlicConfig = None) -> bytes:
    """
    RGBA8 in, RGBA8 out (same dimensions).
    """
    result = segment_image(buffer, width, height, segment_count,
                           compactness, mode, config)
    return result.overlay.tobytes()


# -------------------------------------------------
# Encoded image helpers (used by the upload endpoint)
# -------------------------------------------------
def bytes_to_cv2(image_bytes):
    nparr = np.frombuffer(image_bytes, np.uint8)
    img_np = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    return img_np


def read_image_size(image_bytes):
    """
    (width, height) from the encoded header only; pixel data is not decoded.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            return img.size
    except UnidentifiedImageError as e:
        raise ValueError("Image could not be decoded.") from e
    except Image.DecompressionBombError as e:
        raise ImageTooLarge(None, Image.MAX_IMAGE_PIXELS) from e


def cv2_to_base64_png(img_bgr: np.ndarray) -> str:
    ok, encoded = cv2.imencode(".png", img_bgr)
    if not ok:
        raise ValueError("Could not encode result image.")
    return base64.b64encode(encoded.tobytes()).decode("utf-8")


def segment_encoded_image(image_bytes: bytes, segment_count: int,
                          compactness: float, mode: str = "boundary",
                          config: SlicConfig = None, max_pixels: int = None):
    """
    Decode an image file, segment it and composite the overlay on top.

    The pixel limit is checked against the header before decoding.
    Returns (base64 PNG, SegmentationResult).
    """
    width, height = read_image_size(image_bytes)
    check_image_size(width, height, max_pixels)

    img_bgr = bytes_to_cv2(image_bytes)
    if img_bgr is None:
        raise ValueError("Image could not be decoded.")

    height, width = img_bgr.shape[:2]
    rgba = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2RGBA)

    result = segment_image(rgba, width, height, segment_count,
                           compactness, mode, config, max_pixels=max_pixels)

    img_rgb = rgba[..., :3]
    blended = composite(img_rgb, result.overlay)
    return cv2_to_base64_png(cv2.cvtColor(blended, cv2.COLOR_RGB2BGR)), result
