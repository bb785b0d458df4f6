"""
Configuration — reads from environment variables.
Every SLIC tunable has a default, so the service runs with an empty
environment; a .env file next to the process overrides them.
"""
from dotenv import load_dotenv
load_dotenv()

import os

from slic_service.services.superpixel_segmentator.settings import SlicConfig

# SLIC tuning (empirical; see SlicConfig)
SLIC_ITERATIONS = int(os.getenv("SLIC_ITERATIONS", "10"))
SLIC_WINDOW_BEFORE = float(os.getenv("SLIC_WINDOW_BEFORE", "1.25"))
SLIC_WINDOW_AFTER = float(os.getenv("SLIC_WINDOW_AFTER", "2.0"))
SLIC_MIN_SIZE_RATIO = float(os.getenv("SLIC_MIN_SIZE_RATIO", "0.25"))
SLIC_MAX_SIZE_RATIO = float(os.getenv("SLIC_MAX_SIZE_RATIO", "5.0"))

# Request defaults
DEFAULT_SEGMENTS = int(os.getenv("DEFAULT_SEGMENTS", "200"))
DEFAULT_COMPACTNESS = float(os.getenv("DEFAULT_COMPACTNESS", "10.0"))

# Largest image (in pixels) a single request may segment
MAX_IMAGE_PIXELS = int(os.getenv("MAX_IMAGE_PIXELS", str(4000 * 4000)))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS — local dev frontends by default
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:8080"
).split(",")


def default_slic_config() -> SlicConfig:
    return SlicConfig(
        iterations=SLIC_ITERATIONS,
        window_before=SLIC_WINDOW_BEFORE,
        window_after=SLIC_WINDOW_AFTER,
        min_size_ratio=SLIC_MIN_SIZE_RATIO,
        max_size_ratio=SLIC_MAX_SIZE_RATIO,
    )
