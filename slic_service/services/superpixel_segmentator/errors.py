"""
Errors raised by the superpixel segmentator.

Only bad input is an error here. Degenerate clusters and coverage
gaps are recovered inside the pipeline and never reach the caller.
"""


class SegmentationError(Exception):
    """Base class for every failure surfaced by the segmentator."""


class InvalidParameter(SegmentationError, ValueError):
    def __init__(self, name: str, value, reason: str):
        self.name = name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {name}={value!r}: {reason}")


class ImageTooLarge(SegmentationError):
    def __init__(self, pixels, limit: int):
        self.pixels = pixels
        self.limit = limit
        if pixels is None:
            super().__init__(f"Image exceeds the limit of {limit} pixels")
        else:
            super().__init__(f"Image has {pixels} pixels, limit is {limit}")
