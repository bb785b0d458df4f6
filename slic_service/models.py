"""
Pydantic models for the segmentation endpoints.
Bounds that depend on the image size (segments <= width * height,
buffer length) are checked by the segmentator itself.
"""

from pydantic import BaseModel, Field
from typing import Literal

RenderMode = Literal["boundary", "pseudocolor"]


class SegmentRequest(BaseModel):
    pixels: str = Field(..., description="Base64-encoded RGBA8 buffer, row-major")
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)
    segments: int = Field(200, ge=1)
    compactness: float = Field(10.0, gt=0)
    mode: RenderMode = "boundary"


class SegmentResponse(BaseModel):
    pixels: str = Field(..., description="Base64-encoded RGBA8 overlay, same size as the input")
    width: int
    height: int
    mode: RenderMode
    regionCount: int
    spacing: float


class SegmentImageResponse(BaseModel):
    """Uploaded image with the overlay composited on top, as a base64 PNG."""
    image: str
    width: int
    height: int
    regionCount: int
