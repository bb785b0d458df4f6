"""
SLIC Superpixel API
───────────────────
POST /segment        — RGBA buffer (base64) in, RGBA overlay (base64) out
POST /segment-image  — image file in, PNG with superpixel overlay out
GET  /health         — health check
"""

import base64
import binascii
import logging

from fastapi import FastAPI, UploadFile, File, Form, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from slic_service.config import (
    ALLOWED_ORIGINS,
    DEFAULT_COMPACTNESS,
    DEFAULT_SEGMENTS,
    LOG_LEVEL,
    MAX_IMAGE_PIXELS,
    default_slic_config,
)
from slic_service.models import (
    RenderMode,
    SegmentRequest,
    SegmentResponse,
    SegmentImageResponse,
)
from slic_service.services.superpixel_segmentator.errors import ImageTooLarge, InvalidParameter
from slic_service.services.superpixel_segmentator.superpixel_segmentator import (
    check_image_size,
    segment_encoded_image,
    segment_image,
)

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

SLIC_CONFIG = default_slic_config()

app = FastAPI(
    title="SLIC Superpixel API",
    description="Partitions images into compact, perceptually uniform superpixels",
    version="0.1.0",
    docs_url="/docs",   # Swagger UI
    redoc_url="/redoc", # ReDoc
    openapi_url="/openapi.json",
)

# ── CORS ──────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Health check ──────────────────────────────────────────────
@app.get("/")
def health():
    return {
        "status": "ok",
        "service": "SLIC Superpixel API",
        "iterations": SLIC_CONFIG.iterations,
    }


@app.get("/health")
def health_check():
    return {"status": "ok"}


# ── Segment a raw RGBA buffer ─────────────────────────────────
@app.post("/segment", response_model=SegmentResponse)
def segment_buffer(request: SegmentRequest):
    """
    Recibe un buffer RGBA8 (base64) con sus dimensiones.
    Devuelve el overlay RGBA8 del mismo tamaño.
    """
    try:
        # reject oversized images before the payload is decoded
        check_image_size(request.width, request.height, MAX_IMAGE_PIXELS)
    except ImageTooLarge as e:
        raise HTTPException(status_code=413, detail=str(e))

    try:
        buffer = base64.b64decode(request.pixels, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="pixels is not valid base64")

    logger.info("POST /segment %dx%d segments=%d compactness=%.2f mode=%s",
                request.width, request.height, request.segments,
                request.compactness, request.mode)

    try:
        result = segment_image(
            buffer,
            request.width,
            request.height,
            request.segments,
            request.compactness,
            mode=request.mode,
            config=SLIC_CONFIG,
            max_pixels=MAX_IMAGE_PIXELS,
        )
    except InvalidParameter as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ImageTooLarge as e:
        raise HTTPException(status_code=413, detail=str(e))
    except Exception as e:
        logger.exception("Segmentation failed")
        raise HTTPException(
            status_code=500,
            detail=f"Error segmenting image: {str(e)}",
        )

    return SegmentResponse(
        pixels=base64.b64encode(result.overlay.tobytes()).decode("utf-8"),
        width=request.width,
        height=request.height,
        mode=request.mode,
        regionCount=result.region_count,
        spacing=result.spacing,
    )


# ── Segment an uploaded image file ────────────────────────────
@app.post("/segment-image", response_model=SegmentImageResponse)
async def segment_uploaded_image(
    image: UploadFile = File(...),
    segments: int = Form(DEFAULT_SEGMENTS),
    compactness: float = Form(DEFAULT_COMPACTNESS),
    mode: RenderMode = Form("boundary"),
):
    """
    Recibe una imagen (png, jpg, ...), la segmenta en superpixeles y
    devuelve la imagen con el overlay aplicado como PNG en base64.
    """
    image_bytes = await image.read()

    if not image_bytes:
        raise HTTPException(status_code=400, detail="No image provided")

    # CPU-bound; keep it off the event loop
    try:
        encoded, result = await run_in_threadpool(
            segment_encoded_image,
            image_bytes,
            segments,
            compactness,
            mode=mode,
            config=SLIC_CONFIG,
            max_pixels=MAX_IMAGE_PIXELS,
        )
    except InvalidParameter as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ImageTooLarge as e:
        raise HTTPException(status_code=413, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Segmentation failed")
        raise HTTPException(
            status_code=500,
            detail=f"Error analyzing image: {str(e)}",
        )

    height, width = result.labels.shape
    return SegmentImageResponse(
        image=encoded,
        width=width,
        height=height,
        regionCount=result.region_count,
    )
