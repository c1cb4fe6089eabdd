"""
/api/pest endpoint
"""
import logging
from typing import Optional

import httpx
from fastapi import APIRouter, File, UploadFile

from krishi.config import settings
from krishi.errors import ApiError
from krishi.schemas import PestResponse
from krishi.tools.pest import detect_pests, mock_detection

log = logging.getLogger("krishimitra.pest")

router = APIRouter(tags=["pest"])

FALLBACK_WARNING = "Using mock data due to API error"

async def _read_image(image: Optional[UploadFile]) -> bytes:
    if image is None:
        raise ApiError(400, "Image file required", "Please upload an image file for pest detection")
    if not (image.content_type or "").startswith("image/"):
        raise ApiError(400, "Invalid file type", "Only image files are allowed")

    limit = settings.PEST_MAX_UPLOAD_BYTES
    content = await image.read(limit + 1)
    if len(content) > limit:
        raise ApiError(400, "File too large", f"Image must be {limit // (1024 * 1024)}MB or smaller")
    if not content:
        raise ApiError(400, "Image file required", "The uploaded image is empty")
    return content

@router.post("/pest", response_model=PestResponse, response_model_exclude_none=True)
async def pest(image: Optional[UploadFile] = File(None)):
    """
    Pest/disease detection on a leaf photo. Without Roboflow credentials, or
    when Roboflow fails, a deterministic mock detection is returned.
    """
    content = await _read_image(image)
    filename = image.filename or "upload"
    size = len(content)

    if not settings.roboflow_configured:
        log.info("Roboflow API key or model not set, returning mock data")
        return PestResponse(data={"filename": filename, "size": size, **mock_detection(size)}, source="mock")

    try:
        result = await detect_pests(content, filename, image.content_type)
    except (httpx.HTTPError, ValueError) as e:
        log.warning("Roboflow call failed, returning mock data as fallback: %s", e)
        return PestResponse(
            data={"filename": filename, "size": size, **mock_detection(size)},
            source="fallback",
            warning=FALLBACK_WARNING,
        )

    return PestResponse(data={"filename": filename, "size": size, **result}, source="roboflow")
