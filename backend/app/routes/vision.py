"""
Disc Rescue Backend — Vision Route Handler
===========================================

What:  POST /api/vision/image-text: reads the phone number, brand, mold and
       color off a photo of a found disc.
Who:   Called by the intake app when course staff photograph a disc.

Request Flow:
    1. JSON body {"image": "<base64>"}; a data-URL prefix is accepted
    2. ImageService decodes and validates it (400 on bad input)
    3. ImageAnalysisService runs the pipeline
    4. 200 with {"data": ...}, or 502 with {"errors": [...]} when the
       vision provider failed
"""

import logging

from fastapi import APIRouter, Depends, Response

from app.dependencies import get_image_analysis_service
from app.schemas.common import ErrorResponse
from app.schemas.vision import ImageAnalysisResponse, ImageTextRequest
from app.services.image_analysis_service import ImageAnalysisService
from app.services.image_service import image_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vision", tags=["Vision"])


@router.post(
    "/image-text",
    response_model=ImageAnalysisResponse,
    response_model_exclude_none=True,
    responses={
        200: {"description": "Words, categories and dominant color", "model": ImageAnalysisResponse},
        400: {"description": "Invalid image payload", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
        502: {"description": "Image analysis failed", "model": ImageAnalysisResponse},
    },
    summary="Detect text and dominant color in a disc photo",
)
async def image_text(
    body: ImageTextRequest,
    response: Response,
    analysis_service: ImageAnalysisService = Depends(get_image_analysis_service),
) -> ImageAnalysisResponse:
    content = image_service.decode_and_validate(body.image)

    result = await analysis_service.analyze(content)
    if result.errors:
        logger.warning("Image analysis failed: %s", "; ".join(result.errors))
        response.status_code = 502
    return result
