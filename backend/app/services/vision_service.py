"""
Disc Rescue Backend — Google Cloud Vision Service
==================================================

What:  Thin wrapper around an injected `vision.ImageAnnotatorClient`.
How:   One `annotate_image` call per image requesting IMAGE_PROPERTIES and
       DOCUMENT_TEXT_DETECTION. The SDK call is blocking, so it runs in the
       Starlette threadpool.
Who:   Called by ImageAnalysisService; the client itself is built once per
       process in app.dependencies and is safe for concurrent use.

Errors:
    Transport/API exceptions and responses carrying `error.message` are both
    raised as VisionServiceError. No retries.
"""

import logging
import time

from google.cloud import vision
from starlette.concurrency import run_in_threadpool

from app.exceptions import VisionServiceError

logger = logging.getLogger(__name__)


class VisionService:
    """Requests OCR words and dominant colors for one image."""

    FEATURES = (
        vision.Feature.Type.IMAGE_PROPERTIES,
        vision.Feature.Type.DOCUMENT_TEXT_DETECTION,
    )

    def __init__(self, client: vision.ImageAnnotatorClient):
        self.client = client

    def build_request(self, content: bytes) -> vision.AnnotateImageRequest:
        return vision.AnnotateImageRequest(
            image=vision.Image(content=content),
            features=[vision.Feature(type_=feature) for feature in self.FEATURES],
        )

    async def annotate(self, content: bytes) -> vision.AnnotateImageResponse:
        """
        Run text detection and image-property analysis on raw image bytes.

        Returns:
            The provider's AnnotateImageResponse.

        Raises:
            VisionServiceError: The call failed or the response reports an error.
        """
        request = self.build_request(content)
        start_time = time.perf_counter()

        try:
            response = await run_in_threadpool(self.client.annotate_image, request)
        except Exception as e:
            logger.error("Vision API call failed: %s", str(e), exc_info=True)
            raise VisionServiceError(
                message=f"Image analysis failed: {e}",
                context={"error_type": type(e).__name__},
            ) from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        if response.error.message:
            logger.error("Vision API returned an error after %.0fms: %s", duration_ms, response.error.message)
            raise VisionServiceError(
                message=response.error.message,
                context={"code": response.error.code},
            )

        logger.info("Vision API annotate_image completed in %.0fms (%d bytes)", duration_ms, len(content))
        return response
