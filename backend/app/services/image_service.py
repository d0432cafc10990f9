"""
Disc Rescue Backend — Image Payload Validation
===============================================

What:  Decodes and validates the base64 image posted to the vision endpoint.
Who:   Called by the vision route before ImageAnalysisService runs, so the
       vision provider only ever receives a real, bounded-size image.

Validation order (cheapest first):
    1. Strip an optional data-URL prefix and whitespace, then base64-decode
    2. Size check (non-empty, at most settings.max_image_size bytes)
    3. Format check: Pillow must identify the bytes as an allowed format
"""

import base64
import binascii
import io
import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError

from app.config import settings
from app.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Formats the vision provider accepts, as reported by Pillow's Image.format
ALLOWED_FORMATS = {"PNG", "JPEG", "GIF", "WEBP", "BMP"}


class ImageService:
    """Stateless validator for uploaded disc photos."""

    def __init__(self, max_size: Optional[int] = None):
        self.max_size = max_size or settings.max_image_size

    def decode_base64(self, payload: str) -> bytes:
        data = payload.strip()
        if data.startswith("data:") and "," in data:
            data = data.split(",", 1)[1]
        data = "".join(data.split())

        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError(
                message="Image must be base64-encoded.",
                field="image",
            )

    def validate_size(self, content: bytes) -> None:
        if not content:
            raise ValidationError(message="Image is empty.", field="image")

        if len(content) > self.max_size:
            max_mb = self.max_size / (1024 * 1024)
            raise ValidationError(
                message=f"Image size ({len(content) / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="image",
                context={"max_size_mb": max_mb, "actual_size": len(content)},
            )

    def validate_format(self, content: bytes) -> str:
        """
        Identify the image format from its content.

        Returns:
            Pillow format name, e.g. "PNG".

        Raises:
            ValidationError if the bytes are not an image in ALLOWED_FORMATS.
        """
        try:
            with Image.open(io.BytesIO(content)) as image:
                image_format = image.format
                image.verify()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            logger.info("Rejected image payload: %s", str(e))
            raise ValidationError(
                message="Image content is not a recognized image format.",
                field="image",
            )

        if image_format not in ALLOWED_FORMATS:
            raise ValidationError(
                message=(
                    f"Image format '{image_format}' is not supported. "
                    f"Allowed: {', '.join(sorted(ALLOWED_FORMATS))}"
                ),
                field="image",
                context={"detected_format": image_format},
            )
        return image_format

    def decode_and_validate(self, payload: str) -> bytes:
        """Decode a base64 payload and run every check; returns the raw bytes."""
        content = self.decode_base64(payload)
        self.validate_size(content)
        self.validate_format(content)
        return content


image_service = ImageService()
