"""
Disc Rescue Backend — Image Payload Validation Tests
=====================================================

What we test:
    ✅ Valid base64 PNG (with and without data-URL prefix) decodes
    ✅ Non-base64, empty, oversize and non-image payloads raise ValidationError
    ✅ Images Pillow recognizes but the provider does not accept are rejected
"""

import base64
import io

import pytest
from PIL import Image

from app.exceptions import ValidationError
from app.services.image_service import ImageService


class TestDecodeAndValidate:

    def setup_method(self):
        self.service = ImageService(max_size=1024 * 1024)

    def test_valid_png(self, png_bytes, png_base64):
        assert self.service.decode_and_validate(png_base64) == png_bytes

    def test_data_url_prefix_and_line_breaks(self, png_bytes, png_base64):
        wrapped = "\n".join(png_base64[i:i + 20] for i in range(0, len(png_base64), 20))
        payload = f"data:image/png;base64,{wrapped}"
        assert self.service.decode_and_validate(payload) == png_bytes

    def test_not_base64(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service.decode_and_validate("this is not base64!!")
        assert exc_info.value.field == "image"

    def test_empty_after_decoding(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.decode_and_validate("   ")

    def test_too_large(self):
        service = ImageService(max_size=10)
        payload = base64.b64encode(b"x" * 11).decode()
        with pytest.raises(ValidationError, match="exceeds maximum"):
            service.decode_and_validate(payload)

    def test_not_an_image(self):
        payload = base64.b64encode(b"plain text pretending to be a photo").decode()
        with pytest.raises(ValidationError, match="not a recognized image format"):
            self.service.decode_and_validate(payload)

    def test_unsupported_format(self):
        buffer = io.BytesIO()
        Image.new("RGB", (4, 4)).save(buffer, format="TIFF")
        payload = base64.b64encode(buffer.getvalue()).decode()

        with pytest.raises(ValidationError) as exc_info:
            self.service.decode_and_validate(payload)
        assert exc_info.value.context["detected_format"] == "TIFF"

    def test_jpeg_accepted(self):
        buffer = io.BytesIO()
        Image.new("RGB", (4, 4), color=(0, 0, 255)).save(buffer, format="JPEG")
        assert self.service.validate_format(buffer.getvalue()) == "JPEG"
