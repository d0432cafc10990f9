"""
Disc Rescue Backend — Image Analysis Pipeline Tests (Mocked)
=============================================================

What:  ImageAnalysisService and VisionService with a fake vision client.
How:   The vision SDK client is a MagicMock returning objects shaped like
       AnnotateImageResponse; the catalog client is an AsyncMock.

What we test:
    ✅ Words are categorized and the highest-score color is classified
    ✅ Provider exceptions and error payloads become {"errors": [...]}
    ✅ Catalog is skipped when the image has no text
    ✅ Catalog failure leaves everything except phone numbers as N/A
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.exceptions import VisionServiceError
from app.services.catalog_client import ReferenceData
from app.services.categorizer import TextCategorizer
from app.services.image_analysis_service import (
    ImageAnalysisService,
    extract_dominant_color,
    extract_words,
)
from app.services.vision_service import VisionService

REFERENCE = ReferenceData(brands=("innova",), discs=("destroyer",))


def make_service(vision_client, reference=REFERENCE):
    catalog = AsyncMock()
    catalog.fetch_reference_data = AsyncMock(return_value=reference)
    service = ImageAnalysisService(
        vision_service=VisionService(vision_client),
        catalog_client=catalog,
        categorizer=TextCategorizer(threshold=0.75),
    )
    return service, catalog


class TestExtraction:

    def test_extract_words_first_page(self, make_vision_response):
        response = make_vision_response(words=[("Innova", 0.98), ("555", 0.9)], page_confidence=0.93)

        confidence, words = extract_words(response)

        assert confidence == 0.93
        assert [(w.word, w.confidence) for w in words] == [("Innova", 0.98), ("555", 0.9)]

    def test_extract_words_without_pages(self, make_vision_response):
        assert extract_words(make_vision_response(with_page=False)) == (0.0, [])

    def test_highest_score_color_wins(self, make_vision_response):
        response = make_vision_response(
            colors=[((0, 128, 0), 0.2), ((0, 0, 255), 0.7), ((255, 0, 0), 0.1)]
        )
        dominant = extract_dominant_color(response)
        assert dominant.primary_family == "Blue"
        assert dominant.score == 0.7

    def test_no_colors(self, make_vision_response):
        assert extract_dominant_color(make_vision_response()) is None


class TestVisionService:

    @pytest.mark.asyncio
    async def test_requests_text_and_image_properties(self, make_vision_response):
        client = MagicMock()
        client.annotate_image.return_value = make_vision_response()

        await VisionService(client).annotate(b"image-bytes")

        request = client.annotate_image.call_args.args[0]
        assert request.image.content == b"image-bytes"
        assert {f.type_ for f in request.features} == set(VisionService.FEATURES)

    @pytest.mark.asyncio
    async def test_error_payload_raises(self, make_vision_response):
        client = MagicMock()
        client.annotate_image.return_value = make_vision_response(error_message="Bad image data.")

        with pytest.raises(VisionServiceError, match="Bad image data."):
            await VisionService(client).annotate(b"image-bytes")


class TestAnalyze:

    @pytest.mark.asyncio
    async def test_full_pipeline(self, make_vision_response):
        client = MagicMock()
        client.annotate_image.return_value = make_vision_response(
            words=[
                ("Innova", 0.99),
                ("Destroyer", 0.97),
                ("555", 0.9),
                ("123", 0.8),
                ("4567", 0.7),
                ("Hole7", 0.5),
            ],
            colors=[((255, 0, 0), 0.55), ((255, 255, 255), 0.3)],
            page_confidence=0.91,
        )
        service, catalog = make_service(client)

        result = await service.analyze(b"image-bytes")

        assert result.errors is None
        assert result.data.text.confidence == 0.91
        assert [(w.word, w.category) for w in result.data.text.words] == [
            ("Innova", "Brand"),
            ("Destroyer", "Disc"),
            ("5551234567", "Phone Number"),
            ("Hole7", "N/A"),
        ]
        assert result.data.colors[0].primary == "Red"
        assert result.data.colors[0].score == 0.55
        catalog.fetch_reference_data.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_color_reports_raw_name(self, make_vision_response):
        client = MagicMock()
        client.annotate_image.return_value = make_vision_response(colors=[((0, 128, 0), 0.8)])
        service, _ = make_service(client)

        result = await service.analyze(b"image-bytes")

        assert result.data.colors[0].primary == "green"

    @pytest.mark.asyncio
    async def test_no_text_skips_catalog(self, make_vision_response):
        client = MagicMock()
        client.annotate_image.return_value = make_vision_response(words=[], colors=[((0, 0, 255), 0.9)])
        service, catalog = make_service(client)

        result = await service.analyze(b"image-bytes")

        assert result.data.text.words == []
        catalog.fetch_reference_data.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_catalog_unavailable(self, make_vision_response):
        client = MagicMock()
        client.annotate_image.return_value = make_vision_response(
            words=[("Innova", 0.99), ("555-123-4567", 0.9)],
        )
        service, _ = make_service(client, reference=ReferenceData())

        result = await service.analyze(b"image-bytes")

        assert [w.category for w in result.data.text.words] == ["N/A", "Phone Number"]

    @pytest.mark.asyncio
    async def test_provider_exception_becomes_error_result(self):
        client = MagicMock()
        client.annotate_image.side_effect = RuntimeError("deadline exceeded")
        service, catalog = make_service(client)

        result = await service.analyze(b"image-bytes")

        assert result.data is None
        assert result.errors == ["Image analysis failed: deadline exceeded"]
        catalog.fetch_reference_data.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provider_error_payload_becomes_error_result(self, make_vision_response):
        client = MagicMock()
        client.annotate_image.return_value = make_vision_response(error_message="Bad image data.")
        service, _ = make_service(client)

        result = await service.analyze(b"image-bytes")

        assert result.errors == ["Bad image data."]

    @pytest.mark.asyncio
    async def test_malformed_response_becomes_error_result(self):
        client = MagicMock()
        client.annotate_image.return_value = MagicMock(
            error=MagicMock(message=""),
            full_text_annotation=None,
        )
        service, _ = make_service(client)

        result = await service.analyze(b"image-bytes")

        assert result.data is None
        assert len(result.errors) == 1
