"""
Disc Rescue Backend — Image Analysis Service (Pipeline Orchestrator)
=====================================================================

What:  Reads a found disc's photo: who owns it (phone number), what it is
       (brand, mold) and what color it is.
Who:   Called by POST /api/vision/image-text.

Pipeline:
    ┌──────────────┐   ┌───────────────┐   ┌──────────────┐   ┌────────────┐
    │ Vision API   │──▶│ Flatten words │──▶│ Catalog API  │──▶│ Categorize │
    │ (text+color) │   │ page 0 only   │   │ brands/discs │   │ words      │
    └──────────────┘   └───────────────┘   └──────────────┘   └────────────┘
           │
           └──▶ highest-score dominant color ──▶ color classifier

Error boundary:
    `analyze()` never raises. Provider errors, malformed responses and any other
    processing failure become {"errors": [message]} with no partial data.
    Catalog failures are not errors at all (see CatalogClient).
"""

import logging
from typing import Any, List, Optional, Tuple

from app.exceptions import VisionServiceError
from app.schemas.vision import (
    ColorResult,
    ImageAnalysisResponse,
    ImageDetectionData,
    TextResult,
    WordResult,
)
from app.services.catalog_client import CatalogClient, ReferenceData
from app.services.categorizer import RecognizedWord, TextCategorizer, WordCategory
from app.services.color_classifier import ColorClassification, classify_color
from app.services.vision_service import VisionService

logger = logging.getLogger(__name__)


def extract_words(response: Any) -> Tuple[float, List[RecognizedWord]]:
    """
    First-page text confidence and every word on that page, in reading order.

    Each word is the concatenation of its symbols' text and keeps its own
    confidence. A response without pages yields (0.0, []).
    """
    pages = response.full_text_annotation.pages
    if not pages:
        return 0.0, []

    page = pages[0]
    words = [
        RecognizedWord(
            word="".join(symbol.text for symbol in word.symbols),
            confidence=float(word.confidence),
        )
        for block in page.blocks
        for paragraph in block.paragraphs
        for word in paragraph.words
    ]
    return float(page.confidence), words


def extract_dominant_color(response: Any) -> Optional[ColorClassification]:
    """Classify the highest-scoring dominant color, or None when there is none."""
    colors = list(response.image_properties_annotation.dominant_colors.colors)
    if not colors:
        return None

    top = max(colors, key=lambda info: info.score)
    rgb = (top.color.red, top.color.green, top.color.blue)
    return classify_color(rgb, score=float(top.score))


class ImageAnalysisService:
    """
    Orchestrates one image analysis.

    All collaborators are injected; see app.dependencies for production wiring.
    """

    def __init__(
        self,
        vision_service: VisionService,
        catalog_client: CatalogClient,
        categorizer: Optional[TextCategorizer] = None,
    ):
        self.vision_service = vision_service
        self.catalog_client = catalog_client
        self.categorizer = categorizer or TextCategorizer()

    async def analyze(self, content: bytes) -> ImageAnalysisResponse:
        """
        Run the full pipeline on decoded image bytes.

        Returns:
            ImageAnalysisResponse with `data` on success, `errors` otherwise.
        """
        try:
            response = await self.vision_service.annotate(content)

            confidence, words = extract_words(response)
            reference = ReferenceData()
            if words:
                reference = await self.catalog_client.fetch_reference_data()
            categorized = self.categorizer.categorize(words, reference)

            dominant = extract_dominant_color(response)
            colors = []
            if dominant is not None:
                colors.append(ColorResult(primary=dominant.display_name, score=dominant.score))

            logger.info(
                "Analyzed image: %d words (%d categorized), dominant color %s",
                len(categorized),
                sum(1 for w in categorized if w.category is not WordCategory.UNCLASSIFIED),
                dominant.raw_name if dominant else "none",
            )

            return ImageAnalysisResponse(
                data=ImageDetectionData(
                    text=TextResult(
                        confidence=confidence,
                        words=[
                            WordResult(
                                confidence=w.confidence,
                                word=w.word,
                                category=w.category.value,
                            )
                            for w in categorized
                        ],
                    ),
                    colors=colors,
                )
            )

        except VisionServiceError as e:
            return ImageAnalysisResponse(errors=[e.message])
        except Exception as e:
            logger.error("Error processing image: %s", str(e), exc_info=True)
            return ImageAnalysisResponse(errors=[str(e) or type(e).__name__])
