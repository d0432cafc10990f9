"""
Disc Rescue Backend — Image Analysis Schemas
=============================================

What:  Request/response contract for POST /api/vision/image-text.

Response shape (exactly one of the two keys is present):
    {"data": {"text": {"confidence": 0.97,
                       "words": [{"confidence": 0.99, "word": "Innova", "category": "Brand"}]},
              "colors": [{"primary": "Red", "score": 0.42}]}}
    {"errors": ["Image analysis failed: ..."]}
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class ImageTextRequest(BaseModel):
    """Base64 image content; a `data:image/...;base64,` prefix is accepted."""

    image: str = Field(min_length=1, description="Base64-encoded PNG/JPEG/GIF/WEBP/BMP image")


class WordResult(BaseModel):
    confidence: float = Field(description="OCR confidence for this word (0-1)")
    word: str = Field(description="Word text; digits only for phone numbers")
    category: str = Field(description="Phone Number, Brand, Disc or N/A")


class TextResult(BaseModel):
    confidence: float = Field(description="Overall text confidence of the first page (0-1)")
    words: List[WordResult] = Field(default_factory=list)


class ColorResult(BaseModel):
    primary: str = Field(description="Red, Blue, Yellow, or the raw color name when no family matched")
    score: float = Field(description="Dominant-color score reported by the vision provider")


class ImageDetectionData(BaseModel):
    text: TextResult
    colors: List[ColorResult] = Field(default_factory=list)


class ImageAnalysisResponse(BaseModel):
    data: Optional[ImageDetectionData] = None
    errors: Optional[List[str]] = None
