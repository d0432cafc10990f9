"""
Disc Rescue Backend — OCR Text Helper Tests
============================================

What we test:
    ✅ Word normalization (trim, lowercase, strip punctuation, keep dots)
    ✅ Single-pass OCR confusion correction
    ✅ Phone number recognition across the accepted layouts
"""

import pytest

from app.services.ocr_text import (
    OCR_CONFUSIONS,
    correct_ocr_mistakes,
    digits_only,
    is_phone_number,
    normalize_word,
)


class TestNormalizeWord:

    def test_trims_and_lowercases(self):
        assert normalize_word("  Innova ") == "innova"

    def test_strips_punctuation_but_keeps_dots(self):
        assert normalize_word("Dis-Craft!") == "discraft"
        assert normalize_word("555.123.4567") == "555.123.4567"

    def test_empty_after_normalization(self):
        assert normalize_word("#$%") == ""

    def test_idempotent(self):
        for word in ("  Buzzz!! ", "MVP-Disc", "(555)"):
            once = normalize_word(word)
            assert normalize_word(once) == once


class TestCorrectOcrMistakes:

    def test_replaces_lookalikes(self):
        assert correct_ocr_mistakes("1nn0va") == "lnnova"
        assert correct_ocr_mistakes("de$troyer") == "destroyer"

    def test_preserves_length(self):
        for word in ("b055", "7h3 8u22", "plain"):
            assert len(correct_ocr_mistakes(word)) == len(word)

    def test_unmapped_characters_pass_through(self):
        assert correct_ocr_mistakes("wraith") == "wraith"

    def test_single_pass_only(self):
        table = {"a": "b", "b": "c"}
        assert correct_ocr_mistakes("ab", table) == "bc"

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            OCR_CONFUSIONS["x"] = "y"


class TestIsPhoneNumber:

    @pytest.mark.parametrize(
        "text",
        [
            "5551234567",
            "15551234567",
            "555-123-4567",
            "555.123.4567",
            "(555) 123-4567",
            "+1 555 123 4567",
            "1-555-123-4567",
        ],
    )
    def test_accepted_layouts(self, text):
        assert is_phone_number(text)

    @pytest.mark.parametrize(
        "text",
        ["555", "555123456", "555123456789", "25551234567", "555-1234", "innova", ""],
    )
    def test_rejected(self, text):
        assert not is_phone_number(text)

    def test_digits_only(self):
        assert digits_only("(555) 123-4567") == "5551234567"
