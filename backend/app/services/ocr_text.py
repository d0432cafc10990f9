"""
Disc Rescue Backend — OCR Text Helpers
=======================================

What:  Small pure functions applied to every word the vision provider returns.
Who:   Used by the TextCategorizer before phone-number and fuzzy matching.

    normalize_word        "  Innova! " → "innova"
    correct_ocr_mistakes  "1nn0va"     → "lnnova"   (one pass, char-for-char)
    is_phone_number       "(555) 123-4567" → True
"""

import re
from types import MappingProxyType
from typing import Mapping

# What: Characters the OCR engine commonly returns in place of a letter
# Digits and symbols map to the lowercase letter they resemble on a disc stamp.
OCR_CONFUSIONS: Mapping[str, str] = MappingProxyType({
    "0": "o",
    "1": "l",
    "2": "z",
    "3": "e",
    "4": "a",
    "5": "s",
    "6": "g",
    "7": "t",
    "8": "b",
    "9": "q",
    "$": "s",
    "@": "a",
    "|": "l",
    "!": "i",
    "€": "e",
    "+": "t",
})

_NON_WORD_CHARS = re.compile(r"[^a-z0-9.]")

# North-American numbering plan layout: optional +1/1 country code, area code
# (optionally parenthesized), exchange, subscriber number; space/dash/dot separators.
PHONE_NUMBER_PATTERN = re.compile(
    r"(?:\+?1[\s.-]?)?(?:\(\d{3}\)|\d{3})[\s.-]?\d{3}[\s.-]?\d{4}"
)

# Longest digit run the pattern can match ("1" + 10 digits)
MAX_PHONE_DIGITS = 11


def normalize_word(word: str) -> str:
    """Trim, lowercase and drop every character outside [a-z0-9.]."""
    return _NON_WORD_CHARS.sub("", word.strip().lower())


def correct_ocr_mistakes(word: str, confusions: Mapping[str, str] = OCR_CONFUSIONS) -> str:
    """
    Replace each look-alike character with the letter it was probably meant to be.

    Characters absent from the table pass through unchanged, so the output always
    has the same length as the input. A single pass only: applying it twice can
    give a different result when the table chains (e.g. "€" → "e").
    """
    return "".join(confusions.get(char, char) for char in word)


def is_phone_number(text: str) -> bool:
    """True when the whole string is a 10-digit North-American number."""
    return PHONE_NUMBER_PATTERN.fullmatch(text.strip()) is not None


def digits_only(text: str) -> str:
    return "".join(char for char in text if char.isdigit())
