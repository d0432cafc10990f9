"""
Disc Rescue Backend — Text Categorizer
=======================================

What:  Tags each word read off a disc as a phone number, brand, disc (mold) name,
       or nothing.
Who:   Called by ImageAnalysisService with the OCR words of one image and the
       reference lists fetched for that image.

Per-word decision, in order:
    1. Normalize ("  Innova! " → "innova").
    2. All digits → feed the phone-digit accumulator (owners often write numbers
       with spaces, which OCR splits into "555" "123" "4567").
    3. Otherwise → release the accumulator, then:
         raw token is a punctuated phone number ("555.123.4567") → Phone Number
         fuzzy match against brands (plain and OCR-corrected forms)  → Brand
         fuzzy match against discs                                   → Disc
         else                                                        → N/A
    4. End of input → release the accumulator.

Accumulator state machine:

        digit token, no number yet
        ┌──────────────┐
        ▼              │
    ┌──────┐  digit  ┌──────────────┐  number formed  ┌──────┐
    │ IDLE │────────▶│ ACCUMULATING │────────────────▶│ IDLE │ (emit Phone Number)
    └──────┘         └──────────────┘                 └──────┘
                           │ non-digit token / end of input
                           ▼
                     IDLE (pending tokens emitted as N/A)

    After every digit token the accumulator looks for a run of whole tokens,
    ending at the newest token, that forms a valid number; the longest such run
    wins and tokens before it are released as N/A. Runs longer than eleven
    digits can never match, so their oldest tokens are released early.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from statistics import mean
from typing import List, Mapping, Optional, Sequence

from app.config import settings
from app.services.catalog_client import ReferenceData
from app.services.fuzzy_match import FuzzyMatch, best_match
from app.services.ocr_text import (
    MAX_PHONE_DIGITS,
    OCR_CONFUSIONS,
    correct_ocr_mistakes,
    digits_only,
    is_phone_number,
    normalize_word,
)

logger = logging.getLogger(__name__)


class WordCategory(str, Enum):
    """Category labels, serialized exactly as the API returns them."""

    PHONE_NUMBER = "Phone Number"
    BRAND = "Brand"
    DISC = "Disc"
    UNCLASSIFIED = "N/A"


@dataclass(frozen=True)
class RecognizedWord:
    """A word read by OCR with its confidence in [0, 1] and its category."""

    word: str
    confidence: float
    category: WordCategory = WordCategory.UNCLASSIFIED


class AccumulatorState(Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"


@dataclass
class PhoneDigitAccumulator:
    """
    Consecutive all-digit tokens collected while looking for a phone number.

    Lives for one categorize() call only.
    """

    tokens: List[RecognizedWord] = field(default_factory=list)
    digit_runs: List[str] = field(default_factory=list)

    @property
    def state(self) -> AccumulatorState:
        return AccumulatorState.ACCUMULATING if self.tokens else AccumulatorState.IDLE

    @property
    def digits(self) -> str:
        return "".join(self.digit_runs)

    def holds_phone_number(self) -> bool:
        return bool(self.tokens) and is_phone_number(self.digits)

    def push(self, word: RecognizedWord, digits: str) -> List[RecognizedWord]:
        """
        Add a digit token; return the entries it completes.

        Returns a (possibly empty) list: leading tokens that can no longer be
        part of a number, tagged N/A, followed by the Phone Number entry when one
        was formed. The accumulator is IDLE again after a number is emitted.
        """
        self.tokens.append(word)
        self.digit_runs.append(digits)

        released: List[RecognizedWord] = []
        while len(self.tokens) > 1 and len(self.digits) > MAX_PHONE_DIGITS:
            released.append(self._pop_oldest())

        for start in range(len(self.tokens)):
            if is_phone_number("".join(self.digit_runs[start:])):
                for _ in range(start):
                    released.append(self._pop_oldest())
                released.append(self._emit_phone_number())
                break

        return released

    def release(self) -> List[RecognizedWord]:
        """Empty the accumulator: a complete number is emitted, anything else is N/A."""
        if self.holds_phone_number():
            return [self._emit_phone_number()]
        pending = [replace(token, category=WordCategory.UNCLASSIFIED) for token in self.tokens]
        self.tokens.clear()
        self.digit_runs.clear()
        return pending

    def _pop_oldest(self) -> RecognizedWord:
        self.digit_runs.pop(0)
        return replace(self.tokens.pop(0), category=WordCategory.UNCLASSIFIED)

    def _emit_phone_number(self) -> RecognizedWord:
        entry = RecognizedWord(
            word=self.digits,
            confidence=mean(token.confidence for token in self.tokens),
            category=WordCategory.PHONE_NUMBER,
        )
        self.tokens.clear()
        self.digit_runs.clear()
        return entry


class TextCategorizer:
    """
    Stateless categorizer; one instance can serve concurrent requests.

    Args:
        threshold:   Fuzzy acceptance threshold in [0, 1].
        confusions:  OCR look-alike table used to build the corrected form.
    """

    def __init__(
        self,
        threshold: Optional[float] = None,
        confusions: Mapping[str, str] = OCR_CONFUSIONS,
    ) -> None:
        self.threshold = settings.fuzzy_match_threshold if threshold is None else threshold
        self.confusions = confusions

    def categorize(
        self,
        words: Sequence[RecognizedWord],
        reference: ReferenceData,
    ) -> List[RecognizedWord]:
        """
        Categorize OCR words in reading order.

        Returns:
            Entries in input order. Multi-token phone numbers collapse into a
            single entry, so the result can be shorter than the input.
        """
        results: List[RecognizedWord] = []
        accumulator = PhoneDigitAccumulator()

        for word in words:
            normalized = normalize_word(word.word)

            if normalized.isdigit():
                completed = accumulator.push(word, normalized)
                self._log_completed(completed)
                results.extend(completed)
                continue

            results.extend(accumulator.release())
            results.append(self._categorize_word(word, normalized, reference))

        results.extend(accumulator.release())
        return results

    def _categorize_word(
        self,
        word: RecognizedWord,
        normalized: str,
        reference: ReferenceData,
    ) -> RecognizedWord:
        if is_phone_number(word.word):
            logger.debug("%r is a Phone Number", word.word)
            return RecognizedWord(
                word=digits_only(word.word),
                confidence=word.confidence,
                category=WordCategory.PHONE_NUMBER,
            )

        if not normalized:
            return replace(word, category=WordCategory.UNCLASSIFIED)

        # Symbol look-alikes ($, @, |) are gone after normalizing, so also correct the raw text
        variants = [normalized]
        for corrected in (
            correct_ocr_mistakes(normalized, self.confusions),
            normalize_word(correct_ocr_mistakes(word.word.strip().lower(), self.confusions)),
        ):
            if corrected and corrected not in variants:
                variants.append(corrected)

        brand = self._best_over_variants(variants, reference.brands)
        if brand is not None:
            logger.debug("%r is a Brand (%s, %.2f)", normalized, brand.candidate, brand.score)
            return replace(word, category=WordCategory.BRAND)

        disc = self._best_over_variants(variants, reference.discs)
        if disc is not None:
            logger.debug("%r is a Disc (%s, %.2f)", normalized, disc.candidate, disc.score)
            return replace(word, category=WordCategory.DISC)

        return replace(word, category=WordCategory.UNCLASSIFIED)

    def _best_over_variants(
        self,
        variants: Sequence[str],
        candidates: Sequence[str],
    ) -> Optional[FuzzyMatch]:
        best: Optional[FuzzyMatch] = None
        for variant in variants:
            match = best_match(variant, candidates, self.threshold)
            if match is not None and (best is None or match.score > best.score):
                best = match
        return best

    @staticmethod
    def _log_completed(entries: Sequence[RecognizedWord]) -> None:
        for entry in entries:
            if entry.category is WordCategory.PHONE_NUMBER:
                logger.debug("%s is a Phone Number", entry.word)
