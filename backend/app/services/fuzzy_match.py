"""
Disc Rescue Backend — Fuzzy Matcher
====================================

What:  Finds the reference name (brand or mold) closest to an OCR'd word.
How:   rapidfuzz's extractOne with the normalized Indel similarity (fuzz.ratio),
       rescaled from 0-100 to 0-1. The best candidate is accepted only when its
       score meets the threshold.

Tie-break:
    extractOne keeps the first candidate that reaches the highest score, so
    equal scores resolve to reference-list order (the order the catalog API
    returned the names in).
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from rapidfuzz import fuzz, process

DEFAULT_THRESHOLD = 0.75


@dataclass(frozen=True)
class FuzzyMatch:
    """An accepted match: the reference name and its similarity in [0, 1]."""

    candidate: str
    score: float


def similarity(a: str, b: str) -> float:
    """Similarity of two strings in [0, 1]."""
    return fuzz.ratio(a, b) / 100.0


def best_match(
    word: str,
    candidates: Sequence[str],
    threshold: float = DEFAULT_THRESHOLD,
) -> Optional[FuzzyMatch]:
    """
    Return the highest-scoring candidate if it scores at least `threshold`.

    Args:
        word:       Normalized (and possibly OCR-corrected) word.
        candidates: Reference names, already lower-cased.
        threshold:  Acceptance threshold in [0, 1].

    Returns:
        FuzzyMatch, or None when nothing clears the threshold (including when
        `word` or `candidates` is empty).
    """
    if not word or not candidates:
        return None

    result = process.extractOne(
        word,
        candidates,
        scorer=fuzz.ratio,
        score_cutoff=threshold * 100,
    )
    if result is None:
        return None

    candidate, score, _index = result
    return FuzzyMatch(candidate=candidate, score=score / 100.0)
