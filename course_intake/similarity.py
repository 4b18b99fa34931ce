"""Title similarity strategies for the duplicate detector.

A strategy is any object with `similarity(a, b) -> float` in [0, 1],
1.0 meaning identical. The detector only compares the returned scores
against its thresholds, so strategies can be swapped freely.
"""
from typing import Protocol

import Levenshtein
from fuzzywuzzy import fuzz


class SimilarityStrategy(Protocol):
    def similarity(self, a: str, b: str) -> float: ...


class LevenshteinSimilarity:
    """Normalized edit-distance ratio, unrounded; case and edge-space insensitive."""

    def similarity(self, a: str, b: str) -> float:
        a, b = (a or "").strip().lower(), (b or "").strip().lower()
        if a == b:
            return 1.0
        return Levenshtein.ratio(a, b)


class TokenSetSimilarity:
    """Word-set overlap (fuzz.token_set_ratio); ignores word order and repeats."""

    def similarity(self, a: str, b: str) -> float:
        return fuzz.token_set_ratio(a or "", b or "") / 100


DEFAULT_SIMILARITY = LevenshteinSimilarity()
