# src/core/similarity.py — v3
"""Label similarity scoring for entity matching.

Scores how well an extracted name matches a candidate record name, in [0, 1]:

- exact case-sensitive match             -> 1.0
- case-insensitive exact match           -> 0.95
- one string contains the other          -> 0.6 .. 0.9 by length ratio
- otherwise normalized Levenshtein       -> 1 - distance / max_len,
  clamped to 0 below MIN_SIMILARITY

Pure functions, deterministic for identical inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import numpy as np
from rapidfuzz.distance import Levenshtein

EXACT_SCORE = 1.0
CASE_INSENSITIVE_SCORE = 0.95
SUBSTRING_FLOOR = 0.6
SUBSTRING_CEILING = 0.9
MIN_SIMILARITY = 0.3

MatchTier = Literal["exact", "case_insensitive", "substring", "edit_distance", "none"]


@dataclass(frozen=True)
class SimilarityScore:
    """A score together with the rule that produced it."""

    score: float
    tier: MatchTier

    @property
    def is_exact_tier(self) -> bool:
        return self.tier in ("exact", "case_insensitive")


def score_match(
    a: str,
    b: str,
    min_similarity: float = MIN_SIMILARITY,
    substring_floor: float = SUBSTRING_FLOOR,
) -> SimilarityScore:
    """Score two labels and report which tier matched."""
    left = (a or "").strip()
    right = (b or "").strip()
    if not left or not right:
        return SimilarityScore(0.0, "none")

    if left == right:
        return SimilarityScore(EXACT_SCORE, "exact")

    left_cf = left.casefold()
    right_cf = right.casefold()
    if left_cf == right_cf:
        return SimilarityScore(CASE_INSENSITIVE_SCORE, "case_insensitive")

    if left_cf in right_cf or right_cf in left_cf:
        ratio = min(len(left_cf), len(right_cf)) / max(len(left_cf), len(right_cf))
        scaled = substring_floor + (SUBSTRING_CEILING - substring_floor) * ratio
        return SimilarityScore(max(substring_floor, scaled), "substring")

    distance = Levenshtein.distance(left_cf, right_cf)
    similarity = 1.0 - distance / max(len(left_cf), len(right_cf))
    if similarity < min_similarity:
        return SimilarityScore(0.0, "none")
    return SimilarityScore(similarity, "edit_distance")


def score(a: str, b: str) -> float:
    """Match confidence of two labels in [0, 1]."""
    return score_match(a, b).score


def is_exact_tier(a: str, b: str) -> bool:
    """True if the labels are equal, ignoring case and surrounding blanks."""
    return score_match(a, b).is_exact_tier


def similarity_matrix(
    queries: list[str],
    labels: list[str],
    min_similarity: float = MIN_SIMILARITY,
    substring_floor: float = SUBSTRING_FLOOR,
) -> np.ndarray:
    """Pairwise scores, one row per query and one column per label.

    Returns:
        Array of shape (len(queries), len(labels)) with values in [0, 1].
    """
    matrix = np.zeros((len(queries), len(labels)), dtype=np.float64)
    for i, query in enumerate(queries):
        for j, label in enumerate(labels):
            matrix[i, j] = score_match(
                query, label,
                min_similarity=min_similarity,
                substring_floor=substring_floor,
            ).score
    return matrix
