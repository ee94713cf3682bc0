# tests/unit/core/test_unit_similarity.py — v1
"""Tests for core/similarity.py — tiered label similarity."""

from __future__ import annotations

import numpy as np
import pytest

from planpulse.core.similarity import (
    CASE_INSENSITIVE_SCORE,
    EXACT_SCORE,
    is_exact_tier,
    score,
    score_match,
    similarity_matrix,
)


class TestScoreTiers:
    def test_exact_match(self):
        assert score("Alpha Project", "Alpha Project") == EXACT_SCORE

    def test_case_insensitive_match(self):
        assert score("alpha project", "Alpha Project") == CASE_INSENSITIVE_SCORE

    def test_surrounding_blanks_ignored(self):
        assert score("  Alpha Project ", "Alpha Project") == EXACT_SCORE

    def test_substring_scaled_by_length_ratio(self):
        # "alpha" is 5 of 13 characters
        expected = 0.6 + 0.3 * 5 / 13
        assert score("Alpha", "Alpha Project") == pytest.approx(expected)

    def test_substring_is_symmetric(self):
        assert score("Alpha Project", "Alpha") == score("Alpha", "Alpha Project")

    def test_substring_never_below_floor(self):
        result = score_match("a", "a very long project name")
        assert result.tier == "substring"
        assert result.score >= 0.6

    def test_edit_distance(self):
        # kitten -> sitting: 3 edits over 7 characters
        assert score("kitten", "sitting") == pytest.approx(1 - 3 / 7)

    def test_edit_distance_is_case_insensitive(self):
        assert score("Gamma Project", "Alpha Project") == pytest.approx(1 - 4 / 13)

    def test_below_minimum_is_zero(self):
        result = score_match("abc", "xyz")
        assert result.score == 0.0
        assert result.tier == "none"

    @pytest.mark.parametrize("a,b", [("", "Alpha"), ("Alpha", ""), ("   ", "Alpha"), ("", "")])
    def test_blank_input_scores_zero(self, a, b):
        assert score(a, b) == 0.0

    def test_custom_minimum(self):
        assert score_match("kitten", "sitting", min_similarity=0.6).score == 0.0


class TestScoreProperties:
    @pytest.mark.parametrize("a,b", [
        ("Project Alpha", "Project Alpha"),
        ("Project Alpha", "project alpha"),
        ("Alpha", "Project Alpha"),
        ("Beta", "Zeta"),
        ("Data Platform", "Customer Portal"),
    ])
    def test_within_unit_interval(self, a, b):
        assert 0.0 <= score(a, b) <= 1.0

    def test_deterministic(self):
        assert score("Beta Rollout", "Beta Roll-out") == score("Beta Rollout", "Beta Roll-out")

    def test_exact_tier_flags(self):
        assert is_exact_tier("Alpha", "Alpha")
        assert is_exact_tier("alpha", "ALPHA")
        assert not is_exact_tier("Alpha", "Alpha Project")


class TestSimilarityMatrix:
    def test_shape(self):
        matrix = similarity_matrix(["Alpha", "Beta"], ["Alpha", "Beta", "Gamma"])
        assert matrix.shape == (2, 3)

    def test_values_match_pairwise_scores(self):
        queries = ["Alpha", "beta"]
        labels = ["Alpha Project", "Beta"]
        matrix = similarity_matrix(queries, labels)
        for i, q in enumerate(queries):
            for j, label in enumerate(labels):
                assert matrix[i, j] == pytest.approx(score(q, label))

    def test_empty_labels(self):
        matrix = similarity_matrix(["Alpha"], [])
        assert matrix.shape == (1, 0)

    def test_dtype(self):
        matrix = similarity_matrix(["Alpha"], ["Alpha"])
        assert matrix.dtype == np.float64
        assert matrix[0, 0] == 1.0
