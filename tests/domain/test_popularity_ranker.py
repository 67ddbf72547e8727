"""Unit tests for popularity ranking and shortcut assignment."""

import pytest

from pos.domain.exceptions import ValidationError
from pos.domain.service.popularity_ranker import PopularityRanker, rank_codes
from tests.fakes import FakePriceBook, item


def _book():
    return FakePriceBook([
        item("A", "Zeta", "1.00"),
        item("B", "Alpha", "1.00"),
        item("C", "Beta", "1.00"),
        item("D", "alpha", "1.00"),
        item("E", "Gamma", "1.00"),
    ])


class TestRankCodes:

    def test_count_ties_broken_by_description(self):
        book = _book()
        ranked = rank_codes({"A": 5, "B": 5, "C": 3}, book.describe)
        assert ranked == ["B", "A", "C"]

    def test_description_compare_ignores_case(self):
        book = FakePriceBook([item("X1", "banana", "1"), item("X2", "Apple", "1")])
        assert rank_codes({"X1": 2, "X2": 2}, book.describe) == ["X2", "X1"]

    def test_same_description_broken_by_code(self):
        book = _book()
        # "Alpha" and "alpha" compare equal, so the code decides.
        assert rank_codes({"D": 1, "B": 1}, book.describe) == ["B", "D"]

    def test_unknown_code_sorts_with_empty_description(self):
        book = _book()
        assert rank_codes({"A": 2, "GONE": 2}, book.describe) == ["GONE", "A"]

    def test_zero_counts_are_ranked_last(self):
        book = _book()
        assert rank_codes({"E": 0, "A": 1}, book.describe) == ["A", "E"]

    def test_limit_cuts_the_tail(self):
        book = _book()
        counts = {"A": 9, "B": 8, "C": 7, "E": 6}
        assert rank_codes(counts, book.describe, limit=2) == ["A", "B"]

    def test_negative_count_rejected(self):
        with pytest.raises(ValidationError, match="Negative popularity"):
            rank_codes({"A": -1}, _book().describe)

    def test_ranking_is_stable_across_input_order(self):
        book = _book()
        forward = {"A": 1, "B": 1, "C": 1, "D": 1, "E": 1}
        backward = dict(reversed(list(forward.items())))
        assert rank_codes(forward, book.describe) == rank_codes(backward, book.describe)


class TestPopularityRanker:

    def test_refresh_assigns_function_keys_in_rank_order(self):
        ranker = PopularityRanker(_book())
        ranker.refresh({"A": 5, "B": 5, "C": 3})
        assert ranker.shortcuts() == {"F1": "B", "F2": "A", "F3": "C"}

    def test_slots_limit_assignment(self):
        ranker = PopularityRanker(_book(), slots=2)
        ranker.refresh({"A": 5, "B": 4, "C": 3})
        assert ranker.ranked == ["A", "B"]

    def test_refresh_rebuilds_wholesale(self):
        ranker = PopularityRanker(_book())
        ranker.refresh({"A": 5, "B": 1})
        ranker.refresh({"C": 2})
        assert ranker.ranked == ["C"]

    def test_code_for_key(self):
        ranker = PopularityRanker(_book())
        ranker.refresh({"C": 1})
        assert ranker.code_for("f1") == "C"
        assert ranker.code_for("F2") is None

    def test_negative_slots_rejected(self):
        with pytest.raises(ValidationError):
            PopularityRanker(_book(), slots=-1)
