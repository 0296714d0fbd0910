"""Tests for answer accuracy calculation."""

import pytest

from chat_practice.achievements.accuracy import answer_rate, count_correct
from chat_practice.models.history import SolveHistory


def _histories(*flags: bool) -> list[SolveHistory]:
    return [
        SolveHistory(id=f"h{i}", user_id="u1", problem_id=f"p{i}", is_correct=flag)
        for i, flag in enumerate(flags)
    ]


class TestCountCorrect:
    def test_empty(self):
        assert count_correct([]) == 0

    def test_counts_only_correct(self):
        assert count_correct(_histories(True, False, True, True, False)) == 3

    def test_all_wrong(self):
        assert count_correct(_histories(False, False)) == 0


class TestAnswerRate:
    def test_empty_is_zero(self):
        assert answer_rate([]) == 0.0

    def test_fraction_of_correct(self):
        assert answer_rate(_histories(True, False, True, False)) == pytest.approx(0.5)

    def test_all_correct(self):
        assert answer_rate(_histories(True, True, True)) == 1.0

    def test_bounded(self):
        rate = answer_rate(_histories(True, False, False))
        assert 0.0 <= rate <= 1.0
        assert rate == pytest.approx(1 / 3)
