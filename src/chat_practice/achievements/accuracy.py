"""Answer accuracy derived from a user's solve histories."""

from collections.abc import Sequence

from chat_practice.models.history import SolveHistory


def count_correct(histories: Sequence[SolveHistory]) -> int:
    """Number of histories graded as correct."""
    return sum(1 for history in histories if history.is_correct)


def answer_rate(histories: Sequence[SolveHistory]) -> float:
    """Fraction of histories graded as correct (0.0-1.0).

    An empty history yields 0.0 so that a new user still gets a
    baseline achievement.
    """
    if not histories:
        return 0.0
    return count_correct(histories) / len(histories)
