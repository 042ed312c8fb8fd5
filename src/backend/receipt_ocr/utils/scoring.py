"""
Scoring functions for date candidates.

Scores are integers from 0 (worst) to 100 (best). The highest-scoring
candidate is selected; ties go to the date closest to today.
"""

from datetime import date
from typing import List, Optional, Tuple, Union

from .candidates import DateCandidate, DateTag

__all__ = [
    'BASE_SCORE', 'TAG_WEIGHTS', 'KEYWORD_WEIGHTS', 'ISO_TOKEN_BONUS',
    'score_date_candidate', 'select_best_date', 'select_top_dates',
]

BASE_SCORE = 50

TAG_WEIGHTS = {
    DateTag.ISO: 30,                 # Unambiguous
    DateTag.MONTH_NAME_SHORT: 25,    # Month names are clear
    DateTag.MONTH_NAME_FULL: 25,
    DateTag.REVERSE_MONTH_NAME: 25,
    DateTag.RECEIPT_DATE: 20,        # "Date:" prefix
    DateTag.TRANSACTION_DATE: 20,    # "Trans:" prefix
    DateTag.COMPACT: 15,
    DateTag.WITH_TIME: 10,
    DateTag.US_FULL: 5,
    DateTag.EU_FULL: 5,
    DateTag.SHORT_YEAR: -5,          # 2-digit years are less reliable
}

KEYWORD_WEIGHTS = {
    'date': 10,
    'transaction': 8,
    'receipt': 8,
    'purchase': 5,
}

ISO_TOKEN_BONUS = 10


def score_date_candidate(candidate: DateCandidate) -> int:
    """
    Score a date candidate from its pattern family and text context.

    Args:
        candidate: DateCandidate to score

    Returns:
        Score from 0 to 100
    """
    score = BASE_SCORE + TAG_WEIGHTS.get(candidate.tag, 0)

    for keyword in candidate.context_keywords:
        score += KEYWORD_WEIGHTS.get(keyword, 0)

    if candidate.is_iso_token:
        score += ISO_TOKEN_BONUS

    return max(0, min(100, score))


def _rank(candidate: DateCandidate, today: date) -> Tuple[int, int]:
    # Highest score first, then smallest distance to today
    return (-score_date_candidate(candidate), abs((candidate.value - today).days))


def select_top_dates(
    candidates: List[DateCandidate],
    today: date,
    top_n: int = 3
) -> List[Tuple[DateCandidate, int]]:
    """Select top N date candidates with scores."""
    ranked = sorted(candidates, key=lambda c: _rank(c, today))
    return [(c, score_date_candidate(c)) for c in ranked[:top_n]]


def select_best_date(
    candidates: List[DateCandidate],
    today: date,
    return_score: bool = False
) -> Union[Optional[DateCandidate], Optional[Tuple[DateCandidate, int]]]:
    """
    Select best date candidate.

    Args:
        candidates: List of DateCandidate objects
        today: Reference date for the recency tie-break
        return_score: If True, return a (candidate, score) tuple

    Returns:
        Best candidate (or tuple), or None if the list is empty
    """
    if not candidates:
        return None

    best = min(candidates, key=lambda c: _rank(c, today))
    if return_score:
        return best, score_date_candidate(best)
    return best
