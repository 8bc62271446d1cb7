"""
Per-question answer comparison.
"""

from typing import Iterable

from ielts_mock.models.models import QuestionType


def _canonical(text: str, question_type: QuestionType) -> str:
    canonical = text.strip().lower()
    if question_type is QuestionType.TRUE_FALSE_NOT_GIVEN:
        # NOT_GIVEN and "not given" are the same verdict
        canonical = " ".join(canonical.replace("_", " ").split())
    return canonical


def is_correct(
    answer: str, accepted: Iterable[str], question_type: QuestionType
) -> bool:
    """
    Check a normalized answer against the accepted alternatives.

    Comparison is case-insensitive and ignores surrounding whitespace. Any
    matching alternative wins. An empty answer, or a question with no stored
    answer key, is always incorrect.
    """
    candidate = _canonical(answer, question_type)
    if not candidate:
        return False
    return any(
        candidate == _canonical(alternative, question_type)
        for alternative in accepted
    )
