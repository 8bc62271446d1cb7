"""
Answer normalization.

Turns a raw submission payload (question number -> answer, in whatever
shape the client posted for that question type) into a flat list of
ScoringUnit records, one per independently scored answer slot.

The normalizer never raises: missing keys, None, and wrong-shaped values
all become the empty string, which the scorer treats as incorrect.
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from ielts_mock.models.models import QuestionType
from .questions import (
    ChoiceQuestion,
    CompletionQuestion,
    GroupedFieldQuestion,
    MatchingQuestion,
    QuestionSpec,
    WritingTaskQuestion,
)

# "A) Option text" -> "A"
_OPTION_PREFIX_RE = re.compile(r"^([A-Da-d])\)")


@dataclass(frozen=True)
class ScoringUnit:
    """One answer slot with its normalized candidate and accepted answers."""

    key: str
    question_number: int
    part: int
    question_type: QuestionType
    answer: str
    accepted: Tuple[str, ...]
    points: int = 1


def coerce_answer_text(value: Any) -> str:
    """Return a trimmed string for scalar answers, or "" for anything else."""
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _lookup(raw: Mapping[Any, Any], key: str) -> Any:
    if key in raw:
        return raw[key]
    if key.isdigit() and int(key) in raw:
        return raw[int(key)]
    return None


def _choice_text(value: Any, question_type: QuestionType) -> str:
    text = coerce_answer_text(value)
    if question_type is QuestionType.SINGLE_CHOICE:
        match = _OPTION_PREFIX_RE.match(text)
        if match:
            return match.group(1)
    return text


def _grouped_field_text(question: GroupedFieldQuestion, raw: Mapping[Any, Any]) -> str:
    direct = _lookup(raw, str(question.number))
    if direct is not None and not isinstance(direct, Mapping):
        return coerce_answer_text(direct)

    group_keys: List[str] = []
    if question.group_id:
        group_keys.append(question.group_id)
    group_keys.append(str(question.group_first_number))

    for group_key in group_keys:
        payload = _lookup(raw, group_key)
        if not isinstance(payload, Mapping):
            continue
        value = _lookup(payload, question.field_key)
        if value is None:
            value = _lookup(payload, str(question.number))
        if value is None:
            continue
        return coerce_answer_text(value)
    return ""


def normalize_answers(
    question: QuestionSpec, raw_answers: Optional[Mapping[Any, Any]]
) -> List[ScoringUnit]:
    """
    Normalize the raw answer(s) for one question into scoring units.

    Args:
        question: Question variant carrying its answer key
        raw_answers: Whole-submission payload keyed by question number

    Returns:
        Scoring units for the question; empty for writing tasks
    """
    raw: Mapping[Any, Any] = raw_answers if isinstance(raw_answers, Mapping) else {}

    if isinstance(question, WritingTaskQuestion):
        return []

    if isinstance(question, MatchingQuestion):
        payload = _lookup(raw, str(question.number))
        if not question.items:
            # No item mapping stored: one unit that can never be correct
            return [
                ScoringUnit(
                    key=str(question.number),
                    question_number=question.number,
                    part=question.part,
                    question_type=question.question_type,
                    answer=coerce_answer_text(payload),
                    accepted=(),
                    points=question.points,
                )
            ]
        if not isinstance(payload, Mapping):
            payload = {}
        return [
            ScoringUnit(
                key=f"{question.number}:{item_id}",
                question_number=question.number,
                part=question.part,
                question_type=question.question_type,
                answer=coerce_answer_text(_lookup(payload, item_id)),
                accepted=accepted,
                points=question.points,
            )
            for item_id, accepted in question.items.items()
        ]

    if isinstance(question, GroupedFieldQuestion):
        answer = _grouped_field_text(question, raw)
    elif isinstance(question, ChoiceQuestion):
        answer = _choice_text(_lookup(raw, str(question.number)), question.question_type)
    elif isinstance(question, CompletionQuestion):
        answer = coerce_answer_text(_lookup(raw, str(question.number)))
    else:
        raise TypeError(f"Unsupported question variant: {type(question).__name__}")

    return [
        ScoringUnit(
            key=str(question.number),
            question_number=question.number,
            part=question.part,
            question_type=question.question_type,
            answer=answer,
            accepted=question.accepted,
            points=question.points,
        )
    ]


def normalize_submission(
    questions: Iterable[QuestionSpec], raw_answers: Optional[Mapping[Any, Any]]
) -> List[ScoringUnit]:
    """Normalize a whole submission, preserving question order."""
    units: List[ScoringUnit] = []
    for question in questions:
        units.extend(normalize_answers(question, raw_answers))
    return units
