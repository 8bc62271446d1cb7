"""
Question variants consumed by the scoring pipeline.

Each QuestionType belongs to exactly one family, and each family has its own
frozen dataclass carrying only the answer-key shape that family needs:

- ChoiceQuestion: single choice and True/False/Not Given
- CompletionQuestion: fill-in-the-blank and summary completion
- MatchingQuestion: headings and information matching, one key per item
- GroupedFieldQuestion: one field of a flow-chart or table group
- WritingTaskQuestion: essay prompts, never auto-scored

The family and label tables are checked for exhaustiveness at import time
so that adding a QuestionType without wiring it up fails loudly.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from ielts_mock.models.models import QuestionType


class QuestionFamily(str, enum.Enum):
    """Answer-key shape shared by several question types."""

    CHOICE = "choice"
    COMPLETION = "completion"
    MATCHING = "matching"
    GROUPED_FIELD = "grouped_field"
    WRITING_TASK = "writing_task"


QUESTION_FAMILIES: Dict[QuestionType, QuestionFamily] = {
    QuestionType.SINGLE_CHOICE: QuestionFamily.CHOICE,
    QuestionType.TRUE_FALSE_NOT_GIVEN: QuestionFamily.CHOICE,
    QuestionType.FILL_BLANK: QuestionFamily.COMPLETION,
    QuestionType.SUMMARY_COMPLETION: QuestionFamily.COMPLETION,
    QuestionType.MATCHING_HEADING: QuestionFamily.MATCHING,
    QuestionType.MATCHING_INFORMATION: QuestionFamily.MATCHING,
    QuestionType.FLOW_CHART: QuestionFamily.GROUPED_FIELD,
    QuestionType.TABLE_COMPLETION: QuestionFamily.GROUPED_FIELD,
    QuestionType.WRITING_TASK: QuestionFamily.WRITING_TASK,
}

# Display names used in per-type score breakdowns
QUESTION_TYPE_LABELS: Dict[QuestionType, str] = {
    qt: qt.value.replace("_", " ").title() for qt in QuestionType
}


def _check_exhaustive(table: Mapping[QuestionType, Any], table_name: str) -> None:
    missing = [qt.value for qt in QuestionType if qt not in table]
    if missing:
        raise RuntimeError(f"{table_name} has no entry for question types: {missing}")


_check_exhaustive(QUESTION_FAMILIES, "QUESTION_FAMILIES")
_check_exhaustive(QUESTION_TYPE_LABELS, "QUESTION_TYPE_LABELS")


@dataclass(frozen=True, kw_only=True)
class _QuestionBase:
    number: int
    part: int
    question_type: QuestionType
    points: int = 1

    @property
    def label(self) -> str:
        return QUESTION_TYPE_LABELS[self.question_type]


@dataclass(frozen=True, kw_only=True)
class ChoiceQuestion(_QuestionBase):
    accepted: Tuple[str, ...] = ()


@dataclass(frozen=True, kw_only=True)
class CompletionQuestion(_QuestionBase):
    accepted: Tuple[str, ...] = ()


@dataclass(frozen=True, kw_only=True)
class MatchingQuestion(_QuestionBase):
    """Each item id is scored as its own unit."""

    items: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True, kw_only=True)
class GroupedFieldQuestion(_QuestionBase):
    """
    One field of a flow-chart or table group.

    group_first_number is the lowest question number in the group; clients
    that post the whole group as one payload key it by that number or by
    group_id.
    """

    group_id: Optional[str] = None
    group_first_number: int = 0
    field_key: str = ""
    accepted: Tuple[str, ...] = ()


@dataclass(frozen=True, kw_only=True)
class WritingTaskQuestion(_QuestionBase):
    task_number: int = 1


QuestionSpec = Union[
    ChoiceQuestion,
    CompletionQuestion,
    MatchingQuestion,
    GroupedFieldQuestion,
    WritingTaskQuestion,
]


def accepted_alternatives(correct_answer: Any) -> Tuple[str, ...]:
    """
    Normalize a stored answer key into a tuple of accepted strings.

    None and empty values yield an empty tuple, which always scores incorrect.
    """
    if correct_answer is None:
        return ()
    if isinstance(correct_answer, (list, tuple)):
        return tuple(str(alt) for alt in correct_answer if alt is not None)
    return (str(correct_answer),)


def build_question_spec(
    *,
    number: int,
    part: int,
    question_type: QuestionType,
    correct_answer: Any,
    points: int = 1,
    group_id: Optional[str] = None,
    field_key: Optional[str] = None,
    group_first_number: Optional[int] = None,
) -> QuestionSpec:
    """
    Build the scoring variant for one authored question.

    Args:
        number: Question number within the test
        part: Test part (1-4)
        question_type: Authored question type
        correct_answer: Stored answer key (string, list, or item mapping)
        points: Points awarded per correct unit
        group_id: Group identifier for flow-chart/table fields
        field_key: Key of the field inside its group payload
        group_first_number: Lowest question number in the field's group

    Returns:
        The family-specific question variant
    """
    family = QUESTION_FAMILIES[question_type]
    common = dict(
        number=number, part=part, question_type=question_type, points=points
    )

    if family is QuestionFamily.CHOICE:
        return ChoiceQuestion(accepted=accepted_alternatives(correct_answer), **common)
    if family is QuestionFamily.COMPLETION:
        return CompletionQuestion(
            accepted=accepted_alternatives(correct_answer), **common
        )
    if family is QuestionFamily.MATCHING:
        items: Dict[str, Tuple[str, ...]] = {}
        if isinstance(correct_answer, dict):
            items = {
                str(item_id): accepted_alternatives(label)
                for item_id, label in correct_answer.items()
            }
        return MatchingQuestion(items=items, **common)
    if family is QuestionFamily.GROUPED_FIELD:
        return GroupedFieldQuestion(
            group_id=group_id,
            group_first_number=group_first_number
            if group_first_number is not None
            else number,
            field_key=field_key or str(number),
            accepted=accepted_alternatives(correct_answer),
            **common,
        )
    return WritingTaskQuestion(task_number=part, **common)
