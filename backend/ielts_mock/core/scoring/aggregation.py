"""
Submission scoring: verdicts grouped by part and by question type.

score_submission is pure: given the raw answers, the question variants and
the test's band table, it returns a DetailedScoreResult. All groups (the
whole module, each part, each question type) use the same whole-test band
table.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ielts_mock.models.models import ModuleType, QuestionType
from .answers import ScoringUnit, normalize_submission
from .bands import BandRange, accuracy_percentage, band_for_raw_score
from .questions import QUESTION_TYPE_LABELS, QuestionSpec
from .scorer import is_correct

logger = logging.getLogger(__name__)

# Parts always reported for auto-scored modules, even when empty
DEFAULT_PARTS: Dict[ModuleType, Sequence[int]] = {
    ModuleType.READING: (1, 2, 3),
    ModuleType.LISTENING: (1, 2, 3, 4),
}

AUTO_SCORED_MODULES = frozenset(DEFAULT_PARTS)


@dataclass
class _Tally:
    correct: int = 0
    total: int = 0

    def add(self, unit: ScoringUnit, correct: bool) -> None:
        self.total += unit.points
        if correct:
            self.correct += unit.points


@dataclass
class DetailedScoreResult:
    """Scored submission for one module."""

    module_type: ModuleType
    band_score: Optional[float]
    total_questions: int
    correct_answers: int
    accuracy: int
    part_scores: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    question_type_scores: List[Dict[str, Any]] = field(default_factory=list)
    # unit key -> verdict, for answer review
    verdicts: Dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable form stored on the session."""
        return {
            "module_type": self.module_type.value,
            "band_score": self.band_score,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "accuracy": self.accuracy,
            "part_scores": self.part_scores,
            "question_type_scores": self.question_type_scores,
            "verdicts": self.verdicts,
        }


def _group_summary(tally: _Tally, table: Sequence[BandRange]) -> Dict[str, Any]:
    return {
        "correct": tally.correct,
        "total": tally.total,
        "score": tally.correct,
        "accuracy": accuracy_percentage(tally.correct, tally.total),
        "band_score": band_for_raw_score(tally.correct, table),
    }


def score_submission(
    module_type: ModuleType,
    raw_answers: Optional[Mapping[Any, Any]],
    questions: Iterable[QuestionSpec],
    band_table: Iterable[BandRange],
) -> DetailedScoreResult:
    """
    Score a reading or listening submission.

    Args:
        module_type: Module being scored
        raw_answers: Client payload keyed by question number
        questions: Question variants for the test
        band_table: Raw-score to band thresholds for the test

    Returns:
        DetailedScoreResult. Writing and speaking are not auto-scored and
        come back empty with band_score None.

    Example:
        >>> result = score_submission(ModuleType.READING, answers, questions, table)
        >>> result.part_scores["part1"]
        {"correct": 11, "total": 13, "score": 11, "accuracy": 85, "band_score": 4.5}
    """
    if module_type not in AUTO_SCORED_MODULES:
        return DetailedScoreResult(
            module_type=module_type,
            band_score=None,
            total_questions=0,
            correct_answers=0,
            accuracy=0,
        )

    table = list(band_table)
    units = normalize_submission(questions, raw_answers)

    overall = _Tally()
    parts: Dict[int, _Tally] = {part: _Tally() for part in DEFAULT_PARTS[module_type]}
    types: Dict[QuestionType, _Tally] = {}
    verdicts: Dict[str, bool] = {}

    for unit in units:
        correct = is_correct(unit.answer, unit.accepted, unit.question_type)
        verdicts[unit.key] = correct
        overall.add(unit, correct)
        parts.setdefault(unit.part, _Tally()).add(unit, correct)
        types.setdefault(unit.question_type, _Tally()).add(unit, correct)

    if not units:
        logger.warning(
            f"No scorable questions for {module_type.value} submission; "
            "reporting a zero result"
        )

    part_scores = {
        f"part{part}": _group_summary(parts[part], table) for part in sorted(parts)
    }
    question_type_scores = [
        {
            "type": QUESTION_TYPE_LABELS[question_type],
            "question_type": question_type.value,
            **_group_summary(tally, table),
        }
        for question_type, tally in types.items()
    ]

    return DetailedScoreResult(
        module_type=module_type,
        band_score=band_for_raw_score(overall.correct, table),
        total_questions=overall.total,
        correct_answers=overall.correct,
        accuracy=accuracy_percentage(overall.correct, overall.total),
        part_scores=part_scores,
        question_type_scores=question_type_scores,
        verdicts=verdicts,
    )
