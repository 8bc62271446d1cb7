"""
Scoring pipeline for IELTS mock tests.

Answer normalization, per-question comparison, part/type aggregation and
band conversion. Everything in this package is pure and synchronous.
"""

from .aggregation import (
    AUTO_SCORED_MODULES,
    DEFAULT_PARTS,
    DetailedScoreResult,
    score_submission,
)
from .answers import ScoringUnit, normalize_answers, normalize_submission
from .bands import (
    DEFAULT_BAND_SCORE_RANGES,
    BandRange,
    OverallBandRule,
    WritingCriteria,
    accuracy_percentage,
    band_for_raw_score,
    combine_overall_band,
    combine_writing_task_bands,
    criteria_band,
    describe_band,
    is_valid_band,
    lenient_overall_band,
    round_half_up,
    round_to_half_band,
    sort_band_table,
    strict_overall_band,
)
from .questions import (
    QUESTION_FAMILIES,
    QUESTION_TYPE_LABELS,
    ChoiceQuestion,
    CompletionQuestion,
    GroupedFieldQuestion,
    MatchingQuestion,
    QuestionFamily,
    QuestionSpec,
    WritingTaskQuestion,
    build_question_spec,
)
from .scorer import is_correct

__all__ = [
    "AUTO_SCORED_MODULES",
    "DEFAULT_PARTS",
    "DetailedScoreResult",
    "score_submission",
    "ScoringUnit",
    "normalize_answers",
    "normalize_submission",
    "DEFAULT_BAND_SCORE_RANGES",
    "BandRange",
    "OverallBandRule",
    "WritingCriteria",
    "accuracy_percentage",
    "band_for_raw_score",
    "combine_overall_band",
    "combine_writing_task_bands",
    "criteria_band",
    "describe_band",
    "is_valid_band",
    "lenient_overall_band",
    "round_half_up",
    "round_to_half_band",
    "sort_band_table",
    "strict_overall_band",
    "QUESTION_FAMILIES",
    "QUESTION_TYPE_LABELS",
    "ChoiceQuestion",
    "CompletionQuestion",
    "GroupedFieldQuestion",
    "MatchingQuestion",
    "QuestionFamily",
    "QuestionSpec",
    "WritingTaskQuestion",
    "build_question_spec",
    "is_correct",
]
