"""
Pydantic schemas for manual evaluation of writing and speaking sessions.
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, Self

from ielts_mock.core.scoring import WritingCriteria, is_valid_band


def _check_band(value: Optional[float]) -> Optional[float]:
    if value is not None and not is_valid_band(value):
        raise ValueError("Band must be between 0 and 9 in steps of 0.5")
    return value


class CriteriaScores(BaseModel):
    """The four writing assessment criteria, each a band."""

    task_achievement: float
    coherence_cohesion: float
    lexical_resource: float
    grammatical_range: float

    @field_validator(
        "task_achievement", "coherence_cohesion", "lexical_resource", "grammatical_range"
    )
    @classmethod
    def validate_band(cls, v: float) -> float:
        return _check_band(v)  # type: ignore[return-value]

    def to_criteria(self) -> WritingCriteria:
        return WritingCriteria(**self.model_dump())


class EvaluationRequest(BaseModel):
    """
    Evaluator input.

    For writing, task bands take precedence over criteria, which take
    precedence over an explicit band.
    """

    band: Optional[float] = Field(None, description="Module band")
    task1_band: Optional[float] = Field(None, description="Writing task 1 band")
    task2_band: Optional[float] = Field(None, description="Writing task 2 band")
    criteria: Optional[CriteriaScores] = None
    feedback: Optional[str] = Field(None, max_length=5000)

    @field_validator("band", "task1_band", "task2_band")
    @classmethod
    def validate_band(cls, v: Optional[float]) -> Optional[float]:
        return _check_band(v)

    @model_validator(mode="after")
    def require_some_band(self) -> Self:
        if (
            self.band is None
            and self.task1_band is None
            and self.task2_band is None
            and self.criteria is None
        ):
            raise ValueError(
                "Provide band, task1_band, task2_band or criteria"
            )
        return self
