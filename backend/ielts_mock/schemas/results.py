"""
Pydantic schemas for result views and band table authoring.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional

from ielts_mock.core.scoring import is_valid_band


class ModuleResult(BaseModel):
    session_id: int
    test_id: int
    status: str
    is_completed: bool
    band: Optional[float] = None
    score: Optional[int] = None
    description: str
    task1_band: Optional[float] = None
    task2_band: Optional[float] = None
    time_limit_exceeded: bool = False
    completed_at: Optional[str] = None
    result_details: Optional[Dict[str, Any]] = None


class StudentResultsResponse(BaseModel):
    """
    Results for one linked test group.

    overall_band_strict is only set once reading, listening and writing all
    have a band; overall_band_lenient averages whichever bands exist.
    """

    student_id: int
    anchor_test_id: int
    modules: Dict[str, ModuleResult] = Field(default_factory=dict)
    overall_band: Optional[float] = None
    overall_band_strict: Optional[float] = None
    overall_band_lenient: Optional[float] = None
    overall_description: str


class BandRangeItem(BaseModel):
    min_score: int = Field(..., ge=0, description="Lowest raw score for this band")
    band: float = Field(..., description="Band awarded (0-9, steps of 0.5)")

    @field_validator("band")
    @classmethod
    def validate_band(cls, v: float) -> float:
        if not is_valid_band(v):
            raise ValueError("Band must be between 0 and 9 in steps of 0.5")
        return v

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class BandRangeTable(BaseModel):
    ranges: List[BandRangeItem] = Field(..., min_length=1, max_length=100)


class BandRangeTableResponse(BaseModel):
    test_id: int
    ranges: List[BandRangeItem]
