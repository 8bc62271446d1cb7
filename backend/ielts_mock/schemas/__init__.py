"""
Pydantic schemas for request/response validation.
"""
from .test_sessions import (
    TestSessionResponse,
    AutosaveRequest,
    AutosaveResponse,
    SubmitSessionRequest,
    SubmitSessionResponse,
    DetailedScoreResponse,
)
from .evaluation import CriteriaScores, EvaluationRequest
from .results import (
    ModuleResult,
    StudentResultsResponse,
    BandRangeItem,
    BandRangeTable,
    BandRangeTableResponse,
)

__all__ = [
    "TestSessionResponse",
    "AutosaveRequest",
    "AutosaveResponse",
    "SubmitSessionRequest",
    "SubmitSessionResponse",
    "DetailedScoreResponse",
    "CriteriaScores",
    "EvaluationRequest",
    "ModuleResult",
    "StudentResultsResponse",
    "BandRangeItem",
    "BandRangeTable",
    "BandRangeTableResponse",
]
