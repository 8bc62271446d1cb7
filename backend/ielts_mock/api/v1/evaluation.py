"""
Evaluator endpoints for writing and speaking sessions.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ielts_mock.api.v1.sessions import (
    STAFF_ROLES,
    get_test_or_404,
    get_test_session_or_404,
)
from ielts_mock.core.auth import require_roles
from ielts_mock.models import User, get_db
from ielts_mock.schemas.evaluation import EvaluationRequest
from ielts_mock.schemas.test_sessions import TestSessionResponse
from ielts_mock.services import scoring_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.put("/sessions/{session_id}", response_model=TestSessionResponse)
async def evaluate_session(
    session_id: int,
    request: EvaluationRequest,
    current_user: User = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """
    Band a submitted session.

    Writing takes task 1 and task 2 bands (combined 1:2), or the four
    criteria, or a plain band. Calling this again replaces the earlier
    evaluation.
    """
    test_session = await get_test_session_or_404(db, session_id)
    test = await get_test_or_404(db, test_session.test_id)

    logger.info(
        f"Evaluator {current_user.id} banding session {session_id}",
        extra={"session_id": session_id, "test_id": test.id},
    )
    return await scoring_service.evaluate_session(
        db,
        test_session,
        test,
        band=request.band,
        task1_band=request.task1_band,
        task2_band=request.task2_band,
        criteria=request.criteria.to_criteria() if request.criteria else None,
        feedback=request.feedback,
    )
