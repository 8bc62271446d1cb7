"""
Result endpoints: per-module bands and overall band for a linked test group.
"""
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ielts_mock.api.v1.sessions import STAFF_ROLES, get_test_or_404
from ielts_mock.core.auth import get_current_user, require_roles
from ielts_mock.core.error_responses import ErrorMessages, raise_not_found
from ielts_mock.models import User, get_db
from ielts_mock.schemas.results import StudentResultsResponse
from ielts_mock.services import scoring_service

router = APIRouter()


async def _results_for(
    db: AsyncSession, student_id: int, linked_test_id: int
) -> StudentResultsResponse:
    test = await get_test_or_404(db, linked_test_id)
    anchor_id = scoring_service.anchor_test_id(test)
    payload = await scoring_service.build_student_results(db, student_id, anchor_id)
    return StudentResultsResponse.model_validate(payload)


@router.get("/tests/{linked_test_id}", response_model=StudentResultsResponse)
async def get_my_results(
    linked_test_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    The current user's results for the group containing a test.

    Any test in the group may be given; module tests resolve to their
    reading anchor.
    """
    return await _results_for(db, current_user.id, linked_test_id)


@router.get(
    "/students/{student_id}/tests/{linked_test_id}",
    response_model=StudentResultsResponse,
)
async def get_student_results(
    student_id: int,
    linked_test_id: int,
    current_user: User = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Staff view of a student's results for a linked test group."""
    result = await db.execute(select(User.id).where(User.id == student_id))
    if result.scalar_one_or_none() is None:
        raise_not_found(ErrorMessages.STUDENT_NOT_FOUND)
    return await _results_for(db, student_id, linked_test_id)
