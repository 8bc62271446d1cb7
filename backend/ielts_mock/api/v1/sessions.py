"""
Test session endpoints: start, read, auto-save, submit.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ielts_mock.core.auth import get_current_user, require_roles
from ielts_mock.core.error_responses import (
    ErrorMessages,
    raise_forbidden,
    raise_not_found,
)
from ielts_mock.models import Test, TestSession, User, UserRole, get_db
from ielts_mock.schemas.test_sessions import (
    AutosaveRequest,
    AutosaveResponse,
    DetailedScoreResponse,
    SubmitSessionRequest,
    SubmitSessionResponse,
    TestSessionResponse,
)
from ielts_mock.services import scoring_service

router = APIRouter()
logger = logging.getLogger(__name__)

STAFF_ROLES = frozenset({UserRole.INSTRUCTOR, UserRole.ADMIN})


async def get_test_or_404(db: AsyncSession, test_id: int) -> Test:
    """
    Fetch a test by ID or raise 404 if not found.

    Raises:
        HTTPException: 404 if the test doesn't exist
    """
    result = await db.execute(select(Test).where(Test.id == test_id))
    test = result.scalar_one_or_none()
    if test is None:
        raise_not_found(ErrorMessages.TEST_NOT_FOUND)
    return test


async def get_test_session_or_404(db: AsyncSession, session_id: int) -> TestSession:
    """
    Fetch a test session by ID or raise 404 if not found.

    Raises:
        HTTPException: 404 if test session not found
    """
    result = await db.execute(select(TestSession).where(TestSession.id == session_id))
    test_session = result.scalar_one_or_none()
    if test_session is None:
        raise_not_found(ErrorMessages.TEST_SESSION_NOT_FOUND)
    return test_session


def verify_session_ownership(test_session: TestSession, user: User) -> None:
    """
    Verify that a test session belongs to the user.

    Raises:
        HTTPException: 403 if the session belongs to someone else
    """
    if test_session.student_id != user.id:
        raise_forbidden(ErrorMessages.SESSION_ACCESS_DENIED)


def verify_session_access(test_session: TestSession, user: User) -> None:
    """Owners and staff may read a session."""
    if user.role in STAFF_ROLES:
        return
    verify_session_ownership(test_session, user)


@router.post("/start", response_model=TestSessionResponse)
async def start_session(
    test_id: int = Query(..., ge=1, description="Test to start"),
    current_user: User = Depends(require_roles(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db),
):
    """
    Start (or resume) the current student's session for a test.

    Returns the existing session when one is already open. A submitted
    session cannot be restarted.
    """
    test = await get_test_or_404(db, test_id)
    return await scoring_service.start_session(db, current_user, test)


@router.get("/{session_id}", response_model=TestSessionResponse)
async def get_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a test session. Students see their own; staff see any."""
    test_session = await get_test_session_or_404(db, session_id)
    verify_session_access(test_session, current_user)
    return test_session


@router.put("/{session_id}/answers", response_model=AutosaveResponse)
async def autosave_answers(
    session_id: int,
    request: AutosaveRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Auto-save in-progress answers.

    Rejected with 409 once the session is submitted, once the module time
    limit has passed, or when the supplied version is stale.
    """
    test_session = await get_test_session_or_404(db, session_id)
    verify_session_ownership(test_session, current_user)
    test = await get_test_or_404(db, test_session.test_id)

    test_session, saved = await scoring_service.autosave_answers(
        db, test_session, test, request.answers, expected_version=request.version
    )
    return AutosaveResponse(
        session_id=test_session.id,
        saved=saved,
        version=test_session.version,
        updated_at=test_session.updated_at,
    )


@router.post("/{session_id}/submit", response_model=SubmitSessionResponse)
async def submit_session(
    session_id: int,
    request: Optional[SubmitSessionRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Submit a session for scoring.

    Reading and listening come back scored. Writing and speaking are marked
    as awaiting evaluation.
    """
    test_session = await get_test_session_or_404(db, session_id)
    verify_session_ownership(test_session, current_user)
    test = await get_test_or_404(db, test_session.test_id)

    answers = request.answers if request is not None else None
    test_session = await scoring_service.submit_session(db, test_session, test, answers)

    result = None
    if test_session.module_type in scoring_service.AUTO_SCORED_MODULES:
        result = DetailedScoreResponse.model_validate(test_session.result_details)
    return SubmitSessionResponse(
        session=TestSessionResponse.model_validate(test_session),
        result=result,
        awaiting_evaluation=result is None,
    )
