"""
Test session orchestration: start, auto-save, submit, evaluate, report.

Reads of reference data (questions and band tables) go through the
process cache and are tagged "test:<id>". Result views are tagged
"student-results:<student_id>" and dropped whenever a session of that
student is started, auto-saved, submitted or evaluated.

The calculated overall band is recomputed after every submission and
evaluation, using the strict rule, and written to every session of the
student's linked test group. That step never fails the request it follows.
"""

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ielts_mock.core.cache import cached, invalidate_tags
from ielts_mock.core.config import settings
from ielts_mock.core.datetime_utils import is_past_deadline, utc_now
from ielts_mock.core.db_error_handling import DatabaseOperationError, handle_db_error
from ielts_mock.core.error_responses import (
    ErrorMessages,
    raise_bad_request,
    raise_conflict,
)
from ielts_mock.core.graceful_failure import async_graceful_failure, graceful_failure
from ielts_mock.core.scoring import (
    AUTO_SCORED_MODULES,
    BandRange,
    DetailedScoreResult,
    OverallBandRule,
    QuestionSpec,
    WritingCriteria,
    build_question_spec,
    combine_overall_band,
    combine_writing_task_bands,
    criteria_band,
    describe_band,
    round_half_up,
    score_submission,
    sort_band_table,
)
from ielts_mock.core.session_state import accepts_answers, ensure_transition
from ielts_mock.models import (
    BandScoreRange,
    ModuleType,
    Question,
    SessionStatus,
    Test,
    TestSession,
    User,
)

logger = logging.getLogger(__name__)


def reference_cache_tag(test_id: int) -> str:
    return f"test:{test_id}"


def student_results_cache_tag(student_id: int) -> str:
    return f"student-results:{student_id}"


def _session_log_context(session: TestSession) -> Dict[str, Any]:
    return {
        "session_id": session.id,
        "test_id": session.test_id,
        "student_id": session.student_id,
        "module_type": session.module_type.value,
    }


# =============================================================================
# Reference data
# =============================================================================


def question_to_spec(
    question: Question, group_first_numbers: Mapping[str, int]
) -> QuestionSpec:
    """Convert a Question row into its scoring variant."""
    return build_question_spec(
        number=question.question_number,
        part=question.part,
        question_type=question.question_type,
        correct_answer=question.correct_answer,
        points=question.points or 1,
        group_id=question.group_id,
        field_key=question.field_key,
        group_first_number=group_first_numbers.get(question.group_id)
        if question.group_id
        else None,
    )


@cached(
    key_prefix="questions_for_module",
    key_args=lambda db, test_id: (test_id,),
    tags=lambda db, test_id: [reference_cache_tag(test_id)],
)
async def get_questions_for_module(
    db: AsyncSession, test_id: int
) -> Tuple[QuestionSpec, ...]:
    """
    Load a test's questions as scoring variants, ordered by number.

    Grouped flow-chart/table fields learn the lowest question number of
    their group so payloads keyed by that number can be resolved.
    """
    result = await db.execute(
        select(Question)
        .where(Question.test_id == test_id)
        .order_by(Question.question_number)
    )
    questions = result.scalars().all()

    group_first_numbers: Dict[str, int] = {}
    for question in questions:
        if question.group_id:
            current = group_first_numbers.get(question.group_id)
            if current is None or question.question_number < current:
                group_first_numbers[question.group_id] = question.question_number

    return tuple(question_to_spec(q, group_first_numbers) for q in questions)


@cached(
    key_prefix="band_score_ranges",
    key_args=lambda db, test_id: (test_id,),
    tags=lambda db, test_id: [reference_cache_tag(test_id)],
)
async def get_band_score_ranges(
    db: AsyncSession, test_id: int
) -> Tuple[BandRange, ...]:
    """Load a test's band table, highest threshold first."""
    result = await db.execute(
        select(BandScoreRange).where(BandScoreRange.test_id == test_id)
    )
    ranges = [
        BandRange(min_score=row.min_score, band=row.band)
        for row in result.scalars().all()
    ]
    return tuple(sort_band_table(ranges))


async def replace_band_score_ranges(
    db: AsyncSession, test: Test, ranges: Sequence[BandRange]
) -> List[BandRange]:
    """
    Replace a test's band table and drop its cached reference data.

    Raises:
        HTTPException: 400 for an empty table or duplicate thresholds
    """
    if not ranges:
        raise_bad_request(ErrorMessages.BAND_TABLE_EMPTY)
    thresholds = [entry.min_score for entry in ranges]
    if len(set(thresholds)) != len(thresholds):
        raise_bad_request(ErrorMessages.BAND_TABLE_DUPLICATE)

    ordered = sort_band_table(ranges)
    async with handle_db_error(db, "replace band score table"):
        await db.execute(
            delete(BandScoreRange).where(BandScoreRange.test_id == test.id)
        )
        db.add_all(
            BandScoreRange(test_id=test.id, min_score=entry.min_score, band=entry.band)
            for entry in ordered
        )
        await db.commit()

    with graceful_failure("invalidate test cache", logger, context={"test_id": test.id}):
        invalidate_tags(reference_cache_tag(test.id))

    logger.info(
        f"Replaced band table for test {test.id} with {len(ordered)} entries",
        extra={"test_id": test.id},
    )
    return ordered


# =============================================================================
# Linked test groups
# =============================================================================


def anchor_test_id(test: Test) -> int:
    """The reading test a module test hangs off (itself for an anchor)."""
    return test.parent_test_id or test.id


async def get_linked_test_ids(db: AsyncSession, anchor_id: int) -> List[int]:
    result = await db.execute(
        select(Test.id).where(or_(Test.id == anchor_id, Test.parent_test_id == anchor_id))
    )
    return list(result.scalars().all())


async def get_sibling_module_sessions(
    db: AsyncSession, student_id: int, anchor_id: int
) -> Dict[ModuleType, TestSession]:
    """
    A student's sessions across a linked test group, one per module.

    When a group holds more than one test of the same module, the most
    recently updated completed session wins.
    """
    test_ids = await get_linked_test_ids(db, anchor_id)
    if not test_ids:
        return {}

    result = await db.execute(
        select(TestSession)
        .where(
            TestSession.student_id == student_id,
            TestSession.test_id.in_(test_ids),
        )
        .order_by(TestSession.updated_at)
    )
    siblings: Dict[ModuleType, TestSession] = {}
    for session in result.scalars().all():
        current = siblings.get(session.module_type)
        if current is None or session.is_completed or not current.is_completed:
            siblings[session.module_type] = session
    return siblings


def module_bands(siblings: Mapping[ModuleType, TestSession]) -> Dict[str, Optional[float]]:
    """Completed module bands keyed by module name."""
    return {
        module_type.value: session.band if session.is_completed else None
        for module_type, session in siblings.items()
    }


async def refresh_overall_band(
    db: AsyncSession, student_id: int, anchor_id: int
) -> Optional[float]:
    """
    Recompute the strict overall band and store it on every sibling session.

    Returns:
        The overall band, or None while reading, listening or writing is
        still missing a band.

    Raises:
        DatabaseOperationError: If the write fails (the session is rolled back)
    """
    try:
        siblings = await get_sibling_module_sessions(db, student_id, anchor_id)
        overall = combine_overall_band(module_bands(siblings), OverallBandRule.STRICT)
        if overall is None:
            return None
        for session in siblings.values():
            session.overall_band = overall
        await db.commit()
    except Exception as e:
        await db.rollback()
        raise DatabaseOperationError("update overall band", e) from e

    logger.info(
        f"Overall band {overall} recorded for student {student_id}",
        extra={"student_id": student_id, "test_id": anchor_id},
    )
    return overall


async def _after_result_saved(db: AsyncSession, session: TestSession, test: Test) -> None:
    context = _session_log_context(session)
    student_id = session.student_id
    refreshed = False
    async with async_graceful_failure(
        "update overall band", logger, exc_info=True, context=context
    ):
        await refresh_overall_band(db, student_id, anchor_test_id(test))
        refreshed = True

    if not refreshed:
        # The rollback expired every loaded row; the result itself is committed
        async with async_graceful_failure("reload test session", logger, context=context):
            await db.refresh(session)
            await db.refresh(test)

    with graceful_failure("invalidate result cache", logger, context=context):
        invalidate_tags(student_results_cache_tag(student_id))


# =============================================================================
# Session lifecycle
# =============================================================================


async def _find_session(
    db: AsyncSession, student_id: int, test_id: int
) -> Optional[TestSession]:
    result = await db.execute(
        select(TestSession).where(
            TestSession.student_id == student_id,
            TestSession.test_id == test_id,
        )
    )
    return result.scalar_one_or_none()


async def start_session(db: AsyncSession, student: User, test: Test) -> TestSession:
    """
    Return the student's session for a test, creating it on first start.

    Raises:
        HTTPException: 400 if the test is inactive, 409 if already submitted
    """
    if not test.is_active:
        raise_bad_request(ErrorMessages.TEST_INACTIVE)

    existing = await _find_session(db, student.id, test.id)
    if existing is not None:
        if existing.is_completed:
            raise_conflict(ErrorMessages.session_already_completed(existing.id))
        return existing

    session = TestSession(
        student_id=student.id,
        test_id=test.id,
        module_type=test.module_type,
        status=SessionStatus.CREATED,
        answers={},
        started_at=utc_now(),
    )
    db.add(session)
    try:
        await db.commit()
    except IntegrityError:
        # Two starts raced; the other request created the row first
        await db.rollback()
        existing = await _find_session(db, student.id, test.id)
        if existing is None:
            raise
        return existing

    await db.refresh(session)
    logger.info("Test session started", extra=_session_log_context(session))
    _invalidate_student_results(session)
    return session


def _ensure_writable(session: TestSession, test: Test) -> None:
    if session.is_completed or not accepts_answers(session.status):
        raise_conflict(ErrorMessages.session_already_completed(session.id))
    if is_past_deadline(
        session.started_at, test.duration_minutes, settings.SUBMISSION_GRACE_SECONDS
    ):
        raise_conflict(ErrorMessages.SESSION_TIME_EXPIRED)


async def autosave_answers(
    db: AsyncSession,
    session: TestSession,
    test: Test,
    answers: Dict[str, Any],
    expected_version: Optional[int] = None,
) -> Tuple[TestSession, bool]:
    """
    Store in-progress answers (last write wins).

    Args:
        expected_version: Version the client last saw; a mismatch is a 409

    Returns:
        (session, saved) where saved is False when the answers were unchanged

    Raises:
        HTTPException: 409 after submission, after the deadline, or on a
            version conflict
    """
    _ensure_writable(session, test)
    if expected_version is not None and expected_version != session.version:
        raise_conflict(ErrorMessages.CONCURRENT_UPDATE)

    if session.answers == answers and session.status is SessionStatus.IN_PROGRESS:
        return session, False

    ensure_transition(session.status, SessionStatus.IN_PROGRESS)
    async with handle_db_error(
        db, "auto-save answers", context=_session_log_context(session)
    ):
        session.answers = dict(answers)
        session.status = SessionStatus.IN_PROGRESS
        await db.commit()

    logger.debug("Answers auto-saved", extra=_session_log_context(session))
    _invalidate_student_results(session)
    return session, True


async def persist_session_result(
    db: AsyncSession,
    session: TestSession,
    result: Optional[DetailedScoreResult],
    *,
    answers: Dict[str, Any],
    time_limit_exceeded: bool,
) -> TestSession:
    """
    Mark a session completed and store its score.

    A failed write rolls back and surfaces as a 500 with a message telling
    the student the test finished but the result was not saved. The score
    is not recomputed or retried here.
    """
    ensure_transition(session.status, SessionStatus.COMPLETED)
    async with handle_db_error(
        db,
        "save test result",
        detail=ErrorMessages.RESULT_SAVE_FAILED,
        context=_session_log_context(session),
    ):
        session.answers = dict(answers)
        session.status = SessionStatus.COMPLETED
        session.is_completed = True
        session.completed_at = utc_now()
        session.time_limit_exceeded = time_limit_exceeded
        if result is not None:
            session.score = result.correct_answers
            session.band = result.band_score
            session.result_details = result.to_dict()
        await db.commit()
    return session


async def submit_session(
    db: AsyncSession,
    session: TestSession,
    test: Test,
    answers: Optional[Dict[str, Any]] = None,
) -> TestSession:
    """
    Submit a session.

    Reading and listening are scored immediately. Writing and speaking are
    stored as completed and wait for an evaluator. A submission after the
    deadline is still accepted and flagged time_limit_exceeded.

    Args:
        answers: Final answers; the last auto-saved answers when omitted

    Raises:
        HTTPException: 409 if the session was already submitted
    """
    if session.is_completed:
        raise_conflict(ErrorMessages.session_already_completed(session.id))

    final_answers = answers if answers is not None else dict(session.answers or {})
    over_time = is_past_deadline(
        session.started_at, test.duration_minutes, settings.SUBMISSION_GRACE_SECONDS
    )
    if over_time:
        logger.warning(
            "Submission received after the module time limit",
            extra=_session_log_context(session),
        )

    result: Optional[DetailedScoreResult] = None
    if session.module_type in AUTO_SCORED_MODULES:
        questions = await get_questions_for_module(db, test.id)
        band_table = await get_band_score_ranges(db, test.id)
        result = score_submission(
            session.module_type, final_answers, questions, band_table
        )

    await persist_session_result(
        db, session, result, answers=final_answers, time_limit_exceeded=over_time
    )

    logger.info(
        f"Test session submitted (band={session.band})",
        extra=_session_log_context(session),
    )
    await _after_result_saved(db, session, test)
    return session


async def evaluate_session(
    db: AsyncSession,
    session: TestSession,
    test: Test,
    *,
    band: Optional[float] = None,
    task1_band: Optional[float] = None,
    task2_band: Optional[float] = None,
    criteria: Optional[WritingCriteria] = None,
    feedback: Optional[str] = None,
) -> TestSession:
    """
    Record an evaluator's band for a submitted session.

    The module band is chosen in order: the weighted writing composite of
    the task bands, the mean of the four criteria, then the explicit band.
    Re-evaluation overwrites the previous band and score.

    Raises:
        HTTPException: 400 if the session is not submitted or no band was given
    """
    if not session.is_completed:
        raise_bad_request(ErrorMessages.SESSION_NOT_SUBMITTED)

    final_band: Optional[float] = None
    if session.module_type is ModuleType.WRITING:
        final_band = combine_writing_task_bands(task1_band, task2_band)
    else:
        # Task bands only exist for writing
        task1_band = task2_band = None
    if final_band is None:
        final_band = criteria_band(criteria)
    if final_band is None:
        final_band = band
    if final_band is None:
        raise_bad_request(ErrorMessages.EVALUATION_BAND_REQUIRED)

    ensure_transition(session.status, SessionStatus.EVALUATED)
    details: Dict[str, Any] = dict(session.result_details or {})
    details.update(
        {
            "module_type": session.module_type.value,
            "band_score": final_band,
            "task1_band": task1_band,
            "task2_band": task2_band,
            "criteria": asdict(criteria) if criteria is not None else None,
            "feedback": feedback,
        }
    )

    async with handle_db_error(
        db, "save evaluation", context=_session_log_context(session)
    ):
        session.band = final_band
        session.score = round_half_up(final_band * 10)
        session.task1_band = task1_band
        session.task2_band = task2_band
        session.result_details = details
        session.status = SessionStatus.EVALUATED
        session.updated_at = utc_now()
        await db.commit()

    logger.info(
        f"Test session evaluated (band={final_band})",
        extra=_session_log_context(session),
    )
    await _after_result_saved(db, session, test)
    return session


# =============================================================================
# Reporting
# =============================================================================


@cached(
    key_prefix="student_results",
    key_args=lambda db, student_id, anchor_id: (student_id, anchor_id),
    tags=lambda db, student_id, anchor_id: [student_results_cache_tag(student_id)],
)
async def build_student_results(
    db: AsyncSession, student_id: int, anchor_id: int
) -> Dict[str, Any]:
    """
    Per-module bands and both overall-band rules for one linked test group.

    overall_band is the persisted strict value; overall_band_lenient is
    what list views show when some modules are still missing.
    """
    siblings = await get_sibling_module_sessions(db, student_id, anchor_id)
    bands = module_bands(siblings)

    modules: Dict[str, Dict[str, Any]] = {}
    for module_type, session in siblings.items():
        modules[module_type.value] = {
            "session_id": session.id,
            "test_id": session.test_id,
            "status": session.status.value,
            "is_completed": session.is_completed,
            "band": session.band,
            "score": session.score,
            "description": describe_band(session.band),
            "task1_band": session.task1_band,
            "task2_band": session.task2_band,
            "time_limit_exceeded": session.time_limit_exceeded,
            "completed_at": session.completed_at.isoformat()
            if session.completed_at
            else None,
            "result_details": session.result_details,
        }

    strict = combine_overall_band(bands, OverallBandRule.STRICT)
    lenient = combine_overall_band(bands, OverallBandRule.LENIENT)
    return {
        "student_id": student_id,
        "anchor_test_id": anchor_id,
        "modules": modules,
        "overall_band": strict,
        "overall_band_strict": strict,
        "overall_band_lenient": lenient,
        "overall_description": describe_band(strict if strict is not None else lenient),
    }
