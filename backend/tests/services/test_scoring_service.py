"""
Tests for the scoring service: reference data loading, optimistic locking
and overall band recomputation.
"""

import pytest
from fastapi import HTTPException

from ielts_mock.core.error_responses import ErrorMessages
from ielts_mock.core.scoring import BandRange, GroupedFieldQuestion
from ielts_mock.models import (
    ModuleType,
    QuestionType,
    SessionStatus,
    Test,
    TestSession,
)
from ielts_mock.services import scoring_service

from tests.conftest import AsyncTestingSessionLocal, add_questions


async def _add_session(db, student, test, **fields):
    session = TestSession(
        student_id=student.id,
        test_id=test.id,
        module_type=test.module_type,
        status=SessionStatus.CREATED,
        answers={},
        **fields,
    )
    db.add(session)
    await db.commit()
    await db.refresh(session)
    return session


class TestReferenceData:
    async def test_grouped_fields_learn_group_first_number(self, async_db_session):
        test = Test(title="Flow", module_type=ModuleType.READING, duration_minutes=60)
        async_db_session.add(test)
        await async_db_session.commit()
        await add_questions(
            async_db_session,
            test,
            [
                {
                    "question_number": number,
                    "part": 2,
                    "question_type": QuestionType.FLOW_CHART,
                    "correct_answer": "x",
                    "group_id": "flow",
                    "field_key": key,
                }
                for number, key in ((16, "c"), (14, "a"), (15, "b"))
            ],
        )

        specs = await scoring_service.get_questions_for_module(async_db_session, test.id)

        assert [spec.number for spec in specs] == [14, 15, 16]
        assert all(isinstance(spec, GroupedFieldQuestion) for spec in specs)
        assert {spec.group_first_number for spec in specs} == {14}

    async def test_band_table_is_cached_until_replaced(
        self, async_db_session, reading_test
    ):
        first = await scoring_service.get_band_score_ranges(async_db_session, reading_test.id)
        assert first[0].min_score == 39

        await scoring_service.replace_band_score_ranges(
            async_db_session,
            reading_test,
            [BandRange(min_score=0, band=5.0)],
        )

        second = await scoring_service.get_band_score_ranges(
            async_db_session, reading_test.id
        )
        assert [(entry.min_score, entry.band) for entry in second] == [(0, 5.0)]

    async def test_empty_band_table_rejected(self, async_db_session, reading_test):
        with pytest.raises(HTTPException) as exc_info:
            await scoring_service.replace_band_score_ranges(
                async_db_session, reading_test, []
            )
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == ErrorMessages.BAND_TABLE_EMPTY


class TestOptimisticLocking:
    async def test_concurrent_autosave_is_conflict(
        self, async_db_session, student, reading_test
    ):
        created = await _add_session(async_db_session, student, reading_test)

        async with AsyncTestingSessionLocal() as first, AsyncTestingSessionLocal() as second:
            first_row = await first.get(TestSession, created.id)
            second_row = await second.get(TestSession, created.id)
            first_test = await first.get(Test, reading_test.id)
            second_test = await second.get(Test, reading_test.id)

            _, saved = await scoring_service.autosave_answers(
                first, first_row, first_test, {"1": "a"}
            )
            assert saved is True

            with pytest.raises(HTTPException) as exc_info:
                await scoring_service.autosave_answers(
                    second, second_row, second_test, {"1": "b"}
                )

        assert exc_info.value.status_code == 409
        assert exc_info.value.detail == ErrorMessages.CONCURRENT_UPDATE


class TestOverallBand:
    async def test_refresh_needs_reading_listening_and_writing(
        self, async_db_session, student, linked_tests
    ):
        reading = await _add_session(
            async_db_session,
            student,
            linked_tests[ModuleType.READING],
            is_completed=True,
            band=7.0,
        )
        await _add_session(
            async_db_session,
            student,
            linked_tests[ModuleType.LISTENING],
            is_completed=True,
            band=6.0,
        )
        anchor_id = linked_tests[ModuleType.READING].id

        assert (
            await scoring_service.refresh_overall_band(async_db_session, student.id, anchor_id)
            is None
        )
        assert reading.overall_band is None

        await _add_session(
            async_db_session,
            student,
            linked_tests[ModuleType.WRITING],
            is_completed=True,
            band=6.5,
        )
        overall = await scoring_service.refresh_overall_band(
            async_db_session, student.id, anchor_id
        )

        # (7.0 + 6.0 + 6.5) / 3 = 6.5
        assert overall == 6.5
        assert reading.overall_band == 6.5

    async def test_incomplete_sessions_do_not_count(
        self, async_db_session, student, linked_tests
    ):
        for module_type, band in (
            (ModuleType.READING, 7.0),
            (ModuleType.LISTENING, 7.0),
        ):
            await _add_session(
                async_db_session,
                student,
                linked_tests[module_type],
                is_completed=True,
                band=band,
            )
        await _add_session(
            async_db_session, student, linked_tests[ModuleType.WRITING], band=6.0
        )

        overall = await scoring_service.refresh_overall_band(
            async_db_session, student.id, linked_tests[ModuleType.READING].id
        )
        assert overall is None
