"""
Tests for band table admin endpoints.
"""

from ielts_mock.core.error_responses import ErrorMessages
from ielts_mock.models import ModuleType

from tests.conftest import add_questions, correct_answers, create_test, reading_questions

URL = "/v1/admin/tests/{test_id}/band-ranges"


class TestGetBandRanges:
    async def test_returns_table_highest_first(
        self, async_client, instructor_headers, reading_test
    ):
        response = await async_client.get(
            URL.format(test_id=reading_test.id), headers=instructor_headers
        )

        assert response.status_code == 200
        ranges = response.json()["ranges"]
        assert len(ranges) == 16
        assert ranges[0] == {"min_score": 39, "band": 9.0}
        assert ranges[-1] == {"min_score": 0, "band": 0.0}

    async def test_student_forbidden(self, async_client, student_headers, reading_test):
        response = await async_client.get(
            URL.format(test_id=reading_test.id), headers=student_headers
        )
        assert response.status_code == 403

    async def test_unknown_test_is_404(self, async_client, instructor_headers):
        response = await async_client.get(
            URL.format(test_id=999), headers=instructor_headers
        )
        assert response.status_code == 404


class TestReplaceBandRanges:
    async def test_replace_sorts_and_stores(
        self, async_client, instructor_headers, reading_test
    ):
        response = await async_client.put(
            URL.format(test_id=reading_test.id),
            headers=instructor_headers,
            json={
                "ranges": [
                    {"min_score": 0, "band": 0.0},
                    {"min_score": 20, "band": 6.0},
                    {"min_score": 10, "band": 4.0},
                ]
            },
        )

        assert response.status_code == 200
        assert [entry["min_score"] for entry in response.json()["ranges"]] == [20, 10, 0]

        stored = await async_client.get(
            URL.format(test_id=reading_test.id), headers=instructor_headers
        )
        assert stored.json()["ranges"] == response.json()["ranges"]

    async def test_new_table_used_for_next_submission(
        self, async_client, student_headers, instructor_headers, reading_test
    ):
        # Warm the cached table first
        await async_client.get(URL.format(test_id=reading_test.id), headers=instructor_headers)
        await async_client.put(
            URL.format(test_id=reading_test.id),
            headers=instructor_headers,
            json={"ranges": [{"min_score": 5, "band": 9.0}, {"min_score": 0, "band": 1.0}]},
        )

        started = await async_client.post(
            f"/v1/sessions/start?test_id={reading_test.id}", headers=student_headers
        )
        submitted = await async_client.post(
            f"/v1/sessions/{started.json()['id']}/submit",
            headers=student_headers,
            json={"answers": correct_answers(5)},
        )
        assert submitted.json()["session"]["band"] == 9.0

    async def test_duplicate_thresholds_rejected(
        self, async_client, instructor_headers, reading_test
    ):
        response = await async_client.put(
            URL.format(test_id=reading_test.id),
            headers=instructor_headers,
            json={"ranges": [{"min_score": 10, "band": 4.0}, {"min_score": 10, "band": 4.5}]},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == ErrorMessages.BAND_TABLE_DUPLICATE

    async def test_empty_table_rejected(self, async_client, instructor_headers, reading_test):
        response = await async_client.put(
            URL.format(test_id=reading_test.id),
            headers=instructor_headers,
            json={"ranges": []},
        )
        assert response.status_code == 422

    async def test_invalid_band_rejected(self, async_client, instructor_headers, reading_test):
        response = await async_client.put(
            URL.format(test_id=reading_test.id),
            headers=instructor_headers,
            json={"ranges": [{"min_score": 10, "band": 4.25}]},
        )
        assert response.status_code == 422


class TestDefaultBandRanges:
    async def test_apply_defaults(self, async_client, async_db_session, instructor_headers):
        test = await create_test(async_db_session, ModuleType.LISTENING)
        await add_questions(async_db_session, test, reading_questions())

        response = await async_client.post(
            URL.format(test_id=test.id) + "/defaults", headers=instructor_headers
        )

        assert response.status_code == 200
        ranges = response.json()["ranges"]
        assert len(ranges) == 16
        assert {"min_score": 37, "band": 8.5} in ranges
