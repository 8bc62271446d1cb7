"""
Tests for the handle_db_error context manager.
"""

import logging
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ielts_mock.core.db_error_handling import DatabaseOperationError, handle_db_error
from ielts_mock.core.error_responses import ErrorMessages


def create_mock_db():
    db = AsyncMock()
    db.rollback = AsyncMock()
    return db


class TestDatabaseOperationError:
    def test_default_message_format(self):
        error = DatabaseOperationError(
            operation_name="update overall band",
            original_error=ValueError("constraint violation"),
        )

        assert error.message == "Failed to update overall band: constraint violation"
        assert str(error) == error.message

    def test_custom_message(self):
        error = DatabaseOperationError(
            operation_name="update", original_error=ValueError("x"), message="Custom"
        )
        assert str(error) == "Custom"


class TestHandleDbError:
    async def test_success_case_no_exception(self):
        db = create_mock_db()
        result = []

        async with handle_db_error(db, "save test result"):
            result.append("executed")

        assert result == ["executed"]
        db.rollback.assert_not_called()

    async def test_rollback_on_exception(self):
        db = create_mock_db()

        with pytest.raises(HTTPException) as exc_info:
            async with handle_db_error(db, "save test result"):
                raise SQLAlchemyError("connection lost")

        db.rollback.assert_awaited_once()
        assert exc_info.value.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert exc_info.value.detail == ErrorMessages.database_operation_failed(
            "save test result"
        )

    async def test_custom_detail(self):
        db = create_mock_db()

        with pytest.raises(HTTPException) as exc_info:
            async with handle_db_error(
                db, "save test result", detail=ErrorMessages.RESULT_SAVE_FAILED
            ):
                raise SQLAlchemyError("disk full")

        assert exc_info.value.detail == ErrorMessages.RESULT_SAVE_FAILED

    async def test_custom_status_code(self):
        db = create_mock_db()

        with pytest.raises(HTTPException) as exc_info:
            async with handle_db_error(
                db, "op", status_code=status.HTTP_503_SERVICE_UNAVAILABLE
            ):
                raise ValueError("service error")

        assert exc_info.value.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    async def test_http_exception_passes_through(self):
        db = create_mock_db()

        with pytest.raises(HTTPException) as exc_info:
            async with handle_db_error(db, "op"):
                raise HTTPException(status_code=404, detail="Not found")

        db.rollback.assert_not_called()
        assert exc_info.value.status_code == 404

    async def test_stale_data_is_conflict(self):
        db = create_mock_db()

        with pytest.raises(HTTPException) as exc_info:
            async with handle_db_error(db, "auto-save answers"):
                raise StaleDataError("version mismatch")

        db.rollback.assert_awaited_once()
        assert exc_info.value.status_code == status.HTTP_409_CONFLICT
        assert exc_info.value.detail == ErrorMessages.CONCURRENT_UPDATE

    async def test_logs_with_context(self):
        db = create_mock_db()

        with patch("ielts_mock.core.db_error_handling.logger") as mock_logger:
            with pytest.raises(HTTPException):
                async with handle_db_error(
                    db, "save evaluation", context={"session_id": 3}
                ):
                    raise ValueError("boom")

        mock_logger.log.assert_called_once()
        args, kwargs = mock_logger.log.call_args
        assert args[0] == logging.ERROR
        assert "save evaluation" in args[1]
        assert kwargs["extra"] == {"session_id": 3}
