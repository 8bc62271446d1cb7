"""
Standardized error response messages and builders.

All user-facing error messages live in ErrorMessages so wording stays
consistent across endpoints and never leaks implementation details.

Message format:
- Sentence case, ending with a period
- IDs in parentheses when they help support: "(ID: 123)"
- "Please try again." for transient failures

Usage:
    from ielts_mock.core.error_responses import ErrorMessages, raise_not_found

    if not session:
        raise_not_found(ErrorMessages.TEST_SESSION_NOT_FOUND)

    raise_conflict(ErrorMessages.session_already_completed(session_id=12))
"""

from typing import NoReturn, Optional

from fastapi import HTTPException, status


class ErrorMessages:
    """Centralized error message constants and templates."""

    # ==========================================================================
    # Authentication Errors (401)
    # ==========================================================================
    INVALID_TOKEN = "Invalid authentication token."
    INVALID_TOKEN_TYPE = "Invalid token type."
    INVALID_TOKEN_PAYLOAD = "Invalid token payload."
    USER_NOT_FOUND_AUTH = "User not found."

    # ==========================================================================
    # Authorization Errors (403)
    # ==========================================================================
    SESSION_ACCESS_DENIED = "Not authorized to access this test session."
    INSUFFICIENT_ROLE = "You do not have permission to perform this action."

    # ==========================================================================
    # Not Found Errors (404)
    # ==========================================================================
    TEST_SESSION_NOT_FOUND = "Test session not found."
    TEST_NOT_FOUND = "Test not found."
    STUDENT_NOT_FOUND = "Student not found."

    # ==========================================================================
    # Conflict Errors (409)
    # ==========================================================================
    CONCURRENT_UPDATE = (
        "This test session was updated by another request. "
        "Please reload and try again."
    )
    SESSION_TIME_EXPIRED = (
        "The time limit for this module has passed. "
        "Please submit your answers."
    )

    # ==========================================================================
    # Bad Request Errors (400)
    # ==========================================================================
    TEST_INACTIVE = "This test is not currently available."
    SESSION_NOT_SUBMITTED = "Only submitted sessions can be evaluated."
    EVALUATION_BAND_REQUIRED = (
        "Provide a band, at least one writing task band, or all four criteria."
    )
    BAND_TABLE_EMPTY = "Band score table cannot be empty."
    BAND_TABLE_DUPLICATE = "Band score table contains duplicate minimum scores."

    # ==========================================================================
    # Server Errors (500)
    # ==========================================================================
    RESULT_SAVE_FAILED = (
        "Test completed, but your results could not be saved. Please try again."
    )

    # ==========================================================================
    # Template Methods for Dynamic Messages
    # ==========================================================================
    @staticmethod
    def session_already_completed(session_id: int) -> str:
        """Message for writes against a submitted session."""
        return (
            f"Test session (ID: {session_id}) has already been submitted. "
            "Answers can no longer be changed."
        )

    @staticmethod
    def database_operation_failed(operation: str) -> str:
        """Generic message for database operation failures."""
        return f"Failed to {operation}. Please try again later."


# ==============================================================================
# HTTPException Builder Functions
# ==============================================================================


def raise_bad_request(detail: str) -> NoReturn:
    """Raise a 400 Bad Request exception."""
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail,
    )


def raise_unauthorized(
    detail: str,
    include_www_authenticate: bool = True,
) -> NoReturn:
    """
    Raise a 401 Unauthorized exception.

    Args:
        detail: User-facing error message
        include_www_authenticate: Whether to include WWW-Authenticate header
    """
    headers = {"WWW-Authenticate": "Bearer"} if include_www_authenticate else None
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=headers,
    )


def raise_forbidden(detail: str) -> NoReturn:
    """Raise a 403 Forbidden exception."""
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=detail,
    )


def raise_not_found(detail: str) -> NoReturn:
    """Raise a 404 Not Found exception."""
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    )


def raise_conflict(detail: str) -> NoReturn:
    """Raise a 409 Conflict exception."""
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=detail,
    )


def raise_server_error(
    detail: str,
    error_id: Optional[str] = None,
) -> NoReturn:
    """
    Raise a 500 Internal Server Error exception.

    Always use a user-friendly message; log technical details separately.

    Args:
        detail: User-facing error message
        error_id: Optional error tracking ID appended to the message
    """
    if error_id:
        detail = f"{detail} (Error ID: {error_id})"

    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
    )
