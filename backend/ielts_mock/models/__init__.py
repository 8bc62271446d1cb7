"""
Models package for the IELTS mock backend.
"""
from .base import Base, async_engine, AsyncSessionLocal, get_db
from .models import (
    User,
    Test,
    Question,
    BandScoreRange,
    TestSession,
    ModuleType,
    QuestionType,
    SessionStatus,
    UserRole,
)

__all__ = [
    "Base",
    "async_engine",
    "AsyncSessionLocal",
    "get_db",
    "User",
    "Test",
    "Question",
    "BandScoreRange",
    "TestSession",
    "ModuleType",
    "QuestionType",
    "SessionStatus",
    "UserRole",
]
