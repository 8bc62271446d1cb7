"""
Pytest configuration and shared fixtures for testing.
"""
import os
from pathlib import Path

# Settings are read at import time; these must be in place before any
# ielts_mock import.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-pytest-only")
os.environ.setdefault("DATABASE_URL", "sqlite:///./unused-app.db")
os.environ.setdefault("ENV", "test")

from contextlib import asynccontextmanager  # noqa: E402
from typing import Any, AsyncGenerator, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ielts_mock.core.auth import create_access_token  # noqa: E402
from ielts_mock.core.cache import get_cache  # noqa: E402
from ielts_mock.core.scoring import DEFAULT_BAND_SCORE_RANGES  # noqa: E402
from ielts_mock.main import app  # noqa: E402
from ielts_mock.models import (  # noqa: E402
    Base,
    BandScoreRange,
    ModuleType,
    Question,
    QuestionType,
    Test,
    User,
    UserRole,
    get_db,
)


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests. Skips Sentry initialization."""
    yield


app.router.lifespan_context = _test_lifespan


# Path is relative to this file so the .db lands inside tests/ regardless
# of the working directory.
_TEST_DB = Path(__file__).parent / "test.db"
ASYNC_SQLALCHEMY_DATABASE_URL = f"sqlite+aiosqlite:///{_TEST_DB}"

async_test_engine = create_async_engine(
    ASYNC_SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
AsyncTestingSessionLocal = async_sessionmaker(
    async_test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(autouse=True)
def clear_cache():
    """Cached reference data and result views must not leak between tests."""
    get_cache().clear()
    yield
    get_cache().clear()


@pytest.fixture(scope="function")
async def async_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh async database session for each test.
    """
    async with async_test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncTestingSessionLocal() as session:
        yield session

    async with async_test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="function")
async def async_client(
    async_db_session: AsyncSession,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async test client with async database dependency override.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield async_db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db, None)


# =============================================================================
# Factories
# =============================================================================


async def create_user(
    db: AsyncSession, email: str, role: UserRole = UserRole.STUDENT
) -> User:
    user = User(email=email, name=email.split("@")[0].title(), role=role)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def create_test(
    db: AsyncSession,
    module_type: ModuleType,
    *,
    title: Optional[str] = None,
    duration_minutes: int = 60,
    parent_test_id: Optional[int] = None,
    is_active: bool = True,
) -> Test:
    test = Test(
        title=title or f"Mock {module_type.value}",
        module_type=module_type,
        duration_minutes=duration_minutes,
        parent_test_id=parent_test_id,
        is_active=is_active,
    )
    db.add(test)
    await db.commit()
    await db.refresh(test)
    return test


async def add_questions(
    db: AsyncSession, test: Test, questions: List[Dict[str, Any]]
) -> None:
    for spec in questions:
        db.add(Question(test_id=test.id, **spec))
    await db.commit()


async def add_band_table(db: AsyncSession, test: Test, ranges=None) -> None:
    for entry in ranges or DEFAULT_BAND_SCORE_RANGES:
        db.add(BandScoreRange(test_id=test.id, min_score=entry.min_score, band=entry.band))
    await db.commit()


def headers_for(user: User) -> Dict[str, str]:
    token = create_access_token({"user_id": user.id, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


def reading_questions(count: int = 40) -> List[Dict[str, Any]]:
    """
    Fill-in-the-blank reading questions with answer "answer{n}", spread over
    parts 1-3 (13, 13, 14 for a full test).
    """
    questions = []
    for number in range(1, count + 1):
        part = 1 if number <= 13 else 2 if number <= 26 else 3
        questions.append(
            {
                "question_number": number,
                "part": part,
                "question_type": QuestionType.FILL_BLANK,
                "correct_answer": f"answer{number}",
            }
        )
    return questions


def correct_answers(count: int) -> Dict[str, str]:
    return {str(number): f"answer{number}" for number in range(1, count + 1)}


# =============================================================================
# Shared fixtures
# =============================================================================


@pytest.fixture
async def student(async_db_session):
    return await create_user(async_db_session, "student@example.com")


@pytest.fixture
async def other_student(async_db_session):
    return await create_user(async_db_session, "other@example.com")


@pytest.fixture
async def instructor(async_db_session):
    return await create_user(
        async_db_session, "instructor@example.com", UserRole.INSTRUCTOR
    )


@pytest.fixture
def student_headers(student):
    return headers_for(student)


@pytest.fixture
def instructor_headers(instructor):
    return headers_for(instructor)


@pytest.fixture
async def reading_test(async_db_session):
    """A 40-question reading test with the standard band table."""
    test = await create_test(async_db_session, ModuleType.READING)
    await add_questions(async_db_session, test, reading_questions())
    await add_band_table(async_db_session, test)
    return test


@pytest.fixture
async def linked_tests(async_db_session, reading_test):
    """Reading anchor plus listening, writing and speaking tests linked to it."""
    listening = await create_test(
        async_db_session,
        ModuleType.LISTENING,
        duration_minutes=30,
        parent_test_id=reading_test.id,
    )
    questions = reading_questions()
    for spec in questions:
        spec["part"] = (spec["question_number"] - 1) // 10 + 1
    await add_questions(async_db_session, listening, questions)
    await add_band_table(async_db_session, listening)

    writing = await create_test(
        async_db_session, ModuleType.WRITING, parent_test_id=reading_test.id
    )
    await add_questions(
        async_db_session,
        writing,
        [
            {"question_number": 1, "part": 1, "question_type": QuestionType.WRITING_TASK},
            {"question_number": 2, "part": 2, "question_type": QuestionType.WRITING_TASK},
        ],
    )
    speaking = await create_test(
        async_db_session,
        ModuleType.SPEAKING,
        duration_minutes=15,
        parent_test_id=reading_test.id,
    )
    return {
        ModuleType.READING: reading_test,
        ModuleType.LISTENING: listening,
        ModuleType.WRITING: writing,
        ModuleType.SPEAKING: speaking,
    }
