"""
Database models for the IELTS mock testing backend.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Enum,
    Float,
    UniqueConstraint,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import JSON
from datetime import datetime, timezone
import enum

from .base import Base


class ModuleType(str, enum.Enum):
    """IELTS module enumeration."""

    READING = "reading"
    LISTENING = "listening"
    WRITING = "writing"
    SPEAKING = "speaking"


class QuestionType(str, enum.Enum):
    """Question type enumeration."""

    SINGLE_CHOICE = "single_choice"
    FILL_BLANK = "fill_blank"
    TRUE_FALSE_NOT_GIVEN = "true_false_not_given"
    MATCHING_HEADING = "matching_heading"
    MATCHING_INFORMATION = "matching_information"
    FLOW_CHART = "flow_chart"
    TABLE_COMPLETION = "table_completion"
    SUMMARY_COMPLETION = "summary_completion"
    WRITING_TASK = "writing_task"


class SessionStatus(str, enum.Enum):
    """Test session status enumeration."""

    CREATED = "created"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    EVALUATED = "evaluated"


class UserRole(str, enum.Enum):
    """User role enumeration."""

    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class User(Base):
    """User model. Accounts are managed elsewhere; this service only reads them."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), default=UserRole.STUDENT, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    test_sessions = relationship(
        "TestSession", back_populates="student", cascade="all, delete-orphan"
    )


class Test(Base):
    """
    A single timed module of a mock exam.

    A reading test anchors a mock; listening, writing and speaking tests
    point at it through parent_test_id.
    """

    __tablename__ = "tests"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    module_type = Column(Enum(ModuleType), nullable=False, index=True)
    duration_minutes = Column(Integer, nullable=False, default=60)
    is_active = Column(Boolean, default=True, nullable=False)
    parent_test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    questions = relationship(
        "Question", back_populates="test", cascade="all, delete-orphan"
    )
    band_score_ranges = relationship(
        "BandScoreRange", back_populates="test", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_tests_duration_positive"),
    )


class Question(Base):
    """Authored question with its answer key."""

    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_number = Column(Integer, nullable=False)
    part = Column(Integer, nullable=False, default=1)
    question_type = Column(Enum(QuestionType), nullable=False)
    points = Column(Integer, nullable=False, default=1)
    content = Column(JSON, nullable=True)
    # str, list of accepted alternatives, or {item_id: label} for matching types
    correct_answer = Column(JSON, nullable=True)
    # Shared by the fields of one flow-chart/table group
    group_id = Column(String(64), nullable=True)
    # Key of this field in the group payload; defaults to the question number
    field_key = Column(String(64), nullable=True)

    test = relationship("Test", back_populates="questions")

    __table_args__ = (
        UniqueConstraint("test_id", "question_number", name="uq_questions_test_number"),
        CheckConstraint("part >= 1 AND part <= 4", name="ck_questions_part_range"),
    )


class BandScoreRange(Base):
    """Raw-score threshold to band mapping for one test."""

    __tablename__ = "band_score_ranges"

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    min_score = Column(Integer, nullable=False)
    band = Column(Float, nullable=False)

    test = relationship("Test", back_populates="band_score_ranges")

    __table_args__ = (
        UniqueConstraint("test_id", "min_score", name="uq_band_ranges_test_min_score"),
        CheckConstraint("band >= 0 AND band <= 9", name="ck_band_ranges_band_range"),
    )


class TestSession(Base):
    """One student's attempt at one module test."""

    __tablename__ = "test_sessions"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    module_type = Column(Enum(ModuleType), nullable=False)
    status = Column(
        Enum(SessionStatus), default=SessionStatus.CREATED, nullable=False, index=True
    )
    answers = Column(JSON, nullable=True)

    # Raw correct count for auto-scored modules, 0-90 scaled score for
    # evaluated modules
    score = Column(Integer, nullable=True)
    band = Column(Float, nullable=True)
    overall_band = Column(Float, nullable=True)
    task1_band = Column(Float, nullable=True)
    task2_band = Column(Float, nullable=True)
    result_details = Column(JSON, nullable=True)

    is_completed = Column(Boolean, default=False, nullable=False)
    # Over-time submissions are still accepted but flagged
    time_limit_exceeded = Column(Boolean, default=False, nullable=False)

    started_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Optimistic lock counter; a stale writer gets StaleDataError on flush
    version = Column(Integer, nullable=False, default=1)

    student = relationship("User", back_populates="test_sessions")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint("student_id", "test_id", name="uq_test_sessions_student_test"),
        Index("ix_test_sessions_student_completed", "student_id", "is_completed"),
    )
