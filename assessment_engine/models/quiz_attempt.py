"""
QuizAttempt model - attempt sessions and their grading results
"""
from sqlalchemy import (
    Column, String, Integer, Boolean, Float, TIMESTAMP, JSON, Uuid, Index,
    ForeignKey, func, text,
)
from sqlalchemy.dialects.postgresql import JSONB
from assessment_engine.database import Base
import uuid

IN_PROGRESS = "in_progress"
GRADED = "graded"

_json = JSON().with_variant(JSONB, "postgresql")
_active_only = text("status = 'in_progress'")


class QuizAttempt(Base):
    """
    Quiz attempts table - one row per learner pass through a quiz

    Rows start as in_progress and become graded exactly once. Graded rows are
    append-only history.
    """
    __tablename__ = "quiz_attempts"
    __table_args__ = (
        # At most one live attempt per learner and quiz
        Index(
            "uq_quiz_attempts_active",
            "quiz_id",
            "user_id",
            unique=True,
            postgresql_where=_active_only,
            sqlite_where=_active_only,
        ),
        Index("ix_quiz_attempts_user_quiz_number", "user_id", "quiz_id", "attempt_number"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id"), nullable=False, index=True)
    course_id = Column(Uuid, nullable=False, index=True)
    attempt_number = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=IN_PROGRESS)

    quiz_snapshot = Column(_json, nullable=False)  # Quiz definition captured at start
    responses = Column(_json, nullable=False, default=dict)  # {question_id: raw answer}
    current_index = Column(Integer, nullable=False, default=0)

    # Grading results, set once at submission
    answers = Column(_json)  # Graded answers in quiz order
    score = Column(Float)  # Weighted percentage
    raw_score = Column(Float)  # Unweighted percentage
    earned_points = Column(Float)
    total_points = Column(Float)
    earned_weighted_points = Column(Float)
    total_weighted_points = Column(Float)
    passed = Column(Boolean)
    ungradable = Column(Boolean, default=False)
    auto_submitted = Column(Boolean, default=False)
    time_spent = Column(Integer)  # seconds

    started_at = Column(TIMESTAMP, nullable=False)
    deadline_at = Column(TIMESTAMP)
    last_activity_at = Column(TIMESTAMP, nullable=False)
    completed_at = Column(TIMESTAMP)
    created_at = Column(TIMESTAMP, server_default=func.now())

    @property
    def is_graded(self) -> bool:
        return self.status == GRADED

    def __repr__(self):
        return (
            f"<QuizAttempt(user_id={self.user_id}, quiz_id={self.quiz_id}, "
            f"number={self.attempt_number}, status={self.status}, score={self.score})>"
        )
