"""
Test fixtures and sample data for assessment engine tests.

Import this module before anything from assessment_engine: it points the
settings at an in-memory SQLite database and disables Redis.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "")

import unittest
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import assessment_engine.models  # noqa: F401  (register tables)
from assessment_engine.database import Base, SessionLocal, engine
from assessment_engine.models import CourseProgress, Enrollment, LessonProgress, Quiz
from assessment_engine.schemas.quiz import QuizDefinition


class FakeClock:
    """Controllable clock for deadline and inactivity tests."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 3, 2, 9, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class TestFixtures:
    """Centralized test fixtures for all test modules."""

    @staticmethod
    def scenario_questions() -> List[Dict[str, Any]]:
        """Multiple choice worth 10 points plus a double-weighted matching question."""
        return [
            {
                "id": "q1",
                "prompt": "Which letter comes second?",
                "type": "multiple_choice",
                "options": ["A", "B", "C", "D"],
                "correct_answer": "B",
                "points": 10,
            },
            {
                "id": "q2",
                "prompt": "Select the variables",
                "type": "matching",
                "options": ["x", "y", "z"],
                "correct_answer": ["x", "y"],
                "points": 10,
                "weight": 2,
            },
        ]

    @staticmethod
    def binary_questions() -> List[Dict[str, Any]]:
        """One question of every single-value type."""
        return [
            {
                "id": "mc",
                "prompt": "Capital of France?",
                "type": "multiple_choice",
                "options": ["Paris", "Rome"],
                "correct_answer": "Paris",
                "points": 5,
            },
            {
                "id": "tf",
                "prompt": "The sky is blue.",
                "type": "true_false",
                "options": ["true", "false"],
                "correct_answer": "true",
                "points": 3,
                "weight": 1.5,
            },
            {
                "id": "blank",
                "prompt": "2 + 2 = ___",
                "type": "fill_in_blank",
                "correct_answer": "4",
                "points": 2,
            },
        ]

    @staticmethod
    def quiz_definition(
        questions: Optional[List[Dict[str, Any]]] = None,
        passing_score: float = 70,
        time_limit: Optional[int] = None
    ) -> QuizDefinition:
        """Build a quiz definition without touching the database."""
        return QuizDefinition(
            id=uuid.uuid4(),
            course_id=uuid.uuid4(),
            title="Sample quiz",
            questions=TestFixtures.scenario_questions() if questions is None else questions,
            passing_score=passing_score,
            time_limit=time_limit,
        )

    @staticmethod
    def add_quiz(
        db,
        questions: Optional[List[Dict[str, Any]]] = None,
        passing_score: int = 70,
        time_limit: Optional[int] = None,
        course_id: Optional[uuid.UUID] = None,
        is_required: bool = False,
        title: str = "Sample quiz"
    ) -> Quiz:
        """Insert a quiz into the catalog."""
        quiz = Quiz(
            course_id=course_id or uuid.uuid4(),
            title=title,
            questions=TestFixtures.scenario_questions() if questions is None else questions,
            passing_score=passing_score,
            time_limit=time_limit,
            is_required=is_required,
        )
        db.add(quiz)
        db.commit()
        db.refresh(quiz)
        return quiz

    @staticmethod
    def add_enrollment(db, course_id, user_id, status: str = "ACTIVE") -> Enrollment:
        enrollment = Enrollment(course_id=course_id, user_id=user_id, status=status)
        db.add(enrollment)
        db.commit()
        return enrollment

    @staticmethod
    def add_course_progress(db, course_id, user_id, progress: float = 100.0) -> CourseProgress:
        record = CourseProgress(course_id=course_id, user_id=user_id, progress=progress)
        db.add(record)
        db.commit()
        return record

    @staticmethod
    def add_lesson_time(db, course_id, user_id, seconds: int) -> LessonProgress:
        record = LessonProgress(
            course_id=course_id,
            user_id=user_id,
            lesson_id=uuid.uuid4(),
            time_spent=seconds,
            is_completed=True,
        )
        db.add(record)
        db.commit()
        return record


class DatabaseTestCase(unittest.TestCase):
    """Gives each test a fresh schema and a session."""

    def setUp(self):
        Base.metadata.create_all(bind=engine)
        self.db = SessionLocal()

    def tearDown(self):
        self.db.close()
        Base.metadata.drop_all(bind=engine)
