"""
Attempt store - persistence of quiz attempts
"""
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from sqlalchemy import func
from sqlalchemy.orm import Session

from assessment_engine.exceptions import NotFoundError
from assessment_engine.models import QuizAttempt
from assessment_engine.models.quiz_attempt import GRADED, IN_PROGRESS

logger = logging.getLogger(__name__)


class AttemptStore:
    """Reads and writes QuizAttempt rows"""

    def get_attempt(self, db: Session, attempt_id: UUID, lock: bool = False) -> QuizAttempt:
        """
        Load an attempt, optionally locking its row until commit

        Raises:
            NotFoundError: if the attempt does not exist
        """
        query = db.query(QuizAttempt).filter(QuizAttempt.id == attempt_id)
        if lock:
            query = query.with_for_update()
        attempt = query.first()
        if not attempt:
            raise NotFoundError(f"Attempt {attempt_id} not found", detail={"attempt_id": str(attempt_id)})
        return attempt

    def find_active_attempt(self, db: Session, quiz_id: UUID, user_id: UUID) -> Optional[QuizAttempt]:
        return db.query(QuizAttempt).filter(
            QuizAttempt.quiz_id == quiz_id,
            QuizAttempt.user_id == user_id,
            QuizAttempt.status == IN_PROGRESS,
        ).first()

    def next_attempt_number(self, db: Session, quiz_id: UUID, user_id: UUID) -> int:
        last = db.query(func.max(QuizAttempt.attempt_number)).filter(
            QuizAttempt.quiz_id == quiz_id,
            QuizAttempt.user_id == user_id,
        ).scalar()
        return (last or 0) + 1

    def save_attempt(self, db: Session, attempt: QuizAttempt) -> QuizAttempt:
        """Persist an attempt; IntegrityError propagates to the caller"""
        db.add(attempt)
        db.commit()
        db.refresh(attempt)
        return attempt

    def delete_attempt(self, db: Session, attempt: QuizAttempt) -> None:
        db.delete(attempt)
        db.commit()

    def list_quiz_attempts(
        self,
        db: Session,
        quiz_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[QuizAttempt]:
        """Graded attempts for a quiz, oldest first, optionally bounded by completion time (inclusive)"""
        query = db.query(QuizAttempt).filter(
            QuizAttempt.quiz_id == quiz_id,
            QuizAttempt.status == GRADED,
        )
        if start is not None:
            query = query.filter(QuizAttempt.completed_at >= start)
        if end is not None:
            query = query.filter(QuizAttempt.completed_at <= end)
        return query.order_by(QuizAttempt.completed_at.asc(), QuizAttempt.attempt_number.asc()).all()

    def list_learner_attempts(self, db: Session, quiz_id: UUID, user_id: UUID) -> List[QuizAttempt]:
        """A learner's graded attempts for a quiz in attempt order"""
        return db.query(QuizAttempt).filter(
            QuizAttempt.quiz_id == quiz_id,
            QuizAttempt.user_id == user_id,
            QuizAttempt.status == GRADED,
        ).order_by(QuizAttempt.attempt_number.asc()).all()

    def list_course_attempts(self, db: Session, course_id: UUID, user_id: UUID) -> List[QuizAttempt]:
        """A learner's graded attempts across every quiz of a course"""
        return db.query(QuizAttempt).filter(
            QuizAttempt.course_id == course_id,
            QuizAttempt.user_id == user_id,
            QuizAttempt.status == GRADED,
        ).all()


# Global instance
attempt_store = AttemptStore()
