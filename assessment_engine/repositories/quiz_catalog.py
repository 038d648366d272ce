"""
Quiz catalog - read-through cached access to quiz definitions
"""
import logging
from typing import List
from uuid import UUID
from sqlalchemy.orm import Session

from assessment_engine.exceptions import NotFoundError
from assessment_engine.models import Quiz
from assessment_engine.schemas.quiz import QuizDefinition
from assessment_engine.utils.cache import cache_service

logger = logging.getLogger(__name__)


class QuizCatalog:
    """Supplies immutable quiz definitions"""

    def get_quiz(self, db: Session, quiz_id: UUID) -> QuizDefinition:
        """
        Load a quiz definition

        Raises:
            NotFoundError: if the quiz does not exist
        """
        cached = cache_service.get_quiz(str(quiz_id))
        if cached:
            return QuizDefinition.model_validate(cached)

        quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
        if not quiz:
            raise NotFoundError(f"Quiz {quiz_id} not found", detail={"quiz_id": str(quiz_id)})

        definition = QuizDefinition.model_validate(quiz)
        cache_service.put_quiz(str(quiz_id), definition.model_dump(mode="json"))
        return definition

    def list_course_quizzes(self, db: Session, course_id: UUID) -> List[Quiz]:
        """All quizzes belonging to a course"""
        return db.query(Quiz).filter(Quiz.course_id == course_id).all()


# Global instance
quiz_catalog = QuizCatalog()
