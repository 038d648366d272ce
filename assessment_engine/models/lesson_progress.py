"""
LessonProgress model - per-lesson study time reported by the course player
"""
from sqlalchemy import Column, Integer, Boolean, TIMESTAMP, Uuid, UniqueConstraint, func
from assessment_engine.database import Base
import uuid


class LessonProgress(Base):
    """
    Lesson progress table - time-on-task per learner and lesson
    """
    __tablename__ = "lesson_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "lesson_id", name="uq_lesson_progress_user_lesson"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    course_id = Column(Uuid, nullable=False, index=True)
    lesson_id = Column(Uuid, nullable=False)
    time_spent = Column(Integer, default=0)  # seconds
    is_completed = Column(Boolean, default=False)
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<LessonProgress(user_id={self.user_id}, lesson_id={self.lesson_id}, time_spent={self.time_spent})>"
