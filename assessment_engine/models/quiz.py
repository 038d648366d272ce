"""
Quiz model - catalog of immutable quiz definitions
"""
from sqlalchemy import Column, String, Integer, Boolean, Text, TIMESTAMP, JSON, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from assessment_engine.database import Base
import uuid


class Quiz(Base):
    """
    Quizzes table - one row per quiz version

    A quiz is never edited once an attempt references it; a new version is a
    new row with a new id.
    """
    __tablename__ = "quizzes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id = Column(Uuid, nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    questions = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)  # Ordered question list
    passing_score = Column(Integer, nullable=False, default=70)
    time_limit = Column(Integer)  # minutes
    is_required = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<Quiz(id={self.id}, title={self.title}, required={self.is_required})>"
