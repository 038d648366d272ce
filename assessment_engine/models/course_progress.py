"""
CourseProgress model - completion percentage reported by the course player
"""
from sqlalchemy import Column, Float, TIMESTAMP, Uuid, UniqueConstraint, func
from assessment_engine.database import Base
import uuid


class CourseProgress(Base):
    """
    Course progress table - one row per learner and course

    Kept apart from enrollments: a learner can have progress recorded for a
    course whose enrollment was removed, and vice versa.
    """
    __tablename__ = "course_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_course_progress_user_course"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    course_id = Column(Uuid, nullable=False, index=True)
    progress = Column(Float, nullable=False, default=0.0)  # 0.0 to 100.0
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<CourseProgress(user_id={self.user_id}, course_id={self.course_id}, progress={self.progress})>"
